"""Serialisable shapes of the lesson data.

The ``*Record`` models are the durable projection written to the local
store. ``RecordingRecord`` has no audio field, so raw audio cannot cross
the persistence boundary. The remaining models are HTTP request and
response bodies.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from lesson_caddy.models import Lesson, LessonStatus, RecordingMeta, Student


class StudentRecord(BaseModel):
    id: str
    full_name: str = Field(min_length=1)
    created_at: datetime

    @classmethod
    def from_student(cls, student: Student) -> "StudentRecord":
        return cls(id=student.id, full_name=student.full_name, created_at=student.created_at)

    def to_student(self) -> Student:
        return Student(id=self.id, full_name=self.full_name, created_at=self.created_at)


class RecordingRecord(BaseModel):
    id: str
    duration: int = Field(ge=0)
    timestamp: datetime

    def to_meta(self) -> RecordingMeta:
        return RecordingMeta(id=self.id, duration=self.duration, timestamp=self.timestamp)


class LessonRecord(BaseModel):
    id: str
    student_id: str
    title: str
    date: datetime
    recordings: list[RecordingRecord] = []
    notes: str = ""
    summary: str | None = None
    status: LessonStatus

    @classmethod
    def from_lesson(cls, lesson: Lesson) -> "LessonRecord":
        return cls(
            id=lesson.id,
            student_id=lesson.student_id,
            title=lesson.title,
            date=lesson.date,
            recordings=[
                RecordingRecord(id=r.id, duration=r.duration, timestamp=r.timestamp)
                for r in lesson.recordings
            ],
            notes=lesson.notes,
            summary=lesson.summary,
            status=lesson.status,
        )

    def to_lesson(self) -> Lesson:
        return Lesson(
            id=self.id,
            student_id=self.student_id,
            title=self.title,
            date=self.date,
            recordings=[r.to_meta() for r in self.recordings],
            notes=self.notes,
            summary=self.summary,
            status=self.status,
        )


# ------------------------------------------------------------------
# Request bodies
# ------------------------------------------------------------------


class StudentCreate(BaseModel):
    full_name: str


class LessonSelect(BaseModel):
    student_id: str


class LessonUpdate(BaseModel):
    title: str | None = None
    notes: str | None = None


# ------------------------------------------------------------------
# Responses
# ------------------------------------------------------------------


class LessonOut(LessonRecord):
    student_name: str
    audio_available: bool
    total_duration: int

    @classmethod
    def render(cls, lesson: Lesson, student_name: str) -> "LessonOut":
        record = LessonRecord.from_lesson(lesson)
        return cls(
            **record.model_dump(),
            student_name=student_name,
            audio_available=bool(lesson.recordings)
            and not any(isinstance(r, RecordingMeta) for r in lesson.recordings),
            total_duration=lesson.total_duration,
        )


class FlowStateOut(BaseModel):
    state: str
    is_processing: bool
    active_lesson: LessonOut | None = None
    last_completed: LessonOut | None = None
