import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

UNKNOWN_STUDENT_NAME = "Unknown Student"


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LessonStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Student:
    id: str
    full_name: str
    created_at: datetime


@dataclass(frozen=True)
class AudioAsset:
    """Raw captured audio. Lives in process memory only."""

    data: bytes
    mime_type: str = "audio/wav"


@dataclass(frozen=True)
class RecordingMeta:
    """Durable provenance of a recording: everything except the audio."""

    id: str
    duration: int  # seconds
    timestamp: datetime


@dataclass(frozen=True)
class Recording:
    id: str
    audio: AudioAsset
    duration: int  # seconds
    timestamp: datetime

    def __post_init__(self) -> None:
        if self.duration < 0:
            raise ValueError("duration must be non-negative")

    @property
    def meta(self) -> RecordingMeta:
        return RecordingMeta(id=self.id, duration=self.duration, timestamp=self.timestamp)


@dataclass
class Lesson:
    """A coaching session for one student.

    ``recordings`` holds full :class:`Recording` objects while the audio is
    still in memory. Lessons reloaded from the local store only carry
    :class:`RecordingMeta` entries.
    """

    id: str
    student_id: str
    title: str
    date: datetime
    recordings: list[Recording | RecordingMeta] = field(default_factory=list)
    notes: str = ""
    summary: str | None = None
    status: LessonStatus = LessonStatus.ACTIVE

    @classmethod
    def start(cls, student_id: str, now: datetime | None = None) -> "Lesson":
        now = now or utcnow()
        return cls(
            id=new_id(),
            student_id=student_id,
            title=f"Session: {now.astimezone().strftime('%x')}",
            date=now,
        )

    @property
    def is_active(self) -> bool:
        return self.status is LessonStatus.ACTIVE

    @property
    def total_duration(self) -> int:
        return sum(r.duration for r in self.recordings)

    def append_recording(self, recording: Recording) -> None:
        if not self.is_active:
            raise ValueError(f"Lesson {self.id} is {self.status.value}; recordings are closed")
        self.recordings.append(recording)

    def completed(self, summary: str) -> "Lesson":
        """Return a completed copy carrying *summary*. The receiver is left untouched."""
        if not self.is_active:
            raise ValueError(f"Lesson {self.id} is already {self.status.value}")
        if not self.recordings:
            raise ValueError("A lesson cannot complete without recordings")
        return replace(
            self,
            recordings=list(self.recordings),
            summary=summary,
            status=LessonStatus.COMPLETED,
        )
