import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Iterable, Protocol, Sequence

from lesson_caddy.errors import (
    LessonBusyError,
    LessonNotFoundError,
    LessonStateError,
    NoStudentsError,
    StudentNotFoundError,
    SummarizationError,
)
from lesson_caddy.models import Lesson, Recording, RecordingMeta, Student, utcnow
from lesson_caddy.services.directory import StudentDirectory

logger = logging.getLogger(__name__)


class Summarizer(Protocol):
    async def summarize(self, recordings: Sequence[Recording | RecordingMeta]) -> str: ...


class SummarySink(Protocol):
    async def persist_summary(
        self, student_name: str, summary: str, timestamp: datetime
    ) -> bool: ...


class Store(Protocol):
    async def load_students(self) -> list[Student]: ...

    async def load_lessons_meta(self) -> list[Lesson]: ...

    async def save_students(self, students: Iterable[Student]) -> None: ...

    async def save_lessons_meta(self, lessons: Iterable[Lesson]) -> None: ...


class FlowState(str, Enum):
    NO_ACTIVE_LESSON = "no_active_lesson"
    SELECTING_STUDENT = "selecting_student"
    ACTIVE = "active"
    SUMMARIZING = "summarizing"
    COMPLETED = "completed"


class LessonController:
    """Sole mutator of the student directory, the active lesson and lesson history.

    Flow::

        NO_ACTIVE_LESSON/COMPLETED --start_lesson_flow--> SELECTING_STUDENT
        SELECTING_STUDENT --select_student--> ACTIVE
        ACTIVE --finish_lesson--> SUMMARIZING --ok--> COMPLETED
                                              --error--> ACTIVE

    At most one lesson is active. History holds completed lessons, most
    recent first, and is written through to the local store on every change.
    While ``is_processing`` every operation that would touch the active
    lesson raises :class:`LessonBusyError`.

    One instance is created per app and handed to routes through a FastAPI
    dependency.
    """

    def __init__(
        self,
        store: Store,
        summarizer: Summarizer,
        sink: SummarySink,
        *,
        students: list[Student] | None = None,
        history: list[Lesson] | None = None,
    ) -> None:
        self._store = store
        self._summarizer = summarizer
        self._sink = sink
        self.directory = StudentDirectory(students)
        self._history: list[Lesson] = list(history or [])
        self._active: Lesson | None = None
        self._last_completed: Lesson | None = None
        self._state = FlowState.NO_ACTIVE_LESSON
        self._remote_writes: set[asyncio.Task] = set()

    @classmethod
    async def load(cls, store: Store, summarizer: Summarizer, sink: SummarySink) -> "LessonController":
        """Build a controller from whatever the local store holds."""
        students = await store.load_students()
        history = await store.load_lessons_meta()
        logger.info("Loaded %d students and %d lessons", len(students), len(history))
        return cls(store, summarizer, sink, students=students, history=history)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._state is FlowState.SUMMARIZING

    @property
    def active_lesson(self) -> Lesson | None:
        return self._active

    @property
    def last_completed(self) -> Lesson | None:
        return self._last_completed

    @property
    def history(self) -> list[Lesson]:
        return list(self._history)

    def student_name(self, lesson: Lesson) -> str:
        return self.directory.display_name(lesson.student_id)

    def get_lesson(self, lesson_id: str) -> Lesson:
        if self._active is not None and self._active.id == lesson_id:
            return self._active
        for lesson in self._history:
            if lesson.id == lesson_id:
                return lesson
        raise LessonNotFoundError(lesson_id)

    def _ensure_idle(self) -> None:
        if self.is_processing:
            raise LessonBusyError()

    # ------------------------------------------------------------------
    # Student directory
    # ------------------------------------------------------------------

    async def add_student(self, full_name: str) -> Student:
        student = self.directory.add_student(full_name)
        await self._store.save_students(self.directory)
        logger.info("Added student %s", student.id)
        return student

    async def delete_student(self, student_id: str) -> None:
        if not self.directory.delete_student(student_id):
            raise StudentNotFoundError(student_id)
        await self._store.save_students(self.directory)
        logger.info("Deleted student %s", student_id)

    # ------------------------------------------------------------------
    # Lesson flow
    # ------------------------------------------------------------------

    def start_lesson_flow(self) -> None:
        self._ensure_idle()
        if not self.directory:
            raise NoStudentsError()
        self._state = FlowState.SELECTING_STUDENT

    def cancel_lesson_flow(self) -> None:
        if self._state is not FlowState.SELECTING_STUDENT:
            return
        self._state = FlowState.ACTIVE if self._active else FlowState.NO_ACTIVE_LESSON

    def select_student(self, student_id: str) -> Lesson:
        self._ensure_idle()
        if self._state is not FlowState.SELECTING_STUDENT:
            raise LessonStateError("Start a new lesson before choosing a student")
        if self.directory.get(student_id) is None:
            raise StudentNotFoundError(student_id)

        if self._active is not None:
            logger.info(
                "Discarding unfinished lesson %s (%d recordings)",
                self._active.id,
                len(self._active.recordings),
            )
        self._active = Lesson.start(student_id)
        self._state = FlowState.ACTIVE
        logger.info("Started lesson %s for student %s", self._active.id, student_id)
        return self._active

    def add_recording(self, recording: Recording) -> bool:
        """Append *recording* to the active lesson. Ignored if there is none."""
        self._ensure_idle()
        if self._active is None:
            logger.debug("No active lesson; dropping recording %s", recording.id)
            return False
        self._active.append_recording(recording)
        return True

    def update_active_lesson(
        self, *, title: str | None = None, notes: str | None = None
    ) -> Lesson | None:
        self._ensure_idle()
        if self._active is None:
            return None
        if title is not None:
            self._active.title = title
        if notes is not None:
            self._active.notes = notes
        return self._active

    async def finish_lesson(self) -> Lesson | None:
        """Summarise the active lesson and move it into history.

        Returns the completed lesson, or ``None`` when there is nothing to
        finish (no active lesson, no recordings, or a summary already in
        flight). On summarizer failure the lesson stays active and
        :class:`SummarizationError` is raised so the caller can retry.
        """
        lesson = self._active
        if self._state is not FlowState.ACTIVE or lesson is None or not lesson.recordings:
            return None

        self._state = FlowState.SUMMARIZING
        try:
            summary = await self._summarizer.summarize(list(lesson.recordings))
        except SummarizationError:
            self._state = FlowState.ACTIVE
            logger.exception("Summarization failed for lesson %s", lesson.id)
            raise
        except Exception as e:
            self._state = FlowState.ACTIVE
            logger.exception("Summarization failed for lesson %s", lesson.id)
            raise SummarizationError("Something went wrong while summarizing.") from e

        if not summary or not summary.strip():
            self._state = FlowState.ACTIVE
            logger.error("Summarizer returned an empty summary for lesson %s", lesson.id)
            raise SummarizationError("Summarizer returned an empty summary")

        completed = lesson.completed(summary)
        self._history.insert(0, completed)
        self._active = None
        self._last_completed = completed
        self._state = FlowState.COMPLETED
        logger.info("Completed lesson %s", completed.id)

        # Local then remote; neither may undo the completion above.
        try:
            await self._store.save_lessons_meta(self._history)
        except Exception:
            logger.exception("Failed to save lesson history after completing %s", completed.id)
        task = asyncio.create_task(self._push_remote(completed))
        self._remote_writes.add(task)
        task.add_done_callback(self._remote_writes.discard)
        return completed

    async def delete_lesson(self, lesson_id: str) -> None:
        remaining = [lesson for lesson in self._history if lesson.id != lesson_id]
        if len(remaining) == len(self._history):
            raise LessonNotFoundError(lesson_id)
        self._history[:] = remaining
        if self._last_completed is not None and self._last_completed.id == lesson_id:
            self._last_completed = None
            if self._state is FlowState.COMPLETED:
                self._state = FlowState.NO_ACTIVE_LESSON
        await self._store.save_lessons_meta(self._history)
        logger.info("Deleted lesson %s", lesson_id)

    async def drain_remote_writes(self) -> None:
        """Wait for pending remote writes. Called on shutdown."""
        if self._remote_writes:
            await asyncio.gather(*self._remote_writes)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _push_remote(self, lesson: Lesson) -> None:
        name = self.student_name(lesson)
        try:
            ok = await self._sink.persist_summary(name, lesson.summary or "", utcnow())
        except Exception:
            logger.exception("Remote sink raised while saving lesson %s", lesson.id)
            return
        if not ok:
            logger.warning("Lesson %s completed locally but was not saved remotely", lesson.id)
