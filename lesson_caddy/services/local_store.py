import asyncio
import logging
from typing import Iterable, TypeVar

import aiosqlite
from pydantic import BaseModel, TypeAdapter, ValidationError

from lesson_caddy.database import get_async_conn, init_db
from lesson_caddy.models import Lesson, Student
from lesson_caddy.schemas import LessonRecord, StudentRecord

logger = logging.getLogger(__name__)

STUDENTS_KEY = "students"
LESSONS_META_KEY = "lessons-meta"

_students_adapter = TypeAdapter(list[StudentRecord])
_lessons_adapter = TypeAdapter(list[LessonRecord])

R = TypeVar("R", bound=BaseModel)


class LocalStore:
    """Durable key-value persistence for the student directory and lesson metadata.

    Each key holds a whole JSON array and is overwritten in a single
    transaction. Raw audio never reaches this layer: lessons are written
    through :class:`LessonRecord`, which has no audio field.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self.db_path = db_path
        self._write_lock = asyncio.Lock()

    async def init(self) -> None:
        await init_db(self.db_path)

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------

    async def load_students(self) -> list[Student]:
        records = await self._load(STUDENTS_KEY, _students_adapter)
        return [r.to_student() for r in records]

    async def load_lessons_meta(self) -> list[Lesson]:
        records = await self._load(LESSONS_META_KEY, _lessons_adapter)
        return [r.to_lesson() for r in records]

    # ------------------------------------------------------------------
    # Saves
    # ------------------------------------------------------------------

    async def save_students(self, students: Iterable[Student]) -> None:
        async with self._write_lock:
            # Serialised under the lock so the last write carries the latest state.
            payload = _students_adapter.dump_json(
                [StudentRecord.from_student(s) for s in students]
            ).decode()
            await self._write(STUDENTS_KEY, payload)

    async def save_lessons_meta(self, lessons: Iterable[Lesson]) -> None:
        async with self._write_lock:
            payload = _lessons_adapter.dump_json(
                [LessonRecord.from_lesson(lesson) for lesson in lessons]
            ).decode()
            await self._write(LESSONS_META_KEY, payload)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _load(self, key: str, adapter: TypeAdapter[list[R]]) -> list[R]:
        """Return the parsed array stored under *key*, or [] if unset or unreadable."""
        try:
            conn = await get_async_conn(self.db_path)
            try:
                row = await conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                found = await row.fetchone()
            finally:
                await conn.close()
        except aiosqlite.Error as e:
            logger.warning("Failed to read %r from local store: %s", key, e)
            return []

        if found is None:
            return []
        try:
            return adapter.validate_json(found["value"])
        except ValidationError as e:
            logger.warning(
                "Discarding malformed %r data in local store (%d errors)", key, e.error_count()
            )
            return []

    async def _write(self, key: str, payload: str) -> None:
        conn = await get_async_conn(self.db_path)
        try:
            await conn.execute(
                "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "updated_at = CURRENT_TIMESTAMP",
                (key, payload),
            )
            await conn.commit()
        finally:
            await conn.close()
