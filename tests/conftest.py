"""Pytest fixtures shared by the test suite."""

from __future__ import annotations

import pytest

from lesson_caddy.services.lifecycle import LessonController
from lesson_caddy.services.local_store import LocalStore
from tests.helpers import StubSink, StubSummarizer


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "lesson_caddy_test.db")


@pytest.fixture
async def store(db_path: str) -> LocalStore:
    store = LocalStore(db_path)
    await store.init()
    return store


@pytest.fixture
def summarizer() -> StubSummarizer:
    return StubSummarizer()


@pytest.fixture
def sink() -> StubSink:
    return StubSink()


@pytest.fixture
def controller(store: LocalStore, summarizer: StubSummarizer, sink: StubSink) -> LessonController:
    return LessonController(store, summarizer, sink)
