"""HTTP API tests using FastAPI's TestClient with stubbed collaborators."""

from __future__ import annotations

import asyncio
from typing import Generator

import numpy as np
import pytest
from fastapi.testclient import TestClient

from lesson_caddy.deps import get_controller, get_recorder
from lesson_caddy.main import app
from lesson_caddy.models import UNKNOWN_STUDENT_NAME
from lesson_caddy.recording import AudioRecorder
from lesson_caddy.services.lifecycle import LessonController
from lesson_caddy.services.local_store import LocalStore
from tests.helpers import DEMO_SUMMARY, StubSink, StubSummarizer


class FakeStream:
    def __init__(self, **kwargs) -> None:
        self.callback = kwargs["callback"]

    def start(self) -> None:
        frames = 16000 * 2
        self.callback(np.zeros((frames, 1), dtype="float32"), frames, None, None)

    def stop(self) -> None:
        pass

    def close(self) -> None:
        pass


def _failing_stream(**kwargs):
    raise OSError("PortAudio library not found")


@pytest.fixture
def api_summarizer() -> StubSummarizer:
    return StubSummarizer()


@pytest.fixture
def api_sink() -> StubSink:
    return StubSink()


@pytest.fixture
def api_controller(tmp_path, api_summarizer, api_sink) -> LessonController:
    store = LocalStore(str(tmp_path / "api.db"))
    asyncio.run(store.init())
    return LessonController(store, api_summarizer, api_sink)


@pytest.fixture
def recorder(api_controller: LessonController) -> AudioRecorder:
    recorder = AudioRecorder(sample_rate=16000, channels=1, stream_factory=FakeStream)
    recorder.on_recording_complete(api_controller.add_recording)
    return recorder


@pytest.fixture
def client(api_controller, recorder) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_controller] = lambda: api_controller
    app.dependency_overrides[get_recorder] = lambda: recorder
    yield TestClient(app)
    app.dependency_overrides.clear()


def _add_student(client: TestClient, name: str = "Ada") -> dict:
    resp = client.post("/api/students", json={"full_name": name})
    assert resp.status_code == 200
    return resp.json()


def _start_lesson(client: TestClient, student_id: str) -> dict:
    assert client.post("/api/lessons/start").status_code == 200
    resp = client.post("/api/lessons/select", json={"student_id": student_id})
    assert resp.status_code == 200
    return resp.json()


def _upload(client: TestClient, duration: int, body: bytes = b"webm-bytes"):
    return client.post(
        f"/api/lessons/active/recordings?duration={duration}",
        content=body,
        headers={"Content-Type": "audio/webm"},
    )


class TestStudents:
    def test_create_and_list(self, client: TestClient) -> None:
        ada = _add_student(client, "  Ada ")
        assert ada["full_name"] == "Ada"
        assert [s["id"] for s in client.get("/api/students").json()] == [ada["id"]]

    def test_blank_name(self, client: TestClient) -> None:
        resp = client.post("/api/students", json={"full_name": "   "})
        assert resp.status_code == 422

    def test_delete_requires_confirmation(self, client: TestClient) -> None:
        ada = _add_student(client)
        assert client.delete(f"/api/students/{ada['id']}").status_code == 400
        assert client.delete(f"/api/students/{ada['id']}?confirm=true").status_code == 200
        assert client.get("/api/students").json() == []
        assert client.delete(f"/api/students/{ada['id']}?confirm=true").status_code == 404


class TestLessonFlow:
    def test_start_without_students(self, client: TestClient) -> None:
        resp = client.post("/api/lessons/start")
        assert resp.status_code == 409
        assert "student" in resp.json()["detail"]

    def test_full_lesson(self, client: TestClient) -> None:
        ada = _add_student(client)
        lesson = _start_lesson(client, ada["id"])
        assert lesson["status"] == "active"
        assert lesson["student_name"] == "Ada"

        assert _upload(client, 12).status_code == 200
        resp = _upload(client, 30)
        assert [r["duration"] for r in resp.json()["recordings"]] == [12, 30]

        resp = client.patch("/api/lessons/active", json={"notes": "Work on tempo"})
        assert resp.json()["notes"] == "Work on tempo"

        resp = client.post("/api/lessons/active/finish")
        assert resp.status_code == 200
        done = resp.json()
        assert done["status"] == "completed"
        assert done["summary"] == DEMO_SUMMARY
        assert done["audio_available"] is True
        assert done["total_duration"] == 42

        state = client.get("/api/state").json()
        assert state["state"] == "completed"
        assert state["active_lesson"] is None
        assert state["last_completed"]["id"] == done["id"]

        history = client.get("/api/lessons").json()
        assert [h["id"] for h in history] == [done["id"]]
        assert client.get(f"/api/lessons/{done['id']}").json()["notes"] == "Work on tempo"

    def test_finish_without_recordings(self, client: TestClient, api_summarizer) -> None:
        ada = _add_student(client)
        _start_lesson(client, ada["id"])
        resp = client.post("/api/lessons/active/finish")
        assert resp.status_code == 409
        assert api_summarizer.calls == []

    def test_summarizer_failure_is_retryable(
        self, client: TestClient, api_summarizer: StubSummarizer
    ) -> None:
        api_summarizer.failures = 1
        ada = _add_student(client)
        _start_lesson(client, ada["id"])
        _upload(client, 5)

        resp = client.post("/api/lessons/active/finish")
        assert resp.status_code == 502
        assert "summarizing" in resp.json()["detail"]
        assert client.get("/api/state").json()["state"] == "active"

        assert client.post("/api/lessons/active/finish").status_code == 200

    def test_upload_without_active_lesson(self, client: TestClient) -> None:
        assert _upload(client, 5).status_code == 409

    def test_empty_upload(self, client: TestClient) -> None:
        ada = _add_student(client)
        _start_lesson(client, ada["id"])
        assert _upload(client, 5, body=b"").status_code == 400

    def test_deleted_student_shows_fallback(self, client: TestClient) -> None:
        ada = _add_student(client)
        _start_lesson(client, ada["id"])
        _upload(client, 5)
        done = client.post("/api/lessons/active/finish").json()

        client.delete(f"/api/students/{ada['id']}?confirm=true")

        lesson = client.get(f"/api/lessons/{done['id']}").json()
        assert lesson["student_id"] == ada["id"]
        assert lesson["student_name"] == UNKNOWN_STUDENT_NAME

    def test_delete_lesson(self, client: TestClient) -> None:
        ada = _add_student(client)
        _start_lesson(client, ada["id"])
        _upload(client, 5)
        done = client.post("/api/lessons/active/finish").json()

        assert client.delete(f"/api/lessons/{done['id']}").status_code == 400
        assert client.delete(f"/api/lessons/{done['id']}?confirm=true").status_code == 200
        assert client.get("/api/lessons").json() == []
        assert client.get(f"/api/lessons/{done['id']}").status_code == 404


class TestMicrophone:
    def test_record_segment(self, client: TestClient, api_controller: LessonController) -> None:
        ada = _add_student(client)
        _start_lesson(client, ada["id"])

        assert client.post("/api/lessons/active/recording/start").json() == {"recording": True}
        assert client.get("/api/lessons/active/recording").json()["recording"] is True
        resp = client.post("/api/lessons/active/recording/stop")

        assert resp.status_code == 200
        body = resp.json()
        assert body["segment"]["duration"] == 2
        assert body["recordings"] == 1
        assert len(api_controller.active_lesson.recordings) == 1

    def test_finish_while_recording_is_rejected(
        self, client: TestClient, api_summarizer: StubSummarizer
    ) -> None:
        ada = _add_student(client)
        _start_lesson(client, ada["id"])
        _upload(client, 5)
        client.post("/api/lessons/active/recording/start")

        resp = client.post("/api/lessons/active/finish")
        assert resp.status_code == 409
        assert "Stop the recording" in resp.json()["detail"]
        assert api_summarizer.calls == []
        assert client.get("/api/state").json()["state"] == "active"

        assert client.post("/api/lessons/active/recording/stop").json()["recordings"] == 2
        done = client.post("/api/lessons/active/finish").json()
        assert [r["duration"] for r in done["recordings"]] == [5, 2]

    def test_start_requires_active_lesson(self, client: TestClient) -> None:
        assert client.post("/api/lessons/active/recording/start").status_code == 409

    def test_stop_when_idle(self, client: TestClient) -> None:
        assert client.post("/api/lessons/active/recording/stop").status_code == 400

    def test_microphone_unavailable(self, client: TestClient, api_controller) -> None:
        broken = AudioRecorder(stream_factory=_failing_stream)
        app.dependency_overrides[get_recorder] = lambda: broken
        ada = _add_student(client)
        _start_lesson(client, ada["id"])

        resp = client.post("/api/lessons/active/recording/start")
        assert resp.status_code == 503
        assert broken.is_recording is False
        assert api_controller.active_lesson.recordings == []
