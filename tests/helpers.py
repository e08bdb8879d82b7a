"""Shared helpers and stub collaborators for the test suite."""

from __future__ import annotations

from datetime import datetime, timezone

from lesson_caddy.errors import SummarizationError
from lesson_caddy.models import AudioAsset, Recording, new_id

DEMO_SUMMARY = "# Summary\n- drill A"


def make_recording(duration: int, audio: bytes = b"RIFF....WAVEfmt ") -> Recording:
    return Recording(
        id=new_id(),
        audio=AudioAsset(data=audio),
        duration=duration,
        timestamp=datetime.now(timezone.utc),
    )


class StubSummarizer:
    """Returns a fixed summary, or raises on the next ``failures`` calls."""

    def __init__(self, summary: str = DEMO_SUMMARY, failures: int = 0) -> None:
        self.summary = summary
        self.failures = failures
        self.calls: list[list] = []

    async def summarize(self, recordings) -> str:
        self.calls.append(list(recordings))
        if self.failures:
            self.failures -= 1
            raise SummarizationError("model unavailable")
        return self.summary


class StubSink:
    def __init__(self, ok: bool = True, raises: Exception | None = None) -> None:
        self.ok = ok
        self.raises = raises
        self.calls: list[tuple] = []

    async def persist_summary(self, student_name, summary, timestamp) -> bool:
        self.calls.append((student_name, summary, timestamp))
        if self.raises is not None:
            raise self.raises
        return self.ok
