import asyncio
import logging
from typing import Callable, Sequence

from lesson_caddy.clients import GroqClient
from lesson_caddy.errors import SummarizationError
from lesson_caddy.models import Recording, RecordingMeta

logger = logging.getLogger(__name__)

COACHING_PROMPT = (
    "You are an expert golf coach. You have been provided with the transcripts of "
    "multiple audio recordings from a golf lesson, in the order they were recorded.\n"
    "Your task is to:\n"
    "1. Go through all segments and pick out the key coaching points.\n"
    "2. Provide a structured summary of the lesson.\n"
    "3. List specific drills that were mentioned or recommended.\n"
    '4. Highlight the "Feel vs Real" adjustments if any were discussed.\n\n'
    "Format the output using Markdown. Use headers for different sections."
)


def _format_transcripts(recordings: Sequence[Recording], transcripts: Sequence[str]) -> str:
    """Label each transcript with its position, length and capture time."""
    lines = []
    for i, (rec, text) in enumerate(zip(recordings, transcripts), start=1):
        stamp = rec.timestamp.astimezone().strftime("%H:%M:%S")
        lines.append(f"[Recording {i}, {rec.duration}s at {stamp}]")
        lines.append(text or "(no speech detected)")
        lines.append("")
    return "\n".join(lines).rstrip()


def _default_transcriber() -> Callable[[bytes], str]:
    # Imported lazily so the whisper stack only loads when a lesson is summarised.
    from lesson_caddy.services.transcription import WhisperService

    return WhisperService.get().transcribe


class SummaryService:
    """Turn a lesson's ordered recordings into a Markdown coaching summary.

    Each recording is transcribed locally with faster-whisper, then the
    transcripts and the coaching prompt go to Groq. Every failure surfaces
    as :class:`SummarizationError`.
    """

    def __init__(
        self,
        groq: GroqClient | None = None,
        transcribe: Callable[[bytes], str] | None = None,
    ) -> None:
        self.groq = groq or GroqClient()
        self._transcribe = transcribe

    def _transcribe_one(self, audio: bytes) -> str:
        # Runs in a worker thread; the first call may load the Whisper model.
        transcribe = self._transcribe or _default_transcriber()
        return transcribe(audio)

    async def summarize(self, recordings: Sequence[Recording | RecordingMeta]) -> str:
        if not recordings:
            raise SummarizationError("No recordings to summarize")
        missing = [r.id for r in recordings if not isinstance(r, Recording)]
        if missing:
            raise SummarizationError(
                f"Audio for {len(missing)} recording(s) is no longer available"
            )

        try:
            transcripts = [
                await asyncio.to_thread(self._transcribe_one, rec.audio.data)
                for rec in recordings
            ]
            messages = [
                {"role": "system", "content": COACHING_PROMPT},
                {
                    "role": "user",
                    "content": (
                        f"Lesson recordings:\n{_format_transcripts(recordings, transcripts)}\n\n"
                        "Write the lesson summary."
                    ),
                },
            ]
            summary = await self.groq.chat(messages)
        except Exception as e:
            raise SummarizationError(f"Summarization failed: {e}") from e

        if not summary.strip():
            raise SummarizationError("Summarizer returned an empty summary")
        return summary
