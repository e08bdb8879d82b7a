import io
import logging

from faster_whisper import WhisperModel

from lesson_caddy.config import settings

logger = logging.getLogger(__name__)


class WhisperService:
    """Lazy singleton around a faster-whisper model.

    The model is downloaded and loaded on the first call to ``get()``,
    not at import time or server startup.
    """

    _instance: "WhisperService | None" = None

    def __init__(self) -> None:
        logger.info("Loading whisper model %s", settings.whisper_model)
        self.model = WhisperModel(
            settings.whisper_model,
            device=settings.whisper_device,
            compute_type=settings.whisper_compute_type,
        )

    @classmethod
    def get(cls) -> "WhisperService":
        """Return the singleton, creating it (and downloading the model) if needed."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def transcribe(self, audio: bytes) -> str:
        """Transcribe an in-memory audio file.  Blocking; call via ``asyncio.to_thread``.

        The bytes are decoded by faster-whisper (PyAV), so any container the
        browser or the recorder produces (WAV, WebM/Opus, MP4) is accepted.
        """
        segments, _info = self.model.transcribe(io.BytesIO(audio), beam_size=5)
        # segments is a lazy generator; joining forces evaluation
        return " ".join(seg.text.strip() for seg in segments).strip()
