import logging
import threading
import time
from typing import Any, Callable

import numpy as np

from lesson_caddy.config import settings
from lesson_caddy.errors import CaptureError
from lesson_caddy.models import AudioAsset, Recording, new_id, utcnow
from lesson_caddy.recording.audio_utils import duration_seconds, samples_to_wav_bytes

logger = logging.getLogger(__name__)


def _open_input_stream(**kwargs: Any):
    # sounddevice loads PortAudio on import; a missing backend is a capture error.
    import sounddevice as sd

    return sd.InputStream(**kwargs)


class AudioRecorder:
    """Records one microphone segment at a time and hands it over as a :class:`Recording`.

    Threading model:

    1. **Audio callback** runs in sounddevice's audio thread and only
       appends to the buffer under ``_lock``.
    2. ``start()`` / ``stop()`` run on the caller's thread. ``stop()``
       always closes the stream, then encodes the buffer and fires the
       ``on_recording_complete`` callbacks exactly once.
    """

    def __init__(
        self,
        sample_rate: int | None = None,
        channels: int | None = None,
        *,
        stream_factory: Callable[..., Any] = _open_input_stream,
    ) -> None:
        self.sample_rate = sample_rate or settings.sample_rate
        self.channels = channels or settings.channels
        self._stream_factory = stream_factory

        # Audio buffer, guarded by _lock
        self._buffer: list[np.ndarray] = []
        self._total_samples: int = 0
        self._lock = threading.Lock()

        self._stream: Any = None
        self._started_at: float | None = None
        self._callbacks: list[Callable[[Recording], Any]] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def on_recording_complete(self, fn: Callable[[Recording], Any]) -> None:
        """Register a callback invoked with each finished :class:`Recording`."""
        self._callbacks.append(fn)

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    @property
    def elapsed_seconds(self) -> int:
        if self._started_at is None:
            return 0
        return int(time.monotonic() - self._started_at)

    def start(self) -> None:
        """Open the microphone. Raises :class:`CaptureError` if it is unavailable."""
        if self.is_recording:
            raise CaptureError("A recording is already in progress")

        with self._lock:
            self._buffer = []
            self._total_samples = 0

        stream = None
        try:
            stream = self._stream_factory(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                callback=self._audio_callback,
                blocksize=1024,
            )
            stream.start()
        except Exception as e:
            if stream is not None:
                stream.close()
            logger.warning("Could not open microphone: %s", e)
            raise CaptureError("Could not access microphone. Please check permissions.") from e

        self._stream = stream
        self._started_at = time.monotonic()
        logger.info("Recording started")

    def stop(self) -> Recording | None:
        """Release the microphone and emit the captured segment.

        Returns ``None`` when nothing was recorded.
        """
        if self._stream is None:
            return None

        stream, self._stream = self._stream, None
        self._started_at = None
        try:
            stream.stop()
        finally:
            stream.close()

        with self._lock:
            chunks, self._buffer = self._buffer, []
            total, self._total_samples = self._total_samples, 0

        if not chunks:
            logger.info("Recording stopped with no audio")
            return None

        samples = np.concatenate(chunks, axis=0)
        recording = Recording(
            id=new_id(),
            audio=AudioAsset(data=samples_to_wav_bytes(samples, self.sample_rate)),
            duration=duration_seconds(total, self.sample_rate),
            timestamp=utcnow(),
        )
        logger.info("Recording stopped: %ss", recording.duration)

        for fn in self._callbacks:
            try:
                fn(recording)
            except Exception:
                logger.exception("Recording callback failed for %s", recording.id)
        return recording

    # ------------------------------------------------------------------
    # Audio callback (audio thread)
    # ------------------------------------------------------------------

    def _audio_callback(self, indata: np.ndarray, frames: int, timeinfo, status) -> None:  # noqa: ANN001
        """sounddevice callback.  Must be fast: buffer only, no I/O."""
        with self._lock:
            self._buffer.append(indata.copy())
            self._total_samples += frames
