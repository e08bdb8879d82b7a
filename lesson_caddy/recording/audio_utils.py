import io

import numpy as np
import soundfile as sf


def samples_to_wav_bytes(samples: np.ndarray, sample_rate: int) -> bytes:
    """Encode float32 samples as an in-memory 16-bit PCM WAV file (Whisper-compatible)."""
    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def duration_seconds(num_samples: int, sample_rate: int) -> int:
    """Whole seconds of audio in *num_samples*, rounded to the nearest second."""
    if num_samples <= 0:
        return 0
    return int(round(num_samples / sample_rate))
