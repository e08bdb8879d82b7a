from lesson_caddy.recording.recorder import AudioRecorder

__all__ = ["AudioRecorder"]
