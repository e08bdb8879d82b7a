from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Groq
    groq_api_key: str = "gsk_placeholder"
    default_model: str = "llama-3.3-70b-versatile"

    # Whisper
    whisper_model: str = "small"
    whisper_device: str = "cpu"
    whisper_compute_type: str = "int8"

    # Recording
    sample_rate: int = 16000
    channels: int = 1

    # Storage
    db_path: str = "lesson_caddy.db"

    # Remote sink (Supabase REST)
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_table: str = "Lesson-Caddy table"
    remote_timeout_seconds: float = 10.0

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
