from functools import lru_cache
from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    server_port: int = 8000
    # Allow both localhost and 127.0.0.1 for local development
    allowed_origins: List[AnyHttpUrl] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]  # type: ignore
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./scope.db"

    # Upstream provider (OpenAI-compatible)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    default_model: str = "gpt-4o-mini"
    transcription_model: str = "whisper-1"
    realtime_model: str = "gpt-4o-realtime-preview"
    realtime_voice: str = "alloy"
    upstream_connect_timeout: float = 10.0
    # Streams can idle between tokens for a while
    upstream_read_timeout: float = 120.0

    # pydantic-settings v2 style config: load env from both ../.env (repo root) and .env
    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=("../.env", ".env"),
        extra="ignore",  # ignore env vars not defined as fields
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
