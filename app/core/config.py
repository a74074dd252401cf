import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Kolosal AI (OpenAI-compatible chat completions)
    KOLOSAL_API_KEY: str = ""
    KOLOSAL_BASE_URL: str = "https://api.kolosal.ai/v1"
    KOLOSAL_MODEL: str = "Claude Sonnet 4.5"
    AI_MAX_TOKENS: int = 2048
    AI_TEMPERATURE: float = 0.7
    AI_TIMEOUT_SEC: float = 60.0

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_MB: int = 50
    ALLOWED_EXTENSIONS: List[str] = ["txt", "pdf", "png", "jpg", "jpeg", "mp4", "mov", "avi"]

    # Video frame sampling
    VIDEO_FRAME_COUNT: int = 3
    FRAME_WIDTH: int = 640
    FRAME_HEIGHT: int = 360
    FRAME_TIMEOUT_SEC: float = 30.0

    # Housekeeping
    UPLOAD_MAX_AGE_SEC: float = 24 * 3600
    CLEANUP_INTERVAL_SEC: float = 3600

    CORS_ORIGINS: List[str] = ["*"]

    # General
    ENV: str = os.getenv("ENV", "development")
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Ensure .env is loaded once
    load_dotenv(override=False)
    return Settings()
