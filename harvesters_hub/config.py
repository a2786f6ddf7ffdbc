"""
Configuration and settings for the backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CORS_ORIGINS = [
    "http://localhost:8080",
    "http://127.0.0.1:5500",
    "https://harvesters-hub.vercel.app",
]


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service.

    Field names double as environment variable names (case-insensitive),
    e.g. ``DATABASE_URL`` or ``ASSET_BUCKET``. ``CORS_ORIGINS`` is read as a
    JSON list.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Record store (any SQLAlchemy URL; Postgres expected in production)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible asset host for logos and media uploads
    asset_endpoint: Optional[str] = Field(default=None)
    asset_region: Optional[str] = Field(default=None)
    asset_bucket: Optional[str] = Field(default=None)
    asset_public_base_url: Optional[str] = Field(default=None)
    asset_folder: str = Field(default="harvesters_hub")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Live feed passthrough (YouTube Data API)
    youtube_api_key: Optional[str] = Field(default=None)
    channel_id: Optional[str] = Field(default=None)
    live_request_timeout: float = Field(default=10.0)

    cors_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS)
    )

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "use_in_memory_backends", "HUB_USE_IN_MEMORY_BACKENDS"
        ),
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=10000)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
