"""
Configuration and settings for the link storage service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Durable tier (Postgres expected). Hosted providers export POSTGRES_URL.
    postgres_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("POSTGRES_URL", "DATABASE_URL"),
    )
    durable_timeout_seconds: float = Field(default=5.0, gt=0)

    # Local tier: first writable candidate wins.
    local_storage_dirs: List[str] = Field(
        default_factory=lambda: ["/tmp/linkstore", "linkstore_data"]
    )

    id_length: int = Field(default=6, ge=4, le=32)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Durable write queue (Redis). Falls back to an in-process queue.
    redis_url: Optional[str] = Field(default=None)
    redis_queue_key: str = Field(default="linkstore:durable_writes")
    worker_poll_interval_seconds: float = Field(default=1.0, gt=0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
