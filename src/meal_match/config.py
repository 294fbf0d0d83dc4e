"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

STORAGE_BACKENDS = {"memory", "supabase"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_token: str
    storage_backend: str = "memory"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    match_quorum: int = Field(default=2, ge=2)
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_backend(raw: str | None) -> str:
    """Normalize the storage backend name."""
    cleaned = (raw or "memory").strip().lower()
    if cleaned not in STORAGE_BACKENDS:
        raise ValueError(
            f"Unknown storage backend {raw!r}; expected one of "
            f"{', '.join(sorted(STORAGE_BACKENDS))}"
        )
    return cleaned
