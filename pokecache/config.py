"""Runtime configuration for the catalog cache."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_BASE_URL = "https://pokeapi.co/api/v2"
DEFAULT_INDEX_LIMIT = 2000


class Settings(BaseSettings):
    """Settings loaded from ``POKECACHE_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="POKECACHE_",
        env_file=".env",
        extra="ignore",
    )

    catalog_base_url: str = DEFAULT_CATALOG_BASE_URL
    index_limit: int = Field(default=DEFAULT_INDEX_LIMIT, gt=0)
    # Seconds; every upstream call is bounded so one slow item cannot stall the queue.
    request_timeout: float = Field(default=30.0, gt=0)
    # None retries failed items forever.
    max_attempts: Optional[int] = Field(default=None, gt=0)
    startup_attempts: int = Field(default=3, ge=1)
    startup_backoff_max: float = Field(default=5.0, ge=0)
    log_level: str = "INFO"

    @field_validator("catalog_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("catalog_base_url must not be empty.")
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return (value or "INFO").strip().upper()


def load_settings(**overrides) -> Settings:
    """Load settings from the environment, applying explicit overrides."""
    return Settings(**overrides)


__all__ = [
    "DEFAULT_CATALOG_BASE_URL",
    "DEFAULT_INDEX_LIMIT",
    "Settings",
    "load_settings",
]
