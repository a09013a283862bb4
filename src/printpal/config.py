"""Client configuration management using Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://printpal.io"


class Settings(BaseSettings):
    """Defaults for every PrintPal client created in this process.

    Values are read from ``PRINTPAL_*`` environment variables or a local ``.env``
    file. Arguments passed to the client constructor always take precedence.
    """

    model_config = SettingsConfigDict(env_prefix="PRINTPAL_", env_file=".env", extra="ignore")

    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL

    # Durations in seconds
    timeout: float = 60.0
    poll_interval: float = 5.0

    log_level: str = "WARNING"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load and cache configuration for the current process."""

    return Settings()  # type: ignore[arg-type]


settings = get_settings()


__all__ = ["DEFAULT_BASE_URL", "Settings", "get_settings", "settings"]
