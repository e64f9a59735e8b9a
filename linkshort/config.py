"""Configuration management for the link shortener.

This module provides centralized configuration using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from linkshort.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    limit = settings.LENGTH_LIMIT

**Step 3 — Override in tests**::
    settings = Settings(SECRET="s3cret", DATABASE_URL="sqlite+aiosqlite:///tmp.db")
    app = create_app(settings)

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables (and an optional .env file) override defaults.
- BASE_URL always ends with "/" so that BASE_URL + short_path is a valid URL.
- LENGTH_LIMIT <= 0 disables the long URL length check.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache
from urllib.parse import urlsplit

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "linkshort"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:8080/"

    # Shared secret required by the create endpoint
    SECRET: str = ""

    # Embedded database, single writer process
    DATABASE_URL: str = "sqlite+aiosqlite:///linkshort.db"

    # Short path generation
    LENGTH_LIMIT: int = 256
    SHORT_PATH_BYTES: int = 6
    MAX_GENERATION_ATTEMPTS: int = 30
    RETRY_ON_STORAGE_ERROR: bool = True

    # Follow recording
    FOLLOW_QUEUE_SIZE: int = 1024 * 1024
    FOLLOW_DRAIN_ON_SHUTDOWN: bool = True

    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    @field_validator("BASE_URL")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        return v if v.endswith("/") else v + "/"

    @field_validator("SHORT_PATH_BYTES", "MAX_GENERATION_ATTEMPTS", "FOLLOW_QUEUE_SIZE")
    @classmethod
    def ensure_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @property
    def base_path(self) -> str:
        """Path component of BASE_URL, e.g. "/" or "/s/"."""
        return urlsplit(self.BASE_URL).path or "/"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
