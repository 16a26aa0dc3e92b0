"""Configuration management for the short links service.

This module provides centralized configuration management using Pydantic BaseSettings
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
    from shortlinks.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    db_url = settings.DATABASE_URL

**Step 3 — Access values**::
    print(f"Fallback: {settings.FALLBACK_URL}")
    print(f"Environment: {settings.APP_ENV}")

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- FALLBACK_URL must be an absolute URL, LOG_LEVEL and APP_ENV must be known values.
- An empty API_KEY rejects every authenticated request.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

import validators
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shortlinks.enums import AppEnv


class Settings(BaseSettings):
    APP_NAME: str = "shortlinks"
    APP_ENV: AppEnv = AppEnv.DEVELOPMENT
    LOG_LEVEL: str = "INFO"

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    SHUTDOWN_GRACE_SECONDS: float = 0.5

    # PostgreSQL
    DATABASE_URL: str = "postgresql+asyncpg://shortlinks:shortlinks@db:5432/shortlinks"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 15
    DATABASE_POOL_TIMEOUT: float = 30.0

    # Redirects and API access
    FALLBACK_URL: str = "https://example.com"
    API_KEY: str = ""

    # Link creation
    ADDRESS_LENGTH: int = 6
    DEFAULT_EXPIRE_IN: str = "1 week"
    CREATE_ATTEMPTS: int = 2

    # Expiry reaper
    CLEANUP_INTERVAL_SECONDS: float = 86400
    CLEANUP_ON_STARTUP: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("FALLBACK_URL")
    @classmethod
    def validate_fallback_url(cls, v: str) -> str:
        if not validators.url(v):
            raise ValueError("FALLBACK_URL must be an absolute URL")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    return Settings()
