"""Shared enums for the short links service.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["AppEnv", "HealthStatus", "LinkSource", "RedirectResult", "CleanupStatus"]


class AppEnv(StrEnum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class LinkSource(StrEnum):
    """Where the address of a new link came from."""

    GENERATED = "generated"
    CUSTOM = "custom"


class RedirectResult(StrEnum):
    HIT = "hit"
    FALLBACK = "fallback"


class CleanupStatus(StrEnum):
    """Outcome of one reaper run."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
