"""Pydantic schemas for request/response validation in the short links service.

This module defines Pydantic models for API input validation and output serialization,
ensuring type safety and automatic OpenAPI documentation generation.

Schema Hierarchy
=================
::
    LinkCreate (Input)
    ├─ target: str (absolute URL)
    ├─ address: str | None (optional, alphanumeric)
    ├─ expire_in: str | None (e.g. "2w", "1.5 months")
    └─ domain: str | None (hostname used to build `link`)

    LinkResponse (Output)
    ├─ id: UUID
    ├─ address: str
    ├─ target: str
    ├─ visited: bool
    ├─ expired_at: datetime (ISO-8601 UTC, "Z")
    ├─ created_at: datetime (ISO-8601 UTC, "Z")
    └─ link: str | None (only when a domain was given)

    HealthResponse (Output)
    ├─ status: HealthStatus
    └─ database: HealthStatus

Key Behaviours
===============
- URL and hostname validation uses the validators library.
- Custom addresses must be alphanumeric and 3-32 characters long.
- Timestamps are always rendered in UTC with millisecond precision.
- Models are configured for ORM attribute mapping.

Classes:
    LinkCreate:  Input schema for link creation requests.
    LinkResponse:  Output schema for a persisted link.
    HealthResponse:  Output schema for health checks.
"""

import datetime
import uuid

import validators
from pydantic import BaseModel, field_serializer, field_validator

from shortlinks.enums import HealthStatus

__all__ = ["LinkCreate", "LinkResponse", "HealthResponse", "format_timestamp"]


def format_timestamp(value: datetime.datetime) -> str:
    # SQLite hands back naive datetimes; they are stored in UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    utc = value.astimezone(datetime.timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


class LinkCreate(BaseModel):
    target: str
    address: str | None = None
    expire_in: str | None = None
    domain: str | None = None

    @field_validator("target")
    @classmethod
    def validate_target(cls, v: str) -> str:
        if not validators.url(v):
            raise ValueError("Invalid URL provided")
        return v

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str | None) -> str | None:
        if v is not None:
            if len(v) < 3 or len(v) > 32:
                raise ValueError("Address must be between 3 and 32 characters")
            if not v.isascii() or not v.isalnum():
                raise ValueError("Address must be alphanumeric")
        return v

    @field_validator("domain")
    @classmethod
    def validate_domain(cls, v: str | None) -> str | None:
        if v is not None and not validators.domain(v):
            raise ValueError("Invalid domain provided")
        return v


class LinkResponse(BaseModel):
    id: uuid.UUID
    address: str
    target: str
    visited: bool
    expired_at: datetime.datetime
    created_at: datetime.datetime
    link: str | None = None

    model_config = {"from_attributes": True}

    @field_serializer("expired_at", "created_at")
    def serialize_timestamp(self, value: datetime.datetime) -> str:
        return format_timestamp(value)


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
