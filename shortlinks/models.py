"""SQLAlchemy ORM models for the short links service.

This module defines the database schema using SQLAlchemy declarative models
with the indexes needed by the redirect hot path and the expiry reaper.

Data Model Layout
=================
::
    links table
    ├─ id (UUID PRIMARY KEY)
    ├─ address (VARCHAR(32) UNIQUE, INDEXED)
    ├─ target (TEXT NOT NULL)
    ├─ visited (BOOLEAN DEFAULT FALSE)
    ├─ expired_at (TIMESTAMPTZ NOT NULL, INDEXED)
    └─ created_at (TIMESTAMPTZ, DEFAULT NOW())

Link Lifecycle
==============
::
    created (visited=false)
        │  GET /{address}
        ▼
    visited=true ◄─┐  further hits keep visited=true
        │          │
        ├──────────┘
        │  expired_at < now()
        ▼
    expired (invisible to redirects)
        │  reaper
        ▼
    deleted

How to Use
===========
**Step 1 — Import**::
    from shortlinks.models import Link

**Step 2 — Create a new link**::
    link = Link(address="abc123", target="https://example.com", expired_at=expires)
    db.add(link)
    await db.commit()

**Step 3 — Query live links**::
    result = await db.execute(
        select(Link).where(Link.address == "abc123", Link.expired_at > func.now())
    )
    link = result.scalar_one_or_none()

Key Behaviours
===============
- address is unique and indexed for fast lookups during redirects.
- expired_at is indexed so the reaper's range delete does not scan the table.
- created_at is managed by the database.
- visited starts false and is only ever set to true.

Classes:
    Link:  A short address pointing at a target URL until it expires.
"""

import datetime
import uuid

from sqlalchemy import Boolean, DateTime, String, Text, Uuid, false, func
from sqlalchemy.orm import Mapped, mapped_column

from shortlinks.database import Base

__all__ = ["Link"]


class Link(Base):
    __tablename__ = "links"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    address: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    target: Mapped[str] = mapped_column(Text, nullable=False)
    visited: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)
    expired_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Link(id={self.id}, address='{self.address}', visited={self.visited})>"
