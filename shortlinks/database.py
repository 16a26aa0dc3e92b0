"""Database configuration and session management for the short links service.

This module provides SQLAlchemy async engine setup, session management,
and database lifecycle operations using PostgreSQL as the backend.

Flow Diagram — Database Operations
=================================
::
    ┌─────────────┐
    │  Application│
    │  Request    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ get_db()     │
    │ dependency  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check out    │
    │ pooled conn │
    │ (max 20)    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Yield to     │
    │ request     │
    │ handler     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Auto-close   │
    │ (finally)    │
    └─────────────┘

How to Use
===========
**Step 1 — Initialize on startup**::
    await init_db()  # Creates the links table and its indexes

**Step 2 — Use in FastAPI endpoints**::
    @router.get("/api/links/{link_id}")
    async def get_link(link_id: str, db: AsyncSession = Depends(get_db)):
        ...

**Step 3 — Use outside a request (reaper)**::
    async with async_session() as session:
        await LinkStore(session).delete_expired_links()

**Step 4 — Cleanup on shutdown**::
    await close_db()

Key Behaviours
===============
- Async sessions are automatically closed after each request.
- The pool holds DATABASE_POOL_SIZE connections and grows by at most
  DATABASE_MAX_OVERFLOW; callers wait up to DATABASE_POOL_TIMEOUT for one.
- SQLite URLs (used by the test suite) keep SQLAlchemy's default pool.
- Tables are created automatically on application startup.
- Engine is properly disposed on application shutdown.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    get_db():  FastAPI dependency for database sessions.
    init_db():  Creates all tables on startup.
    close_db():  Disposes the engine on shutdown.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortlinks.config import Settings, get_settings
from shortlinks.enums import AppEnv

__all__ = ["Base", "async_session", "engine", "engine_options", "get_db", "init_db", "close_db"]

settings = get_settings()


def engine_options(settings: Settings) -> dict[str, Any]:
    options: dict[str, Any] = {
        "echo": settings.APP_ENV == AppEnv.DEVELOPMENT,
        "pool_pre_ping": True,
    }
    if make_url(settings.DATABASE_URL).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        )
    return options


engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings))

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
