"""Shared pytest fixtures for API and database tests.

The suite runs against a throwaway SQLite file in a temporary directory,
through aiosqlite, unless DATABASE_URL points somewhere else.
"""

import os
import shutil
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="shortlinks-tests-")

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_DIR}/shortlinks.db")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("FALLBACK_URL", "https://fallback.example.com/")

import datetime
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from shortlinks.config import Settings, get_settings
from shortlinks.database import Base, get_db
from shortlinks.main import app
from shortlinks.models import Link

settings = get_settings()

# NullPool: every test gets its own event loop, pooled aiosqlite connections
# must not outlive it.
test_engine = create_async_engine(settings.DATABASE_URL, echo=False, poolclass=NullPool)

test_session = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(scope="session", autouse=True)
def _remove_test_database() -> Generator[None, None, None]:
    yield
    shutil.rmtree(_DB_DIR, ignore_errors=True)


@pytest.fixture
def app_settings() -> Settings:
    return settings


@pytest.fixture
def api_headers() -> dict[str, str]:
    return {"X-API-Key": settings.API_KEY}


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def db_now(db_session: AsyncSession) -> datetime.datetime:
    """Current time according to the database, as an aware UTC datetime."""
    value = (await db_session.execute(select(func.now()))).scalar_one()
    if isinstance(value, str):
        value = datetime.datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value


@pytest.fixture
def insert_link(db_session: AsyncSession) -> Callable[..., Awaitable[Link]]:
    """Insert a link directly, bypassing the service (e.g. already expired ones)."""

    async def _insert(
        address: str,
        expired_at: datetime.datetime,
        target: str = "https://github.com/swan-io/chicane",
    ) -> Link:
        link = Link(address=address, target=target, expired_at=expired_at)
        db_session.add(link)
        await db_session.commit()
        await db_session.refresh(link)
        return link

    return _insert


@pytest.fixture
def count_links(db_session: AsyncSession) -> Callable[[], Awaitable[int]]:
    async def _count() -> int:
        return (await db_session.execute(select(func.count()).select_from(Link))).scalar_one()

    return _count
