"""Unit tests for LinkService with a mocked store."""

import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from shortlinks.config import Settings
from shortlinks.exceptions import AddressCollisionError, ExpiryOutOfRangeError
from shortlinks.schemas import LinkCreate
from shortlinks.service import LinkService, compute_expiry
from shortlinks.store import LinkStore


@pytest.fixture
def settings() -> Settings:
    return Settings(FALLBACK_URL="https://fallback.example.com", API_KEY="k", CREATE_ATTEMPTS=2)


@pytest.fixture
def mock_store() -> AsyncMock:
    store = AsyncMock(spec=LinkStore)
    store.create_link = AsyncMock(side_effect=lambda target, expired_at, address: MagicMock(
        address=address, target=target, expired_at=expired_at
    ))
    return store


@pytest.fixture
def service(mock_store, settings) -> LinkService:
    return LinkService(mock_store, settings, MagicMock())


def test_compute_expiry_defaults_to_one_week() -> None:
    expected = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(weeks=1)
    assert abs(compute_expiry(None) - expected) < datetime.timedelta(seconds=5)
    assert abs(compute_expiry("garbage") - expected) < datetime.timedelta(seconds=5)


def test_compute_expiry_uses_parsed_duration() -> None:
    expected = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(days=14)
    assert abs(compute_expiry("2w") - expected) < datetime.timedelta(seconds=5)


@pytest.mark.parametrize("expire_in", ["8000 years", "-8000 years", "3000000 years"])
def test_compute_expiry_rejects_spans_outside_the_calendar(expire_in: str) -> None:
    with pytest.raises(ExpiryOutOfRangeError) as exc_info:
        compute_expiry(expire_in)
    assert exc_info.value.expire_in == expire_in


@pytest.mark.asyncio
async def test_create_link_with_out_of_range_expiry_never_reaches_store(service, mock_store) -> None:
    with pytest.raises(ExpiryOutOfRangeError):
        await service.create_link(LinkCreate(target="https://example.com", expire_in="8000 years"))
    mock_store.create_link.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_link_generates_address(service, mock_store) -> None:
    with patch("shortlinks.service.generate_address", return_value="abc123"):
        link = await service.create_link(LinkCreate(target="https://example.com"))

    assert link.address == "abc123"
    mock_store.create_link.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_link_retries_generated_address_once(service, mock_store) -> None:
    created = MagicMock(address="second")
    mock_store.create_link.side_effect = [AddressCollisionError("first1"), created]

    with patch("shortlinks.service.generate_address", side_effect=["first1", "second"]):
        link = await service.create_link(LinkCreate(target="https://example.com"))

    assert link is created
    assert mock_store.create_link.await_count == 2
    assert mock_store.create_link.await_args_list[1].args[2] == "second"


@pytest.mark.asyncio
async def test_create_link_gives_up_after_configured_attempts(service, mock_store) -> None:
    mock_store.create_link.side_effect = AddressCollisionError("x")

    with pytest.raises(AddressCollisionError):
        await service.create_link(LinkCreate(target="https://example.com"))
    assert mock_store.create_link.await_count == 2


@pytest.mark.asyncio
async def test_custom_address_is_not_retried(service, mock_store) -> None:
    mock_store.create_link.side_effect = AddressCollisionError("mine")

    with pytest.raises(AddressCollisionError):
        await service.create_link(LinkCreate(target="https://example.com", address="mine"))
    mock_store.create_link.assert_awaited_once()


@pytest.mark.asyncio
async def test_store_errors_are_not_retried(service, mock_store) -> None:
    mock_store.create_link.side_effect = ConnectionError("db down")

    with pytest.raises(ConnectionError):
        await service.create_link(LinkCreate(target="https://example.com"))
    mock_store.create_link.assert_awaited_once()


@pytest.mark.asyncio
async def test_resolve_returns_target(service, mock_store) -> None:
    mock_store.mark_visited_and_get_target.return_value = "https://example.com/target"

    assert await service.resolve("abc123") == "https://example.com/target"
    mock_store.mark_visited_and_get_target.assert_awaited_once_with("abc123")


@pytest.mark.asyncio
async def test_resolve_falls_back(service, mock_store, settings) -> None:
    mock_store.mark_visited_and_get_target.return_value = None

    assert await service.resolve("abc123") == settings.FALLBACK_URL


def test_default_expiry_comes_from_settings(mock_store) -> None:
    settings = Settings(DEFAULT_EXPIRE_IN="3 days")
    service = LinkService(mock_store, settings, MagicMock())
    assert service._default_expiry == datetime.timedelta(days=3)
