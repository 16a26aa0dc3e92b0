"""Link store tests against a real database session."""

import datetime
import uuid

import pytest

from shortlinks.exceptions import AddressCollisionError
from shortlinks.store import LinkStore

HOUR = datetime.timedelta(hours=1)


@pytest.mark.asyncio
async def test_create_and_get_link(db_session, db_now) -> None:
    store = LinkStore(db_session)

    link = await store.create_link("https://swan.io", db_now + HOUR, "abc123")

    assert isinstance(link.id, uuid.UUID)
    assert link.visited is False
    assert link.created_at is not None

    found = await store.get_link_by_address("abc123")
    assert found is not None
    assert found.target == "https://swan.io"


@pytest.mark.asyncio
async def test_duplicate_address_raises_collision(db_session, db_now) -> None:
    store = LinkStore(db_session)
    await store.create_link("https://swan.io", db_now + HOUR, "taken1")

    with pytest.raises(AddressCollisionError) as exc_info:
        await store.create_link("https://example.com", db_now + HOUR, "taken1")
    assert exc_info.value.address == "taken1"

    # the session is still usable after the rollback
    other = await store.create_link("https://example.com", db_now + HOUR, "free01")
    assert other.address == "free01"


@pytest.mark.asyncio
async def test_expired_link_is_not_returned(db_session, insert_link) -> None:
    await insert_link("old001", datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc))
    store = LinkStore(db_session)

    assert await store.get_link_by_address("old001") is None
    assert await store.mark_visited_and_get_target("old001") is None


@pytest.mark.asyncio
async def test_missing_address(db_session) -> None:
    store = LinkStore(db_session)
    assert await store.get_link_by_address("nope00") is None
    assert await store.mark_visited_and_get_target("nope00") is None


@pytest.mark.asyncio
async def test_mark_visited_returns_target_and_sets_flag(db_session, db_now, insert_link) -> None:
    link = await insert_link("visit1", db_now + HOUR, target="https://swan.io/visit")
    store = LinkStore(db_session)

    assert await store.mark_visited_and_get_target("visit1") == "https://swan.io/visit"
    reloaded = await store.get_link_by_id(link.id)
    assert reloaded is not None
    assert reloaded.visited is True

    # further hits keep it visited
    assert await store.mark_visited_and_get_target("visit1") == "https://swan.io/visit"
    assert (await store.get_link_by_id(link.id)).visited is True


@pytest.mark.asyncio
async def test_get_link_by_id_ignores_expiry(db_session, db_now, insert_link) -> None:
    link = await insert_link("gone01", db_now - HOUR)
    store = LinkStore(db_session)

    found = await store.get_link_by_id(link.id)
    assert found is not None
    assert found.address == "gone01"
    assert await store.get_link_by_id(uuid.uuid4()) is None


@pytest.mark.asyncio
async def test_delete_expired_links(db_session, db_now, insert_link, count_links) -> None:
    await insert_link("expird", db_now - HOUR)
    await insert_link("alive1", db_now + datetime.timedelta(days=1))
    store = LinkStore(db_session)

    assert await store.delete_expired_links() == 1
    assert await store.delete_expired_links() == 0
    assert await count_links() == 1
    assert await store.get_link_by_address("alive1") is not None


@pytest.mark.asyncio
async def test_delete_expired_links_on_empty_table(db_session) -> None:
    assert await LinkStore(db_session).delete_expired_links() == 0
