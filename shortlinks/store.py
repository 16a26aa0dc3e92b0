"""Persistence operations for links.

Every time comparison is made against ``now()`` evaluated by the database, so
application servers with a skewed clock can neither resurrect nor prematurely
reap a link.

Query Overview
==============
::
    create_link                  INSERT INTO links (...) VALUES (...)
    get_link_by_address          SELECT ... WHERE address = :a AND expired_at > now()
    mark_visited_and_get_target  UPDATE links SET visited = true
                                 WHERE address = :a AND expired_at > now()
                                 RETURNING target
    get_link_by_id               SELECT ... WHERE id = :id
    delete_expired_links         DELETE FROM links WHERE expired_at < now()

Key Behaviours
===============
- mark_visited_and_get_target is a single statement: two concurrent redirects
  can never observe a half-applied state.
- A unique violation on insert rolls the session back and raises
  AddressCollisionError; every other database error propagates untouched.
- The store never retries on its own.
"""

import datetime
import uuid

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.exceptions import AddressCollisionError
from shortlinks.models import Link

__all__ = ["LinkStore"]


class LinkStore:
    """Link queries bound to one database session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_link(self, target: str, expired_at: datetime.datetime, address: str) -> Link:
        """Insert a link and return it with its database defaults loaded.

        Raises:
            AddressCollisionError: another link already uses ``address``.
        """
        link = Link(address=address, target=target, expired_at=expired_at)
        self._session.add(link)
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise AddressCollisionError(address) from exc
        await self._session.refresh(link)
        return link

    async def get_link_by_address(self, address: str) -> Link | None:
        result = await self._session.execute(
            select(Link)
            .where(Link.address == address, Link.expired_at > func.now())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def mark_visited_and_get_target(self, address: str) -> str | None:
        """Flag the live link at ``address`` as visited and return its target."""
        result = await self._session.execute(
            update(Link)
            .where(Link.address == address, Link.expired_at > func.now())
            .values(visited=True)
            .returning(Link.target)
            .execution_options(synchronize_session=False)
        )
        target = result.scalar_one_or_none()
        await self._session.commit()
        return target

    async def get_link_by_id(self, link_id: uuid.UUID) -> Link | None:
        # populate_existing: a redirect may have flipped visited since this
        # session last loaded the row.
        result = await self._session.execute(
            select(Link).where(Link.id == link_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def delete_expired_links(self) -> int:
        result = await self._session.execute(
            delete(Link).where(Link.expired_at < func.now()).execution_options(synchronize_session=False)
        )
        await self._session.commit()
        return result.rowcount
