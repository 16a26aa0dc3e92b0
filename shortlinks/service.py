"""Link creation and redirect resolution.

This module composes the address generator, duration parser, retry executor
and link store into the two externally visible operations of the service.

Flow Diagram — Link Creation
============================
::
    ┌─────────────┐
    │  POST /api/ │
    │  links      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ expired_at =│
    │ now + parse │
    │ (expire_in) │
    │ or 1 week   │
    └──────┬──────┘
           ▼
    custom address?
    ┌─────┴──────────────┐
    │ YES                │ NO
    ▼                    ▼
┌──────────┐     ┌───────────────┐
│ single   │     │ retry(2):     │
│ insert   │     │ generate +    │
│ (409 on  │     │ insert, again │
│ clash)   │     │ on collision  │
└────┬─────┘     └───────┬───────┘
     └────────┬──────────┘
              ▼
    ┌─────────────┐
    │ Return Link │
    └─────────────┘

Flow Diagram — Redirect
=======================
::
    ┌─────────────┐
    │ GET /:addr  │
    └──────┬──────┘
           ▼
    ┌───────────────────┐
    │ UPDATE ... SET    │
    │ visited = true    │
    │ RETURNING target  │
    └──────┬────────────┘
    FOUND? │
    ┌──────┴─────┐
    │ YES        │ NO (missing or expired)
    ▼            ▼
  302 target   302 FALLBACK_URL

How to Use
===========
**Step 1 — Build from the request context**::
    service = LinkService.from_context(ctx)

**Step 2 — Create**::
    link = await service.create_link(LinkCreate(target="https://example.com"))

**Step 3 — Resolve**::
    location = await service.resolve("abc123")

Key Behaviours
===============
- Expiry is computed from the application clock; liveness checks use the
  database clock.
- Generated addresses are retried on collision, caller supplied ones are not.
- resolve() never reports "not found"; it degrades to the fallback URL.
"""

import datetime
import logging
import time
import uuid
from typing import TYPE_CHECKING

from prometheus_client import Counter

from shortlinks.addresses import generate_address
from shortlinks.config import Settings
from shortlinks.durations import parse_duration
from shortlinks.enums import LinkSource, RedirectResult
from shortlinks.exceptions import AddressCollisionError, ExpiryOutOfRangeError
from shortlinks.models import Link
from shortlinks.retry import retry
from shortlinks.schemas import LinkCreate
from shortlinks.store import LinkStore

if TYPE_CHECKING:
    from shortlinks.dependencies import RequestContext

__all__ = ["LinkService", "compute_expiry"]

DEFAULT_EXPIRY = datetime.timedelta(weeks=1)

LINKS_CREATED_TOTAL = Counter(
    "shortlinks_links_created_total",
    "Links created, by address source",
    ["source"],
)
REDIRECTS_TOTAL = Counter(
    "shortlinks_redirects_total",
    "Redirect requests, by outcome",
    ["result"],
)


def compute_expiry(expire_in: str | None, default: datetime.timedelta = DEFAULT_EXPIRY) -> datetime.datetime:
    """Absolute expiry for a link created now.

    Raises:
        ExpiryOutOfRangeError: the span is well formed but lands outside
            years 1..9999.
    """
    duration = parse_duration(expire_in)
    try:
        delta = duration.as_timedelta() if duration is not None else default
        return datetime.datetime.now(datetime.timezone.utc) + delta
    except OverflowError as exc:
        raise ExpiryOutOfRangeError(expire_in) from exc


class LinkService:
    """Create links and resolve addresses for one request.

    Example:
        >>> service = LinkService.from_context(ctx)
        >>> link = await service.create_link(LinkCreate(target="https://example.com"))
        >>> await service.resolve(link.address)
        'https://example.com'
    """

    def __init__(self, store: LinkStore, settings: Settings, logger: logging.Logger | logging.LoggerAdapter) -> None:
        self._store = store
        self._settings = settings
        self._logger = logger
        default = parse_duration(settings.DEFAULT_EXPIRE_IN)
        self._default_expiry = default.as_timedelta() if default is not None else DEFAULT_EXPIRY

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "LinkService":
        return cls(LinkStore(ctx.database), ctx.settings, ctx.logger)

    async def create_link(self, request: LinkCreate) -> Link:
        """Persist a new link.

        Raises:
            AddressCollisionError: the caller supplied address is taken, or
                every generated address collided.
            ExpiryOutOfRangeError: ``expire_in`` overflows the date range.
        """
        start_time = time.perf_counter()
        expired_at = compute_expiry(request.expire_in, self._default_expiry)

        try:
            if request.address is not None:
                link = await self._store.create_link(request.target, expired_at, request.address)
                source = LinkSource.CUSTOM
            else:
                link = await retry(
                    lambda: self._store.create_link(
                        request.target, expired_at, generate_address(self._settings.ADDRESS_LENGTH)
                    ),
                    attempts=self._settings.CREATE_ATTEMPTS,
                    retry_on=(AddressCollisionError,),
                )
                source = LinkSource.GENERATED
        except AddressCollisionError as exc:
            self._logger.warning(f"Link creation failed: {exc}")
            raise
        except Exception as exc:
            self._logger.error(f"Link creation error: {exc}", exc_info=True)
            raise

        LINKS_CREATED_TOTAL.labels(source=source).inc()
        duration = time.perf_counter() - start_time
        self._logger.info(f"Link created: {link.address} expires {link.expired_at} in {duration:.3f}s")
        return link

    async def resolve(self, address: str) -> str:
        """Return the redirect location for ``address`` and mark the link visited."""
        target = await self._store.mark_visited_and_get_target(address)
        if target is None:
            REDIRECTS_TOTAL.labels(result=RedirectResult.FALLBACK).inc()
            self._logger.info(f"No live link for address {address}, using fallback")
            return self._settings.FALLBACK_URL

        REDIRECTS_TOTAL.labels(result=RedirectResult.HIT).inc()
        return target

    async def get_link(self, link_id: uuid.UUID) -> Link | None:
        return await self._store.get_link_by_id(link_id)
