"""Background removal of expired links.

Schedule Diagram
================
::
    start()
      │
      ├─ run_on_startup? ──► fire()
      ▼
    ┌──────────────────┐
    │ sleep(interval)  │◄──────────────┐
    └────────┬─────────┘               │
             ▼                         │
    previous run still going?          │
    ┌────────┴────────┐                │
    │ YES             │ NO             │
    ▼                 ▼                │
  skip tick     spawn run:             │
  (logged)      DELETE ... WHERE       │
    │           expired_at < now()     │
    │           (errors logged)        │
    └────────┬────────┘                │
             └─────────────────────────┘

How to Use
===========
**Inside the web app** (see ``ServiceManager``)::

    reaper = ExpiryReaper(async_session, interval_seconds=86400)
    reaper.start()
    ...
    await reaper.stop(grace=0.5)

**Standalone / cron**::

    python -m shortlinks.reaper --once
    python -m shortlinks.reaper            # runs until SIGINT/SIGTERM

Key Behaviours
===============
- At most one cleanup run is in flight; a tick that finds one running is skipped.
- Each run uses its own session, outside any request.
- A failed run is logged and the schedule carries on.
- stop() waits up to ``grace`` seconds for the in-flight run, then cancels it.
"""

import argparse
import asyncio
import contextlib
import logging
import signal

from prometheus_client import Counter
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortlinks.config import get_settings
from shortlinks.database import async_session, close_db
from shortlinks.enums import CleanupStatus
from shortlinks.logging_config import LOGGER_NAME, setup_logging
from shortlinks.store import LinkStore

__all__ = ["ExpiryReaper", "main"]

EXPIRED_LINKS_DELETED_TOTAL = Counter(
    "shortlinks_expired_links_deleted_total",
    "Expired links removed by the reaper",
)
CLEANUP_RUNS_TOTAL = Counter(
    "shortlinks_cleanup_runs_total",
    "Reaper runs, by outcome",
    ["status"],
)


class ExpiryReaper:
    """Periodically delete links whose expiry has passed."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        interval_seconds: float = 86400,
        run_on_startup: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds!r}")
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self.run_on_startup = run_on_startup
        self.logger = logger or logging.getLogger(f"{LOGGER_NAME}.reaper")
        self._ticker: asyncio.Task | None = None
        self._current: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        """True while a cleanup run is in flight."""
        return self._current is not None and not self._current.done()

    @property
    def is_scheduled(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def start(self) -> None:
        if self.is_scheduled:
            return
        self.logger.info(f"Starting expiry reaper every {self.interval_seconds}s")
        self._ticker = asyncio.create_task(self._schedule(), name="expiry-reaper")

    async def stop(self, grace: float = 0.5) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._ticker
            self._ticker = None

        if self.is_running:
            done, _ = await asyncio.wait({self._current}, timeout=grace)
            if not done:
                self.logger.warning(f"Cleanup still running after {grace}s, cancelling it")
                self._current.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._current
        self._current = None
        self.logger.info("Expiry reaper stopped")

    async def run_once(self) -> int | None:
        """Run one cleanup now.

        Returns:
            The number of deleted links, or None when the run was skipped
            because another one is in flight, or when it failed.
        """
        task = self._fire()
        if task is None:
            return None
        return await task

    async def _schedule(self) -> None:
        if self.run_on_startup:
            self._fire()
        while True:
            await asyncio.sleep(self.interval_seconds)
            self._fire()

    def _fire(self) -> asyncio.Task | None:
        if self.is_running:
            CLEANUP_RUNS_TOTAL.labels(status=CleanupStatus.SKIPPED).inc()
            self.logger.warning("Previous cleanup still running, skipping this tick")
            return None
        self._current = asyncio.create_task(self._run(), name="expiry-reaper-run")
        return self._current

    async def _run(self) -> int | None:
        try:
            async with self.session_factory() as session:
                deleted = await LinkStore(session).delete_expired_links()
        except Exception as exc:
            CLEANUP_RUNS_TOTAL.labels(status=CleanupStatus.FAILED).inc()
            self.logger.error(f"Error cleaning up expired links: {exc}", exc_info=True)
            return None

        CLEANUP_RUNS_TOTAL.labels(status=CleanupStatus.SUCCESS).inc()
        EXPIRED_LINKS_DELETED_TOTAL.inc(deleted)
        self.logger.info(f"Deleted {deleted} expired links")
        return deleted


async def main(once: bool = False) -> None:
    """Run the reaper outside the web process."""
    settings = get_settings()
    logger = setup_logging(settings.LOG_LEVEL)
    reaper = ExpiryReaper(
        async_session,
        interval_seconds=settings.CLEANUP_INTERVAL_SECONDS,
        run_on_startup=True,
        logger=logger,
    )

    try:
        if once:
            await reaper.run_once()
            return

        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, stop_event.set)

        reaper.start()
        await stop_event.wait()
        logger.info("Shutdown signal received")
        await reaper.stop(grace=settings.SHUTDOWN_GRACE_SECONDS)
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Delete expired short links")
    parser.add_argument("--once", action="store_true", help="run a single cleanup and exit")
    args = parser.parse_args()

    asyncio.run(main(once=args.once))
