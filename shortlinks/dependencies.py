"""Dependency injection with a singleton service manager.

This module provides a centralized way to inject the database session, settings
and logger with consistent naming across all API endpoints, using a singleton
pattern for shared resources to minimize per-request overhead.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.config import Settings, get_settings
from shortlinks.database import async_session, get_db
from shortlinks.logging_config import setup_logging
from shortlinks.reaper import ExpiryReaper
from shortlinks.service import LinkService


# ============================================================================
# SINGLETON SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Singleton service manager for process-wide resources.

    Owns the settings, the package logger and the expiry reaper. The database
    engine itself lives in ``shortlinks.database``.
    """

    _instance: Optional["ServiceManager"] = None
    _initialized: bool = False

    def __new__(cls) -> "ServiceManager":
        """Implement singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def initialize(self) -> None:
        """Initialize shared resources once at startup."""
        if not self._initialized:
            self.settings = get_settings()
            self.logger = setup_logging(self.settings.LOG_LEVEL)
            self.reaper = ExpiryReaper(
                async_session,
                interval_seconds=self.settings.CLEANUP_INTERVAL_SECONDS,
                run_on_startup=self.settings.CLEANUP_ON_STARTUP,
                logger=self.logger,
            )
            self._initialized = True

    async def start(self) -> None:
        """Start background work (called from the app lifespan)."""
        self.initialize()
        self.reaper.start()

    async def cleanup(self) -> None:
        """Stop background work, letting an in-flight cleanup finish within the grace period."""
        if hasattr(self, "reaper"):
            await self.reaper.stop(grace=self.settings.SHUTDOWN_GRACE_SECONDS)
        self._initialized = False


# Global singleton instance
_service_manager = ServiceManager()


# ============================================================================
# LIGHTWEIGHT REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request context with tracking information and shared resource access.

    Attributes:
        database: Async database session (only per-request resource)
        service_manager: Singleton service manager with shared resources
        request_id: Unique identifier for this request
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
        tags: Request tags for categorization
    """

    database: AsyncSession
    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())
    tags: list[str] = field(default_factory=list)

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Get shared logger with request context."""
        return logging.LoggerAdapter(
            self.service_manager.logger,
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
                "tags": ",".join(self.tags),
            },
        )

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_manager() -> ServiceManager:
    if not _service_manager._initialized:
        _service_manager.initialize()
    return _service_manager


async def get_request_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    """Build the request context from the incoming request.

    Args:
        request: FastAPI Request object for extracting client info
        db: Database session (only per-request resource)
        manager: Singleton service manager with shared resources

    Returns:
        RequestContext: Context for the request
    """
    return RequestContext(
        database=db,
        service_manager=manager,
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )


def get_link_service(ctx: RequestContext = Depends(get_request_context)) -> LinkService:
    return LinkService.from_context(ctx)
