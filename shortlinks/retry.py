"""Bounded, immediate retry for async operations.

Flow Diagram — retry()
======================
::
    ┌─────────────┐
    │ attempts =  │
    │ max(n, 1)   │
    └──────┬──────┘
           ▼
    ┌─────────────┐   ok    ┌─────────────┐
    │ await       ├────────►│ return value│
    │ operation() │         └─────────────┘
    └──────┬──────┘
           │ raised retry_on
           ▼
    attempts > 1? ── NO ──► re-raise
           │ YES
           ▼
    attempts -= 1, loop (no delay)

How to Use
===========
::
    link = await retry(
        lambda: store.create_link(target, expired_at, generate_address()),
        attempts=2,
        retry_on=(AddressCollisionError,),
    )

Key Behaviours
===============
- attempts <= 1 means exactly one call.
- Exceptions outside retry_on propagate on the first failure.
- The last exception is re-raised unchanged once attempts run out.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from shortlinks.logging_config import LOGGER_NAME

__all__ = ["retry"]

T = TypeVar("T")

logger = logging.getLogger(f"{LOGGER_NAME}.retry")


async def retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 2,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    remaining = max(attempts, 1)
    while True:
        try:
            return await operation()
        except retry_on as exc:
            if remaining <= 1:
                raise
            remaining -= 1
            logger.warning(f"Retrying after {type(exc).__name__}: {exc} ({remaining} attempt(s) left)")
