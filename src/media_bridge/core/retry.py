"""Bounded retry with a constant delay between attempts."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from media_bridge.log import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3
DEFAULT_DELAY = 1.0


async def with_retry(
    action: Callable[[], Awaitable[T]],
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_DELAY,
) -> T:
    """Await ``action()`` up to ``attempts`` times.

    Failed attempts that will be retried are logged as warnings and followed by
    a non-blocking wait of ``delay`` seconds. The error of the last attempt is
    re-raised unchanged.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    for attempt in range(1, attempts + 1):
        try:
            return await action()
        except Exception as e:
            if attempt == attempts:
                raise
            logger.warning(
                "retry_attempt_failed",
                attempt=attempt,
                attempts=attempts,
                error=str(e),
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
