"""Bounded retry for calls to the fix service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from a11yfix.core.errors import FailureReason, ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3

Sleep = Callable[[float], Awaitable[Any]]


async def retry_within_limits(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run ``operation``, retrying rate-limit and timeout failures.

    A rate-limited call waits the server's ``retry_after`` plus one second;
    a timed-out call is retried at once. Any other error is raised without
    retrying. After ``max_retries`` failed attempts the last error is raised.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")

    attempt = 0
    while True:
        try:
            return await operation()
        except ServiceError as exc:
            attempt += 1
            if not exc.is_recoverable:
                logger.debug("Hit error that is not a rate limit or timeout, giving up")
                raise
            if attempt >= max_retries:
                logger.debug("Giving up after %d attempts: %s", attempt, exc)
                raise

            if exc.reason == FailureReason.RATE_LIMIT:
                delay = (exc.retry_after or 0) + 1
                logger.debug(
                    "Hit rate limit, retrying in %d seconds (attempt %d/%d)",
                    delay, attempt, max_retries,
                )
                await sleep(delay)
            else:
                logger.debug("Hit timeout, retrying (attempt %d/%d)", attempt, max_retries)
