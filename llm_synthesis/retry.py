"""Retry logic for transient AI service failures.

Retries only when a failure looks transient: no status code at all
(network-level), a 5xx status, or 429 (rate limited). Every other failure
propagates on the first attempt. Response validation happens after this
layer and is never retried.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from app.logging_utils import log_event

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRIES = 3
DEFAULT_INITIAL_DELAY_SECONDS = 1.0
DEFAULT_BACKOFF_MULTIPLIER = 2.0


def failure_status(error: BaseException) -> Optional[int]:
    """Extract an HTTP-like status from *error*, if it carries one."""
    status = getattr(error, "status", None)
    if status is None:
        status = getattr(error, "status_code", None)
    return status if isinstance(status, int) else None


def is_retryable(error: BaseException) -> bool:
    """Return True for failures that look transient."""
    status = failure_status(error)
    return status is None or status >= 500 or status == 429


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    retries: int = DEFAULT_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY_SECONDS,
    multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``operation()`` with exponential backoff on transient failures.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        retries: Maximum number of *additional* attempts after the first
            failure. Total attempts = 1 + retries.
        initial_delay: Seconds to wait before the first retry.
        multiplier: Factor applied to the delay after each retry.
        sleep: Awaitable sleep function, injectable for tests.

    Returns:
        The first successful result.

    Raises:
        Exception: The last failure when retries are exhausted, or the
            first non-retryable failure.
    """
    delay = initial_delay
    attempt = 1
    total_attempts = 1 + retries

    while True:
        try:
            result = await operation()
        except Exception as exc:
            if attempt >= total_attempts or not is_retryable(exc):
                raise
            log_event(
                logger,
                logging.WARNING,
                "ai_call_retry",
                attempt=attempt,
                total_attempts=total_attempts,
                status=failure_status(exc),
                delay_seconds=delay,
                error=str(exc),
            )
            await sleep(delay)
            delay *= multiplier
            attempt += 1
            continue

        if attempt > 1:
            logger.info("AI call succeeded on attempt %d/%d", attempt, total_attempts)
        return result
