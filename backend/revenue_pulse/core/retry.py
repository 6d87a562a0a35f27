"""Bounded retry with exponential backoff for data-source calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY_MS = 1000


def backoff_delay_ms(attempt: int, initial_delay: float) -> float:
    """Delay after the given failed attempt (1-based): initial * 2^(attempt-1)."""
    return initial_delay * 2 ** (attempt - 1)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_delay: float = DEFAULT_INITIAL_DELAY_MS,
    *,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    description: str | None = None,
) -> T:
    """Run an async operation, retrying failures with exponential backoff.

    Args:
        operation: Zero-argument callable returning an awaitable.
        max_attempts: Total number of attempts, including the first.
        initial_delay: Wait in milliseconds after the first failure; doubled
            after each subsequent failure.
        sleep: Awaitable sleep taking seconds. Injected by tests.
        description: Label used in log messages.

    Returns:
        The result of the first successful attempt.

    Raises:
        ValueError: If ``max_attempts`` is less than 1.
        Exception: The last failure, unchanged, once all attempts are used.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    label = description or getattr(operation, "__name__", "operation")
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            last_error = exc
            if attempt == max_attempts:
                break
            delay = backoff_delay_ms(attempt, initial_delay)
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.0f ms",
                label,
                attempt,
                max_attempts,
                exc,
                delay,
            )
            await sleep(delay / 1000)

    logger.error("%s failed after %d attempts: %s", label, max_attempts, last_error)
    assert last_error is not None
    raise last_error
