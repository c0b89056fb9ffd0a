"""Bounded retry with a fixed delay for network-sensitive operations."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from siteaudit.constants import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY_MS

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_RETRIES,
    delay: float = DEFAULT_RETRY_DELAY_MS / 1000,
    description: Optional[str] = None,
) -> T:
    """Run an async operation, retrying failures with a fixed delay.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        max_attempts: Total number of attempts (including the first)
        delay: Seconds to wait between attempts
        description: Optional label used in retry log messages

    Returns:
        The operation's result from the first successful attempt

    Raises:
        ValueError: If max_attempts is less than 1
        Exception: The error from the final attempt, unchanged
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == max_attempts:
                raise
            label = f" {description}" if description else ""
            logger.warning(
                f"Retrying{label} ({attempt}/{max_attempts}) after error: {e}"
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError("with_retry exhausted without result")
