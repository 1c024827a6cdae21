"""Resilience utilities for infrastructure calls with retry logic.

Provides decorators for wrapping connection setup against PostgreSQL and Redis
with exponential backoff using tenacity. Job-level retries are not handled
here: failed jobs go back through the queue's retry set (see packages.common.dlq).
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def resilient_external_call(
    max_attempts: int = 3,
    min_wait: int = 1,
    max_wait: int = 10,
    retry_on: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry decorator for synchronous infrastructure calls.

    Wraps calls with exponential backoff retry logic. Logs warnings before
    each retry attempt and re-raises the last error once attempts run out.

    Args:
        max_attempts: Maximum retry attempts (default: 3).
        min_wait: Minimum wait time in seconds (default: 1).
        max_wait: Maximum wait time in seconds (default: 10).
        retry_on: Exception types to retry on (default: all exceptions).

    Returns:
        Callable: Decorated function with retry logic.

    Example:
        >>> @resilient_external_call(max_attempts=5, retry_on=(psycopg2.OperationalError,))
        ... def connect() -> connection:
        ...     return psycopg2.connect(dsn)
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def resilient_async_call(
    max_attempts: int = 3,
    min_wait: int = 1,
    max_wait: int = 10,
    retry_on: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry decorator for asynchronous infrastructure calls.

    Same policy as resilient_external_call; tenacity detects coroutine
    functions and awaits between attempts.

    Example:
        >>> @resilient_async_call(max_attempts=5, retry_on=(RedisConnectionError,))
        ... async def ping(client: Redis) -> None:
        ...     await client.ping()
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


__all__ = ["resilient_async_call", "resilient_external_call"]
