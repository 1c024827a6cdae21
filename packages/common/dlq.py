"""Dead set and retry policy for queued jobs.

Jobs that exhaust their retries, or that cannot be dispatched at all (unknown
class, unparsable JSON), are pushed with error metadata onto ``queue:dead``
where an operator can inspect or replay them. The retry policy mirrors the
job envelope's ``retry_count``: a job is retried while it has failed fewer
than ``max_retries`` times.
"""

import json
import logging
import time
from typing import Any

from redis import asyncio as redis

logger = logging.getLogger(__name__)

DEAD_QUEUE = "queue:dead"


class DeadLetterQueue:
    """Redis-based dead set with exponential backoff retry policy.

    Features:
    - Retry decision from the envelope's failure count
    - Exponential backoff calculation
    - Max retry limit (default: 5)
    - Error metadata stored with the dead entry
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        max_retries: int = 5,
        base_delay_seconds: int = 2,
        queue_name: str = DEAD_QUEUE,
    ) -> None:
        """Initialize DeadLetterQueue.

        Args:
            redis_client: Redis client for queue operations.
            max_retries: Maximum retry attempts (default: 5).
            base_delay_seconds: Base delay for exponential backoff (default: 2).
            queue_name: Dead list key (default: queue:dead).
        """
        self.redis_client = redis_client
        self.max_retries = max_retries
        self.base_delay_seconds = base_delay_seconds
        self.queue_name = queue_name

        logger.info(
            "Initialized DeadLetterQueue",
            extra={
                "max_retries": max_retries,
                "base_delay_seconds": base_delay_seconds,
            },
        )

    async def send_to_dlq(
        self,
        job_data: dict[str, Any] | str,
        error: str,
        error_class: str | None = None,
    ) -> None:
        """Send a failed job to the dead set with error metadata.

        Args:
            job_data: Job envelope dict, or the raw payload when it could not
                be decoded.
            error: Error message describing failure.
            error_class: Exception class name, when there was one.
        """
        if isinstance(job_data, str):
            job_data = {"raw": job_data}

        dead_entry = {
            **job_data,
            "error_message": error,
            "error_class": error_class or job_data.get("error_class"),
            "failed_at": time.time(),
        }

        await self.redis_client.lpush(self.queue_name, json.dumps(dead_entry, default=str))

        logger.error(
            "Moved job to dead set",
            extra={
                "jid": job_data.get("jid", "unknown"),
                "job_class": job_data.get("class", "unknown"),
                "error": error,
            },
        )

    def should_retry(self, retry_count: int) -> bool:
        """Check if a job that has failed ``retry_count`` times gets another try."""
        should_retry = retry_count < self.max_retries

        logger.debug(
            "Retry check",
            extra={
                "count": retry_count,
                "max": self.max_retries,
                "should_retry": should_retry,
            },
        )

        return should_retry

    def calculate_backoff_delay(self, retry_count: int) -> int:
        """Calculate exponential backoff delay for retry.

        Formula: base_delay * (2 ^ (retry_count - 1))
        Example with base_delay=2:
        - Retry 1: 2 seconds (2 * 2^0)
        - Retry 2: 4 seconds (2 * 2^1)
        - Retry 3: 8 seconds (2 * 2^2)

        Args:
            retry_count: Current retry attempt number (1-indexed).

        Returns:
            Delay in seconds before next retry.
        """
        return self.base_delay_seconds * (2 ** (max(retry_count, 1) - 1))

    async def size(self) -> int:
        return int(await self.redis_client.llen(self.queue_name))


# Export public API
__all__ = ["DEAD_QUEUE", "DeadLetterQueue"]
