"""Background creation worker.

Pops Sidekiq-compatible jobs from the chat and message creation queues,
dispatches them by job class and applies the retry policy: a failing job is
rescheduled with exponential backoff until it has failed ``job_max_retries``
times, then moved to the dead set. Jobs that cannot be dispatched at all
(unparsable JSON, unknown class) go to the dead set immediately.
Supports graceful shutdown on SIGINT/SIGTERM.
"""

import asyncio
import logging
import signal
import time
from collections.abc import Awaitable, Callable, Sequence
from types import FrameType
from typing import Any

from pydantic import ValidationError
from redis.exceptions import ConnectionError as RedisConnectionError

from packages.common.config import get_config
from packages.common.dlq import DeadLetterQueue
from packages.common.factories import (
    ChatterResources,
    make_create_chat_use_case,
    make_create_message_use_case,
    open_resources,
)
from packages.common.logging import setup_logging
from packages.common.metrics import MetricsCollector
from packages.common.resilience import resilient_async_call
from packages.common.tracing import TracingContext
from packages.ingest.adapters.redis_job_queue import (
    CHATS_CREATOR_JOB,
    MESSAGE_CREATOR_JOB,
    RedisJobQueue,
)
from packages.schemas.models import CreationOutcome, JobEnvelope

logger = logging.getLogger(__name__)

JobHandler = Callable[[dict[str, Any]], Awaitable[CreationOutcome]]


class CreationWorker:
    """Background worker for processing creation jobs."""

    def __init__(
        self,
        job_queue: RedisJobQueue,
        dlq: DeadLetterQueue,
        handlers: dict[str, JobHandler],
        *,
        queues: Sequence[str],
        poll_timeout: int = 5,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """Initialize CreationWorker.

        Args:
            job_queue: Queue to pop from and reschedule onto.
            dlq: Dead set and retry policy.
            handlers: Coroutine per job class, receiving the job payload.
            queues: Queue names to pop from, in priority order.
            poll_timeout: Timeout for Redis BLPOP in seconds.
            metrics: Optional metrics collector.
        """
        self.job_queue = job_queue
        self.dlq = dlq
        self.handlers = handlers
        self.queues = list(queues)
        self.poll_timeout = poll_timeout
        self.metrics = metrics
        self._stop_flag = False

        logger.info(
            "Initialized CreationWorker",
            extra={"queues": self.queues, "job_classes": sorted(handlers)},
        )

    def should_stop(self) -> bool:
        return self._stop_flag

    def signal_stop(self) -> None:
        """Signal worker to stop gracefully after the current job."""
        logger.info("Received stop signal")
        self._stop_flag = True

    async def poll_once(self) -> bool:
        """Promote due retries, then pop and process at most one job.

        Returns:
            True if a job was popped.
        """
        await self.job_queue.promote_due_retries()

        result = await self.job_queue.pop(self.queues, timeout=self.poll_timeout)
        if result is None:
            return False

        _queue_name, raw = result
        await self.process(raw)
        return True

    async def process(self, raw: str) -> None:
        """Decode, dispatch and settle one raw job."""
        try:
            envelope = JobEnvelope.model_validate_json(raw)
        except ValidationError as e:
            await self.dlq.send_to_dlq(raw, f"Unparsable job: {e}", type(e).__name__)
            return

        handler = self.handlers.get(envelope.job_class)
        if handler is None:
            await self.dlq.send_to_dlq(
                envelope.model_dump(mode="json", by_alias=True, exclude_none=True),
                f"Unknown job class {envelope.job_class}",
            )
            await self._record(envelope.job_class, "dead")
            return

        try:
            payload = envelope.payload
        except ValueError as e:
            await self.dlq.send_to_dlq(
                envelope.model_dump(mode="json", by_alias=True, exclude_none=True),
                str(e),
                type(e).__name__,
            )
            await self._record(envelope.job_class, "dead")
            return

        with TracingContext(envelope.jid):
            try:
                outcome = await handler(payload)
            except Exception as e:
                await self._handle_failure(envelope, e)
                return

            logger.debug(
                "Job finished",
                extra={"job_class": envelope.job_class, "outcome": outcome.value},
            )
            await self._record(
                envelope.job_class,
                "discarded" if outcome is CreationOutcome.PARENT_MISSING else "processed",
            )

    async def _handle_failure(self, envelope: JobEnvelope, error: Exception) -> None:
        failures = envelope.failures
        now = time.time()
        failed = envelope.model_copy(
            update={
                "error_message": str(error),
                "error_class": type(error).__name__,
                "failed_at": envelope.failed_at or now,
            }
        )

        if envelope.retry and self.dlq.should_retry(failures):
            attempt = failures + 1
            failed = failed.model_copy(
                update={"retry_count": attempt, "retried_at": now if failures else None}
            )
            delay = self.dlq.calculate_backoff_delay(attempt)
            await self.job_queue.schedule_retry(failed, delay)
            logger.warning(
                "Job failed, retry %s scheduled in %ss",
                attempt,
                delay,
                extra={
                    "job_class": envelope.job_class,
                    "error_class": type(error).__name__,
                    "error": str(error),
                },
            )
            await self._record(envelope.job_class, "retried")
            return

        await self.dlq.send_to_dlq(
            failed.model_dump(mode="json", by_alias=True, exclude_none=True),
            str(error),
            type(error).__name__,
        )
        await self._record(envelope.job_class, "dead")

    async def _record(self, job_class: str, outcome: str) -> None:
        if self.metrics is None:
            return
        try:
            await self.metrics.record_job(job_class, outcome)
        except RedisConnectionError:
            logger.warning("Failed to record job metric", exc_info=True)

    async def run(self) -> None:
        """Run worker continuously until stopped."""
        logger.info("Starting creation worker loop")

        try:
            while not self.should_stop():
                try:
                    await self.poll_once()
                except RedisConnectionError:
                    logger.exception("Lost connection to Redis, backing off")
                    await asyncio.sleep(1)
        except asyncio.CancelledError:
            logger.info("Worker cancelled")
        finally:
            logger.info("Worker stopped")


def build_handlers(resources: ChatterResources) -> dict[str, JobHandler]:
    """Handlers per job class; each job borrows one pooled connection."""

    async def create_chat(payload: dict[str, Any]) -> CreationOutcome:
        with resources.pool.get_connection() as conn:
            return await make_create_chat_use_case(conn, resources.config).execute(payload)

    async def create_message(payload: dict[str, Any]) -> CreationOutcome:
        with resources.pool.get_connection() as conn:
            return await make_create_message_use_case(conn, resources.config).execute(payload)

    return {CHATS_CREATOR_JOB: create_chat, MESSAGE_CREATOR_JOB: create_message}


@resilient_async_call(max_attempts=5, retry_on=(RedisConnectionError,))
async def _wait_for_redis(resources: ChatterResources) -> None:
    await resources.redis_client.ping()


async def main() -> None:
    """Main entry point for the creation worker."""
    config = get_config()
    setup_logging(config.log_level)

    logger.info("Starting creation worker initialization")

    async with open_resources(config) as resources:
        await _wait_for_redis(resources)

        worker = CreationWorker(
            job_queue=resources.job_queue,
            dlq=resources.dlq,
            handlers=build_handlers(resources),
            queues=config.worker_queues,
            poll_timeout=config.worker_poll_timeout,
            metrics=resources.metrics,
        )

        def handle_signal(sig: int, _frame: FrameType | None) -> None:
            logger.info("Received signal %s", sig)
            worker.signal_stop()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

        await worker.run()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
