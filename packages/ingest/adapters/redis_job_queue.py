"""Sidekiq-compatible job queue on Redis lists.

Layout (shared with the external gateway):

    queue:<name>   LIST of JSON job envelopes, producers RPUSH, workers BLPOP
    retry          ZSET of envelopes scored by the epoch second they are due
    queue:dead     LIST of envelopes that exhausted their retries

Promotion of due retries is safe with several workers: a member is re-pushed
only by the worker whose ZREM removed it.
"""

from __future__ import annotations

import secrets
import time
from collections.abc import Sequence
from typing import Any

from redis import asyncio as redis
from redis.asyncio import Redis

from packages.common.dlq import DEAD_QUEUE
from packages.common.logging import get_logger
from packages.core.ports.event_publisher import CreationEventPublisher
from packages.schemas.models import ChatCreatedEvent, JobEnvelope, MessageCreatedEvent

logger = get_logger(__name__)

CHATS_CREATOR_JOB = "ChatsCreatorJob"
MESSAGE_CREATOR_JOB = "MessageCreatorJob"
RETRY_SET = "retry"


def queue_key(name: str) -> str:
    """Redis list key of a named queue."""
    return f"queue:{name}"


def generate_jid() -> str:
    """24 hex characters, the shape the gateway uses."""
    return secrets.token_hex(12)


class RedisJobQueue(CreationEventPublisher):
    """Push, pop and reschedule job envelopes."""

    def __init__(
        self,
        redis_client: Redis,
        *,
        chats_queue: str = "chats_creation_queue",
        messages_queue: str = "messages_creation_queue",
        retry_set: str = RETRY_SET,
    ) -> None:
        self.redis_client = redis_client
        self.chats_queue = chats_queue
        self.messages_queue = messages_queue
        self.retry_set = retry_set

    def build_envelope(self, job_class: str, queue: str, payload: dict[str, Any]) -> JobEnvelope:
        now = time.time()
        return JobEnvelope(
            job_class=job_class,
            args=[payload],
            queue=queue,
            jid=generate_jid(),
            retry=True,
            created_at=now,
            enqueued_at=now,
        )

    async def push(self, envelope: JobEnvelope) -> str:
        """RPUSH the envelope onto its queue and return its jid."""
        await self.redis_client.rpush(queue_key(envelope.queue), envelope.to_json())
        logger.debug(
            "Enqueued job",
            extra={"jid": envelope.jid, "job_class": envelope.job_class, "queue": envelope.queue},
        )
        return envelope.jid

    async def publish_chat_created(self, event: ChatCreatedEvent) -> str:
        envelope = self.build_envelope(
            CHATS_CREATOR_JOB, self.chats_queue, event.model_dump(mode="json", exclude_none=True)
        )
        return await self.push(envelope)

    async def publish_message_created(self, event: MessageCreatedEvent) -> str:
        envelope = self.build_envelope(
            MESSAGE_CREATOR_JOB,
            self.messages_queue,
            event.model_dump(mode="json", exclude_none=True),
        )
        return await self.push(envelope)

    async def pop(self, queues: Sequence[str], timeout: int) -> tuple[str, str] | None:
        """Block up to ``timeout`` seconds for the next raw job.

        Returns:
            (queue name, raw JSON) or None on timeout.
        """
        result = await self.redis_client.blpop([queue_key(name) for name in queues], timeout=timeout)
        if result is None:
            return None
        key, raw = result
        if isinstance(key, bytes):
            key = key.decode()
        if isinstance(raw, bytes):
            raw = raw.decode()
        return key.removeprefix("queue:"), raw

    async def schedule_retry(self, envelope: JobEnvelope, delay_seconds: float) -> float:
        """Add the envelope to the retry set, due ``delay_seconds`` from now."""
        due_at = time.time() + delay_seconds
        await self.redis_client.zadd(self.retry_set, {envelope.to_json(): due_at})
        return due_at

    async def promote_due_retries(self, now: float | None = None, limit: int = 100) -> int:
        """Move due retries back onto their queues.

        Returns:
            int: Number of envelopes this caller re-pushed.
        """
        now = time.time() if now is None else now
        members = await self.redis_client.zrangebyscore(
            self.retry_set, "-inf", now, start=0, num=limit
        )

        promoted = 0
        for member in members:
            if not await self.redis_client.zrem(self.retry_set, member):
                continue
            envelope = JobEnvelope.model_validate_json(member)
            await self.redis_client.rpush(queue_key(envelope.queue), member)
            promoted += 1

        if promoted:
            logger.debug("Promoted due retries", extra={"count": promoted})
        return promoted

    async def queue_sizes(self) -> dict[str, int]:
        """Length of every queue the worker reads plus the retry and dead sets."""
        sizes: dict[str, int] = {}
        for name in (self.chats_queue, self.messages_queue):
            sizes[queue_key(name)] = int(await self.redis_client.llen(queue_key(name)))
        sizes[self.retry_set] = int(await self.redis_client.zcard(self.retry_set))
        sizes[DEAD_QUEUE] = int(await self.redis_client.llen(DEAD_QUEUE))
        return sizes


async def create_redis_client(url: str, *, decode_responses: bool = True) -> Redis:
    """Helper to create a Redis client from URL."""

    return redis.from_url(url, decode_responses=decode_responses)


__all__ = [
    "CHATS_CREATOR_JOB",
    "MESSAGE_CREATOR_JOB",
    "RETRY_SET",
    "RedisJobQueue",
    "create_redis_client",
    "generate_jid",
    "queue_key",
]
