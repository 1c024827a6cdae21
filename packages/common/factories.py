"""Factory functions for creating fully-wired use cases and dependencies.

Centralizes dependency injection to keep CLI commands and the worker thin.
Redis and PostgreSQL handles live in a ``ChatterResources`` opened with
``open_resources``; the PostgreSQL pool is only created when first needed,
so commands that touch Redis alone never connect to the database.

Example:
    async with open_resources() as resources:
        with resources.pool.get_connection() as conn:
            use_case = make_delete_chat_use_case(conn, resources)
            await use_case.execute(token, number)
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import cached_property

from psycopg2.extensions import connection
from redis.asyncio import Redis

from packages.clients import (
    PostgresApplicationStore,
    PostgresChatStore,
    PostgresMessageStore,
    RedisCounterStore,
)
from packages.common.config import ChatterConfig, get_config
from packages.common.dlq import DeadLetterQueue
from packages.common.health import check_system_health
from packages.common.metrics import MetricsCollector
from packages.common.postgres_pool import PostgresPool
from packages.core.use_cases import (
    CreateApplicationUseCase,
    CreateChatUseCase,
    CreateMessageUseCase,
    DeleteApplicationUseCase,
    DeleteChatUseCase,
    DeleteMessageUseCase,
    GetStatusUseCase,
    ReconcileApplicationsChatsCountUseCase,
    ReconcileChatsMessagesCountUseCase,
)
from packages.core.use_cases.reconcile_counts import ReconcileCountsUseCase
from packages.ingest.adapters.redis_job_queue import RedisJobQueue, create_redis_client
from packages.ingest.producer import ChatEventProducer
from packages.schemas.models import CountedKind


class ChatterResources:
    """Process-wide handles shared by use cases."""

    def __init__(self, config: ChatterConfig, redis_client: Redis) -> None:
        self.config = config
        self.redis_client = redis_client

    @cached_property
    def pool(self) -> PostgresPool:
        return PostgresPool(self.config)

    @cached_property
    def counter_store(self) -> RedisCounterStore:
        return RedisCounterStore(self.redis_client)

    @cached_property
    def job_queue(self) -> RedisJobQueue:
        return RedisJobQueue(
            self.redis_client,
            chats_queue=self.config.chats_queue,
            messages_queue=self.config.messages_queue,
        )

    @cached_property
    def metrics(self) -> MetricsCollector:
        return MetricsCollector(self.redis_client)

    @cached_property
    def dlq(self) -> DeadLetterQueue:
        return DeadLetterQueue(
            self.redis_client,
            max_retries=self.config.job_max_retries,
            base_delay_seconds=self.config.job_retry_base_delay_seconds,
        )

    async def close(self) -> None:
        """Release Redis and, if it was opened, the PostgreSQL pool."""
        if "pool" in self.__dict__:
            self.pool.close_all()
        await self.redis_client.aclose()


@asynccontextmanager
async def open_resources(config: ChatterConfig | None = None) -> AsyncIterator[ChatterResources]:
    """Open the Redis client (and lazily the PostgreSQL pool) for one process."""
    config = config or get_config()
    redis_client = await create_redis_client(config.redis_url)
    resources = ChatterResources(config, redis_client)
    try:
        yield resources
    finally:
        await resources.close()


def make_create_chat_use_case(conn: connection, config: ChatterConfig) -> CreateChatUseCase:
    return CreateChatUseCase(
        PostgresApplicationStore(conn),
        PostgresChatStore(conn),
        idempotent_redelivery=config.idempotent_redelivery,
    )


def make_create_message_use_case(conn: connection, config: ChatterConfig) -> CreateMessageUseCase:
    return CreateMessageUseCase(
        PostgresApplicationStore(conn),
        PostgresChatStore(conn),
        PostgresMessageStore(conn),
        idempotent_redelivery=config.idempotent_redelivery,
    )


def make_create_application_use_case(
    conn: connection, resources: ChatterResources
) -> CreateApplicationUseCase:
    return CreateApplicationUseCase(
        PostgresApplicationStore(conn),
        resources.counter_store,
        token_max_attempts=resources.config.token_max_attempts,
    )


def make_delete_application_use_case(
    conn: connection, resources: ChatterResources
) -> DeleteApplicationUseCase:
    return DeleteApplicationUseCase(
        PostgresApplicationStore(conn), PostgresChatStore(conn), resources.counter_store
    )


def make_delete_chat_use_case(conn: connection, resources: ChatterResources) -> DeleteChatUseCase:
    return DeleteChatUseCase(
        PostgresApplicationStore(conn), PostgresChatStore(conn), resources.counter_store
    )


def make_delete_message_use_case(
    conn: connection, resources: ChatterResources
) -> DeleteMessageUseCase:
    return DeleteMessageUseCase(
        PostgresApplicationStore(conn),
        PostgresChatStore(conn),
        PostgresMessageStore(conn),
        resources.counter_store,
    )


def make_reconcile_use_case(
    kind: CountedKind, conn: connection, resources: ChatterResources
) -> ReconcileCountsUseCase:
    """Reconciliation job for the given counted kind."""
    batch_size = resources.config.reconcile_batch_size
    if kind is CountedKind.APPLICATION:
        return ReconcileApplicationsChatsCountUseCase(
            PostgresApplicationStore(conn),
            resources.counter_store,
            batch_size=batch_size,
            metrics=resources.metrics,
        )
    return ReconcileChatsMessagesCountUseCase(
        PostgresChatStore(conn),
        resources.counter_store,
        batch_size=batch_size,
        metrics=resources.metrics,
    )


def make_status_use_case(resources: ChatterResources) -> GetStatusUseCase:
    return GetStatusUseCase(
        queue_sizes=resources.job_queue.queue_sizes,
        metrics=resources.metrics,
        health_checker=check_system_health,
    )


def make_producer(resources: ChatterResources) -> ChatEventProducer:
    return ChatEventProducer(resources.counter_store, resources.job_queue)


__all__ = [
    "ChatterResources",
    "make_create_application_use_case",
    "make_create_chat_use_case",
    "make_create_message_use_case",
    "make_delete_application_use_case",
    "make_delete_chat_use_case",
    "make_delete_message_use_case",
    "make_producer",
    "make_reconcile_use_case",
    "make_status_use_case",
    "open_resources",
]
