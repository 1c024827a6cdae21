"""Service health check utilities for Chatter.

Provides async health checks for the two backing services (Redis holding the
counters and job queues, PostgreSQL holding the durable rows) with timeout
handling and error logging.
"""

import asyncio
from typing import TypedDict

import psycopg2
from redis import asyncio as redis

from packages.common.config import get_config
from packages.common.logging import get_logger

logger = get_logger(__name__)


class SystemHealthStatus(TypedDict):
    """System health status dictionary.

    Attributes:
        healthy: True if all services are healthy, False otherwise.
        services: Dictionary mapping service names to their health status.
    """

    healthy: bool
    services: dict[str, bool]


async def check_redis_health() -> bool:
    """Ping Redis with the configured socket timeout."""
    config = get_config()
    client = None
    try:
        client = redis.from_url(
            config.redis_url,
            socket_timeout=config.redis_socket_timeout,
            decode_responses=True,
        )
        await client.ping()
        logger.debug("Redis health check: OK")
        return True
    except Exception as e:
        logger.error("Redis health check failed", extra={"error": str(e)})
        return False
    finally:
        if client:
            await client.aclose()


def _ping_postgres() -> None:
    config = get_config()
    conn = psycopg2.connect(config.postgres_connection_string, connect_timeout=5)
    try:
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1")
    finally:
        conn.close()


async def check_postgres_health() -> bool:
    """Open a connection and run ``SELECT 1`` off the event loop."""
    try:
        await asyncio.to_thread(_ping_postgres)
        logger.debug("PostgreSQL health check: OK")
        return True
    except Exception as e:
        logger.error("PostgreSQL health check failed", extra={"error": str(e)})
        return False


async def check_system_health() -> SystemHealthStatus:
    """Check health of Redis and PostgreSQL concurrently.

    Returns:
        SystemHealthStatus: Dictionary with 'healthy' (bool) and 'services' (dict[str, bool]).
    """
    results = await asyncio.gather(
        check_redis_health(),
        check_postgres_health(),
        return_exceptions=True,
    )

    services = {
        name: bool(result) if not isinstance(result, BaseException) else False
        for name, result in zip(("redis", "postgres"), results, strict=True)
    }
    healthy = all(services.values())

    if healthy:
        logger.info("System health check: All services operational")
    else:
        failed = [name for name, status in services.items() if not status]
        logger.warning(
            "System health check: Some services failed",
            extra={"failed_services": failed},
        )

    return {"healthy": healthy, "services": services}


# Export public API
__all__ = [
    "SystemHealthStatus",
    "check_postgres_health",
    "check_redis_health",
    "check_system_health",
]
