"""Helper functions for constructing common test doubles."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock


def create_mock_redis_client(mocker: Any) -> Any:
    """Create a mocked redis.asyncio client whose commands are awaitable."""

    client = mocker.MagicMock()
    for command in (
        "get",
        "mget",
        "set",
        "incr",
        "incrby",
        "decr",
        "delete",
        "exists",
        "rpush",
        "lpush",
        "blpop",
        "llen",
        "zadd",
        "zrem",
        "zcard",
        "zrangebyscore",
        "ping",
        "aclose",
    ):
        setattr(client, command, AsyncMock())
    return client


def create_mock_pg_connection() -> tuple[MagicMock, MagicMock]:
    """Create a psycopg2 connection mock and the cursor its context yields."""

    conn = MagicMock()
    cursor = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    conn.cursor.return_value.__exit__.return_value = None
    return conn, cursor
