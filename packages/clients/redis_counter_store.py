"""Redis implementation of the CounterStore port.

The client must be created with ``decode_responses=True``; values come back
as ``str`` and are returned raw by ``get_many`` so reconciliation can decide
what to do with non-integer content.
"""

from collections.abc import Sequence

from redis import asyncio as redis

from packages.core.ports.counter_store import CounterStore


class RedisCounterStore(CounterStore):
    """Counter Store backed by plain Redis string keys (GET/SET/INCR/DECR/DEL)."""

    def __init__(self, redis_client: redis.Redis) -> None:
        self.redis_client = redis_client

    async def get(self, key: str) -> int | None:
        value = await self.redis_client.get(key)
        return int(value) if value is not None else None

    async def get_many(self, keys: Sequence[str]) -> list[str | None]:
        if not keys:
            return []
        return list(await self.redis_client.mget(list(keys)))

    async def set(self, key: str, value: int) -> None:
        await self.redis_client.set(key, value)

    async def incr(self, key: str) -> int:
        return int(await self.redis_client.incr(key))

    async def decr(self, key: str) -> int:
        return int(await self.redis_client.decr(key))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self.redis_client.delete(*keys))

    async def exists(self, key: str) -> bool:
        return bool(await self.redis_client.exists(key))


__all__ = ["RedisCounterStore"]
