"""Tests for RedisCounterStore."""

import pytest

from packages.clients.redis_counter_store import RedisCounterStore

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_get_converts_to_int(mock_redis_client):
    mock_redis_client.get.return_value = "4"

    assert await RedisCounterStore(mock_redis_client).get("application:x") == 4


@pytest.mark.asyncio
async def test_get_missing_key_is_none(mock_redis_client):
    mock_redis_client.get.return_value = None

    assert await RedisCounterStore(mock_redis_client).get("application:x") is None


@pytest.mark.asyncio
async def test_get_many_returns_raw_values_in_one_round_trip(mock_redis_client):
    mock_redis_client.mget.return_value = ["3", None, "abc"]

    values = await RedisCounterStore(mock_redis_client).get_many(["a", "b", "c"])

    assert values == ["3", None, "abc"]
    mock_redis_client.mget.assert_awaited_once_with(["a", "b", "c"])


@pytest.mark.asyncio
async def test_get_many_with_no_keys_skips_redis(mock_redis_client):
    assert await RedisCounterStore(mock_redis_client).get_many([]) == []
    mock_redis_client.mget.assert_not_awaited()


@pytest.mark.asyncio
async def test_incr_and_decr(mock_redis_client):
    mock_redis_client.incr.return_value = 2
    mock_redis_client.decr.return_value = 1
    store = RedisCounterStore(mock_redis_client)

    assert await store.incr("k") == 2
    assert await store.decr("k") == 1


@pytest.mark.asyncio
async def test_delete_many_keys(mock_redis_client):
    mock_redis_client.delete.return_value = 2
    store = RedisCounterStore(mock_redis_client)

    assert await store.delete("a", "b") == 2
    mock_redis_client.delete.assert_awaited_once_with("a", "b")
    assert await store.delete() == 0


@pytest.mark.asyncio
async def test_exists(mock_redis_client):
    mock_redis_client.exists.return_value = 1

    assert await RedisCounterStore(mock_redis_client).exists("k") is True
