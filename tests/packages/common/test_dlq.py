"""Tests for the dead set and retry policy."""

import json

import pytest

from packages.common.dlq import DEAD_QUEUE, DeadLetterQueue

pytestmark = pytest.mark.unit


@pytest.fixture
def dlq(mock_redis_client) -> DeadLetterQueue:
    return DeadLetterQueue(mock_redis_client)


@pytest.mark.asyncio
async def test_send_to_dlq_pushes_envelope_with_error_metadata(dlq, mock_redis_client):
    await dlq.send_to_dlq(
        {"class": "ChatsCreatorJob", "jid": "abc", "args": [{}]},
        "boom",
        error_class="RuntimeError",
    )

    key, raw = mock_redis_client.lpush.await_args.args
    entry = json.loads(raw)
    assert key == DEAD_QUEUE
    assert entry["jid"] == "abc"
    assert entry["error_message"] == "boom"
    assert entry["error_class"] == "RuntimeError"
    assert isinstance(entry["failed_at"], float)


@pytest.mark.asyncio
async def test_send_to_dlq_wraps_undecodable_payload(dlq, mock_redis_client):
    await dlq.send_to_dlq("{not json", "Invalid job payload")

    entry = json.loads(mock_redis_client.lpush.await_args.args[1])
    assert entry["raw"] == "{not json"


@pytest.mark.parametrize(("failures", "expected"), [(0, True), (4, True), (5, False), (9, False)])
def test_should_retry_while_below_max(dlq, failures, expected) -> None:
    assert dlq.should_retry(failures) is expected


def test_backoff_doubles_per_attempt(dlq) -> None:
    assert [dlq.calculate_backoff_delay(n) for n in range(1, 6)] == [2, 4, 8, 16, 32]


@pytest.mark.asyncio
async def test_size_reads_dead_list_length(dlq, mock_redis_client):
    mock_redis_client.llen.return_value = 3

    assert await dlq.size() == 3
    mock_redis_client.llen.assert_awaited_once_with(DEAD_QUEUE)
