"""Tests for CreateChatUseCase."""

import logging

import pytest
from pydantic import ValidationError

from packages.core.errors import DuplicateNumberError
from packages.core.use_cases.create_chat import CreateChatUseCase
from packages.schemas.models import Application, ChatCreatedEvent, CreationOutcome
from tests.utils.fakes import FROZEN_NOW, OTHER_TOKEN, TOKEN

pytestmark = pytest.mark.unit


@pytest.fixture
def use_case(app_repo, chat_repo, frozen_clock) -> CreateChatUseCase:
    return CreateChatUseCase(app_repo, chat_repo, clock=frozen_clock)


@pytest.mark.asyncio
async def test_creates_chat_with_producer_number_and_timestamp(use_case, chat_repo, application):
    outcome = await use_case.execute(
        {"application_token": TOKEN, "number": 7, "timestamp": "2025-11-08T10:00:00Z"}
    )

    assert outcome is CreationOutcome.CREATED
    chat = chat_repo.find_by_number(application.id, 7)
    assert chat is not None
    assert chat.created_at.isoformat() == "2025-11-08T10:00:00+00:00"
    assert chat.updated_at == chat.created_at
    assert chat.messages_count == 0


@pytest.mark.asyncio
async def test_accepts_event_model(use_case, chat_repo, application):
    outcome = await use_case.execute(ChatCreatedEvent(application_token=TOKEN, number=1))

    assert outcome is CreationOutcome.CREATED
    assert chat_repo.list_numbers(application.id) == [1]


@pytest.mark.asyncio
async def test_unparseable_timestamp_uses_processing_time(use_case, chat_repo, application):
    await use_case.execute({"application_token": TOKEN, "number": 2, "timestamp": "bad-value"})

    assert chat_repo.find_by_number(application.id, 2).created_at == FROZEN_NOW


@pytest.mark.asyncio
@pytest.mark.parametrize("timestamp", [1700000000, 1700000000.5, ["2025-11-08"], {"at": 1}])
async def test_non_string_timestamp_uses_processing_time(
    use_case, chat_repo, application, timestamp
):
    outcome = await use_case.execute(
        {"application_token": TOKEN, "number": 7, "timestamp": timestamp}
    )

    assert outcome is CreationOutcome.CREATED
    assert chat_repo.find_by_number(application.id, 7).created_at == FROZEN_NOW


@pytest.mark.asyncio
async def test_missing_application_is_logged_and_discarded(use_case, db, caplog):
    with caplog.at_level(logging.WARNING):
        outcome = await use_case.execute({"application_token": OTHER_TOKEN, "number": 7})

    assert outcome is CreationOutcome.PARENT_MISSING
    assert db.chats == {}
    assert f"Application token {OTHER_TOKEN} not found" in caplog.text


@pytest.mark.asyncio
async def test_duplicate_number_raises_in_strict_mode(use_case, chat_repo, application):
    await use_case.execute({"application_token": TOKEN, "number": 3})

    with pytest.raises(DuplicateNumberError) as exc_info:
        await use_case.execute({"application_token": TOKEN, "number": 3})

    assert exc_info.value.number == 3
    assert chat_repo.list_numbers(application.id) == [3]


@pytest.mark.asyncio
async def test_duplicate_number_is_noop_with_idempotent_redelivery(
    app_repo, chat_repo, application, frozen_clock
):
    use_case = CreateChatUseCase(
        app_repo, chat_repo, idempotent_redelivery=True, clock=frozen_clock
    )

    first = await use_case.execute({"application_token": TOKEN, "number": 3})
    second = await use_case.execute({"application_token": TOKEN, "number": 3})

    assert first is CreationOutcome.CREATED
    assert second is CreationOutcome.ALREADY_EXISTS
    assert chat_repo.list_numbers(application.id) == [3]


@pytest.mark.asyncio
async def test_same_number_under_different_applications(use_case, app_repo, chat_repo, application):
    other = app_repo.create(Application(token=OTHER_TOKEN, name="Billing"))

    await use_case.execute({"application_token": TOKEN, "number": 1})
    await use_case.execute({"application_token": OTHER_TOKEN, "number": 1})

    assert chat_repo.list_numbers(application.id) == [1]
    assert chat_repo.list_numbers(other.id) == [1]


@pytest.mark.asyncio
async def test_malformed_payload_raises_validation_error(use_case, application):
    with pytest.raises(ValidationError):
        await use_case.execute({"application_token": TOKEN})
