"""Tests for the Application, Chat and Message lifecycle use cases."""

import pytest

from packages.core.cache_keys import application_key, chat_key
from packages.core.errors import InvalidEntityError, ParentNotFoundError, TokenGenerationError
from packages.core.tokens import BASE58_ALPHABET
from packages.core.use_cases import (
    CreateApplicationUseCase,
    DeleteApplicationUseCase,
    DeleteChatUseCase,
    DeleteMessageUseCase,
)
from packages.schemas.models import Chat, Message
from tests.utils.fakes import OTHER_TOKEN, TOKEN

pytestmark = pytest.mark.unit


class TestCreateApplication:
    @pytest.mark.asyncio
    async def test_creates_row_and_seeds_counter(self, app_repo, counter_store):
        application = await CreateApplicationUseCase(app_repo, counter_store).execute("Support")

        assert application.id is not None
        assert len(application.token) == 36
        assert set(application.token) <= set(BASE58_ALPHABET)
        assert app_repo.find_by_token(application.token).name == "Support"
        assert counter_store.data[application_key(application.token)] == "0"

    @pytest.mark.asyncio
    async def test_blank_name_is_rejected(self, app_repo, counter_store, db):
        with pytest.raises(InvalidEntityError):
            await CreateApplicationUseCase(app_repo, counter_store).execute("   ")

        assert db.applications == {}

    @pytest.mark.asyncio
    async def test_regenerates_when_pre_check_collides(self, app_repo, counter_store, application):
        candidates = iter([TOKEN, OTHER_TOKEN])
        use_case = CreateApplicationUseCase(
            app_repo, counter_store, token_generator=lambda: next(candidates)
        )

        created = await use_case.execute("Billing")

        assert created.token == OTHER_TOKEN

    @pytest.mark.asyncio
    async def test_regenerates_when_insert_hits_unique_index(
        self, app_repo, counter_store, application, mocker
    ):
        # Simulate a concurrent insert that the pre-check cannot see.
        mocker.patch.object(app_repo, "exists_token", return_value=False)
        candidates = iter([TOKEN, OTHER_TOKEN])
        use_case = CreateApplicationUseCase(
            app_repo, counter_store, token_generator=lambda: next(candidates)
        )

        created = await use_case.execute("Billing")

        assert created.token == OTHER_TOKEN
        assert application_key(TOKEN) not in counter_store.data

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, app_repo, counter_store, application):
        use_case = CreateApplicationUseCase(
            app_repo, counter_store, token_max_attempts=3, token_generator=lambda: TOKEN
        )

        with pytest.raises(TokenGenerationError):
            await use_case.execute("Billing")

    @pytest.mark.asyncio
    async def test_counter_failure_removes_the_new_row(self, app_repo, counter_store, db, mocker):
        mocker.patch.object(counter_store, "set", side_effect=ConnectionError("redis down"))

        with pytest.raises(ConnectionError):
            await CreateApplicationUseCase(app_repo, counter_store).execute("Support")

        assert db.applications == {}
        assert counter_store.data == {}


class TestDeleteApplication:
    @pytest.mark.asyncio
    async def test_deletes_rows_and_evicts_every_counter(
        self, app_repo, chat_repo, message_repo, counter_store, application, db
    ):
        first = chat_repo.create(Chat(application_id=application.id, number=1))
        chat_repo.create(Chat(application_id=application.id, number=2))
        message_repo.create(Message(chat_id=first.id, number=1, body="hi"))
        counter_store.data.update(
            {
                application_key(TOKEN): "2",
                chat_key(TOKEN, 1): "1",
                chat_key(TOKEN, 2): "0",
                application_key(OTHER_TOKEN): "7",
            }
        )

        await DeleteApplicationUseCase(app_repo, chat_repo, counter_store).execute(TOKEN)

        assert db.applications == {}
        assert db.chats == {}
        assert db.messages == {}
        assert counter_store.data == {application_key(OTHER_TOKEN): "7"}

    @pytest.mark.asyncio
    async def test_unknown_token_raises(self, app_repo, chat_repo, counter_store):
        with pytest.raises(ParentNotFoundError) as exc_info:
            await DeleteApplicationUseCase(app_repo, chat_repo, counter_store).execute(TOKEN)

        assert exc_info.value.application_token == TOKEN


class TestDeleteChat:
    @pytest.mark.asyncio
    async def test_decrements_application_counter_and_evicts_chat_counter(
        self, app_repo, chat_repo, message_repo, counter_store, chat, db
    ):
        message_repo.create(Message(chat_id=chat.id, number=1, body="hi"))
        counter_store.data.update({application_key(TOKEN): "2", chat_key(TOKEN, 1): "1"})

        await DeleteChatUseCase(app_repo, chat_repo, counter_store).execute(TOKEN, 1)

        assert db.chats == {}
        assert db.messages == {}
        assert counter_store.data == {application_key(TOKEN): "1"}

    @pytest.mark.asyncio
    async def test_unknown_chat_raises_and_keeps_counters(
        self, app_repo, chat_repo, counter_store, chat
    ):
        counter_store.data[application_key(TOKEN)] = "1"

        with pytest.raises(ParentNotFoundError) as exc_info:
            await DeleteChatUseCase(app_repo, chat_repo, counter_store).execute(TOKEN, 5)

        assert exc_info.value.chat_number == 5
        assert counter_store.data == {application_key(TOKEN): "1"}

    @pytest.mark.asyncio
    async def test_counter_failure_keeps_the_row(
        self, app_repo, chat_repo, counter_store, chat, db, mocker
    ):
        counter_store.data.update({application_key(TOKEN): "1", chat_key(TOKEN, 1): "0"})
        mocker.patch.object(counter_store, "decr", side_effect=ConnectionError("redis down"))

        with pytest.raises(ConnectionError):
            await DeleteChatUseCase(app_repo, chat_repo, counter_store).execute(TOKEN, 1)

        assert list(db.chats) == [chat.id]
        assert counter_store.data == {application_key(TOKEN): "1", chat_key(TOKEN, 1): "0"}

    @pytest.mark.asyncio
    async def test_row_delete_failure_restores_application_counter(
        self, app_repo, chat_repo, counter_store, chat, db, mocker
    ):
        counter_store.data.update({application_key(TOKEN): "1", chat_key(TOKEN, 1): "0"})
        mocker.patch.object(chat_repo, "delete", side_effect=RuntimeError("db down"))

        with pytest.raises(RuntimeError):
            await DeleteChatUseCase(app_repo, chat_repo, counter_store).execute(TOKEN, 1)

        assert list(db.chats) == [chat.id]
        assert counter_store.data == {application_key(TOKEN): "1", chat_key(TOKEN, 1): "0"}


class TestDeleteMessage:
    @pytest.mark.asyncio
    async def test_decrements_chat_counter(
        self, app_repo, chat_repo, message_repo, counter_store, chat, db
    ):
        message_repo.create(Message(chat_id=chat.id, number=1, body="hi"))
        kept = message_repo.create(Message(chat_id=chat.id, number=2, body="there"))
        counter_store.data[chat_key(TOKEN, 1)] = "2"

        await DeleteMessageUseCase(app_repo, chat_repo, message_repo, counter_store).execute(
            TOKEN, 1, 1
        )

        assert list(db.messages) == [kept.id]
        assert counter_store.data[chat_key(TOKEN, 1)] == "1"

    @pytest.mark.asyncio
    async def test_unknown_message_raises(self, app_repo, chat_repo, message_repo, counter_store, chat):
        use_case = DeleteMessageUseCase(app_repo, chat_repo, message_repo, counter_store)

        with pytest.raises(ParentNotFoundError):
            await use_case.execute(TOKEN, 1, 42)

    @pytest.mark.asyncio
    async def test_counter_failure_keeps_the_message(
        self, app_repo, chat_repo, message_repo, counter_store, chat, db, mocker
    ):
        message = message_repo.create(Message(chat_id=chat.id, number=1, body="hi"))
        counter_store.data[chat_key(TOKEN, 1)] = "1"
        mocker.patch.object(counter_store, "decr", side_effect=ConnectionError("redis down"))
        use_case = DeleteMessageUseCase(app_repo, chat_repo, message_repo, counter_store)

        with pytest.raises(ConnectionError):
            await use_case.execute(TOKEN, 1, 1)

        assert list(db.messages) == [message.id]
        assert counter_store.data[chat_key(TOKEN, 1)] == "1"

    @pytest.mark.asyncio
    async def test_row_delete_failure_restores_chat_counter(
        self, app_repo, chat_repo, message_repo, counter_store, chat, db, mocker
    ):
        message = message_repo.create(Message(chat_id=chat.id, number=1, body="hi"))
        counter_store.data[chat_key(TOKEN, 1)] = "1"
        mocker.patch.object(message_repo, "delete", side_effect=RuntimeError("db down"))
        use_case = DeleteMessageUseCase(app_repo, chat_repo, message_repo, counter_store)

        with pytest.raises(RuntimeError):
            await use_case.execute(TOKEN, 1, 1)

        assert list(db.messages) == [message.id]
        assert counter_store.data[chat_key(TOKEN, 1)] == "1"
