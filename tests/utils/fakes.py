"""In-memory fakes for the Counter Store and the repositories.

They honor the same contracts as the Redis and PostgreSQL adapters
(uniqueness raises, cascades on delete, keyset batches) so use cases can be
exercised end to end without services.
"""

from collections.abc import Iterator, Sequence
from datetime import UTC, datetime
from itertools import count

from packages.core.errors import DuplicateNumberError, DuplicateTokenError
from packages.core.ports.counter_store import CounterStore
from packages.core.ports.event_publisher import CreationEventPublisher
from packages.core.ports.repositories import (
    ApplicationRepository,
    ChatRepository,
    MessageRepository,
)
from packages.schemas.models import (
    Application,
    Chat,
    ChatCreatedEvent,
    CountRecord,
    Message,
    MessageCreatedEvent,
)

TOKEN = "A" * 36
OTHER_TOKEN = "B" * 36
FROZEN_NOW = datetime(2025, 11, 8, 12, 0, tzinfo=UTC)


class InMemoryCounterStore(CounterStore):
    """Dict-backed counters; values are stored as strings like Redis does."""

    def __init__(self, initial: dict[str, object] | None = None) -> None:
        self.data: dict[str, str] = {k: str(v) for k, v in (initial or {}).items()}
        self.get_many_calls: list[list[str]] = []

    async def get(self, key: str) -> int | None:
        value = self.data.get(key)
        return int(value) if value is not None else None

    async def get_many(self, keys: Sequence[str]) -> list[str | None]:
        self.get_many_calls.append(list(keys))
        return [self.data.get(key) for key in keys]

    async def set(self, key: str, value: int) -> None:
        self.data[key] = str(value)

    async def incr(self, key: str) -> int:
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    async def decr(self, key: str) -> int:
        value = int(self.data.get(key, "0")) - 1
        self.data[key] = str(value)
        return value

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def exists(self, key: str) -> bool:
        return key in self.data


class InMemoryDatabase:
    """Shared row storage for the three fake repositories."""

    def __init__(self) -> None:
        self.applications: dict[int, Application] = {}
        self.chats: dict[int, Chat] = {}
        self.messages: dict[int, Message] = {}
        self._ids = count(1)

    def next_id(self) -> int:
        return next(self._ids)


class InMemoryApplicationRepository(ApplicationRepository):
    def __init__(self, db: InMemoryDatabase) -> None:
        self.db = db
        self.bulk_updates: list[list[CountRecord]] = []

    def find_by_token(self, token: str) -> Application | None:
        return next((a for a in self.db.applications.values() if a.token == token), None)

    def exists_token(self, token: str) -> bool:
        return self.find_by_token(token) is not None

    def create(self, application: Application) -> Application:
        if self.find_by_token(application.token) is not None:
            raise DuplicateTokenError(f"Application token {application.token} already taken")
        stored = application.model_copy(update={"id": self.db.next_id()})
        self.db.applications[stored.id] = stored
        return stored

    def delete(self, application_id: int) -> bool:
        if self.db.applications.pop(application_id, None) is None:
            return False
        for chat in [c for c in self.db.chats.values() if c.application_id == application_id]:
            InMemoryChatRepository(self.db).delete(chat.id)
        return True

    def iter_batches(self, batch_size: int) -> Iterator[list[Application]]:
        rows = [self.db.applications[i] for i in sorted(self.db.applications)]
        for start in range(0, len(rows), batch_size):
            yield rows[start : start + batch_size]

    def bulk_update_chats_count(self, records: Sequence[CountRecord]) -> int:
        self.bulk_updates.append(list(records))
        updated = 0
        for record in records:
            row = self.db.applications.get(record.row_id)
            if row is not None:
                self.db.applications[record.row_id] = row.model_copy(
                    update={"chats_count": record.count}
                )
                updated += 1
        return updated


class InMemoryChatRepository(ChatRepository):
    def __init__(self, db: InMemoryDatabase) -> None:
        self.db = db
        self.bulk_updates: list[list[CountRecord]] = []

    def find_by_number(self, application_id: int, number: int) -> Chat | None:
        return next(
            (
                c
                for c in self.db.chats.values()
                if c.application_id == application_id and c.number == number
            ),
            None,
        )

    def create(self, chat: Chat) -> Chat:
        if self.find_by_number(chat.application_id, chat.number) is not None:
            raise DuplicateNumberError(
                f"Chat number {chat.number} already exists",
                parent_id=chat.application_id,
                number=chat.number,
            )
        stored = chat.model_copy(update={"id": self.db.next_id()})
        self.db.chats[stored.id] = stored
        return stored

    def create_if_absent(self, chat: Chat) -> Chat | None:
        if self.find_by_number(chat.application_id, chat.number) is not None:
            return None
        return self.create(chat)

    def delete(self, chat_id: int) -> bool:
        if self.db.chats.pop(chat_id, None) is None:
            return False
        for message_id in [m.id for m in self.db.messages.values() if m.chat_id == chat_id]:
            del self.db.messages[message_id]
        return True

    def list_numbers(self, application_id: int) -> list[int]:
        return sorted(c.number for c in self.db.chats.values() if c.application_id == application_id)

    def iter_batches_with_token(self, batch_size: int) -> Iterator[list[tuple[Chat, str]]]:
        rows = [
            (self.db.chats[i], self.db.applications[self.db.chats[i].application_id].token)
            for i in sorted(self.db.chats)
        ]
        for start in range(0, len(rows), batch_size):
            yield rows[start : start + batch_size]

    def bulk_update_messages_count(self, records: Sequence[CountRecord]) -> int:
        self.bulk_updates.append(list(records))
        updated = 0
        for record in records:
            row = self.db.chats.get(record.row_id)
            if row is not None:
                self.db.chats[record.row_id] = row.model_copy(
                    update={"messages_count": record.count}
                )
                updated += 1
        return updated


class InMemoryMessageRepository(MessageRepository):
    def __init__(self, db: InMemoryDatabase) -> None:
        self.db = db

    def find_by_number(self, chat_id: int, number: int) -> Message | None:
        return next(
            (m for m in self.db.messages.values() if m.chat_id == chat_id and m.number == number),
            None,
        )

    def create(self, message: Message) -> Message:
        if self.find_by_number(message.chat_id, message.number) is not None:
            raise DuplicateNumberError(
                f"Message number {message.number} already exists",
                parent_id=message.chat_id,
                number=message.number,
            )
        stored = message.model_copy(update={"id": self.db.next_id()})
        self.db.messages[stored.id] = stored
        return stored

    def create_if_absent(self, message: Message) -> Message | None:
        if self.find_by_number(message.chat_id, message.number) is not None:
            return None
        return self.create(message)

    def delete(self, message_id: int) -> bool:
        return self.db.messages.pop(message_id, None) is not None


class RecordingPublisher(CreationEventPublisher):
    """Publisher that keeps events in memory instead of pushing to Redis."""

    def __init__(self) -> None:
        self.chats: list[ChatCreatedEvent] = []
        self.messages: list[MessageCreatedEvent] = []

    async def publish_chat_created(self, event: ChatCreatedEvent) -> str:
        self.chats.append(event)
        return f"jid-chat-{len(self.chats)}"

    async def publish_message_created(self, event: MessageCreatedEvent) -> str:
        self.messages.append(event)
        return f"jid-message-{len(self.messages)}"
