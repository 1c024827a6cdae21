"""Chat repository port definition."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence

from packages.schemas.models import Chat, CountRecord


class ChatRepository(ABC):
    """Repository abstraction for Chat rows."""

    @abstractmethod
    def find_by_number(self, application_id: int, number: int) -> Chat | None:
        """Retrieve a Chat by (application, number)."""

    @abstractmethod
    def create(self, chat: Chat) -> Chat:
        """Insert a Chat.

        Raises:
            DuplicateNumberError: If the number is taken within the application.
        """

    @abstractmethod
    def create_if_absent(self, chat: Chat) -> Chat | None:
        """Insert a Chat unless the number is taken; None means it already existed."""

    @abstractmethod
    def delete(self, chat_id: int) -> bool:
        """Delete a Chat; its Messages go with it."""

    @abstractmethod
    def list_numbers(self, application_id: int) -> list[int]:
        """Return the numbers of every Chat of an Application."""

    @abstractmethod
    def iter_batches_with_token(self, batch_size: int) -> Iterator[list[tuple[Chat, str]]]:
        """Yield (chat, application token) pairs in id order, batch_size at a time."""

    @abstractmethod
    def bulk_update_messages_count(self, records: Sequence[CountRecord]) -> int:
        """Overwrite messages_count for the given rows in one statement."""


__all__ = ["ChatRepository"]
