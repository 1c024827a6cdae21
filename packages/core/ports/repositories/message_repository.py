"""Message repository port definition."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.schemas.models import Message


class MessageRepository(ABC):
    """Repository abstraction for Message rows."""

    @abstractmethod
    def find_by_number(self, chat_id: int, number: int) -> Message | None:
        """Retrieve a Message by (chat, number)."""

    @abstractmethod
    def create(self, message: Message) -> Message:
        """Insert a Message.

        Raises:
            DuplicateNumberError: If the number is taken within the chat.
        """

    @abstractmethod
    def create_if_absent(self, message: Message) -> Message | None:
        """Insert a Message unless the number is taken; None means it already existed."""

    @abstractmethod
    def delete(self, message_id: int) -> bool:
        """Delete a Message."""


__all__ = ["MessageRepository"]
