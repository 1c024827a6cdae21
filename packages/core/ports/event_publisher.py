"""Port for publishing creation events to the job queue."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.schemas.models import ChatCreatedEvent, MessageCreatedEvent


class CreationEventPublisher(ABC):
    """Publisher interface for Chat and Message creation events."""

    @abstractmethod
    async def publish_chat_created(self, event: ChatCreatedEvent) -> str:
        """Enqueue a chat creation job and return its job id."""

    @abstractmethod
    async def publish_message_created(self, event: MessageCreatedEvent) -> str:
        """Enqueue a message creation job and return its job id."""


__all__ = ["CreationEventPublisher"]
