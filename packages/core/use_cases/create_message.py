"""CreateMessageUseCase - Message creation from a queued MessageCreatorJob event.

Symmetric to CreateChatUseCase with one more parent hop: the Chat is
resolved by (application token, chat number) before the insert. Either
parent missing discards the event.

In idempotent redelivery mode a Message already present under the same
number is a no-op only when its body matches; a different body raises
ConflictingDuplicateError so the conflict reaches the dead set.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from packages.core.errors import ConflictingDuplicateError
from packages.core.ports.repositories import (
    ApplicationRepository,
    ChatRepository,
    MessageRepository,
)
from packages.core.timestamps import parse_event_timestamp
from packages.schemas.models import CreationOutcome, Message, MessageCreatedEvent

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CreateMessageUseCase:
    """Use case creating one Message from a message creation event."""

    def __init__(
        self,
        application_repository: ApplicationRepository,
        chat_repository: ChatRepository,
        message_repository: MessageRepository,
        *,
        idempotent_redelivery: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.application_repository = application_repository
        self.chat_repository = chat_repository
        self.message_repository = message_repository
        self.idempotent_redelivery = idempotent_redelivery
        self.clock = clock

    async def execute(self, payload: MessageCreatedEvent | dict[str, Any]) -> CreationOutcome:
        """Process one message creation event.

        Args:
            payload: Event model or raw job payload dict.

        Returns:
            CreationOutcome: CREATED, ALREADY_EXISTS or PARENT_MISSING.

        Raises:
            pydantic.ValidationError: If the payload is malformed (e.g. empty body).
            DuplicateNumberError: If the number is already used within the chat.
        """
        event = (
            payload
            if isinstance(payload, MessageCreatedEvent)
            else MessageCreatedEvent.model_validate(payload)
        )
        context = {
            "application_token": event.application_token,
            "chat_number": event.chat_number,
            "number": event.number,
        }

        application = self.application_repository.find_by_token(event.application_token)
        if application is None or application.id is None:
            logger.warning(
                "Application token %s not found, discarding message %s",
                event.application_token,
                event.number,
                extra=context,
            )
            return CreationOutcome.PARENT_MISSING

        chat = self.chat_repository.find_by_number(application.id, event.chat_number)
        if chat is None or chat.id is None:
            logger.warning(
                "Chat %s not found for application %s, discarding message %s",
                event.chat_number,
                event.application_token,
                event.number,
                extra=context,
            )
            return CreationOutcome.PARENT_MISSING

        created_at = parse_event_timestamp(event.timestamp, now=self.clock())
        message = Message(
            chat_id=chat.id,
            number=event.number,
            body=event.body,
            created_at=created_at,
            updated_at=created_at,
        )

        if not self.idempotent_redelivery:
            self.message_repository.create(message)
        elif self.message_repository.create_if_absent(message) is None:
            existing = self.message_repository.find_by_number(chat.id, event.number)
            if existing is not None and existing.body != event.body:
                raise ConflictingDuplicateError(
                    f"Message {event.number} in chat {event.chat_number} already exists "
                    "with a different body",
                    parent_id=chat.id,
                    number=event.number,
                )
            logger.info(
                "Message %s already exists in chat %s, treating redelivery as done",
                event.number,
                event.chat_number,
                extra=context,
            )
            return CreationOutcome.ALREADY_EXISTS

        logger.info(
            "Created message %s for chat %s in app %s",
            event.number,
            event.chat_number,
            event.application_token,
            extra=context,
        )
        return CreationOutcome.CREATED


__all__ = ["CreateMessageUseCase"]
