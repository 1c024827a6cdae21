"""CreateChatUseCase - Chat creation from a queued ChatsCreatorJob event.

Resolves the Application by token, parses the producer timestamp and inserts
the Chat with the producer-assigned number. The per-application uniqueness of
the number is enforced by storage only; two deliveries of the same
(token, number) are serialized by the unique index and the second one fails.

Outcome contract:
- Application missing: warning logged, event discarded (never retried).
- Duplicate number: DuplicateNumberError propagates to the queue retry path,
  unless idempotent redelivery is enabled, in which case an existing row with
  the same number is a successful no-op.
- Anything else (storage down, invalid payload): propagates.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from packages.core.ports.repositories import ApplicationRepository, ChatRepository
from packages.core.timestamps import parse_event_timestamp
from packages.schemas.models import Chat, ChatCreatedEvent, CreationOutcome

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CreateChatUseCase:
    """Use case creating one Chat from a chat creation event.

    Attributes:
        application_repository: Lookup of the parent Application.
        chat_repository: Chat persistence.
        idempotent_redelivery: Treat an already-present number as done.
    """

    def __init__(
        self,
        application_repository: ApplicationRepository,
        chat_repository: ChatRepository,
        *,
        idempotent_redelivery: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.application_repository = application_repository
        self.chat_repository = chat_repository
        self.idempotent_redelivery = idempotent_redelivery
        self.clock = clock

    async def execute(self, payload: ChatCreatedEvent | dict[str, Any]) -> CreationOutcome:
        """Process one chat creation event.

        Args:
            payload: Event model or raw job payload dict.

        Returns:
            CreationOutcome: CREATED, ALREADY_EXISTS or PARENT_MISSING.

        Raises:
            pydantic.ValidationError: If the payload is malformed.
            DuplicateNumberError: If the number is already used by the application.
        """
        event = (
            payload
            if isinstance(payload, ChatCreatedEvent)
            else ChatCreatedEvent.model_validate(payload)
        )

        application = self.application_repository.find_by_token(event.application_token)
        if application is None or application.id is None:
            logger.warning(
                "Application token %s not found, discarding chat %s",
                event.application_token,
                event.number,
                extra={"application_token": event.application_token, "number": event.number},
            )
            return CreationOutcome.PARENT_MISSING

        created_at = parse_event_timestamp(event.timestamp, now=self.clock())
        chat = Chat(
            application_id=application.id,
            number=event.number,
            created_at=created_at,
            updated_at=created_at,
        )

        if not self.idempotent_redelivery:
            self.chat_repository.create(chat)
        elif self.chat_repository.create_if_absent(chat) is None:
            logger.info(
                "Chat %s already exists for application %s, treating redelivery as done",
                event.number,
                event.application_token,
                extra={"application_token": event.application_token, "number": event.number},
            )
            return CreationOutcome.ALREADY_EXISTS

        logger.info(
            "Created chat %s for application %s",
            event.number,
            event.application_token,
            extra={"application_token": event.application_token, "number": event.number},
        )
        return CreationOutcome.CREATED


__all__ = ["CreateChatUseCase"]
