"""Reference producer for chat and message creation events.

This is the increment path of the counter protocol, the same steps the
external gateway performs: assign the next number from a sequence key, bump
the parent's count key, seed the new chat's count key and enqueue the job.
The worker never calls it; the CLI and tests use it to drive the pipeline end
to end.
"""

from collections.abc import Callable
from datetime import UTC, datetime

from packages.common.logging import get_logger
from packages.core.cache_keys import (
    application_key,
    chat_key,
    last_chat_number_key,
    last_message_number_key,
)
from packages.core.errors import InvalidEntityError, ParentNotFoundError
from packages.core.ports.counter_store import CounterStore
from packages.core.ports.event_publisher import CreationEventPublisher
from packages.schemas.models import ChatCreatedEvent, MessageCreatedEvent

logger = get_logger(__name__)


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


class ChatEventProducer:
    """Assign numbers, update counters and enqueue creation jobs.

    Attributes:
        counter_store: Counter Store shared with the worker.
        publisher: Queue the events are pushed to.
    """

    def __init__(
        self,
        counter_store: CounterStore,
        publisher: CreationEventPublisher,
        *,
        clock: Callable[[], str] = _timestamp,
    ) -> None:
        self.counter_store = counter_store
        self.publisher = publisher
        self.clock = clock

    async def publish_chat(self, token: str) -> ChatCreatedEvent:
        """Enqueue the next chat of an Application.

        Raises:
            ParentNotFoundError: If the application counter key does not exist.
        """
        if not await self.counter_store.exists(application_key(token)):
            raise ParentNotFoundError(f"Application {token} not found", application_token=token)

        number = await self.counter_store.incr(last_chat_number_key(token))
        await self.counter_store.incr(application_key(token))
        await self.counter_store.set(chat_key(token, number), 0)

        event = ChatCreatedEvent(application_token=token, number=number, timestamp=self.clock())
        jid = await self.publisher.publish_chat_created(event)
        logger.info(
            "Enqueued chat %s for application %s",
            number,
            token,
            extra={"application_token": token, "number": number, "jid": jid},
        )
        return event

    async def publish_message(self, token: str, chat_number: int, body: str) -> MessageCreatedEvent:
        """Enqueue the next message of a Chat.

        Raises:
            InvalidEntityError: If the body is empty.
            ParentNotFoundError: If the chat counter key does not exist.
        """
        if not body:
            raise InvalidEntityError("Message body must not be empty")
        if not await self.counter_store.exists(chat_key(token, chat_number)):
            raise ParentNotFoundError(
                f"Chat {chat_number} not found for application {token}",
                application_token=token,
                chat_number=chat_number,
            )

        number = await self.counter_store.incr(last_message_number_key(token, chat_number))
        await self.counter_store.incr(chat_key(token, chat_number))

        event = MessageCreatedEvent(
            application_token=token,
            chat_number=chat_number,
            number=number,
            body=body,
            timestamp=self.clock(),
        )
        jid = await self.publisher.publish_message_created(event)
        logger.info(
            "Enqueued message %s for chat %s",
            number,
            chat_number,
            extra={"application_token": token, "chat_number": chat_number, "number": number, "jid": jid},
        )
        return event


__all__ = ["ChatEventProducer"]
