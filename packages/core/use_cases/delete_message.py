"""DeleteMessageUseCase - remove one Message and decrement its chat counter."""

import logging

from packages.core.cache_keys import chat_key
from packages.core.errors import ParentNotFoundError
from packages.core.ports.counter_store import CounterStore
from packages.core.ports.repositories import (
    ApplicationRepository,
    ChatRepository,
    MessageRepository,
)

logger = logging.getLogger(__name__)


class DeleteMessageUseCase:
    def __init__(
        self,
        application_repository: ApplicationRepository,
        chat_repository: ChatRepository,
        message_repository: MessageRepository,
        counter_store: CounterStore,
    ) -> None:
        self.application_repository = application_repository
        self.chat_repository = chat_repository
        self.message_repository = message_repository
        self.counter_store = counter_store

    async def execute(self, token: str, chat_number: int, number: int) -> None:
        """Delete message ``number`` of chat ``chat_number``.

        Raises:
            ParentNotFoundError: If the Application, Chat or Message does not exist.
        """
        application = self.application_repository.find_by_token(token)
        if application is None or application.id is None:
            raise ParentNotFoundError(f"Application {token} not found", application_token=token)

        chat = self.chat_repository.find_by_number(application.id, chat_number)
        if chat is None or chat.id is None:
            raise ParentNotFoundError(
                f"Chat {chat_number} not found for application {token}",
                application_token=token,
                chat_number=chat_number,
            )

        message = self.message_repository.find_by_number(chat.id, number)
        if message is None or message.id is None:
            raise ParentNotFoundError(
                f"Message {number} not found in chat {chat_number}",
                application_token=token,
                chat_number=chat_number,
            )

        await self.counter_store.decr(chat_key(token, chat_number))
        try:
            self.message_repository.delete(message.id)
        except Exception:
            await self.counter_store.incr(chat_key(token, chat_number))
            raise

        logger.info(
            "Deleted message %s of chat %s",
            number,
            chat_number,
            extra={"application_token": token, "chat_number": chat_number, "number": number},
        )


__all__ = ["DeleteMessageUseCase"]
