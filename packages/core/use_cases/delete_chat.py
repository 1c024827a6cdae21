"""DeleteChatUseCase - remove one Chat and adjust the cached counters."""

import logging

from packages.core.cache_keys import application_key, chat_key
from packages.core.errors import ParentNotFoundError
from packages.core.ports.counter_store import CounterStore
from packages.core.ports.repositories import ApplicationRepository, ChatRepository

logger = logging.getLogger(__name__)


class DeleteChatUseCase:
    """Delete a Chat (its Messages cascade), decrement the application
    counter and evict the chat counter.

    The decrement happens before the row delete and is undone if the delete
    fails.
    """

    def __init__(
        self,
        application_repository: ApplicationRepository,
        chat_repository: ChatRepository,
        counter_store: CounterStore,
    ) -> None:
        self.application_repository = application_repository
        self.chat_repository = chat_repository
        self.counter_store = counter_store

    async def execute(self, token: str, number: int) -> None:
        """Delete chat ``number`` of the application ``token``.

        Raises:
            ParentNotFoundError: If the Application or the Chat does not exist.
        """
        application = self.application_repository.find_by_token(token)
        if application is None or application.id is None:
            raise ParentNotFoundError(f"Application {token} not found", application_token=token)

        chat = self.chat_repository.find_by_number(application.id, number)
        if chat is None or chat.id is None:
            raise ParentNotFoundError(
                f"Chat {number} not found for application {token}",
                application_token=token,
                chat_number=number,
            )

        # Counter first: a Counter Store failure leaves the row in place.
        await self.counter_store.decr(application_key(token))
        try:
            self.chat_repository.delete(chat.id)
        except Exception:
            await self.counter_store.incr(application_key(token))
            raise
        await self.counter_store.delete(chat_key(token, number))

        logger.info(
            "Deleted chat %s of application %s",
            number,
            token,
            extra={"application_token": token, "number": number},
        )


__all__ = ["DeleteChatUseCase"]
