"""DeleteApplicationUseCase - remove an Application and its cached counters."""

import logging

from packages.core.cache_keys import application_key, chat_key
from packages.core.errors import ParentNotFoundError
from packages.core.ports.counter_store import CounterStore
from packages.core.ports.repositories import ApplicationRepository, ChatRepository

logger = logging.getLogger(__name__)


class DeleteApplicationUseCase:
    """Delete an Application together with its Chats and Messages.

    Chat keys are not evicted by evicting the application key, so each one is
    removed explicitly before the row goes. The application key is evicted
    last, never decremented.
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

    async def execute(self, token: str) -> None:
        application = self.application_repository.find_by_token(token)
        if application is None or application.id is None:
            raise ParentNotFoundError(f"Application {token} not found", application_token=token)

        numbers = self.chat_repository.list_numbers(application.id)
        if numbers:
            await self.counter_store.delete(*(chat_key(token, n) for n in numbers))

        self.application_repository.delete(application.id)
        await self.counter_store.delete(application_key(token))

        logger.info(
            "Deleted application %s",
            token,
            extra={"application_token": token, "chats_evicted": len(numbers)},
        )


__all__ = ["DeleteApplicationUseCase"]
