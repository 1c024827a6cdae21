"""CreateApplicationUseCase - register an Application and seed its counter."""

import logging
from collections.abc import Callable

from packages.core.cache_keys import application_key
from packages.core.errors import DuplicateTokenError, InvalidEntityError, TokenGenerationError
from packages.core.ports.counter_store import CounterStore
from packages.core.ports.repositories import ApplicationRepository
from packages.core.tokens import TokenIssuer, generate_token
from packages.schemas.models import Application

logger = logging.getLogger(__name__)


class CreateApplicationUseCase:
    """Create an Application with a freshly issued token.

    The token is checked against existing rows before the insert; a unique
    index violation that slips through the check (concurrent creation) counts
    as one more collision and a new token is drawn. After the insert the
    chats counter key is set to 0 so the gateway can start numbering chats;
    if that write fails the new row is deleted again and the error propagates.
    """

    def __init__(
        self,
        application_repository: ApplicationRepository,
        counter_store: CounterStore,
        *,
        token_max_attempts: int = 10,
        token_generator: Callable[[], str] = generate_token,
    ) -> None:
        self.application_repository = application_repository
        self.counter_store = counter_store
        self.token_max_attempts = token_max_attempts
        self.issuer = TokenIssuer(
            application_repository.exists_token,
            max_attempts=token_max_attempts,
            generator=token_generator,
        )

    async def execute(self, name: str) -> Application:
        """Create the Application.

        Args:
            name: Display name, must not be blank.

        Returns:
            Application: The stored row, id and token populated.

        Raises:
            InvalidEntityError: If the name is blank.
            TokenGenerationError: If no unique token could be found.
        """
        if not name or not name.strip():
            raise InvalidEntityError("Application name must not be blank")

        for attempt in range(1, self.token_max_attempts + 1):
            token = self.issuer.issue()
            try:
                application = self.application_repository.create(
                    Application(token=token, name=name)
                )
            except DuplicateTokenError:
                logger.warning("Token taken at insert time, regenerating", extra={"attempt": attempt})
                continue

            try:
                await self.counter_store.set(application_key(application.token), 0)
            except Exception:
                # An application without its counter key can never receive chats.
                logger.exception(
                    "Failed to seed counter, removing application %s",
                    application.token,
                    extra={"application_token": application.token},
                )
                if application.id is not None:
                    self.application_repository.delete(application.id)
                raise

            logger.info(
                "Created application %s",
                application.token,
                extra={"application_token": application.token, "application_id": application.id},
            )
            return application

        raise TokenGenerationError(
            f"Could not store a unique token after {self.token_max_attempts} attempts"
        )


__all__ = ["CreateApplicationUseCase"]
