"""Application repository port definition."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence

from packages.schemas.models import Application, CountRecord


class ApplicationRepository(ABC):
    """Repository abstraction for Application rows."""

    @abstractmethod
    def find_by_token(self, token: str) -> Application | None:
        """Retrieve an Application by its token."""

    @abstractmethod
    def exists_token(self, token: str) -> bool:
        """Return whether any Application already uses the token."""

    @abstractmethod
    def create(self, application: Application) -> Application:
        """Insert an Application, returning it with its id.

        Raises:
            DuplicateTokenError: If the token is already taken.
        """

    @abstractmethod
    def delete(self, application_id: int) -> bool:
        """Delete an Application; Chats and Messages go with it."""

    @abstractmethod
    def iter_batches(self, batch_size: int) -> Iterator[list[Application]]:
        """Yield every Application in id order, batch_size rows at a time."""

    @abstractmethod
    def bulk_update_chats_count(self, records: Sequence[CountRecord]) -> int:
        """Overwrite chats_count for the given rows in one statement."""


__all__ = ["ApplicationRepository"]
