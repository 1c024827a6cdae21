"""Domain error taxonomy for the ingestion and reconciliation pipeline.

Missing parents are discards, never queue failures; every other error here
propagates to the job queue's retry path.
"""


class ChatterError(Exception):
    """Base class for Chatter domain errors."""


class InvalidEntityError(ChatterError):
    """Entity failed validation before reaching storage."""


class ParentNotFoundError(ChatterError):
    """Application or Chat referenced by an operation does not exist."""

    def __init__(self, message: str, *, application_token: str, chat_number: int | None = None) -> None:
        super().__init__(message)
        self.application_token = application_token
        self.chat_number = chat_number


class DuplicateNumberError(ChatterError):
    """Storage rejected a Chat/Message number already used under the same parent."""

    def __init__(self, message: str, *, parent_id: int, number: int) -> None:
        super().__init__(message)
        self.parent_id = parent_id
        self.number = number


class ConflictingDuplicateError(DuplicateNumberError):
    """Row with the same number exists but carries a different payload."""


class DuplicateTokenError(ChatterError):
    """Storage rejected an Application token that is already taken."""


class TokenGenerationError(ChatterError):
    """No collision-free token was found within the attempt budget."""


__all__ = [
    "ChatterError",
    "ConflictingDuplicateError",
    "DuplicateNumberError",
    "DuplicateTokenError",
    "InvalidEntityError",
    "ParentNotFoundError",
    "TokenGenerationError",
]
