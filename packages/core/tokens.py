"""Application token issuance.

Tokens are 36 random characters from the base58 alphabet (digits and letters
minus ``0``, ``O``, ``I`` and ``l``). Uniqueness is checked against existing
Applications before insert and regenerated on collision; the unique index on
``applications.token`` remains the final authority.
"""

import secrets
from collections.abc import Callable

from packages.common.config import APPLICATION_TOKEN_LENGTH
from packages.common.logging import get_logger
from packages.core.errors import TokenGenerationError

logger = get_logger(__name__)

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def generate_token(length: int = APPLICATION_TOKEN_LENGTH) -> str:
    """Return a random base58 token of the given length."""
    return "".join(secrets.choice(BASE58_ALPHABET) for _ in range(length))


class TokenIssuer:
    """Issue tokens that do not collide with existing Applications.

    Attributes:
        exists: Callable answering whether a token is already taken.
        max_attempts: Candidates tried before giving up.
    """

    def __init__(
        self,
        exists: Callable[[str], bool],
        *,
        max_attempts: int = 10,
        generator: Callable[[], str] = generate_token,
    ) -> None:
        self.exists = exists
        self.max_attempts = max_attempts
        self.generator = generator

    def issue(self) -> str:
        """Return a token not currently used by any Application.

        Raises:
            TokenGenerationError: If every candidate collided.
        """
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generator()
            if not self.exists(candidate):
                return candidate
            logger.warning("Token collision, regenerating", extra={"attempt": attempt})

        raise TokenGenerationError(
            f"Could not generate a unique token after {self.max_attempts} attempts"
        )


__all__ = ["BASE58_ALPHABET", "TokenIssuer", "generate_token"]
