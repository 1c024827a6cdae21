"""Counter Store port.

The Counter Store is shared mutable state: the external gateway increments
it, this service decrements and evicts keys on deletion and reads it during
reconciliation. Every component that touches it receives this capability
explicitly instead of reaching for a global client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class CounterStore(ABC):
    """Atomic integer counters keyed by string."""

    @abstractmethod
    async def get(self, key: str) -> int | None:
        """Return the counter value, or None when the key is absent."""

    @abstractmethod
    async def get_many(self, keys: Sequence[str]) -> list[str | None]:
        """Read several keys in one round trip.

        Values are returned raw (as stored) in key order; absent keys are None.
        Callers decide how to treat values that are not integers.
        """

    @abstractmethod
    async def set(self, key: str, value: int) -> None:
        """Overwrite the counter."""

    @abstractmethod
    async def incr(self, key: str) -> int:
        """Atomically add one and return the new value."""

    @abstractmethod
    async def decr(self, key: str) -> int:
        """Atomically subtract one and return the new value."""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Remove keys, returning how many existed."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return whether the key is present."""


__all__ = ["CounterStore"]
