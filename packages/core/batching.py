"""Streaming batch buffer with flush-on-full-or-end semantics."""

from collections.abc import Callable
from types import TracebackType
from typing import Generic, TypeVar

T = TypeVar("T")


class StreamingBatch(Generic[T]):
    """Bounded in-memory buffer that hands full batches to a flush callback.

    Items are appended with ``add``; when the buffer reaches ``capacity`` it is
    flushed automatically. ``flush`` forces a write of whatever is staged (a
    no-op when empty) and ``close`` flushes the remainder. Used as a context
    manager, the remainder is flushed on normal exit only, so a failure never
    writes a half-built batch.

    Example:
        >>> with StreamingBatch(1000, store.bulk_update_chats_count) as batch:
        ...     for record in records:
        ...         batch.add(record)
    """

    def __init__(self, capacity: int, flush_fn: Callable[[list[T]], int | None]) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._flush_fn = flush_fn
        self._items: list[T] = []
        self.flush_count = 0
        self.items_flushed = 0
        self.rows_written = 0

    def __len__(self) -> int:
        return len(self._items)

    def add(self, item: T) -> None:
        self._items.append(item)
        if len(self._items) >= self.capacity:
            self.flush()

    def flush(self) -> int:
        """Write staged items, returning how many were handed to the callback."""
        if not self._items:
            return 0

        items, self._items = self._items, []
        written = self._flush_fn(items)
        self.flush_count += 1
        self.items_flushed += len(items)
        self.rows_written += len(items) if written is None else written
        return len(items)

    def close(self) -> int:
        return self.flush()

    def __enter__(self) -> "StreamingBatch[T]":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()


__all__ = ["StreamingBatch"]
