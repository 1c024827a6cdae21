"""Reconciliation of cached child counts into the durable store.

Two periodic jobs share one algorithm:

- ReconcileApplicationsChatsCountUseCase: Application.chats_count from
  ``application:<token>``.
- ReconcileChatsMessagesCountUseCase: Chat.messages_count from
  ``application:<token>:chat:<number>``.

Rows are walked in fixed-size batches. For each batch the counter keys are
read in one round trip; rows whose key is absent are skipped and keep their
persisted count; present values are staged and written with one bulk update
per batch. The durable count is overwritten with the cached value, never
incremented, so a rerun is harmless and counts lag the cache by at most one
interval.

A run that hits an unexpected error logs it, records the abort metric and
stops. Batches already written stay committed; nothing is retried until the
next scheduled run.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from typing import Any, Generic, TypeVar

from packages.common.metrics import MetricsCollector
from packages.common.tracing import TracingContext
from packages.core.batching import StreamingBatch
from packages.core.cache_keys import application_key, chat_key
from packages.core.ports.counter_store import CounterStore
from packages.core.ports.repositories import ApplicationRepository, ChatRepository
from packages.schemas.models import CountedKind, CountRecord, ReconcileSummary

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT")

DEFAULT_BATCH_SIZE = 1000


def parse_cached_count(raw: Any, key: str) -> int | None:
    """Interpret a raw Counter Store value.

    Returns None for absent, empty or non-integer values. Negative values
    (more deletes than the gateway counted) are clamped to zero.
    """
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode()
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None

    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer cached count", extra={"key": key, "value": str(raw)})
        return None

    if value < 0:
        logger.warning("Clamping negative cached count to 0", extra={"key": key, "value": value})
        return 0
    return value


class ReconcileCountsUseCase(ABC, Generic[RowT]):
    """Template for harvesting cached counters into a count column."""

    kind: CountedKind

    def __init__(
        self,
        counter_store: CounterStore,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        metrics: MetricsCollector | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.counter_store = counter_store
        self.batch_size = batch_size
        self.metrics = metrics

    @abstractmethod
    def iter_batches(self) -> Iterator[list[RowT]]:
        """Yield rows batch_size at a time."""

    @abstractmethod
    def cache_key(self, row: RowT) -> str:
        """Counter key holding the cached count of the row."""

    @abstractmethod
    def row_id(self, row: RowT) -> int:
        """Primary key of the row."""

    @abstractmethod
    def write(self, records: Sequence[CountRecord]) -> int:
        """Persist staged counts, returning the number of rows updated."""

    async def execute(self) -> ReconcileSummary:
        """Run one reconciliation pass.

        Returns:
            ReconcileSummary: Counters for the run; ``aborted`` is set when the
            run stopped on an error.
        """
        summary = ReconcileSummary(kind=self.kind)
        batch: StreamingBatch[CountRecord] = StreamingBatch(self.batch_size, self._flush)

        with TracingContext():
            logger.info("Starting %s count reconciliation", self.kind.value)
            try:
                for rows in self.iter_batches():
                    await self._stage_batch(rows, batch, summary)
                    batch.flush()
            except Exception as e:
                summary.aborted = True
                summary.error = f"{type(e).__name__}: {e}"
                logger.exception(
                    "%s count reconciliation aborted", self.kind.value, extra={"kind": self.kind.value}
                )
            finally:
                summary.rows_updated = batch.rows_written
                summary.batches_flushed = batch.flush_count

            await self._record_metrics(summary)
            logger.info(
                "Finished %s count reconciliation",
                self.kind.value,
                extra=summary.model_dump(mode="json"),
            )
        return summary

    def _flush(self, records: list[CountRecord]) -> int:
        updated = self.write(records)
        logger.debug(
            "Flushed reconciliation batch",
            extra={"kind": self.kind.value, "records": len(records), "rows_updated": updated},
        )
        return updated

    async def _stage_batch(
        self,
        rows: list[RowT],
        batch: StreamingBatch[CountRecord],
        summary: ReconcileSummary,
    ) -> None:
        if not rows:
            return

        keys = [self.cache_key(row) for row in rows]
        raw_values = await self.counter_store.get_many(keys)

        for row, key, raw in zip(rows, keys, raw_values, strict=True):
            summary.rows_scanned += 1
            count = parse_cached_count(raw, key)
            if count is None:
                summary.cache_misses += 1
                continue
            summary.cache_hits += 1
            batch.add(CountRecord(row_id=self.row_id(row), count=count))

    async def _record_metrics(self, summary: ReconcileSummary) -> None:
        if self.metrics is None:
            return
        try:
            await self.metrics.record_reconcile_run(summary)
        except Exception:
            logger.warning("Failed to record reconciliation metrics", exc_info=True)


class ReconcileApplicationsChatsCountUseCase(ReconcileCountsUseCase[Any]):
    """Overwrite Application.chats_count with the cached chat counters."""

    kind = CountedKind.APPLICATION

    def __init__(
        self,
        application_repository: ApplicationRepository,
        counter_store: CounterStore,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        metrics: MetricsCollector | None = None,
    ) -> None:
        super().__init__(counter_store, batch_size=batch_size, metrics=metrics)
        self.application_repository = application_repository

    def iter_batches(self) -> Iterator[list[Any]]:
        return self.application_repository.iter_batches(self.batch_size)

    def cache_key(self, row: Any) -> str:
        return application_key(row.token)

    def row_id(self, row: Any) -> int:
        return int(row.id)

    def write(self, records: Sequence[CountRecord]) -> int:
        return self.application_repository.bulk_update_chats_count(records)


class ReconcileChatsMessagesCountUseCase(ReconcileCountsUseCase[Any]):
    """Overwrite Chat.messages_count with the cached message counters."""

    kind = CountedKind.CHAT

    def __init__(
        self,
        chat_repository: ChatRepository,
        counter_store: CounterStore,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        metrics: MetricsCollector | None = None,
    ) -> None:
        super().__init__(counter_store, batch_size=batch_size, metrics=metrics)
        self.chat_repository = chat_repository

    def iter_batches(self) -> Iterator[list[Any]]:
        return self.chat_repository.iter_batches_with_token(self.batch_size)

    def cache_key(self, row: Any) -> str:
        chat, token = row
        return chat_key(token, chat.number)

    def row_id(self, row: Any) -> int:
        chat, _token = row
        return int(chat.id)

    def write(self, records: Sequence[CountRecord]) -> int:
        return self.chat_repository.bulk_update_messages_count(records)


__all__ = [
    "ReconcileApplicationsChatsCountUseCase",
    "ReconcileChatsMessagesCountUseCase",
    "ReconcileCountsUseCase",
    "parse_cached_count",
]
