"""Metrics collection for the Chatter worker and reconciliation jobs.

Tracks, per job class:
- jobs processed (created or already present)
- jobs discarded (missing parent)
- jobs retried
- jobs moved to the dead set

and, per counted kind (application, chat):
- reconciliation runs
- aborted runs
- rows updated

All metrics are persisted in Redis with atomic INCR/INCRBY so several worker
processes can share them.
"""

import time

from pydantic import BaseModel, Field
from redis import asyncio as aioredis

from packages.common.logging import get_logger
from packages.schemas.models import CountedKind, ReconcileSummary

logger = get_logger(__name__)

JOB_OUTCOMES = ("processed", "discarded", "retried", "dead")
DEFAULT_JOB_CLASSES = ("ChatsCreatorJob", "MessageCreatorJob")


class JobCounters(BaseModel):
    """Outcome counters for one job class."""

    processed: int = Field(default=0, ge=0)
    discarded: int = Field(default=0, ge=0)
    retried: int = Field(default=0, ge=0)
    dead: int = Field(default=0, ge=0)


class ReconcileCounters(BaseModel):
    """Run counters for one reconciliation kind."""

    runs: int = Field(default=0, ge=0)
    aborted: int = Field(default=0, ge=0)
    rows_updated: int = Field(default=0, ge=0)


class MetricsSnapshot(BaseModel):
    """Snapshot of current metrics state.

    Attributes:
        jobs: Counters keyed by job class.
        reconcile: Counters keyed by counted kind.
        timestamp: Unix timestamp of snapshot.
    """

    jobs: dict[str, JobCounters] = Field(default_factory=dict)
    reconcile: dict[str, ReconcileCounters] = Field(default_factory=dict)
    timestamp: float = Field(..., description="Snapshot timestamp")


class MetricsCollector:
    """Metrics collector with Redis backend."""

    # Redis key prefixes
    KEY_PREFIX = "chatter:metrics"
    JOB_COUNTER = f"{KEY_PREFIX}:jobs:{{job_class}}:{{outcome}}"
    RECONCILE_COUNTER = f"{KEY_PREFIX}:reconcile:{{kind}}:{{field}}"

    def __init__(
        self,
        redis_client: aioredis.Redis,
        job_classes: tuple[str, ...] = DEFAULT_JOB_CLASSES,
    ) -> None:
        """Initialize metrics collector.

        Args:
            redis_client: Async Redis client for persistence.
            job_classes: Job classes reported by get_metrics.
        """
        self._redis = redis_client
        self._job_classes = job_classes

    async def record_job(self, job_class: str, outcome: str) -> None:
        """Record the outcome of one job execution.

        Raises:
            ValueError: If outcome is not one of JOB_OUTCOMES.
        """
        if outcome not in JOB_OUTCOMES:
            raise ValueError(f"Invalid outcome: {outcome}. Must be one of {JOB_OUTCOMES}")

        await self._redis.incr(self.JOB_COUNTER.format(job_class=job_class, outcome=outcome))
        logger.debug("Recorded job outcome", extra={"job_class": job_class, "outcome": outcome})

    async def record_reconcile_run(self, summary: ReconcileSummary) -> None:
        """Record one reconciliation run from its summary."""
        kind = summary.kind.value
        await self._redis.incr(self.RECONCILE_COUNTER.format(kind=kind, field="runs"))
        if summary.aborted:
            await self._redis.incr(self.RECONCILE_COUNTER.format(kind=kind, field="aborted"))
        if summary.rows_updated:
            await self._redis.incrby(
                self.RECONCILE_COUNTER.format(kind=kind, field="rows_updated"),
                summary.rows_updated,
            )

    async def get_metrics(self) -> MetricsSnapshot:
        """Get current metrics snapshot."""
        job_keys = [
            self.JOB_COUNTER.format(job_class=job_class, outcome=outcome)
            for job_class in self._job_classes
            for outcome in JOB_OUTCOMES
        ]
        reconcile_fields = tuple(ReconcileCounters.model_fields)
        reconcile_keys = [
            self.RECONCILE_COUNTER.format(kind=kind.value, field=field)
            for kind in CountedKind
            for field in reconcile_fields
        ]

        values = [self._to_int(v) for v in await self._redis.mget(job_keys + reconcile_keys)]
        job_values, reconcile_values = values[: len(job_keys)], values[len(job_keys) :]

        jobs = {
            job_class: JobCounters(
                **dict(zip(JOB_OUTCOMES, job_values[i * len(JOB_OUTCOMES) : (i + 1) * len(JOB_OUTCOMES)]))
            )
            for i, job_class in enumerate(self._job_classes)
        }
        reconcile = {
            kind.value: ReconcileCounters(
                **dict(
                    zip(
                        reconcile_fields,
                        reconcile_values[i * len(reconcile_fields) : (i + 1) * len(reconcile_fields)],
                    )
                )
            )
            for i, kind in enumerate(CountedKind)
        }

        return MetricsSnapshot(jobs=jobs, reconcile=reconcile, timestamp=time.time())

    @staticmethod
    def _to_int(value: str | bytes | None) -> int:
        return int(value) if value is not None else 0


# Export public API
__all__ = [
    "JOB_OUTCOMES",
    "JobCounters",
    "MetricsCollector",
    "MetricsSnapshot",
    "ReconcileCounters",
]
