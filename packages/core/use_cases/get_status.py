"""GetStatusUseCase - System status aggregation for Chatter.

Aggregates:
- Service health (Redis, PostgreSQL)
- Queue depths (creation queues, retry set, dead set)
- Metrics snapshot (job outcomes, reconciliation runs)

Returns partial data on failures (each component fails on its own, the
aggregate carries on).
"""

import logging
import time
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, Field

from packages.common.health import SystemHealthStatus
from packages.common.metrics import MetricsCollector, MetricsSnapshot

logger = logging.getLogger(__name__)


class ServiceHealth(BaseModel):
    """Health status for a single service."""

    name: str = Field(..., description="Service name")
    healthy: bool = Field(..., description="Health status")
    message: str | None = Field(default=None, description="Status or error message")


class SystemStatus(BaseModel):
    """Aggregate system status.

    Attributes:
        overall_healthy: True if all services are healthy.
        services: Dictionary mapping service names to health status.
        queue_depth: Length of each queue key (``queue:<name>``, ``retry``, ``queue:dead``).
        metrics: Metrics snapshot.
    """

    overall_healthy: bool = Field(..., description="Overall system health")
    services: dict[str, ServiceHealth] = Field(..., description="Per-service health status")
    queue_depth: dict[str, int] = Field(..., description="Queue depth per key")
    metrics: MetricsSnapshot = Field(..., description="Metrics snapshot")


class GetStatusUseCase:
    """Use case for aggregating system status."""

    SERVICES = ("redis", "postgres")

    def __init__(
        self,
        queue_sizes: Callable[[], Awaitable[dict[str, int]]],
        metrics: MetricsCollector,
        health_checker: Callable[[], Awaitable[SystemHealthStatus]],
    ) -> None:
        """Initialize GetStatusUseCase with dependencies.

        Args:
            queue_sizes: Async callable returning queue depth per key.
            metrics: Metrics collector to snapshot.
            health_checker: Async function to check system health.
        """
        self.queue_sizes = queue_sizes
        self.metrics = metrics
        self.health_checker = health_checker

    async def execute(self) -> SystemStatus:
        """Collect health, queue depths and metrics. Never raises."""
        services, overall_healthy = await self._check_service_health()
        queue_depth = await self._get_queue_depth()
        metrics = await self._get_metrics_snapshot()

        status = SystemStatus(
            overall_healthy=overall_healthy,
            services=services,
            queue_depth=queue_depth,
            metrics=metrics,
        )
        logger.info(
            "System status collected",
            extra={"overall_healthy": overall_healthy, "queue_depth": queue_depth},
        )
        return status

    async def _check_service_health(self) -> tuple[dict[str, ServiceHealth], bool]:
        try:
            health_status = await self.health_checker()
            services = {
                name: ServiceHealth(name=name, healthy=healthy)
                for name, healthy in health_status["services"].items()
            }
            return services, health_status["healthy"]
        except Exception as e:
            logger.error(f"Health check failed: {e}", exc_info=True)
            services = {
                name: ServiceHealth(name=name, healthy=False, message=f"Health check error: {e}")
                for name in self.SERVICES
            }
            return services, False

    async def _get_queue_depth(self) -> dict[str, int]:
        try:
            return await self.queue_sizes()
        except Exception as e:
            logger.error(f"Failed to get queue depths: {e}", exc_info=True)
            return {}

    async def _get_metrics_snapshot(self) -> MetricsSnapshot:
        try:
            return await self.metrics.get_metrics()
        except Exception as e:
            logger.error(f"Failed to read metrics: {e}", exc_info=True)
            return MetricsSnapshot(timestamp=time.time())


# Export public API
__all__ = ["GetStatusUseCase", "ServiceHealth", "SystemStatus"]
