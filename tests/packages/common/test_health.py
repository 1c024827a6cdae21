"""Tests for service health checks."""

import pytest

from packages.common import health

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_all_services_healthy(mocker):
    mocker.patch.object(health, "check_redis_health", mocker.AsyncMock(return_value=True))
    mocker.patch.object(health, "check_postgres_health", mocker.AsyncMock(return_value=True))

    status = await health.check_system_health()

    assert status == {"healthy": True, "services": {"redis": True, "postgres": True}}


@pytest.mark.asyncio
async def test_failed_or_raising_check_marks_system_unhealthy(mocker):
    mocker.patch.object(health, "check_redis_health", mocker.AsyncMock(return_value=False))
    mocker.patch.object(
        health, "check_postgres_health", mocker.AsyncMock(side_effect=RuntimeError("down"))
    )

    status = await health.check_system_health()

    assert status["healthy"] is False
    assert status["services"] == {"redis": False, "postgres": False}


@pytest.mark.asyncio
async def test_postgres_check_reports_connection_failure(mocker):
    mocker.patch.object(health, "_ping_postgres", side_effect=OSError("refused"))

    assert await health.check_postgres_health() is False
