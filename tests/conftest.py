"""Shared pytest fixtures for the Chatter test suite.

Provides the in-memory fakes, a frozen clock and sample rows used across
test modules.
"""

import os
from typing import Any

import pytest

from packages.common.config import ChatterConfig
from packages.schemas.models import Application, Chat
from tests.utils.fakes import (
    FROZEN_NOW,
    TOKEN,
    InMemoryApplicationRepository,
    InMemoryChatRepository,
    InMemoryCounterStore,
    InMemoryDatabase,
    InMemoryMessageRepository,
    RecordingPublisher,
)
from tests.utils.mocks import create_mock_redis_client

# ========== Test Environment Setup ==========


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Point configuration at throwaway local services."""
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
    os.environ.setdefault("POSTGRES_USER", "chatter")
    os.environ.setdefault("POSTGRES_PASSWORD", "test")
    os.environ.setdefault("POSTGRES_DB", "chatter_test")
    yield


@pytest.fixture
def test_config() -> ChatterConfig:
    return ChatterConfig(
        redis_url="redis://test-cache:6379/0",
        postgres_host="test-db",
        postgres_password="test",
        log_level="DEBUG",
    )


# ========== Fakes ==========


@pytest.fixture
def db() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def app_repo(db: InMemoryDatabase) -> InMemoryApplicationRepository:
    return InMemoryApplicationRepository(db)


@pytest.fixture
def chat_repo(db: InMemoryDatabase) -> InMemoryChatRepository:
    return InMemoryChatRepository(db)


@pytest.fixture
def message_repo(db: InMemoryDatabase) -> InMemoryMessageRepository:
    return InMemoryMessageRepository(db)


@pytest.fixture
def counter_store() -> InMemoryCounterStore:
    return InMemoryCounterStore()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def mock_redis_client(mocker: Any) -> Any:
    return create_mock_redis_client(mocker)


@pytest.fixture
def frozen_clock():
    return lambda: FROZEN_NOW


# ========== Sample Rows ==========


@pytest.fixture
def application(app_repo: InMemoryApplicationRepository) -> Application:
    """Stored Application with token ``TOKEN``."""
    return app_repo.create(Application(token=TOKEN, name="Support Desk"))


@pytest.fixture
def chat(chat_repo: InMemoryChatRepository, application: Application) -> Chat:
    """Stored chat number 1 of ``application``."""
    return chat_repo.create(Chat(application_id=application.id, number=1))


# ========== Pytest Configuration ==========


def pytest_configure(config: Any) -> None:
    config.addinivalue_line(
        "markers",
        "unit: Fast unit tests with mocked dependencies (no services required)",
    )
    config.addinivalue_line(
        "markers",
        "integration: Integration tests requiring live PostgreSQL and Redis",
    )
