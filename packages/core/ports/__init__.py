"""Ports for core use-cases."""

from __future__ import annotations

from packages.core.ports.counter_store import CounterStore
from packages.core.ports.event_publisher import CreationEventPublisher
from packages.core.ports.repositories import (
    ApplicationRepository,
    ChatRepository,
    MessageRepository,
)

__all__ = [
    "ApplicationRepository",
    "ChatRepository",
    "CounterStore",
    "CreationEventPublisher",
    "MessageRepository",
]
