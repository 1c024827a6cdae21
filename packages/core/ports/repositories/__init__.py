"""Repository port definitions for core use cases."""

from __future__ import annotations

from packages.core.ports.repositories.application_repository import ApplicationRepository
from packages.core.ports.repositories.chat_repository import ChatRepository
from packages.core.ports.repositories.message_repository import MessageRepository

__all__ = ["ApplicationRepository", "ChatRepository", "MessageRepository"]
