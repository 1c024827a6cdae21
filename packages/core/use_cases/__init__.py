"""Core use cases - Application service orchestration.

Use cases orchestrate workflows across ports without containing framework-specific code.
"""

from __future__ import annotations

from packages.core.use_cases.create_application import CreateApplicationUseCase
from packages.core.use_cases.create_chat import CreateChatUseCase
from packages.core.use_cases.create_message import CreateMessageUseCase
from packages.core.use_cases.delete_application import DeleteApplicationUseCase
from packages.core.use_cases.delete_chat import DeleteChatUseCase
from packages.core.use_cases.delete_message import DeleteMessageUseCase
from packages.core.use_cases.get_status import GetStatusUseCase, ServiceHealth, SystemStatus
from packages.core.use_cases.reconcile_counts import (
    ReconcileApplicationsChatsCountUseCase,
    ReconcileChatsMessagesCountUseCase,
)

__all__ = [
    "CreateApplicationUseCase",
    "CreateChatUseCase",
    "CreateMessageUseCase",
    "DeleteApplicationUseCase",
    "DeleteChatUseCase",
    "DeleteMessageUseCase",
    "GetStatusUseCase",
    "ReconcileApplicationsChatsCountUseCase",
    "ReconcileChatsMessagesCountUseCase",
    "ServiceHealth",
    "SystemStatus",
]
