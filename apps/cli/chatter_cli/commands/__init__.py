"""Chatter CLI commands package.

- init: schema bootstrap
- applications / chats / messages: lifecycle operations
- enqueue: reference producer (chat and message creation events)
- reconcile: count reconciliation triggers for the scheduler
- status: service health, queue depths and metrics

Shared sub-apps are created here to avoid duplication across command modules.
"""

from __future__ import annotations

import typer

app_app = typer.Typer(name="app", help="Manage applications")
chat_app = typer.Typer(name="chat", help="Manage chats")
message_app = typer.Typer(name="message", help="Manage messages")
enqueue_app = typer.Typer(name="enqueue", help="Enqueue creation events")

__all__ = ["app_app", "chat_app", "enqueue_app", "message_app"]
