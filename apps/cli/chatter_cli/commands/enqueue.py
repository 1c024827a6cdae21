"""Enqueue commands: drive the creation pipeline like the gateway does."""

from __future__ import annotations

import typer
from rich.console import Console

from packages.common.factories import make_producer, open_resources
from packages.core.errors import ChatterError

console = Console()


async def enqueue_chat_command(token: str) -> None:
    try:
        async with open_resources() as resources:
            event = await make_producer(resources).publish_chat(token)
    except ChatterError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1) from e

    console.print(f"[green]✓ Enqueued chat {event.number}[/green] for application {token}")


async def enqueue_message_command(token: str, chat_number: int, body: str) -> None:
    try:
        async with open_resources() as resources:
            event = await make_producer(resources).publish_message(token, chat_number, body)
    except ChatterError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1) from e

    console.print(f"[green]✓ Enqueued message {event.number}[/green] in chat {chat_number}")


__all__ = ["enqueue_chat_command", "enqueue_message_command"]
