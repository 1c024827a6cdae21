"""Application, chat and message lifecycle commands.

Thin wrappers around the lifecycle use cases: each command opens the shared
resources, borrows one PostgreSQL connection and reports the result.
Missing entities exit with code 1.
"""

from __future__ import annotations

import typer
from rich.console import Console

from packages.common.factories import (
    make_create_application_use_case,
    make_delete_application_use_case,
    make_delete_chat_use_case,
    make_delete_message_use_case,
    open_resources,
)
from packages.common.logging import get_logger
from packages.core.errors import ChatterError, ParentNotFoundError

console = Console()
logger = get_logger(__name__)


async def create_application_command(name: str) -> None:
    try:
        async with open_resources() as resources:
            with resources.pool.get_connection() as conn:
                application = await make_create_application_use_case(conn, resources).execute(name)
    except ChatterError as e:
        console.print(f"[red]❌ Could not create application: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(f"[green]✓ Created application[/green] {application.name}")
    console.print(f"  token: [bold]{application.token}[/bold]")


async def delete_application_command(token: str) -> None:
    try:
        async with open_resources() as resources:
            with resources.pool.get_connection() as conn:
                await make_delete_application_use_case(conn, resources).execute(token)
    except ParentNotFoundError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1) from e

    console.print(f"[green]✓ Deleted application {token}[/green]")


async def delete_chat_command(token: str, number: int) -> None:
    try:
        async with open_resources() as resources:
            with resources.pool.get_connection() as conn:
                await make_delete_chat_use_case(conn, resources).execute(token, number)
    except ParentNotFoundError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1) from e

    console.print(f"[green]✓ Deleted chat {number} of application {token}[/green]")


async def delete_message_command(token: str, chat_number: int, number: int) -> None:
    try:
        async with open_resources() as resources:
            with resources.pool.get_connection() as conn:
                await make_delete_message_use_case(conn, resources).execute(
                    token, chat_number, number
                )
    except ParentNotFoundError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1) from e

    console.print(f"[green]✓ Deleted message {number} of chat {chat_number}[/green]")


__all__ = [
    "create_application_command",
    "delete_application_command",
    "delete_chat_command",
    "delete_message_command",
]
