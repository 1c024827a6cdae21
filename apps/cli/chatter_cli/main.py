"""Chatter CLI - Typer command-line interface for the chat ingestion service."""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from apps.cli.chatter_cli.commands import app_app, chat_app, enqueue_app, message_app
from apps.cli.chatter_cli.commands.reconcile import ReconcileTarget
from apps.cli.chatter_cli.utils import async_command

app = typer.Typer(
    name="chatter",
    help="Chatter CLI - chat and message ingestion with cached counters",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


@app.command()
def init() -> None:
    """
    Initialize Chatter: verify Redis and PostgreSQL, then apply the schema.

    Safe to rerun; the schema DDL is idempotent.

    Example:
        chatter init
    """
    from apps.cli.chatter_cli.commands.init import init_command

    init_command()


@app_app.command(name="create")
@async_command
async def app_create(
    name: str = typer.Argument(..., help="Application display name"),
) -> None:
    """
    Create an application and print its token.

    Examples:
        chatter app create "Support Desk"
    """
    from apps.cli.chatter_cli.commands.lifecycle import create_application_command

    await create_application_command(name)


@app_app.command(name="delete")
@async_command
async def app_delete(
    token: str = typer.Argument(..., help="Application token"),
) -> None:
    """
    Delete an application with all its chats and messages.

    Examples:
        chatter app delete <token>
    """
    from apps.cli.chatter_cli.commands.lifecycle import delete_application_command

    await delete_application_command(token)


app.add_typer(app_app, name="app")


@chat_app.command(name="delete")
@async_command
async def chat_delete(
    token: str = typer.Argument(..., help="Application token"),
    number: int = typer.Argument(..., help="Chat number"),
) -> None:
    """Delete one chat and its messages."""
    from apps.cli.chatter_cli.commands.lifecycle import delete_chat_command

    await delete_chat_command(token, number)


app.add_typer(chat_app, name="chat")


@message_app.command(name="delete")
@async_command
async def message_delete(
    token: str = typer.Argument(..., help="Application token"),
    chat_number: int = typer.Argument(..., help="Chat number"),
    number: int = typer.Argument(..., help="Message number"),
) -> None:
    """Delete one message."""
    from apps.cli.chatter_cli.commands.lifecycle import delete_message_command

    await delete_message_command(token, chat_number, number)


app.add_typer(message_app, name="message")


@enqueue_app.command(name="chat")
@async_command
async def enqueue_chat(
    token: str = typer.Argument(..., help="Application token"),
) -> None:
    """
    Assign the next chat number and enqueue a ChatsCreatorJob.

    Examples:
        chatter enqueue chat <token>
    """
    from apps.cli.chatter_cli.commands.enqueue import enqueue_chat_command

    await enqueue_chat_command(token)


@enqueue_app.command(name="message")
@async_command
async def enqueue_message(
    token: str = typer.Argument(..., help="Application token"),
    chat_number: int = typer.Argument(..., help="Chat number"),
    body: str = typer.Argument(..., help="Message body"),
) -> None:
    """
    Assign the next message number and enqueue a MessageCreatorJob.

    Examples:
        chatter enqueue message <token> 1 "hello"
    """
    from apps.cli.chatter_cli.commands.enqueue import enqueue_message_command

    await enqueue_message_command(token, chat_number, body)


app.add_typer(enqueue_app, name="enqueue")


@app.command()
@async_command
async def reconcile(
    target: ReconcileTarget = typer.Argument(
        ReconcileTarget.ALL, help="chats, messages or all"
    ),
) -> None:
    """
    Copy cached counts into the durable store.

    Meant to be run by a scheduler:
        chats     - Application.chats_count (every 5 minutes)
        messages  - Chat.messages_count (every 5 minutes)
        all       - both

    Examples:
        chatter reconcile chats
        chatter reconcile all
    """
    from apps.cli.chatter_cli.commands.reconcile import reconcile_command

    await reconcile_command(target)


@app.command()
@async_command
async def status(
    verbose: bool = typer.Option(default=False, help="Show reconciliation counters"),
) -> None:
    """
    Display service health, queue depths and job metrics.

    Examples:
        chatter status
        chatter status --verbose
    """
    from apps.cli.chatter_cli.commands.status import status_command

    await status_command(verbose=verbose)


def main() -> None:
    """Console script entry point."""
    from packages.common.logging import setup_logging

    setup_logging()
    app()


if __name__ == "__main__":
    main()
