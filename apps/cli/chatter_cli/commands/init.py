"""Init command for Chatter CLI.

1. Checks system health (Redis and PostgreSQL must be reachable)
2. Applies the PostgreSQL schema (idempotent)
"""

import asyncio

import typer
from rich.console import Console

from packages.common.config import get_config
from packages.common.db_schema import create_schema
from packages.common.health import check_system_health
from packages.common.logging import get_logger

console = Console()
logger = get_logger(__name__)


def init_command() -> None:
    """Initialize the Chatter database schema.

    Exits with code 1 if any step fails.
    """
    try:
        console.print("[yellow]Checking system health...[/yellow]")
        health = asyncio.run(check_system_health())

        if not health["healthy"]:
            console.print("[red]❌ System health check failed:[/red]")
            for service, status in health["services"].items():
                if not status:
                    console.print(f"  - {service}: unhealthy")
            raise typer.Exit(1) from None

        console.print("[green]✓ All services healthy[/green]")

        console.print("[yellow]Creating PostgreSQL schema...[/yellow]")
        applied = create_schema(get_config())
        if applied:
            console.print("[green]✓ PostgreSQL schema created[/green]")
        else:
            console.print("[green]✓ PostgreSQL schema already up to date[/green]")

        console.print("[bold green]✅ Chatter initialized successfully![/bold green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]❌ Initialization failed: {e}[/red]")
        logger.exception("Initialization failed")
        raise typer.Exit(1) from e


__all__ = ["init_command"]
