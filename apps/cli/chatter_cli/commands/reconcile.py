"""Reconcile command: the entry point a scheduler (cron) calls periodically.

``chats`` refreshes Application.chats_count, ``messages`` refreshes
Chat.messages_count, ``all`` runs both in that order.
"""

from __future__ import annotations

from enum import Enum

import typer
from rich.console import Console
from rich.table import Table

from packages.common.factories import make_reconcile_use_case, open_resources
from packages.schemas.models import CountedKind, ReconcileSummary

console = Console()


class ReconcileTarget(str, Enum):
    CHATS = "chats"
    MESSAGES = "messages"
    ALL = "all"


_KINDS = {
    ReconcileTarget.CHATS: [CountedKind.APPLICATION],
    ReconcileTarget.MESSAGES: [CountedKind.CHAT],
    ReconcileTarget.ALL: [CountedKind.APPLICATION, CountedKind.CHAT],
}


async def reconcile_command(target: ReconcileTarget) -> list[ReconcileSummary]:
    """Run the selected reconciliation jobs and print their summaries.

    Exits with code 1 when any run aborted.
    """
    summaries: list[ReconcileSummary] = []
    async with open_resources() as resources:
        for kind in _KINDS[target]:
            with resources.pool.get_connection() as conn:
                summaries.append(await make_reconcile_use_case(kind, conn, resources).execute())

    table = Table(title="Count Reconciliation")
    table.add_column("Kind", style="cyan")
    table.add_column("Scanned", justify="right")
    table.add_column("Hits", justify="right")
    table.add_column("Misses", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Status")
    for summary in summaries:
        table.add_row(
            summary.kind.value,
            str(summary.rows_scanned),
            str(summary.cache_hits),
            str(summary.cache_misses),
            str(summary.rows_updated),
            f"[red]aborted: {summary.error}[/red]" if summary.aborted else "[green]✓[/green]",
        )
    console.print(table)

    if any(summary.aborted for summary in summaries):
        raise typer.Exit(1)
    return summaries


__all__ = ["ReconcileTarget", "reconcile_command"]
