"""CLI status command implementation.

Shows service health, queue depths and the job/reconciliation counters.
"""

import typer
from rich.console import Console
from rich.table import Table

from packages.common.factories import make_status_use_case, open_resources

console = Console()


async def status_command(verbose: bool = False) -> None:
    """Display system status.

    Args:
        verbose: Also show per-kind reconciliation counters.
    """
    try:
        async with open_resources() as resources:
            status = await make_status_use_case(resources).execute()
    except Exception as e:
        console.print(f"[red]Error retrieving status: {e}[/red]")
        raise typer.Exit(1) from e

    console.print("\n[bold cyan]System Status[/bold cyan]\n")

    health = Table(title="Service Health")
    health.add_column("Service", style="cyan")
    health.add_column("Status", style="bold")
    health.add_column("Message")
    for name in sorted(status.services):
        service = status.services[name]
        health.add_row(
            name,
            "[green]✓[/green]" if service.healthy else "[red]✗[/red]",
            service.message or ("" if service.healthy else "Service unavailable"),
        )
    console.print(health)

    queues = Table(title="Queues")
    queues.add_column("Key", style="cyan")
    queues.add_column("Depth", justify="right")
    for key, depth in status.queue_depth.items():
        queues.add_row(key, str(depth))
    console.print(queues)

    jobs = Table(title="Jobs")
    jobs.add_column("Class", style="cyan")
    for column in ("Processed", "Discarded", "Retried", "Dead"):
        jobs.add_column(column, justify="right")
    for job_class, counters in status.metrics.jobs.items():
        jobs.add_row(
            job_class,
            str(counters.processed),
            str(counters.discarded),
            str(counters.retried),
            str(counters.dead),
        )
    console.print(jobs)

    if verbose:
        reconcile = Table(title="Reconciliation")
        reconcile.add_column("Kind", style="cyan")
        reconcile.add_column("Runs", justify="right")
        reconcile.add_column("Aborted", justify="right")
        reconcile.add_column("Rows updated", justify="right")
        for kind, counters in status.metrics.reconcile.items():
            reconcile.add_row(
                kind, str(counters.runs), str(counters.aborted), str(counters.rows_updated)
            )
        console.print(reconcile)

    if not status.overall_healthy:
        raise typer.Exit(1)


__all__ = ["status_command"]
