"""CLI command: armprobe history [SCAN_ID]: browse stored detection runs."""

from __future__ import annotations

import datetime

import click
from rich.console import Console
from rich.table import Table

from armprobe.config import ArmProbeConfig
from armprobe.storage.sink import RepoSink

console = Console()


@click.command()
@click.argument("scan_id", required=False)
@click.option("--limit", "-n", type=click.IntRange(min=1), default=20, help="Runs to list.")
def history(scan_id: str | None, limit: int) -> None:
    """List stored runs, or show the detections of one run."""
    config = ArmProbeConfig.load()
    if not config.database.exists():
        console.print("[dim]No stored runs yet. Use `armprobe detect --save`.[/dim]")
        return

    with RepoSink(config.database) as store:
        if scan_id is None:
            _print_runs(store.list_runs(limit=limit))
            return

        run = store.get_run(scan_id)

    if run is None:
        raise click.ClickException(f"No stored run with id {scan_id}")
    _print_run(run)


def _print_runs(runs: list[dict]) -> None:
    if not runs:
        console.print("[dim]No stored runs.[/dim]")
        return

    table = Table(title="Detection runs")
    table.add_column("Scan", style="cyan")
    table.add_column("Host")
    table.add_column("When")
    table.add_column("Detected", justify="right")
    table.add_column("Errors", justify="right")
    for run in runs:
        table.add_row(
            run["scan_id"],
            run["hostname"],
            _format_time(run["timestamp"]),
            str(run["record_count"]),
            str(run["error_count"]),
        )
    console.print(table)


def _print_run(run: dict) -> None:
    console.print(
        f"[bold]Scan {run['scan_id']}[/bold] on [cyan]{run['hostname'] or '?'}[/cyan] "
        f"at {_format_time(run['timestamp'])}"
    )
    table = Table(show_lines=False)
    table.add_column("Application", style="bold")
    table.add_column("Version", justify="right")
    table.add_column("Detected by")
    table.add_column("Graviton")
    table.add_column("Notes", max_width=60)
    for detection in run["detections"]:
        table.add_row(
            detection["application"],
            detection["version"],
            detection["method"],
            detection["status"],
            detection["notes"],
        )
    console.print(table)
    for error in run["errors"]:
        console.print(f"[yellow]{error['application']}[/yellow] {error['kind']}: {error['message']}")


def _format_time(timestamp: float) -> str:
    return datetime.datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")
