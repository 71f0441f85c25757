"""CLI command: armprobe detect: inventory this host and classify ARM64 readiness."""

from __future__ import annotations

import json
import signal
import socket
import sys
import threading
import time
import uuid

import click
from rich.console import Console
from rich.table import Table

from armprobe.compat.classifier import CompatibilityClassifier
from armprobe.compat.loader import load_default_rules, load_rules
from armprobe.compat.models import CompatibilityStatus
from armprobe.config import ArmProbeConfig
from armprobe.detection.engine import DetectionEngine
from armprobe.detection.models import RunResult
from armprobe.probe.subprocess_ import SubprocessProbe
from armprobe.storage.sink import RepoSink

console = Console(stderr=True)

_STATUS_COLORS = {
    CompatibilityStatus.COMPATIBLE: "green",
    CompatibilityStatus.PARTIAL: "yellow",
    CompatibilityStatus.NOT_COMPATIBLE: "red",
    CompatibilityStatus.UNKNOWN: "dim",
}


@click.command()
@click.option("--scan-id", default=None, help="Identifier for this run (default: random).")
@click.option(
    "--timeout",
    "-t",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Per-probe timeout in seconds (default: 5).",
)
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum applications checked in parallel (default: CPU count).",
)
@click.option(
    "--deadline",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Stop the whole run after this many seconds.",
)
@click.option("--save", is_flag=True, help="Store the results in the local database.")
@click.option("--json", "as_json", is_flag=True, help="Print the run as JSON on stdout.")
@click.pass_context
def detect(
    ctx: click.Context,
    scan_id: str | None,
    timeout: float | None,
    workers: int | None,
    deadline: float | None,
    save: bool,
    as_json: bool,
) -> None:
    """Detect installed server applications and their Graviton compatibility."""
    config = ArmProbeConfig.load()
    rules_path = ctx.obj.get("rules_path") or config.rules_path
    rules = load_rules(rules_path) if rules_path else load_default_rules()
    scan_id = scan_id or uuid.uuid4().hex[:12]

    sink = RepoSink(config.database) if save else None
    engine = DetectionEngine(
        runner=SubprocessProbe(),
        classifier=CompatibilityClassifier(rules),
        sink=sink,
        timeout=timeout or config.probe_timeout,
        max_workers=workers or config.max_workers,
    )

    if not as_json:
        console.print(
            f"[bold]armprobe[/bold] scanning [cyan]{socket.gethostname()}[/cyan] "
            f"with rules [cyan]{rules.name}[/cyan] (scan {scan_id})\n"
        )

    cancel = threading.Event()
    run_deadline = time.monotonic() + deadline if deadline else None
    holder: list[RunResult] = []

    def _run() -> None:
        holder.append(engine.detect(scan_id, cancel=cancel, deadline=run_deadline))

    def _signal_handler(signum: int, frame: object) -> None:
        console.print("\n[dim]Stopping...[/dim]")
        cancel.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    # Detection in a worker thread so signals reach the main thread
    worker = threading.Thread(target=_run, daemon=True)
    worker.start()
    worker.join()

    try:
        result = holder[0]
        if sink is not None:
            sink.save_run(result, hostname=socket.gethostname())
    finally:
        if sink is not None:
            sink.close()

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)
        if sink is not None:
            console.print(f"Saved to [cyan]{config.database}[/cyan]")

    if any(r.status == CompatibilityStatus.NOT_COMPATIBLE for r in result.records):
        if not as_json:
            console.print("\n[red]Some applications are not ARM64 compatible[/red]")
        sys.exit(1)


def _print_result(result: RunResult) -> None:
    if not result.records:
        console.print("[green]No known server applications detected.[/green]")
    else:
        table = Table(title="Detected applications", show_lines=False)
        table.add_column("Application", style="bold")
        table.add_column("Category")
        table.add_column("Version", justify="right")
        table.add_column("Detected by")
        table.add_column("Graviton", width=16)
        table.add_column("Notes", max_width=60)

        for record in result.records:
            color = _STATUS_COLORS.get(record.status, "white")
            table.add_row(
                record.application,
                record.category.value,
                record.version,
                record.method.value,
                f"[{color}]{record.status.value}[/{color}]",
                record.notes,
            )
        console.print(table)
        _print_breakdown(result)

    if result.errors:
        errors = Table(title="Errors", show_lines=False)
        errors.add_column("Scope", style="cyan")
        errors.add_column("Kind", style="yellow")
        errors.add_column("Message", max_width=80)
        for error in result.errors:
            errors.add_row(error.application, error.kind.value, error.message)
        console.print(errors)

    console.print(
        f"\nChecked in {result.duration:.2f}s: "
        f"{len(result.records)} detected, {len(result.errors)} error(s)"
    )


def _print_breakdown(result: RunResult) -> None:
    summary = result.summary()

    table = Table(title="Graviton readiness", show_lines=False)
    table.add_column("Status")
    table.add_column("Applications", justify="right")
    table.add_column("Share", justify="right")
    for status, count in result.status_counts().items():
        color = _STATUS_COLORS.get(status, "white")
        percent = summary["by_status"][status.value]["percent"]
        table.add_row(f"[{color}]{status.value}[/{color}]", str(count), f"{percent:.0f}%")
    console.print(table)

    categories = ", ".join(f"{name} {count}" for name, count in summary["by_category"].items())
    console.print(f"By category: {categories}")
