"""
Root Typer application for the ingest-sentinel CLI.

Commands:
    run      start the scheduler and block until SIGINT/SIGTERM
    check    run one check immediately and print its outcome
    config   show the effective configuration
    jobs     list scheduled checks with their next fire times
"""

from __future__ import annotations

import signal
import threading
from datetime import datetime
from enum import Enum

import typer
from croniter import croniter
from rich.table import Table

from sentinel.cli.utils import console, describe_outcome, err_console, output_mapping, settings_or_exit
from sentinel.core.errors import ConfigError
from sentinel.core.scheduling import create_backend
from sentinel.engine.monitor import CHECK_NAMES, Monitor
from sentinel.framework.logging import configure_logging

app = typer.Typer(
    name="sentinel",
    help="ingest-sentinel, a health monitor for the content-ingestion pipeline.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

CheckName = Enum("CheckName", {name.replace("-", "_"): name for name in CHECK_NAMES}, type=str)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("ingest-sentinel")
        except PackageNotFoundError:
            from sentinel import __version__ as v
        typer.echo(f"ingest-sentinel {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """ingest-sentinel CLI. Run, inspect and trigger monitor checks."""


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("run")
def run_monitor() -> None:
    """Start the scheduler and run every check on its cron until stopped."""
    settings = settings_or_exit()
    configure_logging(level=settings.log_level, format=settings.log_format)

    try:
        monitor = Monitor.from_settings(settings)
        backend = create_backend(settings.scheduler_backend)
        monitor.initialize()
        monitor.register(backend)
    except ConfigError as e:
        err_console.print(f"[bold red]Configuration Error:[/bold red] {e.message}")
        raise typer.Exit(code=1) from e

    stop = threading.Event()

    def _handle_signal(signum: int, _frame: object) -> None:
        console.print(f"[yellow]Received signal {signum}, shutting down...[/yellow]")
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    backend.start()
    console.print(
        f"[green]Monitoring {settings.host}[/green] with {len(monitor.jobs())} jobs "
        f"on the [bold]{backend.name}[/bold] backend"
    )
    try:
        stop.wait()
    finally:
        backend.stop()
        console.print("[dim]Scheduler stopped.[/dim]")


@app.command("check")
def run_check(
    name: CheckName = typer.Argument(..., help="Check to run now"),  # type: ignore[valid-type]
    last_id: int | None = typer.Option(
        None,
        "--last-id",
        min=0,
        help="Seed the sources cursor; without it a one-off 'check sources' only bootstraps",
    ),
) -> None:
    """Run one check immediately, outside the schedule.

    Each invocation starts from fresh engine state. ``check sources`` with
    no ``--last-id`` therefore only records the current maximum id; pass
    ``--last-id`` to report the sources added after that id.
    """
    settings = settings_or_exit()
    configure_logging(level=settings.log_level, format=settings.log_format)

    monitor = Monitor.from_settings(settings)
    if last_id is not None:
        monitor.state.cursor.last_seen_id = last_id
    if name.value == "data-flow":
        monitor.initialize()
    result = monitor.run_check(name.value)

    output_mapping(describe_outcome(result), title=f"Check: {name.value}")
    output_mapping(monitor.state.snapshot(), title="Engine state")


@app.command("config")
def show_config() -> None:
    """Show the effective configuration."""
    settings = settings_or_exit()

    table = Table(title="Configuration")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        if key == "smtp_password" and value is not None:
            value = "********"
        table.add_row(key, "" if value is None else str(value))
    console.print(table)


@app.command("jobs")
def list_jobs(
    count: int = typer.Option(1, "--next", "-n", min=1, help="Fire times to show per job"),
) -> None:
    """List scheduled checks with their upcoming fire times."""
    settings = settings_or_exit()
    now = datetime.now()

    table = Table(title="Scheduled checks")
    table.add_column("Check", style="bold")
    table.add_column("Cron")
    table.add_column("Next run")
    for name, cron in settings.schedules.items():
        it = croniter(cron, now)
        upcoming = [it.get_next(datetime).strftime("%Y-%m-%d %H:%M") for _ in range(count)]
        table.add_row(name, cron, ", ".join(upcoming))
    console.print(table)
