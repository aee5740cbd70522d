"""
CLI helpers for output formatting and settings loading.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from sentinel.core.errors import ConfigError
from sentinel.core.settings import MonitorSettings, load_settings

console = Console()
err_console = Console(stderr=True)


def settings_or_exit() -> MonitorSettings:
    """Load settings, printing the problem and exiting 1 when invalid."""
    try:
        return load_settings()
    except ConfigError as e:
        err_console.print(f"[bold red]Configuration Error:[/bold red] {e.message}")
        raise typer.Exit(code=1) from e


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {k: _plain(v) for k, v in asdict(value).items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def output_mapping(data: dict[str, Any], *, title: str = "") -> None:
    """Render a flat mapping as a two-column table."""
    table = Table(title=title or None)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(str(key), "" if value is None else str(_plain(value)))
    console.print(table)


def describe_outcome(result: Any) -> dict[str, Any]:
    """Flatten a check outcome into printable fields."""
    if is_dataclass(result) and not isinstance(result, type):
        data = {k: _plain(v) for k, v in asdict(result).items()}
        if "rows" in data:
            data["rows"] = len(data["rows"])
        return data
    if isinstance(result, dict):
        return {k: _plain(v) for k, v in result.items()}
    return {"result": _plain(result)}
