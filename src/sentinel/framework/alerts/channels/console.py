"""Console alert channel for development and dry runs."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from sentinel.framework.alerts.base import BaseChannel
from sentinel.framework.alerts.protocol import Alert, AlertSeverity, ChannelType

_BORDER = {
    AlertSeverity.INFO: "blue",
    AlertSeverity.WARNING: "yellow",
    AlertSeverity.ERROR: "red",
    AlertSeverity.CRITICAL: "bold magenta",
}


class ConsoleChannel(BaseChannel):
    """Renders each alert as a rich panel on stderr."""

    channel_type = ChannelType.CONSOLE

    def __init__(self, name: str = "console", *, console: Console | None = None, **kwargs: Any):
        super().__init__(name, **kwargs)
        self._console = console or Console(stderr=True)

    def _send(self, alert: Alert) -> None:
        to = ", ".join(alert.recipients) or "(no recipients)"
        self._console.print(
            Panel(
                Text(alert.body),
                title=f"[{alert.severity.value}] {escape(alert.title)}",
                subtitle=escape(f"{alert.check} → {to}"),
                border_style=_BORDER[alert.severity],
            )
        )
