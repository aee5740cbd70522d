"""
Alert types shared by the notifier, the registry and every channel.

An ``Alert`` is one notification the engine decided to send: a title and
a plain-text body for a list of recipients, tagged with the check that
produced it. Channels report back with a ``DeliveryResult`` instead of
raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

_RANK = {"INFO": 0, "WARNING": 1, "ERROR": 2, "CRITICAL": 3}


class AlertSeverity(str, Enum):
    """Ordered severity: INFO < WARNING < ERROR < CRITICAL."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _RANK[self.value]

    def __lt__(self, other: AlertSeverity) -> bool:
        return self.rank < other.rank

    def __le__(self, other: AlertSeverity) -> bool:
        return self.rank <= other.rank

    def __gt__(self, other: AlertSeverity) -> bool:
        return self.rank > other.rank

    def __ge__(self, other: AlertSeverity) -> bool:
        return self.rank >= other.rank


class ChannelType(str, Enum):
    EMAIL = "email"
    WEBHOOK = "webhook"
    CONSOLE = "console"


@dataclass
class Alert:
    """One notification on its way to the channels.

    ``recipients`` is the address list chosen by the engine. Channels that
    address people (email) use it; the others only display it.
    """

    severity: AlertSeverity
    title: str
    body: str
    check: str
    recipients: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def fingerprint(self) -> str:
        """Stable key for grouping repeats of the same alarm."""
        return f"{self.check}:{self.severity.value}:{self.title}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "title": self.title,
            "body": self.body,
            "check": self.check,
            "recipients": list(self.recipients),
            "created_at": self.created_at.isoformat(timespec="seconds"),
            "fingerprint": self.fingerprint,
        }


@dataclass
class DeliveryResult:
    """Outcome of handing one alert to one channel."""

    channel: str
    delivered: bool
    detail: str | None = None
    error: Exception | None = None

    @classmethod
    def ok(cls, channel: str, detail: str | None = None) -> DeliveryResult:
        return cls(channel=channel, delivered=True, detail=detail)

    @classmethod
    def failed(cls, channel: str, error: Exception) -> DeliveryResult:
        return cls(channel=channel, delivered=False, detail=str(error), error=error)


@runtime_checkable
class AlertChannel(Protocol):
    """What the registry needs from a channel."""

    @property
    def name(self) -> str: ...

    @property
    def channel_type(self) -> ChannelType: ...

    def accepts(self, alert: Alert) -> bool:
        """Whether this channel wants the alert at all (severity, enabled)."""
        ...

    def deliver(self, alert: Alert) -> DeliveryResult:
        """Hand the alert off. Reports failure in the result, never raises."""
        ...


__all__ = [
    "Alert",
    "AlertChannel",
    "AlertSeverity",
    "ChannelType",
    "DeliveryResult",
]
