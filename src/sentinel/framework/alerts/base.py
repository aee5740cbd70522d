"""
Shared channel behaviour.

``BaseChannel.deliver`` applies the severity/enabled filter and turns
transport exceptions into failed ``DeliveryResult`` values, so concrete
channels only implement ``_send`` and let their transport raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from sentinel.core.errors import DeliveryError
from sentinel.framework.alerts.protocol import Alert, AlertSeverity, ChannelType, DeliveryResult


class BaseChannel(ABC):
    channel_type: ChannelType
    # Exceptions that mean "transport trouble" for this channel
    transport_errors: tuple[type[Exception], ...] = (OSError,)

    def __init__(
        self,
        name: str,
        *,
        min_severity: AlertSeverity = AlertSeverity.INFO,
        enabled: bool = True,
    ):
        self.name = name
        self.min_severity = min_severity
        self.enabled = enabled

    def accepts(self, alert: Alert) -> bool:
        return self.enabled and alert.severity >= self.min_severity

    def deliver(self, alert: Alert) -> DeliveryResult:
        try:
            detail = self._send(alert)
        except self.transport_errors as exc:
            return DeliveryResult.failed(self.name, DeliveryError(str(exc) or type(exc).__name__, cause=exc))
        except ValueError as exc:
            return DeliveryResult.failed(self.name, exc)
        return DeliveryResult.ok(self.name, detail)

    @abstractmethod
    def _send(self, alert: Alert) -> str | None:
        """Transmit the alert; return a short detail string or None."""
