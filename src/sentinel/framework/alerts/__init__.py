"""
Alert delivery: channels, registry, and the engine-facing ``Notifier``.

Usage:
    from sentinel.framework.alerts import AlertNotifier, AlertRegistry, EmailChannel

    registry = AlertRegistry()
    registry.register(EmailChannel("email", "smtp.example.com", "sentinel@example.com"))
    notifier = AlertNotifier(registry)
    notifier.notify(["oncall@example.com"], "Port connectivity alarm", "Server 10.0.0.5: unreachable ports: 9100")
"""

from sentinel.framework.alerts.base import BaseChannel
from sentinel.framework.alerts.channels import ConsoleChannel, EmailChannel, WebhookChannel
from sentinel.framework.alerts.notifier import AlertNotifier, Notifier
from sentinel.framework.alerts.protocol import (
    Alert,
    AlertChannel,
    AlertSeverity,
    ChannelType,
    DeliveryResult,
)
from sentinel.framework.alerts.registry import AlertRegistry

__all__ = [
    "Alert",
    "AlertChannel",
    "AlertNotifier",
    "AlertRegistry",
    "AlertSeverity",
    "BaseChannel",
    "ChannelType",
    "ConsoleChannel",
    "DeliveryResult",
    "EmailChannel",
    "Notifier",
    "WebhookChannel",
]
