"""Concrete alert channel implementations."""

from sentinel.framework.alerts.channels.console import ConsoleChannel
from sentinel.framework.alerts.channels.email import EmailChannel
from sentinel.framework.alerts.channels.webhook import WebhookChannel

__all__ = [
    "ConsoleChannel",
    "EmailChannel",
    "WebhookChannel",
]
