"""
Narrow notification boundary used by the engine checks.

Checks only ever call ``notify(recipients, title, body)``. Delivery is
best effort: a failed or crashing channel is logged here and reported as
``False``, it never propagates into the check that asked for it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from sentinel.framework.alerts.protocol import Alert, AlertSeverity
from sentinel.framework.alerts.registry import AlertRegistry
from sentinel.framework.logging import get_context, get_logger

log = get_logger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Delivers a titled message to one or more recipients."""

    def notify(
        self,
        recipients: Sequence[str],
        title: str,
        body: str,
        *,
        severity: AlertSeverity = AlertSeverity.ERROR,
    ) -> bool:
        """Return True when the message was delivered; never raises."""
        ...


class AlertNotifier:
    """``Notifier`` that fans each message out through an ``AlertRegistry``.

    The alert is tagged with the check named in the current log context,
    falling back to ``default_check`` outside a scheduled run.
    """

    def __init__(self, registry: AlertRegistry, *, default_check: str = "sentinel") -> None:
        self.registry = registry
        self._default_check = default_check

    def notify(
        self,
        recipients: Sequence[str],
        title: str,
        body: str,
        *,
        severity: AlertSeverity = AlertSeverity.ERROR,
    ) -> bool:
        recipients = [r for r in recipients if r]
        if not recipients:
            log.warning("notify.no_recipients", title=title)
            return False

        alert = Alert(
            severity=severity,
            title=title,
            body=body,
            check=get_context().check or self._default_check,
            recipients=recipients,
        )
        results = self.registry.dispatch(alert)
        if not results:
            log.warning("notify.no_channel", title=title, severity=severity.value)
            return False

        failures = [r for r in results if not r.delivered]
        for result in failures:
            log.error(
                "notify.failed",
                title=title,
                channel=result.channel,
                error_type=type(result.error).__name__,
                error_message=result.detail,
            )
        if failures:
            return False

        log.info("notify.sent", title=title, severity=severity.value, channels=[r.channel for r in results])
        return True
