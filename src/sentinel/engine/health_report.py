"""
Host-level inspection: ingest processes and the Kafka consumer group.

``ServiceInspector`` backs two features:

- the optional deep port check, which treats a missing process or an
  unhealthy consumer group as a failure even when every port answers
- the daily health report, which mails both observations once a day

Both only make sense on the Linux host running the pipeline; elsewhere
they are no-ops.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from sentinel.core.process import (
    consumer_group_unhealthy,
    describe_consumer_group,
    find_processes,
    is_linux,
)
from sentinel.engine import reports
from sentinel.framework.alerts import AlertSeverity, Notifier
from sentinel.framework.logging import get_logger

log = get_logger(__name__)


class ServiceInspector:
    def __init__(
        self,
        *,
        pattern: str,
        script_path: str | None,
        bootstrap: str = "localhost:9092",
        group: str = "my-group",
        platform: str | None = None,
        find: Callable[[str], list[str]] = find_processes,
        describe: Callable[..., str] = describe_consumer_group,
    ) -> None:
        self.pattern = pattern
        self.script_path = script_path
        self.bootstrap = bootstrap
        self.group = group
        self._platform = platform
        self._find = find
        self._describe = describe

    @property
    def applicable(self) -> bool:
        return is_linux(self._platform)

    def processes(self) -> list[str]:
        return self._find(self.pattern)

    def consumer_group(self) -> str:
        return self._describe(self.script_path, bootstrap=self.bootstrap, group=self.group)

    def problems(self) -> list[str]:
        """Problems worth alarming on; empty when healthy or not applicable."""
        if not self.applicable:
            return []
        problems = []
        if not self.processes():
            problems.append(f"no running process matches '{self.pattern}'")
        if consumer_group_unhealthy(self.consumer_group()):
            problems.append(f"consumer group '{self.group}' status unavailable or reporting errors")
        if problems:
            log.error("inspector.unhealthy", problems=problems)
        return problems


class DailyHealthReport:
    """Sends the daily inspection report. Touches no engine state."""

    def __init__(
        self,
        inspector: ServiceInspector,
        notifier: Notifier,
        recipients: Sequence[str],
        *,
        host: str,
    ) -> None:
        self._inspector = inspector
        self._notifier = notifier
        self._recipients = list(recipients)
        self._host = host

    def run(self) -> bool:
        if not self._inspector.applicable:
            log.warning("health_report.skipped", reason="not a linux host")
            return False

        processes = self._inspector.processes()
        group_output = self._inspector.consumer_group()
        if consumer_group_unhealthy(group_output):
            group_output = reports.CONSUMER_GROUP_ERROR_TEXT

        title, body = reports.health_report(self._host, processes, self._inspector.group, group_output)
        sent = self._notifier.notify(self._recipients, title, body, severity=AlertSeverity.INFO)
        log.info("health_report.done", sent=sent, processes=len(processes))
        return sent
