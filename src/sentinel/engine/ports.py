"""
Port connectivity check guarded by a daily alarm budget.

    budget exhausted? ──yes──► skip (no probe, no notification)
          │ no
          ▼
    probe every port ──► any failed (or service problem)?
                              ├─ no  ──► all ok, budget untouched
                              └─ yes ──► one notification, budget += 1

One notification per failing invocation, however many ports failed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from sentinel.core.errors import HostResolutionError
from sentinel.core.probe import probe_connect
from sentinel.engine import reports
from sentinel.engine.state import AlarmBudget
from sentinel.framework.alerts import AlertSeverity, Notifier
from sentinel.framework.logging import get_logger

log = get_logger(__name__)

Prober = Callable[[str, int, int], bool]
ServiceCheck = Callable[[], Sequence[str]]


class ScanStatus(str, Enum):
    SKIPPED = "skipped"
    ALL_OK = "all_ok"
    FAILURES = "failures"
    FAILED = "failed"


@dataclass(frozen=True)
class ScanOutcome:
    status: ScanStatus
    failed_ports: tuple[int, ...] = ()
    problems: tuple[str, ...] = ()


class PortConnectivityCheck:
    """Owns the ``AlarmBudget``.

    ``service_check`` is an optional deeper probe consulted only when every
    port answered; each string it returns is reported as a problem and
    counts as a failure of the invocation.
    """

    def __init__(
        self,
        budget: AlarmBudget,
        notifier: Notifier,
        recipients: Sequence[str],
        *,
        host: str,
        ports: Sequence[int],
        timeout_ms: int = 3000,
        key_services: Sequence[tuple[int, str]] = (),
        probe: Prober = probe_connect,
        service_check: ServiceCheck | None = None,
    ) -> None:
        self._budget = budget
        self._notifier = notifier
        self._recipients = list(recipients)
        self._host = host
        self._ports = list(ports)
        self._timeout_ms = timeout_ms
        self._key_services = list(key_services)
        self._probe = probe
        self._service_check = service_check

    def scan(self, host: str | None = None, ports: Sequence[int] | None = None) -> ScanOutcome:
        host = host or self._host
        ports = list(ports) if ports is not None else self._ports

        with self._budget.lock:
            if self._budget.exhausted:
                log.warning("ports.budget_exhausted", sent=self._budget.count_today, limit=self._budget.limit)
                return ScanOutcome(ScanStatus.SKIPPED)

            failed = tuple(port for port in ports if not self._probe(host, port, self._timeout_ms))

            problems: tuple[str, ...] = ()
            if not failed and self._service_check is not None:
                problems = tuple(self._service_check())

            if not failed and not problems:
                log.info("ports.ok", host=host, ports=ports)
                return ScanOutcome(ScanStatus.ALL_OK)

            log.error("ports.alarm", host=host, failed=list(failed), problems=list(problems))
            title, body = reports.port_alarm(host, failed, self._key_services, problems)
            self._notifier.notify(self._recipients, title, body, severity=AlertSeverity.ERROR)
            self._budget.count_today += 1
            return ScanOutcome(ScanStatus.FAILURES, failed, problems)

    def run(self) -> ScanOutcome:
        try:
            return self.scan()
        except HostResolutionError as exc:
            log.error("ports.probe_failed", **exc.to_dict())
            return ScanOutcome(ScanStatus.FAILED)
