"""
Monitor controller: wires state, checks and collaborators together.

┌──────────────────────────────────────────────────────────────────────────────┐
│  Monitor                                                                      │
│                                                                               │
│   EngineState ──┬── Cursor ─────────────► CursorTracker        "sources"     │
│                 ├── StalenessWatermark ─► StalenessDetector    "data-flow"   │
│                 ├── EscalationLadder ───► EscalationMonitor    "failure-rate"│
│                 │                     └─► DayResetController   "reset"       │
│                 └── AlarmBudget ────────► PortConnectivityCheck "ports"      │
│                                       └─► DayResetController                 │
│                                           DailyHealthReport  "health-report" │
│                                                                               │
│   jobs() ──► one JobSpec per check, cron from MonitorSettings.schedules      │
│              each run gets a fresh trace id and a check.<name> timing span   │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from sentinel.core.datasource import DataSource, Row, SqlAlchemyDataSource
from sentinel.core.errors import HostResolutionError
from sentinel.core.probe import probe_connect, probe_services
from sentinel.core.scheduling import JobSpec, SchedulerBackend
from sentinel.core.settings import MonitorSettings
from sentinel.core.timestamps import Clock, local_now
from sentinel.engine import reports
from sentinel.engine.cursor import CursorOutcome, CursorTracker
from sentinel.engine.escalation import EscalationMonitor, FailureThresholds
from sentinel.engine.health_report import DailyHealthReport, ServiceInspector
from sentinel.engine.ports import PortConnectivityCheck, Prober, ScanOutcome
from sentinel.engine.reset import DayResetController
from sentinel.engine.staleness import StalenessDetector, StalenessOutcome
from sentinel.engine.state import EngineState
from sentinel.framework.alerts import (
    AlertNotifier,
    AlertRegistry,
    AlertSeverity,
    ConsoleChannel,
    EmailChannel,
    Notifier,
    WebhookChannel,
)
from sentinel.framework.logging import get_logger, new_trace_id, span, tick_scope

log = get_logger(__name__)

CHECK_NAMES = ("sources", "ports", "data-flow", "failure-rate", "health-report", "reset")


def build_notifier(settings: MonitorSettings) -> AlertNotifier:
    """Register every delivery channel the settings enable."""
    registry = AlertRegistry()
    if settings.console_alerts:
        registry.register(ConsoleChannel())
    if settings.smtp_host:
        registry.register(
            EmailChannel(
                "email",
                smtp_host=settings.smtp_host,
                from_address=settings.smtp_from,
                default_recipients=settings.recipient_list,
                smtp_port=settings.smtp_port,
                smtp_user=settings.smtp_user,
                smtp_password=settings.smtp_password.get_secret_value() if settings.smtp_password else None,
                use_tls=settings.smtp_use_tls,
            )
        )
    if settings.webhook_url:
        registry.register(WebhookChannel("webhook", settings.webhook_url))
    if not len(registry):
        log.warning("notifier.no_channels")
    return AlertNotifier(registry)


def _summarize(result: Any) -> Any:
    status = getattr(result, "status", None)
    return status.value if status is not None else result


class Monitor:
    """Single owner of ``EngineState``; exposes one method per scheduled check."""

    def __init__(
        self,
        settings: MonitorSettings,
        source: DataSource,
        notifier: Notifier,
        *,
        state: EngineState | None = None,
        clock: Clock = local_now,
        probe: Prober = probe_connect,
        inspector: ServiceInspector | None = None,
    ) -> None:
        self.settings = settings
        self.state = state or EngineState.fresh(
            port_alarm_limit=settings.port_alarm_daily_limit,
            started_at=clock(),
        )
        self._notifier = notifier
        self._probe = probe
        recipients = settings.recipient_list

        self.cursor_tracker = CursorTracker(
            self.state.cursor,
            source,
            self._publish_sources,
            window_days=settings.source_window_days,
            clock=clock,
        )
        self.staleness = StalenessDetector(
            self.state.watermark,
            source,
            notifier,
            recipients,
            host=settings.host,
            threshold_hours=settings.staleness_threshold_hours,
            activity_window_hours=settings.activity_window_hours,
            clock=clock,
        )
        self.escalation = EscalationMonitor(
            self.state.ladder,
            source,
            notifier,
            recipients,
            host=settings.host,
            thresholds=FailureThresholds(settings.fail_level_l1, settings.fail_level_l2, settings.fail_level_l3),
            excluded_error=settings.oversized_link_error,
            clock=clock,
        )
        self.inspector = inspector or ServiceInspector(
            pattern=settings.process_pattern,
            script_path=settings.kafka_script_path,
            bootstrap=settings.kafka_bootstrap,
            group=settings.kafka_group,
        )
        self.ports = PortConnectivityCheck(
            self.state.budget,
            notifier,
            recipients,
            host=settings.host,
            ports=settings.port_list,
            timeout_ms=settings.socket_timeout_ms,
            key_services=settings.key_service_list,
            probe=probe,
            service_check=self.inspector.problems if settings.deep_port_check else None,
        )
        self.day_reset = DayResetController(self.state.ladder, self.state.budget)
        self.health_report = DailyHealthReport(self.inspector, notifier, recipients, host=settings.host)

    @classmethod
    def from_settings(
        cls,
        settings: MonitorSettings,
        *,
        source: DataSource | None = None,
        notifier: Notifier | None = None,
    ) -> Monitor:
        return cls(
            settings,
            source or SqlAlchemyDataSource.from_url(settings.database_url, timeout_s=settings.query_timeout_s),
            notifier or build_notifier(settings),
        )

    def initialize(self) -> None:
        """Seed the staleness watermark from the store."""
        self.staleness.prime()
        log.info("monitor.initialized", host=self.settings.host, ports=self.settings.port_list, **self.state.snapshot())

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def push_new_sources(self) -> CursorOutcome:
        return self.cursor_tracker.advance()

    def check_ports(self) -> ScanOutcome:
        return self.ports.run()

    def check_data_flow(self) -> StalenessOutcome:
        return self.staleness.run()

    def check_failure_rate(self) -> int | None:
        return self.escalation.run()

    def send_health_report(self) -> bool:
        return self.health_report.run()

    def reset_daily_counters(self) -> dict[str, Any]:
        self.day_reset.reset()
        snapshot = self.state.snapshot()
        log.info("monitor.snapshot", **snapshot)
        return snapshot

    def _publish_sources(self, rows: list[Row]) -> None:
        try:
            services = probe_services(
                self.settings.host,
                self.settings.key_service_list,
                self.settings.socket_timeout_ms,
                probe=self._probe,
            )
        except HostResolutionError as exc:
            log.error("sources.port_status_failed", **exc.to_dict())
            services = []
        title, body = reports.source_report(rows, services)
        self._notifier.notify(self.settings.recipient_list, title, body, severity=AlertSeverity.INFO)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _checks(self) -> dict[str, Callable[[], Any]]:
        return {
            "sources": self.push_new_sources,
            "ports": self.check_ports,
            "data-flow": self.check_data_flow,
            "failure-rate": self.check_failure_rate,
            "health-report": self.send_health_report,
            "reset": self.reset_daily_counters,
        }

    def traced(self, name: str, func: Callable[[], Any]) -> Callable[[], Any]:
        """Wrap a check so each run logs under its own trace id and timing span."""

        def job() -> Any:
            with tick_scope(trace_id=new_trace_id(), check=name, host=self.settings.host), span(f"check.{name}") as timing:
                result = func()
                timing.note("outcome", _summarize(result))
            return result

        job.__name__ = f"check_{name.replace('-', '_')}"
        return job

    def run_check(self, name: str) -> Any:
        """Run one check immediately (outside the schedule)."""
        checks = self._checks()
        if name not in checks:
            raise KeyError(f"Unknown check: {name}")
        return self.traced(name, checks[name])()

    def jobs(self) -> list[JobSpec]:
        schedules = self.settings.schedules
        return [JobSpec(name=name, cron=schedules[name], func=self.traced(name, func)) for name, func in self._checks().items()]

    def register(self, backend: SchedulerBackend) -> None:
        for spec in self.jobs():
            backend.add_job(spec.name, spec.func, spec.cron)
            log.info("monitor.job_registered", job=spec.name, cron=spec.cron, backend=backend.name)
