"""Scheduler backend protocol.

┌──────────────────────────────────────────────────────────────────────────────┐
│  SCHEDULER BACKEND PROTOCOL                                                   │
│                                                                               │
│  Each monitor check is registered as its own cron job. Backends control      │
│  WHEN a job fires; the job callable controls WHAT happens on that tick.      │
│                                                                               │
│   ┌─────────────────┐   job()    ┌──────────────────────────┐                │
│   │  Thread Backend │ ─────────► │  push_new_sources        │                │
│   │  (croniter)     │            │  check_ports             │                │
│   └─────────────────┘            │  check_data_flow         │                │
│                                  │  check_failure_rate      │                │
│   ┌─────────────────┐   job()    │  send_health_report      │                │
│   │  APScheduler    │ ─────────► │  reset_daily_counters    │                │
│   │  Backend        │            └──────────────────────────┘                │
│   └─────────────────┘                                                         │
│                                                                               │
│  Contract (every backend MUST honour it):                                     │
│  - A job is never started while its previous run is still in progress.       │
│    A fire time that arrives during a run is skipped, not queued.             │
│  - Different jobs MAY run concurrently with each other.                      │
│  - An exception raised by a job is logged; the job keeps its schedule.       │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

JobCallback = Callable[[], Any]


@dataclass(frozen=True)
class JobSpec:
    """One cron-scheduled unit of work."""

    name: str
    cron: str
    func: JobCallback


@runtime_checkable
class SchedulerBackend(Protocol):
    """Protocol for pluggable scheduler backends.

    Implementations:
        - APSchedulerBackend: APScheduler ``BackgroundScheduler`` (default)
        - ThreadSchedulerBackend: one croniter-driven thread per job
    """

    name: str

    def add_job(self, name: str, func: JobCallback, cron: str) -> None:
        """Register ``func`` under a unique ``name`` on a 5-field cron schedule.

        Raises:
            ScheduleError: duplicate name or invalid cron expression.
        """
        ...

    def start(self) -> None:
        """Start firing registered jobs."""
        ...

    def stop(self) -> None:
        """Stop gracefully, waiting for in-flight runs to finish."""
        ...

    def health(self) -> dict[str, Any]:
        """Return backend health status.

        Returns:
            dict with at least:
                - healthy: bool
                - backend: str
                - jobs: dict of per-job run_count / last_run
        """
        ...


@dataclass
class JobStats:
    """Per-job run accounting."""

    run_count: int = 0
    failure_count: int = 0
    last_run: datetime | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_count": self.run_count,
            "failure_count": self.failure_count,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_error": self.last_error,
        }


@dataclass
class BackendHealth:
    """Structured backend health response."""

    healthy: bool
    backend: str
    jobs: dict[str, JobStats] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "healthy": self.healthy,
            "backend": self.backend,
            "jobs": {name: stats.to_dict() for name, stats in self.jobs.items()},
            **self.extra,
        }
