"""Cron scheduling for monitor checks.

Usage:
    from sentinel.core.scheduling import create_backend

    backend = create_backend("apscheduler")
    backend.add_job("ports", monitor.check_ports, "*/10 * * * *")
    backend.start()
"""

from sentinel.core.errors import InvalidConfigError

from .apscheduler_backend import APSchedulerBackend
from .protocol import BackendHealth, JobCallback, JobSpec, JobStats, SchedulerBackend
from .thread_backend import ThreadSchedulerBackend


def create_backend(name: str) -> SchedulerBackend:
    """Instantiate a backend by its configured name."""
    if name == "apscheduler":
        return APSchedulerBackend()
    if name == "thread":
        return ThreadSchedulerBackend()
    raise InvalidConfigError("scheduler_backend", name)


__all__ = [
    "APSchedulerBackend",
    "BackendHealth",
    "JobCallback",
    "JobSpec",
    "JobStats",
    "SchedulerBackend",
    "ThreadSchedulerBackend",
    "create_backend",
]
