"""APScheduler-based scheduler backend.

Wraps APScheduler 3.x ``BackgroundScheduler``. Each check becomes a cron
job with ``max_instances=1`` (no self-overlap) and ``coalesce=True`` (a
backlog of missed fire times collapses into a single run).
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from sentinel.core.errors import ScheduleError

from .protocol import BackendHealth, JobCallback, JobStats

logger = logging.getLogger(__name__)


class APSchedulerBackend:
    """APScheduler-based scheduler backend.

    Example::

        >>> backend = APSchedulerBackend()
        >>> backend.add_job("data-flow", check_data_flow, "*/30 * * * *")
        >>> backend.start()
        >>> # … later …
        >>> backend.stop()
    """

    name: str = "apscheduler"

    def __init__(
        self,
        scheduler: BackgroundScheduler | None = None,
        *,
        misfire_grace_seconds: int = 60,
    ) -> None:
        self._scheduler = scheduler or BackgroundScheduler()
        self._misfire_grace_seconds = misfire_grace_seconds
        self._stats: dict[str, JobStats] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # SchedulerBackend protocol
    # ------------------------------------------------------------------

    def add_job(self, name: str, func: JobCallback, cron: str) -> None:
        if name in self._stats:
            raise ScheduleError(f"Job already registered: {name}").with_context(job=name)
        try:
            trigger = CronTrigger.from_crontab(cron)
        except ValueError as e:
            raise ScheduleError(f"Invalid cron expression for {name}: {cron!r}", cause=e).with_context(
                job=name
            ) from e

        self._stats[name] = JobStats()
        self._scheduler.add_job(
            self._wrap(name, func),
            trigger,
            id=name,
            name=name,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self._misfire_grace_seconds,
            replace_existing=True,
        )

    def _wrap(self, name: str, func: JobCallback) -> JobCallback:
        def _job_wrapper() -> None:
            with self._lock:
                stats = self._stats[name]
                stats.run_count += 1
                stats.last_run = datetime.now()
            try:
                func()
            except Exception as e:
                with self._lock:
                    stats.failure_count += 1
                    stats.last_error = f"{type(e).__name__}: {e}"
                logger.exception("APScheduler job %s failed", name)

        return _job_wrapper

    def start(self) -> None:
        self._scheduler.start()
        logger.info("APSchedulerBackend started (%d jobs)", len(self._stats))

    def stop(self) -> None:
        """Stop the scheduler, waiting for running jobs to finish."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=True)
            logger.info("APSchedulerBackend stopped")

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()

    def get_health(self) -> BackendHealth:
        running = bool(getattr(self._scheduler, "running", False))
        with self._lock:
            jobs = {name: JobStats(**vars(stats)) for name, stats in self._stats.items()}
        return BackendHealth(
            healthy=running,
            backend=self.name,
            jobs=jobs,
            extra={"scheduled_jobs": len(self._scheduler.get_jobs()) if running else 0},
        )

    @property
    def job_names(self) -> list[str]:
        return list(self._stats)
