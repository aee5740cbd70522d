"""Threading-based scheduler backend driven by croniter.

┌──────────────────────────────────────────────────────────────────────────────┐
│  THREAD BACKEND ARCHITECTURE                                                  │
│                                                                               │
│   start()                                                                     │
│      │  one daemon thread per registered job                                 │
│      ▼                                                                        │
│   ┌─────────────────────────────────────────────────────────┐                │
│   │   while not stop_event.is_set():                        │                │
│   │       next_fire = next_fire_after(schedule, now)        │                │
│   │       if stop_event.wait(next_fire - now): break        │                │
│   │       run_job(name)   ◄── sequential, so never overlaps │                │
│   └─────────────────────────────────────────────────────────┘                │
│                                                                               │
│   stop()                                                                      │
│      stop_event.set(); join each thread (timeout=5.0)                        │
│                                                                               │
│  Fire times follow the cron sequence and skip instants already past, so a    │
│  run that overshoots its period drops missed fire times instead of queueing. │
│  ``run_job`` also takes a per-job lock non-blockingly, which keeps manual    │
│  invocations from overlapping a scheduled one.                               │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any

from croniter import croniter

from sentinel.core.errors import ScheduleError

from .protocol import BackendHealth, JobCallback, JobSpec, JobStats

logger = logging.getLogger(__name__)


def next_fire_after(schedule: croniter, now: datetime) -> datetime:
    """Advance ``schedule`` to its next fire time that lies after ``now``.

    Fire times come from the schedule's own sequence, never from ``now``,
    so a wait that ends slightly early on the wall clock cannot yield the
    same cron instant twice. Instants already passed (a long run) are skipped.
    """
    fire = schedule.get_next(datetime)
    while fire <= now:
        fire = schedule.get_next(datetime)
    return fire


class ThreadSchedulerBackend:
    """Zero-broker scheduler: one croniter loop per job.

    Example:
        >>> backend = ThreadSchedulerBackend()
        >>> backend.add_job("ports", check_ports, "*/10 * * * *")
        >>> backend.start()
        >>> # ... later ...
        >>> backend.stop()
    """

    name = "thread"

    def __init__(self) -> None:
        self._stop_event = threading.Event()
        self._jobs: dict[str, JobSpec] = {}
        self._job_locks: dict[str, threading.Lock] = {}
        self._stats: dict[str, JobStats] = {}
        self._threads: list[threading.Thread] = []
        self._started = False
        self._lock = threading.Lock()

    def add_job(self, name: str, func: JobCallback, cron: str) -> None:
        if name in self._jobs:
            raise ScheduleError(f"Job already registered: {name}").with_context(job=name)
        if not croniter.is_valid(cron):
            raise ScheduleError(f"Invalid cron expression for {name}: {cron!r}").with_context(job=name)

        self._jobs[name] = JobSpec(name=name, cron=cron, func=func)
        self._job_locks[name] = threading.Lock()
        self._stats[name] = JobStats()
        if self._started:
            self._spawn(self._jobs[name])

    def start(self) -> None:
        if self._started:
            logger.warning("ThreadSchedulerBackend already started")
            return

        self._stop_event.clear()
        self._started = True
        for spec in self._jobs.values():
            self._spawn(spec)
        logger.info(f"ThreadSchedulerBackend started ({len(self._jobs)} jobs)")

    def _spawn(self, spec: JobSpec) -> None:
        thread = threading.Thread(
            target=self._loop,
            args=(spec,),
            daemon=True,
            name=f"sentinel-job-{spec.name}",
        )
        self._threads.append(thread)
        thread.start()

    def _loop(self, spec: JobSpec) -> None:
        logger.info(f"Job {spec.name} scheduled (cron={spec.cron})")
        schedule = croniter(spec.cron, datetime.now())
        while not self._stop_event.is_set():
            next_fire = next_fire_after(schedule, datetime.now())
            delay = max((next_fire - datetime.now()).total_seconds(), 0.0)
            if self._stop_event.wait(delay):
                break
            self.run_job(spec.name)
        logger.info(f"Job {spec.name} stopped")

    def run_job(self, name: str) -> bool:
        """Run one job now, unless a run of it is already in progress.

        Returns:
            True if the job ran (successfully or not), False if skipped.
        """
        spec = self._jobs[name]
        job_lock = self._job_locks[name]
        if not job_lock.acquire(blocking=False):
            logger.warning(f"Job {name} still running, skipping this fire time")
            return False
        try:
            with self._lock:
                stats = self._stats[name]
                stats.run_count += 1
                stats.last_run = datetime.now()
            try:
                spec.func()
            except Exception as e:
                with self._lock:
                    stats.failure_count += 1
                    stats.last_error = f"{type(e).__name__}: {e}"
                logger.exception(f"Job {name} failed: {e}")
        finally:
            job_lock.release()
        return True

    def stop(self) -> None:
        """Stop all job loops.

        Waits up to 5 seconds per thread for the current run to complete.
        """
        if not self._started:
            return

        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout=5.0)
            if thread.is_alive():
                logger.warning(f"Scheduler thread {thread.name} did not stop cleanly")
        self._threads.clear()
        self._started = False
        logger.info("ThreadSchedulerBackend shutdown complete")

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()

    def get_health(self) -> BackendHealth:
        """Return structured health status."""
        with self._lock:
            jobs = {name: JobStats(**vars(stats)) for name, stats in self._stats.items()}
        return BackendHealth(
            healthy=self.is_running,
            backend=self.name,
            jobs=jobs,
            extra={"threads_alive": sum(t.is_alive() for t in self._threads)},
        )

    @property
    def is_running(self) -> bool:
        return self._started and any(t.is_alive() for t in self._threads)

    @property
    def job_names(self) -> list[str]:
        return list(self._jobs)

    def stats(self, name: str) -> JobStats:
        return self._stats[name]
