"""
Staleness detector for the article ingestion flow.

The watermark moves to "now" whenever a tick sees recent articles and is
otherwise left alone, so the elapsed dead time only grows during an
outage. Once it reaches the threshold every tick alarms again: there is
no "already alarmed" flag, and a continuing outage produces one alarm
per tick until data flows.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sentinel.core.datasource import DataSource
from sentinel.core.errors import QueryError
from sentinel.core.timestamps import Clock, local_now, whole_hours_between
from sentinel.engine import reports
from sentinel.engine.queries import LATEST_ARTICLE_TIME, RECENT_ARTICLE_COUNT, recent_activity_params
from sentinel.engine.state import StalenessWatermark
from sentinel.framework.alerts import AlertSeverity, Notifier
from sentinel.framework.logging import get_logger

log = get_logger(__name__)


class StalenessStatus(str, Enum):
    ACTIVE = "active"
    WARN = "warn"
    ALARM = "alarm"
    FAILED = "failed"


@dataclass(frozen=True)
class StalenessOutcome:
    status: StalenessStatus
    hours: int = 0


class StalenessDetector:
    """Owns the ``StalenessWatermark``."""

    def __init__(
        self,
        watermark: StalenessWatermark,
        source: DataSource,
        notifier: Notifier,
        recipients: Sequence[str],
        *,
        host: str,
        threshold_hours: int = 8,
        activity_window_hours: int = 1,
        clock: Clock = local_now,
    ) -> None:
        self._watermark = watermark
        self._source = source
        self._notifier = notifier
        self._recipients = list(recipients)
        self._host = host
        self._threshold_hours = threshold_hours
        self._activity_window_hours = activity_window_hours
        self._clock = clock

    def check(self, recent_activity_count: int, now: datetime) -> StalenessOutcome:
        """Classify one observation and alarm if the outage is long enough."""
        if recent_activity_count > 0:
            self._watermark.last_activity = now
            log.info("staleness.active", recent=recent_activity_count)
            return StalenessOutcome(StalenessStatus.ACTIVE)

        hours = whole_hours_between(self._watermark.last_activity, now)
        if hours >= self._threshold_hours:
            log.error("staleness.alarm", hours=hours, threshold=self._threshold_hours)
            title, body = reports.staleness_alarm(self._host, hours)
            self._notifier.notify(self._recipients, title, body, severity=AlertSeverity.CRITICAL)
            return StalenessOutcome(StalenessStatus.ALARM, hours)

        log.warning("staleness.inactive", hours=hours, threshold=self._threshold_hours)
        return StalenessOutcome(StalenessStatus.WARN, hours)

    def run(self) -> StalenessOutcome:
        """Query recent activity and evaluate it; query failures leave the watermark alone."""
        with self._watermark.lock:
            now = self._clock()
            try:
                count = self._source.query_scalar(
                    RECENT_ARTICLE_COUNT,
                    recent_activity_params(now, self._activity_window_hours),
                )
            except QueryError as exc:
                log.error("staleness.query_failed", **exc.to_dict())
                return StalenessOutcome(StalenessStatus.FAILED)
            return self.check(int(count or 0), now)

    def prime(self) -> datetime:
        """Seed the watermark from the newest article in the store.

        Falls back to "now" when the store is empty or unreachable, and
        never moves the watermark into the future.
        """
        with self._watermark.lock:
            now = self._clock()
            try:
                latest = self._source.query_scalar(LATEST_ARTICLE_TIME)
            except QueryError as exc:
                log.warning("staleness.prime_failed", **exc.to_dict())
                latest = None

            if isinstance(latest, datetime):
                if latest.tzinfo is not None:
                    latest = latest.astimezone().replace(tzinfo=None)
                self._watermark.last_activity = min(latest, now)
            else:
                self._watermark.last_activity = now
            log.info("staleness.primed", last_activity=self._watermark.last_activity.isoformat(timespec="seconds"))
            return self._watermark.last_activity
