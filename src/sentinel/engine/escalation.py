"""
Escalation ladder for today's ingestion failures.

Failure counts map onto levels 0..3 through three ascending thresholds.
A notification goes out only when the computed level is strictly above
the highest level already reported today; a falling count never alerts
and never lowers the ladder. Only the day reset brings it back to 0.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sentinel.core.datasource import DataSource
from sentinel.core.errors import InvalidConfigError, QueryError
from sentinel.core.settings import OVERSIZED_LINK_ERROR
from sentinel.core.timestamps import Clock, local_now
from sentinel.engine import reports
from sentinel.engine.queries import FAILED_ARTICLES_TODAY, failed_today_params
from sentinel.engine.state import EscalationLadder
from sentinel.framework.alerts import AlertSeverity, Notifier
from sentinel.framework.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class FailureThresholds:
    l1: int = 20
    l2: int = 50
    l3: int = 100

    def __post_init__(self) -> None:
        if not 0 < self.l1 < self.l2 < self.l3:
            raise InvalidConfigError("fail_levels", (self.l1, self.l2, self.l3), "Failure thresholds must ascend")

    def level_for(self, failure_count: int) -> int:
        if failure_count >= self.l3:
            return 3
        if failure_count >= self.l2:
            return 2
        if failure_count >= self.l1:
            return 1
        return 0


class EscalationMonitor:
    """Owns the ``EscalationLadder``."""

    def __init__(
        self,
        ladder: EscalationLadder,
        source: DataSource,
        notifier: Notifier,
        recipients: Sequence[str],
        *,
        host: str,
        thresholds: FailureThresholds | None = None,
        excluded_error: str = OVERSIZED_LINK_ERROR,
        clock: Clock = local_now,
    ) -> None:
        self._ladder = ladder
        self._source = source
        self._notifier = notifier
        self._recipients = list(recipients)
        self._host = host
        self._thresholds = thresholds or FailureThresholds()
        self._excluded_error = excluded_error
        self._clock = clock

    def evaluate(self, failure_count: int) -> int:
        """Compute today's level and notify on an upward transition."""
        level = self._thresholds.level_for(failure_count)
        previous = self._ladder.highest_reported_level
        log.info("escalation.stats", failures=failure_count, level=level, reported=previous)

        if level > previous:
            log.warning("escalation.raised", previous=previous, level=level, failures=failure_count)
            title, body = reports.escalation_alarm(level, failure_count, self._host)
            severity = AlertSeverity.CRITICAL if level == 3 else AlertSeverity.ERROR
            self._notifier.notify(self._recipients, title, body, severity=severity)
            self._ladder.highest_reported_level = level
        return level

    def count_failures(self) -> int:
        """Today's failed ingestions, excluding oversized-link rejects."""
        count = self._source.query_scalar(
            FAILED_ARTICLES_TODAY,
            failed_today_params(self._clock(), self._excluded_error),
        )
        return int(count or 0)

    def run(self) -> int | None:
        """One tick. Returns the computed level, or None when the query failed."""
        with self._ladder.lock:
            try:
                failures = self.count_failures()
            except QueryError as exc:
                log.error("escalation.query_failed", **exc.to_dict())
                return None
            return self.evaluate(failures)
