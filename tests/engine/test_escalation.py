"""Tests for sentinel.engine.escalation: daily failure escalation ladder."""

from datetime import datetime, timedelta

import pytest

from sentinel.core.errors import InvalidConfigError, QueryError
from sentinel.core.settings import OVERSIZED_LINK_ERROR
from sentinel.engine.escalation import EscalationMonitor, FailureThresholds
from sentinel.engine.queries import FAILED_ARTICLES_TODAY, FAILED_TRANSCODE_STATUS
from sentinel.engine.reset import DayResetController
from sentinel.engine.state import AlarmBudget, EscalationLadder
from sentinel.framework.alerts import AlertSeverity

NOW = datetime(2026, 3, 10, 15, 30, 0)


def _monitor(ladder, source, notifier, **kwargs):
    return EscalationMonitor(
        ladder,
        source,
        notifier,
        ["ops@example.com"],
        host="10.0.0.5",
        clock=lambda: NOW,
        **kwargs,
    )


class TestFailureThresholds:
    @pytest.mark.parametrize(
        "count, level",
        [(0, 0), (19, 0), (20, 1), (49, 1), (50, 2), (99, 2), (100, 3), (5000, 3)],
    )
    def test_level_for(self, count, level):
        assert FailureThresholds().level_for(count) == level

    @pytest.mark.parametrize("levels", [(20, 20, 100), (50, 20, 100), (0, 1, 2)])
    def test_must_ascend(self, levels):
        with pytest.raises(InvalidConfigError):
            FailureThresholds(*levels)


class TestEvaluate:
    def test_escalation_sequence(self, notifier):
        """15, 25, 60, 30, 150 notifies at ticks 2, 3 and 5 with levels 1, 2, 3."""
        ladder = EscalationLadder()
        monitor = _monitor(ladder, None, notifier)

        levels = [monitor.evaluate(count) for count in (15, 25, 60, 30, 150)]

        assert levels == [0, 1, 2, 1, 3]
        assert notifier.titles == [
            "Ingestion failure alert (L1)",
            "Ingestion failure alert (L2)",
            "Severe ingestion failure (L3)",
        ]
        assert ladder.highest_reported_level == 3

    def test_same_level_does_not_realert(self, notifier):
        monitor = _monitor(EscalationLadder(), None, notifier)
        monitor.evaluate(25)
        monitor.evaluate(30)
        monitor.evaluate(49)
        assert len(notifier.sent) == 1

    def test_skipped_level_alerts_once(self, notifier):
        ladder = EscalationLadder()
        _monitor(ladder, None, notifier).evaluate(120)
        assert notifier.titles == ["Severe ingestion failure (L3)"]
        assert ladder.highest_reported_level == 3

    def test_severity_by_level(self, notifier):
        monitor = _monitor(EscalationLadder(), None, notifier)
        monitor.evaluate(20)
        monitor.evaluate(100)
        assert [n.severity for n in notifier.sent] == [AlertSeverity.ERROR, AlertSeverity.CRITICAL]

    def test_body_carries_count_and_host(self, notifier):
        _monitor(EscalationLadder(), None, notifier).evaluate(150)
        body = notifier.sent[0].body
        assert "150" in body
        assert "10.0.0.5" in body
        assert "immediately" in body

    def test_custom_thresholds(self, notifier):
        monitor = _monitor(EscalationLadder(), None, notifier, thresholds=FailureThresholds(1, 2, 3))
        assert monitor.evaluate(2) == 2


class TestRun:
    def test_query_params(self, source, notifier):
        source.scalars = [0]
        _monitor(EscalationLadder(), source, notifier).run()

        kind, statement, params = source.calls[0]
        assert statement is FAILED_ARTICLES_TODAY
        assert params == {
            "day_start": datetime(2026, 3, 10),
            "failed_status": FAILED_TRANSCODE_STATUS,
            "excluded_error": OVERSIZED_LINK_ERROR,
        }

    def test_query_failure_leaves_ladder(self, source, notifier):
        ladder = EscalationLadder(highest_reported_level=1)
        source.scalars = [QueryError("gone")]

        assert _monitor(ladder, source, notifier).run() is None
        assert ladder.highest_reported_level == 1
        assert notifier.sent == []

    def test_after_reset_next_day_alerts_again_from_l1(self, source, notifier):
        ladder = EscalationLadder()
        source.scalars = [150, 25]
        monitor = _monitor(ladder, source, notifier)

        assert monitor.run() == 3
        DayResetController(ladder, AlarmBudget(limit=5)).reset()
        assert monitor.run() == 1

        assert notifier.titles == ["Severe ingestion failure (L3)", "Ingestion failure alert (L1)"]


class TestAgainstStore:
    def test_oversized_links_excluded(self, store, notifier):
        today = NOW - timedelta(hours=2)
        store.add_articles(
            *[
                {"createTime": today, "isVideoTranscod": FAILED_TRANSCODE_STATUS, "resourceUrl": OVERSIZED_LINK_ERROR}
                for _ in range(30)
            ],
            *[
                {"createTime": today, "isVideoTranscod": FAILED_TRANSCODE_STATUS, "resourceUrl": f"http://cdn/{i}"}
                for i in range(19)
            ],
        )
        monitor = _monitor(EscalationLadder(), store.source, notifier)

        assert monitor.count_failures() == 19
        assert monitor.run() == 0
        assert notifier.sent == []

    def test_failures_without_resource_url_counted(self, store, notifier):
        today = NOW - timedelta(hours=1)
        store.add_articles(
            *[{"createTime": today, "isVideoTranscod": FAILED_TRANSCODE_STATUS, "resourceUrl": None} for _ in range(3)],
            {"createTime": today, "isVideoTranscod": FAILED_TRANSCODE_STATUS, "resourceUrl": OVERSIZED_LINK_ERROR},
        )
        monitor = _monitor(EscalationLadder(), store.source, notifier)

        assert monitor.count_failures() == 3
