"""Tests for sentinel.engine.staleness: data-flow staleness detection."""

from datetime import datetime, timedelta, timezone

import pytest

from sentinel.core.errors import QueryError
from sentinel.engine.queries import LATEST_ARTICLE_TIME, RECENT_ARTICLE_COUNT
from sentinel.engine.staleness import StalenessDetector, StalenessStatus
from sentinel.engine.state import StalenessWatermark
from sentinel.framework.alerts import AlertSeverity

T0 = datetime(2026, 3, 10, 0, 0, 0)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def watermark():
    return StalenessWatermark(last_activity=T0)


def _detector(watermark, source, notifier, clock, **kwargs):
    return StalenessDetector(
        watermark,
        source,
        notifier,
        ["ops@example.com"],
        host="10.0.0.5",
        clock=clock,
        **kwargs,
    )


class TestCheck:
    def test_activity_moves_watermark(self, watermark, source, notifier, clock):
        detector = _detector(watermark, source, notifier, clock)
        now = T0 + timedelta(hours=3)

        outcome = detector.check(5, now)

        assert outcome.status == StalenessStatus.ACTIVE
        assert watermark.last_activity == now
        assert notifier.sent == []

    def test_below_threshold_warns_only(self, watermark, source, notifier, clock):
        outcome = _detector(watermark, source, notifier, clock).check(0, T0 + timedelta(hours=7, minutes=59))
        assert outcome.status == StalenessStatus.WARN
        assert outcome.hours == 7
        assert notifier.sent == []
        assert watermark.last_activity == T0

    def test_threshold_alarms(self, watermark, source, notifier, clock):
        outcome = _detector(watermark, source, notifier, clock).check(0, T0 + timedelta(hours=8))

        assert outcome.status == StalenessStatus.ALARM
        assert outcome.hours == 8
        [sent] = notifier.sent
        assert sent.title == "Data flow stopped"
        assert "10.0.0.5" in sent.body
        assert "8 consecutive hours" in sent.body
        assert sent.severity == AlertSeverity.CRITICAL
        assert sent.recipients == ["ops@example.com"]

    def test_custom_threshold(self, watermark, source, notifier, clock):
        detector = _detector(watermark, source, notifier, clock, threshold_hours=2)
        assert detector.check(0, T0 + timedelta(hours=2)).status == StalenessStatus.ALARM


class TestContinuingOutage:
    def test_alarms_on_every_tick_past_threshold(self, watermark, source, notifier, clock):
        source.scalars = [0]
        detector = _detector(watermark, source, notifier, clock)

        statuses = []
        for _ in range(20):  # 30-minute ticks up to T0 + 10h
            clock.advance(minutes=30)
            statuses.append(detector.run().status)

        alarm_ticks = [i for i, s in enumerate(statuses) if s == StalenessStatus.ALARM]
        # ticks 15..19 are at 8h, 8.5h, 9h, 9.5h and 10h
        assert alarm_ticks == [15, 16, 17, 18, 19]
        assert len(notifier.sent) == 5

    def test_recovery_stops_alarms(self, watermark, source, notifier, clock):
        source.scalars = [0, 3, 0]
        detector = _detector(watermark, source, notifier, clock)

        clock.advance(hours=9)
        assert detector.run().status == StalenessStatus.ALARM
        clock.advance(minutes=30)
        assert detector.run().status == StalenessStatus.ACTIVE
        clock.advance(minutes=30)
        assert detector.run().status == StalenessStatus.WARN
        assert len(notifier.sent) == 1


class TestRun:
    def test_queries_last_hour(self, watermark, source, notifier, clock):
        source.scalars = [1]
        clock.advance(hours=5)

        _detector(watermark, source, notifier, clock).run()

        kind, statement, params = source.calls[0]
        assert statement is RECENT_ARTICLE_COUNT
        assert params == {"since": T0 + timedelta(hours=4)}

    def test_query_failure_leaves_watermark(self, watermark, source, notifier, clock):
        source.scalars = [QueryError("gone")]
        clock.advance(hours=12)

        outcome = _detector(watermark, source, notifier, clock).run()

        assert outcome.status == StalenessStatus.FAILED
        assert watermark.last_activity == T0
        assert notifier.sent == []


class TestPrime:
    def test_primes_from_latest_article(self, watermark, source, notifier, clock):
        latest = T0 - timedelta(hours=6)
        source.scalars = [latest]

        assert _detector(watermark, source, notifier, clock).prime() == latest
        assert watermark.last_activity == latest
        assert source.calls[0][1] is LATEST_ARTICLE_TIME

    def test_empty_store_primes_to_now(self, watermark, source, notifier, clock):
        source.scalars = [None]
        clock.advance(hours=1)
        _detector(watermark, source, notifier, clock).prime()
        assert watermark.last_activity == clock.now

    def test_future_timestamp_clamped(self, watermark, source, notifier, clock):
        source.scalars = [T0 + timedelta(days=1)]
        _detector(watermark, source, notifier, clock).prime()
        assert watermark.last_activity == T0

    def test_query_failure_primes_to_now(self, watermark, source, notifier, clock):
        source.scalars = [QueryError("gone")]
        _detector(watermark, source, notifier, clock).prime()
        assert watermark.last_activity == T0

    def test_primed_outage_alarms_immediately(self, watermark, source, notifier, clock):
        source.scalars = [T0 - timedelta(hours=9), 0]
        detector = _detector(watermark, source, notifier, clock)
        detector.prime()
        assert detector.run().status == StalenessStatus.ALARM

    def test_aware_timestamp_converted_to_local(self, watermark, source, notifier, clock):
        aware = datetime(2026, 3, 9, 0, 0, tzinfo=timezone.utc)
        source.scalars = [aware]
        _detector(watermark, source, notifier, clock).prime()
        assert watermark.last_activity == aware.astimezone().replace(tzinfo=None)
        assert watermark.last_activity.tzinfo is None
