"""Tests for sentinel.engine.cursor: new-source cursor tracking."""

from datetime import datetime, timedelta

import pytest

from sentinel.core.errors import QueryError
from sentinel.engine.cursor import CursorStatus, CursorTracker
from sentinel.engine.queries import MAX_SOURCE_ID, NEW_SOURCES
from sentinel.engine.state import Cursor

NOW = datetime(2026, 3, 10, 9, 0, 0)


@pytest.fixture
def published():
    return []


def _tracker(cursor, source, published, **kwargs):
    return CursorTracker(cursor, source, published.append, clock=lambda: NOW, **kwargs)


class TestBootstrap:
    def test_bootstraps_from_max_id_without_publishing(self, source, published):
        source.scalars = [42]
        cursor = Cursor()

        outcome = _tracker(cursor, source, published).advance()

        assert outcome.status == CursorStatus.BOOTSTRAPPED
        assert cursor.last_seen_id == 42
        assert published == []
        assert source.calls[0][1] is MAX_SOURCE_ID

    def test_empty_table_bootstraps_to_zero(self, source, published):
        source.scalars = [None]
        cursor = Cursor()
        _tracker(cursor, source, published).advance()
        assert cursor.last_seen_id == 0
        assert cursor.is_bootstrapped

    def test_bootstrap_happens_once(self, source, published):
        source.scalars = [42]
        source.rows = [[]]
        cursor = Cursor()
        tracker = _tracker(cursor, source, published)

        tracker.advance()
        outcome = tracker.advance()

        assert outcome.status == CursorStatus.IDLE
        assert [kind for kind, _, _ in source.calls] == ["scalar", "rows"]

    def test_bootstrap_failure_leaves_cursor_unset(self, source, published):
        source.scalars = [QueryError("connection refused")]
        cursor = Cursor()

        outcome = _tracker(cursor, source, published).advance()

        assert outcome.status == CursorStatus.FAILED
        assert cursor.last_seen_id is None


class TestAdvance:
    def test_publishes_and_takes_first_row_id(self, source, published):
        rows = [{"id": 57, "source_name": "c"}, {"id": 55, "source_name": "b"}, {"id": 51, "source_name": "a"}]
        source.rows = [rows]
        cursor = Cursor(last_seen_id=50)

        outcome = _tracker(cursor, source, published).advance()

        assert outcome.status == CursorStatus.ADVANCED
        assert outcome.cursor == 57
        assert cursor.last_seen_id == 57
        assert published == [rows]

    def test_query_params(self, source, published):
        source.rows = [[]]
        _tracker(Cursor(last_seen_id=50), source, published, window_days=2).advance()

        kind, statement, params = source.calls[0]
        assert statement is NEW_SOURCES
        assert params == {"last_id": 50, "since": datetime(2026, 3, 8)}

    def test_no_rows_is_idle(self, source, published):
        source.rows = [[]]
        cursor = Cursor(last_seen_id=50)

        outcome = _tracker(cursor, source, published).advance()

        assert outcome.status == CursorStatus.IDLE
        assert cursor.last_seen_id == 50
        assert published == []

    def test_query_failure_leaves_cursor_unchanged(self, source, published):
        source.rows = [QueryError("timeout")]
        cursor = Cursor(last_seen_id=50)

        outcome = _tracker(cursor, source, published).advance()

        assert outcome.status == CursorStatus.FAILED
        assert outcome.cursor == 50
        assert cursor.last_seen_id == 50
        assert published == []

    def test_cursor_never_decreases(self, source, published):
        source.rows = [[{"id": 60}], [], [{"id": 61}]]
        cursor = Cursor(last_seen_id=50)
        tracker = _tracker(cursor, source, published)

        seen = []
        for _ in range(3):
            tracker.advance()
            seen.append(cursor.last_seen_id)

        assert seen == [60, 60, 61]
        assert seen == sorted(seen)


class TestAgainstStore:
    """End-to-end against the SQLite store with the real statements."""

    def test_new_sources_query_orders_descending(self):
        assert str(NEW_SOURCES).rstrip().endswith("ORDER BY id DESC")

    def test_bootstrap_then_report_new_sources(self, store, published):
        store.add_sources((1, "a", NOW - timedelta(days=5)), (2, "b", NOW - timedelta(days=5)))
        cursor = Cursor()
        tracker = _tracker(cursor, store.source, published)

        tracker.advance()
        assert cursor.last_seen_id == 2

        store.add_sources((3, "c", NOW - timedelta(hours=1)), (4, "d", NOW - timedelta(minutes=5)))
        outcome = tracker.advance()

        assert outcome.status == CursorStatus.ADVANCED
        assert [r["id"] for r in published[0]] == [4, 3]
        assert cursor.last_seen_id == 4

        assert tracker.advance().status == CursorStatus.IDLE
