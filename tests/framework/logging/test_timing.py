"""Tests for sentinel.framework.logging.timing: timed spans."""

import pytest
from structlog.testing import capture_logs

from sentinel.framework.logging import Span, clear_context, get_context, span


@pytest.fixture(autouse=True)
def _clean_context():
    clear_context()
    yield
    clear_context()


class TestSpan:
    def test_elapsed_after_finish(self):
        timing = Span("x", started=1.0)
        timing.finished = 1.25
        assert timing.elapsed_ms == pytest.approx(250.0)

    def test_finish_is_idempotent(self):
        timing = Span("x")
        timing.finish()
        first = timing.finished
        timing.finish()
        assert timing.finished == first

    def test_notes_in_fields(self):
        timing = Span("x", parent_id="abcd1234")
        timing.note("outcome", "ok")
        fields = timing.as_fields()
        assert fields["outcome"] == "ok"
        assert fields["parent_span_id"] == "abcd1234"
        assert "duration_ms" in fields

    def test_error_in_fields(self):
        timing = Span("x", error=ValueError("bad"))
        assert timing.failed is True
        assert timing.as_fields()["error_type"] == "ValueError"


class TestSpanContextManager:
    def test_logs_start_and_end(self):
        with capture_logs() as logs:
            with span("check.ports", ports=2) as timing:
                timing.note("outcome", "all_ok")

        assert [entry["event"] for entry in logs] == ["check.ports.start", "check.ports.end"]
        assert logs[1]["outcome"] == "all_ok"
        assert logs[1]["ports"] == 2
        assert logs[1]["log_level"] == "info"

    def test_context_scoped_to_block(self):
        with span("check.reset") as timing:
            assert get_context().span_id == timing.span_id
            assert get_context().step == "check.reset"
        assert get_context().span_id is None
        assert timing.finished is not None

    def test_nested_span_records_parent(self):
        with span("check.sources") as outer:
            with span("sources.publish") as inner:
                pass
        assert inner.parent_id == outer.span_id

    def test_error_logged_and_reraised(self):
        with capture_logs() as logs:
            with pytest.raises(RuntimeError):
                with span("check.sources"):
                    raise RuntimeError("store down")

        assert [entry["event"] for entry in logs] == ["check.sources.start", "check.sources.failed"]
        assert logs[1]["error_message"] == "store down"
        assert logs[1]["log_level"] == "error"
