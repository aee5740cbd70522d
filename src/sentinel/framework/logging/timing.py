"""
Timed spans around check runs.

``span("check.ports")`` logs ``check.ports.start`` at DEBUG and
``check.ports.end`` with ``duration_ms`` plus whatever the body noted on
the span. A body that raises logs ``check.ports.failed`` at ERROR and the
exception propagates unchanged. Spans nest: an inner span records the
enclosing one as ``parent_span_id``.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from sentinel.framework.logging.context import get_context, get_logger, tick_scope


def _span_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class Span:
    name: str
    parent_id: str | None = None
    span_id: str = field(default_factory=_span_id)
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None
    notes: dict[str, Any] = field(default_factory=dict)
    error: Exception | None = None

    def note(self, key: str, value: Any) -> None:
        self.notes[key] = value

    def finish(self) -> None:
        if self.finished is None:
            self.finished = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        end = self.finished if self.finished is not None else time.perf_counter()
        return round((end - self.started) * 1000, 2)

    @property
    def failed(self) -> bool:
        return self.error is not None

    def as_fields(self) -> dict[str, Any]:
        out: dict[str, Any] = {"span_id": self.span_id, "duration_ms": self.elapsed_ms}
        if self.parent_id:
            out["parent_span_id"] = self.parent_id
        if self.error is not None:
            out["error_type"] = type(self.error).__name__
            out["error_message"] = str(self.error)
        out.update(self.notes)
        return out


@contextmanager
def span(name: str, *, level: str = "info", **notes: Any) -> Iterator[Span]:
    """
    Time the block and log it as one step.

    Usage:
        with span("check.ports", ports=3) as timing:
            outcome = scanner.run()
            timing.note("outcome", outcome.status.value)
    """
    log = get_logger("sentinel.timing")
    current = Span(name, parent_id=get_context().span_id, notes=dict(notes))
    with tick_scope(span_id=current.span_id, parent_span_id=current.parent_id, step=name):
        log.debug(f"{name}.start", span_id=current.span_id, **notes)
        try:
            yield current
        except Exception as exc:
            current.error = exc
            current.finish()
            log.error(f"{name}.failed", exc_info=True, **current.as_fields())
            raise
        finally:
            current.finish()
    getattr(log, level)(f"{name}.end", **current.as_fields())
