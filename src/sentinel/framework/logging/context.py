"""
Per-tick log context.

A scheduled check runs inside ``tick_scope``. Everything logged during the
tick, including the notifier and the channels it fans out to, carries the
tick's trace id, check name and host. The context lives in a ContextVar,
so checks running concurrently on scheduler threads never see each
other's values.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, fields, replace
from typing import Any

import structlog


@dataclass(frozen=True)
class TickContext:
    trace_id: str | None = None
    check: str | None = None
    host: str | None = None
    # set by timing.span for nested steps
    span_id: str | None = None
    parent_span_id: str | None = None
    step: str | None = None

    def as_fields(self) -> dict[str, Any]:
        """Populated fields only, in declaration order."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def updated(self, **values: Any) -> TickContext:
        """Copy with ``values`` applied; ``None`` leaves a field as it was."""
        unknown = set(values) - {f.name for f in fields(self)}
        if unknown:
            raise TypeError(f"Unknown context field(s): {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in values.items() if v is not None})


_EMPTY = TickContext()
_current: ContextVar[TickContext] = ContextVar("sentinel_tick", default=_EMPTY)


def new_trace_id() -> str:
    return uuid.uuid4().hex


def get_context() -> TickContext:
    return _current.get()


def bind_context(**values: Any) -> TickContext:
    """Apply ``values`` to the current context for the rest of this thread/task."""
    ctx = get_context().updated(**values)
    _current.set(ctx)
    return ctx


def clear_context() -> None:
    _current.set(_EMPTY)


@contextmanager
def tick_scope(**values: Any) -> Iterator[TickContext]:
    """
    Apply ``values`` for the duration of the block, then restore.

    Usage:
        with tick_scope(trace_id=new_trace_id(), check="ports", host=host):
            scanner.run()
    """
    token = _current.set(get_context().updated(**values))
    try:
        yield _current.get()
    finally:
        _current.reset(token)


def merge_tick_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor: explicit event keys win over context keys."""
    for key, value in get_context().as_fields().items():
        event_dict.setdefault(key, value)
    return event_dict


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)
