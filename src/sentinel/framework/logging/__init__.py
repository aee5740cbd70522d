"""
Structured logging for the monitor.

Every scheduled check runs in its own tick scope (trace id, check, host)
and inside a timed span, so one ``trace_id`` pulls up the whole tick:

    with tick_scope(trace_id=new_trace_id(), check="ports", host=host):
        with span("check.ports") as timing:
            timing.note("outcome", scanner.run().status.value)
"""

from sentinel.framework.logging.config import configure_logging, is_configured
from sentinel.framework.logging.context import (
    TickContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    merge_tick_context,
    new_trace_id,
    tick_scope,
)
from sentinel.framework.logging.timing import Span, span

__all__ = [
    "Span",
    "TickContext",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_context",
    "get_logger",
    "is_configured",
    "merge_tick_context",
    "new_trace_id",
    "span",
    "tick_scope",
]
