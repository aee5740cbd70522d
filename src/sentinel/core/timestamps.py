"""
Wall-clock helpers (stdlib-only).

The ingestion store records ``createTime`` as naive local datetimes, and
the daily boundaries (midnight reset, "today" failure window) are local
calendar days. Everything the engine compares against the store therefore
uses naive local time, not UTC.
"""

from collections.abc import Callable
from datetime import datetime, timedelta

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Get current naive local datetime."""
    return datetime.now()


def start_of_day(moment: datetime) -> datetime:
    """Midnight at the start of ``moment``'s calendar day."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def whole_hours_between(start: datetime, end: datetime) -> int:
    """
    Whole hours elapsed from ``start`` to ``end``, truncated toward zero.

    >>> whole_hours_between(datetime(2026, 1, 1, 0, 0), datetime(2026, 1, 1, 7, 59))
    7
    """
    return int((end - start) / timedelta(hours=1))
