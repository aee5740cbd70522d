"""
Cursor tracker for newly registered upstream sources.

Each tick either bootstraps the cursor, reports and advances past a batch
of new sources, or does nothing:

    cursor is None ──► MAX(id) ──► cursor = MAX or 0          (no notification)
    cursor = N     ──► rows id > N, recent, ORDER BY id DESC
                         ├─ empty     ──► idle                (cursor unchanged)
                         └─ non-empty ──► publish(rows)
                                          cursor = rows[0].id

The new cursor is taken from the first row, which relies on the
descending order of ``NEW_SOURCES``. Any query failure leaves the cursor
exactly as it was.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from sentinel.core.datasource import DataSource, Row
from sentinel.core.errors import QueryError
from sentinel.core.timestamps import Clock, local_now
from sentinel.engine.queries import MAX_SOURCE_ID, NEW_SOURCES, new_sources_params
from sentinel.engine.state import Cursor
from sentinel.framework.logging import get_logger

log = get_logger(__name__)

Publisher = Callable[[list[Row]], object]


class CursorStatus(str, Enum):
    BOOTSTRAPPED = "bootstrapped"
    ADVANCED = "advanced"
    IDLE = "idle"
    FAILED = "failed"


@dataclass(frozen=True)
class CursorOutcome:
    status: CursorStatus
    cursor: int | None
    rows: list[Row] = field(default_factory=list)


class CursorTracker:
    """Owns the ``Cursor`` and decides bootstrap vs. advance on each tick."""

    def __init__(
        self,
        cursor: Cursor,
        source: DataSource,
        publish: Publisher,
        *,
        window_days: int = 1,
        clock: Clock = local_now,
    ) -> None:
        self._cursor = cursor
        self._source = source
        self._publish = publish
        self._window_days = window_days
        self._clock = clock

    def advance(self) -> CursorOutcome:
        with self._cursor.lock:
            try:
                return self._advance_locked()
            except QueryError as exc:
                log.error("cursor.query_failed", cursor=self._cursor.last_seen_id, **exc.to_dict())
                return CursorOutcome(CursorStatus.FAILED, self._cursor.last_seen_id)

    def _advance_locked(self) -> CursorOutcome:
        cursor = self._cursor

        if cursor.last_seen_id is None:
            max_id = self._source.query_scalar(MAX_SOURCE_ID)
            cursor.last_seen_id = int(max_id) if max_id is not None else 0
            log.info("cursor.bootstrapped", cursor=cursor.last_seen_id)
            return CursorOutcome(CursorStatus.BOOTSTRAPPED, cursor.last_seen_id)

        rows = self._source.query_rows(
            NEW_SOURCES,
            new_sources_params(cursor.last_seen_id, self._clock(), self._window_days),
        )
        if not rows:
            log.info("cursor.idle", cursor=cursor.last_seen_id)
            return CursorOutcome(CursorStatus.IDLE, cursor.last_seen_id)

        self._publish(rows)

        new_max = int(rows[0]["id"])
        log.info("cursor.advanced", previous=cursor.last_seen_id, cursor=new_max, rows=len(rows))
        cursor.last_seen_id = new_max
        return CursorOutcome(CursorStatus.ADVANCED, new_max, list(rows))
