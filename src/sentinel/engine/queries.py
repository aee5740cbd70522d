"""
Statements issued against the ingestion store.

Time windows are computed in Python and bound as typed parameters, so the
same statements run unchanged on MySQL in production and SQLite in tests.

Tables read:

- ``trs_datasource(id, source_name, createTime, ...)``: upstream sources
- ``article(id, createTime, isVideoTranscod, resourceUrl, ...)``: ingested rows
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import DateTime, bindparam, column, text

from sentinel.core.timestamps import start_of_day

# isVideoTranscod value marking an article whose ingestion failed
FAILED_TRANSCODE_STATUS = 3

MAX_SOURCE_ID = text("SELECT MAX(id) FROM trs_datasource")

# Ordered by id DESC: the first row carries the batch maximum.
NEW_SOURCES = text(
    "SELECT * FROM trs_datasource "
    "WHERE id > :last_id AND createTime >= :since "
    "ORDER BY id DESC"
).bindparams(bindparam("since", type_=DateTime()))

RECENT_ARTICLE_COUNT = text(
    "SELECT COUNT(*) FROM article WHERE createTime >= :since"
).bindparams(bindparam("since", type_=DateTime()))

FAILED_ARTICLES_TODAY = text(
    "SELECT COUNT(*) FROM article "
    "WHERE createTime >= :day_start "
    "AND isVideoTranscod = :failed_status "
    "AND (resourceUrl IS NULL OR resourceUrl != :excluded_error)"
).bindparams(bindparam("day_start", type_=DateTime()))

LATEST_ARTICLE_TIME = text("SELECT MAX(createTime) AS latest FROM article").columns(
    column("latest", DateTime())
)


def new_sources_params(last_id: int, now: datetime, window_days: int) -> dict[str, Any]:
    """Rows past the cursor, created no earlier than ``window_days`` calendar days ago."""
    return {"last_id": last_id, "since": start_of_day(now) - timedelta(days=window_days)}


def recent_activity_params(now: datetime, window_hours: int) -> dict[str, Any]:
    return {"since": now - timedelta(hours=window_hours)}


def failed_today_params(now: datetime, excluded_error: str) -> dict[str, Any]:
    return {
        "day_start": start_of_day(now),
        "failed_status": FAILED_TRANSCODE_STATUS,
        "excluded_error": excluded_error,
    }
