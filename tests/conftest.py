"""
Shared pytest fixtures for ingest-sentinel tests.

This module provides:
- ``RecordingNotifier``: a ``Notifier`` that records every call
- ``FakeDataSource``: a scripted ``DataSource`` for engine unit tests
- ``store``: a file-backed SQLite ingestion store with the real schema
- ``settings``: validated ``MonitorSettings`` pointing at that store

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments.

    def test_alarm(notifier, store):
        ...
"""

import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table

# Ensure sentinel package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sentinel.core.datasource import SqlAlchemyDataSource, create_store_engine
from sentinel.core.settings import MonitorSettings
from sentinel.framework.alerts import AlertSeverity


# =============================================================================
# Notifier / DataSource fakes
# =============================================================================


@dataclass
class Notification:
    recipients: list[str]
    title: str
    body: str
    severity: AlertSeverity


class RecordingNotifier:
    """Records notifications instead of delivering them."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.sent: list[Notification] = []

    def notify(
        self,
        recipients: Sequence[str],
        title: str,
        body: str,
        *,
        severity: AlertSeverity = AlertSeverity.ERROR,
    ) -> bool:
        self.sent.append(Notification(list(recipients), title, body, severity))
        return self.result

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.sent]


@dataclass
class FakeDataSource:
    """
    Scripted ``DataSource``.

    Each call pops the next entry of ``scalars`` / ``rows``; the last entry
    repeats once the script runs out. An ``Exception`` entry is raised.
    """

    scalars: list[Any] = field(default_factory=list)
    rows: list[Any] = field(default_factory=list)
    calls: list[tuple[str, Any, dict[str, Any]]] = field(default_factory=list)

    @staticmethod
    def _next(script: list[Any]) -> Any:
        value = script.pop(0) if len(script) > 1 else (script[0] if script else None)
        if isinstance(value, Exception):
            raise value
        return value

    def query_scalar(self, statement, params=None):
        self.calls.append(("scalar", statement, dict(params or {})))
        return self._next(self.scalars)

    def query_rows(self, statement, params=None):
        self.calls.append(("rows", statement, dict(params or {})))
        return self._next(self.rows) or []


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def source() -> FakeDataSource:
    return FakeDataSource()


# =============================================================================
# SQLite ingestion store
# =============================================================================


metadata = MetaData()

trs_datasource = Table(
    "trs_datasource",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("source_name", String(255)),
    Column("createTime", DateTime),
)

article = Table(
    "article",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("createTime", DateTime),
    Column("isVideoTranscod", Integer, default=0),
    Column("resourceUrl", String(512), default=""),
)


class Store:
    """Test handle over a SQLite file with the ingestion schema."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.engine = create_store_engine(url)
        metadata.create_all(self.engine)
        self.source = SqlAlchemyDataSource(self.engine)

    def add_sources(self, *rows: tuple[int, str, datetime]) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                trs_datasource.insert(),
                [{"id": i, "source_name": name, "createTime": ts} for i, name, ts in rows],
            )

    def add_articles(self, *rows: dict[str, Any]) -> None:
        with self.engine.begin() as conn:
            conn.execute(article.insert(), list(rows))


@pytest.fixture
def store(tmp_path: Path):
    s = Store(f"sqlite:///{tmp_path / 'ingest.db'}")
    yield s
    s.engine.dispose()


@pytest.fixture
def settings(store: Store) -> MonitorSettings:
    return MonitorSettings(
        _env_file=None,
        database_url=store.url,
        alarm_recipients="ops@example.com,dev@example.com",
        host="127.0.0.1",
        ports="9100,10086",
        console_alerts=False,
    )
