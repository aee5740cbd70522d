"""Read-only access to the ingestion store.

Manifesto:
    Checks never touch a driver directly. They see a two-method
    ``DataSource`` (scalar and rows) so that tests can hand them a fake,
    and every driver failure arrives as a single ``QueryError`` type that
    the check boundary knows how to log.

This module provides:

* ``create_store_engine``   -- SA engine with bounded connect/pool timeouts.
* ``DataSource``            -- Protocol consumed by the engine checks.
* ``SqlAlchemyDataSource``  -- ``DataSource`` backed by a SA ``Engine``.

Tags:
    sentinel, sqlalchemy, datasource, engine, query

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.base import Executable

from sentinel.core.errors import QueryError
from sentinel.framework.logging import get_logger

log = get_logger(__name__)

Statement = str | Executable
Row = dict[str, Any]


def create_store_engine(
    url: str = "sqlite:///sentinel.db",
    *,
    timeout_s: int = 30,
    echo: bool = False,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine whose waits are all bounded.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``mysql+pymysql://…``, etc.)
    timeout_s:
        Upper bound for connecting, waiting on the pool, and (where the
        driver supports it) reading a result.
    echo:
        If ``True``, log all SQL to stdout.
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", timeout_s)
        engine = _sa_create_engine(url, echo=echo, connect_args=connect_args, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        return engine

    connect_args = kwargs.pop("connect_args", {})
    if url.startswith("mysql+pymysql"):
        connect_args.setdefault("connect_timeout", timeout_s)
        connect_args.setdefault("read_timeout", timeout_s)
    elif url.startswith("postgresql"):
        connect_args.setdefault("connect_timeout", timeout_s)

    return _sa_create_engine(
        url,
        echo=echo,
        pool_timeout=timeout_s,
        pool_pre_ping=True,
        connect_args=connect_args,
        **kwargs,
    )


@runtime_checkable
class DataSource(Protocol):
    """Parameterized read queries against the ingestion store.

    Both methods raise ``QueryError`` on any failure; they never return a
    partial result.
    """

    def query_scalar(self, statement: Statement, params: Mapping[str, Any] | None = None) -> Any:
        """Return the first column of the first row, or ``None``."""
        ...

    def query_rows(self, statement: Statement, params: Mapping[str, Any] | None = None) -> list[Row]:
        """Return every row as a plain dict, in the order the query produced."""
        ...


def _as_executable(statement: Statement) -> Executable:
    return text(statement) if isinstance(statement, str) else statement


def _label(statement: Statement) -> str:
    return " ".join(str(statement).split())[:120]


class SqlAlchemyDataSource:
    """``DataSource`` backed by a SQLAlchemy ``Engine``."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def from_url(cls, url: str, *, timeout_s: int = 30) -> SqlAlchemyDataSource:
        return cls(create_store_engine(url, timeout_s=timeout_s))

    @property
    def engine(self) -> Engine:
        return self._engine

    def query_scalar(self, statement: Statement, params: Mapping[str, Any] | None = None) -> Any:
        try:
            with self._engine.connect() as conn:
                return conn.execute(_as_executable(statement), dict(params or {})).scalar()
        except SQLAlchemyError as exc:
            raise QueryError(f"Scalar query failed: {exc}", cause=exc).with_context(
                query=_label(statement)
            ) from exc

    def query_rows(self, statement: Statement, params: Mapping[str, Any] | None = None) -> list[Row]:
        try:
            with self._engine.connect() as conn:
                result = conn.execute(_as_executable(statement), dict(params or {}))
                return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as exc:
            raise QueryError(f"Row query failed: {exc}", cause=exc).with_context(
                query=_label(statement)
            ) from exc

    def dispose(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()
        log.debug("datasource.disposed", url=self._engine.url.render_as_string(hide_password=True))


__all__ = [
    "DataSource",
    "Row",
    "SqlAlchemyDataSource",
    "Statement",
    "create_store_engine",
]
