"""
Logging setup for the monitor process.

structlog renders every entry through one ``ProcessorFormatter`` on a
single stderr handler. Records from stdlib loggers (the scheduler
backends, apscheduler, sqlalchemy) go through the same pre-chain, so
JSON output stays one object per line whoever emitted it, and every line
carries the current tick context.

Usage:
    from sentinel.framework.logging import configure_logging
    configure_logging(level=settings.log_level, format=settings.log_format)
"""

from __future__ import annotations

import logging
import sys
from typing import Literal

import structlog
from structlog.types import Processor

from sentinel.framework.logging.context import merge_tick_context

LogFormat = Literal["json", "console"]

# third-party loggers that stay at WARNING unless asked for less
_CHATTY = ("apscheduler", "sqlalchemy.engine")

_handler: logging.Handler | None = None


def _pre_chain() -> list[Processor]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        merge_tick_context,
    ]


def _renderers(format: LogFormat) -> list[Processor]:
    if format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer(ensure_ascii=False)]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(level: str = "INFO", format: LogFormat = "console", *, force: bool = False) -> None:
    """
    Install the sentinel handler on the root logger.

    A second call is a no-op unless ``force`` is set, in which case the
    previous handler is replaced rather than stacked.
    """
    global _handler

    if _handler is not None and not force:
        return

    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_pre_chain(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *_renderers(format)],
        )
    )

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    root.setLevel(numeric)
    for name in _CHATTY:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))
    _handler = handler


def is_configured() -> bool:
    return _handler is not None
