"""
Typed errors for the ingest monitor.

Each boundary in the monitor catches exactly one family:

- ``QueryError``: a store read failed. The check that issued it logs it
  and leaves its state alone; the next tick retries.
- ``DeliveryError``: an alert channel could not hand off a message. The
  channel turns it into a failed ``DeliveryResult``; nothing upstream sees
  an exception.
- ``ConfigError``: a setting is unusable. Raised at startup (or, for an
  unresolvable host, by the probe) and never silently absorbed.
- ``ScheduleError``: a job could not be registered with a backend.

Hierarchy:
    ::

        SentinelError (category, retryable, context, cause)
        ├── QueryError            STORE     retryable
        ├── DeliveryError         DELIVERY  retryable
        ├── ConfigError           CONFIG
        │   ├── InvalidConfigError(key, value)
        │   └── HostResolutionError(host)
        └── ScheduleError         SCHEDULING

Examples:
    >>> error = QueryError("MAX(id) lookup failed").with_context(check="sources")
    >>> error.context.check
    'sources'
    >>> error.retryable
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Where a failure originated; used as a log field."""

    STORE = "STORE"
    NETWORK = "NETWORK"
    DELIVERY = "DELIVERY"
    CONFIG = "CONFIG"
    SCHEDULING = "SCHEDULING"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    What the monitor was doing when the error happened.

    Attributes:
        check: Scheduled check name (e.g. "ports")
        job: Scheduler job name
        host: Monitored host
        port: Monitored port
        query: Abbreviated statement text
        metadata: Anything else worth logging
    """

    check: str | None = None
    job: str | None = None
    host: str | None = None
    port: int | None = None
    query: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "metadata" and getattr(self, f.name) is not None
        }
        result.update(self.metadata)
        return result


class SentinelError(Exception):
    """Base class; subclasses pick ``default_category`` / ``default_retryable``."""

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = self.default_retryable if retryable is None else retryable
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SentinelError:
        """
        Attach context and return self, for use in ``raise`` expressions.

        Known ``ErrorContext`` fields are set directly; other keys go to
        ``metadata``.
        """
        known = {f.name for f in fields(ErrorContext)} - {"metadata"}
        for key, value in kwargs.items():
            if key in known:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Flat structure suitable for ``log.error(event, **err.to_dict())``."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "error_message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context = self.context.to_dict()
        if context:
            result["context"] = context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


class QueryError(SentinelError):
    """A read against the ingestion store failed."""

    default_category = ErrorCategory.STORE
    default_retryable = True


class DeliveryError(SentinelError):
    """An alert channel could not hand off a message."""

    default_category = ErrorCategory.DELIVERY
    default_retryable = True


class ConfigError(SentinelError):
    """A setting is missing or unusable. Never retryable."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


class HostResolutionError(ConfigError):
    """The monitored host name does not resolve."""

    def __init__(self, host: str, *, cause: Exception | None = None):
        self.host = host
        super().__init__(
            f"Cannot resolve monitored host: {host}",
            category=ErrorCategory.NETWORK,
            context=ErrorContext(host=host),
            cause=cause,
        )


class ScheduleError(SentinelError):
    """A job could not be registered (duplicate name, bad cron)."""

    default_category = ErrorCategory.SCHEDULING


__all__ = [
    "ConfigError",
    "DeliveryError",
    "ErrorCategory",
    "ErrorContext",
    "HostResolutionError",
    "InvalidConfigError",
    "QueryError",
    "ScheduleError",
    "SentinelError",
]
