"""
Centralized settings for the ingest monitor.

Manifesto:
    Every tunable the checks depend on (targets, engine constants,
    schedules, delivery) lives in one validated object. A malformed port
    list, a non-ascending threshold ladder or an invalid cron expression
    fails at startup instead of at 3am on the first tick that needs it.

All fields can be set via ``SENTINEL_*`` environment variables (e.g.
``SENTINEL_PORTS=9092,9100,10086``) or a ``.env`` file.

Tags:
    sentinel, configuration, settings, pydantic, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any, Literal

from croniter import croniter
from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sentinel.core.errors import InvalidConfigError

# Rows whose resourceUrl carries this marker failed because the link did
# not fit the column. They are expected and excluded from the failure ladder.
OVERSIZED_LINK_ERROR = "资源链接超过字段长度：8255"


def split_csv(raw: str) -> list[str]:
    """Split a comma-separated value, trimming blanks and dropping empties."""
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_port(raw: str) -> int:
    """Parse one TCP port, raising ``ValueError`` when out of range."""
    port = int(raw)
    if not 1 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    return port


class MonitorSettings(BaseSettings):
    """Ingest monitor configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SENTINEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Targets ──────────────────────────────────────────────────
    alarm_recipients: str = Field(default="", description="Comma-separated alert recipients")
    host: str = Field(default="127.0.0.1", description="Monitored server host")
    ports: str = Field(default="9092,9100,10086", description="Comma-separated ports to probe")
    key_services: str = Field(
        default="9100=TRS data receiver,10086=article consumer",
        description="port=name pairs shown in the source report",
    )

    # ── Store ────────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///sentinel.db")
    query_timeout_s: int = Field(default=30, gt=0)

    # ── Engine ───────────────────────────────────────────────────
    socket_timeout_ms: int = Field(default=3000, gt=0)
    port_alarm_daily_limit: int = Field(default=5, ge=0)
    staleness_threshold_hours: int = Field(default=8, ge=1)
    activity_window_hours: int = Field(default=1, ge=1)
    source_window_days: int = Field(default=1, ge=1)
    fail_level_l1: int = Field(default=20, ge=1)
    fail_level_l2: int = Field(default=50, ge=1)
    fail_level_l3: int = Field(default=100, ge=1)
    oversized_link_error: str = Field(default=OVERSIZED_LINK_ERROR)

    # ── Process helper ───────────────────────────────────────────
    kafka_script_path: str | None = Field(default=None, description="kafka-consumer-groups.sh path")
    kafka_bootstrap: str = Field(default="localhost:9092")
    kafka_group: str = Field(default="my-group")
    process_pattern: str = Field(default="article")
    deep_port_check: bool = Field(default=False, description="Also verify process and consumer group")

    # ── Schedules (5-field cron, local time) ─────────────────────
    source_report_cron: str = Field(default="0 9 * * *")
    port_check_cron: str = Field(default="*/10 * * * *")
    data_flow_cron: str = Field(default="*/30 * * * *")
    failure_rate_cron: str = Field(default="*/30 * * * *")
    daily_reset_cron: str = Field(default="0 0 * * *")
    health_report_cron: str = Field(default="50 8 * * *")

    # ── Runtime ──────────────────────────────────────────────────
    scheduler_backend: Literal["apscheduler", "thread"] = Field(default="apscheduler")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="console")

    # ── Delivery ─────────────────────────────────────────────────
    smtp_host: str | None = Field(default=None)
    smtp_port: int = Field(default=587)
    smtp_user: str | None = Field(default=None)
    smtp_password: SecretStr | None = Field(default=None)
    smtp_from: str = Field(default="sentinel@localhost")
    smtp_use_tls: bool = Field(default=True)
    webhook_url: str | None = Field(default=None)
    console_alerts: bool = Field(default=True)

    @field_validator("ports")
    @classmethod
    def _validate_ports(cls, value: str) -> str:
        entries = split_csv(value)
        if not entries:
            raise ValueError("at least one port is required")
        try:
            for entry in entries:
                parse_port(entry)
        except ValueError as exc:
            raise ValueError(f"malformed port list {value!r}: {exc}") from exc
        return value

    @field_validator("key_services")
    @classmethod
    def _validate_key_services(cls, value: str) -> str:
        for entry in split_csv(value):
            port, sep, name = entry.partition("=")
            if not sep or not name.strip():
                raise ValueError(f"expected port=name, got {entry!r}")
            parse_port(port.strip())
        return value

    @field_validator(
        "source_report_cron",
        "port_check_cron",
        "data_flow_cron",
        "failure_rate_cron",
        "daily_reset_cron",
        "health_report_cron",
    )
    @classmethod
    def _validate_cron(cls, value: str) -> str:
        if not croniter.is_valid(value):
            raise ValueError(f"invalid cron expression: {value!r}")
        return value

    @model_validator(mode="after")
    def _validate_fail_levels(self) -> MonitorSettings:
        if not self.fail_level_l1 < self.fail_level_l2 < self.fail_level_l3:
            raise ValueError(
                "failure thresholds must be strictly ascending: "
                f"{self.fail_level_l1} < {self.fail_level_l2} < {self.fail_level_l3}"
            )
        return self

    # ── Derived properties ───────────────────────────────────────

    @property
    def recipient_list(self) -> list[str]:
        return split_csv(self.alarm_recipients)

    @property
    def port_list(self) -> list[int]:
        return [parse_port(p) for p in split_csv(self.ports)]

    @property
    def key_service_list(self) -> list[tuple[int, str]]:
        services = []
        for entry in split_csv(self.key_services):
            port, _, name = entry.partition("=")
            services.append((parse_port(port.strip()), name.strip()))
        return services

    @property
    def schedules(self) -> dict[str, str]:
        """Cron expression per check name."""
        return {
            "sources": self.source_report_cron,
            "ports": self.port_check_cron,
            "data-flow": self.data_flow_cron,
            "failure-rate": self.failure_rate_cron,
            "reset": self.daily_reset_cron,
            "health-report": self.health_report_cron,
        }


def load_settings(**overrides: Any) -> MonitorSettings:
    """
    Build and validate settings, surfacing problems as ``InvalidConfigError``.

    Keyword overrides take precedence over the environment.
    """
    try:
        return MonitorSettings(**overrides)
    except ValidationError as exc:
        first = exc.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ())) or "settings"
        raise InvalidConfigError(key, first.get("input"), message=f"Invalid configuration: {exc}") from exc


__all__ = [
    "OVERSIZED_LINK_ERROR",
    "MonitorSettings",
    "load_settings",
    "parse_port",
    "split_csv",
]
