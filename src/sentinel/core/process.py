"""
Process-level health helpers for the monitored host.

Two shell-level observations complement the port probe on Linux hosts:

- ``find_processes``: the ``ps -ef`` lines mentioning a pattern
- ``describe_consumer_group``: the output of the Kafka consumer-group
  helper script for the ingest group

Both are bounded by a timeout and degrade to empty output on failure, which
the callers treat as "unhealthy".
"""

from __future__ import annotations

import subprocess
import sys

from sentinel.framework.logging import get_logger

log = get_logger(__name__)


def is_linux(platform: str | None = None) -> bool:
    """True when running on (or asked about) a Linux platform."""
    return (platform or sys.platform).startswith("linux")


def _run(cmd: list[str], timeout_s: float) -> str:
    try:
        result = subprocess.run(cmd, capture_output=True, check=False, timeout=timeout_s)
    except (subprocess.TimeoutExpired, FileNotFoundError, PermissionError) as exc:
        log.error("process.command_failed", cmd=cmd[0], error=str(exc))
        return ""
    return result.stdout.decode("utf-8", errors="replace")


def find_processes(pattern: str, *, timeout_s: float = 10.0) -> list[str]:
    """Return ``ps -ef`` lines containing ``pattern``."""
    output = _run(["ps", "-ef"], timeout_s)
    return [line for line in output.splitlines() if pattern in line]


def describe_consumer_group(
    script_path: str | None,
    *,
    bootstrap: str = "localhost:9092",
    group: str = "my-group",
    timeout_s: float = 30.0,
) -> str:
    """Run the consumer-group helper and return its stdout ("" on failure)."""
    if not script_path:
        log.warning("process.no_kafka_script")
        return ""
    return _run(
        ["sh", script_path, "--bootstrap-server", bootstrap, "--describe", "--group", group],
        timeout_s,
    ).strip()


def consumer_group_unhealthy(output: str) -> bool:
    """Empty output or any "error" mention means the group cannot be trusted."""
    return not output or "error" in output.lower()
