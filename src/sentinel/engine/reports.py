"""Plain-text titles and bodies for every notification the engine sends."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sentinel.core.probe import PortStatus

PROCESS_MISSING_TEXT = "WARNING: no matching process found"
CONSUMER_GROUP_ERROR_TEXT = "ERROR: consumer group status unavailable, check the broker and helper script path"


def _table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    cells = [[str(h) for h in headers]] + [[str(c) for c in row] for row in rows]
    widths = [max(len(row[i]) for row in cells) for i in range(len(headers))]
    lines = ["  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip() for row in cells]
    lines.insert(1, "  ".join("-" * w for w in widths))
    return "\n".join(lines)


def source_report(rows: Sequence[Mapping[str, Any]], services: Sequence[PortStatus]) -> tuple[str, str]:
    sections = []
    if services:
        sections.append(
            "Core service ports\n"
            + _table(
                ["SERVICE", "PORT", "STATUS"],
                [(s.name, s.port, "OK (running)" if s.reachable else "FAILED (connection failed)") for s in services],
            )
        )
    sections.append(
        f"New sources ({len(rows)})\n"
        + _table(["ID", "NAME"], [(row.get("id"), row.get("source_name") or "-") for row in rows])
    )
    return "Daily ingestion health report", "\n\n".join(sections)


def port_alarm(
    host: str,
    failed_ports: Sequence[int],
    key_services: Sequence[tuple[int, str]] = (),
    problems: Sequence[str] = (),
) -> tuple[str, str]:
    lines = []
    if failed_ports:
        lines.append(f"Server {host}: unreachable ports: {' '.join(str(p) for p in failed_ports)}")
    lines.extend(f"Server {host}: {problem}" for problem in problems)
    if key_services:
        names = ", ".join(f"{port} ({name})" for port, name in key_services)
        lines.append(f"Check the status of {names}.")
    return "Port connectivity alarm", "\n".join(lines)


def staleness_alarm(host: str, hours: int) -> tuple[str, str]:
    return (
        "Data flow stopped",
        f"Server {host}: no new articles ingested for {hours} consecutive hours.",
    )


def escalation_alarm(level: int, failure_count: int, host: str) -> tuple[str, str]:
    title = f"Ingestion failure alert (L{level})"
    body = f"Server: {host}\nFailed ingestions today: {failure_count}."
    if level == 3:
        title = "Severe ingestion failure (L3)"
        body += "\nInvestigate resources and services immediately."
    return title, body


def health_report(host: str, process_lines: Sequence[str], group: str, group_output: str) -> tuple[str, str]:
    processes = "\n".join(process_lines) if process_lines else PROCESS_MISSING_TEXT
    body = (
        f"Server: {host}\n\n"
        f"1. Processes\n{processes}\n\n"
        f"2. Consumer group {group}\n{group_output}\n\n"
        "This is the scheduled daily inspection. Outages between inspections raise real-time alarms."
    )
    return "Daily system health inspection", body
