"""
TCP liveness probe.

``probe_connect`` answers one question: does a TCP handshake to
``host:port`` complete within the timeout. Refused, reset and timed-out
connections are ordinary answers (``False``). Only an unresolvable host
name raises, because that points at configuration rather than at the
service.
"""

from __future__ import annotations

import socket
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from sentinel.core.errors import HostResolutionError
from sentinel.framework.logging import get_logger

log = get_logger(__name__)


def probe_connect(host: str, port: int, timeout_ms: int) -> bool:
    """Return True when ``host:port`` accepts a TCP connection in time."""
    try:
        with socket.create_connection((host, port), timeout=timeout_ms / 1000):
            log.debug("probe.connected", host=host, port=port)
            return True
    except socket.gaierror as exc:
        raise HostResolutionError(host, cause=exc) from exc
    except OSError as exc:
        log.warning("probe.failed", host=host, port=port, reason=str(exc) or type(exc).__name__)
        return False


@dataclass(frozen=True)
class PortStatus:
    """Probe outcome for one named service port."""

    port: int
    name: str
    reachable: bool


def probe_services(
    host: str,
    services: Sequence[tuple[int, str]],
    timeout_ms: int,
    *,
    probe: Callable[[str, int, int], bool] = probe_connect,
) -> list[PortStatus]:
    """Probe each ``(port, name)`` pair, keeping the given order."""
    return [
        PortStatus(port=port, name=name, reachable=probe(host, port, timeout_ms))
        for port, name in services
    ]
