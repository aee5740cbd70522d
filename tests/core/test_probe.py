"""Tests for sentinel.core.probe: TCP liveness probe."""

import socket
from unittest.mock import patch

import pytest

from sentinel.core.errors import HostResolutionError
from sentinel.core.probe import PortStatus, probe_connect, probe_services


@pytest.fixture
def listening_port():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    yield server.getsockname()[1]
    server.close()


@pytest.fixture
def closed_port():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


class TestProbeConnect:
    def test_listening_port_is_reachable(self, listening_port):
        assert probe_connect("127.0.0.1", listening_port, 1000) is True

    def test_closed_port_is_unreachable(self, closed_port):
        assert probe_connect("127.0.0.1", closed_port, 1000) is False

    def test_timeout_is_unreachable(self):
        with patch("sentinel.core.probe.socket.create_connection", side_effect=socket.timeout("timed out")):
            assert probe_connect("10.255.255.1", 9100, 50) is False

    def test_timeout_converted_to_seconds(self, listening_port):
        with patch("sentinel.core.probe.socket.create_connection") as create:
            probe_connect("127.0.0.1", listening_port, 3000)
        create.assert_called_once_with(("127.0.0.1", listening_port), timeout=3.0)

    def test_unresolvable_host_raises(self):
        with patch(
            "sentinel.core.probe.socket.create_connection",
            side_effect=socket.gaierror(-2, "Name or service not known"),
        ):
            with pytest.raises(HostResolutionError) as exc_info:
                probe_connect("no-such-host.invalid", 9100, 100)
        assert exc_info.value.host == "no-such-host.invalid"


class TestProbeServices:
    def test_keeps_order_and_names(self):
        reachable = {9100: True, 10086: False}
        statuses = probe_services(
            "127.0.0.1",
            [(9100, "TRS data receiver"), (10086, "article consumer")],
            3000,
            probe=lambda host, port, timeout_ms: reachable[port],
        )
        assert statuses == [
            PortStatus(9100, "TRS data receiver", True),
            PortStatus(10086, "article consumer", False),
        ]

    def test_empty(self):
        assert probe_services("127.0.0.1", [], 3000) == []
