import os
import socket
import sys
import time


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from portsleuth.connectivity import probe_tcp, probe_udp
from portsleuth.models import ConnectivityResult


def test_tcp_listening_port_is_open() -> None:
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    try:
        port = listener.getsockname()[1]
        assert probe_tcp("127.0.0.1", port, 1.0) is ConnectivityResult.OPEN
    finally:
        listener.close()


def test_tcp_closed_port_is_closed(closed_port) -> None:
    assert probe_tcp("127.0.0.1", closed_port, 1.0) is ConnectivityResult.CLOSED


def test_tcp_unroutable_address_respects_timeout() -> None:
    started = time.monotonic()
    result = probe_tcp("10.255.255.1", 80, 0.3)
    elapsed = time.monotonic() - started
    # an intercepting proxy on the path may accept the connect
    assert result in (ConnectivityResult.CLOSED, ConnectivityResult.OPEN)
    assert elapsed < 2.0


def test_tcp_unresolvable_host_is_closed() -> None:
    assert probe_tcp("no-such-host.invalid", 80, 0.5) is ConnectivityResult.CLOSED


def test_udp_closed_port_reports_closed() -> None:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    assert probe_udp("127.0.0.1", port, 0.5) is ConnectivityResult.CLOSED


def test_udp_silent_listener_is_open_or_filtered() -> None:
    listener = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    listener.bind(("127.0.0.1", 0))
    try:
        port = listener.getsockname()[1]
        assert probe_udp("127.0.0.1", port, 0.3) is ConnectivityResult.OPEN_OR_FILTERED
    finally:
        listener.close()


def test_udp_unresolvable_host_is_closed() -> None:
    assert probe_udp("no-such-host.invalid", 53, 0.5) is ConnectivityResult.CLOSED
