import os
import sys


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from portsleuth.models import TlsInfo
from portsleuth.protocols.tls import (
    CLIENT_HELLO_BYTES,
    build_client_hello,
    classify_tls_response,
    probe_tls,
)


def test_client_hello_lengths_are_consistent() -> None:
    hello = build_client_hello()
    assert hello == CLIENT_HELLO_BYTES
    assert len(hello) == 52
    assert hello[0] == 0x16
    assert hello[1:3] == b"\x03\x01"
    assert int.from_bytes(hello[3:5], "big") == len(hello) - 5
    assert hello[5] == 0x01
    assert int.from_bytes(hello[6:9], "big") == len(hello) - 9
    assert hello[9:11] == b"\x03\x03"


def test_client_hello_offers_one_suite_and_null_compression() -> None:
    hello = build_client_hello()
    # record(5) + handshake header(4) + version(2) + random(32) + session id length(1)
    offset = 5 + 4 + 2 + 32
    assert hello[offset] == 0
    assert hello[offset + 1:offset + 5] == b"\x00\x02\x00\x3c"
    assert hello[offset + 5:offset + 7] == b"\x01\x00"
    assert hello[offset + 7:] == b"\x00\x00"


def test_classify_handshake_record_as_confirmed() -> None:
    info = classify_tls_response(b"\x16\x03\x03\x00\x2a\x02\x00\x00")
    assert info == TlsInfo.confirmed_service()
    assert info.confirmed


def test_classify_other_reply_as_possible() -> None:
    info = classify_tls_response(b"HTTP/1.1 400 Bad Request\r\n")
    assert info == TlsInfo.possible_service()
    assert not info.confirmed
    # a handshake byte without a full record header is not proof either
    assert classify_tls_response(b"\x16\x03") == TlsInfo.possible_service()


def test_classify_no_reply() -> None:
    assert classify_tls_response(b"") is None


def test_probe_live_handshake_reply(greeting_server) -> None:
    server = greeting_server(b"\x16\x03\x03\x00\x4a\x02\x00\x00\x46\x03\x03")
    info = probe_tls("127.0.0.1", server.port)
    assert info is not None
    assert info.confirmed


def test_probe_silent_server(greeting_server) -> None:
    server = greeting_server(b"")
    assert probe_tls("127.0.0.1", server.port) is None


def test_probe_closed_port(closed_port) -> None:
    assert probe_tls("127.0.0.1", closed_port) is None
