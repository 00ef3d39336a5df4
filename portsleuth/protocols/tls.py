"""
TLS Detection Probe

Sends one fixed ClientHello and looks at the first byte of the reply.
This is a detection heuristic, not a TLS client: no handshake is
completed and no certificate is parsed.
"""

import struct
from typing import Optional
import logging

from ..models import TlsInfo
from .base import ProbeTimeouts, open_probe_connection, send_payload, read_once

logger = logging.getLogger(__name__)

TLS_PORTS = frozenset({443, 465, 587, 636, 993, 995, 8443})

HANDSHAKE_RECORD = 0x16
CLIENT_HELLO = 0x01
TLS_RSA_WITH_AES_128_CBC_SHA256 = 0x003C


def build_client_hello() -> bytes:
    """Minimal TLS 1.2 ClientHello: one cipher suite, null compression, no extensions."""
    body = (
        struct.pack("!BB", 3, 3)                          # client_version TLS 1.2
        + bytes(32)                                       # random
        + b"\x00"                                         # session id length
        + struct.pack("!HH", 2, TLS_RSA_WITH_AES_128_CBC_SHA256)
        + b"\x01\x00"                                     # compression: null
        + struct.pack("!H", 0)                            # extensions length
    )
    handshake = struct.pack("!B", CLIENT_HELLO) + len(body).to_bytes(3, "big") + body
    # record layer says TLS 1.0 for compatibility with old servers
    return struct.pack("!BBBH", HANDSHAKE_RECORD, 3, 1, len(handshake)) + handshake


CLIENT_HELLO_BYTES = build_client_hello()


def classify_tls_response(data: bytes) -> Optional[TlsInfo]:
    """Confirmed on a handshake record, possible on any other reply, else None."""
    if len(data) > 5 and data[0] == HANDSHAKE_RECORD:
        return TlsInfo.confirmed_service()
    if data:
        return TlsInfo.possible_service()
    return None


def probe_tls(host: str, port: int, timeouts: Optional[ProbeTimeouts] = None) -> Optional[TlsInfo]:
    """Send the ClientHello and classify whatever comes back."""
    timeout = (timeouts or ProbeTimeouts()).tls
    try:
        with open_probe_connection(host, port, timeout) as sock:
            send_payload(sock, CLIENT_HELLO_BYTES, timeout)
            data = read_once(sock, 2048)
    except OSError as e:
        logger.debug(f"TLS probe failed for {host}:{port} - {e}")
        return None

    return classify_tls_response(data)
