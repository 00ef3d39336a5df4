"""
Connectivity Probes

Plain reachability checks used before any fingerprinting:
- TCP connect check
- One-time resolution of the scan target
- UDP zero-length datagram check
"""

import socket
from typing import Optional
import logging

from .models import ConnectivityResult

logger = logging.getLogger(__name__)


def resolve_target(host: str) -> Optional[str]:
    """Resolve ``host`` to one address, preferring IPv4. None if it cannot be resolved."""
    try:
        addr_info = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except OSError as e:
        logger.warning(f"Cannot resolve {host} - {e}")
        return None
    if not addr_info:
        return None
    for family, _, _, _, sockaddr in addr_info:
        if family == socket.AF_INET:
            return sockaddr[0]
    return addr_info[0][4][0]


def probe_tcp(host: str, port: int, timeout: float) -> ConnectivityResult:
    """Attempt a full TCP connect. Any failure, resolution included, is CLOSED."""
    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except OSError as e:
        logger.debug(f"TCP connect to {host}:{port} failed - {e}")
        return ConnectivityResult.CLOSED
    sock.close()
    return ConnectivityResult.OPEN


def probe_udp(host: str, port: int, timeout: float) -> ConnectivityResult:
    """Send an empty datagram and classify the reaction.

    A reply or silence both mean OPEN_OR_FILTERED; only an ICMP
    port-unreachable (ConnectionRefusedError on a connected socket) is CLOSED.
    """
    try:
        addr_info = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    except OSError as e:
        logger.debug(f"UDP resolution of {host} failed - {e}")
        return ConnectivityResult.CLOSED

    family, socktype, proto, _, sockaddr = addr_info[0]
    try:
        with socket.socket(family, socktype, proto) as sock:
            sock.settimeout(timeout)
            # connect() so the kernel reports ICMP errors back to this socket
            sock.connect(sockaddr)
            sock.send(b"")
            try:
                sock.recv(1)
            except socket.timeout:
                # silence: listening-but-quiet or dropped, indistinguishable
                pass
            return ConnectivityResult.OPEN_OR_FILTERED
    except ConnectionRefusedError:
        return ConnectivityResult.CLOSED
    except OSError as e:
        logger.debug(f"UDP probe of {host}:{port} failed - {e}")
        return ConnectivityResult.CLOSED
