"""
Shared plumbing for protocol probes: per-protocol timeouts and
short-lived, always-bounded socket connections.
"""

import socket
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional


@dataclass(frozen=True)
class ProtocolTimeout:
    """Connect/read/write bounds for one protocol, in seconds."""
    connect: float
    read: float
    write: Optional[float] = None


@dataclass(frozen=True)
class ProbeTimeouts:
    """Timeouts for every protocol probe.

    Greeting-first servers can be slow to speak, TLS stacks slower still,
    so each protocol gets its own bounds.
    """
    ssh: ProtocolTimeout = field(default_factory=lambda: ProtocolTimeout(connect=0.2, read=0.5))
    greeting: ProtocolTimeout = field(default_factory=lambda: ProtocolTimeout(connect=0.3, read=1.0))
    http: ProtocolTimeout = field(default_factory=lambda: ProtocolTimeout(connect=0.2, read=0.5, write=0.2))
    tls: ProtocolTimeout = field(default_factory=lambda: ProtocolTimeout(connect=1.0, read=2.0, write=1.0))


@contextmanager
def open_probe_connection(host: str, port: int, timeout: ProtocolTimeout) -> Iterator[socket.socket]:
    """Connect with ``timeout.connect`` and leave the socket on ``timeout.read``.

    Raises OSError on failure; callers turn that into "no outcome".
    """
    sock = socket.create_connection((host, port), timeout=timeout.connect)
    try:
        sock.settimeout(timeout.read)
        yield sock
    finally:
        sock.close()


def send_payload(sock: socket.socket, payload: bytes, timeout: ProtocolTimeout) -> None:
    """Write the whole payload under the write bound, then restore the read bound."""
    sock.settimeout(timeout.write if timeout.write is not None else timeout.read)
    try:
        sock.sendall(payload)
    finally:
        sock.settimeout(timeout.read)


def read_once(sock: socket.socket, size: int) -> bytes:
    """Single bounded read. A timeout yields ``b""``."""
    try:
        return sock.recv(size)
    except socket.timeout:
        return b""


def first_line(text: str) -> Optional[str]:
    """First line of ``text`` stripped of whitespace, or None when empty."""
    lines = text.splitlines()
    if not lines:
        return None
    line = lines[0].strip()
    return line or None
