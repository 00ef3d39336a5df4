"""
Greeting-first Protocol Probes

FTP, SMTP, POP3 and IMAP servers all speak first: a 220 reply, a
``+OK`` or an untagged ``* OK``. The probe connects, sends nothing and
keeps the first line of whatever arrives.
"""

from typing import Optional
import logging

from .base import ProbeTimeouts, open_probe_connection, read_once, first_line

logger = logging.getLogger(__name__)

FTP_PORTS = frozenset({21})
SMTP_PORTS = frozenset({25, 465, 587})
POP3_PORTS = frozenset({110, 995})
IMAP_PORTS = frozenset({143, 993})


def read_greeting(host: str, port: int, timeouts: Optional[ProbeTimeouts] = None) -> Optional[str]:
    """Return the first non-empty line a server sends on connect."""
    timeout = (timeouts or ProbeTimeouts()).greeting
    try:
        with open_probe_connection(host, port, timeout) as sock:
            data = read_once(sock, 512)
    except OSError as e:
        logger.debug(f"Greeting read failed for {host}:{port} - {e}")
        return None

    if not data:
        return None
    return first_line(data.decode("utf-8", errors="replace"))


def probe_ftp(host: str, port: int, timeouts: Optional[ProbeTimeouts] = None) -> Optional[str]:
    return read_greeting(host, port, timeouts)


def probe_smtp(host: str, port: int, timeouts: Optional[ProbeTimeouts] = None) -> Optional[str]:
    return read_greeting(host, port, timeouts)


def probe_pop3(host: str, port: int, timeouts: Optional[ProbeTimeouts] = None) -> Optional[str]:
    return read_greeting(host, port, timeouts)


def probe_imap(host: str, port: int, timeouts: Optional[ProbeTimeouts] = None) -> Optional[str]:
    return read_greeting(host, port, timeouts)
