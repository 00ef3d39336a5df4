"""
HTTP Probe

Sends a minimal HEAD request and parses the status line and headers of
the reply. Only the header block is looked at; bodies are ignored.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import logging

from .. import __version__
from .base import ProbeTimeouts, open_probe_connection, send_payload, read_once

logger = logging.getLogger(__name__)

HTTP_PORTS = frozenset({80, 8000, 8080})
USER_AGENT = f"portsleuth/{__version__}"


@dataclass(frozen=True)
class HttpResponse:
    """Status line and headers of an HTTP response."""
    status_line: str
    headers: List[Tuple[str, str]] = field(default_factory=list)
    server: Optional[str] = None

    def get_header(self, name: str) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None


def build_head_request(host: str) -> bytes:
    return (
        f"HEAD / HTTP/1.1\r\n"
        f"Host: {host}\r\n"
        f"User-Agent: {USER_AGENT}\r\n"
        f"Connection: close\r\n\r\n"
    ).encode("ascii", errors="replace")


def parse_http_response(response: str) -> Optional[HttpResponse]:
    """Parse raw response text; None unless it starts with an HTTP status line."""
    lines = response.splitlines()
    if not lines:
        return None

    status_line = lines[0].strip()
    if not status_line.startswith("HTTP/"):
        return None

    headers: List[Tuple[str, str]] = []
    server = None
    for line in lines[1:]:
        if not line.strip():
            break
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key, value = key.strip(), value.strip()
        if key.lower() == "server":
            server = value
        headers.append((key, value))

    return HttpResponse(status_line=status_line, headers=headers, server=server)


def extract_server_info(response: HttpResponse) -> Optional[str]:
    return response.server


def probe_http(host: str, port: int, timeouts: Optional[ProbeTimeouts] = None) -> Optional[HttpResponse]:
    """Send HEAD / and parse the reply headers."""
    timeout = (timeouts or ProbeTimeouts()).http
    try:
        with open_probe_connection(host, port, timeout) as sock:
            send_payload(sock, build_head_request(host), timeout)
            data = read_once(sock, 4096)
    except OSError as e:
        logger.debug(f"HTTP probe failed for {host}:{port} - {e}")
        return None

    if not data:
        return None
    return parse_http_response(data.decode("utf-8", errors="replace"))
