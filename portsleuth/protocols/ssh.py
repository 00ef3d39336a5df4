"""
SSH Probe

SSH servers send their identification string as soon as a client
connects (RFC 4253 section 4.2):

    SSH-protoversion-softwareversion SP comments CR LF

The probe reads that line without sending anything and splits it into
its fields.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from .base import ProbeTimeouts, open_probe_connection, read_once, first_line

logger = logging.getLogger(__name__)

SSH_PORTS = frozenset({22, 2222})


@dataclass(frozen=True)
class SshBanner:
    """Parsed SSH identification string."""
    version: str
    software: str
    comment: Optional[str] = None
    raw: str = ""


def parse_ssh_banner(banner: str) -> Optional[SshBanner]:
    """Parse an SSH identification line; None if it is not one."""
    line = first_line(banner)
    if not line or not line.startswith("SSH-"):
        return None

    parts = line.split(" ", 1)
    version_part = parts[0]
    comment = parts[1].strip() if len(parts) > 1 and parts[1].strip() else None

    # SSH-2.0-OpenSSH_8.2p1 -> ["SSH", "2.0", "OpenSSH_8.2p1"]
    segments = version_part.split("-", 2)
    if len(segments) < 3 or not segments[1] or not segments[2]:
        return None

    return SshBanner(
        version=f"{segments[0]}-{segments[1]}",
        software=segments[2],
        comment=comment,
        raw=line,
    )


def probe_ssh(host: str, port: int, timeouts: Optional[ProbeTimeouts] = None) -> Optional[SshBanner]:
    """Read and parse the server's SSH banner."""
    timeout = (timeouts or ProbeTimeouts()).ssh
    try:
        with open_probe_connection(host, port, timeout) as sock:
            data = read_once(sock, 256)
    except OSError as e:
        logger.debug(f"SSH probe failed for {host}:{port} - {e}")
        return None

    if not data:
        return None
    return parse_ssh_banner(data.decode("utf-8", errors="replace"))
