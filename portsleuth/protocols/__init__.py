"""
Protocol probes. Each opens its own short-lived connection and returns a
structured outcome, or None when the service does not answer the way the
protocol expects.
"""

from .base import ProbeTimeouts, ProtocolTimeout
from .ssh import SshBanner, parse_ssh_banner, probe_ssh
from .http import HttpResponse, parse_http_response, probe_http
from .tls import probe_tls, classify_tls_response
from .greeting import read_greeting, probe_ftp, probe_smtp, probe_pop3, probe_imap

__all__ = [
    "ProbeTimeouts",
    "ProtocolTimeout",
    "SshBanner",
    "parse_ssh_banner",
    "probe_ssh",
    "HttpResponse",
    "parse_http_response",
    "probe_http",
    "probe_tls",
    "classify_tls_response",
    "read_greeting",
    "probe_ftp",
    "probe_smtp",
    "probe_pop3",
    "probe_imap",
]
