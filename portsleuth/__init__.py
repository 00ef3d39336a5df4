"""
PortSleuth - concurrent TCP/UDP port scanner with service fingerprinting.

This package provides modules for:
- Port scanning (TCP connect and UDP datagram checks)
- Protocol probes (SSH, FTP, SMTP, POP3, IMAP, TLS, HTTP)
- Signature-based service identification
- Scan job control and a web dashboard
- Result export
"""

__version__ = "1.0.0"
__author__ = "PortSleuth Team"

from .models import ServiceRecord, ServiceRecordBuilder, Transport, PortState
from .connectivity import probe_tcp, probe_udp
from .signatures import SignatureMatcher, SignatureDatabaseError
from .fingerprint import FingerprintOrchestrator
from .scanner import PortScanner, ScanConfig
from .jobs import JobRegistry, ScanJob

__all__ = [
    "ServiceRecord",
    "ServiceRecordBuilder",
    "Transport",
    "PortState",
    "probe_tcp",
    "probe_udp",
    "SignatureMatcher",
    "SignatureDatabaseError",
    "FingerprintOrchestrator",
    "PortScanner",
    "ScanConfig",
    "JobRegistry",
    "ScanJob",
]
