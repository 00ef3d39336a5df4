"""
Data Model Module

Shared result types for the scanning and fingerprinting pipeline:
- Transport and port state enums
- Connectivity probe outcomes
- Coarse TLS detection info
- Immutable per-port service records and their builder
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Any, Optional


class Transport(Enum):
    """Transport protocol a port was scanned over."""
    TCP = "TCP"
    UDP = "UDP"

    def __str__(self) -> str:
        return self.value


class PortState(Enum):
    """Reachability state carried by a service record."""
    OPEN = "OPEN"
    FILTERED = "FILTERED"

    def __str__(self) -> str:
        return self.value


class ConnectivityResult(Enum):
    """Outcome of a single connectivity check."""
    OPEN = "open"
    CLOSED = "closed"
    OPEN_OR_FILTERED = "open|filtered"

    @property
    def reachable(self) -> bool:
        return self is not ConnectivityResult.CLOSED


@dataclass(frozen=True)
class TlsInfo:
    """Coarse TLS detection result.

    No TLS library is involved, so ``subject`` and ``issuer`` are fixed
    placeholder descriptions rather than certificate data.
    """
    subject: str
    issuer: str
    confirmed: bool = False

    @classmethod
    def confirmed_service(cls) -> "TlsInfo":
        return cls(subject="TLS service detected", issuer="certificate not parsed", confirmed=True)

    @classmethod
    def possible_service(cls) -> "TlsInfo":
        return cls(subject="Possible TLS service", issuer="non-standard response", confirmed=False)


@dataclass(frozen=True)
class ServiceRecord:
    """Final fingerprint verdict for one port on one transport."""
    port: int
    transport: Transport
    state: PortState
    service: Optional[str] = None
    version: Optional[str] = None
    banner: Optional[str] = None
    tls_info: Optional[TlsInfo] = None
    confidence: float = 0.0

    def display_service(self) -> str:
        """Service name plus version, e.g. ``nginx v1.18.0``."""
        parts = [self.service or "unknown"]
        if self.version:
            parts.append(f"v{self.version}")
        return " ".join(parts)

    def display_full(self) -> str:
        """One-line console rendering of the record."""
        output = f"{self.transport} Port {self.port} ({self.state}) - {self.display_service()}"
        if self.banner:
            output += f" | Banner: {self.banner}"
        if self.tls_info:
            output += f" | TLS: {self.tls_info.subject} (issued by {self.tls_info.issuer})"
        if self.confidence > 0.0:
            output += f" [confidence: {self.confidence * 100:.0f}%]"
        return output

    def to_dict(self) -> Dict[str, Any]:
        return {
            "port": self.port,
            "protocol": self.transport.value,
            "state": self.state.value,
            "service": self.service,
            "version": self.version,
            "banner": self.banner,
            "tls_info": asdict(self.tls_info) if self.tls_info else None,
            "confidence": round(self.confidence, 2),
        }


class ServiceRecordBuilder:
    """Mutable, worker-local record under construction.

    The orchestrator updates it step by step; ``build()`` freezes the
    current state into a ``ServiceRecord`` for the result queue.
    """

    def __init__(self, port: int, transport: Transport, state: PortState = PortState.OPEN):
        self.port = port
        self.transport = transport
        self.state = state
        self.service: Optional[str] = None
        self.version: Optional[str] = None
        self.banner: Optional[str] = None
        self.tls_info: Optional[TlsInfo] = None
        self.confidence: float = 0.0

    def with_service(self, service: str, confidence: float) -> "ServiceRecordBuilder":
        self.service = service
        self.confidence = min(max(confidence, 0.0), 1.0)
        return self

    def with_version(self, version: Optional[str]) -> "ServiceRecordBuilder":
        if version:
            self.version = version
        return self

    def with_banner(self, banner: str) -> "ServiceRecordBuilder":
        self.banner = banner
        return self

    def with_tls_info(self, tls_info: TlsInfo) -> "ServiceRecordBuilder":
        self.tls_info = tls_info
        return self

    def build(self) -> ServiceRecord:
        return ServiceRecord(
            port=self.port,
            transport=self.transport,
            state=self.state,
            service=self.service,
            version=self.version,
            banner=self.banner,
            tls_info=self.tls_info,
            confidence=self.confidence,
        )
