"""
Fingerprint Orchestrator

Turns an open port into a single service verdict:
1. Port-number hint from the signature database (low confidence guess)
2. Protocol probes in priority order: SSH, FTP, SMTP, POP3, IMAP, TLS, HTTP
3. Signature matching on whatever banner or header a probe captured
4. Fallback labels when nothing matches, ``unknown`` when nothing answers

Cheap greeting-first protocols go before the ones that need a request, and
a port is tried against its native protocol first.
"""

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Optional
import logging

from .models import PortState, ServiceRecord, ServiceRecordBuilder, Transport
from .protocols.base import ProbeTimeouts
from .protocols.ssh import SSH_PORTS, probe_ssh
from .protocols.greeting import FTP_PORTS, SMTP_PORTS, POP3_PORTS, IMAP_PORTS
from .protocols.greeting import probe_ftp, probe_smtp, probe_pop3, probe_imap
from .protocols.tls import TLS_PORTS, probe_tls
from .protocols.http import HTTP_PORTS, probe_http, extract_server_info
from .signatures import SignatureMatch, SignatureMatcher

logger = logging.getLogger(__name__)

HINT_CONFIDENCE = 0.3
UNKNOWN_CONFIDENCE = 0.1
SSH_FALLBACK_CONFIDENCE = 0.8
GREETING_FALLBACK_CONFIDENCE = 0.7
HTTPS_CONFIDENCE = 0.9
TLS_CONFIDENCE = 0.8
HTTP_SERVER_FALLBACK_CONFIDENCE = 0.7
HTTP_BARE_CONFIDENCE = 0.6


@dataclass(frozen=True)
class ProbeStep:
    """One entry of the probe priority list.

    ``run`` returns True when the probe produced a verdict, which ends the
    evaluation for the port.
    """
    name: str
    ports: FrozenSet[int]
    hint_names: FrozenSet[str]
    run: Callable[[str, int, ServiceRecordBuilder], bool]
    unclaimed_ports: bool = False


class FingerprintOrchestrator:
    """Runs the ordered probe steps for one port at a time.

    Stateless between calls; a single instance is shared by all workers.
    """

    def __init__(self, matcher: Optional[SignatureMatcher] = None, timeouts: Optional[ProbeTimeouts] = None,
                 probes: Optional[Dict[str, Callable]] = None):
        self.matcher = matcher or SignatureMatcher.empty()
        self.timeouts = timeouts or ProbeTimeouts()
        self.probes: Dict[str, Callable] = {
            "ssh": probe_ssh,
            "ftp": probe_ftp,
            "smtp": probe_smtp,
            "pop3": probe_pop3,
            "imap": probe_imap,
            "tls": probe_tls,
            "http": probe_http,
        }
        if probes:
            self.probes.update(probes)
        self.steps: List[ProbeStep] = self._build_steps()
        self._claimed_ports = frozenset().union(*(step.ports for step in self.steps))

    def _build_steps(self) -> List[ProbeStep]:
        return [
            ProbeStep("ssh", SSH_PORTS, frozenset({"ssh"}), self._run_ssh),
            ProbeStep("ftp", FTP_PORTS, frozenset({"ftp"}), self._greeting_runner("ftp", "FTP")),
            ProbeStep("smtp", SMTP_PORTS, frozenset({"smtp"}), self._greeting_runner("smtp", "SMTP")),
            ProbeStep("pop3", POP3_PORTS, frozenset({"pop3"}), self._greeting_runner("pop3", "POP3")),
            ProbeStep("imap", IMAP_PORTS, frozenset({"imap"}), self._greeting_runner("imap", "IMAP")),
            ProbeStep("tls", TLS_PORTS, frozenset({"https", "tls"}), self._run_tls),
            ProbeStep("http", HTTP_PORTS, frozenset({"http"}), self._run_http, unclaimed_ports=True),
        ]

    def fingerprint(self, host: str, port: int, transport: Transport = Transport.TCP) -> ServiceRecord:
        """Identify the service on an open port. Always returns a record."""
        builder = ServiceRecordBuilder(port, transport, PortState.OPEN)

        hint = self.matcher.get_port_hint(port)
        if hint:
            builder.with_service(hint, HINT_CONFIDENCE)

        if transport is Transport.UDP:
            # no UDP payload probes; silence cannot confirm a service
            builder.state = PortState.FILTERED
        else:
            for step in self.steps:
                if not self.is_eligible(step, port, builder):
                    continue
                logger.debug(f"Trying {step.name} probe on {host}:{port}")
                if step.run(host, port, builder):
                    break

        if builder.service is None:
            builder.with_service("unknown", UNKNOWN_CONFIDENCE)

        record = builder.build()
        logger.info(f"{host}: {record.display_full()}")
        return record

    def is_eligible(self, step: ProbeStep, port: int, builder: ServiceRecordBuilder) -> bool:
        if port in step.ports:
            return True
        if builder.service and builder.service.lower() in step.hint_names:
            return True
        if step.unclaimed_ports:
            return port not in self._claimed_ports and self.matcher.get_port_hint(port) is None
        return False

    def _apply_match(self, builder: ServiceRecordBuilder, match: Optional[SignatureMatch],
                     fallback_service: str, fallback_confidence: float) -> None:
        if match:
            # a signature hit never scores below the protocol-only label
            builder.with_service(match.product, max(match.confidence, fallback_confidence))
            builder.with_version(match.version)
        else:
            builder.with_service(fallback_service, fallback_confidence)

    def _run_ssh(self, host: str, port: int, builder: ServiceRecordBuilder) -> bool:
        banner = self.probes["ssh"](host, port, self.timeouts)
        if banner is None:
            return False
        raw = banner.raw or " ".join(filter(None, [f"{banner.version}-{banner.software}", banner.comment]))
        self._apply_match(builder, self.matcher.match_banner(raw), banner.software, SSH_FALLBACK_CONFIDENCE)
        builder.with_banner(raw)
        return True

    def _greeting_runner(self, probe_name: str, label: str) -> Callable[[str, int, ServiceRecordBuilder], bool]:
        def run(host: str, port: int, builder: ServiceRecordBuilder) -> bool:
            greeting = self.probes[probe_name](host, port, self.timeouts)
            if not greeting:
                return False
            builder.with_banner(greeting)
            self._apply_match(builder, self.matcher.match_banner(greeting), label, GREETING_FALLBACK_CONFIDENCE)
            return True
        return run

    def _run_tls(self, host: str, port: int, builder: ServiceRecordBuilder) -> bool:
        tls_info = self.probes["tls"](host, port, self.timeouts)
        if tls_info is None:
            return False
        builder.with_tls_info(tls_info)
        if port == 443:
            builder.with_service("HTTPS", HTTPS_CONFIDENCE)
        else:
            builder.with_service(f"TLS (port {port})", TLS_CONFIDENCE)
        return True

    def _run_http(self, host: str, port: int, builder: ServiceRecordBuilder) -> bool:
        response = self.probes["http"](host, port, self.timeouts)
        if response is None:
            return False
        server = extract_server_info(response)
        if server:
            self._apply_match(builder, self.matcher.match_http_server(server), "HTTP",
                              HTTP_SERVER_FALLBACK_CONFIDENCE)
        else:
            builder.with_service("HTTP", HTTP_BARE_CONFIDENCE)
        builder.with_banner(response.status_line)
        return True
