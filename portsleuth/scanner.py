"""
Port Scanner Module

Threaded port scanning with service fingerprinting:
- One shared task queue drained by a fixed pool of worker threads
- TCP connect and UDP datagram connectivity checks
- Fingerprinting of every reachable port
- A single collector draining the result queue
- Completion counting for progress reporting
"""

import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
import logging

from .connectivity import probe_tcp, probe_udp, resolve_target
from .fingerprint import FingerprintOrchestrator, HINT_CONFIDENCE, UNKNOWN_CONFIDENCE
from .models import ConnectivityResult, PortState, ServiceRecord, ServiceRecordBuilder, Transport
from .progress import ProgressCounter
from .protocols.base import ProbeTimeouts
from .signatures import SignatureMatcher

logger = logging.getLogger(__name__)

# posted by each worker on exit so the collector knows when to stop
_WORKER_DONE = object()


@dataclass
class ScanConfig:
    """Configuration for a port range scan."""
    target: str = "127.0.0.1"
    start_port: int = 1
    end_port: int = 1024
    threads: int = 10
    tcp_timeout: float = 0.5  # seconds
    udp_timeout: float = 1.0
    scan_udp: bool = True
    fingerprint: bool = True
    progress_interval: float = 0.5
    probe_timeouts: ProbeTimeouts = field(default_factory=ProbeTimeouts)
    verbose: bool = False

    @property
    def total_ports(self) -> int:
        return max(self.end_port - self.start_port + 1, 0)

    @property
    def transports(self) -> List[Transport]:
        return [Transport.TCP, Transport.UDP] if self.scan_udp else [Transport.TCP]

    def validate(self) -> None:
        """Raise ValueError for parameters no scan can run with."""
        if not self.target:
            raise ValueError("Target host is required")
        for port in (self.start_port, self.end_port):
            if not 1 <= port <= 65535:
                raise ValueError(f"Port {port} outside 1-65535")
        if self.start_port > self.end_port:
            raise ValueError(f"Start port {self.start_port} is greater than end port {self.end_port}")
        if self.threads < 1:
            raise ValueError("At least one worker thread is required")
        if self.tcp_timeout <= 0 or self.udp_timeout <= 0:
            raise ValueError("Timeouts must be positive")


class PortScanner:
    """Threaded port scanner with a shared task queue and one result collector."""

    def __init__(self, config: ScanConfig, matcher: Optional[SignatureMatcher] = None,
                 progress: Optional[ProgressCounter] = None,
                 on_result: Optional[Callable[[ServiceRecord], None]] = None,
                 tcp_probe: Callable[[str, int, float], ConnectivityResult] = probe_tcp,
                 udp_probe: Callable[[str, int, float], ConnectivityResult] = probe_udp,
                 fingerprinter: Optional[FingerprintOrchestrator] = None):
        self.config = config
        self.matcher = matcher or SignatureMatcher.empty()
        self.progress = progress or ProgressCounter()
        self.on_result = on_result
        self.tcp_probe = tcp_probe
        self.udp_probe = udp_probe
        self.fingerprinter = fingerprinter or FingerprintOrchestrator(self.matcher, config.probe_timeouts)
        self.results: List[ServiceRecord] = []
        self._attempts = 0
        self._attempts_lock = threading.Lock()
        self._address: Optional[str] = None

    @property
    def attempts(self) -> int:
        """Transport attempts made so far (ports x transports when finished)."""
        return self._attempts

    def scan(self) -> List[ServiceRecord]:
        """Scan every port in the configured range exactly once."""
        self.config.validate()
        self.results = []
        self._attempts = 0
        self.progress.reset()

        total = self.config.total_ports
        self._address = resolve_target(self.config.target)
        if self._address is None:
            # an unresolvable target is closed on every port
            self._attempts = total * len(self.config.transports)
            for _ in range(total):
                self.progress.increment()
            logger.warning(f"Skipping scan of {self.config.target}: target could not be resolved")
            return []

        worker_count = min(self.config.threads, total)
        logger.info(
            f"Starting scan of {self.config.target} ({self._address}) ports "
            f"{self.config.start_port}-{self.config.end_port} "
            f"({'/'.join(t.value for t in self.config.transports)}) with {worker_count} workers"
        )
        start_time = time.time()

        tasks: "queue.Queue[Optional[int]]" = queue.Queue()
        for port in range(self.config.start_port, self.config.end_port + 1):
            tasks.put(port)
        for _ in range(worker_count):
            tasks.put(None)

        results: "queue.Queue" = queue.Queue()
        workers = [
            threading.Thread(target=self._worker_loop, args=(tasks, results), name=f"scan-worker-{i}", daemon=True)
            for i in range(worker_count)
        ]
        for worker in workers:
            worker.start()

        finished = 0
        while finished < worker_count:
            item = results.get()
            if item is _WORKER_DONE:
                finished += 1
                continue
            self.results.append(item)
            if self.on_result:
                self.on_result(item)

        for worker in workers:
            worker.join()

        duration = time.time() - start_time
        logger.info(
            f"Scan completed in {duration:.2f}s. Scanned {self.progress.value} ports, "
            f"found {len(self.results)} open or filtered ports"
        )
        return list(self.results)

    def _worker_loop(self, tasks: "queue.Queue[Optional[int]]", results: "queue.Queue") -> None:
        try:
            while True:
                port = tasks.get()
                if port is None:
                    break
                self._scan_port(port, results)
        finally:
            results.put(_WORKER_DONE)

    def _scan_port(self, port: int, results: "queue.Queue") -> None:
        try:
            for transport in self.config.transports:
                self._count_attempt()
                try:
                    record = self._scan_transport(port, transport)
                except Exception as e:
                    # one port's failure must not take the worker down with it
                    logger.debug(f"Error scanning {self.config.target}:{port}/{transport} - {e}")
                    record = None
                if record is not None:
                    results.put(record)
        finally:
            self.progress.increment()

    def _scan_transport(self, port: int, transport: Transport) -> Optional[ServiceRecord]:
        host = self._address
        if transport is Transport.TCP:
            state = self.tcp_probe(host, port, self.config.tcp_timeout)
        else:
            state = self.udp_probe(host, port, self.config.udp_timeout)
        if not state.reachable:
            return None

        if self.config.fingerprint:
            return self.fingerprinter.fingerprint(host, port, transport)
        return self._basic_record(port, transport)

    def _basic_record(self, port: int, transport: Transport) -> ServiceRecord:
        state = PortState.OPEN if transport is Transport.TCP else PortState.FILTERED
        builder = ServiceRecordBuilder(port, transport, state)
        hint = self.matcher.get_port_hint(port)
        if hint:
            builder.with_service(hint, HINT_CONFIDENCE)
        else:
            builder.with_service("unknown", UNKNOWN_CONFIDENCE)
        return builder.build()

    def _count_attempt(self) -> None:
        with self._attempts_lock:
            self._attempts += 1

    def get_open_ports(self) -> List[ServiceRecord]:
        """Records for TCP-open ports only."""
        return [r for r in self.results if r.state is PortState.OPEN]

    def get_service_summary(self) -> Dict[str, int]:
        """Count of records per service name."""
        services: Dict[str, int] = {}
        for result in self.results:
            if result.service:
                services[result.service] = services.get(result.service, 0) + 1
        return services
