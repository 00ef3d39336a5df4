"""
Scan Jobs

Control-plane state for scans started by an external dispatcher such as
the web dashboard:
- ScanJob: one scan's parameters, flags, progress and accumulated records
- JobRegistry: owns the jobs and knows which one is current

Every read accessor is safe to call while the scan is still running.
"""

import random
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

from .models import ServiceRecord
from .progress import ProgressCounter
from .scanner import PortScanner, ScanConfig
from .signatures import SignatureMatcher

logger = logging.getLogger(__name__)


class ScanJob:
    """State shared between the dispatching thread, the scan workers and pollers."""

    def __init__(self, job_id: str, config: ScanConfig):
        self.job_id = job_id
        self.config = config
        self.counter = ProgressCounter()
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.error: Optional[str] = None
        self._running = threading.Event()
        self._complete = threading.Event()
        self._results: List[ServiceRecord] = []
        self._lock = threading.Lock()

    @property
    def total_ports(self) -> int:
        return self.config.total_ports

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def is_complete(self) -> bool:
        return self._complete.is_set()

    def start(self) -> None:
        self.counter.reset()
        with self._lock:
            self._results.clear()
        self.error = None
        self.start_time = datetime.now()
        self._complete.clear()
        self._running.set()

    def complete(self) -> None:
        self.end_time = datetime.now()
        self._running.clear()
        self._complete.set()

    def add_result(self, record: ServiceRecord) -> None:
        with self._lock:
            self._results.append(record)

    def progress(self) -> Tuple[int, int]:
        """(scanned, total) port counts."""
        return self.counter.value, self.total_ports

    def results(self) -> List[ServiceRecord]:
        """Snapshot of the records collected so far."""
        with self._lock:
            return list(self._results)

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._complete.wait(timeout)

    def run(self, matcher: Optional[SignatureMatcher] = None) -> None:
        """Run the scan to completion on the calling thread."""
        self.start()
        try:
            scanner = PortScanner(self.config, matcher, progress=self.counter, on_result=self.add_result)
            scanner.scan()
        except Exception as e:
            logger.error(f"Scan {self.job_id} failed: {e}")
            self.error = str(e)
        finally:
            self.complete()

    @property
    def status(self) -> str:
        if self.error:
            return "failed"
        if self.is_complete:
            return "completed"
        if self.is_running:
            return "running"
        return "pending"

    def to_status(self) -> Dict[str, Any]:
        scanned, total = self.progress()
        return {
            "job_id": self.job_id,
            "target": self.config.target,
            "start_port": self.config.start_port,
            "end_port": self.config.end_port,
            "status": self.status,
            "running": self.is_running,
            "complete": self.is_complete,
            "scanned": scanned,
            "total": total,
            "progress": round(scanned * 100.0 / total, 1) if total else 100.0,
            "results_count": len(self.results()),
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "error": self.error,
        }


class JobRegistry:
    """Owns scan jobs; replaces a process-wide "current scan" global."""

    def __init__(self, matcher: Optional[SignatureMatcher] = None, max_jobs: int = 50):
        if max_jobs < 1:
            raise ValueError("max_jobs must be at least 1")
        self.matcher = matcher or SignatureMatcher.empty()
        self.max_jobs = max_jobs
        self._jobs: Dict[str, ScanJob] = {}
        self._current_id: Optional[str] = None
        self._lock = threading.Lock()

    def _generate_unique_job_id(self) -> str:
        """Generate a unique 6-digit job ID."""
        while True:
            job_id = f"{random.randint(100000, 999999)}"
            if job_id not in self._jobs:
                return job_id

    def create(self, config: ScanConfig) -> ScanJob:
        """Register a job without starting it; it becomes the current job."""
        config.validate()
        with self._lock:
            job = ScanJob(self._generate_unique_job_id(), config)
            self._jobs[job.job_id] = job
            self._current_id = job.job_id
            self._evict_old_jobs()
        return job

    def _evict_old_jobs(self) -> None:
        """Drop the oldest jobs that are not running once over max_jobs. Caller holds the lock."""
        excess = len(self._jobs) - self.max_jobs
        if excess <= 0:
            return
        # dicts keep insertion order, so the first entries are the oldest
        for job_id, job in list(self._jobs.items()):
            if excess <= 0:
                break
            if job_id == self._current_id or job.is_running:
                continue
            del self._jobs[job_id]
            excess -= 1
            logger.debug(f"Evicted scan job {job_id} from history")

    def start(self, config: ScanConfig) -> ScanJob:
        """Create a job and run it on a background thread."""
        job = self.create(config)
        logger.info(f"Starting scan job {job.job_id} for {config.target}")
        thread = threading.Thread(target=job.run, args=(self.matcher,), name=f"scan-job-{job.job_id}", daemon=True)
        thread.start()
        return job

    def get(self, job_id: str) -> Optional[ScanJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def current(self) -> Optional[ScanJob]:
        with self._lock:
            return self._jobs.get(self._current_id) if self._current_id else None

    def list_jobs(self) -> List[ScanJob]:
        with self._lock:
            return list(self._jobs.values())
