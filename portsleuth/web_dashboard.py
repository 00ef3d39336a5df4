"""
Web Dashboard Module

Provides a FastAPI-based web interface for:
- Launching scans in the background
- Polling scan progress
- Viewing fingerprinted results
"""

from typing import Any, Dict, List, Optional
import logging

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
import uvicorn

from . import __version__
from .jobs import JobRegistry, ScanJob
from .scanner import ScanConfig
from .signatures import SignatureDatabaseError, SignatureMatcher

logger = logging.getLogger(__name__)


# Pydantic models for API
class ScanRequest(BaseModel):
    target: str = "127.0.0.1"
    start_port: int = 1
    end_port: int = 1024
    threads: int = 10
    timeout: float = 0.5
    udp_timeout: float = 1.0
    scan_udp: bool = True


class ScanResponse(BaseModel):
    job_id: str
    status: str
    message: str


class WebDashboard:
    """FastAPI web dashboard for port scanning."""

    def __init__(self, matcher: Optional[SignatureMatcher] = None, signatures_path: Optional[str] = None):
        if matcher is None:
            matcher = self._load_matcher(signatures_path)

        self.app = FastAPI(
            title="PortSleuth Dashboard",
            description="Web interface for port scanning and service fingerprinting",
            version=__version__
        )
        self.registry = JobRegistry(matcher)

        self._setup_routes()

    @staticmethod
    def _load_matcher(signatures_path: Optional[str]) -> SignatureMatcher:
        try:
            return SignatureMatcher.load(signatures_path)
        except SignatureDatabaseError as e:
            logger.warning(f"{e}. Dashboard will report protocol labels only.")
            return SignatureMatcher.empty()

    def _get_job(self, job_id: str) -> ScanJob:
        job = self.registry.get(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail="Scan not found")
        return job

    def _get_current_job(self) -> ScanJob:
        job = self.registry.current()
        if job is None:
            raise HTTPException(status_code=404, detail="No scan has been started")
        return job

    @staticmethod
    def _results_payload(job: ScanJob) -> Dict[str, Any]:
        return {
            "job_id": job.job_id,
            "status": job.status,
            "results": [r.to_dict() for r in sorted(job.results(), key=lambda r: (r.port, r.transport.value))],
        }

    def _setup_routes(self):
        """Setup FastAPI routes."""

        @self.app.get("/", response_class=HTMLResponse)
        async def dashboard():
            """Main dashboard page."""
            return self._get_dashboard_html()

        @self.app.post("/api/scan", response_model=ScanResponse)
        async def start_scan(scan_request: ScanRequest):
            """Start a new scan on a background thread."""
            config = ScanConfig(
                target=scan_request.target,
                start_port=scan_request.start_port,
                end_port=scan_request.end_port,
                threads=scan_request.threads,
                tcp_timeout=scan_request.timeout,
                udp_timeout=scan_request.udp_timeout,
                scan_udp=scan_request.scan_udp,
            )
            try:
                job = self.registry.start(config)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

            return ScanResponse(
                job_id=job.job_id,
                status="started",
                message=f"Scan of {config.target} ports {config.start_port}-{config.end_port} started."
            )

        @self.app.get("/api/status")
        async def get_current_status():
            """Status of the most recently started scan."""
            return self._get_current_job().to_status()

        @self.app.get("/api/results")
        async def get_current_results():
            """Results collected so far by the most recently started scan."""
            return self._results_payload(self._get_current_job())

        @self.app.get("/api/scans")
        async def list_scans() -> List[Dict[str, Any]]:
            """List all scans known to the dashboard."""
            return [job.to_status() for job in self.registry.list_jobs()]

        @self.app.get("/api/scan/{job_id}/status")
        async def get_scan_status(job_id: str):
            """Get scan status."""
            return self._get_job(job_id).to_status()

        @self.app.get("/api/scan/{job_id}/results")
        async def get_scan_results(job_id: str):
            """Get scan results."""
            return self._results_payload(self._get_job(job_id))

    def _get_dashboard_html(self) -> str:
        """Get dashboard HTML."""
        return """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>PortSleuth - Scan Dashboard</title>
    <style>
        * {
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }

        body {
            font-family: 'Inter', 'Segoe UI', -apple-system, BlinkMacSystemFont, sans-serif;
            line-height: 1.5;
            background: #f8f9fa;
            color: #2c3e50;
        }

        .container {
            max-width: 1100px;
            margin: 40px auto;
            background: white;
            box-shadow: 0 1px 3px rgba(0,0,0,0.05), 0 1px 2px rgba(0,0,0,0.1);
            border: 1px solid #e5e7eb;
        }

        .header {
            border-bottom: 2px solid #e5e7eb;
            padding: 32px 48px;
        }

        .header h1 {
            font-size: 26px;
            font-weight: 600;
            color: #1f2937;
        }

        .header p {
            font-size: 14px;
            color: #6b7280;
        }

        .section {
            padding: 24px 48px;
            border-bottom: 1px solid #f3f4f6;
        }

        .form-row {
            display: flex;
            flex-wrap: wrap;
            gap: 16px;
            align-items: flex-end;
        }

        .form-row label {
            display: flex;
            flex-direction: column;
            font-size: 12px;
            color: #6b7280;
            text-transform: uppercase;
            letter-spacing: 0.05em;
        }

        .form-row input {
            margin-top: 4px;
            padding: 8px 10px;
            border: 1px solid #d1d5db;
            font-size: 14px;
            width: 140px;
        }

        button {
            padding: 9px 20px;
            background: #1f2937;
            color: white;
            border: none;
            font-size: 14px;
            cursor: pointer;
        }

        button:disabled {
            background: #9ca3af;
            cursor: default;
        }

        .progress-track {
            height: 8px;
            background: #e5e7eb;
            margin-top: 12px;
        }

        .progress-fill {
            height: 8px;
            width: 0%;
            background: #10b981;
            transition: width 0.3s;
        }

        #status-text {
            font-size: 13px;
            color: #4b5563;
            margin-top: 8px;
        }

        .error {
            color: #b91c1c;
        }

        table {
            width: 100%;
            border-collapse: collapse;
            font-size: 13px;
        }

        th, td {
            text-align: left;
            padding: 8px 10px;
            border-bottom: 1px solid #f3f4f6;
        }

        th {
            background: #f9fafb;
            color: #6b7280;
            font-weight: 500;
            text-transform: uppercase;
            font-size: 11px;
            letter-spacing: 0.05em;
        }

        .state-OPEN { color: #059669; font-weight: 600; }
        .state-FILTERED { color: #d97706; font-weight: 600; }
        .banner { color: #6b7280; font-family: monospace; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>PortSleuth</h1>
            <p>TCP/UDP port scanning with service fingerprinting</p>
        </div>

        <div class="section">
            <form id="scan-form" class="form-row">
                <label>Target <input id="target" value="127.0.0.1" required></label>
                <label>Start port <input id="start_port" type="number" value="1" min="1" max="65535"></label>
                <label>End port <input id="end_port" type="number" value="1024" min="1" max="65535"></label>
                <label>Threads <input id="threads" type="number" value="10" min="1"></label>
                <label>TCP timeout (s) <input id="timeout" type="number" value="0.5" step="0.1" min="0.1"></label>
                <label>UDP timeout (s) <input id="udp_timeout" type="number" value="1.0" step="0.1" min="0.1"></label>
                <label>UDP <input id="scan_udp" type="checkbox" checked style="width:auto"></label>
                <button id="start-button" type="submit">Start scan</button>
            </form>
            <div class="progress-track"><div id="progress-fill" class="progress-fill"></div></div>
            <div id="status-text">No scan running.</div>
        </div>

        <div class="section">
            <table>
                <thead>
                    <tr>
                        <th>Port</th><th>Protocol</th><th>State</th><th>Service</th>
                        <th>Version</th><th>Banner</th><th>TLS</th><th>Confidence</th>
                    </tr>
                </thead>
                <tbody id="results-body"></tbody>
            </table>
        </div>
    </div>

    <script>
        let pollTimer = null;

        function escapeHtml(value) {
            if (value === null || value === undefined) return '';
            return String(value).replace(/[&<>"']/g, c => ({
                '&': '&amp;', '<': '&lt;', '>': '&gt;', '"': '&quot;', "'": '&#39;'
            })[c]);
        }

        function renderResults(results) {
            const body = document.getElementById('results-body');
            body.innerHTML = results.map(r => `
                <tr>
                    <td>${r.port}</td>
                    <td>${r.protocol}</td>
                    <td class="state-${r.state}">${r.state}</td>
                    <td>${escapeHtml(r.service || 'unknown')}</td>
                    <td>${escapeHtml(r.version || '-')}</td>
                    <td class="banner">${escapeHtml(r.banner || '')}</td>
                    <td>${r.tls_info ? escapeHtml(r.tls_info.subject) : ''}</td>
                    <td>${Math.round(r.confidence * 100)}%</td>
                </tr>`).join('');
        }

        async function poll(jobId) {
            const statusResp = await fetch(`/api/scan/${jobId}/status`);
            const status = await statusResp.json();
            document.getElementById('progress-fill').style.width = `${status.progress}%`;
            document.getElementById('status-text').textContent =
                `Scan ${status.job_id} on ${status.target}: ${status.status} ` +
                `(${status.scanned}/${status.total} ports, ${status.results_count} found)`;

            const resultsResp = await fetch(`/api/scan/${jobId}/results`);
            renderResults((await resultsResp.json()).results);

            if (status.complete) {
                clearInterval(pollTimer);
                pollTimer = null;
                document.getElementById('start-button').disabled = false;
                if (status.error) {
                    document.getElementById('status-text').innerHTML =
                        `<span class="error">Scan failed: ${escapeHtml(status.error)}</span>`;
                }
            }
        }

        document.getElementById('scan-form').addEventListener('submit', async (event) => {
            event.preventDefault();
            const payload = {
                target: document.getElementById('target').value,
                start_port: parseInt(document.getElementById('start_port').value, 10),
                end_port: parseInt(document.getElementById('end_port').value, 10),
                threads: parseInt(document.getElementById('threads').value, 10),
                timeout: parseFloat(document.getElementById('timeout').value),
                udp_timeout: parseFloat(document.getElementById('udp_timeout').value),
                scan_udp: document.getElementById('scan_udp').checked
            };

            const response = await fetch('/api/scan', {
                method: 'POST',
                headers: {'Content-Type': 'application/json'},
                body: JSON.stringify(payload)
            });
            const data = await response.json();
            if (!response.ok) {
                document.getElementById('status-text').innerHTML =
                    `<span class="error">${escapeHtml(data.detail)}</span>`;
                return;
            }

            document.getElementById('start-button').disabled = true;
            renderResults([]);
            if (pollTimer) clearInterval(pollTimer);
            pollTimer = setInterval(() => poll(data.job_id), 1000);
            poll(data.job_id);
        });
    </script>
</body>
</html>
        """

    def run(self, host: str = "127.0.0.1", port: int = 9876):
        """Run the web dashboard."""
        # Configure uvicorn logging to avoid duplicate messages
        log_config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(levelname)s: %(message)s",
                },
            },
            "handlers": {
                "default": {
                    "formatter": "default",
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "level": "INFO",
                "handlers": ["default"],
            },
            "loggers": {
                "uvicorn": {
                    "level": "INFO",
                    "handlers": ["default"],
                    "propagate": False,
                },
                "uvicorn.error": {
                    "level": "INFO",
                    "handlers": ["default"],
                    "propagate": False,
                },
                "uvicorn.access": {
                    "level": "WARNING",
                    "handlers": ["default"],
                    "propagate": False,
                },
            },
        }

        uvicorn.run(self.app, host=host, port=port, log_config=log_config)


def main():
    """Main function for running the web dashboard."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    dashboard = WebDashboard()
    dashboard.run()


if __name__ == "__main__":
    main()
