import os
import sys

import pytest
from fastapi.testclient import TestClient


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from portsleuth.signatures import SignatureMatcher
from portsleuth.web_dashboard import WebDashboard


@pytest.fixture
def dashboard():
    return WebDashboard(SignatureMatcher.load())


@pytest.fixture
def client(dashboard):
    return TestClient(dashboard.app)


def test_dashboard_page(client) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert "PortSleuth" in response.text
    assert "/api/scan" in response.text


def test_no_current_scan_is_404(client) -> None:
    assert client.get("/api/status").status_code == 404
    assert client.get("/api/results").status_code == 404


def test_unknown_job_is_404(client) -> None:
    assert client.get("/api/scan/999999/status").status_code == 404
    assert client.get("/api/scan/999999/results").status_code == 404


def test_inverted_range_is_400(client) -> None:
    response = client.post("/api/scan", json={"target": "127.0.0.1", "start_port": 200, "end_port": 100})
    assert response.status_code == 400
    assert "greater than end port" in response.json()["detail"]


def test_start_scan_and_poll(client, dashboard, http_server) -> None:
    port = http_server.server_address[1]
    response = client.post("/api/scan", json={
        "target": "127.0.0.1",
        "start_port": port,
        "end_port": port,
        "threads": 2,
        "timeout": 0.5,
        "scan_udp": False,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "started"
    job_id = body["job_id"]

    assert dashboard.registry.get(job_id).wait(10)

    status = client.get(f"/api/scan/{job_id}/status").json()
    assert status["status"] == "completed"
    assert status["scanned"] == status["total"] == 1
    assert status["complete"] is True

    results = client.get(f"/api/scan/{job_id}/results").json()["results"]
    assert len(results) == 1
    assert results[0]["port"] == port
    assert results[0]["service"] in ("HTTP", "Python SimpleHTTP")

    assert client.get("/api/status").json()["job_id"] == job_id
    assert client.get("/api/results").json()["job_id"] == job_id
    assert [job["job_id"] for job in client.get("/api/scans").json()] == [job_id]


def test_missing_signature_database_degrades(tmp_path) -> None:
    dashboard = WebDashboard(signatures_path=str(tmp_path / "missing.json"))
    assert dashboard.registry.matcher.banner_pattern_count == 0
    assert TestClient(dashboard.app).get("/").status_code == 200
