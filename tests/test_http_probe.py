import os
import sys


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from portsleuth import __version__
from portsleuth.protocols.http import (
    build_head_request,
    extract_server_info,
    parse_http_response,
    probe_http,
)


def test_parse_response_with_server_header() -> None:
    response = parse_http_response(
        "HTTP/1.1 200 OK\r\nServer: nginx/1.18.0\r\nContent-Type: text/html\r\n\r\n"
    )
    assert response is not None
    assert response.status_line == "HTTP/1.1 200 OK"
    assert response.server == "nginx/1.18.0"
    assert extract_server_info(response) == "nginx/1.18.0"
    assert response.headers == [("Server", "nginx/1.18.0"), ("Content-Type", "text/html")]
    assert response.get_header("content-type") == "text/html"


def test_parse_stops_at_body_and_skips_junk_lines() -> None:
    response = parse_http_response(
        "HTTP/1.0 404 Not Found\r\nnot a header\r\nserver: Apache\r\n\r\nServer: injected\r\n"
    )
    assert response is not None
    assert response.server == "Apache"
    assert len(response.headers) == 1


def test_parse_without_server_header() -> None:
    response = parse_http_response("HTTP/1.1 204 No Content\r\n\r\n")
    assert response is not None
    assert response.server is None
    assert response.get_header("Server") is None


def test_parse_rejects_non_http() -> None:
    assert parse_http_response("SSH-2.0-OpenSSH_8.2p1\r\n") is None
    assert parse_http_response("") is None


def test_head_request_identifies_client() -> None:
    request = build_head_request("example.com").decode("ascii")
    assert request.startswith("HEAD / HTTP/1.1\r\n")
    assert "Host: example.com\r\n" in request
    assert f"User-Agent: portsleuth/{__version__}\r\n" in request
    assert request.endswith("\r\n\r\n")


def test_probe_live_server(http_server) -> None:
    port = http_server.server_address[1]
    response = probe_http("127.0.0.1", port)
    assert response is not None
    assert response.status_line.startswith("HTTP/1.0 200")
    assert response.server is not None
    assert response.server.startswith("SimpleHTTP/")


def test_probe_non_http_service(greeting_server) -> None:
    server = greeting_server(b"SSH-2.0-OpenSSH_8.2p1\r\n")
    assert probe_http("127.0.0.1", server.port) is None


def test_probe_closed_port(closed_port) -> None:
    assert probe_http("127.0.0.1", closed_port) is None
