import os
import sys


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from portsleuth.protocols.ssh import SshBanner, parse_ssh_banner, probe_ssh


def test_parse_banner_with_comment() -> None:
    banner = parse_ssh_banner("SSH-2.0-OpenSSH_8.2p1 Ubuntu-4ubuntu0.5\r\n")
    assert banner == SshBanner(
        version="SSH-2.0",
        software="OpenSSH_8.2p1",
        comment="Ubuntu-4ubuntu0.5",
        raw="SSH-2.0-OpenSSH_8.2p1 Ubuntu-4ubuntu0.5",
    )


def test_parse_banner_without_comment() -> None:
    banner = parse_ssh_banner("SSH-2.0-dropbear_2019.78\n")
    assert banner is not None
    assert banner.version == "SSH-2.0"
    assert banner.software == "dropbear_2019.78"
    assert banner.comment is None


def test_parse_rejects_non_ssh_input() -> None:
    assert parse_ssh_banner("220 mail.example.com ESMTP Postfix") is None
    assert parse_ssh_banner("") is None
    assert parse_ssh_banner("SSH-2.0") is None
    assert parse_ssh_banner("SSH-2.0-") is None


def test_probe_reads_live_banner(greeting_server) -> None:
    server = greeting_server(b"SSH-2.0-OpenSSH_9.6 Debian-1\r\n")
    banner = probe_ssh("127.0.0.1", server.port)
    assert banner is not None
    assert banner.software == "OpenSSH_9.6"
    assert banner.comment == "Debian-1"


def test_probe_returns_none_for_other_protocols(greeting_server) -> None:
    server = greeting_server(b"220 ftp.example.com FTP ready\r\n")
    assert probe_ssh("127.0.0.1", server.port) is None


def test_probe_closed_port_returns_none(closed_port) -> None:
    assert probe_ssh("127.0.0.1", closed_port) is None
