import os
import sys

import pytest


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from dataclasses import FrozenInstanceError

from portsleuth.models import (
    ConnectivityResult,
    PortState,
    ServiceRecord,
    ServiceRecordBuilder,
    TlsInfo,
    Transport,
)


def test_builder_produces_frozen_record() -> None:
    record = (
        ServiceRecordBuilder(22, Transport.TCP)
        .with_service("OpenSSH", 0.95)
        .with_banner("SSH-2.0-OpenSSH_8.2p1")
        .build()
    )
    assert record == ServiceRecord(22, Transport.TCP, PortState.OPEN, "OpenSSH", None,
                                   "SSH-2.0-OpenSSH_8.2p1", None, 0.95)
    with pytest.raises(FrozenInstanceError):
        record.service = "other"


def test_builder_clamps_confidence_and_ignores_empty_version() -> None:
    builder = ServiceRecordBuilder(80, Transport.TCP).with_service("HTTP", 1.7).with_version(None)
    assert builder.confidence == 1.0
    assert builder.version is None
    builder.with_service("HTTP", -0.2).with_version("1.18.0")
    assert builder.confidence == 0.0
    assert builder.version == "1.18.0"


def test_builder_changes_do_not_leak_into_built_record() -> None:
    builder = ServiceRecordBuilder(8080, Transport.TCP).with_service("http", 0.3)
    first = builder.build()
    builder.with_service("nginx", 0.95)
    assert first.service == "http"
    assert first.confidence == 0.3


def test_display_full_includes_every_present_field() -> None:
    record = ServiceRecord(
        port=443,
        transport=Transport.TCP,
        state=PortState.OPEN,
        service="HTTPS",
        banner="HTTP/1.1 200 OK",
        tls_info=TlsInfo.confirmed_service(),
        confidence=0.9,
    )
    assert record.display_full() == (
        "TCP Port 443 (OPEN) - HTTPS | Banner: HTTP/1.1 200 OK"
        " | TLS: TLS service detected (issued by certificate not parsed) [confidence: 90%]"
    )


def test_display_service_appends_version() -> None:
    record = ServiceRecord(80, Transport.TCP, PortState.OPEN, "nginx", "1.18.0", confidence=0.95)
    assert record.display_service() == "nginx v1.18.0"
    assert ServiceRecord(53, Transport.UDP, PortState.FILTERED).display_service() == "unknown"


def test_to_dict_shape() -> None:
    record = ServiceRecord(53, Transport.UDP, PortState.FILTERED, "dns", confidence=0.3)
    assert record.to_dict() == {
        "port": 53,
        "protocol": "UDP",
        "state": "FILTERED",
        "service": "dns",
        "version": None,
        "banner": None,
        "tls_info": None,
        "confidence": 0.3,
    }
    with_tls = ServiceRecord(993, Transport.TCP, PortState.OPEN, "TLS (port 993)",
                             tls_info=TlsInfo.possible_service(), confidence=0.8)
    assert with_tls.to_dict()["tls_info"] == {
        "subject": "Possible TLS service",
        "issuer": "non-standard response",
        "confirmed": False,
    }


def test_connectivity_reachability() -> None:
    assert ConnectivityResult.OPEN.reachable
    assert ConnectivityResult.OPEN_OR_FILTERED.reachable
    assert not ConnectivityResult.CLOSED.reachable
    assert str(Transport.TCP) == "TCP"
    assert str(PortState.FILTERED) == "FILTERED"
