"""
Result Export Module

Renders a set of service records for people and for other tools:
- JSON with scan metadata
- CSV
- Plain text summary
"""

import csv
import io
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import ServiceRecord

CSV_FIELDS = ["port", "protocol", "state", "service", "version", "banner", "tls_info", "confidence"]


def export_json(records: List[ServiceRecord], metadata: Optional[Dict[str, Any]] = None) -> str:
    """Export records (and optional scan metadata) as JSON."""
    output: Dict[str, Any] = {"results": [r.to_dict() for r in records]}
    if metadata:
        output["metadata"] = metadata
    return json.dumps(output, indent=2, default=str)


def export_csv(records: List[ServiceRecord]) -> str:
    """Export records as CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS)
    writer.writeheader()
    for record in records:
        row = record.to_dict()
        row["tls_info"] = record.tls_info.subject if record.tls_info else ""
        writer.writerow({key: "" if row[key] is None else row[key] for key in CSV_FIELDS})
    return buffer.getvalue()


def export_text(records: List[ServiceRecord], target: Optional[str] = None) -> str:
    """Plain text report, one ``display_full`` line per record."""
    output = "Port Scan Results\n"
    output += f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
    if target:
        output += f"Target: {target}\n"
    output += f"Open or filtered ports: {len(records)}\n\n"
    for record in sorted(records, key=lambda r: (r.port, r.transport.value)):
        output += f"[RESULT] {record.display_full()}\n"
    return output


def export_results(records: List[ServiceRecord], format: str, metadata: Optional[Dict[str, Any]] = None) -> str:
    if format == "json":
        return export_json(records, metadata)
    if format == "csv":
        return export_csv(records)
    if format == "txt":
        return export_text(records, (metadata or {}).get("target"))
    raise ValueError(f"Unsupported export format: {format}")
