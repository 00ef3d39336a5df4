"""
Signature Matching Module

Loads the service signature database and answers identification queries:
- Banner patterns (greeting lines, SSH identification strings)
- HTTP ``Server`` header patterns with optional version capture
- Port number to service name hints

Patterns are compiled once at load time and matched strictly in database
order: the first pattern that matches wins.
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Tuple, Union
import logging

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURES = Path(__file__).parent / "data" / "signatures.json"


class SignatureDatabaseError(Exception):
    """Raised when the signature database cannot be read or has the wrong shape."""
    pass


@dataclass(frozen=True)
class BannerPattern:
    """Rule matched against raw banner lines."""
    pattern: str
    service: str
    product: str
    confidence: float


@dataclass(frozen=True)
class HttpServerPattern:
    """Rule matched against HTTP ``Server`` header values."""
    pattern: str
    service: str
    product: str
    confidence: float
    version_group: Optional[int] = None


@dataclass(frozen=True)
class SignatureMatch:
    """Identification produced by a matching pattern."""
    service: str
    product: str
    confidence: float
    version: Optional[str] = None


def default_signature_path() -> Path:
    return DEFAULT_SIGNATURES


def _clamp(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)


class SignatureMatcher:
    """Read-only, pre-compiled view of a signature database.

    Instances hold no mutable state after construction, so one matcher can
    be shared by every worker thread without locking.
    """

    def __init__(self, banner_patterns: List[BannerPattern], http_patterns: List[HttpServerPattern],
                 port_hints: Dict[int, str]):
        self.dropped = 0
        self._banner_regexes: Tuple[Tuple[Pattern, BannerPattern], ...] = tuple(
            self._compile_all(banner_patterns, "banner")
        )
        self._http_regexes: Tuple[Tuple[Pattern, HttpServerPattern], ...] = tuple(
            self._compile_all(http_patterns, "http")
        )
        self._port_hints = dict(port_hints)

    def _compile_all(self, patterns, kind: str) -> List[Tuple[Pattern, Any]]:
        compiled = []
        for entry in patterns:
            try:
                compiled.append((re.compile(entry.pattern), entry))
            except re.error as e:
                self.dropped += 1
                logger.warning(f"Dropping {kind} pattern {entry.pattern!r} ({entry.product}): {e}")
        return compiled

    @classmethod
    def empty(cls) -> "SignatureMatcher":
        """Matcher with no patterns and no hints (degraded mode)."""
        return cls([], [], {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignatureMatcher":
        """Build a matcher from an already-decoded database document."""
        if not isinstance(data, dict):
            raise SignatureDatabaseError("Signature database must be a JSON object")
        for key, expected in (("banner_patterns", list), ("http_server_patterns", list), ("port_hints", dict)):
            if key in data and not isinstance(data[key], expected):
                raise SignatureDatabaseError(f"Signature database field {key!r} must be a {expected.__name__}")

        malformed = 0
        banner_patterns = []
        for item in data.get("banner_patterns", []):
            try:
                banner_patterns.append(BannerPattern(
                    pattern=item["pattern"],
                    service=item["service"],
                    product=item["product"],
                    confidence=_clamp(item.get("confidence", 0.5)),
                ))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                malformed += 1
                logger.warning(f"Dropping malformed banner pattern {item!r}: {e}")

        http_patterns = []
        for item in data.get("http_server_patterns", []):
            try:
                group = item.get("version_group")
                http_patterns.append(HttpServerPattern(
                    pattern=item["pattern"],
                    service=item["service"],
                    product=item["product"],
                    confidence=_clamp(item.get("confidence", 0.5)),
                    version_group=int(group) if group is not None else None,
                ))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                malformed += 1
                logger.warning(f"Dropping malformed HTTP server pattern {item!r}: {e}")

        port_hints = {}
        for port, name in data.get("port_hints", {}).items():
            try:
                port_hints[int(port)] = str(name)
            except (TypeError, ValueError):
                malformed += 1
                logger.warning(f"Ignoring port hint with non-numeric port {port!r}")

        matcher = cls(banner_patterns, http_patterns, port_hints)
        matcher.dropped += malformed
        logger.info(
            f"Loaded {len(matcher._banner_regexes)} banner patterns, "
            f"{len(matcher._http_regexes)} HTTP server patterns, "
            f"{len(matcher._port_hints)} port hints ({matcher.dropped} dropped)"
        )
        return matcher

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> "SignatureMatcher":
        """Load and compile a JSON signature database file."""
        path = Path(path) if path else DEFAULT_SIGNATURES
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise SignatureDatabaseError(f"Cannot read signature database {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise SignatureDatabaseError(f"Invalid JSON in signature database {path}: {e}") from e
        return cls.from_dict(data)

    @property
    def banner_pattern_count(self) -> int:
        return len(self._banner_regexes)

    @property
    def http_pattern_count(self) -> int:
        return len(self._http_regexes)

    def match_banner(self, banner: str) -> Optional[SignatureMatch]:
        """First banner pattern that matches ``banner``, in database order."""
        if not banner:
            return None
        for regex, pattern in self._banner_regexes:
            if regex.search(banner):
                return SignatureMatch(
                    service=pattern.service,
                    product=pattern.product,
                    confidence=pattern.confidence,
                )
        return None

    def match_http_server(self, server_header: str) -> Optional[SignatureMatch]:
        """First HTTP server pattern that matches, with the declared version group."""
        if not server_header:
            return None
        for regex, pattern in self._http_regexes:
            match = regex.search(server_header)
            if not match:
                continue
            version = None
            if pattern.version_group is not None and 0 <= pattern.version_group <= regex.groups:
                version = match.group(pattern.version_group)
            return SignatureMatch(
                service=pattern.service,
                product=pattern.product,
                confidence=pattern.confidence,
                version=version,
            )
        return None

    def get_port_hint(self, port: int) -> Optional[str]:
        return self._port_hints.get(port)
