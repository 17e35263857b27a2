"""Content gateway records and integrity helpers."""
from __future__ import annotations

import base64
import hashlib
import re
from dataclasses import dataclass

CONTENT_ID_PLACEHOLDER = ":hash"
INTEGRITY_PATTERN = re.compile(r"^(sha256|sha384|sha512)-[A-Za-z0-9+/]+={0,2}$")


@dataclass(frozen=True, slots=True)
class UptimeCheckFixture:
    expected_hash: str
    content_id: str

    @property
    def algorithm(self) -> str:
        return self.expected_hash.split("-", 1)[0]


@dataclass(frozen=True, slots=True)
class GatewayRecord:
    gateway_id: str
    continent_code: str
    base_url: str
    fixture: UptimeCheckFixture


@dataclass(frozen=True, slots=True)
class UptimeResult:
    ok: bool
    timestamp: int

    def is_fresh(self, now_ms: int, ttl_seconds: int) -> bool:
        return now_ms - self.timestamp <= ttl_seconds * 1000


def integrity_hash(content: bytes, algorithm: str = "sha384") -> str:
    """Return a subresource-integrity style digest, e.g. ``sha384-<base64>``."""
    digest = hashlib.new(algorithm, content).digest()
    return f"{algorithm}-{base64.b64encode(digest).decode()}"


def gateway_url(base_url: str, content_id: str) -> str:
    if CONTENT_ID_PLACEHOLDER in base_url:
        return base_url.replace(CONTENT_ID_PLACEHOLDER, content_id)
    return f"{base_url.rstrip('/')}/{content_id}"


__all__ = [
    "GatewayRecord",
    "INTEGRITY_PATTERN",
    "UptimeCheckFixture",
    "UptimeResult",
    "gateway_url",
    "integrity_hash",
]
