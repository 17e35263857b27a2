"""HTTP content probe used by the gateway uptime tracker."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import requests

from commconfig.core.gateways import gateway_url, integrity_hash


@dataclass(frozen=True, slots=True)
class ProbeOutcome:
    content_hash: str | None
    ok: bool
    error: str | None = None


class Probe(Protocol):
    def __call__(self, url: str, content_id: str, timeout: float, algorithm: str) -> ProbeOutcome:
        ...


class HttpProbe:
    """Fetch reference content from a gateway and hash the body with the fixture's algorithm."""

    def __init__(
        self,
        user_agent: str = "commconfig-uptime/1.0",
        session: requests.Session | None = None,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    def __call__(self, url: str, content_id: str, timeout: float, algorithm: str) -> ProbeOutcome:
        target = gateway_url(url, content_id)
        try:
            response = self.session.get(target, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            return ProbeOutcome(content_hash=None, ok=False, error=str(exc))
        return ProbeOutcome(content_hash=integrity_hash(response.content, algorithm), ok=True)


__all__ = ["HttpProbe", "Probe", "ProbeOutcome"]
