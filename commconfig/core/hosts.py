"""Allowed host policy."""
from __future__ import annotations

from typing import Iterable
from urllib.parse import urlsplit

LOCAL_HOST_PREFIXES = ("localhost", "127.0.0.1")


class HostPolicy:
    def __init__(self, allowed_hosts: Iterable[str]) -> None:
        self.allowed_hosts = frozenset(host.lower() for host in allowed_hosts)

    def is_allowed_host(self, host: str | None) -> bool:
        if not host:
            return False
        return host.strip().lower() in self.allowed_hosts

    def is_allowed_origin(self, origin: str | None) -> bool:
        """Accept https origins of allowed hosts; plain http only for local and onion hosts."""
        if not origin:
            return False
        parts = urlsplit(origin.strip())
        host = parts.netloc.lower()
        if parts.path not in ("", "/") or not self.is_allowed_host(host):
            return False
        if parts.scheme == "https":
            return True
        return parts.scheme == "http" and (host.startswith(LOCAL_HOST_PREFIXES) or host.endswith(".onion"))


__all__ = ["HostPolicy"]
