"""Exception hierarchy shared by the resolvers and the uptime tracker."""
from __future__ import annotations


class CommConfigError(Exception):
    """Base class for every error raised by commconfig."""


class ConfigurationError(CommConfigError, ValueError):
    """The configuration snapshot is missing or fails validation."""


class NotFound(CommConfigError, LookupError):
    """A lookup key is not present in the active snapshot."""

    kind = "resource"

    def __init__(self, key: str) -> None:
        super().__init__(f"Unknown {self.kind}: {key!r}")
        self.key = key


class PlanNotFound(NotFound):
    kind = "plan"


class StorefrontProductNotFound(NotFound):
    kind = "storefront product"


class GatewayNotFound(NotFound):
    kind = "gateway"


__all__ = [
    "CommConfigError",
    "ConfigurationError",
    "GatewayNotFound",
    "NotFound",
    "PlanNotFound",
    "StorefrontProductNotFound",
]
