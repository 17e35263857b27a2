"""Expose API routers."""
from . import gateways, plans, regions

__all__ = ["gateways", "plans", "regions"]
