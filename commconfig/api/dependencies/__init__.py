"""FastAPI dependency helpers."""
from .runtime import get_snapshot, get_tracker

__all__ = ["get_snapshot", "get_tracker"]
