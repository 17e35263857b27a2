"""Rate limiting utilities using SlowAPI."""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from commconfig.core.settings import Settings, get_settings


def build_limiter(settings: Settings | None = None) -> Limiter:
    settings = settings or get_settings()
    return Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.rate_limit_requests}/{settings.rate_limit_window_seconds} seconds"],
        storage_uri=settings.resolved_rate_limit_storage,
    )


def setup_rate_limiting(app: FastAPI, settings: Settings | None = None) -> None:
    app.state.limiter = build_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)
    app.add_middleware(SlowAPIMiddleware)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests", "limit": exc.detail},
    )


__all__ = ["build_limiter", "setup_rate_limiting"]
