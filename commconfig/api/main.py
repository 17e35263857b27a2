"""FastAPI application factory."""
from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp

from commconfig.api.routers import gateways, plans, regions
from commconfig.core.errors import NotFound
from commconfig.core.logging import get_logger, setup_logging
from commconfig.core.observability import configure_observability
from commconfig.core.rate_limiter import setup_rate_limiting
from commconfig.core.settings import Settings, get_settings
from commconfig.core.snapshot import ConfigSnapshot, SnapshotHolder, load_snapshot
from commconfig.services.uptime import GatewayUptimeTracker, build_tracker

logger = get_logger(__name__)


class SnapshotCORSMiddleware(CORSMiddleware):
    """CORS middleware that checks origins against the live snapshot's host policy."""

    def __init__(self, app: ASGIApp, snapshots: SnapshotHolder, **kwargs) -> None:
        super().__init__(app, allow_origins=(), **kwargs)
        self.snapshots = snapshots

    def is_allowed_origin(self, origin: str) -> bool:
        return self.snapshots.current.hosts.is_allowed_origin(origin)


def _not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


def create_app(
    settings: Settings | None = None,
    snapshot: ConfigSnapshot | None = None,
    tracker: GatewayUptimeTracker | None = None,
) -> FastAPI:
    """Build the application; a missing or invalid snapshot aborts here."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    if snapshot is None:
        snapshot = load_snapshot(settings.snapshot_path)
    snapshots = SnapshotHolder(snapshot)
    if tracker is None:
        tracker = build_tracker(snapshot, settings)
    snapshots.subscribe(tracker.apply_snapshot)

    app = FastAPI(title=settings.app_name, version="1.0.0")
    app.state.settings = settings
    app.state.snapshots = snapshots
    app.state.tracker = tracker

    app.add_middleware(
        SnapshotCORSMiddleware,
        snapshots=snapshots,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "POST", "OPTIONS"],
        allow_headers=["Authorization", "X-Forwarded-For"],
    )
    setup_rate_limiting(app, settings)
    configure_observability(app, settings)
    app.add_exception_handler(NotFound, _not_found_handler)

    app.include_router(plans.router)
    app.include_router(regions.router)
    app.include_router(gateways.router)

    @app.get("/healthz", tags=["monitoring"])
    def healthcheck() -> dict[str, str]:
        return {"status": "ok", "snapshot": app.state.snapshots.current.version}

    logger.info("app_created", environment=settings.environment, snapshot=snapshot.version)
    return app


__all__ = ["create_app"]
