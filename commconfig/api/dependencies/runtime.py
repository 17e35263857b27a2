"""Access the snapshot and tracker attached to the running application."""
from __future__ import annotations

from fastapi import Request

from commconfig.core.snapshot import ConfigSnapshot
from commconfig.services.uptime import GatewayUptimeTracker


def get_snapshot(request: Request) -> ConfigSnapshot:
    return request.app.state.snapshots.current


def get_tracker(request: Request) -> GatewayUptimeTracker:
    return request.app.state.tracker
