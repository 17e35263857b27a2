"""Gateway uptime endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from commconfig.api import schemas
from commconfig.api.dependencies import get_snapshot, get_tracker
from commconfig.core.snapshot import ConfigSnapshot
from commconfig.services.uptime import GatewayUptimeTracker
from commconfig.tasks import get_task_queue

router = APIRouter(prefix="/api/v1/gateways", tags=["gateways"])


@router.get("", response_model=schemas.HealthyGatewaysResponse)
def list_healthy_gateways(
    continent: str | None = Query(default=None, max_length=8),
    snapshot: ConfigSnapshot = Depends(get_snapshot),
    tracker: GatewayUptimeTracker = Depends(get_tracker),
) -> schemas.HealthyGatewaysResponse:
    continent_code = snapshot.router.resolve_continent(continent)
    return schemas.HealthyGatewaysResponse(
        continent_code=continent_code,
        gateways=tracker.list_healthy_gateways(continent_code),
    )


@router.get("/{gateway_id}/uptime", response_model=schemas.UptimeResponse)
def check_gateway(
    gateway_id: str,
    tracker: GatewayUptimeTracker = Depends(get_tracker),
) -> schemas.UptimeResponse:
    result = tracker.check_gateway(gateway_id)
    return schemas.UptimeResponse(gateway_id=gateway_id, ok=result.ok, timestamp=result.timestamp)


@router.post("/refresh", response_model=schemas.RefreshResponse)
def refresh_gateways(
    continent: str | None = Query(default=None, max_length=8),
    tracker: GatewayUptimeTracker = Depends(get_tracker),
) -> schemas.RefreshResponse:
    results = get_task_queue().enqueue("commconfig.refresh_gateway_uptime", tracker, continent)
    return schemas.RefreshResponse(
        checked=len(results),
        healthy=sum(1 for result in results.values() if result.ok),
    )
