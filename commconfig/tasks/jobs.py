"""Registered background jobs."""
from __future__ import annotations

from commconfig.core.gateways import UptimeResult
from commconfig.core.logging import get_logger
from commconfig.services.uptime import GatewayUptimeTracker
from commconfig.tasks.queue import register_task

logger = get_logger(__name__)


@register_task("commconfig.refresh_gateway_uptime")
def refresh_gateway_uptime_job(
    tracker: GatewayUptimeTracker, continent_code: str | None = None
) -> dict[str, UptimeResult]:
    results = tracker.refresh(continent_code)
    healthy = sum(1 for result in results.values() if result.ok)
    logger.info(
        "gateway_uptime_refreshed",
        continent=continent_code,
        checked=len(results),
        healthy=healthy,
    )
    return results


__all__ = ["refresh_gateway_uptime_job"]
