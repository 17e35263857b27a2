"""Prometheus instrumentation for the HTTP surface."""
from __future__ import annotations

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from commconfig.core.logging import get_logger
from commconfig.core.settings import Settings, get_settings

logger = get_logger(__name__)


def configure_observability(app: FastAPI, settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    if not settings.enable_prometheus:
        return
    Instrumentator().instrument(app, metric_namespace=settings.metrics_namespace).expose(
        app, include_in_schema=False
    )
    logger.info("prometheus_enabled", namespace=settings.metrics_namespace)


__all__ = ["configure_observability"]
