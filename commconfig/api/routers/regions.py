"""Continent and region routing endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from commconfig.api import schemas
from commconfig.api.dependencies import get_snapshot
from commconfig.core.snapshot import ConfigSnapshot

router = APIRouter(prefix="/api/v1", tags=["regions"])


@router.get("/continents", response_model=schemas.ContinentsResponse)
def list_continents(snapshot: ConfigSnapshot = Depends(get_snapshot)) -> schemas.ContinentsResponse:
    region_router = snapshot.router
    return schemas.ContinentsResponse(
        continents=sorted(region_router.continents),
        default_continent=region_router.default_continent_name,
        default_continent_code=region_router.default_continent_code,
        default_continent_code_backup=region_router.default_continent_code_backup,
        default_region=region_router.default_region,
    )


@router.get("/regions/{continent_code}", response_model=schemas.RegionResponse)
def resolve_region(
    continent_code: str,
    snapshot: ConfigSnapshot = Depends(get_snapshot),
) -> schemas.RegionResponse:
    region_router = snapshot.router
    return schemas.RegionResponse(
        continent_code=continent_code,
        recognized=region_router.is_recognized_continent(continent_code),
        region=region_router.resolve_region(continent_code),
        fallback_chain=list(region_router.region_fallback_chain(continent_code)),
    )
