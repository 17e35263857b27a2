"""Configuration snapshot loading and validation.

The snapshot is parsed from JSON with strict pydantic models, then converted
into the frozen runtime objects consumed by the resolvers. Any structural or
referential problem raises :class:`ConfigurationError`, which aborts startup.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, ValidationError

from commconfig.core.errors import ConfigurationError
from commconfig.core.gateways import INTEGRITY_PATTERN, GatewayRecord, UptimeCheckFixture
from commconfig.core.hosts import HostPolicy
from commconfig.core.logging import get_logger
from commconfig.core.plans import FeatureFlags, PlanCatalog, PlanDefinition, PlanResolver, parse_billing
from commconfig.core.regions import RegionRouter

logger = get_logger(__name__)


class _SourceModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class FeatureFlagsSource(_SourceModel):
    disable_p2p: StrictBool = Field(alias="disableP2P")
    modest_branding: StrictBool = Field(alias="modestBranding")
    native_crypto: StrictBool = Field(alias="nativeCrypto")
    telehealth: StrictBool
    video: StrictBool
    voice: StrictBool


class PlanSource(_SourceModel):
    accounts_plan: str = Field(default="", alias="accountsPlan")
    gift_pack: StrictBool = Field(default=False, alias="giftPack")
    price: StrictInt = 0
    session_count_limit: StrictInt = Field(alias="sessionCountLimit")
    pro_features: FeatureFlagsSource = Field(alias="proFeatures")


class UptimeFixtureSource(_SourceModel):
    integrity_hash: str = Field(alias="integrityHash", pattern=INTEGRITY_PATTERN.pattern)
    content_id: str = Field(alias="contentId", min_length=1)


class GatewaySource(_SourceModel):
    id: str = Field(min_length=1)
    continent_code: str = Field(alias="continentCode")
    url: str = Field(pattern=r"^https?://")
    uptime: str


class TunablesSource(_SourceModel):
    probe_timeout_ms: StrictInt = Field(default=1500, alias="probeTimeoutMs", gt=0)
    uptime_ttl_seconds: StrictInt = Field(default=600, alias="uptimeTtlSeconds", ge=0)


class SnapshotSource(_SourceModel):
    version: str
    plans: dict[str, PlanSource]
    plan_apple_ids: dict[str, str] = Field(default_factory=dict, alias="planAppleIds")
    regions: list[str] = Field(min_length=1)
    continents: list[str]
    continent_regions: dict[str, str] = Field(alias="continentRegions")
    default_continent: str = Field(alias="defaultContinent")
    default_continent_code: str = Field(alias="defaultContinentCode")
    default_continent_code_backup: str = Field(alias="defaultContinentCodeBackup")
    default_region: str = Field(alias="defaultRegion")
    allowed_hosts: list[str] = Field(default_factory=list, alias="allowedHosts")
    uptime_fixtures: dict[str, UptimeFixtureSource] = Field(default_factory=dict, alias="uptimeFixtures")
    gateways: list[GatewaySource] = Field(default_factory=list)
    tunables: TunablesSource = Field(default_factory=TunablesSource)


@dataclass(frozen=True)
class ConfigSnapshot:
    version: str
    resolver: PlanResolver
    router: RegionRouter
    hosts: HostPolicy
    gateways: tuple[GatewayRecord, ...]
    probe_timeout_ms: int
    uptime_ttl_seconds: int

    @property
    def catalog(self) -> PlanCatalog:
        return self.resolver.catalog


def _build_plans(source: SnapshotSource) -> PlanCatalog:
    plans: dict[str, PlanDefinition] = {}
    for code, plan in source.plans.items():
        plans[code] = PlanDefinition(
            code=code,
            billing=parse_billing(plan.accounts_plan, plan.gift_pack, plan_code=code),
            price=plan.price,
            session_count_limit=plan.session_count_limit,
            features=FeatureFlags(**plan.pro_features.model_dump()),
        )
    return PlanCatalog(plans)


def _build_gateways(source: SnapshotSource, router: RegionRouter) -> tuple[GatewayRecord, ...]:
    records: list[GatewayRecord] = []
    seen: set[str] = set()
    for gateway in source.gateways:
        if gateway.id in seen:
            raise ConfigurationError(f"Duplicate gateway {gateway.id!r}")
        seen.add(gateway.id)
        if not router.is_recognized_continent(gateway.continent_code):
            raise ConfigurationError(
                f"Gateway {gateway.id!r} uses unrecognized continent {gateway.continent_code!r}"
            )
        fixture = source.uptime_fixtures.get(gateway.uptime)
        if fixture is None:
            raise ConfigurationError(f"Gateway {gateway.id!r} references unknown fixture {gateway.uptime!r}")
        records.append(
            GatewayRecord(
                gateway_id=gateway.id,
                continent_code=gateway.continent_code,
                base_url=gateway.url,
                fixture=UptimeCheckFixture(expected_hash=fixture.integrity_hash, content_id=fixture.content_id),
            )
        )
    return tuple(records)


def build_snapshot(data: Mapping[str, Any]) -> ConfigSnapshot:
    try:
        source = SnapshotSource.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration snapshot: {exc}") from exc

    catalog = _build_plans(source)
    for product_id, plan_code in source.plan_apple_ids.items():
        if plan_code not in catalog:
            raise ConfigurationError(f"Storefront product {product_id!r} maps to unknown plan {plan_code!r}")
    resolver = PlanResolver(catalog, source.plan_apple_ids)

    router = RegionRouter(
        continent_regions=source.continent_regions,
        continents=source.continents,
        regions=source.regions,
        default_region=source.default_region,
        default_continent_code=source.default_continent_code,
        default_continent_name=source.default_continent,
        default_continent_code_backup=source.default_continent_code_backup,
    )

    return ConfigSnapshot(
        version=source.version,
        resolver=resolver,
        router=router,
        hosts=HostPolicy(source.allowed_hosts),
        gateways=_build_gateways(source, router),
        probe_timeout_ms=source.tunables.probe_timeout_ms,
        uptime_ttl_seconds=source.tunables.uptime_ttl_seconds,
    )


def load_snapshot(path: Path | str) -> ConfigSnapshot:
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration snapshot not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Configuration snapshot is not valid JSON: {exc}") from exc

    snapshot = build_snapshot(data)
    logger.info(
        "snapshot_loaded",
        path=str(path),
        version=snapshot.version,
        plans=len(snapshot.catalog),
        gateways=len(snapshot.gateways),
    )
    return snapshot


class SnapshotHolder:
    """Own the active snapshot; reloads swap the whole reference."""

    def __init__(self, snapshot: ConfigSnapshot) -> None:
        self._snapshot = snapshot
        self._subscribers: list[Callable[[ConfigSnapshot], None]] = []

    @property
    def current(self) -> ConfigSnapshot:
        return self._snapshot

    def subscribe(self, callback: Callable[[ConfigSnapshot], None]) -> None:
        self._subscribers.append(callback)

    def replace(self, snapshot: ConfigSnapshot) -> None:
        previous = self._snapshot
        self._snapshot = snapshot
        logger.info("snapshot_replaced", previous=previous.version, version=snapshot.version)
        for callback in self._subscribers:
            callback(snapshot)


__all__ = ["ConfigSnapshot", "SnapshotHolder", "build_snapshot", "load_snapshot"]
