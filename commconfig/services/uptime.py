"""Time-bounded gateway health cache."""
from __future__ import annotations

import hmac
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from commconfig.core.errors import GatewayNotFound
from commconfig.core.gateways import GatewayRecord, UptimeResult
from commconfig.core.logging import get_logger
from commconfig.core.settings import Settings, get_settings
from commconfig.core.snapshot import ConfigSnapshot
from commconfig.services.probe import HttpProbe, Probe, ProbeOutcome

logger = get_logger(__name__)

Clock = Callable[[], int]


def epoch_millis() -> int:
    return int(time.time() * 1000)


class GatewayUptimeTracker:
    """Cache per-gateway probe results for ``ttl_seconds``.

    A result is fresh while ``now - timestamp <= ttl``; fresh results are
    returned without probing. Stale or missing entries trigger one probe
    bounded by ``timeout_ms``, hashed with the fixture's own algorithm.
    Timeouts, transport errors and hash mismatches all cache ``ok=False``.
    Every probe runs on its own worker thread so a hung gateway never delays
    another one. Cache writes are compare-and-set on the result timestamp and
    only land while the probed record is still the active one; a probe
    abandoned at its deadline never writes.
    """

    def __init__(
        self,
        gateways: Iterable[GatewayRecord],
        probe: Probe,
        *,
        timeout_ms: int = 1500,
        ttl_seconds: int = 600,
        clock: Clock = epoch_millis,
        max_workers: int = 16,
    ) -> None:
        self.probe = probe
        self.timeout_ms = timeout_ms
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.max_workers = max_workers
        self._gateways: Mapping[str, GatewayRecord] = self._index(gateways)
        self._cache: dict[str, UptimeResult] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _index(gateways: Iterable[GatewayRecord]) -> Mapping[str, GatewayRecord]:
        return MappingProxyType({gateway.gateway_id: gateway for gateway in gateways})

    @property
    def gateways(self) -> tuple[GatewayRecord, ...]:
        return tuple(self._gateways.values())

    def _get_gateway(self, gateway_id: str) -> GatewayRecord:
        gateway = self._gateways.get(gateway_id)
        if gateway is None:
            raise GatewayNotFound(gateway_id)
        return gateway

    def cached_result(self, gateway_id: str) -> UptimeResult | None:
        """Return the cached result if it is still fresh, without probing."""
        self._get_gateway(gateway_id)
        result = self._cache.get(gateway_id)
        if result is not None and result.is_fresh(self.clock(), self.ttl_seconds):
            return result
        return None

    def check_gateway(self, gateway_id: str) -> UptimeResult:
        gateway = self._get_gateway(gateway_id)
        cached = self._cache.get(gateway_id)
        if cached is not None and cached.is_fresh(self.clock(), self.ttl_seconds):
            return cached

        ok = self._run_probe(gateway)
        return self._store(gateway, UptimeResult(ok=ok, timestamp=self.clock()))

    def list_healthy_gateways(self, continent_code: str) -> list[str]:
        candidates = [g for g in self._gateways.values() if g.continent_code == continent_code]
        if not candidates:
            return []
        results = self._check_many(candidates)
        return [gateway.gateway_id for gateway, result in zip(candidates, results) if result.ok]

    def refresh(self, continent_code: str | None = None) -> dict[str, UptimeResult]:
        """Check every gateway (optionally one continent), probing stale entries."""
        candidates = [
            g for g in self._gateways.values() if continent_code is None or g.continent_code == continent_code
        ]
        return {gateway.gateway_id: result for gateway, result in zip(candidates, self._check_many(candidates))}

    def _check_many(self, gateways: list[GatewayRecord]) -> list[UptimeResult]:
        if not gateways:
            return []
        workers = min(len(gateways), self.max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="uptime-check") as pool:
            return list(pool.map(self.check_gateway, [gateway.gateway_id for gateway in gateways]))

    def _run_probe(self, gateway: GatewayRecord) -> bool:
        timeout = self.timeout_ms / 1000
        fixture = gateway.fixture
        outcomes: list[ProbeOutcome | Exception] = []

        def target() -> None:
            try:
                outcomes.append(self.probe(gateway.base_url, fixture.content_id, timeout, fixture.algorithm))
            except Exception as exc:
                outcomes.append(exc)

        worker = threading.Thread(target=target, name=f"uptime-probe-{gateway.gateway_id}", daemon=True)
        worker.start()
        worker.join(timeout)
        if not outcomes:
            logger.warning("gateway_probe_timeout", gateway_id=gateway.gateway_id, timeout_ms=self.timeout_ms)
            return False

        outcome = outcomes[0]
        if isinstance(outcome, Exception):
            logger.warning("gateway_probe_error", gateway_id=gateway.gateway_id, error=str(outcome))
            return False
        if not outcome.ok or outcome.content_hash is None:
            logger.warning("gateway_probe_failed", gateway_id=gateway.gateway_id, error=outcome.error)
            return False
        if not hmac.compare_digest(outcome.content_hash, fixture.expected_hash):
            logger.warning(
                "gateway_hash_mismatch",
                gateway_id=gateway.gateway_id,
                expected=fixture.expected_hash,
                actual=outcome.content_hash,
            )
            return False
        logger.debug("gateway_probe_ok", gateway_id=gateway.gateway_id)
        return True

    def _store(self, gateway: GatewayRecord, result: UptimeResult) -> UptimeResult:
        gateway_id = gateway.gateway_id
        with self._lock:
            if self._gateways.get(gateway_id) != gateway:
                logger.info("gateway_result_discarded", gateway_id=gateway_id, reason="record_replaced")
                return result
            existing = self._cache.get(gateway_id)
            if existing is not None and existing.timestamp > result.timestamp:
                return existing
            self._cache[gateway_id] = result
            return result

    def replace_gateways(self, gateways: Iterable[GatewayRecord]) -> None:
        index = self._index(gateways)
        with self._lock:
            for gateway_id in list(self._cache):
                if self._gateways.get(gateway_id) != index.get(gateway_id):
                    del self._cache[gateway_id]
            self._gateways = index

    def apply_snapshot(self, snapshot: ConfigSnapshot) -> None:
        self.replace_gateways(snapshot.gateways)
        logger.info("uptime_gateways_replaced", version=snapshot.version, gateways=len(snapshot.gateways))


def build_tracker(
    snapshot: ConfigSnapshot,
    settings: Settings | None = None,
    probe: Probe | None = None,
    clock: Clock = epoch_millis,
) -> GatewayUptimeTracker:
    settings = settings or get_settings()
    if probe is None:
        probe = HttpProbe(user_agent=settings.probe_user_agent)
    timeout_ms = settings.probe_timeout_ms or snapshot.probe_timeout_ms
    ttl_seconds = settings.uptime_ttl_seconds
    if ttl_seconds is None:
        ttl_seconds = snapshot.uptime_ttl_seconds
    return GatewayUptimeTracker(
        snapshot.gateways,
        probe,
        timeout_ms=timeout_ms,
        ttl_seconds=ttl_seconds,
        clock=clock,
        max_workers=settings.probe_workers,
    )


__all__ = ["Clock", "GatewayUptimeTracker", "build_tracker", "epoch_millis"]
