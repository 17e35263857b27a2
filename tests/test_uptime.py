"""Gateway uptime tracking."""
from __future__ import annotations

import dataclasses
import threading

import pytest

from commconfig.core.errors import GatewayNotFound
from commconfig.core.gateways import UptimeResult, integrity_hash
from commconfig.core.settings import Settings
from commconfig.core.snapshot import build_snapshot
from commconfig.services.probe import HttpProbe, ProbeOutcome
from commconfig.services.uptime import GatewayUptimeTracker, build_tracker
from commconfig.tasks import get_task_queue

EU_1 = "https://eu-1.example/ipfs/:hash"
EU_2 = "https://eu-2.example/ipfs/:hash"
EU_3 = "https://eu-3.example/ipfs/:hash"
NA_1 = "https://na-1.example/ipfs/"


@pytest.fixture()
def tracker(snapshot, probe, clock):
    return GatewayUptimeTracker(snapshot.gateways, probe, timeout_ms=1500, ttl_seconds=600, clock=clock)


def test_fresh_result_is_served_from_cache(tracker, probe, clock):
    first = tracker.check_gateway("eu-1")
    assert first == UptimeResult(ok=True, timestamp=clock.now)

    for _ in range(5):
        clock.advance(100)
        assert tracker.check_gateway("eu-1") is first
    clock.advance(99)
    tracker.check_gateway("eu-1")
    assert probe.count(EU_1) == 1


def test_expired_result_triggers_exactly_one_fetch(tracker, probe, clock):
    tracker.check_gateway("eu-1")
    clock.advance(601)
    refreshed = tracker.check_gateway("eu-1")
    tracker.check_gateway("eu-1")
    assert probe.count(EU_1) == 2
    assert refreshed.timestamp == clock.now


def test_result_is_fresh_at_exact_ttl_boundary(tracker, probe, clock):
    tracker.check_gateway("eu-1")
    clock.advance(600)
    tracker.check_gateway("eu-1")
    assert probe.count(EU_1) == 1


def test_hash_mismatch_is_unhealthy(tracker, probe):
    probe.responses[EU_1] = ProbeOutcome(content_hash="sha384-AAAA", ok=True)
    assert tracker.check_gateway("eu-1").ok is False


def test_network_failure_is_unhealthy_and_cached(tracker, probe, clock):
    probe.responses[EU_1] = ProbeOutcome(content_hash=None, ok=False, error="connection refused")
    assert tracker.check_gateway("eu-1").ok is False

    probe.responses.pop(EU_1)
    clock.advance(300)
    assert tracker.check_gateway("eu-1").ok is False
    clock.advance(301)
    assert tracker.check_gateway("eu-1").ok is True
    assert probe.count(EU_1) == 2


def test_raising_check_is_unhealthy(snapshot, clock):
    def broken(url, content_id, timeout, algorithm):
        raise RuntimeError("boom")

    tracker = GatewayUptimeTracker(snapshot.gateways, broken, clock=clock)
    assert tracker.check_gateway("eu-1").ok is False


def test_timed_out_check_is_unhealthy_and_never_writes(snapshot, clock):
    release = threading.Event()
    finished = threading.Event()

    def slow(url, content_id, timeout, algorithm):
        release.wait(5)
        finished.set()
        return ProbeOutcome(content_hash="irrelevant", ok=True)

    tracker = GatewayUptimeTracker(snapshot.gateways, slow, timeout_ms=50, clock=clock)
    try:
        result = tracker.check_gateway("eu-1")
        assert result.ok is False
    finally:
        release.set()
    finished.wait(5)
    assert tracker.cached_result("eu-1") == result


def test_hung_gateway_does_not_starve_other_checks(snapshot, clock):
    release = threading.Event()

    def hangs_on_eu_1(url, content_id, timeout, algorithm):
        if url == EU_1:
            release.wait(5)
        return ProbeOutcome(content_hash=snapshot.gateways[0].fixture.expected_hash, ok=True)

    tracker = GatewayUptimeTracker(snapshot.gateways, hangs_on_eu_1, timeout_ms=50, clock=clock, max_workers=1)
    try:
        assert tracker.check_gateway("eu-1").ok is False
        assert tracker.check_gateway("eu-2").ok is True
        assert tracker.list_healthy_gateways("eu") == ["eu-2", "eu-3"]
    finally:
        release.set()


def test_fixture_algorithm_is_passed_to_the_fetcher(tracker, probe):
    tracker.check_gateway("eu-1")
    assert probe.algorithms == ["sha384"]


class _ContentSession:
    def __init__(self, content: bytes) -> None:
        self.headers: dict[str, str] = {}
        self.content = content

    def get(self, url: str, timeout: float):
        return self

    def raise_for_status(self) -> None:
        return None


def test_sha256_fixture_verifies_with_http_fetcher(snapshot_data, clock, fixture_content):
    snapshot_data["uptimeFixtures"]["default"]["integrityHash"] = integrity_hash(fixture_content, "sha256")
    snapshot = build_snapshot(snapshot_data)
    fetcher = HttpProbe(session=_ContentSession(fixture_content))

    tracker = GatewayUptimeTracker(snapshot.gateways, fetcher, clock=clock)

    assert tracker.check_gateway("eu-1").ok is True


def _blocking_check(tracker, gateway_id):
    """Start ``check_gateway`` in a thread whose fetch blocks until released."""
    started = threading.Event()
    release = threading.Event()
    results: list[UptimeResult] = []

    def blocking(url, content_id, timeout, algorithm):
        started.set()
        release.wait(5)
        return ProbeOutcome(content_hash=tracker.gateways[0].fixture.expected_hash, ok=True)

    tracker.probe = blocking
    worker = threading.Thread(target=lambda: results.append(tracker.check_gateway(gateway_id)))
    worker.start()
    assert started.wait(5)
    return release, worker, results


def test_in_flight_result_for_removed_gateway_is_discarded(snapshot, probe, clock):
    tracker = GatewayUptimeTracker(snapshot.gateways, probe, timeout_ms=5000, clock=clock)
    release, worker, results = _blocking_check(tracker, "eu-1")

    tracker.replace_gateways([g for g in snapshot.gateways if g.gateway_id != "eu-1"])
    release.set()
    worker.join(5)

    assert results[0].ok is True
    assert "eu-1" not in tracker._cache


def test_in_flight_result_for_changed_gateway_is_discarded(snapshot, probe, clock):
    tracker = GatewayUptimeTracker(snapshot.gateways, probe, timeout_ms=5000, clock=clock)
    release, worker, results = _blocking_check(tracker, "eu-1")

    moved = dataclasses.replace(snapshot.gateways[0], base_url="https://eu-1b.example/ipfs/:hash")
    tracker.replace_gateways([moved, *snapshot.gateways[1:]])
    release.set()
    worker.join(5)

    assert results
    assert tracker.cached_result("eu-1") is None


def test_older_result_does_not_overwrite_newer(tracker, clock):
    gateway = tracker._get_gateway("eu-1")
    newer = UptimeResult(ok=True, timestamp=clock.now + 10)
    older = UptimeResult(ok=False, timestamp=clock.now)
    assert tracker._store(gateway, newer) is newer
    assert tracker._store(gateway, older) is newer
    assert tracker.cached_result("eu-1") is newer


def test_unknown_gateway(tracker):
    with pytest.raises(GatewayNotFound):
        tracker.check_gateway("mars-1")
    with pytest.raises(GatewayNotFound):
        tracker.cached_result("mars-1")


def test_list_healthy_gateways_filters_by_continent_and_health(tracker, probe):
    probe.responses[EU_2] = ProbeOutcome(content_hash=None, ok=False, error="timeout")
    assert tracker.list_healthy_gateways("eu") == ["eu-1", "eu-3"]
    assert tracker.list_healthy_gateways("na") == ["na-1"]
    assert tracker.list_healthy_gateways("as") == []
    assert tracker.list_healthy_gateways("zz") == []


def test_list_healthy_gateways_keeps_table_order(tracker):
    for _ in range(3):
        assert tracker.list_healthy_gateways("eu") == ["eu-1", "eu-2", "eu-3"]


def test_list_healthy_gateways_only_checks_stale_entries(tracker, probe, clock):
    tracker.check_gateway("eu-1")
    clock.advance(10)
    tracker.list_healthy_gateways("eu")
    assert probe.count(EU_1) == 1
    assert probe.count(EU_2) == 1
    assert probe.count(EU_3) == 1
    assert probe.count(NA_1) == 0


def test_cached_failure_is_excluded_until_expiry(tracker, probe, clock):
    probe.responses[EU_3] = ProbeOutcome(content_hash="sha384-AAAA", ok=True)
    assert "eu-3" not in tracker.list_healthy_gateways("eu")
    probe.responses.pop(EU_3)
    clock.advance(60)
    assert "eu-3" not in tracker.list_healthy_gateways("eu")
    clock.advance(600)
    assert "eu-3" in tracker.list_healthy_gateways("eu")


def test_replace_gateways_drops_removed_entries(tracker, snapshot, probe):
    tracker.check_gateway("eu-1")
    tracker.check_gateway("na-1")
    tracker.replace_gateways([g for g in snapshot.gateways if g.gateway_id != "na-1"])
    assert tracker.cached_result("eu-1") is not None
    with pytest.raises(GatewayNotFound):
        tracker.check_gateway("na-1")


def test_refresh_job_checks_every_gateway(tracker, probe):
    results = get_task_queue().enqueue("commconfig.refresh_gateway_uptime", tracker)
    assert list(results) == ["eu-1", "na-1", "eu-2", "eu-3"]
    assert all(result.ok for result in results.values())
    assert len(probe.calls) == 4


def test_build_tracker_prefers_settings_overrides(snapshot, probe):
    tracker = build_tracker(snapshot, Settings(probe_timeout_ms=250, uptime_ttl_seconds=0), probe=probe)
    assert tracker.timeout_ms == 250
    assert tracker.ttl_seconds == 0

    tracker = build_tracker(snapshot, Settings(), probe=probe)
    assert tracker.timeout_ms == 1500
    assert tracker.ttl_seconds == 600


def test_build_tracker_defaults_to_http_fetcher(snapshot):
    tracker = build_tracker(snapshot, Settings(probe_user_agent="agent/2"))
    assert isinstance(tracker.probe, HttpProbe)
    assert tracker.probe.session.headers["User-Agent"] == "agent/2"
