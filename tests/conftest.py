"""Shared fixtures: a compact snapshot, a counting probe and a manual clock."""
from __future__ import annotations

import copy
import json
import threading
from typing import Any

import pytest

from commconfig.core.gateways import integrity_hash
from commconfig.core.settings import Settings
from commconfig.core.snapshot import ConfigSnapshot, build_snapshot
from commconfig.services.probe import ProbeOutcome

FIXTURE_CONTENT = b"uptime fixture body"
FIXTURE_HASH = integrity_hash(FIXTURE_CONTENT, "sha384")

STANDARD_FEATURES = {
    "disableP2P": False,
    "modestBranding": False,
    "nativeCrypto": False,
    "telehealth": False,
    "video": True,
    "voice": True,
}

GIFT_PACK_VALUE = json.dumps(
    [
        {"plan": "AnnualSupporter", "quantity": 10, "trialMonths": 18},
        {"plan": "AnnualPremium", "quantity": 5, "trialMonths": 30},
    ]
)

SNAPSHOT_DATA: dict[str, Any] = {
    "version": "test-1",
    "plans": {
        "0-0": {
            "sessionCountLimit": -1,
            "proFeatures": {key: True for key in STANDARD_FEATURES},
        },
        "3-3": {
            "accountsPlan": "MonthlyTelehealth",
            "sessionCountLimit": -1,
            "proFeatures": {**STANDARD_FEATURES, "telehealth": True},
        },
        "4-1": {"sessionCountLimit": 10, "proFeatures": STANDARD_FEATURES},
        "8-4": {"accountsPlan": "MonthlyPlatinum", "sessionCountLimit": -1, "proFeatures": STANDARD_FEATURES},
        "10-1": {
            "accountsPlan": "LifetimePlatinum",
            "price": 10000,
            "sessionCountLimit": -1,
            "proFeatures": STANDARD_FEATURES,
        },
        "13-4": {
            "accountsPlan": GIFT_PACK_VALUE,
            "giftPack": True,
            "price": 17500,
            "sessionCountLimit": -1,
            "proFeatures": STANDARD_FEATURES,
        },
        "13-9": {
            "accountsPlan": "[{\"plan\": \"AnnualSupporter\",",
            "giftPack": True,
            "price": 100,
            "sessionCountLimit": -1,
            "proFeatures": STANDARD_FEATURES,
        },
    },
    "planAppleIds": {"MonthlyPlatinum": "8-4", "AnnualTelehealth": "3-3"},
    "regions": ["asia-northeast1", "europe-west1", "us-central1"],
    "continents": ["as", "eu", "na"],
    "continentRegions": {"as": "asia-northeast1", "eu": "europe-west1", "na": "us-central1"},
    "defaultContinent": "Europe",
    "defaultContinentCode": "eu",
    "defaultContinentCodeBackup": "na",
    "defaultRegion": "us-central1",
    "allowedHosts": ["example.com", "www.example.com", "localhost:8080"],
    "uptimeFixtures": {"default": {"integrityHash": FIXTURE_HASH, "contentId": "QmFixture"}},
    "gateways": [
        {"id": "eu-1", "continentCode": "eu", "url": "https://eu-1.example/ipfs/:hash", "uptime": "default"},
        {"id": "na-1", "continentCode": "na", "url": "https://na-1.example/ipfs/", "uptime": "default"},
        {"id": "eu-2", "continentCode": "eu", "url": "https://eu-2.example/ipfs/:hash", "uptime": "default"},
        {"id": "eu-3", "continentCode": "eu", "url": "https://eu-3.example/ipfs/:hash", "uptime": "default"},
    ],
    "tunables": {"probeTimeoutMs": 1500, "uptimeTtlSeconds": 600},
}


class ManualClock:
    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class FakeProbe:
    """Probe double answering per base URL and counting calls."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.algorithms: list[str] = []
        self.responses: dict[str, ProbeOutcome] = {}
        self.default = ProbeOutcome(content_hash=FIXTURE_HASH, ok=True)
        self._lock = threading.Lock()

    def __call__(self, url: str, content_id: str, timeout: float, algorithm: str) -> ProbeOutcome:
        with self._lock:
            self.calls.append(url)
            self.algorithms.append(algorithm)
        return self.responses.get(url, self.default)

    def count(self, url: str) -> int:
        return self.calls.count(url)


@pytest.fixture()
def snapshot_data() -> dict[str, Any]:
    return copy.deepcopy(SNAPSHOT_DATA)


@pytest.fixture()
def snapshot(snapshot_data) -> ConfigSnapshot:
    return build_snapshot(snapshot_data)


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture()
def settings() -> Settings:
    return Settings(enable_prometheus=False, rate_limit_requests=1000)


@pytest.fixture()
def fixture_content() -> bytes:
    return FIXTURE_CONTENT
