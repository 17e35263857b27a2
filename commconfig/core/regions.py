"""Continent to serving-region routing."""
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from commconfig.core.errors import ConfigurationError


class RegionRouter:
    """Map client continent codes to cloud regions.

    ``resolve_region`` never fails: codes outside the recognized continent set
    resolve to ``default_region``. Continent-level fallback (primary default
    continent, then the backup code) is exposed through the named attributes
    so callers that need a continent label apply the same policy.
    """

    def __init__(
        self,
        continent_regions: Mapping[str, str],
        continents: Iterable[str],
        regions: Iterable[str],
        default_region: str,
        default_continent_code: str,
        default_continent_name: str,
        default_continent_code_backup: str,
    ) -> None:
        self.continents = frozenset(continents)
        self.regions = frozenset(regions)
        self.default_region = default_region
        self.default_continent_code = default_continent_code
        self.default_continent_name = default_continent_name
        self.default_continent_code_backup = default_continent_code_backup
        self._continent_regions: Mapping[str, str] = MappingProxyType(dict(continent_regions))
        self._validate()

    def _validate(self) -> None:
        if self.default_region not in self.regions:
            raise ConfigurationError(f"Default region {self.default_region!r} is not a known region")
        for code, region in self._continent_regions.items():
            if region not in self.regions:
                raise ConfigurationError(f"Continent {code!r} maps to unknown region {region!r}")
        for code in (self.default_continent_code, self.default_continent_code_backup):
            if code not in self.continents:
                raise ConfigurationError(f"Default continent {code!r} is not a recognized continent")

    def is_recognized_continent(self, code: str) -> bool:
        return code in self.continents

    def resolve_region(self, continent_code: str) -> str:
        if continent_code in self.continents:
            region = self._continent_regions.get(continent_code)
            if region is not None:
                return region
        return self.default_region

    def resolve_continent(self, continent_code: str | None) -> str:
        """Return a trusted continent code, substituting the defaults."""
        if continent_code and continent_code in self.continents:
            return continent_code
        if self.default_continent_code in self.continents:
            return self.default_continent_code
        return self.default_continent_code_backup

    def region_fallback_chain(self, continent_code: str) -> tuple[str, ...]:
        candidates: list[str] = []
        if continent_code in self.continents:
            candidates.append(continent_code)
        candidates.extend([self.default_continent_code, self.default_continent_code_backup])

        chain: list[str] = []
        for code in candidates:
            region = self.resolve_region(code)
            if region not in chain:
                chain.append(region)
        if self.default_region not in chain:
            chain.append(self.default_region)
        return tuple(chain)


__all__ = ["RegionRouter"]
