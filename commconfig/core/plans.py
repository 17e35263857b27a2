"""Subscription plan catalog and entitlement resolution.

Plans are loaded once from the configuration snapshot and never mutated. Every
lookup is an exact, case-sensitive match on the plan code: an unknown code
raises :class:`PlanNotFound` rather than falling back to a default tier.
"""
from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, fields
from types import MappingProxyType
from typing import Iterator, Mapping, Union

from commconfig.core.errors import ConfigurationError, PlanNotFound, StorefrontProductNotFound
from commconfig.core.logging import get_logger

logger = get_logger(__name__)

PLAN_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]+-[A-Za-z0-9]+$")
UNLIMITED_SESSIONS = -1


@dataclass(frozen=True, slots=True)
class FeatureFlags:
    disable_p2p: bool
    modest_branding: bool
    native_crypto: bool
    telehealth: bool
    video: bool
    voice: bool

    @classmethod
    def names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class GiftPackItem:
    plan: str
    quantity: int
    trial_months: int


@dataclass(frozen=True, slots=True)
class NoBilling:
    """Free or one-time tier without a recurring billing plan."""


@dataclass(frozen=True, slots=True)
class SimpleBilling:
    plan_name: str


@dataclass(frozen=True, slots=True)
class GiftPackBilling:
    items: tuple[GiftPackItem, ...]


BillingSpec = Union[NoBilling, SimpleBilling, GiftPackBilling]


def _parse_gift_pack_items(raw: str) -> tuple[GiftPackItem, ...]:
    entries = json.loads(raw)
    if not isinstance(entries, list):
        raise ValueError("gift pack value must be a list")
    items: list[GiftPackItem] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError("gift pack entry must be an object")
        plan = entry.get("plan")
        quantity = entry.get("quantity")
        trial_months = entry.get("trialMonths")
        if not isinstance(plan, str) or not plan:
            raise ValueError("gift pack entry is missing a plan name")
        for value in (quantity, trial_months):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError("gift pack quantities must be non-negative integers")
        items.append(GiftPackItem(plan=plan, quantity=quantity, trial_months=trial_months))
    return tuple(items)


def parse_billing(accounts_plan: str, gift_pack: bool, *, plan_code: str = "") -> BillingSpec:
    """Decide the billing variant for a raw ``(accountsPlan, giftPack)`` pair.

    Gift packs encode a JSON list of ``{plan, quantity, trialMonths}`` objects
    in the billing plan name. Malformed or empty lists are logged and treated
    as "not a gift pack" so entitlement lookups stay total.
    """
    if not accounts_plan:
        return NoBilling()
    if not gift_pack:
        return SimpleBilling(plan_name=accounts_plan)
    try:
        items = _parse_gift_pack_items(accounts_plan)
    except ValueError as exc:
        logger.warning("gift_pack_malformed", plan_code=plan_code, error=str(exc))
        return NoBilling()
    if not items:
        logger.warning("gift_pack_empty", plan_code=plan_code)
        return NoBilling()
    return GiftPackBilling(items=items)


@dataclass(frozen=True, slots=True)
class PlanDefinition:
    code: str
    billing: BillingSpec
    price: int
    session_count_limit: int
    features: FeatureFlags

    @property
    def recurring_billing(self) -> bool:
        return not isinstance(self.billing, NoBilling)

    @property
    def is_gift_pack(self) -> bool:
        return isinstance(self.billing, GiftPackBilling)

    @property
    def unlimited_sessions(self) -> bool:
        return self.session_count_limit == UNLIMITED_SESSIONS


@dataclass(frozen=True, slots=True)
class EntitlementSet:
    """Entitlements granted by one plan.

    ``recurring_billing`` follows the billing variant decided when the snapshot
    was loaded. A gift pack whose value is malformed or empty is held as
    ``NoBilling``, so it reports ``recurring_billing=False`` and
    ``gift_pack=False`` even though its raw billing name is non-empty.
    """

    plan_code: str
    features: FeatureFlags
    session_count_limit: int
    recurring_billing: bool
    gift_pack: bool
    price: int
    billing_plan: str | None = None

    @classmethod
    def from_plan(cls, plan: PlanDefinition) -> "EntitlementSet":
        billing_plan = plan.billing.plan_name if isinstance(plan.billing, SimpleBilling) else None
        return cls(
            plan_code=plan.code,
            features=plan.features,
            session_count_limit=plan.session_count_limit,
            recurring_billing=plan.recurring_billing,
            gift_pack=plan.is_gift_pack,
            price=plan.price,
            billing_plan=billing_plan,
        )


class PlanCatalog:
    """Read-only mapping of plan code to :class:`PlanDefinition`."""

    def __init__(self, plans: Mapping[str, PlanDefinition]) -> None:
        for code, plan in plans.items():
            if not PLAN_CODE_PATTERN.match(code):
                raise ConfigurationError(f"Invalid plan code {code!r}")
            if plan.code != code:
                raise ConfigurationError(f"Plan {plan.code!r} registered under {code!r}")
            if plan.price < 0:
                raise ConfigurationError(f"Plan {code!r} has a negative price")
            if plan.session_count_limit < UNLIMITED_SESSIONS:
                raise ConfigurationError(f"Plan {code!r} has an invalid session limit")
        self._plans: Mapping[str, PlanDefinition] = MappingProxyType(dict(plans))

    def __contains__(self, code: object) -> bool:
        return code in self._plans

    def __iter__(self) -> Iterator[str]:
        return iter(self._plans)

    def __len__(self) -> int:
        return len(self._plans)

    def get(self, code: str) -> PlanDefinition:
        try:
            return self._plans[code]
        except (KeyError, TypeError):
            raise PlanNotFound(str(code)) from None


class PlanResolver:
    """Resolve plan codes and storefront purchases to entitlements."""

    def __init__(self, catalog: PlanCatalog, storefront_products: Mapping[str, str]) -> None:
        self.catalog = catalog
        self._storefront: Mapping[str, str] = MappingProxyType(dict(storefront_products))

    def resolve_entitlements(self, plan_code: str) -> EntitlementSet:
        return EntitlementSet.from_plan(self.catalog.get(plan_code))

    def expand_gift_pack(self, plan_code: str) -> tuple[GiftPackItem, ...]:
        billing = self.catalog.get(plan_code).billing
        if isinstance(billing, GiftPackBilling):
            return billing.items
        return ()

    def resolve_storefront_purchase(self, product_id: str) -> str:
        plan_code = self._storefront.get(product_id) if isinstance(product_id, str) else None
        if plan_code is None:
            raise StorefrontProductNotFound(str(product_id))
        if plan_code not in self.catalog:
            logger.error("storefront_plan_missing", product_id=product_id, plan_code=plan_code)
            raise StorefrontProductNotFound(product_id)
        return plan_code


__all__ = [
    "BillingSpec",
    "EntitlementSet",
    "FeatureFlags",
    "GiftPackBilling",
    "GiftPackItem",
    "NoBilling",
    "PlanCatalog",
    "PlanDefinition",
    "PlanResolver",
    "SimpleBilling",
    "UNLIMITED_SESSIONS",
    "parse_billing",
]
