"""Plan entitlement and storefront endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from commconfig.api import schemas
from commconfig.api.dependencies import get_snapshot
from commconfig.core.plans import UNLIMITED_SESSIONS, EntitlementSet
from commconfig.core.snapshot import ConfigSnapshot

router = APIRouter(prefix="/api/v1", tags=["plans"])


def _entitlement_response(entitlements: EntitlementSet) -> schemas.EntitlementResponse:
    return schemas.EntitlementResponse(
        plan_code=entitlements.plan_code,
        features=schemas.FeatureFlagsResponse(**entitlements.features.as_dict()),
        session_count_limit=entitlements.session_count_limit,
        unlimited_sessions=entitlements.session_count_limit == UNLIMITED_SESSIONS,
        recurring_billing=entitlements.recurring_billing,
        gift_pack=entitlements.gift_pack,
        price=entitlements.price,
        billing_plan=entitlements.billing_plan,
    )


@router.get("/plans/{plan_code}", response_model=schemas.EntitlementResponse)
def get_plan_entitlements(
    plan_code: str,
    snapshot: ConfigSnapshot = Depends(get_snapshot),
) -> schemas.EntitlementResponse:
    return _entitlement_response(snapshot.resolver.resolve_entitlements(plan_code))


@router.get("/plans/{plan_code}/gift-pack", response_model=schemas.GiftPackResponse)
def get_gift_pack(
    plan_code: str,
    snapshot: ConfigSnapshot = Depends(get_snapshot),
) -> schemas.GiftPackResponse:
    items = snapshot.resolver.expand_gift_pack(plan_code)
    return schemas.GiftPackResponse(
        plan_code=plan_code,
        items=[
            schemas.GiftPackItemResponse(plan=item.plan, quantity=item.quantity, trial_months=item.trial_months)
            for item in items
        ],
    )


@router.get("/storefront/{product_id}", response_model=schemas.StorefrontPurchaseResponse)
def resolve_storefront_purchase(
    product_id: str,
    snapshot: ConfigSnapshot = Depends(get_snapshot),
) -> schemas.StorefrontPurchaseResponse:
    plan_code = snapshot.resolver.resolve_storefront_purchase(product_id)
    return schemas.StorefrontPurchaseResponse(
        product_id=product_id,
        plan_code=plan_code,
        entitlements=_entitlement_response(snapshot.resolver.resolve_entitlements(plan_code)),
    )
