"""Pydantic schemas for API responses."""
from __future__ import annotations

from pydantic import BaseModel, Field


class FeatureFlagsResponse(BaseModel):
    disable_p2p: bool
    modest_branding: bool
    native_crypto: bool
    telehealth: bool
    video: bool
    voice: bool


class EntitlementResponse(BaseModel):
    plan_code: str
    features: FeatureFlagsResponse
    session_count_limit: int
    unlimited_sessions: bool
    recurring_billing: bool
    gift_pack: bool
    price: int
    billing_plan: str | None = None


class GiftPackItemResponse(BaseModel):
    plan: str
    quantity: int
    trial_months: int


class GiftPackResponse(BaseModel):
    plan_code: str
    items: list[GiftPackItemResponse] = Field(default_factory=list)


class StorefrontPurchaseResponse(BaseModel):
    product_id: str
    plan_code: str
    entitlements: EntitlementResponse


class RegionResponse(BaseModel):
    continent_code: str
    recognized: bool
    region: str
    fallback_chain: list[str]


class ContinentsResponse(BaseModel):
    continents: list[str]
    default_continent: str
    default_continent_code: str
    default_continent_code_backup: str
    default_region: str


class UptimeResponse(BaseModel):
    gateway_id: str
    ok: bool
    timestamp: int


class HealthyGatewaysResponse(BaseModel):
    continent_code: str
    gateways: list[str]


class RefreshResponse(BaseModel):
    checked: int
    healthy: int
