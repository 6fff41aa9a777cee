"""
Entitlement API routes.

- GET /api/subscription-tiers: public tier catalog
- GET /v1/entitlements/me: resolved tier + capability flags (drives dashboard controls)
- GET /v1/entitlements/me/listing-quota: "can add more" decision for the listing form
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from carmart.api.dependencies import get_entitlement_gateway, get_tier_catalog
from carmart.core.auth import get_current_user_id
from carmart.features.entitlements.gateway import EntitlementGateway
from carmart.features.tiers.catalog import TierCatalog
from carmart.models.capability import Tier


router = APIRouter(tags=["entitlements"])


@router.get("/api/subscription-tiers")
def list_subscription_tiers(catalog: TierCatalog = Depends(get_tier_catalog)) -> List[Dict[str, Any]]:
    return catalog.describe()


@router.get("/v1/entitlements/me")
def get_my_entitlements(
    user_id: str = Depends(get_current_user_id),
    gateway: EntitlementGateway = Depends(get_entitlement_gateway),
):
    entitlements = gateway.get_entitlements(user_id)
    return {
        "user_id": user_id,
        "tier": entitlements.tier.value,
        "capabilities": entitlements.capabilities.model_dump(mode="json"),
        "override_applied": entitlements.override_applied,
        "analytics_enabled": entitlements.tier != Tier.FREE,
    }


@router.get("/v1/entitlements/me/listing-quota")
def get_my_listing_quota(
    user_id: str = Depends(get_current_user_id),
    gateway: EntitlementGateway = Depends(get_entitlement_gateway),
):
    return gateway.can_create_listing(user_id).model_dump(mode="json")
