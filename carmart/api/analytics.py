"""Seller analytics (paid tiers only; FREE sellers get no analytics at all)."""

from fastapi import APIRouter, Depends

from carmart.api.dependencies import get_entitlement_gateway
from carmart.core.auth import get_current_user_id
from carmart.core.errors import FeatureNotAvailableError
from carmart.features.entitlements.gateway import EntitlementGateway
from carmart.features.listings.service import get_listing_stats


router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/summary")
def analytics_summary(
    user_id: str = Depends(get_current_user_id),
    gateway: EntitlementGateway = Depends(get_entitlement_gateway),
):
    if not gateway.can_view_analytics(user_id):
        raise FeatureNotAvailableError("Analytics are available on Premium and VIP plans")

    decision = gateway.can_create_listing(user_id)
    return {
        "tier": decision.tier.value,
        "listings": get_listing_stats(user_id),
        "quota": decision.model_dump(mode="json"),
    }
