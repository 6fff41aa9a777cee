"""
Admin subscription management.

All routes require X-Admin-Key.
- GET  /api/admin/users/{user_id}/subscription: row, or null when the user has none
- PUT  /api/admin/users/{user_id}/subscription: create/update tier, status, dates
- PUT  /api/admin/users/{user_id}/subscription/listing-limit: set/clear override
- POST /api/admin/users/{user_id}/subscription/cancel: revert to FREE
"""
import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from carmart.core.auth import require_admin
from carmart.core.errors import NotFoundError
from carmart.features.subscriptions.service import (
    cancel_subscription,
    get_current_subscription,
    set_listing_limit,
    upsert_subscription,
)
from carmart.features.users.service import get_user


logger = logging.getLogger("carmart")

router = APIRouter(prefix="/api/admin/users", tags=["admin-subscriptions"])


class SubscriptionUpdateRequest(BaseModel):
    """Fields omitted from the body are left unchanged; end_date=null means open-ended."""
    tier: Optional[str] = None
    status: Optional[str] = None
    active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ListingLimitRequest(BaseModel):
    listing_limit: Any = None  # positive int, "unlimited", or null to clear


def _require_user(user_id: str) -> None:
    if not get_user(user_id):
        raise NotFoundError("User not found")


@router.get("/{user_id}/subscription")
def admin_get_subscription(user_id: str, actor: str = Depends(require_admin)):
    _require_user(user_id)
    subscription = get_current_subscription(user_id)
    return subscription.model_dump(mode="json") if subscription else None


@router.put("/{user_id}/subscription")
def admin_update_subscription(
    user_id: str,
    body: SubscriptionUpdateRequest,
    actor: str = Depends(require_admin),
):
    _require_user(user_id)
    existed = get_current_subscription(user_id) is not None

    fields = {}
    if body.tier is not None:
        fields["tier"] = body.tier
    if body.status is not None:
        fields["status"] = body.status
    elif body.active is not None:
        fields["status"] = "active" if body.active else "inactive"
    if body.start_date is not None:
        fields["start_date"] = body.start_date
    if "end_date" in body.model_fields_set:
        fields["end_date"] = body.end_date

    subscription = upsert_subscription(user_id, **fields)
    logger.info(
        "admin.subscription.updated",
        extra={"actor": actor, "user_id": user_id, "tier": subscription.tier, "status": subscription.status},
    )
    return JSONResponse(
        status_code=200 if existed else 201,
        content=subscription.model_dump(mode="json"),
    )


@router.put("/{user_id}/subscription/listing-limit")
def admin_set_listing_limit(
    user_id: str,
    body: ListingLimitRequest,
    actor: str = Depends(require_admin),
):
    _require_user(user_id)
    subscription = set_listing_limit(user_id, body.listing_limit)
    logger.info(
        "admin.subscription.listing_limit",
        extra={"actor": actor, "user_id": user_id, "listing_limit": subscription.listing_limit},
    )
    return subscription.model_dump(mode="json")


@router.post("/{user_id}/subscription/cancel")
def admin_cancel_subscription(user_id: str, actor: str = Depends(require_admin)):
    _require_user(user_id)
    subscription = cancel_subscription(user_id)
    logger.info("admin.subscription.cancelled", extra={"actor": actor, "user_id": user_id})
    return subscription.model_dump(mode="json")
