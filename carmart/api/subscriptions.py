"""
Self-service subscription routes.

- GET  /api/subscriptions/my: caller's current subscription row
- POST /api/subscriptions/cancel: revert caller to FREE
"""
from fastapi import APIRouter, Depends

from carmart.core.auth import get_current_user_id
from carmart.core.errors import NotFoundError
from carmart.features.subscriptions.service import cancel_subscription, get_current_subscription


router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])


@router.get("/my")
def get_my_subscription(user_id: str = Depends(get_current_user_id)):
    subscription = get_current_subscription(user_id)
    if not subscription:
        raise NotFoundError("No subscription found")
    return subscription.model_dump(mode="json")


@router.post("/cancel")
def cancel_my_subscription(user_id: str = Depends(get_current_user_id)):
    return cancel_subscription(user_id).model_dump(mode="json")
