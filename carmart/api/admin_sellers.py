"""
Admin seller onboarding.

- POST /api/admin/sellers: register a seller account with its FREE subscription (X-Admin-Key)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from carmart.core.auth import require_admin
from carmart.features.subscriptions.service import get_current_subscription
from carmart.features.users.service import register_user
from carmart.models.user import UserRole


logger = logging.getLogger("carmart")

router = APIRouter(prefix="/api/admin", tags=["admin-sellers"])


class CreateSellerRequest(BaseModel):
    user_id: str
    username: str
    display_name: Optional[str] = None


@router.post("/sellers")
def admin_create_seller(body: CreateSellerRequest, actor: str = Depends(require_admin)):
    user = register_user(
        body.user_id.strip(),
        body.username,
        role=UserRole.SELLER.value,
        display_name=body.display_name,
    )
    subscription = get_current_subscription(user.user_id)
    logger.info("admin.seller.created", extra={"actor": actor, "user_id": user.user_id})
    return JSONResponse(
        status_code=201,
        content={
            "user": user.model_dump(mode="json"),
            "subscription": subscription.model_dump(mode="json") if subscription else None,
        },
    )
