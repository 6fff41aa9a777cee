"""
Auth utilities for the CarMart API.

Session handling lives in the web tier; requests reach this service with the
authenticated identity in X-User-Id. Admin endpoints additionally require the
shared X-Admin-Key.
"""
import hmac
import logging
import os
from typing import Optional

from fastapi import Header, Request

from carmart.core.config import settings
from carmart.core.errors import PermissionError, UnauthorizedError

logger = logging.getLogger(__name__)


async def get_current_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Authenticated user ID"),
) -> str:
    """
    Extract the authenticated user_id for the request.

    Raises:
        UnauthorizedError (401): header missing or blank
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise UnauthorizedError("Missing X-User-Id header")
    request.state.user_id = user_id
    return user_id


def get_admin_api_key() -> Optional[str]:
    """Get admin API key.
    Prefer ADMIN_API_KEY env var; fall back to settings.ADMIN_KEY.
    """
    env_key = os.getenv("ADMIN_API_KEY")
    if env_key:
        return env_key
    return settings.ADMIN_KEY


async def require_admin(
    request: Request,
    x_admin_key: Optional[str] = Header(None, description="Shared admin key"),
) -> str:
    """FastAPI dependency guarding admin endpoints.

    Returns an actor id of the form "admin_key" for audit logs.
    """
    expected = get_admin_api_key()
    if not expected:
        logger.warning("[admin_auth] admin key not configured, rejecting admin request")
        raise PermissionError("Admin access is not configured")

    provided = (x_admin_key or "").strip()
    if not provided or not hmac.compare_digest(provided, expected):
        raise PermissionError("Invalid admin credentials")

    request.state.admin_actor = "admin_key"
    return "admin_key"
