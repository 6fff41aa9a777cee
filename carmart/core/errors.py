"""Error normalization and handlers."""

import logging
import builtins
from typing import Optional, Union
from uuid import uuid4

from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from starlette.requests import Request

from carmart.core.logging import get_request_id


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400


class NotFoundError(AppError, ValueError):
    code = "not_found"
    status_code = 404


class PermissionError(AppError, builtins.PermissionError):
    code = "forbidden"
    status_code = 403


class UnauthorizedError(AppError):
    code = "unauthorized"
    status_code = 401


class ConflictError(AppError):
    code = "conflict"
    status_code = 409


class FeatureNotAvailableError(PermissionError):
    """Raised when the caller's tier does not include a feature."""
    code = "feature_not_available"
    status_code = 403


class UnknownTierError(AppError, ValueError):
    """A stored tier string is not one of the known tiers."""
    code = "unknown_tier"
    status_code = 500

    def __init__(self, raw_tier: object, **kwargs):
        super().__init__(f"Unknown subscription tier: {raw_tier!r}", **kwargs)
        self.raw_tier = raw_tier


class QuotaExceededError(AppError):
    code = "quota_exceeded"
    status_code = 403


class ListingLimitReachedError(QuotaExceededError):
    """Raised when a seller has no listing slots left on their tier."""
    code = "LISTING_LIMIT_REACHED"

    def __init__(self, *, limit: Union[int, str], current: int, tier: Optional[str] = None, **kwargs):
        super().__init__(
            f"Listing limit reached ({current}/{limit}). Upgrade your subscription to add more listings.",
            **kwargs,
        )
        self.limit = limit
        self.current = current
        self.tier = tier


class GalleryLimitExceededError(QuotaExceededError):
    code = "gallery_limit_exceeded"


def _extract_request_id(request: Request, fallback: Optional[str] = None) -> str:
    return (
        getattr(request.state, "request_id", None)
        or get_request_id()
        or fallback
        or str(uuid4())
    )


def _error_payload(code: str, message: str, request_id: str) -> dict:
    return {
        "error": {"code": code, "message": message, "request_id": request_id},
        "detail": message,
    }


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _extract_request_id(request)
    payload = _error_payload(exc.code, exc.message, rid)
    logger = logging.getLogger("carmart")
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        "app.error",
        extra={"request_id": rid, "error_code": exc.code, "error_message": exc.message, "status": exc.status_code},
    )
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def listing_limit_handler(request: Request, exc: ListingLimitReachedError):
    """Flat payload so clients can render an upgrade prompt from limit/current."""
    rid = exc.request_id or _extract_request_id(request)
    payload = {
        "error": exc.code,
        "limit": exc.limit,
        "current": exc.current,
        "tier": exc.tier,
        "message": exc.message,
        "request_id": rid,
    }
    logger = logging.getLogger("carmart")
    logger.info(
        "quota.refused",
        extra={"request_id": rid, "error_code": exc.code, "limit": exc.limit, "current": exc.current},
    )
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def http_error_handler(request: Request, exc: HTTPException):
    rid = _extract_request_id(request)
    code = "not_found" if exc.status_code == 404 else "http_error"
    message = exc.detail if exc.detail else "HTTP error"
    payload = _error_payload(code, message, rid)
    logger = logging.getLogger("carmart")
    logger.warning("http.error", extra={"request_id": rid, "error_code": code, "status": exc.status_code})
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _extract_request_id(request)
    logger = logging.getLogger("carmart")
    logger.error("unhandled.exception", exc_info=True, extra={"request_id": rid, "error_code": "internal_error"})
    payload = _error_payload("internal_error", "Unexpected error", rid)
    response = JSONResponse(status_code=500, content=payload)
    response.headers["x-request-id"] = rid
    return response
