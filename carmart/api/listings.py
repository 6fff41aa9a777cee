"""
Listing routes.

- POST /api/cars: create a listing (sellers only). Refused with 403
  {"error": "LISTING_LIMIT_REACHED", "limit", "current"} once the quota is used.
- GET  /api/cars/mine: caller's listings
"""
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from carmart.api.dependencies import get_entitlement_gateway
from carmart.core.auth import get_current_user_id
from carmart.features.entitlements.gateway import EntitlementGateway
from carmart.features.listings.service import create_listing, get_listings_for_user


router = APIRouter(prefix="/api/cars", tags=["listings"])


class CreateCarRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    make: str = Field(min_length=1, max_length=100)
    model: str = Field(min_length=1, max_length=100)
    year: int = Field(ge=1886, le=2100)
    price: int = Field(ge=0)
    mileage: int = Field(default=0, ge=0)
    images: List[str] = Field(default_factory=list)
    is_featured: bool = False


@router.post("")
def create_car(
    body: CreateCarRequest,
    user_id: str = Depends(get_current_user_id),
    gateway: EntitlementGateway = Depends(get_entitlement_gateway),
):
    listing = create_listing(gateway, user_id, body.model_dump())
    return JSONResponse(status_code=201, content=listing.model_dump(mode="json"))


@router.get("/mine")
def list_my_cars(user_id: str = Depends(get_current_user_id)):
    return [listing.model_dump(mode="json") for listing in get_listings_for_user(user_id)]
