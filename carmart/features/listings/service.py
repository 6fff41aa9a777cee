"""
carmart/features/listings/service.py

Listing store and quota-gated listing creation.

Handles:
- Counting a seller's listings (all statuses count against quota)
- Creating a listing after quota, gallery and featured-status checks
- Per-seller listing statistics for the analytics surface
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, insert, func

from carmart.core.database import get_db_session, car_listings
from carmart.core.errors import PermissionError
from carmart.features.entitlements.gateway import EntitlementGateway
from carmart.features.quota.enforcer import check_gallery
from carmart.features.users.service import get_user
from carmart.models.listing import CarListing
from carmart.models.user import UserRole


logger = logging.getLogger(__name__)


def _row_to_listing(row) -> CarListing:
    return CarListing(
        id=row.id,
        seller_id=row.seller_id,
        title=row.title,
        make=row.make,
        model=row.model,
        year=row.year,
        price=row.price,
        mileage=row.mileage,
        status=row.status,
        is_featured=row.is_featured,
        images=row.images or [],
        created_at=row.created_at,
    )


def count_listings_for_user(user_id: str) -> int:
    """Count every listing the seller owns, sold or not."""
    with get_db_session() as session:
        count = session.execute(
            select(func.count()).select_from(car_listings).where(car_listings.c.seller_id == user_id)
        ).scalar_one()
        return int(count)


def get_listings_for_user(user_id: str) -> List[CarListing]:
    with get_db_session() as session:
        rows = session.execute(
            select(car_listings)
            .where(car_listings.c.seller_id == user_id)
            .order_by(car_listings.c.created_at, car_listings.c.id)
        ).all()
        return [_row_to_listing(row) for row in rows]


def insert_listing(
    seller_id: str,
    *,
    title: str,
    make: str,
    model: str,
    year: int,
    price: int,
    mileage: int = 0,
    status: str = "available",
    is_featured: bool = False,
    images: Optional[List[str]] = None,
    now: Optional[datetime] = None,
) -> CarListing:
    """Insert a listing row without any entitlement checks."""
    created_at = now or datetime.now(timezone.utc)
    with get_db_session() as session:
        result = session.execute(
            insert(car_listings).values(
                seller_id=seller_id,
                title=title,
                make=make,
                model=model,
                year=year,
                price=price,
                mileage=mileage,
                status=status,
                is_featured=is_featured,
                images=list(images or []),
                created_at=created_at,
            )
        )
        listing_id = result.inserted_primary_key[0]

    return CarListing(
        id=listing_id,
        seller_id=seller_id,
        title=title,
        make=make,
        model=model,
        year=year,
        price=price,
        mileage=mileage,
        status=status,
        is_featured=is_featured,
        images=list(images or []),
        created_at=created_at,
    )


def create_listing(gateway: EntitlementGateway, seller_id: str, data: Dict[str, Any]) -> CarListing:
    """
    Create a listing for a seller, enforcing their subscription.

    Order of checks: seller role, listing quota, gallery size. A featured flag
    from a tier without featured status is dropped rather than rejected.

    Raises:
        PermissionError: caller is not a registered seller
        ListingLimitReachedError: quota exhausted
        GalleryLimitExceededError: too many images for the tier
    """
    user = get_user(seller_id)
    if not user or user.role != UserRole.SELLER:
        raise PermissionError("Only sellers can create listings")

    entitlements, decision = gateway.listing_slot(seller_id)

    images = list(data.get("images") or [])
    check_gallery(entitlements.capabilities, len(images))

    is_featured = bool(data.get("is_featured", False))
    if is_featured and not entitlements.capabilities.can_set_featured_status:
        logger.info(
            "[listings] featured flag dropped for tier",
            extra={"user_id": seller_id, "tier": entitlements.tier.value},
        )
        is_featured = False

    listing = insert_listing(
        seller_id,
        title=data["title"],
        make=data["make"],
        model=data["model"],
        year=data["year"],
        price=data["price"],
        mileage=data.get("mileage", 0),
        is_featured=is_featured,
        images=images,
    )

    logger.info(
        "[listings] created",
        extra={
            "user_id": seller_id,
            "listing_id": listing.id,
            "tier": decision.tier.value,
            "current_count": decision.current_count + 1,
            "limit": decision.limit,
        },
    )
    return listing


def get_listing_stats(user_id: str) -> Dict[str, int]:
    """Listing counts by status for one seller."""
    with get_db_session() as session:
        rows = session.execute(
            select(car_listings.c.status, func.count())
            .where(car_listings.c.seller_id == user_id)
            .group_by(car_listings.c.status)
        ).all()
        featured = session.execute(
            select(func.count())
            .select_from(car_listings)
            .where(car_listings.c.seller_id == user_id)
            .where(car_listings.c.is_featured.is_(True))
        ).scalar_one()

    by_status = {status: int(count) for status, count in rows}
    return {
        "total": sum(by_status.values()),
        "available": by_status.get("available", 0),
        "sold": by_status.get("sold", 0),
        "featured": int(featured),
    }


class SqlListingStore:
    """Listing store backed by the car_listings table."""

    def count_listings_for_user(self, user_id: str) -> int:
        return count_listings_for_user(user_id)
