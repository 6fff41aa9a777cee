"""
carmart/features/quota/enforcer.py

Quota decisions for quota-limited resources (car listings, gallery images).

Pure functions over an already-resolved CapabilitySet and a live count; the
caller fetches the count and must treat can_add_more=False as a hard refusal.
"""

import logging
from typing import Optional

from carmart.core.errors import GalleryLimitExceededError, ListingLimitReachedError, ValidationError
from carmart.models.capability import CapabilitySet, Tier, UNLIMITED
from carmart.models.entitlement import QuotaDecision


logger = logging.getLogger(__name__)

# A listing may always carry a single cover image, even without gallery access
COVER_IMAGE_ALLOWANCE = 1


def check_quota(capabilities: CapabilitySet, current_count: int, tier: Tier) -> QuotaDecision:
    """
    Decide whether one more listing may be created.

    Args:
        capabilities: Effective capabilities (after overrides)
        current_count: Listings the user already owns, all statuses
        tier: Effective tier, echoed in the decision

    Returns:
        QuotaDecision

    Raises:
        ValidationError: current_count is negative or not an integer
    """
    if isinstance(current_count, bool) or not isinstance(current_count, int) or current_count < 0:
        raise ValidationError(f"current_count must be a non-negative integer, got {current_count!r}")

    limit = capabilities.listing_limit
    if limit == UNLIMITED:
        return QuotaDecision(
            current_count=current_count,
            limit=UNLIMITED,
            can_add_more=True,
            tier=tier,
            remaining=UNLIMITED,
        )

    return QuotaDecision(
        current_count=current_count,
        limit=limit,
        can_add_more=current_count < limit,
        tier=tier,
        remaining=max(0, limit - current_count),
    )


def enforce_quota(decision: QuotaDecision, *, user_id: Optional[str] = None) -> QuotaDecision:
    """Return the decision when allowed, raise ListingLimitReachedError otherwise."""
    if decision.can_add_more:
        return decision

    logger.warning(
        "[quota] BLOCK",
        extra={
            "user_id": user_id,
            "tier": decision.tier.value,
            "limit": decision.limit,
            "current_count": decision.current_count,
        },
    )
    raise ListingLimitReachedError(
        limit=decision.limit,
        current=decision.current_count,
        tier=decision.tier.value,
    )


def check_gallery(capabilities: CapabilitySet, image_count: int) -> int:
    """
    Validate the number of images attached to a listing or showroom.

    Returns:
        The permitted maximum for this capability set.

    Raises:
        ValidationError: image_count negative
        GalleryLimitExceededError: more images than the tier allows
    """
    if image_count < 0:
        raise ValidationError(f"image_count must be non-negative, got {image_count!r}")

    allowed = COVER_IMAGE_ALLOWANCE
    if capabilities.can_upload_gallery_images:
        allowed = max(COVER_IMAGE_ALLOWANCE, capabilities.max_gallery_images)

    if image_count > allowed:
        raise GalleryLimitExceededError(
            f"Your plan allows at most {allowed} image(s) per gallery, got {image_count}."
        )
    return allowed
