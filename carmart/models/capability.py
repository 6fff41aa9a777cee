"""
carmart/models/capability.py

Tier identifiers and the capability set a tier (plus overrides) grants.

Listing limits are either a positive integer or the string sentinel
"unlimited"; no unbounded numeric stand-in is ever used, so comparisons stay
total and JSON stays unambiguous.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt

from carmart.core.errors import UnknownTierError


UNLIMITED = "unlimited"

# Strict int: booleans, numeric strings and floats are rejected, not coerced
ListingLimit = Union[Literal["unlimited"], Annotated[int, Field(strict=True, gt=0)]]


class Tier(str, Enum):
    """Subscription plan level."""
    FREE = "free"
    PREMIUM = "premium"
    VIP = "vip"

    @classmethod
    def parse(cls, raw: object) -> "Tier":
        """Map a stored tier string onto the enum (case-insensitive).

        Raises:
            UnknownTierError: raw is not one of free/premium/vip
        """
        if isinstance(raw, Tier):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                pass
        raise UnknownTierError(raw)


class CapabilitySet(BaseModel):
    """
    Feature flags and listing quota granted to a user.

    Fields:
    - can_upload_gallery_images / max_gallery_images: showroom and listing gallery
    - can_add_website, can_set_opening_hours, can_set_social_media: profile fields
    - can_set_featured_status: may mark listings as featured
    - has_priority_listings: listings sort ahead in search
    - listing_limit: positive int or "unlimited"
    """
    model_config = ConfigDict(frozen=True)

    can_upload_gallery_images: bool
    max_gallery_images: NonNegativeInt
    can_add_website: bool
    can_set_opening_hours: bool
    can_set_social_media: bool
    can_set_featured_status: bool
    has_priority_listings: bool
    listing_limit: ListingLimit

    def with_listing_limit(self, listing_limit: ListingLimit) -> "CapabilitySet":
        return self.model_copy(update={"listing_limit": listing_limit})

    @property
    def is_unlimited(self) -> bool:
        return self.listing_limit == UNLIMITED
