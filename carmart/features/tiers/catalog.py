"""
carmart/features/tiers/catalog.py

Tier catalog: default capabilities for each subscription tier.

The catalog is built once at startup (build_default_catalog) and handed to the
resolver; nothing reads it through a module global at request time, so tests
can inject alternate catalogs.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from carmart.core.errors import UnknownTierError
from carmart.models.capability import CapabilitySet, Tier


# Default tier configurations
DEFAULT_TIERS = {
    Tier.FREE: {
        "name": "Free",
        "capabilities": {
            "listing_limit": 3,
            "can_upload_gallery_images": False,
            "max_gallery_images": 0,
            "can_add_website": False,
            "can_set_opening_hours": False,
            "can_set_social_media": False,
            "can_set_featured_status": False,
            "has_priority_listings": False,
        },
    },
    Tier.PREMIUM: {
        "name": "Premium",
        "capabilities": {
            "listing_limit": 10,
            "can_upload_gallery_images": True,
            "max_gallery_images": 10,
            "can_add_website": True,
            "can_set_opening_hours": True,
            "can_set_social_media": True,
            "can_set_featured_status": False,
            "has_priority_listings": False,
        },
    },
    Tier.VIP: {
        "name": "VIP",
        "capabilities": {
            "listing_limit": 50,
            "can_upload_gallery_images": True,
            "max_gallery_images": 30,
            "can_add_website": True,
            "can_set_opening_hours": True,
            "can_set_social_media": True,
            "can_set_featured_status": True,
            "has_priority_listings": True,
        },
    },
}


class TierCatalog:
    """Immutable lookup from Tier to its default CapabilitySet."""

    __slots__ = ("_capabilities", "_names")

    def __init__(self, capabilities: Mapping[Tier, CapabilitySet], names: Optional[Mapping[Tier, str]] = None):
        missing = [tier.value for tier in Tier if tier not in capabilities]
        if missing:
            raise ValueError(f"Tier catalog is missing tiers: {', '.join(missing)}")
        unexpected = [key for key in capabilities if not isinstance(key, Tier)]
        if unexpected:
            raise ValueError(f"Tier catalog keys must be Tier members, got {unexpected!r}")

        self._capabilities = MappingProxyType(dict(capabilities))
        self._names = MappingProxyType({tier: (names or {}).get(tier, tier.value.title()) for tier in Tier})

    def capabilities_for(self, tier: Tier) -> CapabilitySet:
        """
        Default capabilities for a tier.

        Raises:
            UnknownTierError: tier is not a Tier member
        """
        if not isinstance(tier, Tier):
            raise UnknownTierError(tier)
        return self._capabilities[tier]

    def name_for(self, tier: Tier) -> str:
        if not isinstance(tier, Tier):
            raise UnknownTierError(tier)
        return self._names[tier]

    def describe(self) -> List[Dict[str, Any]]:
        """Public tier list, cheapest first."""
        return [
            {
                "id": tier.value,
                "name": self._names[tier],
                **self._capabilities[tier].model_dump(mode="json"),
            }
            for tier in Tier
        ]

    def __setattr__(self, name, value):
        if hasattr(self, "_names"):
            raise AttributeError("TierCatalog is immutable")
        object.__setattr__(self, name, value)


def build_catalog(config: Mapping[Tier, Mapping[str, Any]]) -> TierCatalog:
    """Build a catalog from a DEFAULT_TIERS-shaped mapping."""
    return TierCatalog(
        {tier: CapabilitySet(**entry["capabilities"]) for tier, entry in config.items()},
        names={tier: entry.get("name", tier.value.title()) for tier, entry in config.items()},
    )


def build_default_catalog() -> TierCatalog:
    return build_catalog(DEFAULT_TIERS)
