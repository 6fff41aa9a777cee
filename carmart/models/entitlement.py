"""
carmart/models/entitlement.py

Resolved entitlements and quota decisions (computed per request, never stored).
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, NonNegativeInt

from carmart.models.capability import CapabilitySet, ListingLimit, Tier


FallbackReason = Literal["no_subscription", "inactive_status", "unknown_tier"]


class ResolvedEntitlements(BaseModel):
    """Effective tier and capabilities for a user."""
    model_config = ConfigDict(frozen=True)

    tier: Tier
    capabilities: CapabilitySet
    override_applied: bool = False
    fallback_reason: Optional[FallbackReason] = None


class QuotaDecision(BaseModel):
    """
    Outcome of a listing quota check.

    limit and remaining are "unlimited" for uncapped tiers/overrides.
    """
    model_config = ConfigDict(frozen=True)

    current_count: NonNegativeInt
    limit: ListingLimit
    can_add_more: bool
    tier: Tier
    remaining: Union[Literal["unlimited"], NonNegativeInt]
