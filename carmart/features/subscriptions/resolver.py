"""
carmart/features/subscriptions/resolver.py

Turns a raw subscription row (or its absence) into effective entitlements.

Rules, applied in order:
1. No subscription -> FREE defaults.
2. Status not "active" (case-insensitive) -> FREE defaults, no grace period.
3. Otherwise the stored tier's defaults, with listing_limit replaced by the
   stored override when one is set.

end_date is deliberately not compared with the current time: status is the only
activity signal. Expiry enforcement is pending a product decision.
"""

import logging
from typing import Optional

from carmart.core.errors import UnknownTierError
from carmart.features.tiers.catalog import TierCatalog
from carmart.models.capability import Tier
from carmart.models.entitlement import ResolvedEntitlements
from carmart.models.subscription import Subscription


logger = logging.getLogger(__name__)


class SubscriptionResolver:
    def __init__(self, catalog: TierCatalog):
        self.catalog = catalog

    def _free(self, reason: str) -> ResolvedEntitlements:
        return ResolvedEntitlements(
            tier=Tier.FREE,
            capabilities=self.catalog.capabilities_for(Tier.FREE),
            override_applied=False,
            fallback_reason=reason,
        )

    def resolve_strict(self, subscription: Optional[Subscription]) -> ResolvedEntitlements:
        """Resolve entitlements, letting UnknownTierError propagate."""
        if subscription is None:
            return self._free("no_subscription")

        if not subscription.is_active:
            return self._free("inactive_status")

        tier = Tier.parse(subscription.tier)
        capabilities = self.catalog.capabilities_for(tier)
        override_applied = subscription.listing_limit is not None
        if override_applied:
            capabilities = capabilities.with_listing_limit(subscription.listing_limit)

        return ResolvedEntitlements(
            tier=tier,
            capabilities=capabilities,
            override_applied=override_applied,
        )

    def resolve(self, subscription: Optional[Subscription]) -> ResolvedEntitlements:
        """
        Resolve entitlements for request paths.

        An unrecognised stored tier never fails the caller: it is logged and
        the user gets plain FREE capabilities until the row is repaired.
        """
        try:
            return self.resolve_strict(subscription)
        except UnknownTierError as exc:
            logger.warning(
                "[entitlements] unknown tier, falling back to free",
                extra={
                    "user_id": subscription.user_id if subscription else None,
                    "subscription_id": subscription.id if subscription else None,
                    "raw_tier": repr(exc.raw_tier),
                    "error_code": exc.code,
                },
            )
            return self._free("unknown_tier")
