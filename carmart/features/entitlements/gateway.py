"""
carmart/features/entitlements/gateway.py

Entitlement gateway: the single call surface API handlers use for tier and
quota decisions.

Composes the subscription store, the resolver, the listing store and the quota
enforcer. Holds no state of its own and caches nothing, so an upgrade takes
effect on the very next call. Store errors propagate unchanged: a failed read
must never turn into an "allow".

The quota check is advisory. Two concurrent creations at the boundary can both
pass; strict enforcement would need a re-check inside the listing insert.
"""

import logging
from typing import Optional, Protocol, Tuple

from carmart.features.quota.enforcer import check_quota, enforce_quota
from carmart.features.subscriptions.resolver import SubscriptionResolver
from carmart.models.capability import Tier
from carmart.models.entitlement import QuotaDecision, ResolvedEntitlements
from carmart.models.subscription import Subscription


logger = logging.getLogger(__name__)


class SubscriptionStore(Protocol):
    def get_current_subscription(self, user_id: str) -> Optional[Subscription]:
        ...


class ListingStore(Protocol):
    def count_listings_for_user(self, user_id: str) -> int:
        ...


class EntitlementGateway:
    def __init__(
        self,
        resolver: SubscriptionResolver,
        subscription_store: SubscriptionStore,
        listing_store: ListingStore,
    ):
        self.resolver = resolver
        self.subscription_store = subscription_store
        self.listing_store = listing_store

    def get_entitlements(self, user_id: str) -> ResolvedEntitlements:
        subscription = self.subscription_store.get_current_subscription(user_id)
        return self.resolver.resolve(subscription)

    def _listing_quota(self, user_id: str) -> Tuple[ResolvedEntitlements, QuotaDecision]:
        entitlements = self.get_entitlements(user_id)
        current = self.listing_store.count_listings_for_user(user_id)
        decision = check_quota(entitlements.capabilities, current, entitlements.tier)

        logger.info(
            "[quota] ALLOW" if decision.can_add_more else "[quota] WOULD_EXCEED",
            extra={
                "user_id": user_id,
                "tier": decision.tier.value,
                "limit": decision.limit,
                "current_count": decision.current_count,
                "override_applied": entitlements.override_applied,
            },
        )
        return entitlements, decision

    def can_create_listing(self, user_id: str) -> QuotaDecision:
        """Quota decision for one more listing (no side effects)."""
        return self._listing_quota(user_id)[1]

    def listing_slot(self, user_id: str) -> Tuple[ResolvedEntitlements, QuotaDecision]:
        """
        Entitlements and an allowed quota decision from a single subscription read.

        Listing creation checks gallery size and featured status against the
        same entitlements the quota was judged on.

        Raises:
            ListingLimitReachedError: quota exhausted
        """
        entitlements, decision = self._listing_quota(user_id)
        return entitlements, enforce_quota(decision, user_id=user_id)

    def require_listing_slot(self, user_id: str) -> QuotaDecision:
        """Like can_create_listing, but raises ListingLimitReachedError on refusal."""
        return self.listing_slot(user_id)[1]

    def can_view_analytics(self, user_id: str) -> bool:
        return self.get_entitlements(user_id).tier != Tier.FREE
