"""In-memory stores for gateway tests."""

from datetime import datetime, timezone
from typing import Dict, Optional

from carmart.models.subscription import Subscription


def make_subscription(user_id: str = "seller-1", tier: str = "free", status: str = "active", **overrides) -> Subscription:
    fields = dict(
        id=1,
        user_id=user_id,
        tier=tier,
        status=status,
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return Subscription(**fields)


class FakeSubscriptionStore:
    def __init__(self, rows: Optional[Dict[str, Subscription]] = None):
        self.rows = dict(rows or {})
        self.calls = 0

    def get_current_subscription(self, user_id: str) -> Optional[Subscription]:
        self.calls += 1
        return self.rows.get(user_id)


class FakeListingStore:
    def __init__(self, counts: Optional[Dict[str, int]] = None):
        self.counts = dict(counts or {})
        self.calls = 0

    def count_listings_for_user(self, user_id: str) -> int:
        self.calls += 1
        return self.counts.get(user_id, 0)


class UnavailableStore:
    """Store whose backing database is down."""

    def get_current_subscription(self, user_id: str):
        raise ConnectionError("subscription store unavailable")

    def count_listings_for_user(self, user_id: str) -> int:
        raise ConnectionError("listing store unavailable")


class ChangingSubscriptionStore:
    """Returns the queued subscriptions in order, one per read (last one repeats)."""

    def __init__(self, *subscriptions: Optional[Subscription]):
        self.queue = list(subscriptions)
        self.calls = 0

    def get_current_subscription(self, user_id: str) -> Optional[Subscription]:
        self.calls += 1
        if len(self.queue) > 1:
            return self.queue.pop(0)
        return self.queue[0]
