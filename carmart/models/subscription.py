"""
carmart/models/subscription.py

Subscription row as read from the subscription store.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from carmart.models.capability import ListingLimit


class Subscription(BaseModel):
    """
    A user's current plan.

    tier is kept as the raw stored string; the resolver parses it so that a
    corrupt value can be recovered from instead of failing at load time.

    Constraint: at most one current subscription per user.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    user_id: str
    tier: str
    status: str = "active"
    listing_limit: Optional[ListingLimit] = None  # None = tier default
    start_date: datetime
    end_date: Optional[datetime] = None  # None = open-ended
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return (self.status or "").lower() == "active"
