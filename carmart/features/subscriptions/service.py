"""
carmart/features/subscriptions/service.py

Subscription store.

Handles:
- Current subscription lookup (one row per user)
- Implicit FREE subscription on registration
- Admin tier/status/date changes and listing-limit overrides
- Cancellation (reverts the row to FREE; rows are never deleted)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, insert, update

from carmart.core.database import get_db_session, subscriptions
from carmart.core.errors import NotFoundError, UnknownTierError, ValidationError
from carmart.models.capability import ListingLimit, Tier, UNLIMITED
from carmart.models.subscription import Subscription


logger = logging.getLogger(__name__)

# Storage encoding for an unlimited listing override
UNLIMITED_DB_VALUE = -1

_listing_limit_adapter = TypeAdapter(Optional[ListingLimit])

_UNSET: Any = object()


def _now(now: Optional[datetime] = None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def encode_listing_limit(value: Optional[ListingLimit]) -> Optional[int]:
    if value is None:
        return None
    if value == UNLIMITED:
        return UNLIMITED_DB_VALUE
    return int(value)


def decode_listing_limit(raw: Optional[int], *, subscription_id: Optional[int] = None) -> Optional[ListingLimit]:
    if raw is None:
        return None
    if raw == UNLIMITED_DB_VALUE:
        return UNLIMITED
    if raw > 0:
        return raw
    # 0 and other negatives are not valid overrides; use the tier default
    logger.warning(
        "[subscriptions] ignoring invalid stored listing_limit",
        extra={"subscription_id": subscription_id, "listing_limit": raw},
    )
    return None


def parse_listing_limit(value: Any) -> Optional[ListingLimit]:
    """Validate an override coming from an API payload."""
    try:
        return _listing_limit_adapter.validate_python(value)
    except PydanticValidationError:
        raise ValidationError(
            f"listing_limit must be a positive integer, \"{UNLIMITED}\" or null, got {value!r}"
        )


def _parse_tier(raw: Any) -> Tier:
    try:
        return Tier.parse(raw)
    except UnknownTierError:
        raise ValidationError(f"Invalid subscription tier: {raw!r}")


def _row_to_subscription(row) -> Subscription:
    return Subscription(
        id=row.id,
        user_id=row.user_id,
        tier=row.tier,
        status=row.status,
        listing_limit=decode_listing_limit(row.listing_limit, subscription_id=row.id),
        start_date=row.start_date,
        end_date=row.end_date,
        stripe_customer_id=row.stripe_customer_id,
        stripe_subscription_id=row.stripe_subscription_id,
    )


def get_current_subscription(user_id: str) -> Optional[Subscription]:
    """Get the user's current subscription, or None if they never had one."""
    with get_db_session() as session:
        row = session.execute(
            select(subscriptions).where(subscriptions.c.user_id == user_id)
        ).first()

        if not row:
            return None

        return _row_to_subscription(row)


def create_default_subscription(user_id: str, now: Optional[datetime] = None) -> Subscription:
    """
    Give a user the implicit FREE subscription (idempotent).

    Returns the existing row unchanged if the user already has one.
    """
    existing = get_current_subscription(user_id)
    if existing:
        return existing

    with get_db_session() as session:
        session.execute(
            insert(subscriptions).values(
                user_id=user_id,
                tier=Tier.FREE.value,
                status="active",
                listing_limit=None,
                start_date=_now(now),
                end_date=None,
            )
        )

    return get_current_subscription(user_id)


def upsert_subscription(
    user_id: str,
    *,
    tier: Any = _UNSET,
    status: Any = _UNSET,
    start_date: Any = _UNSET,
    end_date: Any = _UNSET,
    stripe_customer_id: Any = _UNSET,
    stripe_subscription_id: Any = _UNSET,
    now: Optional[datetime] = None,
) -> Subscription:
    """
    Create or update a user's subscription (admin action or completed upgrade).

    Only the fields passed are changed. end_date=None makes the plan open-ended.

    Raises:
        ValidationError: unknown tier, blank status, or end_date before start_date
    """
    values: Dict[str, Any] = {}
    if tier is not _UNSET:
        values["tier"] = _parse_tier(tier).value
    if status is not _UNSET:
        if not status or not str(status).strip():
            raise ValidationError("status must not be blank")
        values["status"] = str(status).strip()
    if start_date is not _UNSET and start_date is not None:
        values["start_date"] = _now(start_date)
    if end_date is not _UNSET:
        values["end_date"] = _now(end_date) if end_date is not None else None
    if stripe_customer_id is not _UNSET:
        values["stripe_customer_id"] = stripe_customer_id
    if stripe_subscription_id is not _UNSET:
        values["stripe_subscription_id"] = stripe_subscription_id

    existing = get_current_subscription(user_id)

    effective_start = values.get("start_date") or (existing.start_date if existing else _now(now))
    effective_end = values["end_date"] if "end_date" in values else (existing.end_date if existing else None)
    if effective_end is not None and _now(effective_end) < _now(effective_start):
        raise ValidationError("end_date must not be before start_date")

    with get_db_session() as session:
        if existing:
            if values:
                session.execute(
                    update(subscriptions)
                    .where(subscriptions.c.user_id == user_id)
                    .values(**values)
                )
        else:
            session.execute(
                insert(subscriptions).values(
                    user_id=user_id,
                    tier=values.get("tier", Tier.FREE.value),
                    status=values.get("status", "active"),
                    listing_limit=None,
                    start_date=effective_start,
                    end_date=effective_end,
                    stripe_customer_id=values.get("stripe_customer_id"),
                    stripe_subscription_id=values.get("stripe_subscription_id"),
                )
            )

    logger.info(
        "[subscriptions] updated" if existing else "[subscriptions] created",
        extra={"user_id": user_id, "fields": sorted(values)},
    )
    return get_current_subscription(user_id)


def set_listing_limit(user_id: str, listing_limit: Any, now: Optional[datetime] = None) -> Subscription:
    """
    Set (or clear, with None) the admin listing-limit override.

    Users without a subscription row get the implicit FREE row first.
    """
    parsed = parse_listing_limit(listing_limit)
    create_default_subscription(user_id, now=now)

    with get_db_session() as session:
        session.execute(
            update(subscriptions)
            .where(subscriptions.c.user_id == user_id)
            .values(listing_limit=encode_listing_limit(parsed))
        )

    logger.info(
        "[subscriptions] listing_limit override set",
        extra={"user_id": user_id, "listing_limit": parsed},
    )
    return get_current_subscription(user_id)


def cancel_subscription(user_id: str, now: Optional[datetime] = None) -> Subscription:
    """
    Revert a subscription to FREE.

    Paid benefits and any listing override end immediately. The billing
    customer reference is kept; the billing subscription reference is cleared.

    Raises:
        NotFoundError: user has no subscription
    """
    existing = get_current_subscription(user_id)
    if not existing:
        raise NotFoundError("Subscription not found")

    with get_db_session() as session:
        session.execute(
            update(subscriptions)
            .where(subscriptions.c.user_id == user_id)
            .values(
                tier=Tier.FREE.value,
                status="active",
                listing_limit=None,
                start_date=_now(now),
                end_date=None,
                stripe_subscription_id=None,
            )
        )

    logger.info(
        "[subscriptions] cancelled",
        extra={"user_id": user_id, "previous_tier": existing.tier},
    )
    return get_current_subscription(user_id)


class SqlSubscriptionStore:
    """Subscription store backed by the subscriptions table."""

    def get_current_subscription(self, user_id: str) -> Optional[Subscription]:
        return get_current_subscription(user_id)
