"""
Tests for the SQL-backed subscription store.
"""
from datetime import datetime, timezone

import pytest
from sqlalchemy import update

from carmart.core.database import get_db_session, subscriptions
from carmart.core.errors import ConflictError, NotFoundError, ValidationError
from carmart.features.subscriptions.service import (
    SqlSubscriptionStore,
    cancel_subscription,
    create_default_subscription,
    decode_listing_limit,
    encode_listing_limit,
    get_current_subscription,
    parse_listing_limit,
    set_listing_limit,
    upsert_subscription,
)
from carmart.features.users.service import get_user, register_user


def test_registration_creates_free_subscription(db):
    register_user("seller-1", "alice", role="seller")

    sub = get_current_subscription("seller-1")
    assert sub is not None
    assert sub.tier == "free"
    assert sub.status == "active"
    assert sub.listing_limit is None
    assert sub.end_date is None


def test_register_user_rejects_duplicates(db):
    register_user("seller-1", "alice", role="seller")
    with pytest.raises(ConflictError):
        register_user("seller-1", "alice2", role="seller")


@pytest.mark.parametrize("role", ["owner", "", "SELLERS"])
def test_register_user_rejects_unknown_roles(db, role):
    with pytest.raises(ValidationError):
        register_user("u-1", "bob", role=role)


def test_register_user_defaults_display_name(db):
    user = register_user("buyer-1", "  carol ", display_name="   ")
    assert user.username == "carol"
    assert get_user("buyer-1").display_name == "carol"


def test_missing_subscription_is_none(db):
    assert get_current_subscription("ghost") is None
    assert SqlSubscriptionStore().get_current_subscription("ghost") is None


def test_create_default_subscription_is_idempotent(db):
    register_user("seller-1", "alice", role="seller")
    upsert_subscription("seller-1", tier="vip")

    again = create_default_subscription("seller-1")
    assert again.tier == "vip"


def test_upsert_changes_only_given_fields(db):
    register_user("seller-1", "alice", role="seller")
    set_listing_limit("seller-1", 20)

    sub = upsert_subscription("seller-1", tier="PREMIUM")
    assert sub.tier == "premium"
    assert sub.status == "active"
    assert sub.listing_limit == 20


def test_upsert_creates_row_when_missing(db):
    register_user("seller-1", "alice", role="seller")
    with get_db_session() as session:
        session.execute(subscriptions.delete())

    sub = upsert_subscription("seller-1", tier="vip", status="active")
    assert sub.tier == "vip"


def test_upsert_rejects_unknown_tier(db):
    register_user("seller-1", "alice", role="seller")
    with pytest.raises(ValidationError):
        upsert_subscription("seller-1", tier="platinum")
    assert get_current_subscription("seller-1").tier == "free"


def test_upsert_rejects_blank_status(db):
    register_user("seller-1", "alice", role="seller")
    with pytest.raises(ValidationError):
        upsert_subscription("seller-1", status="  ")


def test_upsert_rejects_end_before_start(db):
    register_user("seller-1", "alice", role="seller")
    with pytest.raises(ValidationError):
        upsert_subscription(
            "seller-1",
            start_date=datetime(2024, 6, 1, tzinfo=timezone.utc),
            end_date=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )


def test_upsert_end_date_none_means_open_ended(db):
    register_user("seller-1", "alice", role="seller")
    upsert_subscription("seller-1", end_date=datetime(2030, 1, 1, tzinfo=timezone.utc))
    assert get_current_subscription("seller-1").end_date is not None

    sub = upsert_subscription("seller-1", end_date=None)
    assert sub.end_date is None


def test_unlimited_override_is_stored_as_sentinel(db):
    register_user("seller-1", "alice", role="seller")
    sub = set_listing_limit("seller-1", "unlimited")
    assert sub.listing_limit == "unlimited"

    with get_db_session() as session:
        raw = session.execute(
            subscriptions.select().where(subscriptions.c.user_id == "seller-1")
        ).first()
    assert raw.listing_limit == -1


def test_clearing_override(db):
    register_user("seller-1", "alice", role="seller")
    set_listing_limit("seller-1", 9)
    assert set_listing_limit("seller-1", None).listing_limit is None


@pytest.mark.parametrize("bad", [0, -3, "lots", 2.5, True, "7", 7.0])
def test_set_listing_limit_rejects_invalid_values(db, bad):
    register_user("seller-1", "alice", role="seller")
    with pytest.raises(ValidationError):
        set_listing_limit("seller-1", bad)


def test_set_listing_limit_creates_free_row_for_new_user(db):
    register_user("seller-1", "alice", role="seller")
    with get_db_session() as session:
        session.execute(subscriptions.delete())

    sub = set_listing_limit("seller-1", 4)
    assert sub.tier == "free"
    assert sub.listing_limit == 4


def test_corrupt_stored_override_is_ignored(db):
    register_user("seller-1", "alice", role="seller")
    with get_db_session() as session:
        session.execute(
            update(subscriptions).where(subscriptions.c.user_id == "seller-1").values(listing_limit=0)
        )
    assert get_current_subscription("seller-1").listing_limit is None


def test_corrupt_stored_tier_is_loaded_verbatim(db):
    register_user("seller-1", "alice", role="seller")
    with get_db_session() as session:
        session.execute(
            update(subscriptions).where(subscriptions.c.user_id == "seller-1").values(tier="platinum")
        )
    assert get_current_subscription("seller-1").tier == "platinum"


def test_cancel_reverts_to_free(db):
    register_user("seller-1", "alice", role="seller")
    upsert_subscription("seller-1", tier="vip", stripe_customer_id="cus_1", stripe_subscription_id="sub_1")
    set_listing_limit("seller-1", "unlimited")

    sub = cancel_subscription("seller-1")
    assert sub.tier == "free"
    assert sub.status == "active"
    assert sub.listing_limit is None
    assert sub.stripe_customer_id == "cus_1"
    assert sub.stripe_subscription_id is None


def test_cancel_without_subscription(db):
    with pytest.raises(NotFoundError):
        cancel_subscription("ghost")


class TestListingLimitEncoding:

    @pytest.mark.parametrize("value,stored", [(None, None), ("unlimited", -1), (12, 12)])
    def test_encode(self, value, stored):
        assert encode_listing_limit(value) == stored

    @pytest.mark.parametrize("stored,value", [(None, None), (-1, "unlimited"), (12, 12), (0, None), (-5, None)])
    def test_decode(self, stored, value):
        assert decode_listing_limit(stored) == value

    def test_parse_accepts_sentinel_and_positive_ints(self):
        assert parse_listing_limit("unlimited") == "unlimited"
        assert parse_listing_limit(5) == 5
        assert parse_listing_limit(None) is None
