"""API tests for tier catalog and entitlement endpoints."""

from carmart.features.subscriptions.service import set_listing_limit, upsert_subscription
from carmart.features.users.service import register_user
from carmart.features.listings.service import insert_listing


def seller_headers(user_id="seller-1"):
    return {"X-User-Id": user_id}


def test_subscription_tiers_are_public(client):
    resp = client.get("/api/subscription-tiers")
    assert resp.status_code == 200
    tiers = resp.json()
    assert [t["id"] for t in tiers] == ["free", "premium", "vip"]
    assert [t["listing_limit"] for t in tiers] == [3, 10, 50]
    assert [t["max_gallery_images"] for t in tiers] == [0, 10, 30]


def test_entitlements_require_user_header(client):
    resp = client.get("/v1/entitlements/me")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "unauthorized"


def test_unknown_user_gets_free_entitlements(client):
    resp = client.get("/v1/entitlements/me", headers=seller_headers("never-registered"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["tier"] == "free"
    assert body["capabilities"]["listing_limit"] == 3
    assert body["capabilities"]["can_upload_gallery_images"] is False
    assert body["analytics_enabled"] is False


def test_vip_entitlements(client):
    register_user("seller-1", "alice", role="seller")
    upsert_subscription("seller-1", tier="vip")

    body = client.get("/v1/entitlements/me", headers=seller_headers()).json()
    assert body["tier"] == "vip"
    assert body["capabilities"]["can_set_featured_status"] is True
    assert body["capabilities"]["has_priority_listings"] is True
    assert body["override_applied"] is False
    assert body["analytics_enabled"] is True


def test_override_reflected_in_entitlements(client):
    register_user("seller-1", "alice", role="seller")
    upsert_subscription("seller-1", tier="premium")
    set_listing_limit("seller-1", "unlimited")

    body = client.get("/v1/entitlements/me", headers=seller_headers()).json()
    assert body["capabilities"]["listing_limit"] == "unlimited"
    assert body["override_applied"] is True


def test_listing_quota_endpoint(client):
    register_user("seller-1", "alice", role="seller")
    for i in range(2):
        insert_listing("seller-1", title=f"Car {i}", make="Opel", model="Astra", year=2012, price=3000)

    resp = client.get("/v1/entitlements/me/listing-quota", headers=seller_headers())
    assert resp.status_code == 200
    assert resp.json() == {
        "current_count": 2,
        "limit": 3,
        "can_add_more": True,
        "tier": "free",
        "remaining": 1,
    }


def test_listing_quota_unlimited_serializes_as_string(client):
    register_user("seller-1", "alice", role="seller")
    set_listing_limit("seller-1", "unlimited")

    body = client.get("/v1/entitlements/me/listing-quota", headers=seller_headers()).json()
    assert body["limit"] == "unlimited"
    assert body["remaining"] == "unlimited"
    assert body["can_add_more"] is True


def test_my_subscription(client):
    register_user("seller-1", "alice", role="seller")
    resp = client.get("/api/subscriptions/my", headers=seller_headers())
    assert resp.status_code == 200
    assert resp.json()["tier"] == "free"


def test_my_subscription_missing(client):
    resp = client.get("/api/subscriptions/my", headers=seller_headers("ghost"))
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


def test_self_service_cancel(client):
    register_user("seller-1", "alice", role="seller")
    upsert_subscription("seller-1", tier="premium")

    resp = client.post("/api/subscriptions/cancel", headers=seller_headers())
    assert resp.status_code == 200
    assert resp.json()["tier"] == "free"

    body = client.get("/v1/entitlements/me", headers=seller_headers()).json()
    assert body["tier"] == "free"
