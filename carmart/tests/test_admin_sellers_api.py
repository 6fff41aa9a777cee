"""API tests for admin seller onboarding."""

from carmart.features.users.service import get_user
from carmart.models.user import UserRole


URL = "/api/admin/sellers"
CAR = {"title": "One owner estate", "make": "Skoda", "model": "Octavia", "year": 2017, "price": 9800}


def test_created_seller_can_list_a_car(client, admin_headers):
    resp = client.post(URL, headers=admin_headers, json={"user_id": "seller-9", "username": " dana "})
    assert resp.status_code == 201
    body = resp.json()
    assert body["user"]["user_id"] == "seller-9"
    assert body["user"]["username"] == "dana"
    assert body["user"]["role"] == "seller"
    assert body["subscription"]["tier"] == "free"
    assert body["subscription"]["status"] == "active"
    assert get_user("seller-9").role == UserRole.SELLER

    listing = client.post("/api/cars", headers={"X-User-Id": "seller-9"}, json=CAR)
    assert listing.status_code == 201
    assert listing.json()["seller_id"] == "seller-9"


def test_display_name_is_kept(client, admin_headers):
    resp = client.post(
        URL, headers=admin_headers, json={"user_id": "seller-9", "username": "dana", "display_name": "Dana's Cars"}
    )
    assert resp.json()["user"]["display_name"] == "Dana's Cars"


def test_requires_admin_key(client, admin_headers):
    resp = client.post(URL, json={"user_id": "seller-9", "username": "dana"})
    assert resp.status_code == 403
    assert get_user("seller-9") is None


def test_duplicate_seller_is_409(client, admin_headers):
    payload = {"user_id": "seller-9", "username": "dana"}
    assert client.post(URL, headers=admin_headers, json=payload).status_code == 201

    resp = client.post(URL, headers=admin_headers, json=payload)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "conflict"


def test_blank_username_is_400(client, admin_headers):
    resp = client.post(URL, headers=admin_headers, json={"user_id": "seller-9", "username": "   "})
    assert resp.status_code == 400
    assert get_user("seller-9") is None
