from fastapi.testclient import TestClient

import carmart.api.health as health_api
import carmart.core.database as database
from carmart.main import app

client = TestClient(app)


def test_healthz_always_ok():
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json().get("status") == "ok"


def test_readyz_ok_with_real_sqlite(db):
    resp = client.get("/readyz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_readyz_reports_missing_tables(monkeypatch):
    class FakeInspector:
        def has_table(self, name):
            return name == "app_users"

    monkeypatch.setattr(health_api, "check_connection", lambda: True)
    monkeypatch.setattr(health_api, "get_engine", lambda: object())
    monkeypatch.setattr(health_api, "inspect", lambda engine: FakeInspector())

    resp = client.get("/readyz")
    assert resp.status_code == 503
    assert "subscriptions" in resp.json()["detail"]
    assert "car_listings" in resp.json()["detail"]


def test_readyz_handles_db_down(monkeypatch):
    def boom():
        raise RuntimeError("db down")

    monkeypatch.setattr(database, "get_engine", boom)

    resp = client.get("/readyz")
    body = resp.json()
    assert resp.status_code == 503
    assert body == {"status": "error", "detail": "database unreachable"}


def test_check_connection(db):
    assert database.check_connection() is True


def test_check_connection_false_when_engine_fails(monkeypatch):
    def boom():
        raise RuntimeError("db down")

    monkeypatch.setattr(database, "get_engine", boom)
    assert database.check_connection() is False
