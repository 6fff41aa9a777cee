# carmart/conftest.py
import sys
import os
import pytest
from pathlib import Path

# Add project root to PYTHONPATH
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("SKIP_ENV_VALIDATION", "1")

ADMIN_TEST_KEY = "test-admin-key"


@pytest.fixture(scope="function")
def db(tmp_path):
    """
    Fresh SQLite database per test.

    Points the engine at a throwaway file and creates all tables; the engine
    is disposed afterwards so the next test starts clean.
    """
    from carmart.core.database import init_engine, dispose_engine, create_all_tables

    init_engine(f"sqlite:///{tmp_path / 'carmart-test.db'}")
    create_all_tables()
    yield
    dispose_engine()


@pytest.fixture(scope="function")
def client(db):
    """TestClient bound to the per-test database."""
    from fastapi.testclient import TestClient
    from carmart.main import app

    return TestClient(app)


@pytest.fixture(scope="function")
def admin_headers(monkeypatch):
    monkeypatch.setenv("ADMIN_API_KEY", ADMIN_TEST_KEY)
    return {"X-Admin-Key": ADMIN_TEST_KEY}


@pytest.fixture(scope="function")
def catalog():
    from carmart.features.tiers.catalog import build_default_catalog
    return build_default_catalog()
