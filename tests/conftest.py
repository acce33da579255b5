"""Pytest fixtures: a throwaway SQLite database and a TestClient over main.app.

Environment is set before any app import because app.core.config builds its
settings singleton at import time.
"""

import os
import tempfile
import threading
from pathlib import Path

_TMP_DIR = tempfile.mkdtemp(prefix="vonai-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_TMP_DIR) / 'test.db'}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["NEWSLETTER_BATCH_DELAY_MS"] = "0"
os.environ["SMTP_SERVER"] = ""
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["ADMIN_EMAIL"] = "admin@vonai.com"
os.environ["FRONTEND_URL"] = "https://vonai.test"

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine, init_db
import main

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"
ADMIN_EMAIL = "admin@vonai.com"


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin(db):
    """Seed the default admin (same as startup does on an empty database)."""
    from app.services.credentials import ensure_admin, get_admin

    ensure_admin(db, ADMIN_USERNAME, ADMIN_PASSWORD, ADMIN_EMAIL)
    return get_admin(db, ADMIN_USERNAME)


@pytest.fixture
def client():
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    r = client.post("/api/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return client


class Dispatched:
    """Stand-in for fire_and_forget that records calls instead of starting threads."""

    def __init__(self):
        self.calls = []

    def __call__(self, func, *args, **kwargs):
        self.calls.append((func, args, kwargs))
        return threading.Thread(target=lambda: None)


@pytest.fixture
def dispatched():
    return Dispatched()
