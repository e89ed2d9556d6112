# tests/conftest.py
# PURPOSE: create a TestClient backed by a temp SQLite file, plus registered-user fixtures.

# Ensure project root is on sys.path so `import taskhub` works when running pytest.
import sys, os
import tempfile

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Settings are read at import time: keep uploads in a temp dir and skip create_all
# on the default database (tests build their own schema below).
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="taskhub-uploads-"))
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from taskhub.db import Base, get_db  # DB metadata + original dependency to override
from taskhub import db_models  # noqa: F401
from taskhub.main import app  # FastAPI app
from taskhub.rate_limit import limiter
from taskhub.realtime import presence


@pytest.fixture()
def client():
    # 1) Create a temporary SQLite file (so data is isolated per test)
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    test_db_url = f"sqlite:///{tmp.name}"

    # 2) Create a new engine/session factory for tests
    engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # 3) Create tables for tests
    Base.metadata.create_all(bind=engine)

    # 4) Override the app's get_db dependency to use our TestingSessionLocal
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    # Fresh rate-limit counters and an empty presence registry per test
    limiter.reset()
    presence.clear()

    # 5) Yield a TestClient (context manager ensures proper startup/shutdown)
    with TestClient(app) as c:
        yield c

    # 6) Cleanup: remove overrides, drop tables, dispose engine, delete temp file
    app.dependency_overrides.clear()
    presence.clear()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    os.unlink(tmp.name)


def register(client, name: str, email: str, password: str = "secret-123") -> dict:
    """Register a user and return {id, name, email, token, headers}."""
    r = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    token = body["access_token"]
    return {
        "id": body["user"]["id"],
        "name": name,
        "email": email,
        "password": password,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture()
def alice(client):
    return register(client, "Alice", "alice@example.com")


@pytest.fixture()
def bob(client):
    return register(client, "Bob", "bob@example.com")


@pytest.fixture()
def carol(client):
    return register(client, "Carol", "carol@example.com")


@pytest.fixture()
def make_user(client):
    """Factory for extra users inside a test."""

    def _make(name: str, email: str, password: str = "secret-123") -> dict:
        return register(client, name, email, password)

    return _make
