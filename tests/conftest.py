"""
Test fixtures for the campus portal.

Provides app (in-memory record store), sqlite_app (file-based SQLite), client,
fake_redis, and a ``register`` factory that signs a student up, logs them in
and returns their id plus bearer headers.
"""

from __future__ import annotations

from collections import namedtuple

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))


Account = namedtuple("Account", ["id", "email", "headers"])

DEFAULT_PASSWORD = "secret123"


@pytest.fixture
def app():
    """App backed by a fresh in-memory record store."""
    from app import create_app

    return create_app({
        "TESTING": True,
        "RECORD_STORE": "memory",
        "SECRET_KEY": "test-secret-key",
        "JWT_SECRET": "test-jwt-secret",
    })


@pytest.fixture
def sqlite_app(tmp_path):
    """App backed by a file-based SQLite record store."""
    from app import create_app

    return create_app({
        "TESTING": True,
        "RECORD_STORE": "sqlite",
        "DATABASE": str(tmp_path / "test.db"),
        "SECRET_KEY": "test-secret-key",
        "JWT_SECRET": "test-jwt-secret",
    })


@pytest.fixture
def client(app):
    """Unauthenticated test client."""
    return app.test_client()


@pytest.fixture
def fake_redis():
    import fakeredis
    return fakeredis.FakeRedis()


def signup_and_login(client, email: str, password: str = DEFAULT_PASSWORD, **profile) -> Account:
    body = {
        "email": email,
        "password": password,
        "fullName": profile.pop("fullName", email.split("@")[0].title()),
        **profile,
    }
    resp = client.post("/signup", json=body)
    assert resp.status_code == 200, resp.get_json()
    user_id = resp.get_json()["userId"]

    resp = client.post("/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    token = resp.get_json()["accessToken"]
    return Account(user_id, email, {"Authorization": f"Bearer {token}"})


@pytest.fixture
def register(client):
    """Factory: register(email, **profile) -> Account."""
    def _register(email: str, **profile) -> Account:
        return signup_and_login(client, email, **profile)
    return _register


@pytest.fixture
def alice(register):
    return register(
        "alice@alpha.edu",
        fullName="Alice Andrews",
        university="alpha",
        department="Computer Science",
        year="2",
        skills="python,react",
    )


@pytest.fixture
def bob(register):
    return register(
        "bob@alpha.edu",
        fullName="Bob Brown",
        university="alpha",
        department="Mathematics",
        year="3",
        skills="statistics",
    )


@pytest.fixture
def carol(register):
    return register(
        "carol@beta.edu",
        fullName="Carol Chen",
        university="beta",
        department="History",
        year="1",
        skills="writing",
    )
