"""Tests for the Supabase Auth pass-through endpoints."""
from tests.conftest import auth, create_test_group, seed_profile


def _register(client, email="rita@example.com", password="secret123", username="Rita"):
    return client.post("/api/auth/register", json={"email": email, "password": password, "username": username})


def test_register_and_login(client, db):
    resp = _register(client)
    assert resp.status_code == 201
    user_id = resp.json()["user_id"]
    assert db.auth.accounts["rita@example.com"]["metadata"] == {"username": "Rita"}

    resp = client.post("/api/auth/login", json={"email": "rita@example.com", "password": "secret123"})
    assert resp.status_code == 200
    assert resp.json()["user_id"] == user_id
    assert resp.json()["token_type"] == "bearer"


def test_register_duplicate_email(client):
    _register(client)
    resp = _register(client)
    assert resp.status_code == 409


def test_register_requires_username(client):
    resp = _register(client, username="  ")
    assert resp.status_code == 400


def test_register_short_password(client):
    resp = _register(client, password="123")
    assert resp.status_code == 400


def test_login_wrong_password(client):
    _register(client)
    resp = client.post("/api/auth/login", json={"email": "rita@example.com", "password": "nope123"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "unauthorized"


def test_me_and_logout(client, db):
    seed_profile(db, "user-1", "Rita")
    resp = client.get("/api/auth/me", headers=auth("user-1"))
    assert resp.status_code == 200
    assert resp.json() == {
        "id": "user-1", "email": "user-1@example.com", "username": "Rita", "needs_onboarding": True,
    }

    create_test_group(client, "user-1")
    assert client.get("/api/auth/me", headers=auth("user-1")).json()["needs_onboarding"] is False

    resp = client.post("/api/auth/logout", headers=auth("user-1"))
    assert resp.status_code == 200


def test_health(client):
    resp = client.get("/health")
    assert resp.json() == {"status": "healthy"}
    assert resp.headers["X-Frame-Options"] == "DENY"
