"""
tests/test_auth_routes.py -- Integration tests for /api/auth/*.

Covers:
  - register: 201 with token + user, validation 400s, 409 on duplicate
  - a rejected duplicate registration creates no session
  - login: 200 with a fresh token, 400 on missing fields, 401 generic failure
  - Cache-Control: no-store on token-bearing responses
  - me / logout require a valid bearer token
  - register and login answer 429 once their per-client limit is spent
"""

from __future__ import annotations

import pytest

from api.limiter import limiter
from conftest import TEST_PASSWORD, auth_header
from core.config import get_settings


def test_register_creates_user_and_session(api_client):
    client, _, _ = api_client
    resp = client.post("/api/auth/register", json={"username": "  newbie  ", "password": "longenough"})
    assert resp.status_code == 201
    data = resp.json()
    assert len(data["token"]) == 96
    assert data["expiresAt"]
    assert data["user"]["username"] == "newbie"
    assert isinstance(data["user"]["id"], int)
    assert resp.headers["cache-control"] == "no-store"

    me = client.get("/api/auth/me", headers=auth_header(data["token"]))
    assert me.status_code == 200
    assert me.json()["username"] == "newbie"


@pytest.mark.parametrize(
    "body, message",
    [
        ({}, "Username is required"),
        ({"username": "   ", "password": "longenough"}, "Username is required"),
        ({"username": "ab", "password": "longenough"}, "Username must be at least 3 characters long"),
        ({"username": "validname", "password": "short"}, "Password must be at least 8 characters long"),
        ({"username": "validname"}, "Password must be at least 8 characters long"),
    ],
)
def test_register_validation(api_client, body, message):
    client, _, _ = api_client
    resp = client.post("/api/auth/register", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"message": message}


def test_register_duplicate_is_409_without_session(api_client):
    client, _, _ = api_client
    sessions_before = client.app.state.user_store.count_sessions()

    resp = client.post("/api/auth/register", json={"username": "testuser", "password": "anotherpass"})
    assert resp.status_code == 409
    assert resp.json() == {"message": "This username is already registered"}
    assert client.app.state.user_store.count_sessions() == sessions_before


def test_register_invalid_json(api_client):
    client, _, _ = api_client
    resp = client.post(
        "/api/auth/register",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid JSON payload"}


def test_login_issues_new_token(api_client):
    client, token, uid = api_client
    resp = client.post("/api/auth/login", json={"username": "testuser", "password": TEST_PASSWORD})
    assert resp.status_code == 200
    data = resp.json()
    assert data["token"] != token
    assert data["user"] == {"id": uid, "username": "testuser", "createdAt": data["user"]["createdAt"]}
    assert resp.headers["cache-control"] == "no-store"


@pytest.mark.parametrize(
    "body",
    [{}, {"username": "testuser"}, {"password": TEST_PASSWORD}, {"username": "", "password": ""}],
)
def test_login_missing_fields(api_client, body):
    client, _, _ = api_client
    resp = client.post("/api/auth/login", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Username and password are required"}


@pytest.mark.parametrize(
    "body",
    [
        {"username": "testuser", "password": "wrongpassword"},
        {"username": "ghost", "password": TEST_PASSWORD},
    ],
)
def test_login_failure_is_generic(api_client, body):
    client, _, _ = api_client
    resp = client.post("/api/auth/login", json=body)
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid username or password"}
    assert resp.headers["cache-control"] == "no-store"


def test_me_returns_identity(api_client):
    client, token, uid = api_client
    resp = client.get("/api/auth/me", headers=auth_header(token))
    assert resp.status_code == 200
    assert resp.json()["id"] == uid
    assert resp.json()["username"] == "testuser"


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer"},
        {"Authorization": "Bearer   "},
        {"Authorization": "Basic dGVzdDp0ZXN0"},
        {"Authorization": "Bearer not-a-session"},
    ],
)
def test_me_requires_valid_token(api_client, headers):
    client, _, _ = api_client
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 401
    assert resp.json() == {"message": "Authentication required"}


def test_logout_revokes_only_that_token(api_client):
    client, token, _ = api_client
    other = client.post("/api/auth/login", json={"username": "testuser", "password": TEST_PASSWORD}).json()["token"]

    resp = client.post("/api/auth/logout", headers=auth_header(other))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out"}

    assert client.get("/api/auth/me", headers=auth_header(other)).status_code == 401
    assert client.get("/api/auth/me", headers=auth_header(token)).status_code == 200


def test_logout_requires_auth(api_client):
    client, _, _ = api_client
    assert client.post("/api/auth/logout").status_code == 401


# ---------------------------------------------------------------------------
# Rate limiting (the suite runs with the limiter off; these turn it on)
# ---------------------------------------------------------------------------


@pytest.fixture
def limiter_on(monkeypatch):
    limiter.reset()
    monkeypatch.setattr(limiter, "enabled", True)
    yield
    limiter.reset()


@pytest.mark.parametrize(
    "path, setting",
    [("/api/auth/register", "register_rate_limit"), ("/api/auth/login", "login_rate_limit")],
)
def test_auth_routes_are_rate_limited(api_client, limiter_on, path, setting):
    client, _, _ = api_client
    allowed = int(getattr(get_settings(), setting).split("/")[0])

    codes = [client.post(path, json={}).status_code for _ in range(allowed)]
    assert codes == [400] * allowed

    resp = client.post(path, json={})
    assert resp.status_code == 429
    assert resp.json() == {"message": "Too many requests"}
    assert int(resp.headers["retry-after"]) > 0
    assert resp.headers["access-control-allow-origin"] == "*"
