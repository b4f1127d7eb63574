"""
tests/conftest.py -- Shared test fixtures for bizdir integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + companies
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus a logged-in user's token for API tests
  - auth_header(): Authorization header builder

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

RATE_LIMIT_ENABLED must be set before api.limiter is imported, because the
limiter reads it once at construction.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# Set before any api/ import so the shared limiter is built disabled.
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.sessions import SessionManager
from auth.store import UserStore
from auth.tokens import hash_password
from directory.store import CompanyStore

TEST_PASSWORD = "testpass123"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def company_payload(**overrides) -> dict:
    """A complete, valid company body in the external camelCase shape."""
    payload = {
        "companyName": "Acme Sp. z o.o.",
        "krsNIPorHRB": "0000123456",
        "status": "Active",
        "description": "Industrial fasteners and fittings.",
        "country": "Poland",
        "industry": "Manufacturing",
        "employeeCount": "51-200",
        "foundedYear": 1998,
        "address": "ul. Prosta 1, 00-001 Warszawa",
        "website": "https://acme.example",
        "contactEmail": "office@acme.example",
        "phoneNumber": "+48 22 000 00 00",
        "revenue": "10M PLN",
        "management": ["Jan Kowalski"],
        "productsAndServices": "Bolts, Nuts, Washers",
        "technologiesUsed": ["SAP"],
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, CompanyStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Both stores point at the same named database, as they do in production.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    db_url = f"sqlite:///file:test_bizdir_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=db_url), CompanyStore(db_url=db_url)


def _patch_lifespan(user_store: UserStore, company_store: CompanyStore, sessions: SessionManager):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the database named by DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.company_store = company_store
        app.state.sessions = sessions
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores.
    The user "testuser" is created before the client starts and a session
    is issued for use in Authorization headers.
    """
    user_store, company_store = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])
    sessions = SessionManager(user_store)

    uid = user_store.create_user(User(username="testuser", password_hash=hash_password(TEST_PASSWORD)))
    token = sessions.create(uid).token

    app.router.lifespan_context = _patch_lifespan(user_store, company_store, sessions)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, uid

    company_store.close()
    user_store.close()
