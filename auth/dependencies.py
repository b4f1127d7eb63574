"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The only credential is an `Authorization: Bearer <token>` header carrying an
opaque session token issued by SessionManager.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: no imports from directory/. This module may import from fastapi
because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Identity
from auth.sessions import SessionManager

_SCHEME = "Bearer "


def bearer_token(request: Request) -> str | None:
    """Extract the token from the Authorization header, or None if absent or malformed."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(_SCHEME):
        return None
    token = auth_header[len(_SCHEME) :].strip()
    return token or None


def try_get_current_user(request: Request) -> Identity | None:
    """Resolve the request's bearer token to an Identity.

    Returns None for a missing header, a malformed header, or a token that is
    unknown or expired. Never raises -- anonymous-friendly routes use this
    directly and treat None as "no owner context".
    """
    token = bearer_token(request)
    if token is None:
        return None
    sessions: SessionManager = request.app.state.sessions
    return sessions.resolve(token)


def get_current_user(request: Request) -> Identity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.post("/companies")
        async def route(user: Identity = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
