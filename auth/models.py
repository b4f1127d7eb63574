"""
auth/models.py -- Domain dataclasses for authentication entities.

Pure data containers. UserStore and SessionManager do the work.

Layer rule: no imports from api/ or directory/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    password_hash is the "hex(salt):hex(key)" string produced by
    auth.tokens.hash_password. It never leaves the auth layer.
    """

    username: str
    password_hash: str
    id: int | None = None
    created_at: str | None = None


@dataclass
class Session:
    """A bearer token issued to a user at login or registration.

    expires_at is fixed at issue time; there is no sliding refresh.
    """

    token: str
    user_id: int
    expires_at: str  # ISO 8601 UTC
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """The caller a valid bearer token resolves to."""

    id: int
    username: str
    created_at: str | None = None
