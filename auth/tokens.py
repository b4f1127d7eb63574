"""
auth/tokens.py -- Password hashing and session token utilities.

Passwords: PBKDF2-HMAC-SHA256, 310,000 iterations, 16-byte salt, 32-byte key.
     Stored as "hex(salt):hex(key)". The iteration count is not part of the
     stored value, so changing _ITERATIONS invalidates every existing hash.

Session tokens: secrets.token_hex(48) -- 384 bits of entropy, opaque, stored
     as-is in the sessions table. Expiry is a database column, not a claim in
     the token.

verify_password() fails closed: any malformed stored value yields False.

Layer rule: no imports from api/ or directory/.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("bizdir.auth")

_ALGORITHM = "sha256"
_ITERATIONS = 310_000
_SALT_BYTES = 16
_KEY_BYTES = 32
_TOKEN_BYTES = 48


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def _derive(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac(_ALGORITHM, password.encode("utf-8"), salt, _ITERATIONS, dklen=_KEY_BYTES)


def hash_password(plain: str) -> str:
    """Return "hex(salt):hex(derived_key)" for the given plaintext password."""
    salt = secrets.token_bytes(_SALT_BYTES)
    return f"{salt.hex()}:{_derive(plain, salt).hex()}"


def verify_password(plain: str, encoded: str) -> bool:
    """Return True if plain matches the stored "salt:key" hash.

    Never raises. Wrong part count, empty parts, non-hex text, or a key of the
    wrong length all return False. The key comparison is constant-time.
    """
    if not isinstance(plain, str) or not isinstance(encoded, str):
        return False
    parts = encoded.split(":")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return False
    try:
        salt = bytes.fromhex(parts[0])
        expected = bytes.fromhex(parts[1])
    except ValueError:
        return False
    if len(expected) != _KEY_BYTES:
        return False
    return hmac.compare_digest(_derive(plain, salt), expected)


# Computed once at import so the first failed login is not measurably slower
# than later ones. authenticate_user() verifies against it for unknown users.
_DUMMY_HASH: str = hash_password("bizdir_timing_dummy")


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, username: str, password: str) -> User | None:
    """Check a username/password pair, running PBKDF2 exactly once either way.

    Unknown username: derive against _DUMMY_HASH and return None.
    Wrong password: derive against the real hash and return None.
    Response time therefore does not reveal whether the username exists.
    """
    user = store.get_by_username(username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def generate_session_token() -> str:
    """Return a new opaque bearer token: 48 random bytes as 96 hex chars."""
    return secrets.token_hex(_TOKEN_BYTES)
