"""
auth/sessions.py -- Bearer session lifecycle on top of UserStore.

SessionManager owns the policy; UserStore owns the rows:
  - create() purges expired rows first, then mints a fresh random token with
    a fixed TTL. There is no background sweep and no sliding refresh.
  - resolve() filters on expires_at at lookup time, so an expired row that has
    not been purged yet is inert.
  - revoke() deletes one token (logout). Other tokens for the same user are
    unaffected.

The clock is injectable so tests can move time forward without sleeping.

Layer rule: no imports from api/ or directory/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from auth.models import Identity, Session
from auth.store import UserStore
from auth.tokens import generate_session_token
from core.database import to_iso, utcnow

logger = logging.getLogger("bizdir.auth")

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class SessionManager:
    def __init__(
        self,
        store: UserStore,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    def _now(self) -> str:
        return to_iso(self._clock())

    def purge_expired(self) -> int:
        """Delete every session whose expires_at is at or before now."""
        purged = self.store.delete_expired_sessions(self._now())
        if purged:
            logger.info("Purged %d expired session(s)", purged)
        return purged

    def create(self, user_id: int) -> Session:
        """Issue a new session for user_id and return it (token included)."""
        self.purge_expired()
        issued = self._clock()
        session = Session(
            token=generate_session_token(),
            user_id=user_id,
            expires_at=to_iso(issued + self.ttl),
            created_at=to_iso(issued),
        )
        self.store.create_session(session)
        return session

    def resolve(self, token: str | None) -> Identity | None:
        """Return the identity for a live token, or None.

        None covers a blank token, a token that never existed, and a token
        that expired but has not been purged yet.
        """
        if not token or not token.strip():
            return None
        return self.store.find_identity(token.strip(), self._now())

    def revoke(self, token: str) -> bool:
        return self.store.delete_session(token)
