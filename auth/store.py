"""
auth/store.py -- SQLAlchemy Core persistence layer for users and sessions.

Pattern: Repository + Data Mapper (same as directory/store.py).
UserStore is the repository; _row_to_user / _row_to_session are the mappers.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Session lifetime policy (TTL, purge-before-create) belongs to
auth/sessions.SessionManager. This module only stores and fetches rows; every
time comparison takes the caller's "now" as an ISO string.

Layer rule: no imports from api/ or directory/.
"""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Index, Integer, MetaData, String, Table, Text, func, select

from auth.models import Identity, Session, User
from core.database import make_engine, now_iso

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

_sessions = Table(
    "sessions",
    _metadata,
    Column("token", String(128), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("expires_at", String(32), nullable=False),
    Column("created_at", String(32), nullable=False),
    Index("idx_sessions_user", "user_id"),
    Index("idx_sessions_expires", "expires_at"),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User and Session rows.

    Usage:
        store = UserStore("sqlite:///bizdir.db")
        user_id = store.create_user(User(username="alice", password_hash=hash_password("secret123")))
        user = store.get_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        The register route checks first, but two concurrent registrations can
        both pass that check; the UNIQUE constraint is the final arbiter.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    password_hash=user.password_hash,
                    created_at=now_iso(),
                )
            )
            return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, session: Session) -> None:
        """Persist a session row. created_at defaults to now."""
        with self.engine.begin() as conn:
            conn.execute(
                _sessions.insert().values(
                    token=session.token,
                    user_id=session.user_id,
                    expires_at=session.expires_at,
                    created_at=session.created_at or now_iso(),
                )
            )

    def get_session(self, token: str) -> Session | None:
        """Fetch a session row regardless of expiry."""
        with self.engine.connect() as conn:
            row = conn.execute(_sessions.select().where(_sessions.c.token == token)).fetchone()
        return _row_to_session(row) if row is not None else None

    def find_identity(self, token: str, now: str) -> Identity | None:
        """Return the user behind token if the session expires strictly after now."""
        query = (
            select(_users.c.id, _users.c.username, _users.c.created_at)
            .select_from(_sessions.join(_users, _users.c.id == _sessions.c.user_id))
            .where((_sessions.c.token == token) & (_sessions.c.expires_at > now))
        )
        with self.engine.connect() as conn:
            row = conn.execute(query).fetchone()
        if row is None:
            return None
        return Identity(id=row.id, username=row.username, created_at=row.created_at)

    def delete_expired_sessions(self, now: str) -> int:
        """Delete every session with expires_at <= now. Returns rows deleted."""
        with self.engine.begin() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= now))
        return result.rowcount

    def delete_session(self, token: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.token == token))
        return result.rowcount > 0

    def delete_all_sessions(self) -> int:
        """Drop every session. Used by the seeder's --replace mode."""
        with self.engine.begin() as conn:
            result = conn.execute(_sessions.delete())
        return result.rowcount

    def count_sessions(self, user_id: int | None = None) -> int:
        query = select(func.count()).select_from(_sessions)
        if user_id is not None:
            query = query.where(_sessions.c.user_id == user_id)
        with self.engine.connect() as conn:
            return conn.execute(query).scalar() or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )


def _row_to_session(row) -> Session:
    return Session(
        token=row.token,
        user_id=row.user_id,
        expires_at=row.expires_at,
        created_at=row.created_at,
    )
