"""
core/database.py -- Engine construction shared by every store.

UserStore and CompanyStore each own an Engine, usually pointed at the same
database URL. Both need the same SQLite connection setup, so it lives here.

Layer rule: stdlib + SQLAlchemy only.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _configure_sqlite(dbapi_conn, connection_record) -> None:
    """Per-connection SQLite PRAGMAs.

    WAL lets readers proceed while a write is in flight. foreign_keys is off by
    default in SQLite and must be enabled on every new connection for the
    sessions -> users ON DELETE CASCADE to take effect.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(db_url: str) -> Engine:
    """Create an Engine for db_url with SQLite connection setup applied."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # The ASGI server may hand a pooled connection to a different thread.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _configure_sqlite)
    return engine


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Format an aware datetime as fixed-width UTC ISO 8601.

    timespec="microseconds" keeps the width constant, so string comparison in
    SQL orders timestamps chronologically.
    """
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def now_iso() -> str:
    return to_iso(utcnow())
