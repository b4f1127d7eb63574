"""
directory/store.py -- SQLAlchemy-backed persistence layer for directory companies.

Uses SQLAlchemy Core (not ORM) so the Company dataclass in directory/models.py
remains the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change.

Pattern: Repository + Data Mapper. CompanyStore is the repository,
_row_to_company is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Visibility: list_public() only ever returns is_public rows, and
list_owned_by() only rows whose owner_id matches. Single-record reads return
the row regardless of visibility; the caller decides with can_view() so it can
tell "restricted" apart from "not found".

Usage:
    store = CompanyStore("sqlite:///bizdir.db")
    company = store.create_company(prepare_company(payload, owner_id=1))
    store.list_public()
    store.close()
"""

import json
import logging
from typing import Optional

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, func, select

from core.database import make_engine, now_iso
from directory.models import Company

logger = logging.getLogger("bizdir.directory")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_companies = Table(
    "companies",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("company_name", String(255), nullable=False),
    Column("registration_identifier", String(100), nullable=False),
    Column("status", String(100), nullable=False),
    Column("description", Text, nullable=False),
    Column("country", String(100), nullable=False),
    Column("industry", String(255), nullable=False),
    Column("employee_count", String(50), nullable=False),
    Column("founded_year", Integer, nullable=False),
    Column("address", Text, nullable=False),
    Column("website", String(500), nullable=False),
    Column("contact_email", String(255), nullable=False),
    Column("phone_number", String(100), nullable=False),
    Column("revenue", String(100), nullable=False),
    Column("management", Text, nullable=False),  # JSON array serialized as text
    Column("products_and_services", Text, nullable=False),  # JSON array
    Column("technologies_used", Text, nullable=False),  # JSON array
    Column("last_updated", String(64), nullable=False),
    # Plain integer rather than a ForeignKey: users live in auth/store.py's
    # metadata and directory/ does not import auth/.
    Column("owner_id", Integer),
    Column("is_public", Integer, nullable=False, server_default="1"),  # boolean stored as 0/1
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("idx_companies_owner", "owner_id"),
    Index("idx_companies_public", "is_public"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _insert_values(company: Company, timestamp: str) -> dict:
    return {
        "company_name": company.company_name,
        "registration_identifier": company.registration_identifier,
        "status": company.status,
        "description": company.description,
        "country": company.country,
        "industry": company.industry,
        "employee_count": company.employee_count,
        "founded_year": company.founded_year,
        "address": company.address,
        "website": company.website,
        "contact_email": company.contact_email,
        "phone_number": company.phone_number,
        "revenue": company.revenue,
        "management": json.dumps(company.management),
        "products_and_services": json.dumps(company.products_and_services),
        "technologies_used": json.dumps(company.technologies_used),
        "last_updated": company.last_updated,
        "owner_id": company.owner_id,
        "is_public": 1 if company.is_public else 0,
        "created_at": timestamp,
        "updated_at": timestamp,
    }


def _insert(conn, company: Company) -> Company:
    result = conn.execute(_companies.insert().values(**_insert_values(company, now_iso())))
    company_id = result.inserted_primary_key[0]
    row = conn.execute(_companies.select().where(_companies.c.id == company_id)).fetchone()
    return _row_to_company(row)


def can_view(company: Company, user_id: Optional[int]) -> bool:
    """Return True if user_id (None for anonymous) may read company."""
    if company.is_public:
        return True
    return user_id is not None and company.owner_id == user_id


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CompanyStore:
    def __init__(self, db_url: str) -> None:
        self.engine = make_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_company(self, company: Company) -> Company:
        """Insert one company and return the stored record (id and timestamps set)."""
        with self.engine.begin() as conn:
            return _insert(conn, company)

    def create_companies(self, companies: list[Company]) -> list[Company]:
        """Insert a batch in a single transaction.

        Either every record is stored or, if any insert fails, none are.
        Callers validate the whole batch first (prepare_companies), so a
        failure here means a storage error, which propagates.
        """
        with self.engine.begin() as conn:
            created = [_insert(conn, company) for company in companies]
        logger.info("Inserted %d companies in one transaction", len(created))
        return created

    def replace_all(self, companies: list[Company]) -> list[Company]:
        """Delete every company and insert companies, in one transaction. Used by the seed CLI."""
        with self.engine.begin() as conn:
            removed = conn.execute(_companies.delete()).rowcount
            created = [_insert(conn, company) for company in companies]
        logger.info("Replaced %d companies with %d", removed, len(created))
        return created

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_company(self, company_id: int) -> Optional[Company]:
        """Fetch a single company by ID regardless of visibility. None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_companies.select().where(_companies.c.id == company_id)).fetchone()
        return _row_to_company(row) if row is not None else None

    def list_public(self) -> list[Company]:
        """Return every public company ordered by name."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _companies.select()
                .where(_companies.c.is_public == 1)
                .order_by(_companies.c.company_name.asc(), _companies.c.id.asc())
            ).fetchall()
        return [_row_to_company(r) for r in rows]

    def list_owned_by(self, user_id: int) -> list[Company]:
        """Return every company owned by user_id, public or not, most recently updated first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _companies.select()
                .where(_companies.c.owner_id == user_id)
                .order_by(_companies.c.updated_at.desc(), _companies.c.id.desc())
            ).fetchall()
        return [_row_to_company(r) for r in rows]

    def count(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(_companies)).scalar() or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _load_list(value) -> list[str]:
    """Decode a JSON-array column. Anything that is not a JSON array reads as []."""
    if not isinstance(value, str):
        return []
    try:
        parsed = json.loads(value)
    except ValueError:
        return []
    return parsed if isinstance(parsed, list) else []


def _row_to_company(row) -> Company:
    return Company(
        id=row.id,
        company_name=row.company_name,
        registration_identifier=row.registration_identifier,
        status=row.status,
        description=row.description,
        country=row.country,
        industry=row.industry,
        employee_count=row.employee_count,
        founded_year=row.founded_year,
        address=row.address,
        website=row.website,
        contact_email=row.contact_email,
        phone_number=row.phone_number,
        revenue=row.revenue,
        management=_load_list(row.management),
        products_and_services=_load_list(row.products_and_services),
        technologies_used=_load_list(row.technologies_used),
        last_updated=row.last_updated,
        owner_id=row.owner_id,
        is_public=bool(row.is_public),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
