"""
API response models for bizdir REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
separate from the dataclasses in directory/models.py and auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Field names are snake_case in Python and camelCase on the wire: the alias
generator produces the wire names and FastAPI serializes response models by
alias. registration_identifier keeps the historical wire name "krsNIPorHRB"
that existing clients send and read.

Request bodies are not modelled here. Company payloads are deliberately
lenient (numeric strings, comma-separated lists) and are validated by
directory/validation.py so that errors name the offending key.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import Identity, Session
from directory.models import Company

_WIRE_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------------


class CompanyResponse(BaseModel):
    """One directory company as returned by every company endpoint."""

    model_config = _WIRE_CONFIG

    id: int
    company_name: str
    registration_identifier: str = Field(alias="krsNIPorHRB")
    status: str
    description: str
    country: str
    industry: str
    employee_count: str
    founded_year: int
    address: str
    website: str
    contact_email: str
    phone_number: str
    revenue: str
    management: list[str]
    products_and_services: list[str]
    technologies_used: list[str]
    last_updated: str
    owner_id: Optional[int]
    is_public: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_company(cls, company: Company) -> "CompanyResponse":
        """Build the wire representation from a stored Company."""
        return cls(
            id=company.id,
            company_name=company.company_name,
            registration_identifier=company.registration_identifier,
            status=company.status,
            description=company.description,
            country=company.country,
            industry=company.industry,
            employee_count=company.employee_count,
            founded_year=company.founded_year,
            address=company.address,
            website=company.website,
            contact_email=company.contact_email,
            phone_number=company.phone_number,
            revenue=company.revenue,
            management=company.management,
            products_and_services=company.products_and_services,
            technologies_used=company.technologies_used,
            last_updated=company.last_updated,
            owner_id=company.owner_id,
            is_public=company.is_public,
            created_at=company.created_at,
            updated_at=company.updated_at,
        )


class ImportResponse(BaseModel):
    """Response for POST /api/companies/import."""

    model_config = _WIRE_CONFIG

    inserted: int
    companies: list[CompanyResponse]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    model_config = _WIRE_CONFIG

    id: int
    username: str
    created_at: Optional[str] = None

    @classmethod
    def from_identity(cls, identity: Identity) -> "UserResponse":
        return cls(id=identity.id, username=identity.username, created_at=identity.created_at)


class AuthResponse(BaseModel):
    """Response for register and login: the new bearer token and who it belongs to."""

    model_config = _WIRE_CONFIG

    token: str
    expires_at: str
    user: UserResponse

    @classmethod
    def from_session(cls, session: Session, user: UserResponse) -> "AuthResponse":
        return cls(token=session.token, expires_at=session.expires_at, user=user)


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    """Error envelope for every 4xx/5xx response, and plain acknowledgements."""

    model_config = ConfigDict(frozen=True)

    message: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
