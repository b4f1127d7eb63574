"""
directory/models.py -- Domain dataclass for a directory company.

Pure data container. Validation lives in directory/validation.py, persistence
in directory/store.py. The HTTP shape (camelCase keys) is api/models.py's
concern.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Company:
    """A company listed in the directory.

    registration_identifier holds the national register number (KRS, NIP or
    HRB depending on country). employee_count is a bucket label such as
    "51-200", not a number.

    owner_id is fixed at creation to the authenticated caller; seeded records
    have no owner. is_public controls whether non-owners can read the record.

    id, created_at and updated_at are None/"" until the store writes the row.
    """

    company_name: str
    registration_identifier: str
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
    last_updated: str
    management: list[str] = field(default_factory=list)
    products_and_services: list[str] = field(default_factory=list)
    technologies_used: list[str] = field(default_factory=list)
    owner_id: Optional[int] = None
    is_public: bool = True
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
