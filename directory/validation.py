"""
directory/validation.py -- Turn raw JSON payloads into Company records.

Every write path (POST /api/companies, POST /api/companies/import, and the
seed CLI) runs payloads through prepare_company() before touching storage.
Payload keys are the external camelCase names clients send; error messages
name the offending external key.

Pure functions, no I/O. Raises CompanyValidationError on the first problem.
"""

import re
from typing import Any, Optional

from core.database import now_iso
from directory.models import Company

# (external key, Company attribute) for every required non-empty string.
REQUIRED_STRING_FIELDS: tuple[tuple[str, str], ...] = (
    ("companyName", "company_name"),
    ("krsNIPorHRB", "registration_identifier"),
    ("status", "status"),
    ("description", "description"),
    ("country", "country"),
    ("industry", "industry"),
    ("employeeCount", "employee_count"),
    ("address", "address"),
    ("website", "website"),
    ("contactEmail", "contact_email"),
    ("phoneNumber", "phone_number"),
    ("revenue", "revenue"),
)

LIST_FIELDS: tuple[tuple[str, str], ...] = (
    ("management", "management"),
    ("productsAndServices", "products_and_services"),
    ("technologiesUsed", "technologies_used"),
)

_YEAR_RE = re.compile(r"^\+?([0-9]+)(?:\.0*)?$")
_MAX_YEAR = 2**63 - 1  # SQLite INTEGER range


class CompanyValidationError(ValueError):
    """A payload failed validation. field is the external key, when one applies."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field

    @property
    def message(self) -> str:
        return str(self)


class BatchValidationError(CompanyValidationError):
    """An item in a bulk payload failed; index is its position in the batch."""

    def __init__(self, index: int, reason: CompanyValidationError) -> None:
        super().__init__(f"Failed to import company at index {index}: {reason}", field=reason.field)
        self.index = index
        self.reason = reason.message


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def _stringify(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_string_list(value: Any) -> list[str]:
    """Normalize a list field.

    A list keeps every item, stringified and trimmed (a JSON null becomes
    "null"). A string is split on commas and trimmed. Empty entries are
    dropped. Anything else gives [].
    """
    if isinstance(value, list):
        items = [_stringify(item).strip() for item in value]
    elif isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    else:
        return []
    return [item for item in items if item]


def coerce_founded_year(value: Any) -> Optional[int]:
    """Return value as a positive integer year, or None if it is not one.

    Accepts ints, integral floats (2020.0) and numeric strings ("2020",
    " 2020 ", "2020.0"). Booleans are rejected even though they are ints.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        year = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        year = int(value)
    elif isinstance(value, str):
        match = _YEAR_RE.match(value.strip())
        if match is None:
            return None
        year = int(match.group(1))
    else:
        return None
    if year <= 0 or year > _MAX_YEAR:
        return None
    return year


def _required_string(payload: dict, key: str) -> str:
    raw = payload.get(key)
    if not isinstance(raw, str):
        raise CompanyValidationError(f'Field "{key}" is required', field=key)
    value = raw.strip()
    if not value:
        raise CompanyValidationError(f'Field "{key}" cannot be empty', field=key)
    return value


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def prepare_company(payload: Any, owner_id: Optional[int]) -> Company:
    """Validate one payload and return an unsaved Company owned by owner_id.

    Required strings are checked in a fixed order, so the first missing key
    in REQUIRED_STRING_FIELDS is the one reported.
    """
    if not isinstance(payload, dict):
        raise CompanyValidationError("Invalid company payload")

    values: dict[str, Any] = {attr: _required_string(payload, key) for key, attr in REQUIRED_STRING_FIELDS}

    founded_year = coerce_founded_year(payload.get("foundedYear"))
    if founded_year is None:
        raise CompanyValidationError('Field "foundedYear" must be a positive integer year', field="foundedYear")

    for key, attr in LIST_FIELDS:
        values[attr] = parse_string_list(payload.get(key))

    last_updated = payload.get("lastUpdated")
    if isinstance(last_updated, str) and last_updated.strip():
        last_updated = last_updated.strip()
    else:
        last_updated = now_iso()

    return Company(
        **values,
        founded_year=founded_year,
        last_updated=last_updated,
        owner_id=owner_id,
        # Only an explicit JSON false makes a record private.
        is_public=payload.get("isPublic") is not False,
    )


def prepare_companies(payloads: list, owner_id: Optional[int]) -> list[Company]:
    """Validate a whole batch up front. Raises BatchValidationError at the first bad item."""
    companies: list[Company] = []
    for index, payload in enumerate(payloads):
        try:
            companies.append(prepare_company(payload, owner_id))
        except CompanyValidationError as exc:
            raise BatchValidationError(index, exc) from exc
    return companies


def extract_company_list(payload: Any) -> Optional[list]:
    """Return the company array from a bulk payload, or None if there is none.

    Accepts a bare array or an object with a "companies" array.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("companies"), list):
        return payload["companies"]
    return None
