"""
directory/seed.py -- Load a JSON file of companies into the directory.

The seed file uses the same external shape as POST /api/companies/import:
either a top-level array of company objects or {"companies": [...]}.

Pipeline:
  file -> load_seed_file() -> list[dict] -> seed_companies()
  -> prepare_companies() (whole batch validated first)
  -> CompanyStore.create_companies() (one transaction)

Seeded records have no owner and are public unless the record says
"isPublic": false.
"""

import json
import logging
from pathlib import Path

from directory.models import Company
from directory.store import CompanyStore
from directory.validation import extract_company_list, prepare_companies

logger = logging.getLogger("bizdir.directory")


class SeedFileError(ValueError):
    """The seed file is unreadable, not JSON, or not a list of companies."""


def load_seed_file(path: str) -> list:
    """Read and parse a seed file. Raises SeedFileError on any problem."""
    file_path = Path(path).resolve()
    if not file_path.is_file():
        raise SeedFileError(f"'{path}' is not a readable file.")
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SeedFileError(f"Could not read '{path}': {exc}") from exc
    except ValueError as exc:
        raise SeedFileError(f"'{path}' is not valid JSON: {exc}") from exc
    companies = extract_company_list(payload)
    if companies is None:
        raise SeedFileError(f"'{path}' must contain an array of companies.")
    return companies


def seed_companies(store: CompanyStore, payloads: list, replace: bool = False) -> list[Company]:
    """Validate payloads and insert them. Returns the stored records.

    Raises BatchValidationError before anything is written if an item is
    invalid. With replace=True, existing companies are deleted in the same
    transaction as the insert.
    """
    companies = prepare_companies(payloads, owner_id=None)
    if replace:
        return store.replace_all(companies)
    return store.create_companies(companies)
