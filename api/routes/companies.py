"""
api/routes/companies.py -- Directory company routes.

Routes (in registration order to avoid path capture conflicts):
  GET  /api/companies              -- public list, or ?mine=true for the caller's own
  POST /api/companies              -- create one company owned by the caller
  POST /api/companies/import       -- bulk create, all-or-nothing
  GET  /api/companies/{company_id} -- single record, visibility checked

Auth policy:
  - GET list: anonymous allowed; ?mine=true requires auth (401 otherwise).
  - GET detail: anonymous allowed for public records; private records need
    the owner's token. 403 for "exists but restricted", 404 for "absent".
  - POST create / import: require auth; owner is always the caller.

Validation happens before any storage call. Import validates every item
first, so a bad item at index N means nothing from the batch is stored.
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from api.body import read_json_body
from api.models import CompanyResponse, ImportResponse
from auth.dependencies import get_current_user, try_get_current_user
from auth.models import Identity
from directory.store import CompanyStore, can_view
from directory.validation import extract_company_list, prepare_companies, prepare_company

router = APIRouter()

# Bounded so the id always fits a SQLite INTEGER.
_ID_RE = re.compile(r"^[0-9]{1,18}$")


# ---------------------------------------------------------------------------
# GET /companies -- public listing or the caller's own records
# ---------------------------------------------------------------------------


@router.get("/companies", response_model=list[CompanyResponse])
def list_companies(request: Request, mine: Optional[str] = None) -> list[CompanyResponse]:
    """Public companies by name, or with ?mine=true every company the caller owns."""
    store: CompanyStore = request.app.state.company_store
    if mine == "true":
        user = get_current_user(request)
        companies = store.list_owned_by(user.id)
    else:
        companies = store.list_public()
    return [CompanyResponse.from_company(c) for c in companies]


# ---------------------------------------------------------------------------
# POST /companies -- create one company
# ---------------------------------------------------------------------------


@router.post("/companies", response_model=CompanyResponse, status_code=201)
async def create_company(
    request: Request,
    current_user: Identity = Depends(get_current_user),
) -> CompanyResponse:
    """Validate the body and store it as a company owned by the caller.

    Validation failures surface as 400 with a field-specific message via the
    CompanyValidationError handler in api/main.py.
    """
    payload = await read_json_body(request)
    company = prepare_company(payload, owner_id=current_user.id)
    store: CompanyStore = request.app.state.company_store
    return CompanyResponse.from_company(store.create_company(company))


# ---------------------------------------------------------------------------
# POST /companies/import -- bulk create (must be before /companies/{company_id})
# ---------------------------------------------------------------------------


@router.post("/companies/import", response_model=ImportResponse, status_code=201)
async def import_companies(
    request: Request,
    current_user: Identity = Depends(get_current_user),
) -> ImportResponse:
    """Insert many companies owned by the caller in a single transaction.

    Body: a JSON array of company objects, or {"companies": [...]}.
    The first invalid item aborts the whole batch with a 400 naming its index.
    """
    payloads = extract_company_list(await read_json_body(request))
    if payloads is None:
        raise HTTPException(status_code=400, detail="Expected an array of companies in the request body")

    companies = prepare_companies(payloads, owner_id=current_user.id)
    store: CompanyStore = request.app.state.company_store
    created = store.create_companies(companies)
    return ImportResponse(
        inserted=len(created),
        companies=[CompanyResponse.from_company(c) for c in created],
    )


# ---------------------------------------------------------------------------
# GET /companies/{company_id} -- single record
# ---------------------------------------------------------------------------


@router.get("/companies/{company_id}", response_model=CompanyResponse)
def get_company(request: Request, company_id: str) -> CompanyResponse:
    """Return one company. Private records are visible to their owner only."""
    if not _ID_RE.match(company_id):
        raise HTTPException(status_code=400, detail="Invalid company id")

    store: CompanyStore = request.app.state.company_store
    company = store.get_company(int(company_id))
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")

    if not company.is_public:
        user = try_get_current_user(request)
        if not can_view(company, user.id if user else None):
            raise HTTPException(status_code=403, detail="Access to this company is restricted")

    return CompanyResponse.from_company(company)
