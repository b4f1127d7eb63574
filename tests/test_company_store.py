"""Unit tests for directory/store.py -- CompanyStore persistence and visibility.

Covers:
- create_company() assigns id and timestamps, round-trips list fields
- list_public() excludes private rows and orders by name
- list_owned_by() returns both visibilities, most recently updated first
- can_view() for public, owner, other user and anonymous
- create_companies() is all-or-nothing
- replace_all() swaps the whole table in one transaction
"""

import pytest
from sqlalchemy.exc import IntegrityError

from directory.models import Company
from directory.store import CompanyStore, can_view
from directory.validation import prepare_company
from conftest import company_payload


@pytest.fixture
def store():
    s = CompanyStore("sqlite:///:memory:")
    yield s
    s.close()


def _company(name: str, owner_id=None, is_public=True) -> Company:
    return prepare_company(company_payload(companyName=name, isPublic=is_public), owner_id=owner_id)


def test_create_company_assigns_id_and_timestamps(store):
    created = store.create_company(_company("Acme", owner_id=1))
    assert created.id is not None
    assert created.created_at
    assert created.created_at == created.updated_at
    assert created.management == ["Jan Kowalski"]
    assert created.products_and_services == ["Bolts", "Nuts", "Washers"]

    fetched = store.get_company(created.id)
    assert fetched == created


def test_get_company_missing(store):
    assert store.get_company(999) is None


def test_list_public_excludes_private_and_sorts_by_name(store):
    store.create_company(_company("Zeta", owner_id=1))
    store.create_company(_company("Alpha", owner_id=2))
    store.create_company(_company("Hidden", owner_id=1, is_public=False))
    store.create_company(_company("Mid"))

    names = [c.company_name for c in store.list_public()]
    assert names == ["Alpha", "Mid", "Zeta"]


def test_list_owned_by_includes_private_newest_first(store):
    first = store.create_company(_company("First", owner_id=1))
    second = store.create_company(_company("Second", owner_id=1, is_public=False))
    store.create_company(_company("Other", owner_id=2))

    owned = store.list_owned_by(1)
    assert [c.id for c in owned] == [second.id, first.id]
    assert store.list_owned_by(3) == []


def test_can_view():
    public = _company("Open", owner_id=1)
    private = _company("Closed", owner_id=1, is_public=False)

    assert can_view(public, None) is True
    assert can_view(public, 2) is True
    assert can_view(private, 1) is True
    assert can_view(private, 2) is False
    assert can_view(private, None) is False


def test_create_companies_inserts_batch(store):
    created = store.create_companies([_company("A", owner_id=1), _company("B", owner_id=1)])
    assert len(created) == 2
    assert created[0].id != created[1].id
    assert store.count() == 2


def test_create_companies_is_atomic(store):
    bad = _company("Bad", owner_id=1)
    bad.company_name = None  # violates NOT NULL
    with pytest.raises(IntegrityError):
        store.create_companies([_company("Good", owner_id=1), bad])
    assert store.count() == 0


def test_replace_all(store):
    store.create_company(_company("Old", owner_id=1))
    store.create_company(_company("Older", owner_id=1, is_public=False))

    created = store.replace_all([_company("New")])
    assert [c.company_name for c in created] == ["New"]
    assert store.count() == 1
    assert [c.company_name for c in store.list_public()] == ["New"]


def test_replace_all_rolls_back_on_failure(store):
    store.create_company(_company("Keep", owner_id=1))
    bad = _company("Bad")
    bad.status = None
    with pytest.raises(IntegrityError):
        store.replace_all([bad])
    assert [c.company_name for c in store.list_public()] == ["Keep"]
