# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import datetime as dt

import pytest

from crm_records.core import _error_codes as codes
from crm_records.core.errors import NotFoundError, StaleReferenceError, ValidationError
from crm_records.data._store import WriteMode, matches
from crm_records.models.record import Record, RecordState


def _account(name, **fields):
    return Record("account", {"name": name, **fields})


def test_create_assigns_ids(store):
    a, b = _account("A"), _account("B")
    out = store.write([a, b], WriteMode.CREATE)
    assert out == [a, b]
    assert a.id == "00000000-0000-0000-0000-000000000001"
    assert b.id == "00000000-0000-0000-0000-000000000002"
    assert a.state is RecordState.PERSISTENT
    assert store.count("account") == 2


def test_empty_write_is_noop(store):
    assert store.write([], WriteMode.CREATE) == []
    assert len(store) == 0


def test_query_returns_fresh_handles(store):
    a = _account("A", industry="Tech")
    store.write([a])
    [found] = store.query("account", {"name": "A"})
    assert found is not a
    assert found.id == a.id
    found["industry"] = "Retail"
    assert store.get("account", a.id)["industry"] == "Tech"


def test_query_membership_and_order(store):
    store.write([_account("A"), _account("B"), _account("C")])
    names = [r["name"] for r in store.query("account", {"name": ["C", "A"]})]
    assert names == ["A", "C"]
    assert store.query("account", {"name": []}) == []
    assert len(store.query("account")) == 3


def test_query_unknown_field(store):
    with pytest.raises(ValidationError):
        store.query("account", {"shoe_size": 9})


def test_update_persists_changes(store):
    a = _account("A")
    store.write([a], WriteMode.CREATE)
    a["industry"] = "Banking"
    store.write([a], WriteMode.UPDATE)
    assert store.get("account", a.id)["industry"] == "Banking"


def test_update_drops_removed_fields(store):
    a = _account("A", industry="Old")
    store.write([a], WriteMode.CREATE)
    del a["industry"]
    store.write([a], WriteMode.UPDATE)
    assert store.get("account", a.id).data == {"name": "A"}
    assert store.query("account", {"industry": "Old"}) == []


def test_update_transient_is_not_found(store):
    with pytest.raises(NotFoundError) as exc:
        store.write([_account("A")], WriteMode.UPDATE)
    assert exc.value.subcode == codes.NOT_FOUND_UNPERSISTED


def test_update_unknown_id_is_not_found(store):
    ghost = Record("account", {"name": "Ghost"}, id="99999999-9999-9999-9999-999999999999")
    with pytest.raises(NotFoundError):
        store.write([ghost], WriteMode.UPDATE)


def test_create_persistent_is_rejected(store):
    a = _account("A")
    store.write([a])
    with pytest.raises(ValidationError):
        store.write([a], WriteMode.CREATE)


def test_write_after_delete_is_stale(store):
    a = _account("A")
    store.write([a])
    store.delete([a])
    assert a.state is RecordState.DELETED
    with pytest.raises(StaleReferenceError):
        store.write([a], WriteMode.UPSERT)


def test_write_through_other_handle_after_delete_is_stale(store):
    a = _account("A")
    store.write([a])
    [other] = store.query("account", {"name": "A"})
    store.delete([a])
    with pytest.raises(StaleReferenceError):
        store.write([other], WriteMode.UPDATE)


def test_delete_unpersisted_and_twice(store):
    with pytest.raises(NotFoundError):
        store.delete([_account("A")])
    a = _account("B")
    store.write([a])
    store.delete([a])
    with pytest.raises(NotFoundError):
        store.delete([a])


def test_delete_is_all_or_nothing(store):
    a, b = _account("A"), _account("B")
    store.write([a, b])
    stranger = Record("account", {"name": "X"}, id="99999999-9999-9999-9999-999999999999")
    with pytest.raises(NotFoundError):
        store.delete([a, stranger])
    assert store.count("account") == 2
    assert a.is_persistent


def test_batch_write_is_all_or_nothing(store):
    good = _account("Good")
    bad = Record("account", {"numberofemployees": 5})  # missing name
    with pytest.raises(ValidationError):
        store.write([good, bad])
    assert good.id is None
    assert len(store) == 0


def test_link_to_existing_record(store):
    acct = _account("Acme")
    store.write([acct])
    contact = Record("contact", {"lastname": "Doe", "accountid": acct.id})
    store.write([contact])
    assert store.get("contact", contact.id)["accountid"] == acct.id


def test_query_link_by_record_or_id(store):
    acct = _account("Acme")
    other = _account("Other")
    contact = Record("contact", {"lastname": "Doe", "accountid": acct})
    store.write([acct, other, contact])

    assert [r.id for r in store.query("contact", {"accountid": acct.id})] == [contact.id]
    assert [r.id for r in store.query("contact", {"accountid": acct})] == [contact.id]
    assert [r.id for r in store.query("contact", {"accountid": [other, acct]})] == [contact.id]
    assert store.query("contact", {"accountid": other}) == []


def test_query_link_by_unsaved_record_rejected(store):
    with pytest.raises(ValidationError) as exc:
        store.query("contact", {"accountid": _account("Acme")})
    assert exc.value.subcode == codes.VALIDATION_BROKEN_LINK


def test_link_to_record_in_same_batch(store):
    acct = _account("Acme")
    contact = Record("contact", {"lastname": "Doe", "accountid": acct})
    store.write([contact, acct], WriteMode.CREATE)
    assert contact["accountid"] == acct.id
    assert store.get("contact", contact.id)["accountid"] == acct.id


def test_broken_links_rejected(store):
    with pytest.raises(ValidationError) as exc:
        store.write([Record("contact", {"lastname": "Doe", "accountid": "no-such-id"})])
    assert exc.value.subcode == codes.VALIDATION_BROKEN_LINK

    unsaved = _account("Elsewhere")
    with pytest.raises(ValidationError):
        store.write([Record("contact", {"lastname": "Doe", "accountid": unsaved})])


def test_link_to_deleted_record_rejected(store):
    acct = _account("Acme")
    store.write([acct])
    store.delete([acct])
    with pytest.raises(ValidationError):
        store.write([Record("contact", {"lastname": "Doe", "accountid": acct.id})])


def test_dates_round_trip(store):
    opp = Record("opportunity", {"name": "Deal", "stagename": "Prospecting", "closedate": dt.date(2025, 3, 1)})
    store.write([opp])
    assert store.get("opportunity", opp.id)["closedate"] == dt.date(2025, 3, 1)


def test_get_missing(store):
    with pytest.raises(NotFoundError):
        store.get("account", "99999999-9999-9999-9999-999999999999")
    with pytest.raises(NotFoundError):
        store.get("account", "")


def test_duplicate_handles_written_once(store):
    a = _account("A")
    assert store.write([a, a]) == [a]
    assert store.count("account") == 1


def test_matches_predicate():
    assert matches({"name": "A"}, {"name": "A"})
    assert matches({"name": "A"}, {"name": ("A", "B")})
    assert not matches({"name": "A"}, {"name": "a"})
    assert matches({"name": "A"}, {})
