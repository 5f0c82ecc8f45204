# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Unit tests for the worked create/update/upsert/delete recipes."""

import datetime as dt

import pytest

from crm_records.core.errors import NotFoundError, StaleReferenceError, ValidationError
from crm_records.models.record import Record


@pytest.fixture
def recipes(client):
    return client.recipes


def _opportunity(client, name, **fields):
    opp = client.records.new("opportunity", name=name, stagename="Prospecting", closedate=dt.date(2025, 6, 30), **fields)
    client.records.create(opp)
    return opp


def test_insert_new_account(client, recipes):
    rid = recipes.insert_new_account()
    assert client.records.get("account", rid)["name"] == "New Account"


def test_create_account(client, recipes):
    assert recipes.create_account("Initech", "Software") is None
    [acct] = client.records.query("account", name="Initech")
    assert acct["industry"] == "Software"


def test_insert_new_contact_links_account(client, recipes):
    account_id = recipes.insert_new_account()
    contact_id = recipes.insert_new_contact(account_id)
    contact = client.records.get("contact", contact_id)
    assert (contact["firstname"], contact["lastname"]) == ("John", "Doe")
    assert contact["accountid"] == account_id


def test_insert_new_contact_requires_existing_account(recipes):
    with pytest.raises(ValidationError):
        recipes.insert_new_contact("99999999-9999-9999-9999-999999999999")


def test_update_account_name(client, recipes):
    rid = recipes.insert_new_account()
    recipes.update_account_name(rid, "Renamed")
    assert client.records.get("account", rid)["name"] == "Renamed"


def test_update_account_name_missing(recipes):
    with pytest.raises(NotFoundError):
        recipes.update_account_name("99999999-9999-9999-9999-999999999999", "Nope")


def test_update_opportunity_and_case(client, recipes):
    opp = _opportunity(client, "Deal")
    case = client.records.new("case", subject="Broken", status="New", origin="Email")
    client.records.create(case)

    recipes.update_opportunity_and_case(opp.id, case.id, "Closed Won", "Web")

    assert client.records.get("opportunity", opp.id)["stagename"] == "Closed Won"
    assert client.records.get("case", case.id)["origin"] == "Web"


def test_update_opportunity_amount(client, recipes):
    ids = [_opportunity(client, f"Deal {n}").id for n in range(3)]
    recipes.update_opportunity_amount(ids, 2500.0)
    assert {client.records.get("opportunity", i)["amount"] for i in ids} == {2500.0}


def test_upsert_opportunities(client, recipes):
    existing_account = client.records.new("account", name="Acme")
    client.records.create(existing_account)
    old = _opportunity(client, "Renewal")

    opps = recipes.upsert_opportunities("Acme", ["Renewal", "Upsell", "Renewal"])

    assert len(opps) == 3
    assert opps[0] is opps[2]
    assert opps[0].id == old.id
    assert all(o["accountid"] == existing_account.id for o in opps)
    assert opps[1]["stagename"] == "Prospecting"
    assert opps[1]["closedate"] > dt.date.today()
    assert len(client.records.query("account", name="Acme")) == 1


def test_upsert_opportunities_creates_account(client, recipes):
    opps = recipes.upsert_opportunities("Globex", ["First"])
    [acct] = client.records.query("account", name="Globex")
    assert opps[0]["accountid"] == acct.id


def test_upsert_account_new_then_updated(client, recipes):
    created = recipes.upsert_account("Umbrella")
    assert created["description"] == "New Account"

    updated = recipes.upsert_account("Umbrella")
    assert updated.id == created.id
    assert updated["description"] == "Updated Account"


def test_upsert_accounts_with_contacts(client, recipes):
    client.records.create(client.records.new("account", name="Jane"))

    contacts = recipes.upsert_accounts_with_contacts(["Doe", "Jane", "Doe"])

    assert [c["lastname"] for c in contacts] == ["Doe", "Jane", "Doe"]
    assert all(c.is_persistent for c in contacts)
    assert contacts[0]["accountid"] == contacts[2]["accountid"]
    assert contacts[0].id != contacts[2].id
    assert len(client.records.query("account")) == 2
    [jane] = client.records.query("account", name="Jane")
    assert contacts[1]["accountid"] == jane.id


def test_upsert_accounts_with_contacts_empty(recipes):
    assert recipes.upsert_accounts_with_contacts([]) == []


def test_delete_leads(client, recipes):
    leads = [client.records.new("lead", lastname=f"Lead{n}", company="Hooli") for n in range(2)]
    client.records.create(leads)

    recipes.delete_leads(leads)

    assert client.records.query("lead") == []
    with pytest.raises(StaleReferenceError):
        client.records.update(leads[0])


def test_delete_leads_empty_is_noop(recipes):
    recipes.delete_leads([])


def test_create_and_delete_cases(client, recipes):
    account_id = recipes.insert_new_account()

    cases = recipes.create_and_delete_cases(account_id, 3)

    assert [c["subject"] for c in cases] == ["Case 1", "Case 2", "Case 3"]
    assert all(c.is_deleted and c.id for c in cases)
    assert client.records.query("case") == []


def test_create_and_delete_cases_zero(recipes):
    assert recipes.create_and_delete_cases("unused", 0) == []


@pytest.mark.parametrize("bad", [-1, 1.5, "2", True])
def test_create_and_delete_cases_rejects_bad_count(recipes, bad):
    with pytest.raises(ValidationError):
        recipes.create_and_delete_cases("unused", bad)


def test_recipes_records_are_records(client, recipes):
    assert isinstance(recipes.upsert_account("Typed"), Record)
