# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Worked create/update/upsert/delete examples.

Each recipe is a few lines on top of ``client.records`` and
:class:`~crm_records.operations.upsert.UpsertHelper`: build one or a few records,
optionally look up existing ones, write them back, and return an identifier or
nothing.
"""

from __future__ import annotations

import datetime as _dt
from typing import List, TYPE_CHECKING

from ..core.errors import ValidationError
from ..models.record import Record

if TYPE_CHECKING:
    from ..client import CrmClient


class DmlRecipes:
    """
    Create/update/upsert/delete examples for accounts, contacts, opportunities, leads and cases.

    Accessed via ``client.recipes``.
    """

    def __init__(self, client: "CrmClient") -> None:
        self._client = client

    @property
    def _records(self):
        return self._client.records

    def insert_new_account(self) -> str:
        """Insert an account named "New Account" and return its id."""
        return self._records.create(self._records.new("account", name="New Account"))

    def create_account(self, name: str, industry: str) -> None:
        """Insert an account with the given name and industry."""
        self._records.create(self._records.new("account", name=name, industry=industry))

    def insert_new_contact(self, account_id: str) -> str:
        """Insert a contact "John Doe" linked to ``account_id`` and return its id."""
        contact = self._records.new("contact", firstname="John", lastname="Doe", accountid=account_id)
        return self._records.create(contact)

    def update_account_name(self, account_id: str, new_name: str) -> None:
        account = self._records.get("account", account_id)
        account["name"] = new_name
        self._records.update(account)

    def update_opportunity_and_case(self, opportunity_id: str, case_id: str, new_stage: str, new_origin: str) -> None:
        """Update an opportunity's stage and a case's origin in one batch."""
        opportunity = self._records.get("opportunity", opportunity_id)
        case = self._records.get("case", case_id)
        opportunity["stagename"] = new_stage
        case["origin"] = new_origin
        self._records.update([opportunity, case])

    def update_opportunity_amount(self, opportunity_ids: List[str], amount: float) -> None:
        """Set the same amount on several opportunities in one batch."""
        opportunities = [self._records.get("opportunity", oid) for oid in opportunity_ids]
        for opportunity in opportunities:
            opportunity["amount"] = amount
        self._records.update(opportunities)

    def upsert_opportunities(self, account_name: str, opportunity_names: List[str]) -> List[Record]:
        """
        Make sure an account and one opportunity per name exist, all linked together.

        New opportunities start in "Prospecting" with a close date three months out.
        """
        account = self._client.upsert_helper("account").find_or_create(account_name)
        close_date = _dt.date.today() + _dt.timedelta(days=90)
        return self._client.upsert_helper("opportunity").batch_upsert_by_name(
            opportunity_names,
            lambda name: {"accountid": account.id},
            create_defaults={"stagename": "Prospecting", "closedate": close_date},
        )

    def upsert_account(self, account_name: str) -> Record:
        """Update the named account's description, or create it if missing."""
        return self._client.upsert_helper("account").find_or_create(
            account_name,
            {"description": "New Account"},
            {"description": "Updated Account"},
        )

    def upsert_accounts_with_contacts(self, contact_last_names: List[str]) -> List[Record]:
        """
        Upsert one account per last name, then insert a contact linked to it.

        Repeated last names share one account but get a contact each.
        """
        accounts = self._client.upsert_helper("account").batch_upsert_by_name(contact_last_names)
        contacts = [
            self._records.new("contact", lastname=name, accountid=account.id)
            for name, account in zip(contact_last_names, accounts)
        ]
        self._records.create(contacts)
        return contacts

    def delete_leads(self, leads: List[Record]) -> None:
        self._client.upsert_helper("lead").delete_all(leads)

    def create_and_delete_cases(self, account_id: str, num_cases: int) -> List[Record]:
        """Create ``num_cases`` cases for an account, then delete them; returns the deleted handles."""
        if not isinstance(num_cases, int) or isinstance(num_cases, bool) or num_cases < 0:
            raise ValidationError(f"num_cases must be a non-negative integer, got {num_cases!r}")
        cases = [
            self._records.new(
                "case",
                subject=f"Case {n}",
                status="New",
                origin="Phone",
                accountid=account_id,
            )
            for n in range(1, num_cases + 1)
        ]
        if not cases:
            return cases
        self._records.create(cases)
        self._records.delete(cases)
        return cases


__all__ = ["DmlRecipes"]
