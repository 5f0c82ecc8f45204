# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Walk through the create/update/upsert/delete recipes against a Dataverse environment.

Run with an org URL to use the Web API, or with ``--offline`` to use the in-memory store::

    python examples/quickstart.py https://yourorg.crm.dynamics.com
    python examples/quickstart.py --offline
"""

import logging
import sys
from pathlib import Path

# Add src to PYTHONPATH for local runs
sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from crm_records.client import CrmClient
from crm_records.core.errors import CrmError


def log_call(call: str) -> None:
    print({"call": call})


def run(client: CrmClient) -> None:
    recipes = client.recipes

    log_call("recipes.insert_new_account()")
    account_id = recipes.insert_new_account()
    print(f"  account id: {account_id}")

    log_call("recipes.insert_new_contact(account_id)")
    print(f"  contact id: {recipes.insert_new_contact(account_id)}")

    log_call("recipes.upsert_account('Contoso') twice")
    first = recipes.upsert_account("Contoso")
    second = recipes.upsert_account("Contoso")
    print(f"  {first.id} -> {first['description']!r}, then {second['description']!r}")

    log_call("recipes.upsert_accounts_with_contacts(['Doe', 'Jane', 'Doe'])")
    contacts = recipes.upsert_accounts_with_contacts(["Doe", "Jane", "Doe"])
    print(client.records.to_dataframe(contacts)[["id", "lastname", "accountid"]])

    log_call("recipes.create_and_delete_cases(account_id, 3)")
    cases = recipes.create_and_delete_cases(account_id, 3)
    print(f"  {len(cases)} case(s) created then deleted")

    log_call("cleanup")
    client.records.delete(contacts)
    client.upsert_helper("account").delete_all(
        client.records.query("account", name=["New Account", "Contoso", "Doe", "Jane"])
    )


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) != 2:
        print(__doc__)
        return 1
    if sys.argv[1] == "--offline":
        client = CrmClient.in_memory()
    else:
        from azure.identity import InteractiveBrowserCredential

        client = CrmClient.from_dataverse(sys.argv[1].rstrip("/"), InteractiveBrowserCredential())
    try:
        with client:
            run(client)
    except CrmError as ex:
        print(f"Failed: {ex.to_dict()}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
