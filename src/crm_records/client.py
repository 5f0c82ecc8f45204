# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

from typing import Dict, Optional, Tuple

import requests
from azure.core.credentials import TokenCredential

from .core.config import CrmConfig
from .data._memory import InMemoryStore
from .data._odata import ODataStore
from .data._store import BackingStore
from .operations.records import RecordOperations
from .operations.recipes import DmlRecipes
from .operations.upsert import UpsertHelper


class CrmClient:
    """
    High-level client for CRM record operations.

    The client owns one backing store, passed in explicitly, and organises
    operations under namespaces:

    - ``client.records``: Record CRUD operations (create, update, upsert, delete, get, query)
    - ``client.upsert_helper(table)``: Natural-key find-or-create and batch upsert
    - ``client.recipes``: Short worked create/update/upsert/delete examples

    **Context Manager Support (Recommended)**::

        with CrmClient.from_dataverse(base_url, credential) as client:
            account_id = client.recipes.insert_new_account()
        # HTTP session closed

    :param store: Backing store every operation is delegated to.
    :type store: ~crm_records.data._store.BackingStore

    :raises TypeError: If ``store`` is not a :class:`~crm_records.data._store.BackingStore`.

    Example:
        Offline, against the in-memory store::

            from crm_records.client import CrmClient

            client = CrmClient.in_memory()
            acct = client.recipes.upsert_account("Contoso")
            print(acct.id, acct["description"])  # <guid> New Account
    """

    def __init__(self, store: BackingStore) -> None:
        if not isinstance(store, BackingStore):
            raise TypeError("store must be a BackingStore instance.")
        self._store = store
        self._helpers: Dict[Tuple[str, Optional[str]], UpsertHelper] = {}

        self.records = RecordOperations(self)
        self.recipes = DmlRecipes(self)

    @classmethod
    def in_memory(cls, config: Optional[CrmConfig] = None) -> "CrmClient":
        """Create a client backed by a fresh :class:`~crm_records.data._memory.InMemoryStore`."""
        return cls(InMemoryStore(config))

    @classmethod
    def from_dataverse(
        cls,
        base_url: str,
        credential: TokenCredential,
        config: Optional[CrmConfig] = None,
    ) -> "CrmClient":
        """
        Create a client backed by a Dataverse environment's Web API.

        The store reuses one ``requests.Session`` until :meth:`close` is called.

        :param base_url: Environment URL, e.g. ``"https://org.crm.dynamics.com"``.
        :type base_url: str
        :param credential: Azure Identity credential.
        :type credential: ~azure.core.credentials.TokenCredential
        :param config: Optional configuration.
        :type config: ~crm_records.core.config.CrmConfig or None
        """
        store = ODataStore(base_url, credential, config, session=requests.Session())
        return cls(store)

    @property
    def store(self) -> BackingStore:
        return self._store

    @property
    def config(self) -> CrmConfig:
        """Configuration of the backing store."""
        return self._store.config

    def upsert_helper(self, table: str, natural_key: Optional[str] = None) -> UpsertHelper:
        """
        Return the (cached) upsert helper for a record kind.

        :param table: Record kind, e.g. ``"account"``.
        :type table: str
        :param natural_key: Lookup field; defaults to the kind's declared natural key.
        :type natural_key: str or None
        :rtype: ~crm_records.operations.upsert.UpsertHelper
        """
        cache_key = ((table or "").strip().lower(), natural_key)
        helper = self._helpers.get(cache_key)
        if helper is None:
            helper = UpsertHelper(self._store, table, natural_key)
            self._helpers[cache_key] = helper
        return helper

    def __enter__(self) -> "CrmClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """
        Release the backing store's resources. Safe to call multiple times.
        """
        self._store.close()


__all__ = ["CrmClient"]
