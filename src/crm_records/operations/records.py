# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Record CRUD operations namespace."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

import pandas as pd

from ..data._store import WriteMode
from ..models.record import Record
from ..models.schema import get_schema
from ..utils._pandas import dataframe_to_records, records_to_dataframe

if TYPE_CHECKING:
    from ..client import CrmClient

_logger = logging.getLogger(__name__)


class RecordOperations:
    """
    Record CRUD operations with the same method for single and bulk calls.

    Accessed via ``client.records``. A single :class:`~crm_records.models.record.Record`
    or a list of records may be passed to every write method; lists are written in
    one batched call.

    Example:
        Single record operations::

            acct = client.records.new("account", name="Contoso")
            account_id = client.records.create(acct)

            acct["phone"] = "555-0100"
            client.records.update(acct)

            client.records.delete(acct)

        Bulk record operations::

            ids = client.records.create([
                client.records.new("account", name="Contoso"),
                client.records.new("account", name="Fabrikam"),
            ])
    """

    def __init__(self, client: "CrmClient") -> None:
        self._client = client

    def new(self, table: str, **fields: Any) -> Record:
        """
        Build a transient record of a declared kind.

        :param table: Record kind, e.g. ``"account"``.
        :type table: str
        :return: Transient record holding ``fields``.
        :rtype: Record
        :raises ~crm_records.core.errors.ValidationError: If the kind is unknown.
        """
        return Record(get_schema(table).name, dict(fields))

    def create(self, records: Union[Record, List[Record]]) -> Union[str, List[str]]:
        """
        Create one or more records.

        :param records: Single transient record or list of transient records.
        :type records: Record or list[Record]
        :return: The new identifier (single) or identifiers in input order (list).
        :rtype: str or list[str]

        :raises ~crm_records.core.errors.ValidationError: If a record is already persisted or fails schema checks.
        """
        return self._write(records, WriteMode.CREATE)

    def update(self, records: Union[Record, List[Record]]) -> None:
        """
        Update one or more persisted records with their current field values.

        :param records: Single record or list of records.
        :type records: Record or list[Record]

        :raises ~crm_records.core.errors.NotFoundError: If a record was never persisted or no longer exists.
        :raises ~crm_records.core.errors.StaleReferenceError: If a record was deleted.
        """
        self._write(records, WriteMode.UPDATE)
        return None

    def upsert(self, records: Union[Record, List[Record]]) -> Union[str, List[str]]:
        """
        Create transient records and update persistent ones in one batch.

        :param records: Single record or list of records.
        :type records: Record or list[Record]
        :return: Identifier(s) of the written records, in input order.
        :rtype: str or list[str]
        """
        return self._write(records, WriteMode.UPSERT)

    def _write(self, records: Union[Record, List[Record]], mode: WriteMode) -> Union[str, List[str]]:
        store = self._client._store
        if isinstance(records, Record):
            store.write([records], mode)
            return records.id
        if not isinstance(records, list):
            raise TypeError("records must be Record or list[Record]")
        store.write(records, mode)
        _logger.debug("%s %d record(s)", mode.value, len(records))
        return [r.id for r in records]

    def delete(self, records: Union[Record, List[Record]]) -> None:
        """
        Delete one or more records in one batched call.

        :param records: Single record or list of records.
        :type records: Record or list[Record]

        :raises ~crm_records.core.errors.NotFoundError: If a record was never persisted or was already deleted.
        """
        if isinstance(records, Record):
            records = [records]
        if not isinstance(records, list):
            raise TypeError("records must be Record or list[Record]")
        self._client._store.delete(records)
        return None

    def get(self, table: str, record_id: str) -> Record:
        """
        Get a single record by identifier.

        :param table: Record kind.
        :type table: str
        :param record_id: Record GUID.
        :type record_id: str
        :return: Persistent record handle.
        :rtype: Record

        :raises TypeError: If ``record_id`` is not a string.
        :raises ~crm_records.core.errors.NotFoundError: If the record does not exist.
        """
        if not isinstance(record_id, str):
            raise TypeError("record_id must be str")
        return self._client._store.get(table, record_id)

    def query(self, table: str, filter: Optional[Dict[str, Any]] = None, **field_equals: Any) -> List[Record]:
        """
        Query records by field equality.

        Keyword arguments and ``filter`` are merged; a list, tuple or set value
        matches any of its members.

        Example::

            client.records.query("account", name="Contoso")
            client.records.query("contact", {"lastname": ["Doe", "Smith"]})
        """
        predicate = dict(filter or {})
        predicate.update(field_equals)
        return self._client._store.query(table, predicate)

    def to_dataframe(self, records: List[Record], include_metadata: bool = True) -> pd.DataFrame:
        """
        Tabulate records as a :class:`pandas.DataFrame`.

        :param records: Records to tabulate.
        :type records: list[Record]
        :param include_metadata: Prefix ``id``, ``table`` and ``state`` columns.
        :type include_metadata: bool
        :rtype: pandas.DataFrame
        """
        return records_to_dataframe(records, include_metadata=include_metadata)

    def create_from_dataframe(self, table: str, df: pd.DataFrame) -> List[str]:
        """
        Create one record per DataFrame row in a single batch.

        :param table: Record kind for every row.
        :type table: str
        :param df: Columns are field names; missing values are omitted.
        :type df: pandas.DataFrame
        :return: New identifiers in row order.
        :rtype: list[str]
        """
        if not isinstance(df, pd.DataFrame):
            raise TypeError("df must be a pandas DataFrame")
        return self._write(dataframe_to_records(df, get_schema(table).name), WriteMode.CREATE)


__all__ = ["RecordOperations"]
