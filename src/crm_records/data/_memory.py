# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
In-process backing store.

:class:`InMemoryStore` keeps rows in insertion-ordered dictionaries and applies
every batch all-or-nothing: each record in a batch is checked before any row is
touched. It is the store used by the test suite and the offline demos.
"""

from __future__ import annotations

import copy
import uuid
from typing import Any, Callable, Dict, List, Optional, Set

from ..core import _error_codes as codes
from ..core.config import CrmConfig
from ..core.errors import NotFoundError, StaleReferenceError, ValidationError
from ..models.record import Record, RecordState
from ..models.schema import TableSchema, get_schema
from ._store import BackingStore, WriteMode, matches


class InMemoryStore(BackingStore):
    """
    Deterministic in-memory backing store.

    :param config: Optional configuration.
    :type config: ~crm_records.core.config.CrmConfig or None
    :param id_factory: Callable producing new record identifiers. Defaults to random UUID4 strings.
    :type id_factory: Callable[[], str] or None

    Example::

        store = InMemoryStore()
        store.write([Record("account", {"name": "Contoso"})])
        [acct] = store.query("account", {"name": "Contoso"})
    """

    def __init__(
        self,
        config: Optional[CrmConfig] = None,
        *,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        super().__init__(config)
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        # table -> {id: field data}
        self._rows: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._deleted: Set[str] = set()

    def __len__(self) -> int:
        return sum(len(rows) for rows in self._rows.values())

    def count(self, table: str) -> int:
        return len(self._rows.get(get_schema(table).name, {}))

    def _table(self, schema: TableSchema) -> Dict[str, Dict[str, Any]]:
        return self._rows.setdefault(schema.name, {})

    def _exists(self, table: str, record_id: str) -> bool:
        return record_id in self._rows.get(table, {})

    # ------------------------------------------------------------------ hooks

    def _query(self, schema: TableSchema, predicate: Dict[str, Any]) -> List[Record]:
        return [
            Record(schema.name, copy.deepcopy(data), id=rid)
            for rid, data in self._table(schema).items()
            if matches(data, predicate)
        ]

    def _get(self, schema: TableSchema, record_id: str) -> Record:
        data = self._table(schema).get(record_id)
        if data is None:
            raise NotFoundError(
                f"{schema.name!r} record {record_id!r} does not exist",
                subcode=codes.NOT_FOUND_MISSING,
                details={"table": schema.name, "id": record_id},
            )
        return Record(schema.name, copy.deepcopy(data), id=record_id)

    def _write(self, records: List[Record], mode: WriteMode) -> None:
        # Identifiers for new rows are reserved up front so links to records
        # created in the same batch can be resolved in any order.
        new_ids: Dict[int, str] = {}
        new_tables: Dict[str, str] = {}
        for record in records:
            if record.id is None:
                rid = self._id_factory()
                new_ids[id(record)] = rid
                new_tables[rid] = get_schema(record.table).name
            else:
                self._check_target(record)

        resolved: List[Dict[str, Any]] = [self._resolve_links(r, new_ids, new_tables) for r in records]

        for record, data in zip(records, resolved):
            table = self._table(get_schema(record.table))
            if record.id is None:
                rid = new_ids[id(record)]
                table[rid] = copy.deepcopy(data)
                record.data.update(data)
                record._mark_persistent(rid)
            else:
                table[record.id] = copy.deepcopy(data)
                record.data.update(data)
                record._mark_persistent(record.id)

    def _check_target(self, record: Record) -> None:
        if record.id in self._deleted:
            raise StaleReferenceError(
                f"{record.table!r} record {record.id!r} was deleted",
                subcode=codes.STALE_DELETED,
                details={"table": record.table, "id": record.id},
            )
        if not self._exists(get_schema(record.table).name, record.id):
            raise NotFoundError(
                f"{record.table!r} record {record.id!r} does not exist",
                subcode=codes.NOT_FOUND_MISSING,
                details={"table": record.table, "id": record.id},
            )

    def _resolve_links(
        self, record: Record, new_ids: Dict[int, str], new_tables: Dict[str, str]
    ) -> Dict[str, Any]:
        schema = get_schema(record.table)
        data = dict(record.data)
        for spec in schema.link_fields():
            value = data.get(spec.name)
            if value is None:
                continue
            if isinstance(value, Record):
                target_id = value.id if value.id is not None else new_ids.get(id(value))
                live = value.state is not RecordState.DELETED
            else:
                target_id = value
                live = True
            if not live or target_id is None or not (
                self._exists(spec.target, target_id) or new_tables.get(target_id) == spec.target
            ):
                raise ValidationError(
                    f"{schema.name}.{spec.name} must reference an existing {spec.target!r} record",
                    subcode=codes.VALIDATION_BROKEN_LINK,
                    details={"table": schema.name, "field": spec.name, "target": spec.target},
                )
            data[spec.name] = target_id
        return data

    def _delete(self, records: List[Record]) -> None:
        ids = []
        for record in records:
            table = get_schema(record.table).name
            if not self._exists(table, record.id) or record.id in ids:
                raise NotFoundError(
                    f"{table!r} record {record.id!r} does not exist",
                    subcode=codes.NOT_FOUND_MISSING,
                    details={"table": table, "id": record.id},
                )
            ids.append(record.id)
        for record in records:
            del self._rows[get_schema(record.table).name][record.id]
            self._deleted.add(record.id)


__all__ = ["InMemoryStore"]
