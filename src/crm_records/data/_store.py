# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Backing store contract.

The backing store is the external persistence service every record operation
delegates to. :class:`BackingStore` fixes the three primitives (query, write,
delete) and performs the lifecycle and schema checks that are common to all
implementations before handing a batch to the concrete ``_query``/``_write``/
``_delete`` hooks.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..core import _error_codes as codes
from ..core.config import CrmConfig
from ..core.errors import NotFoundError, StaleReferenceError, ValidationError
from ..models.record import Record, RecordState
from ..models.schema import TableSchema, get_schema

_logger = logging.getLogger(__name__)

Predicate = Mapping[str, Any]
_MULTI_VALUE_TYPES = (list, tuple, set, frozenset)


class WriteMode(str, Enum):
    """How a batch write treats its records."""

    CREATE = "create"
    UPDATE = "update"
    UPSERT = "upsert"


def is_multi_value(value: Any) -> bool:
    return isinstance(value, _MULTI_VALUE_TYPES)


def matches(data: Mapping[str, Any], predicate: Predicate) -> bool:
    """
    Evaluate a field-equality predicate against record data.

    A predicate value that is a list, tuple or set matches when the field equals
    any of its members; any other value must compare equal.
    """
    for key, expected in predicate.items():
        actual = data.get(key)
        if is_multi_value(expected):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


class BackingStore(ABC):
    """
    Abstract persistence collaborator.

    Subclasses implement ``_query``, ``_write``, ``_delete`` and ``_get``. The public
    methods validate input, enforce the ``TRANSIENT -> PERSISTENT -> DELETED``
    lifecycle, and update record handles after a successful call.

    :param config: Optional configuration. Defaults to :meth:`CrmConfig.from_env`.
    :type config: ~crm_records.core.config.CrmConfig or None
    """

    def __init__(self, config: Optional[CrmConfig] = None) -> None:
        self.config = config or CrmConfig.from_env()

    # ------------------------------------------------------------------ query

    def query(self, table: str, predicate: Optional[Predicate] = None) -> List[Record]:
        """
        Return records of ``table`` matching a field-equality predicate.

        :param table: Record kind, e.g. ``"account"``.
        :type table: str
        :param predicate: Mapping of field name to expected value (or collection of values).
        :type predicate: dict[str, Any] or None
        :return: Fresh persistent record handles, in store order.
        :rtype: list[Record]
        :raises ~crm_records.core.errors.ValidationError: If the table or a predicate field is unknown.
        """
        schema = get_schema(table)
        predicate = dict(predicate or {})
        for key, value in predicate.items():
            if not schema.has_field(key):
                raise ValidationError(
                    f"Cannot filter {schema.name!r} on unknown field {key!r}",
                    subcode=codes.VALIDATION_UNKNOWN_FIELD,
                    details={"table": schema.name, "field": key},
                )
            if is_multi_value(value):
                predicate[key] = [_record_id(schema, key, v) for v in value]
            else:
                predicate[key] = _record_id(schema, key, value)
        # An empty membership test matches nothing.
        if any(is_multi_value(v) and not v for v in predicate.values()):
            return []
        rows = self._query(schema, predicate)
        _logger.debug("query %s %s -> %d record(s)", schema.name, sorted(predicate), len(rows))
        return rows

    def get(self, table: str, record_id: str) -> Record:
        """
        Fetch a single record by identifier.

        :raises ~crm_records.core.errors.NotFoundError: If no such record exists.
        """
        schema = get_schema(table)
        if not isinstance(record_id, str) or not record_id.strip():
            raise NotFoundError(
                f"Cannot fetch {schema.name!r} without an identifier",
                subcode=codes.NOT_FOUND_UNPERSISTED,
            )
        return self._get(schema, record_id)

    # ------------------------------------------------------------------ write

    def write(self, records: Iterable[Record], mode: WriteMode = WriteMode.UPSERT) -> List[Record]:
        """
        Persist a batch of records in one call.

        Transient records are created and receive identifiers; persistent records are
        updated. ``mode`` restricts which of the two is allowed.

        :param records: Records to write. The same handle may appear only once.
        :type records: Iterable[Record]
        :param mode: ``CREATE``, ``UPDATE`` or ``UPSERT``.
        :type mode: WriteMode
        :return: The same handles, now persistent.
        :rtype: list[Record]
        :raises ~crm_records.core.errors.StaleReferenceError: If any record was deleted.
        :raises ~crm_records.core.errors.NotFoundError: If an update target has no identifier.
        :raises ~crm_records.core.errors.ValidationError: On schema or link violations.
        """
        mode = WriteMode(mode)
        batch = _unique(records)
        if not batch:
            return []
        for record in batch:
            self._check_writable(record, mode)
        self._write(batch, mode)
        _logger.debug("write %s %d record(s)", mode.value, len(batch))
        return batch

    def _check_writable(self, record: Record, mode: WriteMode) -> None:
        if not isinstance(record, Record):
            raise TypeError("records must be Record instances")
        if record.state is RecordState.DELETED:
            raise StaleReferenceError(
                f"Cannot write deleted {record.table!r} record {record.id!r}",
                subcode=codes.STALE_DELETED,
                details={"table": record.table, "id": record.id},
            )
        if mode is WriteMode.UPDATE and record.id is None:
            raise NotFoundError(
                f"Cannot update {record.table!r} record that was never persisted",
                subcode=codes.NOT_FOUND_UNPERSISTED,
                details={"table": record.table},
            )
        if mode is WriteMode.CREATE and record.id is not None:
            raise ValidationError(
                f"{record.table!r} record {record.id!r} is already persisted",
                details={"table": record.table, "id": record.id},
            )
        schema = get_schema(record.table)
        schema.validate(record.data, creating=record.id is None, strict=self.config.strict_schema)

    # ----------------------------------------------------------------- delete

    def delete(self, records: Iterable[Record]) -> None:
        """
        Delete a batch of persistent records in one call.

        :param records: Records to delete.
        :type records: Iterable[Record]
        :raises ~crm_records.core.errors.NotFoundError: If any record is deleted already or was never persisted.
        """
        batch = _unique(records)
        if not batch:
            return None
        for record in batch:
            if not isinstance(record, Record):
                raise TypeError("records must be Record instances")
            if record.id is None:
                raise NotFoundError(
                    f"Cannot delete {record.table!r} record that was never persisted",
                    subcode=codes.NOT_FOUND_UNPERSISTED,
                    details={"table": record.table},
                )
            if record.state is RecordState.DELETED:
                raise NotFoundError(
                    f"{record.table!r} record {record.id!r} was already deleted",
                    subcode=codes.NOT_FOUND_MISSING,
                    details={"table": record.table, "id": record.id},
                )
        self._delete(batch)
        for record in batch:
            record._mark_deleted()
        _logger.debug("delete %d record(s)", len(batch))
        return None

    def match_key(self, value: Any) -> Any:
        """
        Normalize a field value the way this store's equality filter compares it.

        Two values the store's ``query`` treats as equal map to the same result.
        The base implementation compares exactly.
        """
        return value

    def close(self) -> None:
        """Release any resources held by the store. Safe to call multiple times."""
        return None

    # ------------------------------------------------------------------ hooks

    @abstractmethod
    def _query(self, schema: TableSchema, predicate: Dict[str, Any]) -> List[Record]: ...

    @abstractmethod
    def _get(self, schema: TableSchema, record_id: str) -> Record: ...

    @abstractmethod
    def _write(self, records: List[Record], mode: WriteMode) -> None:
        """Persist ``records`` atomically and mark each one persistent."""

    @abstractmethod
    def _delete(self, records: List[Record]) -> None: ...


def _record_id(schema: TableSchema, key: str, value: Any) -> Any:
    """Replace a record handle used as a filter value with its identifier."""
    if not isinstance(value, Record):
        return value
    if value.id is None:
        raise ValidationError(
            f"Cannot filter {schema.name}.{key} on a {value.table!r} record that was never persisted",
            subcode=codes.VALIDATION_BROKEN_LINK,
            details={"table": schema.name, "field": key},
        )
    return value.id


def _unique(records: Iterable[Record]) -> List[Record]:
    """Drop repeated handles while keeping first-seen order."""
    if isinstance(records, Record):
        records = [records]
    seen = set()
    out: List[Record] = []
    for record in records:
        if id(record) in seen:
            continue
        seen.add(id(record))
        out.append(record)
    return out


__all__ = ["BackingStore", "WriteMode", "Predicate", "matches"]
