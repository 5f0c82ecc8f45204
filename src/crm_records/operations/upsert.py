# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Natural-key upsert helper.

:class:`UpsertHelper` decides, per natural key, whether a record already exists
in the backing store (update it) or not (create it). Every call issues at most
one query and one write; errors from the store propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..core import _error_codes as codes
from ..core.errors import ValidationError
from ..data._store import BackingStore, WriteMode
from ..models.record import Record
from ..models.schema import get_schema

_logger = logging.getLogger(__name__)

FieldsFactory = Callable[[str], Optional[Dict[str, Any]]]


class UpsertHelper:
    """
    Find-or-create records of one kind by natural key.

    :param store: Backing store every lookup and write is delegated to.
    :type store: ~crm_records.data._store.BackingStore
    :param table: Record kind, e.g. ``"account"``.
    :type table: str
    :param natural_key: Field used for existence lookups. Defaults to the kind's declared natural key.
    :type natural_key: str or None

    :raises ~crm_records.core.errors.ValidationError: If the kind or natural key field is unknown.

    Example::

        accounts = UpsertHelper(store, "account")
        ibm = accounts.find_or_create("IBM", {"numberofemployees": 282200})

        # Same instance at positions 0 and 2
        doe, jane, doe_again = accounts.batch_upsert_by_name(["Doe", "Jane", "Doe"], lambda key: {})
    """

    def __init__(self, store: BackingStore, table: str, natural_key: Optional[str] = None) -> None:
        if store is None:
            raise ValueError("store is required.")
        schema = get_schema(table)
        key = natural_key or schema.natural_key
        if not schema.has_field(key):
            raise ValidationError(
                f"{key!r} is not a field of {schema.name!r}",
                subcode=codes.VALIDATION_UNKNOWN_FIELD,
                details={"table": schema.name, "field": key},
            )
        self._store = store
        self.table = schema.name
        self.natural_key = key

    def _check_key(self, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(
                f"Natural key {self.table}.{self.natural_key} must be a non-empty string, got {value!r}",
                subcode=codes.VALIDATION_EMPTY_NATURAL_KEY,
                details={"table": self.table, "field": self.natural_key},
            )
        return value

    def find_or_create(
        self,
        natural_key_value: str,
        default_fields: Optional[Dict[str, Any]] = None,
        update_fields: Optional[Dict[str, Any]] = None,
    ) -> Record:
        """
        Update the record matching ``natural_key_value``, or create it.

        When several records share the key, the first one returned by the store is
        used; the store gives no ordering guarantee.

        :param natural_key_value: Non-empty key value.
        :type natural_key_value: str
        :param default_fields: Fields for a newly created record.
        :type default_fields: dict[str, Any] or None
        :param update_fields: Fields applied to an existing record.
        :type update_fields: dict[str, Any] or None
        :return: The persisted record.
        :rtype: Record

        :raises ~crm_records.core.errors.ValidationError: If the key is empty or fields fail schema checks.
        """
        key = self._check_key(natural_key_value)
        found = self._store.query(self.table, {self.natural_key: key})
        if found:
            record = found[0]
            if len(found) > 1:
                _logger.debug("%d %s records share %s=%r; using the first", len(found), self.table, self.natural_key, key)
            record.update(update_fields or {})
            self._store.write([record], WriteMode.UPDATE)
            return record
        fields = dict(default_fields or {})
        fields[self.natural_key] = key
        record = Record(self.table, fields)
        self._store.write([record], WriteMode.CREATE)
        return record

    def batch_upsert_by_name(
        self,
        natural_key_values: Iterable[str],
        fields_factory: Optional[FieldsFactory] = None,
        *,
        create_defaults: Optional[Dict[str, Any]] = None,
    ) -> List[Record]:
        """
        Upsert one record per natural key with one query and one batched write.

        ``fields_factory(key)`` is called once per distinct key, as the store
        compares keys, and its fields are applied to the existing or new record.
        ``create_defaults`` are applied to new records only, beneath the
        factory's fields.

        :param natural_key_values: Keys in output order; duplicates are allowed.
        :type natural_key_values: Iterable[str]
        :param fields_factory: Produces field values for a key.
        :type fields_factory: Callable[[str], dict] or None
        :param create_defaults: Extra fields for records that do not exist yet.
        :type create_defaults: dict[str, Any] or None
        :return: One record per input key, in input order. Repeated keys yield the same instance.
        :rtype: list[Record]

        :raises ~crm_records.core.errors.ValidationError: If any key is empty (before any store call).
        """
        keys = [self._check_key(k) for k in natural_key_values]
        if not keys:
            return []
        match = self._store.match_key
        # Keys the store treats as equal share one record; the first spelling wins.
        first: Dict[Any, str] = {}
        for key in keys:
            first.setdefault(match(key), key)
        distinct = list(first.values())
        lookup: Dict[Any, Record] = {}
        for record in self._store.query(self.table, {self.natural_key: distinct}):
            lookup.setdefault(match(record.get(self.natural_key)), record)

        factory = fields_factory or (lambda key: {})
        batch: List[Record] = []
        for key in distinct:
            fields = dict(factory(key) or {})
            record = lookup.get(match(key))
            if record is None:
                data = dict(create_defaults or {})
                data.update(fields)
                data[self.natural_key] = key
                record = Record(self.table, data)
                lookup[match(key)] = record
            else:
                record.update(fields)
            batch.append(record)

        created = sum(1 for r in batch if r.id is None)
        self._store.write(batch, WriteMode.UPSERT)
        _logger.debug("upsert %s: %d created, %d updated", self.table, created, len(batch) - created)
        return [lookup[match(key)] for key in keys]

    def delete_all(self, records: Iterable[Record]) -> None:
        """
        Delete previously persisted records in one batched call.

        An empty input is a no-op and makes no store call.

        :raises ~crm_records.core.errors.NotFoundError: If any record was already deleted or never persisted.
        """
        batch = list(records)
        if not batch:
            return None
        self._store.delete(batch)
        return None


__all__ = ["UpsertHelper"]
