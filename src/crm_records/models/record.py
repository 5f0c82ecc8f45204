# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Record data model for CRM entities.

Provides a strongly-typed representation of CRM records with dict-like
field access and an explicit lifecycle state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional

# Type aliases for semantic clarity
RecordId = str  # UUID string
TableName = str  # e.g., "account", "contact"


class RecordState(str, Enum):
    """Lifecycle of a record handle: ``TRANSIENT -> PERSISTENT -> DELETED``."""

    TRANSIENT = "transient"
    PERSISTENT = "persistent"
    DELETED = "deleted"


@dataclass(eq=False)
class Record:
    """
    Strongly-typed record representation with lifecycle metadata.

    Records compare by identity: two handles are the same record only if they
    are the same object. The identifier is ``None`` until the record is first
    written, and is immutable afterwards.

    :param table: Table (record kind) name, e.g. ``"account"``.
    :type table: str
    :param data: Record field data as key-value pairs.
    :type data: dict[str, Any]
    :param id: Record GUID, or None while transient.
    :type id: str | None
    :param etag: Optional ETag reported by the backing store.
    :type etag: str | None

    Example:
        Structured access::

            record = Record("account", {"name": "Contoso"})
            print(record.id)      # None until written
            print(record.state)   # RecordState.TRANSIENT

        Dict-like access::

            record["phone"] = "555-0100"
            if "industry" in record:
                print(record["industry"])
    """

    table: TableName
    data: Dict[str, Any] = field(default_factory=dict)
    id: Optional[RecordId] = None
    etag: Optional[str] = None
    state: RecordState = RecordState.TRANSIENT

    def __post_init__(self) -> None:
        self.table = (self.table or "").strip().lower()
        if self.id is not None and self.state is RecordState.TRANSIENT:
            self.state = RecordState.PERSISTENT

    # Dict-like access

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        del self.data[key]

    def __contains__(self, key: object) -> bool:
        return key in self.data

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a field value with optional default.

        :param key: Field name to access.
        :type key: str
        :param default: Default value if field doesn't exist.
        :return: Field value or default.
        """
        return self.data.get(key, default)

    def keys(self):
        return self.data.keys()

    def values(self):
        return self.data.values()

    def items(self):
        return self.data.items()

    def update(self, fields: Dict[str, Any]) -> "Record":
        """
        Apply several field values at once and return the record for chaining.

        :param fields: Field values to assign.
        :type fields: dict[str, Any]
        :return: This record.
        :rtype: Record
        """
        self.data.update(fields)
        return self

    # Lifecycle

    @property
    def is_transient(self) -> bool:
        return self.state is RecordState.TRANSIENT

    @property
    def is_persistent(self) -> bool:
        return self.state is RecordState.PERSISTENT

    @property
    def is_deleted(self) -> bool:
        return self.state is RecordState.DELETED

    def _mark_persistent(self, record_id: RecordId) -> None:
        """Attach the store-assigned identifier; an existing identifier never changes."""
        if self.id is not None and self.id != record_id:
            raise ValueError(f"Record id is immutable once assigned ({self.id!r} != {record_id!r})")
        self.id = record_id
        self.state = RecordState.PERSISTENT

    def _mark_deleted(self) -> None:
        self.state = RecordState.DELETED

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a plain dictionary (for serialization).

        Returns only the data fields, not metadata like id/table/state.

        :return: Dictionary of field data.
        :rtype: dict[str, Any]
        """
        return dict(self.data)

    def to_full_dict(self) -> Dict[str, Any]:
        """
        Convert to a dictionary including metadata.

        :return: Dictionary with id, table, data, etag and state.
        :rtype: dict[str, Any]
        """
        return {
            "id": self.id,
            "table": self.table,
            "data": dict(self.data),
            "etag": self.etag,
            "state": self.state.value,
        }

    @classmethod
    def from_api_response(
        cls,
        table: str,
        response_data: Dict[str, Any],
        *,
        id_field: Optional[str] = None,
    ) -> "Record":
        """
        Create a persistent Record from a Web API response body.

        :param table: Table name.
        :type table: str
        :param response_data: Raw API response dictionary.
        :type response_data: dict[str, Any]
        :param id_field: Primary id attribute. Defaults to ``"<table>id"``.
        :type id_field: str | None
        :return: Record instance.
        :rtype: Record
        """
        data = dict(response_data)
        pk = id_field or f"{table}id"
        raw_id = data.pop(pk, None)
        etag = data.pop("@odata.etag", None)
        clean_data = {k: v for k, v in data.items() if "@" not in k}
        return cls(
            table=table,
            data=clean_data,
            id=str(raw_id) if raw_id else None,
            etag=etag,
        )


__all__ = ["Record", "RecordState", "RecordId", "TableName"]
