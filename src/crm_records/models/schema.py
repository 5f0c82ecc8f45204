# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Declared schemas for the built-in record kinds.

Each record kind (Account, Contact, Opportunity, Lead, Case) declares the
fields it accepts, their value types, which fields are required on create,
which field is its natural key, and which fields are links to other kinds.
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Tuple

from ..core import _error_codes as codes
from ..core.errors import ValidationError
from .record import Record

# Type alias for semantic clarity
FieldName = str  # e.g., "name", "accountid"


@dataclass(frozen=True)
class FieldSpec:
    """
    Field metadata.

    :param name: Field name as used on :class:`~crm_records.models.record.Record` data.
    :type name: str
    :param type: One of ``"string"``, ``"int"``, ``"float"``, ``"date"``, ``"link"``.
    :type type: str
    :param required: Whether the field must be present on create.
    :type required: bool
    :param target: Target table for ``"link"`` fields.
    :type target: str | None
    :param odata_name: Web API attribute (or navigation property, for links). Defaults to ``name``.
    :type odata_name: str | None
    """

    TYPES: ClassVar[Tuple[str, ...]] = ("string", "int", "float", "date", "link")

    name: FieldName
    type: str = "string"
    required: bool = False
    target: Optional[str] = None
    odata_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in self.TYPES:
            raise ValueError(f"Unsupported field type {self.type!r} for {self.name!r}")
        if (self.type == "link") != (self.target is not None):
            raise ValueError(f"Field {self.name!r}: target is required for link fields only")

    @property
    def is_link(self) -> bool:
        return self.type == "link"

    @property
    def wire_name(self) -> str:
        return self.odata_name or self.name

    def accepts(self, value: Any) -> bool:
        """Return True when ``value`` is acceptable for this field (``None`` clears a field)."""
        if value is None:
            return not self.required
        if self.type == "string":
            return isinstance(value, str)
        if self.type == "int":
            return isinstance(value, int) and not isinstance(value, bool)
        if self.type == "float":
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self.type == "date":
            if isinstance(value, _dt.date):
                return True
            if isinstance(value, str):
                try:
                    _dt.date.fromisoformat(value[:10])
                except ValueError:
                    return False
                return True
            return False
        # link: an identifier, or a record of the target kind written in the same batch
        if isinstance(value, Record):
            return value.table == self.target
        return isinstance(value, str) and bool(value.strip())


@dataclass
class TableSchema:
    """
    Record kind metadata.

    :param name: Table name (e.g. ``"account"``).
    :type name: str
    :param entity_set: Web API entity set name (e.g. ``"accounts"``).
    :type entity_set: str
    :param natural_key: Field used for existence lookups.
    :type natural_key: str
    :param fields: Declared fields.
    :type fields: list[FieldSpec]
    :param logical_name: Web API logical name. Defaults to ``name``.
    :type logical_name: str | None
    """

    name: str
    entity_set: str
    natural_key: FieldName
    fields: List[FieldSpec] = field(default_factory=list)
    logical_name: Optional[str] = None

    def __post_init__(self) -> None:
        self._by_name: Dict[str, FieldSpec] = {f.name: f for f in self.fields}
        if self.natural_key not in self._by_name:
            raise ValueError(f"Natural key {self.natural_key!r} is not a field of {self.name!r}")

    @property
    def primary_id_attribute(self) -> str:
        return f"{self.logical_name or self.name}id"

    def get_field(self, name: str) -> Optional[FieldSpec]:
        return self._by_name.get(name)

    def has_field(self, name: str) -> bool:
        return name in self._by_name

    def link_fields(self) -> List[FieldSpec]:
        return [f for f in self.fields if f.is_link]

    def required_fields(self) -> List[FieldSpec]:
        return [f for f in self.fields if f.required]

    def validate(self, data: Dict[str, Any], *, creating: bool, strict: bool = True) -> None:
        """
        Validate record data against this schema.

        :param data: Field values to check.
        :type data: dict[str, Any]
        :param creating: When True, required fields must be present and non-empty.
        :type creating: bool
        :param strict: When True, undeclared fields are rejected.
        :type strict: bool
        :raises ~crm_records.core.errors.ValidationError: On the first violation found.
        """
        for key, value in data.items():
            spec = self._by_name.get(key)
            if spec is None:
                if strict:
                    raise ValidationError(
                        f"Unknown field {key!r} for {self.name!r}",
                        subcode=codes.VALIDATION_UNKNOWN_FIELD,
                        details={"table": self.name, "field": key},
                    )
                continue
            if not spec.accepts(value):
                raise ValidationError(
                    f"Invalid value for {self.name}.{key}: expected {spec.type}, got {type(value).__name__}",
                    subcode=codes.VALIDATION_FIELD_TYPE,
                    details={"table": self.name, "field": key, "expected": spec.type},
                )
        if creating:
            missing = [f.name for f in self.required_fields() if _is_blank(data.get(f.name))]
            if missing:
                raise ValidationError(
                    f"Missing required field(s) for {self.name!r}: {', '.join(missing)}",
                    subcode=codes.VALIDATION_REQUIRED_FIELD,
                    details={"table": self.name, "fields": missing},
                )


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


ACCOUNT = TableSchema(
    name="account",
    entity_set="accounts",
    natural_key="name",
    fields=[
        FieldSpec("name", required=True),
        FieldSpec("description"),
        FieldSpec("industry"),
        FieldSpec("phone", odata_name="telephone1"),
        FieldSpec("website", odata_name="websiteurl"),
        FieldSpec("numberofemployees", "int"),
        FieldSpec("annualrevenue", "float", odata_name="revenue"),
    ],
)

CONTACT = TableSchema(
    name="contact",
    entity_set="contacts",
    natural_key="lastname",
    fields=[
        FieldSpec("firstname"),
        FieldSpec("lastname", required=True),
        FieldSpec("email", odata_name="emailaddress1"),
        FieldSpec("phone", odata_name="telephone1"),
        FieldSpec("description"),
        FieldSpec("birthdate", "date"),
        FieldSpec("accountid", "link", target="account", odata_name="parentcustomerid_account"),
    ],
)

OPPORTUNITY = TableSchema(
    name="opportunity",
    entity_set="opportunities",
    natural_key="name",
    fields=[
        FieldSpec("name", required=True),
        FieldSpec("stagename", required=True, odata_name="stepname"),
        FieldSpec("closedate", "date", required=True, odata_name="estimatedclosedate"),
        FieldSpec("amount", "float", odata_name="estimatedvalue"),
        FieldSpec("description"),
        FieldSpec("accountid", "link", target="account", odata_name="parentaccountid"),
    ],
)

LEAD = TableSchema(
    name="lead",
    entity_set="leads",
    natural_key="lastname",
    fields=[
        FieldSpec("firstname"),
        FieldSpec("lastname", required=True),
        FieldSpec("company", required=True, odata_name="companyname"),
        FieldSpec("email", odata_name="emailaddress1"),
        FieldSpec("status"),
    ],
)

CASE = TableSchema(
    name="case",
    entity_set="incidents",
    logical_name="incident",
    natural_key="subject",
    fields=[
        FieldSpec("subject", odata_name="title"),
        FieldSpec("status", required=True),
        FieldSpec("origin", required=True),
        FieldSpec("description"),
        FieldSpec("accountid", "link", target="account", odata_name="customerid_account"),
        FieldSpec("contactid", "link", target="contact", odata_name="primarycontactid"),
    ],
)

_SCHEMAS: Dict[str, TableSchema] = {s.name: s for s in (ACCOUNT, CONTACT, OPPORTUNITY, LEAD, CASE)}


def get_schema(table: str) -> TableSchema:
    """
    Look up the declared schema of a record kind (case-insensitive).

    :param table: Table name, e.g. ``"account"`` or ``"Account"``.
    :type table: str
    :return: The schema.
    :rtype: TableSchema
    :raises ~crm_records.core.errors.ValidationError: If the kind is not declared.
    """
    schema = _SCHEMAS.get((table or "").strip().lower())
    if schema is None:
        raise ValidationError(
            f"Unknown record kind {table!r}; expected one of {', '.join(sorted(_SCHEMAS))}",
            subcode=codes.VALIDATION_UNKNOWN_TABLE,
            details={"table": table},
        )
    return schema


def table_names() -> Iterable[str]:
    return tuple(_SCHEMAS)


__all__ = [
    "FieldSpec",
    "TableSchema",
    "ACCOUNT",
    "CONTACT",
    "OPPORTUNITY",
    "LEAD",
    "CASE",
    "get_schema",
    "table_names",
]
