# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Dataverse Web API backing store.

Translates record batches into Web API calls: ``$filter`` queries for lookups,
the collection-bound ``CreateMultiple``/``UpdateMultiple`` actions for batch
writes, and per-record ``DELETE`` requests.
"""

from __future__ import annotations

import datetime as _dt
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests
from azure.core.credentials import TokenCredential

from ..core import _error_codes as codes
from ..core._auth import _AuthManager
from ..core._http import _HttpClient
from ..core.config import CrmConfig
from ..core.errors import BackingStoreError, HttpError, NotFoundError, ValidationError
from ..models.record import Record, RecordState
from ..models.schema import FieldSpec, TableSchema, get_schema
from ._store import BackingStore, WriteMode, is_multi_value


class ODataStore(BackingStore):
    """
    Backing store for a Dataverse environment.

    :param base_url: Environment URL, e.g. ``"https://org.crm.dynamics.com"``. Trailing slash is removed.
    :type base_url: str
    :param credential: Azure Identity credential used to acquire bearer tokens.
    :type credential: ~azure.core.credentials.TokenCredential
    :param config: Optional configuration (API version, HTTP timeout).
    :type config: ~crm_records.core.config.CrmConfig or None
    :param session: Optional ``requests.Session`` for connection pooling.
    :type session: requests.Session or None

    :raises ValueError: If ``base_url`` is missing or empty after trimming.
    """

    def __init__(
        self,
        base_url: str,
        credential: TokenCredential,
        config: Optional[CrmConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(config)
        self.base_url = (base_url or "").strip().rstrip("/")
        if not self.base_url:
            raise ValueError("base_url is required.")
        self.auth = _AuthManager(credential)
        self.api = f"{self.base_url}/api/data/{self.config.api_version}"
        self._http = _HttpClient(timeout=self.config.http_timeout, session=session)

    def match_key(self, value: Any) -> Any:
        """String equality in ``$filter`` ignores case."""
        return value.casefold() if isinstance(value, str) else value

    @staticmethod
    def _escape_odata_quotes(value: str) -> str:
        """Escape single quotes for OData queries (by doubling them)."""
        return value.replace("'", "''")

    def _headers(self) -> Dict[str, str]:
        """Build standard OData headers with bearer auth."""
        scope = f"{self.base_url}/.default"
        token = self.auth._acquire_token(scope)
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "OData-MaxVersion": "4.0",
            "OData-Version": "4.0",
        }

    def _request(self, method: str, url: str, **kwargs: Any):
        try:
            r = self._http._request(method, url, **kwargs)
        except requests.exceptions.RequestException as ex:
            raise BackingStoreError(
                f"{method.upper()} {url} failed: {ex}",
                details={"exception": type(ex).__name__},
            ) from ex
        if r.status_code >= 400:
            self._raise_for_status(r)
        return r

    @staticmethod
    def _raise_for_status(r) -> None:
        status = r.status_code
        service_code = None
        message = getattr(r, "reason", None) or f"HTTP {status}"
        try:
            body = r.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            service_code = body["error"].get("code")
            message = body["error"].get("message") or message
        headers = getattr(r, "headers", None) or {}
        request_id = headers.get("x-ms-service-request-id")
        if status == 404:
            raise NotFoundError(
                message,
                subcode=codes.http_error_subcode(status),
                status_code=status,
                details={"service_error_code": service_code, "request_id": request_id},
                source="server",
            )
        raise HttpError(
            message,
            status_code=status,
            is_transient=codes.is_transient_status(status),
            subcode=codes.http_error_subcode(status),
            service_error_code=service_code,
            request_id=request_id,
            body_excerpt=(getattr(r, "text", "") or "")[:200] or None,
        )

    # -------------------------------------------------------- wire conversion

    @staticmethod
    def _lookup_attribute(spec: FieldSpec) -> str:
        # "parentcustomerid_account" -> "parentcustomerid"
        return spec.wire_name.split("_", 1)[0]

    def _format_value(self, value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, _dt.date):
            return value.isoformat()
        return f"'{self._escape_odata_quotes(str(value))}'"

    def _filter_clause(self, schema: TableSchema, key: str, expected: Any) -> str:
        spec = schema.get_field(key)
        if spec.is_link:
            attr = f"_{self._lookup_attribute(spec)}_value"
            fmt = str
        else:
            attr = spec.wire_name
            fmt = self._format_value
        if expected is None:
            return f"{attr} eq null"
        if is_multi_value(expected):
            return "(" + " or ".join(f"{attr} eq {fmt(v)}" for v in expected) + ")"
        return f"{attr} eq {fmt(expected)}"

    def _to_wire(self, schema: TableSchema, data: Dict[str, Any]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for key, value in data.items():
            spec = schema.get_field(key)
            if spec is None:
                payload[key] = value
            elif spec.is_link:
                target_id = value.id if isinstance(value, Record) else value
                target = get_schema(spec.target)
                payload[f"{spec.wire_name}@odata.bind"] = (
                    None if target_id is None else f"/{target.entity_set}({target_id})"
                )
            elif isinstance(value, _dt.date):
                payload[spec.wire_name] = value.isoformat()
            else:
                payload[spec.wire_name] = value
        return payload

    def _from_wire(self, schema: TableSchema, row: Dict[str, Any]) -> Record:
        pk = schema.primary_id_attribute
        mapped = {k: row[k] for k in (pk, "@odata.etag") if k in row}
        for spec in schema.fields:
            key = f"_{self._lookup_attribute(spec)}_value" if spec.is_link else spec.wire_name
            if key in row:
                mapped[spec.name] = row[key]
        return Record.from_api_response(schema.name, mapped, id_field=pk)

    # ------------------------------------------------------------------ hooks

    def _query(self, schema: TableSchema, predicate: Dict[str, Any]) -> List[Record]:
        params: Dict[str, Any] = {}
        if predicate:
            params["$filter"] = " and ".join(self._filter_clause(schema, k, v) for k, v in predicate.items())
        url: Optional[str] = f"{self.api}/{schema.entity_set}"
        out: List[Record] = []
        while url:
            r = self._request("get", url, headers=self._headers(), params=params or None)
            try:
                body = r.json()
            except ValueError:
                body = {}
            for row in body.get("value", []) if isinstance(body, dict) else []:
                if isinstance(row, dict):
                    out.append(self._from_wire(schema, row))
            url = body.get("@odata.nextLink") if isinstance(body, dict) else None
            # nextLink already carries the query string
            params = {}
        return out

    def _get(self, schema: TableSchema, record_id: str) -> Record:
        url = f"{self.api}/{schema.entity_set}({record_id})"
        r = self._request("get", url, headers=self._headers())
        return self._from_wire(schema, r.json())

    def _write(self, records: List[Record], mode: WriteMode) -> None:
        for schema, group in _dependency_groups(records):
            creates = [r for r in group if r.id is None]
            updates = [r for r in group if r.id is not None]
            if creates:
                self._create_multiple(schema, creates)
            if updates:
                self._update_multiple(schema, updates)

    def _stamp(self, schema: TableSchema, payload: Dict[str, Any]) -> Dict[str, Any]:
        payload["@odata.type"] = f"Microsoft.Dynamics.CRM.{schema.logical_name or schema.name}"
        return payload

    def _create_multiple(self, schema: TableSchema, records: List[Record]) -> None:
        targets = [self._stamp(schema, self._to_wire(schema, r.data)) for r in records]
        url = f"{self.api}/{schema.entity_set}/Microsoft.Dynamics.CRM.CreateMultiple"
        r = self._request("post", url, headers=self._headers(), json={"Targets": targets})
        try:
            body = r.json() if r.text else {}
        except ValueError:
            body = {}
        ids = body.get("Ids") if isinstance(body, dict) else None
        if not isinstance(ids, list) or len(ids) != len(records):
            raise BackingStoreError(
                f"CreateMultiple for {schema.entity_set!r} returned {len(ids or [])} id(s) for {len(records)} record(s)",
                details={"entity_set": schema.entity_set},
            )
        for record, rid in zip(records, ids):
            _resolve_link_values(record)
            record._mark_persistent(str(rid))

    def _update_multiple(self, schema: TableSchema, records: List[Record]) -> None:
        pk = schema.primary_id_attribute
        targets = []
        for record in records:
            payload = self._to_wire(schema, record.data)
            payload[pk] = record.id
            targets.append(self._stamp(schema, payload))
        url = f"{self.api}/{schema.entity_set}/Microsoft.Dynamics.CRM.UpdateMultiple"
        self._request("post", url, headers=self._headers(), json={"Targets": targets})
        for record in records:
            _resolve_link_values(record)

    def _delete(self, records: List[Record]) -> None:
        # Standard tables have no DeleteMultiple action; delete one record at a time.
        for record in records:
            schema = get_schema(record.table)
            headers = self._headers()
            headers["If-Match"] = "*"
            self._request("delete", f"{self.api}/{schema.entity_set}({record.id})", headers=headers)

    def close(self) -> None:
        self._http.close()


def _resolve_link_values(record: Record) -> None:
    """Replace record-valued links with the identifiers they were written with."""
    for key, value in list(record.data.items()):
        if isinstance(value, Record):
            record.data[key] = value.id


def _dependency_groups(records: List[Record]) -> Iterable[Tuple[TableSchema, List[Record]]]:
    """
    Group a batch by table so that tables linked to by transient records in the
    same batch are written first.
    """
    by_table: Dict[str, List[Record]] = {}
    for record in records:
        by_table.setdefault(get_schema(record.table).name, []).append(record)

    def deps(table: str) -> set:
        out = set()
        for record in by_table[table]:
            for spec in get_schema(table).link_fields():
                value = record.data.get(spec.name)
                if isinstance(value, Record):
                    if value.state is RecordState.DELETED:
                        raise ValidationError(
                            f"{table}.{spec.name} references a deleted {spec.target!r} record",
                            subcode=codes.VALIDATION_BROKEN_LINK,
                        )
                    if value.id is None:
                        if not any(value is r for r in records):
                            raise ValidationError(
                                f"{table}.{spec.name} references an unsaved {spec.target!r} record outside the batch",
                                subcode=codes.VALIDATION_BROKEN_LINK,
                            )
                        if value.table != table:
                            out.add(value.table)
        return out

    pending = {table: deps(table) for table in by_table}
    ordered: List[Tuple[TableSchema, List[Record]]] = []
    while pending:
        ready = [t for t, d in pending.items() if not (d & set(pending))]
        if not ready:
            raise ValidationError(
                f"Circular links between unsaved records in tables: {', '.join(sorted(pending))}",
                subcode=codes.VALIDATION_BROKEN_LINK,
            )
        for table in ready:
            ordered.append((get_schema(table), by_table[table]))
            del pending[table]
    return ordered


__all__ = ["ODataStore"]
