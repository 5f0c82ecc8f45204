# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Structured error hierarchy for the CRM records library.

Every error raised by the library derives from :class:`CrmError` and carries a
stable ``code`` plus an optional ``subcode`` from
:mod:`~crm_records.core._error_codes`. Nothing here retries or recovers; errors
surface unchanged to the immediate caller.
"""

from __future__ import annotations

import datetime as _dt
from typing import Any, Dict, Optional


class CrmError(Exception):
    """Base structured error for the CRM records library."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        subcode: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
        is_transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.subcode = subcode
        self.status_code = status_code
        self.details = details or {}
        self.source = source or "client"
        self.is_transient = is_transient
        self.timestamp = _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "subcode": self.subcode,
            "status_code": self.status_code,
            "details": self.details,
            "source": self.source,
            "is_transient": self.is_transient,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(code={self.code!r}, subcode={self.subcode!r}, message={self.message!r})"


class ValidationError(CrmError):
    def __init__(self, message: str, *, subcode: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="validation_error", subcode=subcode, details=details, source="client")


class NotFoundError(CrmError):
    """Raised when an update or delete target is absent from the backing store."""

    def __init__(
        self,
        message: str,
        *,
        subcode: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
    ):
        super().__init__(
            message,
            code="not_found",
            subcode=subcode,
            status_code=status_code,
            details=details,
            source=source or "client",
        )


class StaleReferenceError(CrmError):
    """Raised when a write targets a record that has already been deleted."""

    def __init__(self, message: str, *, subcode: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="stale_reference", subcode=subcode, details=details, source="client")


class BackingStoreError(CrmError):
    """Opaque failure reported by the backing store collaborator."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "backing_store_error",
        subcode: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        is_transient: bool = False,
    ):
        super().__init__(
            message,
            code=code,
            subcode=subcode,
            status_code=status_code,
            details=details,
            source="server",
            is_transient=is_transient,
        )


class HttpError(BackingStoreError):
    def __init__(
        self,
        message: str,
        status_code: int,
        is_transient: bool = False,
        subcode: Optional[str] = None,
        service_error_code: Optional[str] = None,
        correlation_id: Optional[str] = None,
        request_id: Optional[str] = None,
        body_excerpt: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        d = details or {}
        if service_error_code is not None:
            d["service_error_code"] = service_error_code
        if correlation_id is not None:
            d["correlation_id"] = correlation_id
        if request_id is not None:
            d["request_id"] = request_id
        if body_excerpt is not None:
            d["body_excerpt"] = body_excerpt
        super().__init__(
            message,
            code="http_error",
            subcode=subcode,
            status_code=status_code,
            details=d,
            is_transient=is_transient,
        )


__all__ = [
    "CrmError",
    "ValidationError",
    "NotFoundError",
    "StaleReferenceError",
    "BackingStoreError",
    "HttpError",
]
