# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from crm_records.core import _error_codes as codes
from crm_records.core.errors import (
    BackingStoreError,
    CrmError,
    HttpError,
    NotFoundError,
    StaleReferenceError,
    ValidationError,
)


def test_error_hierarchy():
    for cls in (ValidationError, NotFoundError, StaleReferenceError, BackingStoreError, HttpError):
        assert issubclass(cls, CrmError)
    assert issubclass(HttpError, BackingStoreError)


def test_validation_error_to_dict():
    err = ValidationError("bad key", subcode=codes.VALIDATION_EMPTY_NATURAL_KEY, details={"field": "name"})
    d = err.to_dict()
    assert d["code"] == "validation_error"
    assert d["subcode"] == codes.VALIDATION_EMPTY_NATURAL_KEY
    assert d["source"] == "client"
    assert d["details"] == {"field": "name"}
    assert d["timestamp"].endswith("Z")
    assert str(err) == "bad key"


def test_codes_per_kind():
    assert NotFoundError("x").code == "not_found"
    assert StaleReferenceError("x").code == "stale_reference"
    assert BackingStoreError("x").code == "backing_store_error"
    assert BackingStoreError("x").source == "server"


def test_http_error_details():
    err = HttpError(
        "Too many requests",
        status_code=429,
        is_transient=True,
        subcode=codes.http_error_subcode(429),
        service_error_code="0x80072322",
        request_id="req-1",
    )
    assert err.code == "http_error"
    assert err.status_code == 429
    assert err.is_transient is True
    assert err.subcode == codes.HTTP_429
    assert err.details == {"service_error_code": "0x80072322", "request_id": "req-1"}


def test_http_subcode_fallback():
    assert codes.http_error_subcode(404) == codes.HTTP_404
    assert codes.http_error_subcode(418) == "http_418"
    assert codes.is_transient_status(503)
    assert not codes.is_transient_status(400)
