# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

# HTTP subcode constants
HTTP_400 = "http_400"
HTTP_401 = "http_401"
HTTP_403 = "http_403"
HTTP_404 = "http_404"
HTTP_409 = "http_409"
HTTP_412 = "http_412"
HTTP_429 = "http_429"
HTTP_500 = "http_500"
HTTP_502 = "http_502"
HTTP_503 = "http_503"
HTTP_504 = "http_504"

_HTTP_STATUS_TO_SUBCODE = {
    400: HTTP_400,
    401: HTTP_401,
    403: HTTP_403,
    404: HTTP_404,
    409: HTTP_409,
    412: HTTP_412,
    429: HTTP_429,
    500: HTTP_500,
    502: HTTP_502,
    503: HTTP_503,
    504: HTTP_504,
}

TRANSIENT_STATUS = {429, 502, 503, 504}

# Validation subcodes
VALIDATION_EMPTY_NATURAL_KEY = "validation_empty_natural_key"
VALIDATION_UNKNOWN_TABLE = "validation_unknown_table"
VALIDATION_UNKNOWN_FIELD = "validation_unknown_field"
VALIDATION_FIELD_TYPE = "validation_field_type"
VALIDATION_REQUIRED_FIELD = "validation_required_field"
VALIDATION_BROKEN_LINK = "validation_broken_link"

# Lifecycle subcodes
NOT_FOUND_UNPERSISTED = "not_found_unpersisted"
NOT_FOUND_MISSING = "not_found_missing"
STALE_DELETED = "stale_deleted"


def http_error_subcode(status: int) -> str:
    """Convert an HTTP status code to a subcode string (``http_<status>`` fallback)."""
    return _HTTP_STATUS_TO_SUBCODE.get(status, f"http_{status}")


def is_transient_status(status: int) -> bool:
    return status in TRANSIENT_STATUS
