# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Core infrastructure components for the CRM records library.

This module contains the foundational components including configuration,
authentication, the HTTP client, and error handling.
"""

from .config import CrmConfig
from .errors import (
    CrmError,
    ValidationError,
    NotFoundError,
    StaleReferenceError,
    BackingStoreError,
    HttpError,
)

__all__ = [
    "CrmConfig",
    "CrmError",
    "ValidationError",
    "NotFoundError",
    "StaleReferenceError",
    "BackingStoreError",
    "HttpError",
]
