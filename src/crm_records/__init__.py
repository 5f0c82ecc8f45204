# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Create/update/upsert/delete operations for CRM records.

Entry point: :class:`~crm_records.client.CrmClient`.
"""

__version__ = "0.1.0"

from .client import CrmClient

__all__ = ["CrmClient", "__version__"]
