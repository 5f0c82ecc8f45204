# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Data models and type definitions for the CRM records library.

- :class:`~crm_records.models.record.Record`: Record representation with dict-like access.
- :class:`~crm_records.models.schema.TableSchema`: Declared schema of a record kind.

Import directly from the specific module files.
"""

__all__ = []
