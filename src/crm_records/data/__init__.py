# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Backing store implementations for the CRM records library.

- :class:`~crm_records.data._store.BackingStore`: abstract collaborator contract.
- :class:`~crm_records.data._memory.InMemoryStore`: in-process reference store.
- :class:`~crm_records.data._odata.ODataStore`: Dataverse Web API store.
"""

__all__ = []
