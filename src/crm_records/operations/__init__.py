# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Operation namespace classes for the CRM records library.

- RecordOperations: CRUD operations on records
- UpsertHelper: natural-key find-or-create and batch upsert
- DmlRecipes: short worked examples built on the two above
"""

__all__ = []
