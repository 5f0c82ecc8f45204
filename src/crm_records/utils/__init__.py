# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Internal helpers for the CRM records library."""

__all__ = []
