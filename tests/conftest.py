# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Shared pytest fixtures and configuration for CRM records tests.

This module provides common test fixtures, mock objects, and configuration
that can be used across all test modules.
"""

import itertools

import pytest

from crm_records.client import CrmClient
from crm_records.core.config import CrmConfig
from crm_records.data._memory import InMemoryStore


def sequential_ids():
    """Deterministic GUID-shaped id factory."""
    counter = itertools.count(1)
    return lambda: f"00000000-0000-0000-0000-{next(counter):012d}"


@pytest.fixture
def test_config():
    """Test configuration with safe defaults."""
    return CrmConfig(http_timeout=5)


@pytest.fixture
def store(test_config):
    """Empty in-memory store with sequential ids."""
    return InMemoryStore(test_config, id_factory=sequential_ids())


@pytest.fixture
def client(store):
    """Client over the in-memory store."""
    return CrmClient(store)


@pytest.fixture
def dummy_auth():
    """Mock authentication object for testing."""

    class DummyAuth:
        def _acquire_token(self, scope):
            return "test_token_12345"

    return DummyAuth()


@pytest.fixture
def sample_base_url():
    """Standard test base URL."""
    return "https://org.example.com"


@pytest.fixture
def sample_guid():
    """Sample GUID for testing."""
    return "11111111-2222-3333-4444-555555555555"
