"""
Integration test configuration and fixtures.

Builds the full application (request ID, session middleware, error
handlers and routes) over an in-process memory store so tests can drive
complete request sequences through a TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from config.settings import Settings
from main import create_app
from session.memory_store import MemorySessionStore

SIGNING_KEYS = ["tree.xie", "vicanso"]


def make_settings(**overrides) -> Settings:
    values = {"max_age": 60, "log_level": "WARNING"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore(size=64)


@pytest.fixture
def signed_app(store):
    """Application that signs its session cookies."""
    return create_app(make_settings(keys=list(SIGNING_KEYS)), store=store)


@pytest.fixture
def unsigned_app(store):
    """Application with plain session cookies."""
    return create_app(make_settings(), store=store)


@pytest.fixture
def client(signed_app):
    return TestClient(signed_app)
