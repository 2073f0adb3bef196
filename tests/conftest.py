"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from hypothesis import Phase, Verbosity, settings

from session.cookies import CookieOptions, MemoryReadWriter
from session.memory_store import MemorySessionStore
from session.session import SessionOptions

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough and reproducible
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples, no shrinking
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


SIGNING_KEYS = ["tree.xie", "vicanso"]


@pytest.fixture
def memory_store() -> MemorySessionStore:
    """A small memory store shared by the sessions of one test."""
    return MemorySessionStore(size=128)


@pytest.fixture
def mock_redis() -> MagicMock:
    """Mock redis.asyncio client."""
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.set = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.aclose = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def signing_keys() -> list[str]:
    return list(SIGNING_KEYS)


@pytest.fixture
def session_options(memory_store) -> SessionOptions:
    """Unsigned options over the memory store."""
    return SessionOptions(store=memory_store, max_age=60)


@pytest.fixture
def signed_session_options(memory_store, signing_keys) -> SessionOptions:
    """Signed options over the memory store."""
    return SessionOptions(
        store=memory_store,
        max_age=60,
        cookie_options=CookieOptions(keys=signing_keys, max_age=60),
    )


@pytest.fixture
def read_writer() -> MemoryReadWriter:
    """A cookie read-writer with no inbound cookies."""
    return MemoryReadWriter()
