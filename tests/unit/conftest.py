"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests. Tests control config exclusively through monkeypatch.setenv().
"""

import pytest

from repositories.link_registry import MemoryLinkRegistry
from repositories.memory_event_store import MemoryEventStore
from repositories.user_registry import MemoryUserRegistry


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def event_store():
    return MemoryEventStore()


@pytest.fixture
def link_registry():
    # link_id -> owner
    return MemoryLinkRegistry({"L1": "u1", "L2": "u1", "L3": "u2"})


@pytest.fixture
def user_registry():
    return MemoryUserRegistry()
