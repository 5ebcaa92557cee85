"""
Shared fixtures for the index versioning tests.
"""

import pytest
import pytest_asyncio

from search.indexver.indexables import Indexable, IndexableRegistry
from search.indexver.settings import InMemorySettingsStore
from search.indexver.versioning import VersionRegistry


class FakeClock:
    """Deterministic clock; every call advances one second."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture
def clock():
    """Create a deterministic clock."""
    return FakeClock()


@pytest_asyncio.fixture
async def store():
    """Create a connected in-memory settings store."""
    settings = InMemorySettingsStore(site_id="1")
    await settings.connect()
    yield settings
    await settings.close()


@pytest.fixture
def registry(store, clock):
    """Create a version registry over the in-memory store."""
    return VersionRegistry(store, clock=clock)


@pytest.fixture
def indexables():
    """Create an indexable registry with posts and users."""
    reg = IndexableRegistry()
    reg.register(Indexable("post", "Posts"))
    reg.register(Indexable("user", "Users"))
    return reg
