"""Shared pytest fixtures."""

import pytest

from cachemanager import Cache, InFlightRegistry, MemoryStore


@pytest.fixture
def store() -> MemoryStore:
    """Create a fresh MemoryStore for each test."""
    return MemoryStore()


@pytest.fixture
def registry() -> InFlightRegistry:
    """Create a fresh InFlightRegistry for each test."""
    return InFlightRegistry()


@pytest.fixture
def cache(store: MemoryStore, registry: InFlightRegistry) -> Cache:
    """Create a Cache over the memory store with a 10s default TTL."""
    return Cache(store, ttl="10s", registry=registry)
