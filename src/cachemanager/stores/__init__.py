"""Storage backends for cachemanager (async only)."""

from cachemanager.stores.base import Store
from cachemanager.stores.memory import MemoryStore

# RedisStore only needs the redis package for the client you pass in
from cachemanager.stores.redis import RedisStore

__all__ = [
    "MemoryStore",
    "RedisStore",
    "Store",
]
