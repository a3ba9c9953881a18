"""cachemanager - async caching with stale-while-revalidate memoization."""

# Façade
from cachemanager.cache import Cache, create_cache

# Duration parsing
from cachemanager.duration import parse_duration

# Errors
from cachemanager.errors import (
    BackgroundRefreshError,
    CacheError,
    NotCacheableError,
    TTLResolutionError,
)
from cachemanager.inflight import InFlightRegistry
from cachemanager.multi import MultiCache, multi_caching

# Stores
from cachemanager.stores import MemoryStore, RedisStore, Store
from cachemanager.ttl import ComputedTTL, FixedTTL, TTLSpec, resolve_ttl

# Core types
from cachemanager.types import CacheEntry, Duration
from cachemanager.wrap import WrapEngine

__version__ = "0.1.0"

__all__ = [
    "BackgroundRefreshError",
    "Cache",
    "CacheEntry",
    "CacheError",
    "ComputedTTL",
    "Duration",
    "FixedTTL",
    "InFlightRegistry",
    "MemoryStore",
    "MultiCache",
    "NotCacheableError",
    "RedisStore",
    "Store",
    "TTLResolutionError",
    "TTLSpec",
    "WrapEngine",
    "create_cache",
    "multi_caching",
    "parse_duration",
    "resolve_ttl",
]
