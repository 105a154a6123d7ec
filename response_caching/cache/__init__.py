"""Tag store layer.

Public API:
    CacheEntry            - Stored item with stored_at / ttl_ms
    CacheBackend          - Abstract base for all backends
    InMemoryCacheBackend  - Dict-backed default backend
    RedisCacheBackend     - Redis-backed backend
    get_cache_backend     - Factory: selects backend from settings

    ResponseCacheStore    - TTL-checking wrapper raising BackendError
    resolve_cache_backend - Collapses backend / factory / factory-of-factory
"""

from response_caching.cache.backend import (
    CacheBackend,
    CacheEntry,
    InMemoryCacheBackend,
    RedisCacheBackend,
    get_cache_backend,
)
from response_caching.cache.store import (
    CacheBackendFactory,
    CacheBackendFactoryProvider,
    CacheOption,
    ResponseCacheStore,
    SupportsCacheStore,
    resolve_cache_backend,
)

__all__ = [
    "CacheEntry",
    "CacheBackend",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "get_cache_backend",
    "ResponseCacheStore",
    "SupportsCacheStore",
    "CacheBackendFactory",
    "CacheBackendFactoryProvider",
    "CacheOption",
    "resolve_cache_backend",
]
