"""HTTP response caching for FastAPI / Starlette.

Public API:
    install_caching       - Register the caching layer on an app
    is_caching_installed  - Registration guard check
    CachingInstallation   - Result of a registration
    CacheAccessor         - app.state.cache: get/set/delete on the store

    ResponseDecorators    - Per-request etag()/expires() intent
    response_decorators   - FastAPI dependency for the decorators
    cache_accessor        - FastAPI dependency for the accessor

    Privacy               - private / public / no-cache / no-store
    PolicyConfig          - Visibility plus expiry windows
    render_cache_control  - PolicyConfig -> Cache-Control value

    TagGenerator          - Content-derived ETags
    Decision, evaluate    - If-None-Match evaluation

    ResponseCacheStore    - TTL-bounded async store over a backend
    CacheEntry, CacheBackend, InMemoryCacheBackend, RedisCacheBackend

    CachingError, ConfigurationError, BackendError
"""

from response_caching.cache import (
    CacheBackend,
    CacheEntry,
    InMemoryCacheBackend,
    RedisCacheBackend,
    ResponseCacheStore,
)
from response_caching.conditional import ConditionalContext, Decision, evaluate
from response_caching.config import CachingOptions, CachingSettings, get_settings
from response_caching.decorators import ResponseDecorators, response_decorators
from response_caching.exceptions import BackendError, CachingError, ConfigurationError
from response_caching.plugin import (
    CacheAccessor,
    CachingInstallation,
    cache_accessor,
    install_caching,
    is_caching_installed,
)
from response_caching.policy import PolicyConfig, Privacy, render_cache_control
from response_caching.tags import TagGenerator

__all__ = [
    "install_caching",
    "is_caching_installed",
    "CachingInstallation",
    "CacheAccessor",
    "ResponseDecorators",
    "response_decorators",
    "cache_accessor",
    "Privacy",
    "PolicyConfig",
    "render_cache_control",
    "TagGenerator",
    "ConditionalContext",
    "Decision",
    "evaluate",
    "ResponseCacheStore",
    "CacheEntry",
    "CacheBackend",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "CachingSettings",
    "CachingOptions",
    "get_settings",
    "CachingError",
    "ConfigurationError",
    "BackendError",
]
