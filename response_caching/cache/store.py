"""ResponseCacheStore: the TTL-bounded store the caching layer talks to.

The store wraps a backend and guarantees, whatever the backend does:
- get() returns a live CacheEntry, None on miss/expiry, or raises BackendError
- set() returns once the backend has recorded the entry, or raises BackendError
- an expired entry is never returned, even from a backend that forgets
  to check

Backends may be given at registration time as an instance, a factory, or a
factory returning a factory. resolve_cache_backend() collapses that
indirection once, before the first request.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import Callable
from typing import Any, Protocol, TypeAlias, runtime_checkable

import structlog

from response_caching.cache.backend import CacheBackend, CacheEntry, get_cache_backend
from response_caching.exceptions import BackendError, ConfigurationError

log = structlog.get_logger(__name__)


@runtime_checkable
class SupportsCacheStore(Protocol):
    """Structural contract for caller-supplied backends.

    Methods may be coroutines or plain functions.
    """

    def get(self, key: str) -> Any: ...

    def set(self, key: str, item: Any, ttl_ms: int) -> Any: ...


CacheBackendLike: TypeAlias = CacheBackend | SupportsCacheStore
CacheBackendFactory: TypeAlias = Callable[[], CacheBackendLike | None]
CacheBackendFactoryProvider: TypeAlias = Callable[[], CacheBackendFactory]
CacheOption: TypeAlias = CacheBackendLike | CacheBackendFactory | CacheBackendFactoryProvider | None


def _is_backend(candidate: Any) -> bool:
    # Classes expose get/set too; a class is a factory, not a backend
    return not isinstance(candidate, type) and isinstance(candidate, SupportsCacheStore)


def resolve_cache_backend(option: CacheOption, settings: Any) -> CacheBackendLike:
    """Resolve the ``cache`` registration option to a concrete backend.

    Accepts, in order: a backend, a factory returning a backend (or None),
    or a provider returning such a factory. None anywhere in the chain
    selects the default backend for settings.
    """
    if option is None or _is_backend(option):
        layer: Any = option
    elif callable(option):
        layer = option()
        if layer is not None and not _is_backend(layer):
            if not callable(layer):
                raise ConfigurationError(
                    f"cache factory returned {type(layer).__name__}, expected a cache backend"
                )
            layer = layer()
    else:
        raise ConfigurationError(
            f"cache option must be a backend or a factory, got {type(option).__name__}"
        )

    if layer is None:
        return get_cache_backend(settings)
    if not _is_backend(layer):
        raise ConfigurationError(
            f"cache option resolved to {type(layer).__name__}, which lacks get()/set()"
        )
    return layer


async def _call(method: Callable[..., Any], *args: Any) -> Any:
    result = method(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class ResponseCacheStore:
    """Async key-value store with lazy TTL expiry over a pluggable backend."""

    def __init__(self, backend: CacheBackendLike, *, clock: Callable[[], float] = time.time) -> None:
        self._backend = backend
        self._clock = clock

    @property
    def backend(self) -> CacheBackendLike:
        return self._backend

    async def get(self, key: str) -> CacheEntry | None:
        try:
            entry = await _call(self._backend.get, key)
        except Exception as exc:
            log.warning("cache.store.get_failed", key=key, error=str(exc))
            raise BackendError("get", key, str(exc)) from exc

        if entry is None:
            return None
        if not isinstance(entry, CacheEntry):
            raise BackendError("get", key, f"backend returned {type(entry).__name__}, not CacheEntry")
        if entry.is_expired(self._clock()):
            return None
        return entry

    async def set(self, key: str, item: Any, ttl_ms: int) -> None:
        if isinstance(ttl_ms, bool) or not isinstance(ttl_ms, int) or ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be a positive integer, got {ttl_ms!r}")
        try:
            await _call(self._backend.set, key, item, ttl_ms)
        except Exception as exc:
            log.warning("cache.store.set_failed", key=key, error=str(exc))
            raise BackendError("set", key, str(exc)) from exc

    async def delete(self, key: str) -> None:
        delete = getattr(self._backend, "delete", None)
        if delete is None:
            raise BackendError("delete", key, "backend does not support delete")
        try:
            await _call(delete, key)
        except Exception as exc:
            log.warning("cache.store.delete_failed", key=key, error=str(exc))
            raise BackendError("delete", key, str(exc)) from exc
