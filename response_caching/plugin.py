"""Registration of the caching layer on an ASGI application.

install_caching() validates options, renders the Cache-Control policy,
resolves the backend and wires CachingMiddleware plus a BackendError
handler into the app. It is idempotent: the first registration sets
``app.state.response_caching_installed`` and stores the installation.
Later calls on the same app, or on a sub-application whose parent is
installed, return the existing installation without touching any state.
A sub-application still gets its own BackendError handler. The flag is never cleared; it lives as long as the app object does.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response

from response_caching.cache.backend import CacheEntry
from response_caching.cache.store import ResponseCacheStore, resolve_cache_backend
from response_caching.config import CachingOptions, CachingSettings, get_settings
from response_caching.exceptions import BackendError
from response_caching.middleware import (
    INSTALLATION_STATE_KEY,
    CachingMiddleware,
    backend_error_response,
)
from response_caching.policy import PolicyConfig, render_cache_control
from response_caching.tags import TagGenerator

log = structlog.get_logger(__name__)

INSTALLED_FLAG = "response_caching_installed"
INSTALLATION_ATTR = "response_caching"


class CacheAccessor:
    """Route-facing view of the store, exposed as ``app.state.cache``.

    Stored response tags live in the same store under
    ``<cache_segment>:<tag>``. That prefix is reserved: set() and delete()
    reject keys inside it, get() may still read them.
    """

    def __init__(self, store: ResponseCacheStore, reserved_prefix: str = "") -> None:
        self._store = store
        self._reserved_prefix = reserved_prefix

    def _check_writable(self, key: str) -> None:
        if self._reserved_prefix and key.startswith(self._reserved_prefix):
            raise ValueError(f"cache key {key!r} is reserved for stored response tags")

    async def get(self, key: str) -> CacheEntry | None:
        return await self._store.get(key)

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        self._check_writable(key)
        await self._store.set(key, value, ttl_ms)

    async def delete(self, key: str) -> None:
        self._check_writable(key)
        await self._store.delete(key)


@dataclass(frozen=True)
class CachingInstallation:
    """Everything one registration resolved. Immutable after install."""

    options: CachingOptions
    policy: PolicyConfig
    cache_control: str
    store: ResponseCacheStore
    tags: TagGenerator = field(default_factory=TagGenerator)

    @property
    def accessor(self) -> CacheAccessor:
        return CacheAccessor(self.store, reserved_prefix=self.tag_key(""))

    def tag_key(self, tag: str) -> str:
        return f"{self.options.cache_segment}:{tag}"

    async def lookup_tag(self, tag: str) -> str | None:
        """Return the stored outgoing tag for tag, or None if unknown or expired."""
        entry = await self.store.get(self.tag_key(tag))
        if entry is None:
            return None
        if isinstance(entry.item, dict):
            return entry.item.get("etag", tag)
        return tag

    async def remember_tag(self, tag: str, *, path: str, status_code: int, ttl_ms: int) -> None:
        await self.store.set(
            self.tag_key(tag),
            {"etag": tag, "path": path, "status_code": status_code},
            ttl_ms,
        )
        log.debug("caching.tag_stored", etag=tag, path=path, ttl_ms=ttl_ms)


def is_caching_installed(app: Starlette) -> bool:
    return bool(getattr(app.state, INSTALLED_FLAG, False))


def get_installation(app: Starlette) -> CachingInstallation | None:
    return getattr(app.state, INSTALLATION_ATTR, None)


async def _handle_backend_error(request: Request, exc: Exception) -> Response:
    log.error("caching.backend_error", phase="handler", path=request.url.path, error=str(exc))
    return backend_error_response()


def install_caching(
    app: Starlette,
    *,
    parent: Starlette | None = None,
    settings: CachingSettings | None = None,
    **options: Any,
) -> CachingInstallation:
    """Install response caching on app.

    Args:
        app: FastAPI or Starlette application.
        parent: Enclosing application when app is mounted under it. An
            installed parent makes this call return its installation; only
            the BackendError handler is registered on app.
        settings: Defaults source; get_settings() when omitted.
        **options: privacy, expires_in, server_expires_in, cache,
            etag_max_life_ms, cache_segment, compare_outgoing_tag.

    Returns:
        The new installation, or the one already in effect.

    Raises:
        ConfigurationError: options are unknown or invalid, or the cache
            option does not resolve to a backend.
    """
    for scope_app in (parent, app):
        if scope_app is None or not is_caching_installed(scope_app):
            continue
        existing = get_installation(scope_app)
        if existing is not None:
            if scope_app is not app:
                # Exceptions raised in a mounted app never reach the
                # parent's ExceptionMiddleware.
                app.add_exception_handler(BackendError, _handle_backend_error)
            log.debug("caching.already_installed", inherited=scope_app is parent)
            return existing

    if settings is None:
        settings = get_settings()
    caching_options = CachingOptions.build(settings, options)
    policy = caching_options.policy()
    backend = resolve_cache_backend(caching_options.cache, settings)

    installation = CachingInstallation(
        options=caching_options,
        policy=policy,
        cache_control=render_cache_control(policy),
        store=ResponseCacheStore(backend),
    )

    app.add_middleware(CachingMiddleware, installation=installation)
    app.add_exception_handler(BackendError, _handle_backend_error)
    app.state.cache = installation.accessor
    setattr(app.state, INSTALLATION_ATTR, installation)
    setattr(app.state, INSTALLED_FLAG, True)

    log.info(
        "caching.installed",
        privacy=caching_options.privacy.value,
        cache_control=installation.cache_control,
        backend=type(backend).__name__,
    )
    return installation


def cache_accessor(request: Request) -> CacheAccessor:
    """FastAPI dependency returning the cache accessor for the current request."""
    installation = getattr(request.state, INSTALLATION_STATE_KEY, None) or get_installation(
        request.app
    )
    if installation is None:
        raise RuntimeError("Response caching is not installed on this application")
    return installation.accessor
