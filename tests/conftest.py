"""
Shared test fixtures for pytest.

- settings: CachingSettings with in-memory defaults, isolated from env/.env
- memory_backend: fresh InMemoryCacheBackend
- client_for: async context manager yielding an httpx client for an app
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import pytest
from starlette.types import ASGIApp

from response_caching.cache.backend import InMemoryCacheBackend
from response_caching.config import CachingSettings, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Clear the lru_cache on get_settings so env overrides take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> CachingSettings:
    """Settings with safe defaults and no Redis."""
    return CachingSettings(_env_file=None, redis_url="")


@pytest.fixture
def memory_backend() -> InMemoryCacheBackend:
    return InMemoryCacheBackend()


@asynccontextmanager
async def _client_for(app: ASGIApp) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def client_for():
    """Return a factory: ``async with client_for(app) as client: ...``."""
    return _client_for
