"""Cache backend implementations.

Defines CacheEntry, the CacheBackend ABC and two concrete backends:
- InMemoryCacheBackend: dict-based with lazy TTL expiry, the default
- RedisCacheBackend: JSON entries in Redis, expired natively by PSETEX

Unlike a best-effort cache, backends here never swallow failures: a
broken backend must stay distinguishable from a miss, because the 304
decision depends on it. ResponseCacheStore wraps whatever they raise
into BackendError.

The in-memory backend has no size bound. Its contract only promises a
bounded lifetime per entry, so a process issuing many distinct tags grows
until entries are read or prune_expired() runs. Use Redis (or another
bounded backend) when that matters.
"""

from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A stored item with the wall-clock time it was written and its TTL."""

    item: Any
    stored_at: float
    ttl_ms: int

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_ms / 1000

    def is_expired(self, now: float | None = None) -> bool:
        if now is None:
            now = time.time()
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {"item": self.item, "stored_at": self.stored_at, "ttl_ms": self.ttl_ms}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheEntry:
        return cls(item=data["item"], stored_at=float(data["stored_at"]), ttl_ms=int(data["ttl_ms"]))


class CacheBackend(ABC):
    """Abstract interface all cache backends must implement."""

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the live entry for key, or None if not found / expired."""

    @abstractmethod
    async def set(self, key: str, item: Any, ttl_ms: int) -> None:
        """Store item under key for ttl_ms milliseconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key from cache (no-op if key does not exist)."""

    @abstractmethod
    async def info(self) -> dict[str, Any]:
        """Return backend-specific info/stats dict."""


# ---------------------------------------------------------------------------
# In-memory backend (default)
# ---------------------------------------------------------------------------


class InMemoryCacheBackend(CacheBackend):
    """Dict-backed cache with lazy TTL expiry.

    The lock is a threading.Lock held only around dictionary operations and
    never across an await, so the backend is safe whether concurrent
    cycles share one event loop or run on several threads.
    """

    def __init__(self) -> None:
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits: int = 0
        self._misses: int = 0

    async def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is not None and entry.is_expired():
                del self._store[key]
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            return entry

    async def set(self, key: str, item: Any, ttl_ms: int) -> None:
        entry = CacheEntry(item=item, stored_at=time.time(), ttl_ms=ttl_ms)
        with self._lock:
            self._store[key] = entry

    async def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def prune_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = time.time()
        with self._lock:
            expired = [k for k, v in self._store.items() if v.is_expired(now)]
            for k in expired:
                del self._store[k]
        if expired:
            log.debug("cache.memory.pruned", removed=len(expired))
        return len(expired)

    async def info(self) -> dict[str, Any]:
        self.prune_expired()
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0.0
            return {
                "backend": "memory",
                "connected": True,
                "total_keys": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 4),
            }


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------


class RedisCacheBackend(CacheBackend):
    """Cache backend backed by Redis.

    Entries are JSON-serialised (no pickle) together with their stored_at
    and ttl_ms, and written with PSETEX so Redis evicts them on its own.
    The client is created lazily on first call so import never blocks.
    """

    def __init__(self, redis_url: str) -> None:
        self._redis_url = redis_url
        self._client: Any = None  # redis.asyncio.Redis, set on first use

    async def _get_client(self) -> Any:
        if self._client is None:
            import redis.asyncio as aioredis

            self._client = aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def get(self, key: str) -> CacheEntry | None:
        client = await self._get_client()
        raw = await client.get(key)
        if raw is None:
            return None
        return CacheEntry.from_dict(json.loads(raw))

    async def set(self, key: str, item: Any, ttl_ms: int) -> None:
        client = await self._get_client()
        entry = CacheEntry(item=item, stored_at=time.time(), ttl_ms=ttl_ms)
        await client.psetex(key, ttl_ms, json.dumps(entry.to_dict()))

    async def delete(self, key: str) -> None:
        client = await self._get_client()
        await client.delete(key)

    async def info(self) -> dict[str, Any]:
        try:
            client = await self._get_client()
            dbsize = await client.dbsize()
        except Exception as exc:
            return {
                "backend": "redis",
                "url": self._redis_url,
                "connected": False,
                "error": str(exc),
            }
        return {
            "backend": "redis",
            "url": self._redis_url,
            "connected": True,
            "db_size": dbsize,
        }

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def get_cache_backend(settings: Any) -> CacheBackend:
    """Return the default CacheBackend for the given settings.

    Redis when settings.redis_url is set, otherwise in-memory.
    """
    redis_url: str = getattr(settings, "redis_url", "")

    if redis_url:
        log.info("cache.backend_selected", backend="redis", url=redis_url.split("@")[-1])
        return RedisCacheBackend(redis_url)

    log.info("cache.backend_selected", backend="memory")
    return InMemoryCacheBackend()
