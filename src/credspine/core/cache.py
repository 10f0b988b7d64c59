"""
Caching abstraction with in-memory and Redis backends.

Provides the keyed-cache-with-TTL collaborator the Row Index Cache sits on:
``get(key)``, ``set(key, value, ttl_seconds=...)``, ``delete(key)``. Cache
keys are typed :class:`IndexKey` tuples at the engine boundary and rendered
to strings only here, so no call site concatenates key strings by hand.

Manifesto:
    - **Protocol-based:** CacheBackend defines the contract
    - **Injected, not global:** every engine gets its own backend instance,
      so tests are isolated by construction
    - **TTL support:** Time-based expiration for all backends

Architecture:
    ::

        CacheBackend (Protocol)
        ├── InMemoryCache  - single-process, bounded LRU
        └── RedisCache     - shared across processes

        API: get(key) → value | None
             set(key, value, ttl_seconds=None)
             delete(key)
             exists(key) → bool
             clear()

Guardrails:
    ❌ DON'T: Expect an InMemoryCache invalidation to reach another process
    ✅ DO: Treat the TTL as the upper bound on cross-process staleness

Tags:
    cache, caching, redis, in-memory, ttl, cred-spine
"""

from __future__ import annotations

import json
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, NamedTuple, Protocol


class IndexKey(NamedTuple):
    """Typed cache key for a table's row index: ``(store_id, table_name)``."""

    store_id: str
    table: str

    def render(self) -> str:
        """String form used by the cache backends."""
        return f"row_index:{self.store_id}:{self.table}"


class CacheBackend(Protocol):
    """Protocol for cache backend implementations.

    Keys are strings, values are JSON-serializable.
    """

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` if missing or expired."""
        ...

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        """Store a value; ``ttl_seconds=None`` uses the backend default."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. No-op if the key does not exist."""
        ...

    def exists(self, key: str) -> bool:
        """``True`` if the key exists and has not expired."""
        ...

    def clear(self) -> None:
        """Remove all keys. Use for testing only."""
        ...


# ------------------------------------------------------------------ #
# In-Memory Cache
# ------------------------------------------------------------------ #


class _Entry(NamedTuple):
    value: Any
    expires_at: float | None


class InMemoryCache:
    """Bounded, thread-safe in-memory cache with per-key TTL.

    The least recently read or written key is evicted once ``max_size``
    keys are held. Expired entries are dropped lazily on access.

    Example:
        cache = InMemoryCache(max_size=500, default_ttl_seconds=3600)
        cache.set("row_index:default:Providers", {"p-1": 2})
        cache.get("row_index:default:Providers")
    """

    def __init__(
        self,
        *,
        max_size: int = 10_000,
        default_ttl_seconds: int | None = 3600,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            max_size: Maximum number of keys before LRU eviction.
            default_ttl_seconds: TTL used when ``set`` gets none (``None`` → no expiry).
            clock: Zero-arg callable returning epoch seconds.
        """
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        entry = _Entry(value, self._clock() + ttl if ttl else None)
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live(key) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Number of keys held, expired ones included until next touched."""
        with self._lock:
            return len(self._entries)

    def _live(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() > entry.expires_at:
            del self._entries[key]
            return None
        return entry


# ------------------------------------------------------------------ #
# Redis Cache (optional)
# ------------------------------------------------------------------ #


class RedisCache:
    """Redis-backed cache, so every process on one store shares its row indexes.

    Values travel as JSON; a row index (``{id: row_number}``) round-trips
    unchanged. Requires the ``redis`` extra (``pip install cred-spine[redis]``).

    Raises:
        ImportError: If the ``redis`` package is not installed.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        default_ttl_seconds: int | None = 3600,
    ):
        try:
            import redis
        except ImportError as exc:
            raise ImportError(
                "The redis cache backend needs the 'redis' package. "
                "Install with: pip install cred-spine[redis]"
            ) from exc

        self._client = redis.Redis.from_url(url)
        self._default_ttl = default_ttl_seconds

    def get(self, key: str) -> Any | None:
        payload = self._client.get(key)
        return None if payload is None else json.loads(payload)

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        self._client.set(key, json.dumps(value), ex=ttl or None)

    def delete(self, key: str) -> None:
        self._client.delete(key)

    def exists(self, key: str) -> bool:
        return self._client.exists(key) > 0

    def clear(self) -> None:
        """Drop every row index key; other keys in the database are left alone."""
        keys = list(self._client.scan_iter(match="row_index:*"))
        if keys:
            self._client.delete(*keys)


__all__ = [
    "IndexKey",
    "CacheBackend",
    "InMemoryCache",
    "RedisCache",
]
