"""Simple in-memory TTL cache with an async get-or-fetch front. No Redis needed.

Note: Each uvicorn worker has its own cache instance. With --workers 2,
data may be fetched twice (once per worker). The store is also unbounded:
entries are only replaced, never evicted by size, so it grows with the number
of distinct keys seen over the process lifetime.

Concurrent misses on the same key each call their producer and the last
write wins. There is no single-flight de-duplication.
"""

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from errors import FetchError, UpstreamTimeoutError
from services.clock import Clock, system_clock

logger = logging.getLogger(__name__)

Producer = Callable[[], Awaitable[Any]]


def cache_key(endpoint: str, identifier: Any) -> str:
    """Build the cache key for one logical query, e.g. ``depositors:5253927``."""
    if ":" in endpoint:
        raise ValueError(f"Endpoint name must not contain ':': {endpoint!r}")
    return f"{endpoint}:{identifier}"


@dataclass(frozen=True)
class CacheEntry:
    payload: Any
    stored_at: float

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.stored_at < ttl


class CacheStore:
    """Lock-guarded key → CacheEntry mapping. Knows nothing about TTLs."""

    def __init__(self):
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._store.get(key)

    def put(self, key: str, payload: Any, timestamp: float) -> None:
        with self._lock:
            self._store[key] = CacheEntry(payload, timestamp)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class Memoizer:
    """Owns the read-check-write sequence on a CacheStore."""

    def __init__(self, store: CacheStore, clock: Clock = system_clock):
        self.store = store
        self.clock = clock
        self.hits = 0
        self.misses = 0

    async def get_or_fetch(
        self,
        key: str,
        ttl: float,
        producer: Producer,
        timeout: float | None = None,
    ) -> Any:
        """Return the cached payload for ``key`` if fresh, else call ``producer``.

        Successful results are stored with the current clock reading. Failures
        are raised as FetchError and never cached; a stale entry stays in the
        store but is not returned.
        """
        entry = self.store.get(key)
        if entry is not None and entry.is_fresh(self.clock(), ttl):
            self.hits += 1
            logger.debug("Cache hit for %s", key)
            return entry.payload

        self.misses += 1
        logger.info("Cache %s for %s, fetching", "stale" if entry else "miss", key)
        try:
            payload = await self._produce(producer, timeout)
        except Exception as e:
            logger.warning("Fetch for %s failed: %s", key, e)
            raise FetchError(key, e) from e

        self.store.put(key, payload, self.clock())
        return payload

    @staticmethod
    async def _produce(producer: Producer, timeout: float | None) -> Any:
        if timeout is None:
            return await producer()
        # Only the timeout bound maps to UpstreamTimeoutError; a TimeoutError
        # raised by the producer itself passes through unchanged.
        task = asyncio.ensure_future(producer())
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task in done:
            return task.result()
        task.cancel()
        raise UpstreamTimeoutError(f"Upstream call timed out after {timeout:g}s")
