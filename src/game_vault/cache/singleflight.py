"""Single-flight memoization for async lookups."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """A pending or completed computation for one key."""

    task: asyncio.Task[V]

    @property
    def in_flight(self) -> bool:
        return not self.task.done()


class SingleFlightCache(Generic[K, V]):
    """Memoize async computations so each key is computed at most once.

    The first caller for a key starts the computation and stores it; every
    later caller, concurrent or not, awaits the same task. A computation that
    raises is evicted so the next caller retries it, while ``None`` and other
    results stay cached for the life of the cache.

    Cancelling one caller does not cancel the shared computation, since
    other callers may still be waiting on it.

    Args:
        key_func: Maps a lookup key to its cache key (identity if None)

    Example:
        cache = SingleFlightCache(key_func=str.casefold)
        platform = await cache.get_or_compute("SNES", lambda: fetch("snes"))
    """

    def __init__(self, key_func: Callable[[K], Hashable] | None = None) -> None:
        self._entries: dict[Hashable, CacheEntry[V]] = {}
        self._key_func = key_func

    def _key(self, key: K) -> Hashable:
        return self._key_func(key) if self._key_func else key

    async def get_or_compute(self, key: K, compute: Callable[[], Awaitable[V]]) -> V:
        """Return the cached result for a key, computing it once if needed.

        Args:
            key: Lookup key
            compute: Zero-argument coroutine function producing the value

        Returns:
            The computed value
        """
        cache_key = self._key(key)
        entry = self._entries.get(cache_key)

        if entry is None:
            task = asyncio.ensure_future(compute())
            entry = CacheEntry(task=task)
            self._entries[cache_key] = entry
            task.add_done_callback(lambda t, k=cache_key: self._evict_failed(k, t))
            logger.debug("Cache miss, computing %r", cache_key)
        else:
            logger.debug("Cache hit for %r (in flight: %s)", cache_key, entry.in_flight)

        return await asyncio.shield(entry.task)

    def _evict_failed(self, cache_key: Hashable, task: asyncio.Task[V]) -> None:
        """Drop an entry whose computation failed or was cancelled."""
        if not task.cancelled() and task.exception() is None:
            return
        entry = self._entries.get(cache_key)
        if entry is not None and entry.task is task:
            del self._entries[cache_key]
            logger.debug("Evicted failed computation for %r", cache_key)

    def get(self, key: K) -> Any | None:
        """Return a completed cached value without computing, or None."""
        entry = self._entries.get(self._key(key))
        if entry is None or entry.in_flight or entry.task.cancelled():
            return None
        if entry.task.exception() is not None:
            return None
        return entry.task.result()

    def __contains__(self, key: K) -> bool:
        return self._key(key) in self._entries

    @property
    def size(self) -> int:
        """Get the current number of entries, including in-flight ones."""
        return len(self._entries)

    def get_stats(self) -> dict[str, int]:
        """Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        in_flight = sum(1 for entry in self._entries.values() if entry.in_flight)
        return {
            "size": len(self._entries),
            "in_flight": in_flight,
        }

    async def clear(self) -> None:
        """Cancel in-flight computations and drop every entry."""
        pending = [entry.task for entry in self._entries.values() if entry.in_flight]
        self._entries.clear()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
