import asyncio
import logging
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


def make_key(prefix: str, *parts: Any) -> str:
    """Build a cache key such as 'notes:user-1:subject-9'. None parts are written as '*'."""
    return ":".join([prefix] + ["*" if p is None else str(p) for p in parts])


class CoalescingCache:
    """
    In-memory LRU cache with TTL that also de-duplicates concurrent loads.

    get_or_load(key, loader) returns a cached value when one is fresh. Otherwise,
    if a load for the same key is already running, the caller awaits that load
    instead of starting another one. Failed loads are never cached.

    invalidate(prefix) drops cached values and forgets in-flight loads for every
    key starting with prefix; a load that finishes after being invalidated
    returns its value to its own waiters but does not populate the cache.
    """

    def __init__(self, max_size: int = 1000, default_ttl: float = 300) -> None:
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._entries: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._in_flight: Dict[str, asyncio.Future] = {}
        self._stats = {"hits": 0, "misses": 0, "coalesced": 0, "invalidated": 0}

    def _get_fresh(self, key: str) -> Tuple[bool, Any]:
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return False, None
        self._entries.move_to_end(key)
        return True, value

    def _store(self, key: str, value: Any, ttl: Optional[float]) -> None:
        self._entries[key] = (value, time.monotonic() + (ttl if ttl is not None else self.default_ttl))
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache evict | Key: %s", evicted)

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None,
    ) -> Any:
        """Return the cached value for key, joining or starting a load when needed."""
        found, value = self._get_fresh(key)
        if found:
            self._stats["hits"] += 1
            logger.debug("Cache hit | Key: %s", key)
            return value

        task = self._in_flight.get(key)
        if task is not None:
            self._stats["coalesced"] += 1
            logger.debug("Cache join in-flight load | Key: %s", key)
            return await asyncio.shield(task)

        self._stats["misses"] += 1
        logger.debug("Cache miss | Key: %s", key)
        task = asyncio.ensure_future(loader())
        self._in_flight[key] = task
        task.add_done_callback(lambda t: self._finish(key, t, ttl))
        return await asyncio.shield(task)

    def _finish(self, key: str, task: asyncio.Future, ttl: Optional[float]) -> None:
        if self._in_flight.get(key) is not task:
            # Invalidated while loading
            return
        del self._in_flight[key]
        if task.cancelled() or task.exception() is not None:
            return
        self._store(key, task.result(), ttl)

    def invalidate(self, prefix: str) -> int:
        """Forget cached values and in-flight loads for keys starting with prefix. Returns the count."""
        keys = [k for k in self._entries if k.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        pending = [k for k in self._in_flight if k.startswith(prefix)]
        for key in pending:
            del self._in_flight[key]
        count = len(keys) + len(pending)
        self._stats["invalidated"] += count
        if count:
            logger.debug("Cache invalidate | Prefix: %s | Cleared: %d", prefix, count)
        return count

    def clear(self) -> None:
        self._entries.clear()
        self._in_flight.clear()

    def stats(self) -> Dict[str, Any]:
        """Return hit/miss counters and the current size."""
        total = self._stats["hits"] + self._stats["misses"] + self._stats["coalesced"]
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "in_flight": len(self._in_flight),
            "hit_rate": (self._stats["hits"] + self._stats["coalesced"]) / max(total, 1),
            **self._stats,
        }
