"""Keyed query cache with per-key request de-duplication.

At most one fetch per key is in flight at a time; concurrent readers await
the same future. ``invalidate`` marks the entry stale and detaches the
in-flight fetch, so the first read issued after it always starts a fresh
fetch. A fetch that was already running still resolves for its own callers,
but its result is not stored.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)

QueryKey = Hashable


@dataclass
class CacheEntry:
    value: Any
    stale: bool = False


class QueryCache:
    def __init__(self):
        self._entries: Dict[QueryKey, CacheEntry] = {}
        self._inflight: Dict[QueryKey, asyncio.Future] = {}
        self._generations: Dict[QueryKey, int] = {}

    def get(self, key: QueryKey, default: Any = None) -> Any:
        """Return the cached value (fresh or stale) without fetching."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else default

    def is_fresh(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.stale

    def put(self, key: QueryKey, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value)

    def invalidate(self, key: QueryKey) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1
        self._inflight.pop(key, None)
        entry = self._entries.get(key)
        if entry is not None:
            entry.stale = True
        logger.debug(f"Invalidated query {key!r}")

    def clear(self) -> None:
        for key in list(self._entries) + list(self._inflight):
            self.invalidate(key)
        self._entries.clear()

    def in_flight(self, key: QueryKey) -> bool:
        return key in self._inflight

    async def fetch(self, key: QueryKey, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value, joining or starting a fetch when needed."""
        if self.is_fresh(key):
            return self._entries[key].value

        future = self._inflight.get(key)
        if future is None:
            future = asyncio.ensure_future(self._run(key, fetcher))
            self._inflight[key] = future
        # shield: one caller being cancelled must not cancel the shared fetch
        return await asyncio.shield(future)

    async def _run(self, key: QueryKey, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        generation = self._generations.get(key, 0)
        try:
            value = await fetcher()
        except Exception:
            logger.warning(f"Query {key!r} failed; keeping previous value")
            raise
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                self._inflight.pop(key, None)

        if self._generations.get(key, 0) == generation:
            self.put(key, value)
        return value
