"""
Single-slot, time-boxed cache with stale-serve on refresh failure.

One CacheEntry per key; an entry is replaced (never merged) on each
successful refresh and retained when a refresh fails. State is process
local and lost on restart.

Concurrent expirations may trigger duplicate refreshes (last writer
wins). Passing ``single_flight=True`` serializes refreshes per key and
re-checks freshness after waiting, so at most one refresh runs per key.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

from gateway.domain.market.entities import CacheEntry, CacheLookup

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
RefreshFn = Callable[[], Awaitable[Any]]


class FreshnessCache:
    """Cache service constructed once per process and shared by handlers.

    Args:
        clock: Monotonic time source in seconds. Injected for tests.
        single_flight: Serialize refreshes of the same key.
    """

    def __init__(self, clock: Clock = time.monotonic, single_flight: bool = False) -> None:
        self._clock = clock
        self._single_flight = single_flight
        self._entries: dict[str, CacheEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def peek(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_refresh(self, key: str, ttl: float, refresh: RefreshFn) -> CacheLookup:
        """Return a fresh entry, or refresh it, or fall back to the stale one.

        Args:
            key: Cache key.
            ttl: Time-to-live in seconds for an entry stored by this call.
            refresh: Coroutine factory producing a new payload; raises on failure.

        Returns:
            CacheLookup with ``stale=True`` only when a refresh failed and a
            previous entry was served instead.

        Raises:
            Exception: Whatever ``refresh`` raised, when no previous entry exists.
        """
        entry = self._fresh_entry(key)
        if entry is not None:
            return CacheLookup(payload=entry.payload, stale=False, hit=True, age=entry.age(self._clock()))

        if not self._single_flight:
            return await self._refresh(key, ttl, refresh)

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            entry = self._fresh_entry(key)
            if entry is not None:
                return CacheLookup(payload=entry.payload, stale=False, hit=True, age=entry.age(self._clock()))
            return await self._refresh(key, ttl, refresh)

    def _fresh_entry(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is not None and entry.is_fresh(self._clock()):
            return entry
        return None

    async def _refresh(self, key: str, ttl: float, refresh: RefreshFn) -> CacheLookup:
        try:
            payload = await refresh()
        except Exception as exc:
            previous = self._entries.get(key)
            if previous is None:
                raise
            logger.warning(
                "Refresh failed for cache key=%s (%s); serving stale entry aged %.1fs",
                key,
                type(exc).__name__,
                previous.age(self._clock()),
            )
            return CacheLookup(
                payload=previous.payload,
                stale=True,
                hit=True,
                age=previous.age(self._clock()),
            )

        self._entries[key] = CacheEntry(key=key, payload=payload, cached_at=self._clock(), ttl=ttl)
        logger.debug("Cache key=%s refreshed (ttl=%.0fs)", key, ttl)
        return CacheLookup(payload=payload, stale=False, hit=False, age=0.0)
