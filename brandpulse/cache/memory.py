"""Process-local response cache, used in tests and single-process setups."""

from __future__ import annotations

import time

from brandpulse.cache.base import CacheStats, hash_cache_key


class InMemoryResponseCache:
    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}  # storage key -> (value, expires_at)
        self._hits = 0
        self._misses = 0

    async def get(self, key: str, fingerprint: str, model: str) -> str | None:
        storage_key = hash_cache_key(key, fingerprint, model)
        entry = self._entries.get(storage_key)
        if entry is None:
            self._misses += 1
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[storage_key]
            self._misses += 1
            return None
        self._hits += 1
        return value

    async def set(self, key: str, value: str, fingerprint: str, model: str, ttl_days: int) -> None:
        storage_key = hash_cache_key(key, fingerprint, model)
        self._entries[storage_key] = (value, self._clock() + ttl_days * 86400)

    async def clean_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
        for k in expired:
            del self._entries[k]
        return len(expired)

    async def invalidate_all(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    async def get_stats(self) -> CacheStats:
        await self.clean_expired()
        return CacheStats(hits=self._hits, misses=self._misses, entries=len(self._entries))

    async def aclose(self) -> None:
        pass
