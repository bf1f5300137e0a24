"""Redis-backed response cache.

Entries expire through Redis TTLs. Each value is stored under
``<prefix>:<fingerprint>:<sha256>`` so a brand setup can be invalidated
without touching the rest. Hit/miss counters live in a small hash.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from brandpulse.cache.base import CacheStats, hash_cache_key
from brandpulse.core.exceptions import CacheError

logger = logging.getLogger(__name__)

KEY_PREFIX = "brandpulse:llm_cache"


class RedisResponseCache:
    def __init__(self, client: aioredis.Redis, prefix: str = KEY_PREFIX):
        self._redis = client
        self._prefix = prefix
        self._stats_key = f"{prefix}:__stats__"

    @classmethod
    def from_url(cls, url: str) -> RedisResponseCache:
        return cls(aioredis.from_url(url, decode_responses=True))

    def _key(self, key: str, fingerprint: str, model: str) -> str:
        return f"{self._prefix}:{fingerprint}:{hash_cache_key(key, fingerprint, model)}"

    async def get(self, key: str, fingerprint: str, model: str) -> str | None:
        try:
            value = await self._redis.get(self._key(key, fingerprint, model))
            await self._redis.hincrby(self._stats_key, "hits" if value is not None else "misses", 1)
        except RedisError as e:
            raise CacheError(f"Redis get failed: {e}") from e
        return value

    async def set(self, key: str, value: str, fingerprint: str, model: str, ttl_days: int) -> None:
        try:
            await self._redis.setex(self._key(key, fingerprint, model), ttl_days * 86400, value)
        except RedisError as e:
            raise CacheError(f"Redis set failed: {e}") from e

    async def _delete_matching(self, pattern: str) -> int:
        deleted = 0
        try:
            async for redis_key in self._redis.scan_iter(match=pattern, count=500):
                if redis_key == self._stats_key:
                    continue
                deleted += await self._redis.delete(redis_key)
        except RedisError as e:
            raise CacheError(f"Redis invalidation failed: {e}") from e
        return deleted

    async def invalidate_all(self) -> int:
        deleted = await self._delete_matching(f"{self._prefix}:*")
        logger.info("Response cache cleared (%d entries)", deleted)
        return deleted

    async def invalidate_by_fingerprint(self, fingerprint: str) -> int:
        deleted = await self._delete_matching(f"{self._prefix}:{fingerprint}:*")
        logger.info("Response cache cleared for fingerprint %s (%d entries)", fingerprint, deleted)
        return deleted

    async def get_stats(self) -> CacheStats:
        try:
            counters = await self._redis.hgetall(self._stats_key)
            entries = 0
            async for redis_key in self._redis.scan_iter(match=f"{self._prefix}:*", count=500):
                if redis_key != self._stats_key:
                    entries += 1
        except RedisError as e:
            raise CacheError(f"Redis stats failed: {e}") from e
        return CacheStats(
            hits=int(counters.get("hits", 0)),
            misses=int(counters.get("misses", 0)),
            entries=entries,
        )

    async def aclose(self) -> None:
        """Release pooled connections; must run on the loop that opened them."""
        await self._redis.aclose()
