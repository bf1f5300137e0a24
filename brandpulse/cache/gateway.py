"""Failure-isolating front for response cache backends."""

from __future__ import annotations

import logging

from brandpulse.cache.base import CacheStats, ResponseCache
from brandpulse.core.metrics import CACHE_LOOKUPS

logger = logging.getLogger(__name__)


class CacheGateway:
    """Wraps a backend so lookups and writes can never fail a run.

    Any backend exception on ``get`` is logged and reported as a miss; on
    ``set`` it is logged and dropped.
    """

    def __init__(self, backend: ResponseCache):
        self.backend = backend

    async def get(self, key: str, fingerprint: str, model: str) -> str | None:
        try:
            value = await self.backend.get(key, fingerprint, model)
        except Exception as e:
            CACHE_LOOKUPS.labels(result="error").inc()
            logger.warning("Cache lookup failed, treating as miss: %s", e)
            return None
        CACHE_LOOKUPS.labels(result="hit" if value is not None else "miss").inc()
        return value

    async def set(self, key: str, value: str, fingerprint: str, model: str, ttl_days: int) -> None:
        try:
            await self.backend.set(key, value, fingerprint, model, ttl_days)
        except Exception as e:
            logger.warning("Cache write failed, continuing without cache: %s", e)

    async def invalidate_all(self) -> int:
        return await self.backend.invalidate_all()

    async def get_stats(self) -> CacheStats:
        return await self.backend.get_stats()

    async def aclose(self) -> None:
        try:
            await self.backend.aclose()
        except Exception as e:
            logger.warning("Cache close failed: %s", e)
