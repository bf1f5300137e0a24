"""Response cache administration."""

from fastapi import APIRouter, Depends

from brandpulse.cache.gateway import CacheGateway
from brandpulse.core.config import settings
from brandpulse.core.dependencies import get_cache_gateway
from brandpulse.schemas.analysis import CacheClearResponse, CacheStatsResponse

router = APIRouter(prefix="/cache", tags=["cache"])


@router.get("/stats", response_model=CacheStatsResponse)
async def cache_stats(cache: CacheGateway | None = Depends(get_cache_gateway)):
    if cache is None:
        return CacheStatsResponse(enabled=False, backend=settings.cache_backend)
    stats = await cache.get_stats()
    return CacheStatsResponse(
        enabled=True,
        backend=settings.cache_backend,
        hits=stats.hits,
        misses=stats.misses,
        entries=stats.entries,
        hit_rate=stats.hit_rate,
    )


@router.delete("", response_model=CacheClearResponse)
async def clear_cache(cache: CacheGateway | None = Depends(get_cache_gateway)):
    if cache is None:
        return CacheClearResponse(deleted=0)
    return CacheClearResponse(deleted=await cache.invalidate_all())
