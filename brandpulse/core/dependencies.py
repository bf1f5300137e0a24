from fastapi import Depends, HTTPException, status

from brandpulse.analysis.orchestrator import AnalysisOrchestrator
from brandpulse.cache.gateway import CacheGateway
from brandpulse.cache.memory import InMemoryResponseCache
from brandpulse.cache.redis_cache import RedisResponseCache
from brandpulse.core.config import settings
from brandpulse.gateway.provider import ChatCompletionClient, TextCompletionProvider

_cache_gateway: CacheGateway | None = None


def get_provider() -> TextCompletionProvider:
    try:
        return ChatCompletionClient(settings.openai_api_key, settings.openai_api_url)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


def build_cache_gateway() -> CacheGateway:
    if settings.cache_backend == "memory":
        return CacheGateway(InMemoryResponseCache())
    return CacheGateway(RedisResponseCache.from_url(settings.redis_url))


def get_cache_gateway() -> CacheGateway | None:
    """Process-wide cache gateway, or None when caching is disabled."""
    global _cache_gateway
    if not settings.cache_enabled:
        return None
    if _cache_gateway is None:
        _cache_gateway = build_cache_gateway()
    return _cache_gateway


def get_orchestrator(
    provider: TextCompletionProvider = Depends(get_provider),
    cache: CacheGateway | None = Depends(get_cache_gateway),
) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(provider, cache=cache)


async def close_cache_gateway() -> None:
    global _cache_gateway
    if _cache_gateway is not None:
        await _cache_gateway.aclose()
        _cache_gateway = None
