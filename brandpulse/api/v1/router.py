from fastapi import APIRouter

from brandpulse.api.v1.analyses import router as analyses_router
from brandpulse.api.v1.cache import router as cache_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(analyses_router)
api_v1_router.include_router(cache_router)
