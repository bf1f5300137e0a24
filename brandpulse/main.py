import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from brandpulse.api.v1.router import api_v1_router
from brandpulse.core.config import settings, validate_settings_for_production
from brandpulse.core.dependencies import close_cache_gateway
from brandpulse.core.exceptions import InvalidRunError
from brandpulse.core.logging import setup_logging
from brandpulse.core.metrics import PrometheusMiddleware, metrics_response
from brandpulse.core.sentry import init_sentry
from brandpulse.db.postgres import engine

# Configure logging before anything else
setup_logging()
init_sentry("api")

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_settings_for_production()
    logger.info("Starting brandpulse (env=%s)...", settings.app_env)
    yield
    await close_cache_gateway()
    await engine.dispose()
    logger.info("brandpulse shut down")


app = FastAPI(
    title="brandpulse",
    description="Brand visibility analysis of LLM-generated answers",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)


@app.exception_handler(InvalidRunError)
async def _invalid_run_handler(request: Request, exc: InvalidRunError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": f"{type(exc).__name__}: {exc}"})


app.add_middleware(PrometheusMiddleware)

_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


@app.get("/api/v1/health")
async def health():
    return {
        "status": "ok",
        "cache_enabled": settings.cache_enabled,
        "generation_model": settings.generation_model,
        "analysis_model": settings.analysis_model,
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()
