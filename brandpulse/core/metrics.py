"""Prometheus metrics for the application."""

import time

from prometheus_client import Counter, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# --- Metrics ---

APP_INFO = Info("brandpulse", "Brand monitoring analysis engine info")
APP_INFO.info({"version": "1.0.0", "name": "brandpulse"})

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)

ANALYSIS_RUNS = Counter(
    "analysis_runs_total",
    "Total analysis runs by terminal status",
    ["status"],
)

ANALYSIS_RUN_DURATION = Histogram(
    "analysis_run_duration_seconds",
    "Wall-clock duration of a full analysis run",
    buckets=[1, 5, 15, 30, 60, 120, 300, 600, 1800],
)

QUESTIONS_ANALYZED = Counter(
    "analysis_questions_total",
    "Questions analyzed by outcome",
    ["outcome"],  # ok | error
)

PROVIDER_CALLS = Counter(
    "provider_calls_total",
    "Chat completion calls by model and outcome",
    ["model", "outcome"],  # ok | timeout | rate_limited | quota | error
)

PROVIDER_CALL_DURATION = Histogram(
    "provider_call_duration_seconds",
    "Chat completion call latency",
    ["model"],
    buckets=[0.5, 1, 2.5, 5, 10, 20, 30, 60],
)

PROVIDER_TOKENS = Counter(
    "provider_tokens_total",
    "Tokens reported by the provider",
    ["model", "direction"],  # input | output
)

RETRY_ATTEMPTS = Counter(
    "retry_attempts_total",
    "Failed attempts that were retried",
    ["label"],
)

CACHE_LOOKUPS = Counter(
    "response_cache_lookups_total",
    "Response cache lookups by result",
    ["result"],  # hit | miss | error
)


# --- Middleware ---

_PATH_PREFIXES = ("/api/v1/analyses/",)


def _normalize_path(path: str) -> str:
    """Replace analysis IDs in paths with {id} to avoid high cardinality."""
    for prefix in _PATH_PREFIXES:
        if path.startswith(prefix):
            rest = path[len(prefix) :]
            parts = rest.split("/", 1)
            if parts[0].startswith("analysis_"):
                tail = f"/{parts[1]}" if len(parts) > 1 else ""
                return f"{prefix}{{id}}{tail}"
    return path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collect HTTP request metrics for Prometheus."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = _normalize_path(request.url.path)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        REQUEST_COUNT.labels(method=method, path=path, status=response.status_code).inc()
        REQUEST_DURATION.labels(method=method, path=path).observe(duration)

        return response


def metrics_response() -> Response:
    """Generate Prometheus /metrics response."""
    return Response(
        content=generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
