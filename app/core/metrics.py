"""Prometheus metrics for the API and the tracking pipeline."""

import time

from prometheus_client import Counter, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# --- Metrics ---

APP_INFO = Info("app", "AI Visibility Tracker application info")
APP_INFO.info({"version": "1.0.0", "name": "visibility_tracker"})

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120],
)

AI_QUERIES = Counter(
    "ai_queries_total",
    "AI gateway attempts by backend and outcome",
    ["backend", "outcome"],  # success | retryable | terminal | parse_error | exhausted
)

TRACKING_CHECKS = Counter(
    "tracking_checks_total",
    "Prompt × backend checks written by the orchestrator",
    ["backend", "status"],  # recorded | failed | persist_error | error
)

TRACKING_RUNS = Counter(
    "tracking_runs_total",
    "Business tracking runs",
    ["trigger", "status"],  # trigger: manual | scheduled | task
)


# --- Middleware ---

# Business and prompt ids are UUIDs, collapse them to keep label cardinality low
_PATH_PREFIXES = ("/api/v1/tracking/visibility/", "/api/v1/businesses/")


def _normalize_path(path: str) -> str:
    """Replace the id segment after a known prefix with {id}."""
    for prefix in _PATH_PREFIXES:
        if path.startswith(prefix):
            rest = path[len(prefix) :]
            parts = rest.split("/", 1)
            if parts[0]:
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
