"""Prometheus metrics endpoint and collectors.

Metrics exposed:
  trustscore_computations_total{level}                              Counter
  trustscore_api_request_duration_seconds{endpoint,method,status}   Histogram
  trustscore_requests_in_flight                                     Gauge
"""

import re
import time

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

router = APIRouter(tags=["metrics"])

# ── Collectors ──

computations_total = Counter(
    "trustscore_computations_total",
    "Total trust scores computed, by resulting level.",
    ["level"],
)

request_duration = Histogram(
    "trustscore_api_request_duration_seconds",
    "HTTP request duration in seconds, by endpoint and method.",
    ["endpoint", "method", "status"],
)

requests_in_flight = Gauge(
    "trustscore_requests_in_flight",
    "Number of HTTP requests currently being served.",
)

# Keeps label cardinality bounded.
_LEVEL_ENDPOINT_RE = re.compile(r"^/api/trust/levels/[^/]+/insurable$")


def _sanitize_endpoint(path: str) -> str:
    if _LEVEL_ENDPOINT_RE.match(path):
        return "/api/trust/levels/:level/insurable"
    return path


# ── Metrics endpoint ──


@router.get("/metrics")
async def metrics_endpoint():
    """Serve Prometheus metrics."""
    return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# ── Middleware ──


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Records request duration and in-flight count for Prometheus."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        requests_in_flight.inc()
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            requests_in_flight.dec()

        duration = time.perf_counter() - start
        request_duration.labels(
            endpoint=_sanitize_endpoint(request.url.path),
            method=request.method,
            status=str(response.status_code),
        ).observe(duration)

        return response
