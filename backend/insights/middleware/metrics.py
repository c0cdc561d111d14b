"""
Prometheus Metrics Middleware

Provides request/response metrics for monitoring:
- HTTP request latency (p50, p95, p99)
- Request count by endpoint and status
- Active request gauge
- Analytics computation latency per component
- Records skipped at ingestion

Usage:
    from insights.middleware.metrics import PrometheusMiddleware, setup_metrics

    # In main.py
    app = FastAPI()
    setup_metrics(app)

Metrics Endpoint:
    GET /metrics - Prometheus-format metrics
"""

import time
import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
    REGISTRY,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

# ==================== Prometheus Metrics ====================

# Request latency histogram with custom buckets for sub-second monitoring
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Request counter
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

# Active requests gauge
ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
    ["method", "endpoint"]
)

# Analytics metrics
COMPUTATION_LATENCY = Histogram(
    "insights_computation_seconds",
    "Time spent in an analytics component",
    ["component"],  # funnel, correlation, patterns, forecast, scenarios, recommendations
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5]
)

SKIPPED_RECORDS = Counter(
    "insights_skipped_records_total",
    "Raw records dropped at ingestion for failing validation",
    ["kind"]
)

REPORTS_GENERATED = Counter(
    "insights_reports_total",
    "Analytics reports generated",
    ["empty"]
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Records latency, count and in-flight gauge for every analytics request.

    The scrape endpoint itself is not measured.
    """

    def __init__(self, app: FastAPI, app_name: str = "insights"):
        super().__init__(app)
        self.app_name = app_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        endpoint = self._get_endpoint(request)
        if endpoint == "/metrics":
            return await call_next(request)

        method = request.method
        in_flight = ACTIVE_REQUESTS.labels(method=method, endpoint=endpoint)
        in_flight.inc()
        status = "500"
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        except Exception as e:
            logger.error(f"{self.app_name}: unhandled error on {method} {endpoint}: {e}")
            raise
        finally:
            duration = time.perf_counter() - start_time
            REQUEST_LATENCY.labels(method=method, endpoint=endpoint, status=status).observe(duration)
            REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
            in_flight.dec()

    def _get_endpoint(self, request: Request) -> str:
        """Route template (e.g. /analytics/report) to keep label cardinality low."""
        for route in request.app.routes:
            match, _ = route.matches(request.scope)
            if match == Match.FULL:
                return route.path
        return request.url.path


def metrics_endpoint(request: Request) -> Response:
    """Prometheus text exposition of the default registry."""
    return PlainTextResponse(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )


def setup_metrics(app: FastAPI, app_name: str = "insights") -> None:
    """
    Attach the metrics middleware and the /metrics scrape route.

    Args:
        app: FastAPI application instance
        app_name: Label used in error logs
    """
    app.add_middleware(PrometheusMiddleware, app_name=app_name)
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])
    logger.info("Prometheus metrics configured")


# ==================== Helper Functions ====================

def record_computation_latency(component: str, duration: float) -> None:
    """Record time spent in one analytics component."""
    COMPUTATION_LATENCY.labels(component=component).observe(duration)


def record_skipped(kind: str, count: int = 1) -> None:
    """Record raw records dropped at ingestion."""
    SKIPPED_RECORDS.labels(kind=kind).inc(count)


def record_report(empty: bool) -> None:
    """Record a generated report, split by whether it had any data."""
    REPORTS_GENERATED.labels(empty=str(empty).lower()).inc()
