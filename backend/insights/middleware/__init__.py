"""
Middleware Package

Contains FastAPI middleware for:
- Prometheus request metrics
- Analytics computation and ingestion counters
"""

from insights.middleware.metrics import (
    PrometheusMiddleware,
    setup_metrics,
    REQUEST_LATENCY,
    REQUEST_COUNT,
    ACTIVE_REQUESTS,
    COMPUTATION_LATENCY,
    SKIPPED_RECORDS,
)

__all__ = [
    "PrometheusMiddleware",
    "setup_metrics",
    "REQUEST_LATENCY",
    "REQUEST_COUNT",
    "ACTIVE_REQUESTS",
    "COMPUTATION_LATENCY",
    "SKIPPED_RECORDS",
]
