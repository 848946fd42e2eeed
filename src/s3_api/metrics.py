"""Prometheus metrics for the HTTP shell and the provisioning workflows."""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry(auto_describe=True)

HTTP_REQUESTS_TOTAL = Counter(
    "s3_api_http_requests_total",
    "HTTP requests handled",
    ["method", "route", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION = Histogram(
    "s3_api_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "route"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0, 30.0),
    registry=REGISTRY,
)

ROLLBACKS_TOTAL = Counter(
    "s3_api_rollbacks_total",
    "Workflow rollbacks started",
    ["workflow"],
    registry=REGISTRY,
)

COMPENSATION_FAILURES_TOTAL = Counter(
    "s3_api_compensation_failures_total",
    "Compensating actions that failed during rollback",
    ["workflow"],
    registry=REGISTRY,
)


def render_latest() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
