"""
Prometheus Metrics
==================

Process-wide Prometheus collectors, exposed on ``GET /metrics``.

Metrics exported:
- webhook_http_request_duration_seconds: request latency by method, path, status
- webhook_reconciliations_total: reconciliation outcomes (created, updated, failed)
- webhook_duplicate_incidents_total: lookups that matched more than one incident
"""

from typing import Tuple

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

registry = CollectorRegistry()

request_duration_seconds = Histogram(
    "webhook_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path", "status"],
    registry=registry,
)

reconciliations_total = Counter(
    "webhook_reconciliations_total",
    "Alert group reconciliations by outcome",
    ["outcome"],
    registry=registry,
)

duplicate_incidents_total = Counter(
    "webhook_duplicate_incidents_total",
    "Lookups that returned more than one incident for a group key",
    registry=registry,
)


def render_latest() -> Tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(registry), CONTENT_TYPE_LATEST
