"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REMOTE_REQUESTS = Counter(
    "docreg_remote_requests_total",
    "Remote store exchanges by action and outcome",
    labelnames=("action", "outcome"),
    registry=REGISTRY,
)

REMOTE_RETRIES = Counter(
    "docreg_remote_retries_total",
    "Remote store retries after transport failures",
    labelnames=("action",),
    registry=REGISTRY,
)

REMOTE_LATENCY = Histogram(
    "docreg_remote_latency_seconds",
    "Latency of remote store calls including retries",
    labelnames=("action",),
    registry=REGISTRY,
)

CACHED_DOCUMENTS = Gauge(
    "docreg_cached_documents",
    "Number of documents held in the session collection",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REMOTE_REQUESTS",
    "REMOTE_RETRIES",
    "REMOTE_LATENCY",
    "CACHED_DOCUMENTS",
    "metrics_response",
]
