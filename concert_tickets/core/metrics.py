"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation ledger metrics
reservation_operations = Counter(
    'reservation_operations_total',
    'Reservation ledger operations',
    ['operation', 'result']  # create/cancel/reinstate/remove, success/rejected
)

reservation_latency = Histogram(
    'reservation_create_latency_seconds',
    'Latency of the reservation create transaction',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Catalog metrics
concert_seat_edits = Counter(
    'concert_seat_edits_total',
    'Concert total-seat edits',
    ['result']  # applied, rejected
)

login_attempts = Counter(
    'login_attempts_total',
    'Login attempts',
    ['result']  # success, failure
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/error
)


def metrics_endpoint() -> Response:
    """Prometheus exposition of the default registry."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation(operation: str, success: bool):
    """Record a ledger operation outcome."""
    result = "success" if success else "rejected"
    reservation_operations.labels(operation=operation, result=result).inc()


def record_seat_edit(applied: bool):
    concert_seat_edits.labels(result="applied" if applied else "rejected").inc()


def record_login(success: bool):
    login_attempts.labels(result="success" if success else "failure").inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
