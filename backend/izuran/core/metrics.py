"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Inventory metrics
ticket_reservations = Counter(
    'ticket_reservations_total',
    'Ticket reservation attempts',
    ['result']  # reserved, sold_out, not_found
)

reservation_latency = Histogram(
    'ticket_reservation_latency_seconds',
    'Latency of the conditional inventory update',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

tickets_issued = Counter(
    'tickets_issued_total',
    'Tickets issued',
    ['ticket_type']
)

tickets_voided = Counter(
    'tickets_voided_total',
    'Tickets voided by an administrator'
)

# Door scanning
ticket_scans = Counter(
    'ticket_scans_total',
    'Ticket validation attempts',
    ['result']  # accepted, not_found, already_used, void
)

# Notifications
ticket_notifications = Counter(
    'ticket_notifications_total',
    'Ticket confirmation dispatches',
    ['result']  # sent, failed
)

# Auth
token_refreshes = Counter(
    'token_refreshes_total',
    'Access token refresh requests',
    ['result']  # issued, rejected
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Render the default registry in the Prometheus text format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation(result: str):
    """Result: reserved, sold_out, not_found"""
    ticket_reservations.labels(result=result).inc()


def record_scan(result: str):
    ticket_scans.labels(result=result).inc()


def record_notification(sent: bool):
    ticket_notifications.labels(result="sent" if sent else "failed").inc()


def record_token_refresh(issued: bool):
    token_refreshes.labels(result="issued" if issued else "rejected").inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
