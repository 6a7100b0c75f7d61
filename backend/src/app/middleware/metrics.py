"""Prometheus metrics for HTTP traffic and the order lifecycle."""
import time
from typing import Callable

from prometheus_client import Counter, Gauge, Histogram, generate_latest
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


# =============================================================================
# Prometheus Metrics Definitions
# =============================================================================

# Request metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
)

# Order lifecycle metrics
ORDERS_CREATED = Counter(
    "orders_created_total",
    "Rental orders created",
)

ORDER_TRANSITIONS = Counter(
    "order_transitions_total",
    "Applied order status transitions by edge",
    ["from_status", "to_status"],
)

ORDER_REJECTED_REQUESTS = Counter(
    "order_request_errors_total",
    "Order operations refused, by error code",
    ["code"],
)

# Sweeper metrics
SWEEP_RUNS = Counter(
    "order_sweeps_total",
    "Expiry sweeper runs",
    ["outcome"],  # completed, skipped, aborted
)

SWEEP_ORDERS = Counter(
    "order_sweep_orders_total",
    "Orders processed by the expiry sweeper",
    ["result"],  # completed, noop, failed
)

SWEEP_DURATION = Histogram(
    "order_sweep_duration_seconds",
    "Expiry sweeper run duration in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
)


# =============================================================================
# Metrics Middleware
# =============================================================================

class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for all HTTP requests."""

    # Endpoints to normalize for metrics (reduce cardinality)
    ENDPOINT_PATTERNS = {
        "/api/v1/orders": "/api/v1/orders",
        "/api/v1/equipment": "/api/v1/equipment",
        "/api/v1/payments": "/api/v1/payments",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            ACTIVE_REQUESTS.dec()
            latency = time.perf_counter() - start_time

            endpoint = self._normalize_endpoint(request.url.path)

            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status=status_code,
            ).inc()

            REQUEST_LATENCY.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(latency)

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce metric cardinality."""
        for pattern, normalized in self.ENDPOINT_PATTERNS.items():
            if path.startswith(pattern):
                return normalized

        if path in ("/health", "/metrics"):
            return path

        return "/other"


# =============================================================================
# Metrics Endpoint
# =============================================================================

async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics scrape endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# =============================================================================
# Helper Functions for Manual Metric Recording
# =============================================================================

def record_order_created() -> None:
    ORDERS_CREATED.inc()


def record_order_transition(from_status: str, to_status: str) -> None:
    """Count one applied transition edge."""
    ORDER_TRANSITIONS.labels(from_status=from_status, to_status=to_status).inc()


def record_order_error(code: str) -> None:
    ORDER_REJECTED_REQUESTS.labels(code=code).inc()


def record_sweep(
    outcome: str, completed: int, noop: int, failed: int, duration: float
) -> None:
    """Record the outcome of one expiry sweeper run."""
    SWEEP_RUNS.labels(outcome=outcome).inc()
    if completed:
        SWEEP_ORDERS.labels(result="completed").inc(completed)
    if noop:
        SWEEP_ORDERS.labels(result="noop").inc(noop)
    if failed:
        SWEEP_ORDERS.labels(result="failed").inc(failed)
    SWEEP_DURATION.observe(duration)
