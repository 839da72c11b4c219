"""Prometheus metric definitions shared across services and the client."""

from time import perf_counter

from prometheus_client import Counter, Histogram, generate_latest
from starlette.requests import Request
from starlette.responses import Response

from cashoffer.common.config import settings


claims_submitted_total = Counter("claims_submitted_total", "Total claims created", ["service"])
claim_submissions_rejected_total = Counter(
    "claim_submissions_rejected_total",
    "Claim submissions rejected before persistence",
    ["service", "reason"],
)
claim_transitions_total = Counter(
    "claim_transitions_total",
    "Applied claim status transitions",
    ["service", "from_state", "to_state"],
)
claim_state_conflicts_total = Counter(
    "claim_state_conflicts_total",
    "Rejected claim transitions (illegal or lost race)",
    ["service"],
)
approval_queries_total = Counter("approval_queries_total", "Recent-approval lookups served", ["service"])
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
reconciler_ticks_total = Counter(
    "reconciler_ticks_total",
    "Notification reconciler ticks by outcome",
    ["outcome"],
)
approval_notifications_shown_total = Counter(
    "approval_notifications_shown_total",
    "Approval popups rendered on this profile",
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")


async def http_metrics_middleware(request: Request, call_next):
    """Record request count and latency per matched route; install with `app.middleware("http")`."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()
