"""Prometheus metric definitions for the payment workflow and HTTP surface."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


workflow_runs_total = Counter("workflow_runs_total", "Payment workflow runs by outcome", ["service", "outcome"])
workflow_step_failures_total = Counter(
    "workflow_step_failures_total",
    "Payment workflow failures by failing step and reason",
    ["service", "step", "reason"],
)
workflow_duration_seconds = Histogram(
    "workflow_duration_seconds",
    "Payment workflow duration seconds from START to terminal state",
    ["service", "terminal_state"],
)
provider_calls_total = Counter(
    "provider_calls_total",
    "Outbound MoMo provider calls",
    ["service", "step", "outcome"],
)
provider_call_duration_seconds = Histogram(
    "provider_call_duration_seconds",
    "Outbound MoMo provider call duration seconds",
    ["service", "step"],
)
status_queries_total = Counter("status_queries_total", "Transaction status queries", ["service", "outcome"])
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


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")


def observe_http_request(service: str, route: str, method: str, status_code: int, elapsed: float) -> None:
    """Record one served request under its route template."""

    http_request_duration_seconds.labels(service=service, route=route, method=method).observe(max(0.0, elapsed))
    http_requests_total.labels(service=service, route=route, method=method, status_code=str(status_code)).inc()
