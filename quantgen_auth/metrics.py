"""Prometheus instruments for auth request outcomes."""

from __future__ import annotations

from prometheus_client import Counter

AUTH_REQUESTS = Counter(
    "quantgen_auth_requests_total",
    "Signup and login requests by outcome.",
    ["operation", "outcome"],
)


def record_outcome(operation: str, outcome: str) -> None:
    AUTH_REQUESTS.labels(operation=operation, outcome=outcome).inc()
