"""Prometheus metrics for shield-client."""

from prometheus_client import Counter, Histogram

DEFAULT_BUCKETS_EXTERNAL_API = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)

shield_request = Counter(
    "shield_client_requests_total",
    "Total number of Shield API requests",
    ["method", "verb"],
)

shield_request_errors = Counter(
    "shield_client_request_errors_total",
    "Total number of failed Shield API requests",
    ["method", "verb"],
)

shield_request_duration = Histogram(
    "shield_client_request_duration_seconds",
    "Shield API request duration in seconds",
    ["method", "verb"],
    buckets=DEFAULT_BUCKETS_EXTERNAL_API,
)
