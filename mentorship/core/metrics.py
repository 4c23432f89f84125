"""Application metrics using the Prometheus client library.

All metrics are defined here so the inventory lives in one place.
Modules that own a behavior import the metric and increment it at the
point of action. Prometheus scrapes them from GET /metrics.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Workflow metrics
# ---------------------------------------------------------------------------

RESPONSE_SUBMISSIONS = Counter(
    "assignment_response_submissions_total",
    "Assignment responses written, by submitted status",
    ["status"],  # not attempted|solved|partially solved|...
)

DOUBT_TRANSITIONS = Counter(
    "doubt_transitions_total",
    "Turns appended to doubt threads, by turn type and resulting status",
    ["turn_type", "status"],
)

NOTIFICATIONS = Counter(
    "notifications_total",
    "Notification attempts by kind and outcome",
    ["kind", "outcome"],  # outcome: queued|skipped|failed|sent
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],
)
