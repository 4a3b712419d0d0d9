from __future__ import annotations

from prometheus_client import Counter, Histogram

REQ_COUNTER = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "method", "path", "status"],
)
REQ_LATENCY = Histogram(
    "http_request_latency_seconds",
    "HTTP request latency (s)",
    ["service", "method", "path"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)
RECORDS_UPSERTED = Counter(
    "search_records_upserted_total",
    "Records written to the search index",
    ["source"],
)
RECORDS_DELETED = Counter(
    "search_records_deleted_total",
    "Records removed from the search index",
)
NOTIFICATIONS_RECEIVED = Counter(
    "webhook_notifications_total",
    "Webhook notifications received",
    ["object_type"],
)
