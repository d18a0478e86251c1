"""Prometheus metrics for reconciliation outcomes and payment activity"""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconciliation_counter = Counter(
    "billwise_reconciliation_total",
    "Obligations reconciled against transactions",
    ["status", "method"],  # unpaid|partial|paid x linked|fuzzy|manual|none
)

# Payment metrics
payments_recorded_counter = Counter(
    "billwise_payments_recorded_total",
    "Payments recorded against a schedule",
)

payment_reversals_counter = Counter(
    "billwise_payment_reversals_total",
    "Schedules reverted after their linked transaction was deleted",
)

duplicate_payments_counter = Counter(
    "billwise_duplicate_payments_total",
    "Payments rejected because the schedule was already paid",
)

overdue_marked_counter = Counter(
    "billwise_schedules_marked_overdue_total",
    "Schedules flagged overdue by the sweep",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)

budget_build_histogram = Histogram(
    "billwise_budget_build_seconds",
    "Time to assemble and reconcile a budget period",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)


def record_reconciliation(status: str, method: str) -> None:
    """Count one reconciliation outcome"""
    reconciliation_counter.labels(status=status, method=method).inc()
