"""Prometheus metrics for the VirtualServer cert-manager shim."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "vs_cm_shim_reconcile_total",
    "Total number of reconciliations",
    ["result"],
)

reconcile_duration_seconds = Histogram(
    "vs_cm_shim_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "vs_cm_shim_error_total",
    "Total number of reconciliation errors",
    ["error_type"],
)

# Certificate operation metrics
certificate_operations_total = Counter(
    "vs_cm_shim_certificate_operations_total",
    "Total number of Certificate store operations",
    ["operation", "result"],
)

# Work queue metrics
queue_adds_total = Counter(
    "vs_cm_shim_queue_adds_total",
    "Total number of keys added to the work queue",
)

queue_retries_total = Counter(
    "vs_cm_shim_queue_retries_total",
    "Total number of rate limited re-adds to the work queue",
)

queue_depth = Gauge(
    "vs_cm_shim_queue_depth",
    "Number of keys waiting in the work queue",
)

# API call metrics
api_call_total = Counter(
    "vs_cm_shim_api_call_total",
    "Total number of API calls",
    ["operation", "result"],
)

api_call_duration_seconds = Histogram(
    "vs_cm_shim_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "vs_cm_shim_rate_limit_hits_total",
    "Total number of rate limit hits",
)
