"""Prometheus metrics for capture correlation."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

correlations_total = Counter(
    "capturebridge_correlations_total",
    "Capture correlations by kind and outcome",
    ["kind", "outcome"],
)
correlation_latency_ms = Histogram(
    "capturebridge_correlation_latency_ms",
    "Time from dispatch to resolution",
    ["kind"],
    buckets=(50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000, 60000, 90000),
)
pending_correlations = Gauge(
    "capturebridge_pending_correlations",
    "Correlations waiting for a completion event",
)
completion_events_total = Counter(
    "capturebridge_completion_events_total",
    "Completion events published by the coordinator",
    ["kind", "status"],
)
library_files_deleted_total = Counter(
    "capturebridge_library_files_deleted_total",
    "Capture files removed by library cleanup",
)
