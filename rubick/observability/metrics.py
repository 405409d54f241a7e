"""Prometheus metrics for the rubick console client."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# Host resource cache metrics
host_cache_entries = Gauge(
    "rubick_host_cache_entries",
    "Number of hosts with a resource cache entry",
)

host_cache_loads_total = Counter(
    "rubick_host_cache_loads_total",
    "Total fan-out loads started by the host resource cache",
    ["trigger"],
)

host_cache_fetch_failures_total = Counter(
    "rubick_host_cache_fetch_failures_total",
    "Total failed resource listings during host loads",
    ["kind"],
)

host_cache_stale_discards_total = Counter(
    "rubick_host_cache_stale_discards_total",
    "Total load results discarded because a newer generation superseded them",
)

host_cache_load_duration_seconds = Histogram(
    "rubick_host_cache_load_duration_seconds",
    "Duration of a host fan-out load in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# REST client metrics
api_requests_total = Counter(
    "rubick_api_requests_total",
    "Total backend REST requests",
    ["path", "outcome"],
)

# Notification metrics
notifications_total = Counter(
    "rubick_notifications_total",
    "Total load diagnostics delivered to notification channels",
    ["channel", "success"],
)
