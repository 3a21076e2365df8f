"""Prometheus registry and pagination metrics."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

# Custom registry so host applications decide whether to expose engine metrics
REGISTRY = CollectorRegistry()

# Covers store round trips from 1ms to 10s
DEFAULT_LATENCY_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)

# ============================================================================
# Page Metrics
# ============================================================================

pages_served_total = Counter(
    "pagination_pages_served_total",
    "Total pages served by pagination mode and direction",
    ["collection", "mode", "direction"],
    registry=REGISTRY,
)

page_items = Histogram(
    "pagination_page_items",
    "Number of items per served page",
    ["collection"],
    buckets=(0, 1, 5, 10, 25, 50, 100, 250, 500, 1000),
    registry=REGISTRY,
)

# ============================================================================
# Error Metrics
# ============================================================================

client_errors_total = Counter(
    "pagination_client_errors_total",
    "Total rejected pagination requests by error code",
    ["collection", "code"],
    registry=REGISTRY,
)

cursor_rejections_total = Counter(
    "pagination_cursor_rejections_total",
    "Total rejected cursors by reason",
    ["reason"],
    registry=REGISTRY,
)

store_errors_total = Counter(
    "pagination_store_errors_total",
    "Total record store failures",
    ["collection", "exception_type"],
    registry=REGISTRY,
)

# ============================================================================
# Store and Cache Metrics
# ============================================================================

store_fetch_duration_seconds = Histogram(
    "pagination_store_fetch_duration_seconds",
    "Record store round-trip duration in seconds",
    ["collection", "mode"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

cache_lookups_total = Counter(
    "pagination_cache_lookups_total",
    "Query-result cache lookups by result",
    ["collection", "result"],  # result: hit, miss
    registry=REGISTRY,
)
