"""Tests for pagination metrics tracking helpers.

Counters on the shared registry accumulate across tests, so every check
compares against the value read before the action.
"""

from __future__ import annotations

import pytest

from pagekit.infra.metrics import REGISTRY
from pagekit.infra.metrics.tracking import (
    track_cache_lookup,
    track_client_error,
    track_page,
    track_store_error,
    track_store_fetch,
)


def _value(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestTracking:
    def test_track_page(self):
        labels = {"collection": "metrics_pages", "mode": "cursor", "direction": "next"}
        before = _value("pagination_pages_served_total", **labels)
        items_before = _value("pagination_page_items_sum", collection="metrics_pages")

        track_page("metrics_pages", "cursor", "next", 20)

        assert _value("pagination_pages_served_total", **labels) == before + 1
        assert _value("pagination_page_items_sum", collection="metrics_pages") == items_before + 20

    def test_client_error_without_reason(self):
        rejections = _value("pagination_cursor_rejections_total", reason="metrics_none")
        before = _value(
            "pagination_client_errors_total", collection="metrics_errors", code="INVALID_FILTER"
        )

        track_client_error("metrics_errors", "INVALID_FILTER")

        assert (
            _value(
                "pagination_client_errors_total", collection="metrics_errors", code="INVALID_FILTER"
            )
            == before + 1
        )
        assert _value("pagination_cursor_rejections_total", reason="metrics_none") == rejections

    def test_cursor_rejection_counted_by_reason(self):
        before = _value("pagination_cursor_rejections_total", reason="expired")

        track_client_error("metrics_errors", "INVALID_CURSOR", reason="expired")

        assert _value("pagination_cursor_rejections_total", reason="expired") == before + 1

    def test_store_error(self):
        before = _value(
            "pagination_store_errors_total", collection="metrics_store", exception_type="TimeoutError"
        )

        track_store_error("metrics_store", "TimeoutError")

        assert (
            _value(
                "pagination_store_errors_total",
                collection="metrics_store",
                exception_type="TimeoutError",
            )
            == before + 1
        )

    def test_cache_lookup(self):
        hits = _value("pagination_cache_lookups_total", collection="metrics_cache", result="hit")
        misses = _value("pagination_cache_lookups_total", collection="metrics_cache", result="miss")

        track_cache_lookup("metrics_cache", hit=True)
        track_cache_lookup("metrics_cache", hit=False)
        track_cache_lookup("metrics_cache", hit=False)

        assert (
            _value("pagination_cache_lookups_total", collection="metrics_cache", result="hit")
            == hits + 1
        )
        assert (
            _value("pagination_cache_lookups_total", collection="metrics_cache", result="miss")
            == misses + 2
        )


class TestStoreFetchTiming:
    async def test_duration_is_observed(self):
        before = _value(
            "pagination_store_fetch_duration_seconds_count",
            collection="metrics_timing",
            mode="offset",
        )

        async with track_store_fetch("metrics_timing", "offset"):
            pass

        assert (
            _value(
                "pagination_store_fetch_duration_seconds_count",
                collection="metrics_timing",
                mode="offset",
            )
            == before + 1
        )

    async def test_duration_is_observed_on_failure(self):
        before = _value(
            "pagination_store_fetch_duration_seconds_count",
            collection="metrics_timing_fail",
            mode="cursor",
        )

        with pytest.raises(TimeoutError):
            async with track_store_fetch("metrics_timing_fail", "cursor"):
                raise TimeoutError

        assert (
            _value(
                "pagination_store_fetch_duration_seconds_count",
                collection="metrics_timing_fail",
                mode="cursor",
            )
            == before + 1
        )


class TestEngineMetrics:
    async def test_served_page_is_counted(self, engine, store):
        labels = {"collection": "articles", "mode": "offset", "direction": "page"}
        before = _value("pagination_pages_served_total", **labels)

        await engine.paginate({"page": ["1"], "size": ["5"]}, store)

        assert _value("pagination_pages_served_total", **labels) == before + 1
