"""Helper functions for tracking pagination metrics."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from pagekit.infra.metrics import prometheus

logger = logging.getLogger(__name__)


def track_page(collection: str, mode: str, direction: str, item_count: int) -> None:
    """Track a served page.

    Example:
        track_page("articles", "cursor", "next", 20)
    """
    prometheus.pages_served_total.labels(
        collection=collection,
        mode=mode,
        direction=direction,
    ).inc()
    prometheus.page_items.labels(collection=collection).observe(item_count)


def track_client_error(collection: str, code: str, reason: str | None = None) -> None:
    """Track a rejected request; cursor rejections are also counted by reason.

    Example:
        track_client_error("articles", "INVALID_CURSOR", reason="expired")
    """
    prometheus.client_errors_total.labels(collection=collection, code=code).inc()
    if reason is not None:
        prometheus.cursor_rejections_total.labels(reason=reason).inc()


def track_store_error(collection: str, exception_type: str) -> None:
    prometheus.store_errors_total.labels(
        collection=collection,
        exception_type=exception_type,
    ).inc()


def track_cache_lookup(collection: str, hit: bool) -> None:
    prometheus.cache_lookups_total.labels(
        collection=collection,
        result="hit" if hit else "miss",
    ).inc()


@asynccontextmanager
async def track_store_fetch(collection: str, mode: str) -> AsyncIterator[None]:
    """Time a store round trip.

    Example:
        async with track_store_fetch("articles", "cursor"):
            result = await store.fetch(query)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        prometheus.store_fetch_duration_seconds.labels(
            collection=collection,
            mode=mode,
        ).observe(duration)
        logger.debug(
            "Store fetch finished",
            extra={"collection": collection, "mode": mode, "duration_ms": round(duration * 1000, 2)},
        )
