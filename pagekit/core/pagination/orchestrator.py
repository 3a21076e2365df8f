"""Pagination orchestrator.

Turns a ``QueryPlan`` into a page: selects the pagination mode, issues a
single store fetch of ``limit + 1`` rows, and assembles the page with its
navigation cursors or offset metadata.

Mode selection:
    - an explicit ``offset`` or ``cursor`` mode always wins
    - ``auto`` with a cursor continues in cursor mode
    - ``auto`` without a cursor reads the first page together with the
      total and reports offset metadata when the total is below
      ``offset_threshold``, cursor metadata otherwise

The first page is the same in both modes, which is why ``auto`` never
needs a second round trip.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, assert_never

from pagekit.core.exceptions import PaginationError, StoreError
from pagekit.core.pagination.cache import QueryResultCache
from pagekit.core.pagination.cursor import CursorCodec
from pagekit.core.pagination.plan import QueryPlan
from pagekit.core.pagination.snapshot import SnapshotManager
from pagekit.core.pagination.store import FetchResult, RecordStore, StoreQuery, cache_scope
from pagekit.core.pagination.types import PageDirection, PaginationMode
from pagekit.core.settings.pagination import PaginationSettings
from pagekit.infra.metrics.tracking import (
    track_cache_lookup,
    track_page,
    track_store_error,
    track_store_fetch,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageEnvelope:
    """One page of results plus navigation metadata.

    Attributes:
        items: Records in display order
        mode: Mode the page was served in (OFFSET or CURSOR)
        size: Page size the page was read with
        has_next: Whether records exist after this page
        has_prev: Whether records exist before this page
        next_cursor: Cursor of the last item (cursor mode, when has_next)
        prev_cursor: Cursor of the first item (cursor mode, when has_prev)
        current_cursor: Cursor the page was requested with
        page: 1-based page number (offset mode)
        total: Number of matching records, when known
        snapshot_time: Snapshot pin of the cursor session
    """

    items: tuple[Any, ...]
    mode: PaginationMode
    size: int
    has_next: bool = False
    has_prev: bool = False
    next_cursor: str | None = None
    prev_cursor: str | None = None
    current_cursor: str | None = None
    page: int | None = None
    total: int | None = None
    snapshot_time: datetime | None = None

    @property
    def total_pages(self) -> int | None:
        if self.total is None:
            return None
        return math.ceil(self.total / self.size)

    def __len__(self) -> int:
        return len(self.items)


class Paginator:
    """Fetch and assemble pages for query plans.

    Args:
        settings: Pagination settings
        codec: Codec used to issue next/previous cursors
        cache: Optional query-result cache for duplicate requests
        snapshots: Optional snapshot manager pinning cursor sessions

    Example:
        paginator = Paginator(settings, CursorCodec())
        envelope = await paginator.paginate(plan, InMemoryStore(records))
        envelope.next_cursor
    """

    def __init__(
        self,
        settings: PaginationSettings,
        codec: CursorCodec,
        *,
        cache: QueryResultCache | None = None,
        snapshots: SnapshotManager | None = None,
    ) -> None:
        self.settings = settings
        self.codec = codec
        self.cache = cache
        self.snapshots = snapshots

    @staticmethod
    def select_mode(plan: QueryPlan) -> PaginationMode:
        """Resolve the mode before fetching; AUTO means decide from the total."""
        if plan.mode is not PaginationMode.AUTO:
            return plan.mode
        if plan.cursor is not None:
            return PaginationMode.CURSOR
        if plan.page is not None:
            return PaginationMode.OFFSET
        return PaginationMode.AUTO

    async def paginate(self, plan: QueryPlan, store: RecordStore) -> PageEnvelope:
        """Fetch one page for ``plan`` with exactly one store round trip.

        Raises:
            StoreError: If the store fails; the original error is chained
        """
        # Keyed before snapshot stamping so repeated first-page requests hit
        scope = cache_scope(store)
        cache = self.cache if scope is not None else None
        cache_key = (scope, plan.plan_hash, plan.direction)
        if cache is not None:
            cached = cache.get(cache_key)
            track_cache_lookup(plan.collection, cached is not None)
            if cached is not None:
                logger.debug("Serving page from cache", extra={"collection": plan.collection})
                return cached

        mode = self.select_mode(plan)
        match mode:
            case PaginationMode.OFFSET:
                envelope = await self._offset_page(plan, store)
            case PaginationMode.CURSOR:
                envelope = await self._cursor_page(plan, store)
            case PaginationMode.AUTO:
                envelope = await self._auto_page(plan, store)
            case _:
                assert_never(mode)

        if cache is not None:
            cache.set(cache_key, envelope)

        direction = plan.direction.value if envelope.mode is PaginationMode.CURSOR else "page"
        track_page(plan.collection, envelope.mode.value, direction, len(envelope))
        logger.info(
            "Served page",
            extra={
                "collection": plan.collection,
                "mode": envelope.mode.value,
                "direction": plan.direction.value,
                "items": len(envelope),
                "has_next": envelope.has_next,
                "has_prev": envelope.has_prev,
                "total": envelope.total,
            },
        )
        return envelope

    # -- modes -------------------------------------------------------------

    async def _offset_page(self, plan: QueryPlan, store: RecordStore) -> PageEnvelope:
        page = plan.page or 1
        query = StoreQuery(
            where=plan.where(include_seek=False),
            order=plan.sort,
            limit=plan.limit + 1,
            offset=(page - 1) * plan.limit,
            with_total=True,
            field_map=plan.field_map,
        )
        result = await self._fetch(plan, store, query, PaginationMode.OFFSET)
        rows = list(result.rows)
        return PageEnvelope(
            items=tuple(rows[: plan.limit]),
            mode=PaginationMode.OFFSET,
            size=plan.limit,
            has_next=len(rows) > plan.limit,
            has_prev=page > 1,
            page=page,
            total=result.total,
        )

    async def _cursor_page(self, plan: QueryPlan, store: RecordStore) -> PageEnvelope:
        plan = self._pin(plan)
        result = await self._fetch(plan, store, self._cursor_query(plan), PaginationMode.CURSOR)
        return self._assemble_cursor_page(plan, result)

    async def _auto_page(self, plan: QueryPlan, store: RecordStore) -> PageEnvelope:
        plan = self._pin(plan)
        query = self._cursor_query(plan, with_total=True)
        result = await self._fetch(plan, store, query, PaginationMode.AUTO)

        if result.total is not None and result.total < self.settings.offset_threshold:
            logger.debug(
                "Small result set, using offset pagination",
                extra={"collection": plan.collection, "total": result.total},
            )
            rows = list(result.rows)
            return PageEnvelope(
                items=tuple(rows[: plan.limit]),
                mode=PaginationMode.OFFSET,
                size=plan.limit,
                has_next=len(rows) > plan.limit,
                has_prev=False,
                page=1,
                total=result.total,
            )
        return self._assemble_cursor_page(plan, result)

    # -- helpers -----------------------------------------------------------

    def _pin(self, plan: QueryPlan) -> QueryPlan:
        if self.snapshots is None:
            return plan
        return self.snapshots.apply(self.snapshots.stamp(plan))

    @staticmethod
    def _cursor_query(plan: QueryPlan, *, with_total: bool = False) -> StoreQuery:
        return StoreQuery(
            where=plan.where(),
            order=plan.fetch_sort,
            limit=plan.limit + 1,
            with_total=with_total,
            field_map=plan.field_map,
        )

    def _assemble_cursor_page(self, plan: QueryPlan, result: FetchResult) -> PageEnvelope:
        rows = list(result.rows)
        has_more = len(rows) > plan.limit
        items = rows[: plan.limit]

        if plan.is_backward:
            items.reverse()
            has_next, has_prev = True, has_more
        else:
            has_next, has_prev = has_more, plan.cursor is not None

        if not items:
            has_next = has_prev = False

        next_cursor = prev_cursor = None
        if has_next:
            next_cursor = self._issue(plan, items[-1], PageDirection.NEXT)
        if has_prev:
            prev_cursor = self._issue(plan, items[0], PageDirection.PREV)

        return PageEnvelope(
            items=tuple(items),
            mode=PaginationMode.CURSOR,
            size=plan.limit,
            has_next=has_next,
            has_prev=has_prev,
            next_cursor=next_cursor,
            prev_cursor=prev_cursor,
            current_cursor=plan.cursor_token,
            total=result.total,
            snapshot_time=plan.snapshot_time,
        )

    def _issue(self, plan: QueryPlan, record: Any, direction: PageDirection) -> str:
        return self.codec.create_cursor(
            record,
            plan.sort,
            direction=direction,
            snapshot_time=plan.snapshot_time,
            filter_hash=plan.filter_hash if self.settings.bind_cursor_to_filters else None,
            field_map=plan.field_map,
        )

    async def _fetch(
        self,
        plan: QueryPlan,
        store: RecordStore,
        query: StoreQuery,
        mode: PaginationMode,
    ) -> FetchResult:
        try:
            async with track_store_fetch(plan.collection, mode.value):
                return await store.fetch(query)
        except PaginationError:
            raise
        except Exception as e:
            track_store_error(plan.collection, type(e).__name__)
            logger.error(
                "Record store fetch failed",
                extra={
                    "collection": plan.collection,
                    "mode": mode.value,
                    "exception_type": type(e).__name__,
                    "error": str(e),
                },
            )
            raise StoreError(f"Failed to read from '{plan.collection}'", original=e) from e


__all__ = ["PageEnvelope", "Paginator"]
