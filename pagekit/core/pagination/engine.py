"""Pagination engine facade.

Wires the filter parser, sort resolver, plan builder, snapshot manager,
cache and orchestrator together for one collection. Raw query parameters
go in, a ``PageResponse`` comes out.

Usage:
    engine = PaginationEngine(articles_schema, get_pagination_settings())

    @router.get("/articles", response_model=PageResponse[ArticleOut])
    async def list_articles(params: QueryParams, session: SessionDep):
        return await engine.paginate(params, SQLAlchemyStore(session, Article))
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, TypeAlias

from pagekit.core.exceptions import InvalidCursorError, PaginationError, StoreError
from pagekit.core.pagination.cache import QueryResultCache
from pagekit.core.pagination.cursor import CursorCodec, build_codec, utcnow
from pagekit.core.pagination.fields import CollectionSchema
from pagekit.core.pagination.filters import FilterParser, describe_filters
from pagekit.core.pagination.orchestrator import PageEnvelope, Paginator
from pagekit.core.pagination.plan import QueryPlan, QueryPlanBuilder
from pagekit.core.pagination.request import PageRequest
from pagekit.core.pagination.schemas import PageResponse
from pagekit.core.pagination.snapshot import SnapshotManager
from pagekit.core.pagination.sorting import SortResolver
from pagekit.core.pagination.store import RecordStore
from pagekit.core.result import PaginationResult
from pagekit.core.settings.loader import get_pagination_settings
from pagekit.core.settings.pagination import PaginationSettings
from pagekit.infra.metrics.tracking import track_client_error

logger = logging.getLogger(__name__)

QueryParams: TypeAlias = Mapping[str, Sequence[str] | str]


def _values(params: QueryParams, key: str) -> list[str]:
    raw = params.get(key)
    if raw is None:
        return []
    return [raw] if isinstance(raw, str) else list(raw)


class PaginationEngine:
    """Paginate one collection.

    Args:
        schema: Fields the collection exposes
        settings: Pagination settings
        codec: Cursor codec; built from ``settings.cursor_secret`` when omitted
        cache: Query-result cache; built from settings when omitted and enabled
        clock: Time source for cursor expiry and snapshot pins

    Raises:
        ConfigError: If the snapshot field is not a datetime field of the
            schema, or a cursor key is invalid
    """

    def __init__(
        self,
        schema: CollectionSchema,
        settings: PaginationSettings,
        *,
        codec: CursorCodec | None = None,
        cache: QueryResultCache | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.schema = schema
        self.settings = settings
        self.codec = codec or build_codec(
            settings.cursor_keys(),
            ttl_seconds=settings.cursor_ttl_seconds,
            clock=clock,
        )

        snapshots = None
        if settings.snapshot_field:
            snapshots = SnapshotManager.for_schema(schema, settings.snapshot_field, clock=clock)
        if cache is None and settings.result_cache_enabled:
            cache = QueryResultCache(
                ttl_seconds=settings.result_cache_ttl_seconds,
                max_entries=settings.result_cache_max_entries,
            )

        self.filter_parser = FilterParser(schema, strict=settings.strict_fields)
        self.sort_resolver = SortResolver(schema, max_fields=settings.max_sort_fields)
        self.plan_builder = QueryPlanBuilder(schema, settings)
        self.paginator = Paginator(settings, self.codec, cache=cache, snapshots=snapshots)

        logger.debug(
            "Pagination engine ready",
            extra={
                "collection": schema.name,
                "signed_cursors": self.codec.signed,
                "snapshot_field": settings.snapshot_field,
                "cache_enabled": cache is not None,
            },
        )

    @classmethod
    def from_settings(cls, schema: CollectionSchema, **kwargs: Any) -> PaginationEngine:
        """Create an engine with the cached environment settings."""
        return cls(schema, get_pagination_settings(), **kwargs)

    @property
    def cache(self) -> QueryResultCache | None:
        return self.paginator.cache

    def build_plan(self, params: QueryParams) -> QueryPlan:
        """Parse raw query parameters into a validated plan.

        Raises:
            PaginationError: On any invalid parameter
        """
        request = PageRequest.from_params(params)
        filters = self.filter_parser.parse(params)
        sort = self.sort_resolver.resolve(_values(params, "sort"))
        cursor = self.codec.decode(request.cursor) if request.cursor else None
        return self.plan_builder.build(
            filters,
            sort,
            cursor,
            request.direction,
            request.size,
            page=request.page,
            mode=request.mode,
            cursor_token=request.cursor,
        )

    async def fetch_page(self, params: QueryParams, store: RecordStore) -> tuple[QueryPlan, PageEnvelope]:
        """Build the plan and fetch its page.

        Raises:
            PaginationError: On any invalid parameter
            StoreError: If the store fails
        """
        try:
            plan = self.build_plan(params)
            envelope = await self.paginator.paginate(plan, store)
        except PaginationError as e:
            reason = e.reason if isinstance(e, InvalidCursorError) else None
            track_client_error(self.schema.name, e.code, reason)
            logger.info(
                "Rejected pagination request",
                extra={
                    "collection": self.schema.name,
                    "code": e.code,
                    "field": e.field,
                    "detail": e.detail,
                },
            )
            raise
        return plan, envelope

    async def paginate(
        self,
        params: QueryParams,
        store: RecordStore,
        *,
        serializer: Callable[[Any], Any] | None = None,
    ) -> PageResponse[Any]:
        """Serve one page as a response envelope.

        Args:
            params: Multi-valued query parameters
            store: Store holding the collection
            serializer: Optional conversion applied to every item

        Raises:
            PaginationError: On any invalid parameter
            StoreError: If the store fails
        """
        plan, envelope = await self.fetch_page(params, store)
        return PageResponse.from_envelope(
            envelope,
            filters=describe_filters(plan.filters),
            sort=plan.sort.render(),
            serializer=serializer,
        )

    async def try_paginate(
        self,
        params: QueryParams,
        store: RecordStore,
        *,
        serializer: Callable[[Any], Any] | None = None,
    ) -> PaginationResult[PageResponse[Any]]:
        """Like ``paginate`` but returns failures as a typed result."""
        start = time.perf_counter()
        try:
            response = await self.paginate(params, store, serializer=serializer)
        except (PaginationError, StoreError) as e:
            duration_ms = (time.perf_counter() - start) * 1000
            return PaginationResult.from_exception(e, duration_ms=duration_ms)
        return PaginationResult.ok(response, duration_ms=(time.perf_counter() - start) * 1000)


__all__ = ["PaginationEngine", "QueryParams"]
