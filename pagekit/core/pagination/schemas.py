"""Pagination response schemas.

Every collection response has the same envelope:

    {
      "data": [...],
      "meta": {
        "cursor": {"current": ..., "next": ..., "previous": ...,
                   "hasNext": true, "hasPrevious": false},
        "pagination": null,
        "filters": {"status": {"eq": "active"}},
        "sort": ["createdDate,desc", "id,asc"]
      }
    }

``meta.cursor`` is set in cursor mode and ``meta.pagination`` in offset
mode; the other block is null.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from pagekit.core.pagination.orchestrator import PageEnvelope
from pagekit.core.pagination.types import PaginationMode

T = TypeVar("T")

_META_CONFIG = ConfigDict(populate_by_name=True, frozen=True)


class CursorMeta(BaseModel):
    """Cursor navigation metadata.

    Attributes:
        current: Cursor the page was requested with
        next: Cursor for the next page (None on the last page)
        previous: Cursor for the previous page (None on the first page)
        has_next: Whether records exist after this page
        has_previous: Whether records exist before this page
        snapshot_time: Snapshot pin of the pagination session
    """

    current: str | None = Field(default=None, description="Cursor of the current page")
    next: str | None = Field(default=None, description="Cursor to fetch the next page")
    previous: str | None = Field(default=None, description="Cursor to fetch the previous page")
    has_next: bool = Field(default=False, alias="hasNext", description="Whether more items exist")
    has_previous: bool = Field(
        default=False,
        alias="hasPrevious",
        description="Whether previous items exist",
    )
    snapshot_time: datetime | None = Field(
        default=None,
        alias="snapshotTime",
        description="Snapshot pin of the session (when enabled)",
    )

    model_config = _META_CONFIG


class OffsetMeta(BaseModel):
    """Page-number navigation metadata."""

    page: int = Field(ge=1, description="1-based page number")
    size: int = Field(ge=1, description="Page size")
    total_elements: int | None = Field(
        default=None,
        alias="totalElements",
        description="Number of matching records (None when not observable)",
    )
    total_pages: int | None = Field(default=None, alias="totalPages", description="Number of pages")
    has_next: bool = Field(default=False, alias="hasNext", description="Whether more items exist")
    has_previous: bool = Field(
        default=False,
        alias="hasPrevious",
        description="Whether previous items exist",
    )

    model_config = _META_CONFIG


class PageMeta(BaseModel):
    """Navigation metadata plus the effective filters and sort."""

    cursor: CursorMeta | None = Field(default=None, description="Cursor mode metadata")
    pagination: OffsetMeta | None = Field(default=None, description="Offset mode metadata")
    filters: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Applied filters grouped by field and operator",
    )
    sort: list[str] = Field(default_factory=list, description="Effective sort, id last")

    model_config = _META_CONFIG


class PageResponse(BaseModel, Generic[T]):
    """Paginated collection response.

    Usage:
        @router.get("/articles", response_model=PageResponse[ArticleOut])
        async def list_articles(params: QueryParams, session: SessionDep):
            return await engine.paginate(params, SQLAlchemyStore(session, Article))
    """

    data: list[T] = Field(default_factory=list, description="Items of this page")
    meta: PageMeta = Field(description="Pagination metadata")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_envelope(
        cls,
        envelope: PageEnvelope,
        *,
        filters: dict[str, dict[str, Any]] | None = None,
        sort: Sequence[str] = (),
        serializer: Callable[[Any], Any] | None = None,
    ) -> PageResponse[T]:
        """Build the response envelope from an assembled page."""
        items = [serializer(item) for item in envelope.items] if serializer else list(envelope.items)
        cursor_meta = None
        offset_meta = None
        if envelope.mode is PaginationMode.OFFSET:
            offset_meta = OffsetMeta(
                page=envelope.page or 1,
                size=envelope.size,
                total_elements=envelope.total,
                total_pages=envelope.total_pages,
                has_next=envelope.has_next,
                has_previous=envelope.has_prev,
            )
        else:
            cursor_meta = CursorMeta(
                current=envelope.current_cursor,
                next=envelope.next_cursor,
                previous=envelope.prev_cursor,
                has_next=envelope.has_next,
                has_previous=envelope.has_prev,
                snapshot_time=envelope.snapshot_time,
            )
        return cls(
            data=items,
            meta=PageMeta(
                cursor=cursor_meta,
                pagination=offset_meta,
                filters=filters or {},
                sort=list(sort),
            ),
        )


__all__ = [
    "CursorMeta",
    "OffsetMeta",
    "PageMeta",
    "PageResponse",
]
