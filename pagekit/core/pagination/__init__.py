"""Cursor-based pagination and filtering for collection endpoints.

The engine translates a collection request into one ordered store query:

    GET /articles?status=active&sort=createdDate,desc&size=20&cursor=...

- Filters (``field[operator]=value``) become typed predicates
- The sort always ends with the id field, so the order is total
- Cursors encode the position of a record (keyset pagination), so pages
  stay stable when rows are inserted or deleted between requests
- Small result sets transparently use page-number (offset) metadata

Typical use:
    engine = PaginationEngine(schema, get_pagination_settings())
    response = await engine.paginate(query_params, SQLAlchemyStore(session, Article))
"""

from pagekit.core.pagination.cache import QueryResultCache
from pagekit.core.pagination.cursor import (
    CursorCodec,
    CursorData,
    FernetCursorCodec,
    build_codec,
)
from pagekit.core.pagination.engine import PaginationEngine, QueryParams
from pagekit.core.pagination.expressions import AllOf, AnyOf, Constant, Predicate, render
from pagekit.core.pagination.fields import CollectionSchema, FieldDef, FieldType
from pagekit.core.pagination.filters import FilterParser, describe_filters, filter_fingerprint
from pagekit.core.pagination.orchestrator import PageEnvelope, Paginator
from pagekit.core.pagination.plan import QueryPlan, QueryPlanBuilder, build_seek_predicate
from pagekit.core.pagination.request import PageRequest
from pagekit.core.pagination.schemas import CursorMeta, OffsetMeta, PageMeta, PageResponse
from pagekit.core.pagination.snapshot import SnapshotManager
from pagekit.core.pagination.sorting import SortResolver, resolve_sort
from pagekit.core.pagination.store import FetchResult, RecordStore, StoreQuery
from pagekit.core.pagination.types import (
    FilterPredicate,
    Operator,
    PageDirection,
    PaginationMode,
    SortDirection,
    SortField,
    SortSpec,
)

__all__ = [
    # Expressions
    "AllOf",
    "AnyOf",
    # Schema
    "CollectionSchema",
    "Constant",
    # Cursors
    "CursorCodec",
    "CursorData",
    # Response schemas
    "CursorMeta",
    "FernetCursorCodec",
    "FetchResult",
    "FieldDef",
    "FieldType",
    # Filters and sorting
    "FilterParser",
    "FilterPredicate",
    "OffsetMeta",
    "Operator",
    "PageDirection",
    "PageEnvelope",
    "PageMeta",
    "PageRequest",
    "PageResponse",
    # Engine
    "PaginationEngine",
    "PaginationMode",
    "Paginator",
    "Predicate",
    "QueryParams",
    "QueryPlan",
    "QueryPlanBuilder",
    "QueryResultCache",
    # Stores
    "RecordStore",
    "SnapshotManager",
    "SortDirection",
    "SortField",
    "SortResolver",
    "SortSpec",
    "StoreQuery",
    "build_codec",
    "build_seek_predicate",
    "describe_filters",
    "filter_fingerprint",
    "render",
    "resolve_sort",
]
