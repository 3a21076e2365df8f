"""Query plan construction.

The plan builder validates a request's filters, binds an optional cursor to
the live sort specification, and produces the keyset seek predicate.

How the seek works:
    For ORDER BY created_at DESC, id ASC with cursor at (t1, id1):
    WHERE (created_at < t1) OR (created_at = t1 AND id > id1)

    In general, for sort fields f0..fn and cursor values v0..vn:
        (f0 op v0) OR
        (f0 = v0 AND f1 op v1) OR
        ...
        (f0 = v0 AND ... AND fn-1 = vn-1 AND fn op vn)
    where ``op`` is ``>`` for ASC and ``<`` for DESC fields.

Backward (PREV) pages run the same construction over the reversed sort,
so the store reads towards the beginning of the result set; the
orchestrator then reverses the page back into display order.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from functools import cached_property
from typing import Any

from pagekit.core.exceptions import (
    InvalidCursorError,
    InvalidCursorForSortError,
    UnsupportedCombinationError,
)
from pagekit.core.pagination.cursor import CursorData
from pagekit.core.pagination.expressions import (
    Predicate,
    all_of,
    any_of,
    equals,
    strictly_after,
)
from pagekit.core.pagination.fields import CollectionSchema
from pagekit.core.pagination.filters import filter_fingerprint
from pagekit.core.pagination.types import (
    FilterPredicate,
    Operator,
    PageDirection,
    PaginationMode,
    SortSpec,
)
from pagekit.core.settings.pagination import PaginationSettings

logger = logging.getLogger(__name__)

# Operators that may be repeated on the same field (combined with AND).
_STACKABLE = frozenset(
    {
        Operator.NE,
        Operator.NIN,
        Operator.CONTAINS,
        Operator.STARTS_WITH,
        Operator.ENDS_WITH,
        Operator.REGEX,
    }
)
# Operators that fully determine a field and combine with nothing else.
_EXCLUSIVE = frozenset({Operator.EQ, Operator.IN, Operator.IS_NULL})
_CONFLICTING_PAIRS = frozenset(
    {
        frozenset({Operator.GT, Operator.GTE}),
        frozenset({Operator.LT, Operator.LTE}),
        frozenset({Operator.BETWEEN, Operator.GT}),
        frozenset({Operator.BETWEEN, Operator.GTE}),
        frozenset({Operator.BETWEEN, Operator.LT}),
        frozenset({Operator.BETWEEN, Operator.LTE}),
    }
)


def validate_combinations(filters: Sequence[FilterPredicate]) -> None:
    """Reject conflicting operators on the same field.

    Rules:
        - ``eq``, ``in`` and ``isNull`` cannot be combined with any other
          operator on the field (``isNull`` may pair with ``exists``)
        - only ``ne``, ``nin`` and text operators may be repeated
        - ``between`` excludes the other range operators; ``gt`` excludes
          ``gte`` and ``lt`` excludes ``lte``

    Raises:
        UnsupportedCombinationError: On the first conflict found
    """
    by_field: dict[str, list[Operator]] = defaultdict(list)
    for predicate in filters:
        by_field[predicate.field].append(predicate.operator)

    for name, operators in by_field.items():
        if len(operators) < 2:
            continue
        distinct = set(operators)

        for operator in distinct:
            if operators.count(operator) > 1 and operator not in _STACKABLE:
                raise UnsupportedCombinationError(
                    f"Operator '{operator.value}' is repeated on field '{name}'",
                    field=name,
                )

        exclusive = distinct & _EXCLUSIVE
        if exclusive:
            others = distinct - exclusive
            if Operator.IS_NULL in exclusive:
                others -= {Operator.EXISTS}
            if others or len(exclusive) > 1:
                listed = ", ".join(sorted(op.value for op in distinct))
                raise UnsupportedCombinationError(
                    f"Operators {listed} cannot be combined on field '{name}'",
                    field=name,
                )

        for pair in _CONFLICTING_PAIRS:
            if pair <= distinct:
                listed = ", ".join(sorted(op.value for op in pair))
                raise UnsupportedCombinationError(
                    f"Operators {listed} cannot be combined on field '{name}'",
                    field=name,
                )


def build_seek_predicate(sort: SortSpec, values: dict[str, Any]) -> Predicate:
    """Build the keyset condition selecting rows strictly after ``values`` in ``sort``."""
    clauses: list[Predicate] = []
    for k, sort_field in enumerate(sort.fields):
        prefix = [equals(prev, values[prev.name]) for prev in sort.fields[:k]]
        clauses.append(all_of(*prefix, strictly_after(sort_field, values[sort_field.name])))
    return any_of(*clauses)


@dataclass(frozen=True)
class QueryPlan:
    """Everything needed to fetch one page.

    Attributes:
        collection: Collection name (part of the cache key)
        filters: Validated client filters
        sort: Display sort order, ending with the id field
        cursor: Decoded cursor, if the request has one
        direction: Direction to move from the cursor
        limit: Page size, already clamped
        page: 1-based page number for offset pagination
        mode: Requested pagination mode
        snapshot_time: Snapshot pin (from the cursor, or stamped for a new session)
        cursor_token: The raw cursor token, echoed back as ``current``
        filter_hash: Fingerprint of ``filters``
        extra_conditions: Engine-added conditions (e.g. snapshot), not part
            of the client-visible filter set
        field_map: Public field name to storage name
    """

    collection: str
    filters: tuple[FilterPredicate, ...]
    sort: SortSpec
    cursor: CursorData | None = None
    direction: PageDirection = PageDirection.NEXT
    limit: int = 50
    page: int | None = None
    mode: PaginationMode = PaginationMode.AUTO
    snapshot_time: datetime | None = None
    cursor_token: str | None = None
    filter_hash: str | None = None
    extra_conditions: tuple[Predicate, ...] = ()
    field_map: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_backward(self) -> bool:
        return self.cursor is not None and self.direction is PageDirection.PREV

    @cached_property
    def fetch_sort(self) -> SortSpec:
        """Order the store reads in (reversed for backward pages)."""
        return self.sort.reversed() if self.is_backward else self.sort

    @cached_property
    def seek(self) -> Predicate | None:
        """Keyset condition past the cursor, or None without a cursor."""
        if self.cursor is None:
            return None
        return build_seek_predicate(self.fetch_sort, self.cursor.values)

    def where(self, *, include_seek: bool = True) -> Predicate:
        """Combined filter, engine and seek conditions."""
        parts: list[Predicate] = [*self.filters, *self.extra_conditions]
        if include_seek and self.seek is not None:
            parts.append(self.seek)
        return all_of(*parts)

    @cached_property
    def plan_hash(self) -> str:
        """Stable hash of the client-visible plan, used as cache key."""
        payload = {
            "c": self.collection,
            "f": self.filter_hash or filter_fingerprint(self.filters),
            "s": self.sort.render(),
            "k": self.cursor_token,
            "d": self.direction.value,
            "l": self.limit,
            "p": self.page,
            "m": self.mode.value,
        }
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()

    def with_conditions(self, *conditions: Predicate, snapshot_time: datetime | None = None) -> QueryPlan:
        """Copy of the plan with extra engine conditions (and snapshot time)."""
        return replace(
            self,
            extra_conditions=(*self.extra_conditions, *conditions),
            snapshot_time=snapshot_time if snapshot_time is not None else self.snapshot_time,
        )


class QueryPlanBuilder:
    """Combine filters, sort and cursor into a validated ``QueryPlan``.

    Example:
        builder = QueryPlanBuilder(schema, settings)
        plan = builder.build(filters, sort, cursor, PageDirection.NEXT, 20)
        where = plan.where()
    """

    def __init__(self, schema: CollectionSchema, settings: PaginationSettings) -> None:
        self.schema = schema
        self.settings = settings

    def build(
        self,
        filters: Sequence[FilterPredicate],
        sort: SortSpec,
        cursor: CursorData | None = None,
        direction: PageDirection | None = None,
        limit: int | None = None,
        *,
        page: int | None = None,
        mode: PaginationMode = PaginationMode.AUTO,
        cursor_token: str | None = None,
    ) -> QueryPlan:
        """Validate the inputs and build a plan.

        Raises:
            UnsupportedCombinationError: Conflicting operators on one field
            InvalidCursorForSortError: Cursor issued for a different sort
            InvalidCursorError: Cursor values missing, of the wrong type, or
                issued for a different filter set
        """
        validate_combinations(filters)
        filter_hash = filter_fingerprint(filters)

        if cursor is not None:
            self._check_cursor(cursor, sort, filter_hash)
            if direction is None:
                direction = cursor.direction

        plan = QueryPlan(
            collection=self.schema.name,
            filters=tuple(filters),
            sort=sort,
            cursor=cursor,
            direction=direction or PageDirection.NEXT,
            limit=self.settings.clamp_page_size(limit),
            page=page,
            mode=mode,
            snapshot_time=cursor.snapshot_time if cursor else None,
            cursor_token=cursor_token,
            filter_hash=filter_hash,
            field_map={name: f.storage_name for name, f in self.schema.fields.items()},
        )
        logger.debug(
            "Built query plan",
            extra={
                "collection": plan.collection,
                "sort": sort.render(),
                "filter_count": len(plan.filters),
                "has_cursor": cursor is not None,
                "direction": plan.direction.value,
                "limit": plan.limit,
            },
        )
        return plan

    def _check_cursor(self, cursor: CursorData, sort: SortSpec, filter_hash: str) -> None:
        if cursor.sort != sort.signature:
            logger.info(
                "Cursor sort does not match request sort",
                extra={"cursor_sort": cursor.sort, "request_sort": sort.signature},
            )
            raise InvalidCursorForSortError()

        missing = [name for name in sort.names if name not in cursor.values]
        if missing:
            raise InvalidCursorError(
                f"Cursor is missing values for {', '.join(missing)}",
                reason="missing_field",
            )
        cursor.validate_types(self.schema)

        if (
            self.settings.bind_cursor_to_filters
            and cursor.filter_hash is not None
            and cursor.filter_hash != filter_hash
        ):
            raise InvalidCursorError(
                "Cursor was issued for a different filter set",
                reason="filters_changed",
            )


__all__ = [
    "QueryPlan",
    "QueryPlanBuilder",
    "build_seek_predicate",
    "validate_combinations",
]
