"""In-memory record store.

Evaluates predicate trees over a list of mappings or objects with SQL-like
NULL semantics: comparisons against NULL never match, ``ne``/``nin`` do
not match NULL either, and only ``isNull``/``exists`` test for it.

Useful for tests, fixtures and small static collections.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Hashable, Iterable, Mapping
from functools import cmp_to_key
from itertools import count
from typing import Any, assert_never

from pagekit.core.pagination.expressions import AllOf, AnyOf, Constant, Predicate
from pagekit.core.pagination.store import FetchResult, StoreQuery
from pagekit.core.pagination.types import FilterPredicate, Operator, SortDirection, SortSpec

logger = logging.getLogger(__name__)

_MISSING = object()
_store_ids = count(1)


def _lookup(record: Any, name: str) -> Any:
    """Return the raw value, or ``_MISSING`` when the record has no such field."""
    if isinstance(record, Mapping):
        return record.get(name, _MISSING)
    return getattr(record, name, _MISSING)


def _text(value: Any) -> str:
    return str(value).casefold()


class InMemoryStore:
    """Record store backed by a Python list.

    Args:
        records: Mappings or objects; the list is copied
        cache_key: Cache identity; defaults to one unique to this instance

    Example:
        store = InMemoryStore([{"id": 1, "title": "a"}, {"id": 2, "title": "b"}])
        result = await store.fetch(StoreQuery(order=resolve_sort("title"), limit=10))
    """

    def __init__(self, records: Iterable[Any] = (), *, cache_key: Hashable | None = None) -> None:
        self._records = list(records)
        self.cache_key = cache_key if cache_key is not None else ("memory", next(_store_ids))
        self.fetch_count = 0

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: Any) -> None:
        self._records.append(record)

    async def fetch(self, query: StoreQuery) -> FetchResult:
        self.fetch_count += 1
        matched = [r for r in self._records if self.matches(r, query.where, query)]
        if query.order is not None:
            matched.sort(key=cmp_to_key(self._comparator(query.order, query)))
        total = len(matched) if query.with_total else None
        rows = matched[query.offset : query.offset + query.limit]
        logger.debug(
            "In-memory fetch",
            extra={"matched": len(matched), "returned": len(rows), "offset": query.offset},
        )
        return FetchResult(rows=rows, total=total)

    # -- evaluation --------------------------------------------------------

    def matches(self, record: Any, predicate: Predicate, query: StoreQuery) -> bool:
        match predicate:
            case Constant(value=value):
                return value
            case AllOf(children=children):
                return all(self.matches(record, child, query) for child in children)
            case AnyOf(children=children):
                return any(self.matches(record, child, query) for child in children)
            case FilterPredicate():
                return self._leaf(record, predicate, query)
            case _:
                assert_never(predicate)

    def _leaf(self, record: Any, leaf: FilterPredicate, query: StoreQuery) -> bool:
        raw = _lookup(record, query.storage_name(leaf.field))
        value = None if raw is _MISSING else raw
        operand = leaf.operand

        match leaf.operator:
            case Operator.IS_NULL:
                return (value is None) is bool(operand)
            case Operator.EXISTS:
                return (value is not None) is bool(operand)
            case Operator.EQ:
                if operand is None:
                    return value is None
                return value is not None and value == operand
            case Operator.NE:
                if operand is None:
                    return value is not None
                return value is not None and value != operand
            case Operator.IN:
                return value is not None and value in operand
            case Operator.NIN:
                return value is not None and value not in operand
            case Operator.GT:
                return value is not None and value > operand
            case Operator.GTE:
                return value is not None and value >= operand
            case Operator.LT:
                return value is not None and value < operand
            case Operator.LTE:
                return value is not None and value <= operand
            case Operator.BETWEEN:
                low, high = operand
                return value is not None and low <= value <= high
            case Operator.CONTAINS:
                return value is not None and _text(operand) in _text(value)
            case Operator.STARTS_WITH:
                return value is not None and _text(value).startswith(_text(operand))
            case Operator.ENDS_WITH:
                return value is not None and _text(value).endswith(_text(operand))
            case Operator.REGEX:
                return value is not None and re.search(operand, str(value)) is not None
            case _:
                assert_never(leaf.operator)

    # -- ordering ----------------------------------------------------------

    @staticmethod
    def _comparator(order: SortSpec, query: StoreQuery):
        def compare(left: Any, right: Any) -> int:
            for field in order:
                name = query.storage_name(field.name)
                a = _lookup(left, name)
                b = _lookup(right, name)
                a = None if a is _MISSING else a
                b = None if b is _MISSING else b
                if a is None and b is None:
                    continue
                if a is None:
                    return -1 if field.nulls_first else 1
                if b is None:
                    return 1 if field.nulls_first else -1
                if a == b:
                    continue
                result = -1 if a < b else 1
                return result if field.direction is SortDirection.ASC else -result
            return 0

        return compare


__all__ = ["InMemoryStore"]
