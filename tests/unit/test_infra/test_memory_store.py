"""Unit tests for the in-memory record store."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from pagekit.core.pagination.expressions import FALSE, all_of, any_of
from pagekit.core.pagination.sorting import resolve_sort
from pagekit.core.pagination.store import RecordStore, StoreQuery
from pagekit.core.pagination.types import (
    FilterPredicate,
    Operator,
    SortDirection,
    SortField,
    SortSpec,
)
from pagekit.infra.stores import InMemoryStore

RECORDS = [
    {"id": 1, "name": "Alpha", "score": 3},
    {"id": 2, "name": "beta", "score": None},
    {"id": 3, "name": "Gamma", "score": 1},
    {"id": 4, "name": "delta", "score": 3},
    {"id": 5, "name": "Epsilon"},
]


def _ids(result) -> list[int]:
    return [row["id"] for row in result.rows]


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore(RECORDS)


class TestInMemoryStore:
    def test_implements_protocol(self, memory_store):
        assert isinstance(memory_store, RecordStore)

    def test_each_store_has_its_own_cache_key(self):
        assert InMemoryStore().cache_key != InMemoryStore().cache_key
        assert InMemoryStore(cache_key="shared").cache_key == "shared"

    async def test_limit_offset_and_total(self, memory_store):
        result = await memory_store.fetch(
            StoreQuery(order=resolve_sort([]), limit=2, offset=1, with_total=True)
        )

        assert _ids(result) == [2, 3]
        assert result.total == 5
        assert memory_store.fetch_count == 1

    async def test_total_only_when_requested(self, memory_store):
        result = await memory_store.fetch(StoreQuery(limit=10))

        assert result.total is None

    async def test_constant_false(self, memory_store):
        result = await memory_store.fetch(StoreQuery(where=FALSE, with_total=True))

        assert result.rows == []
        assert result.total == 0

    async def test_field_map(self, memory_store):
        query = StoreQuery(
            where=FilterPredicate("title", Operator.EQ, "Alpha"),
            field_map={"title": "name"},
        )

        assert _ids(await memory_store.fetch(query)) == [1]

    async def test_reads_object_attributes(self):
        @dataclass
        class Row:
            id: int
            score: int | None

        store = InMemoryStore([Row(1, 5), Row(2, None), Row(3, 7)])
        result = await store.fetch(StoreQuery(where=FilterPredicate("score", Operator.GT, 5)))

        assert [row.id for row in result.rows] == [3]


class TestPredicateEvaluation:
    """Comparisons follow SQL NULL semantics; text operators ignore case."""

    @pytest.mark.parametrize(
        ("predicate", "expected"),
        [
            (FilterPredicate("score", Operator.EQ, 3), [1, 4]),
            (FilterPredicate("score", Operator.NE, 3), [3]),
            (FilterPredicate("score", Operator.IN, (1, 3)), [1, 3, 4]),
            (FilterPredicate("score", Operator.NIN, (3,)), [3]),
            (FilterPredicate("score", Operator.GT, 1), [1, 4]),
            (FilterPredicate("score", Operator.GTE, 1), [1, 3, 4]),
            (FilterPredicate("score", Operator.LT, 3), [3]),
            (FilterPredicate("score", Operator.LTE, 3), [1, 3, 4]),
            (FilterPredicate("score", Operator.BETWEEN, (1, 2)), [3]),
            (FilterPredicate("score", Operator.IS_NULL, True), [2, 5]),
            (FilterPredicate("score", Operator.IS_NULL, False), [1, 3, 4]),
            (FilterPredicate("score", Operator.EXISTS, True), [1, 3, 4]),
            (FilterPredicate("score", Operator.EQ, None), [2, 5]),
            (FilterPredicate("name", Operator.CONTAINS, "ELT"), [4]),
            (FilterPredicate("name", Operator.STARTS_WITH, "g"), [3]),
            (FilterPredicate("name", Operator.ENDS_WITH, "A"), [1, 2, 3, 4]),
            (FilterPredicate("name", Operator.REGEX, "^[A-Z]"), [1, 3, 5]),
        ],
    )
    async def test_operator(self, memory_store, predicate, expected):
        result = await memory_store.fetch(StoreQuery(where=predicate, order=resolve_sort([])))

        assert _ids(result) == expected

    async def test_nested_tree(self, memory_store):
        predicate = any_of(
            FilterPredicate("score", Operator.IS_NULL, True),
            all_of(
                FilterPredicate("score", Operator.EQ, 3),
                FilterPredicate("name", Operator.STARTS_WITH, "d"),
            ),
        )

        result = await memory_store.fetch(StoreQuery(where=predicate, order=resolve_sort([])))

        assert _ids(result) == [2, 4, 5]


class TestOrdering:
    async def test_nulls_last_descending(self, memory_store):
        order = SortSpec(
            (
                SortField("score", SortDirection.DESC, nulls_first=False, nullable=True),
                SortField("id"),
            )
        )

        result = await memory_store.fetch(StoreQuery(order=order))

        assert _ids(result) == [1, 4, 3, 2, 5]

    async def test_nulls_first_ascending(self, memory_store):
        order = SortSpec(
            (
                SortField("score", SortDirection.ASC, nulls_first=True, nullable=True),
                SortField("id", SortDirection.DESC),
            )
        )

        result = await memory_store.fetch(StoreQuery(order=order))

        assert _ids(result) == [5, 2, 3, 4, 1]

    async def test_reversed_order_is_exact_reverse(self, memory_store):
        order = SortSpec(
            (
                SortField("score", SortDirection.DESC, nulls_first=False, nullable=True),
                SortField("id"),
            )
        )

        forward = _ids(await memory_store.fetch(StoreQuery(order=order)))
        backward = _ids(await memory_store.fetch(StoreQuery(order=order.reversed())))

        assert backward == list(reversed(forward))

    async def test_added_records_are_visible(self, memory_store):
        memory_store.add({"id": 6, "name": "Zeta", "score": 9})

        result = await memory_store.fetch(StoreQuery(order=resolve_sort([]), with_total=True))

        assert len(memory_store) == 6
        assert result.total == 6
