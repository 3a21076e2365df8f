"""Record store protocol and normalized query/result structures.

A record store is anything that can evaluate a predicate tree, sort by
several fields with explicit null placement, and apply limit/offset. The
engine issues exactly one ``fetch`` per page.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from pagekit.core.pagination.expressions import TRUE, Predicate
from pagekit.core.pagination.types import SortSpec


@dataclass(frozen=True)
class StoreQuery:
    """One store round trip.

    Attributes:
        where: Predicate over public field names
        order: Sort order to read in
        limit: Maximum rows to return (page size + 1)
        offset: Rows to skip (offset pagination only)
        with_total: Also report the number of rows matching ``where``
            (ignoring limit and offset) in the same round trip
        field_map: Public field name to storage name
    """

    where: Predicate = TRUE
    order: SortSpec | None = None
    limit: int = 51
    offset: int = 0
    with_total: bool = False
    field_map: Mapping[str, str] = field(default_factory=dict)

    def storage_name(self, name: str) -> str:
        return self.field_map.get(name, name)


@dataclass(frozen=True)
class FetchResult:
    """Rows returned by a store, plus the total when it was requested and known."""

    rows: Sequence[Any]
    total: int | None = None


@runtime_checkable
class RecordStore(Protocol):
    """Protocol every record store implements.

    Implementations raise their own exceptions; the orchestrator wraps
    them in ``StoreError``.

    A store may expose a hashable ``cache_key`` naming the data it reads
    (collection plus tenant scope, for example). Pages are cached only for
    stores that have one, and never shared between different keys.
    """

    async def fetch(self, query: StoreQuery) -> FetchResult:
        """Execute one query and return the matching rows in order."""
        ...


def cache_scope(store: RecordStore) -> Hashable | None:
    """Return the store's cache identity, or None when its pages must not be cached."""
    return getattr(store, "cache_key", None)


__all__ = ["FetchResult", "RecordStore", "StoreQuery", "cache_scope"]
