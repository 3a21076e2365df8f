"""Snapshot pinning for long-lived cursor sessions.

A pagination session over mutable data is pinned to the time its first
page was read. Every later page excludes records modified after that time:

    WHERE ... AND (updated_at <= snapshot_time OR updated_at IS NULL)

This is a filter-level approximation of snapshot isolation; the store's
own isolation level bounds the guarantee.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from pagekit.core.exceptions import ConfigError
from pagekit.core.pagination.cursor import utcnow
from pagekit.core.pagination.expressions import Predicate, any_of
from pagekit.core.pagination.fields import CollectionSchema, FieldType
from pagekit.core.pagination.plan import QueryPlan
from pagekit.core.pagination.types import FilterPredicate, Operator

logger = logging.getLogger(__name__)


class SnapshotManager:
    """Stamp and enforce snapshot times on query plans.

    Args:
        field: Last-modified field compared against the snapshot time
        clock: Source of the current time (tz-aware)

    Example:
        snapshots = SnapshotManager("updated_at")
        plan = snapshots.apply(snapshots.stamp(plan))
    """

    def __init__(self, field: str, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.field = field
        self._clock = clock

    @classmethod
    def for_schema(
        cls,
        schema: CollectionSchema,
        field: str,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> SnapshotManager:
        """Create a manager after checking the field exists and holds timestamps.

        Raises:
            ConfigError: If the field is unknown or not a datetime field
        """
        definition = schema.get(field)
        if definition is None or definition.type is not FieldType.DATETIME:
            msg = "Snapshot field must be a datetime field of the collection"
            raise ConfigError(msg, {"collection": schema.name, "snapshot_field": field})
        return cls(field, clock=clock)

    def stamp(self, plan: QueryPlan) -> QueryPlan:
        """Give a plan without a snapshot time a fresh one."""
        if plan.snapshot_time is not None:
            return plan
        now = self._clock()
        logger.debug("Starting snapshot session", extra={"snapshot_time": now.isoformat()})
        return plan.with_conditions(snapshot_time=now)

    def condition(self, snapshot_time: datetime) -> Predicate:
        return any_of(
            FilterPredicate(self.field, Operator.LTE, snapshot_time),
            FilterPredicate(self.field, Operator.IS_NULL, True),
        )

    def apply(self, plan: QueryPlan) -> QueryPlan:
        """Add the snapshot condition when the plan carries a snapshot time."""
        if plan.snapshot_time is None:
            return plan
        return plan.with_conditions(self.condition(plan.snapshot_time))


__all__ = ["SnapshotManager"]
