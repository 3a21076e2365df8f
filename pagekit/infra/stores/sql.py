"""SQLAlchemy record store.

Compiles predicate trees into SQLAlchemy expressions and runs one SELECT
per page. When the caller needs a total, it is read from a
``COUNT(*) OVER ()`` window column of the same statement, so the page and
its total still cost a single round trip.

Usage:
    async with session_factory() as session:
        store = SQLAlchemyStore(session, Article)
        response = await engine.paginate(params, store)
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from typing import TYPE_CHECKING, Any, assert_never

from sqlalchemy import Select, and_, false, func, or_, select, true

from pagekit.core.exceptions import ConfigError
from pagekit.core.pagination.expressions import AllOf, AnyOf, Constant, Predicate
from pagekit.core.pagination.store import FetchResult, StoreQuery
from pagekit.core.pagination.types import FilterPredicate, Operator, SortDirection, SortSpec

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql.elements import ColumnElement

logger = logging.getLogger(__name__)

_TOTAL_LABEL = "_pagekit_total"


class SQLAlchemyStore:
    """Record store over an ORM model.

    Args:
        session: Async session used for the query
        model: Mapped class whose rows are returned
        statement: Base select (e.g. with joins or tenant scoping); defaults
            to ``select(model)``
        column_map: Storage name to column expression, for fields that are
            not plain model attributes
        cache_key: Identity of the rows ``statement`` can see, e.g.
            ``("articles", tenant_id)``; pages are only cached when given
    """

    def __init__(
        self,
        session: AsyncSession,
        model: type[Any],
        *,
        statement: Select[Any] | None = None,
        column_map: Mapping[str, Any] | None = None,
        cache_key: Hashable | None = None,
    ) -> None:
        self.session = session
        self.model = model
        self.statement = statement if statement is not None else select(model)
        self.column_map = dict(column_map or {})
        self.cache_key = cache_key

    async def fetch(self, query: StoreQuery) -> FetchResult:
        stmt = self.build_statement(query)
        result = await self.session.execute(stmt)

        if not query.with_total:
            rows = list(result.scalars().all())
            logger.debug(
                "SQL fetch",
                extra={"model": self.model.__name__, "returned": len(rows), "offset": query.offset},
            )
            return FetchResult(rows=rows)

        raw_rows = result.all()
        rows = [row[0] for row in raw_rows]
        if raw_rows:
            total: int | None = int(raw_rows[0][1])
        else:
            # Past the end the window count is not observable
            total = 0 if query.offset == 0 else None
        logger.debug(
            "SQL fetch",
            extra={
                "model": self.model.__name__,
                "returned": len(rows),
                "offset": query.offset,
                "total": total,
            },
        )
        return FetchResult(rows=rows, total=total)

    def build_statement(self, query: StoreQuery) -> Select[Any]:
        """Build the SELECT for a query (exposed for inspection and tests)."""
        stmt = self.statement.where(self.compile(query.where, query))
        if query.order is not None:
            stmt = stmt.order_by(*self.order_by(query.order, query))
        if query.with_total:
            stmt = stmt.add_columns(func.count().over().label(_TOTAL_LABEL))
        return stmt.limit(query.limit).offset(query.offset)

    # -- compilation -------------------------------------------------------

    def column(self, name: str) -> Any:
        """Resolve a storage name to a column expression.

        Raises:
            ConfigError: If the model has no such attribute
        """
        if name in self.column_map:
            return self.column_map[name]
        column = getattr(self.model, name, None)
        if column is None:
            msg = "Field is not mapped to a column"
            raise ConfigError(msg, {"model": self.model.__name__, "field": name})
        return column

    def compile(self, predicate: Predicate, query: StoreQuery) -> ColumnElement[bool]:
        match predicate:
            case Constant(value=value):
                return true() if value else false()
            case AllOf(children=children):
                return and_(*(self.compile(child, query) for child in children))
            case AnyOf(children=children):
                return or_(*(self.compile(child, query) for child in children))
            case FilterPredicate():
                return self._leaf(predicate, query)
            case _:
                assert_never(predicate)

    def _leaf(self, leaf: FilterPredicate, query: StoreQuery) -> ColumnElement[bool]:
        column = self.column(query.storage_name(leaf.field))
        operand = leaf.operand

        match leaf.operator:
            case Operator.IS_NULL:
                return column.is_(None) if operand else column.is_not(None)
            case Operator.EXISTS:
                return column.is_not(None) if operand else column.is_(None)
            case Operator.EQ:
                return column.is_(None) if operand is None else column == operand
            case Operator.NE:
                return column.is_not(None) if operand is None else column != operand
            case Operator.IN:
                return column.in_(list(operand))
            case Operator.NIN:
                return column.not_in(list(operand))
            case Operator.GT:
                return column > operand
            case Operator.GTE:
                return column >= operand
            case Operator.LT:
                return column < operand
            case Operator.LTE:
                return column <= operand
            case Operator.BETWEEN:
                low, high = operand
                return column.between(low, high)
            case Operator.CONTAINS:
                return column.icontains(operand, autoescape=True)
            case Operator.STARTS_WITH:
                return column.istartswith(operand, autoescape=True)
            case Operator.ENDS_WITH:
                return column.iendswith(operand, autoescape=True)
            case Operator.REGEX:
                return column.regexp_match(operand)
            case _:
                assert_never(leaf.operator)

    def order_by(self, order: SortSpec, query: StoreQuery) -> list[Any]:
        clauses = []
        for field in order:
            column = self.column(query.storage_name(field.name))
            clause = column.asc() if field.direction is SortDirection.ASC else column.desc()
            clauses.append(clause.nulls_first() if field.nulls_first else clause.nulls_last())
        return clauses


__all__ = ["SQLAlchemyStore"]
