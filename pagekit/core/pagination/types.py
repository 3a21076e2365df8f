"""Value types shared by every pagination component.

All types are immutable and created per request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import Any, assert_never


class SortDirection(StrEnum):
    """Sort direction of a single field."""

    ASC = "asc"
    DESC = "desc"

    def reversed(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class PageDirection(StrEnum):
    """Which way to move from a cursor."""

    NEXT = "next"
    PREV = "prev"


class PaginationMode(StrEnum):
    """Pagination strategy requested by the client.

    ``AUTO`` lets the orchestrator choose based on the result-set size.
    """

    AUTO = "auto"
    OFFSET = "offset"
    CURSOR = "cursor"


class OperandKind(Enum):
    """Shape of the operand an operator expects."""

    SCALAR = "scalar"
    LIST = "list"
    PAIR = "pair"
    FLAG = "flag"


class Operator(StrEnum):
    """Filter operators accepted in ``field[operator]=value`` parameters.

    The set is closed: every function dispatching on an operator matches
    all members, so adding one is a type-checked change.
    """

    EQ = "eq"
    NE = "ne"
    IN = "in"
    NIN = "nin"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    BETWEEN = "between"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    REGEX = "regex"
    EXISTS = "exists"
    IS_NULL = "isNull"

    @property
    def operand_kind(self) -> OperandKind:
        match self:
            case Operator.IN | Operator.NIN:
                return OperandKind.LIST
            case Operator.BETWEEN:
                return OperandKind.PAIR
            case Operator.EXISTS | Operator.IS_NULL:
                return OperandKind.FLAG
            case (
                Operator.EQ
                | Operator.NE
                | Operator.GT
                | Operator.GTE
                | Operator.LT
                | Operator.LTE
                | Operator.CONTAINS
                | Operator.STARTS_WITH
                | Operator.ENDS_WITH
                | Operator.REGEX
            ):
                return OperandKind.SCALAR
            case _:
                assert_never(self)

    @property
    def is_text(self) -> bool:
        """Text operators only apply to string fields."""
        return self in _TEXT_OPERATORS

    @classmethod
    def lookup(cls, token: str) -> Operator | None:
        """Find an operator by its query-string token (case-insensitive)."""
        return _OPERATORS_BY_TOKEN.get(token.lower())


_TEXT_OPERATORS = frozenset(
    {Operator.CONTAINS, Operator.STARTS_WITH, Operator.ENDS_WITH, Operator.REGEX}
)
_OPERATORS_BY_TOKEN = {op.value.lower(): op for op in Operator}

NULLS_FIRST_TOKEN = "nullsfirst"


@dataclass(frozen=True)
class SortField:
    """One field of a sort specification.

    Attributes:
        name: Field name
        direction: ASC or DESC
        nulls_first: Whether NULLs come before non-NULL values in the
            order the client sees
        nullable: Whether the field may hold NULL (drives the seek predicate)
    """

    name: str
    direction: SortDirection = SortDirection.ASC
    nulls_first: bool = False
    nullable: bool = False

    def reversed(self) -> SortField:
        """The same field read in exactly the opposite order."""
        return SortField(
            name=self.name,
            direction=self.direction.reversed(),
            nulls_first=not self.nulls_first,
            nullable=self.nullable,
        )

    def render(self) -> str:
        text = f"{self.name},{self.direction.value}"
        if self.nullable:
            text += f",{NULLS_FIRST_TOKEN}" if self.nulls_first else ",nullslast"
        return text


@dataclass(frozen=True)
class SortSpec:
    """Ordered, non-empty sequence of sort fields ending with the id field.

    The trailing unique field makes the order total, so a cursor always
    identifies exactly one position.
    """

    fields: tuple[SortField, ...]

    def __post_init__(self) -> None:
        if not self.fields:
            msg = "SortSpec requires at least one field"
            raise ValueError(msg)
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            msg = f"SortSpec fields must be unique, got {names}"
            raise ValueError(msg)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def tie_breaker(self) -> SortField:
        return self.fields[-1]

    @property
    def signature(self) -> tuple[tuple[str, ...], ...]:
        """Field names and directions, as embedded in cursors.

        A field whose NULLs sort first carries a third ``nullsfirst`` entry,
        so cursors never cross a change of null placement.
        """
        return tuple(
            (f.name, f.direction.value, NULLS_FIRST_TOKEN)
            if f.nulls_first
            else (f.name, f.direction.value)
            for f in self.fields
        )

    def reversed(self) -> SortSpec:
        return SortSpec(tuple(f.reversed() for f in self.fields))

    def render(self) -> list[str]:
        return [f.render() for f in self.fields]

    def __iter__(self):
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


@dataclass(frozen=True)
class FilterPredicate:
    """A single ``field operator operand`` condition.

    ``operand`` is a scalar for scalar operators, a tuple for ``in``/``nin``,
    a ``(low, high)`` tuple for ``between`` and a bool for ``exists``/``isNull``.
    """

    field: str
    operator: Operator
    operand: Any = None

    def render(self) -> str:
        return f"{self.field}[{self.operator.value}]={self.operand!r}"


__all__ = [
    "NULLS_FIRST_TOKEN",
    "FilterPredicate",
    "OperandKind",
    "Operator",
    "PageDirection",
    "PaginationMode",
    "SortDirection",
    "SortField",
    "SortSpec",
]
