"""Backend-neutral predicate trees.

Filters, the keyset seek condition and the snapshot condition are all
expressed with the same small tree: ``FilterPredicate`` leaves combined by
``AllOf`` (AND) and ``AnyOf`` (OR), plus ``Constant`` for trivially true
or false branches. Stores compile the tree into their own query language.

Example:
    # (created_at < t1) OR (created_at = t1 AND id > id1)
    any_of(
        FilterPredicate("created_at", Operator.LT, t1),
        all_of(
            FilterPredicate("created_at", Operator.EQ, t1),
            FilterPredicate("id", Operator.GT, id1),
        ),
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeAlias, assert_never

from pagekit.core.pagination.types import FilterPredicate, Operator, SortDirection, SortField


@dataclass(frozen=True)
class Constant:
    """A branch that is always true or always false."""

    value: bool


@dataclass(frozen=True)
class AllOf:
    """Conjunction of child predicates."""

    children: tuple[Predicate, ...]


@dataclass(frozen=True)
class AnyOf:
    """Disjunction of child predicates."""

    children: tuple[Predicate, ...]


Predicate: TypeAlias = FilterPredicate | AllOf | AnyOf | Constant

TRUE = Constant(True)
FALSE = Constant(False)


def all_of(*predicates: Predicate) -> Predicate:
    """AND the predicates, flattening nested ANDs and folding constants."""
    children: list[Predicate] = []
    for predicate in predicates:
        match predicate:
            case Constant(value=True):
                continue
            case Constant(value=False):
                return FALSE
            case AllOf(children=nested):
                children.extend(nested)
            case _:
                children.append(predicate)
    if not children:
        return TRUE
    if len(children) == 1:
        return children[0]
    return AllOf(tuple(children))


def any_of(*predicates: Predicate) -> Predicate:
    """OR the predicates, flattening nested ORs and folding constants."""
    children: list[Predicate] = []
    for predicate in predicates:
        match predicate:
            case Constant(value=False):
                continue
            case Constant(value=True):
                return TRUE
            case AnyOf(children=nested):
                children.extend(nested)
            case _:
                children.append(predicate)
    if not children:
        return FALSE
    if len(children) == 1:
        return children[0]
    return AnyOf(tuple(children))


# ============================================================================
# Keyset helpers
# ============================================================================


def equals(field: SortField, value: Any) -> Predicate:
    """``field = value``, treating NULL as a value of its own."""
    if value is None:
        return FilterPredicate(field.name, Operator.IS_NULL, True)
    return FilterPredicate(field.name, Operator.EQ, value)


def strictly_after(field: SortField, value: Any) -> Predicate:
    """Rows whose ``field`` sorts strictly after ``value`` in ``field``'s order.

    NULL placement follows ``field.nulls_first``: when NULLs come first,
    every non-NULL value is after a NULL; when they come last, NULL is
    after every non-NULL value.
    """
    if value is None:
        if field.nulls_first:
            return FilterPredicate(field.name, Operator.IS_NULL, False)
        return FALSE

    operator = Operator.GT if field.direction is SortDirection.ASC else Operator.LT
    compare = FilterPredicate(field.name, operator, value)
    if field.nullable and not field.nulls_first:
        return any_of(compare, FilterPredicate(field.name, Operator.IS_NULL, True))
    return compare


# ============================================================================
# Rendering
# ============================================================================


def render(predicate: Predicate) -> str:
    """Render a predicate as a readable, SQL-like string (for logs and tooling)."""
    match predicate:
        case Constant(value=value):
            return "TRUE" if value else "FALSE"
        case AllOf(children=children):
            return " AND ".join(_group(child) for child in children)
        case AnyOf(children=children):
            return " OR ".join(_group(child) for child in children)
        case FilterPredicate():
            return _render_leaf(predicate)
        case _:
            assert_never(predicate)


def _group(predicate: Predicate) -> str:
    text = render(predicate)
    if isinstance(predicate, AllOf | AnyOf):
        return f"({text})"
    return text


def _render_leaf(leaf: FilterPredicate) -> str:
    name, operand = leaf.field, leaf.operand
    match leaf.operator:
        case Operator.EQ:
            return f"{name} = {operand!r}"
        case Operator.NE:
            return f"{name} != {operand!r}"
        case Operator.IN:
            return f"{name} IN {list(operand)!r}"
        case Operator.NIN:
            return f"{name} NOT IN {list(operand)!r}"
        case Operator.GT:
            return f"{name} > {operand!r}"
        case Operator.GTE:
            return f"{name} >= {operand!r}"
        case Operator.LT:
            return f"{name} < {operand!r}"
        case Operator.LTE:
            return f"{name} <= {operand!r}"
        case Operator.BETWEEN:
            low, high = operand
            return f"{name} BETWEEN {low!r} AND {high!r}"
        case Operator.CONTAINS:
            return f"{name} ICONTAINS {operand!r}"
        case Operator.STARTS_WITH:
            return f"{name} ISTARTSWITH {operand!r}"
        case Operator.ENDS_WITH:
            return f"{name} IENDSWITH {operand!r}"
        case Operator.REGEX:
            return f"{name} ~ {operand!r}"
        case Operator.EXISTS:
            return f"{name} IS NOT NULL" if operand else f"{name} IS NULL"
        case Operator.IS_NULL:
            return f"{name} IS NULL" if operand else f"{name} IS NOT NULL"
        case _:
            assert_never(leaf.operator)


def referenced_fields(predicate: Predicate) -> set[str]:
    """Names of every field a predicate reads."""
    match predicate:
        case Constant():
            return set()
        case AllOf(children=children) | AnyOf(children=children):
            names: set[str] = set()
            for child in children:
                names |= referenced_fields(child)
            return names
        case FilterPredicate(field=name):
            return {name}
        case _:
            assert_never(predicate)


__all__ = [
    "FALSE",
    "TRUE",
    "AllOf",
    "AnyOf",
    "Constant",
    "Predicate",
    "all_of",
    "any_of",
    "equals",
    "referenced_fields",
    "render",
    "strictly_after",
]
