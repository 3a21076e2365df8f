"""Filter parameter parsing.

Turns query parameters into typed ``FilterPredicate`` objects:

    status=active                  -> status eq "active"
    rating[gte]=4                  -> rating gte 4
    tag[in]=a,b&tag[in]=c          -> tag in ("a", "b", "c")
    created_at[between]=2024-01-01,2024-02-01
    title[contains]=python
    deleted_at[isNull]=true

The parser only builds the structured representation; conflicting
operators on the same field are reported when the query plan is built.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, assert_never

from pagekit.core.exceptions import (
    InvalidFilterValueError,
    UnknownFieldError,
    UnsupportedOperatorError,
    truncate,
)
from pagekit.core.pagination.fields import CollectionSchema, FieldDef, FieldType, parse_bool
from pagekit.core.pagination.types import FilterPredicate, OperandKind, Operator

logger = logging.getLogger(__name__)

RESERVED_PARAMS = frozenset({"sort", "cursor", "direction", "size", "page", "mode"})
_NULL_OPERATORS = frozenset({Operator.EQ, Operator.NE})

_KEY_PATTERN = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_.]*)(?:\[(?P<operator>[^\[\]]*)\])?$")


class FilterParser:
    """Parse ``field`` / ``field[operator]`` query parameters.

    Args:
        schema: Collection schema used to validate fields and coerce values
        strict: Reject unknown fields (default). When False, unknown fields
            are passed through as string fields.
        reserved: Parameter names that are never treated as filters

    Example:
        parser = FilterParser(schema)
        predicates = parser.parse({"status": ["active"], "rating[gte]": ["4"]})
    """

    def __init__(
        self,
        schema: CollectionSchema,
        *,
        strict: bool = True,
        reserved: Iterable[str] = RESERVED_PARAMS,
    ) -> None:
        self.schema = schema
        self.strict = strict
        self.reserved = frozenset(reserved)

    def parse(self, raw_params: Mapping[str, Sequence[str]]) -> list[FilterPredicate]:
        """Parse raw multi-valued query parameters into predicates.

        Raises:
            UnsupportedOperatorError: Unknown operator, or a text operator on
                a non-string field
            InvalidFilterValueError: Wrong arity or a value that cannot be
                coerced to the field type
            UnknownFieldError: Unknown or non-filterable field (strict mode)
        """
        predicates: list[FilterPredicate] = []
        for key, values in raw_params.items():
            if key in self.reserved:
                continue
            if isinstance(values, str):
                values = [values]
            predicates.extend(self._parse_param(key, list(values)))
        logger.debug(
            "Parsed filters",
            extra={"collection": self.schema.name, "filter_count": len(predicates)},
        )
        return predicates

    def _parse_param(self, key: str, values: list[str]) -> list[FilterPredicate]:
        parsed = _KEY_PATTERN.match(key)
        if parsed is None:
            raise InvalidFilterValueError(f"Malformed filter parameter '{key}'", field=key)

        name = parsed.group("field")
        token = parsed.group("operator")
        if token is None:
            operator = Operator.EQ
        else:
            found = Operator.lookup(token)
            if found is None:
                raise UnsupportedOperatorError(f"Unknown filter operator '{token}'", field=key)
            operator = found

        field = self._field(name, key)
        if operator.is_text and field.type is not FieldType.STRING:
            raise UnsupportedOperatorError(
                f"Operator '{operator.value}' requires a string field, "
                f"'{name}' is {field.type.value}",
                field=key,
            )

        match operator.operand_kind:
            case OperandKind.SCALAR:
                if not values:
                    raise InvalidFilterValueError(f"Filter '{key}' needs a value", field=key)
                return [
                    FilterPredicate(name, operator, self._scalar(field, operator, raw, key))
                    for raw in values
                ]
            case OperandKind.LIST:
                items = _split(values)
                if not items:
                    raise InvalidFilterValueError(
                        f"Filter '{key}' needs at least one value", field=key
                    )
                operand = tuple(self._coerce(field, operator, raw, key) for raw in items)
                return [FilterPredicate(name, operator, operand)]
            case OperandKind.PAIR:
                items = _split(values)
                if len(items) != 2:
                    raise InvalidFilterValueError(
                        f"Filter '{key}' needs exactly two values, got {len(items)}",
                        field=key,
                    )
                low, high = (self._coerce(field, operator, raw, key) for raw in items)
                try:
                    reversed_bounds = low > high
                except TypeError as e:
                    raise InvalidFilterValueError(
                        f"Filter '{key}' bounds are not comparable", field=key
                    ) from e
                if reversed_bounds:
                    raise InvalidFilterValueError(
                        f"Filter '{key}' lower bound is greater than upper bound", field=key
                    )
                return [FilterPredicate(name, operator, (low, high))]
            case OperandKind.FLAG:
                if len(values) > 1:
                    raise InvalidFilterValueError(f"Filter '{key}' takes one value", field=key)
                raw = values[0] if values else ""
                try:
                    flag = True if raw.strip() == "" else parse_bool(raw)
                except ValueError as e:
                    raise InvalidFilterValueError(str(e), field=key) from e
                return [FilterPredicate(name, operator, flag)]
            case _:
                assert_never(operator.operand_kind)

    def _field(self, name: str, key: str) -> FieldDef:
        field = self.schema.get(name)
        if field is None:
            if self.strict:
                raise UnknownFieldError(f"Unknown filter field '{name}'", field=key)
            logger.debug("Passing through unknown filter field", extra={"field": name})
            return FieldDef(name, FieldType.STRING)
        if not field.filterable:
            raise UnknownFieldError(f"Field '{name}' is not filterable", field=key)
        return field

    def _scalar(self, field: FieldDef, operator: Operator, raw: str, key: str) -> Any:
        if operator is Operator.REGEX:
            try:
                re.compile(raw)
            except re.error as e:
                raise InvalidFilterValueError(f"Invalid regular expression: {e}", field=key) from e
            return raw
        if operator.is_text:
            return raw
        return self._coerce(field, operator, raw, key)

    @staticmethod
    def _coerce(field: FieldDef, operator: Operator, raw: str, key: str) -> Any:
        if field.nullable and raw.strip().lower() == "null":
            # NULL only compares by (in)equality
            if operator not in _NULL_OPERATORS:
                raise InvalidFilterValueError(
                    f"Operator '{operator.value}' does not accept null for '{field.name}'",
                    field=key,
                )
            return None
        try:
            return field.type.parse(raw)
        except ValueError as e:
            raise InvalidFilterValueError(
                f"Invalid {field.type.value} value '{truncate(raw, 64)}' for '{field.name}'",
                field=key,
            ) from e


def _split(values: Iterable[str]) -> list[str]:
    items: list[str] = []
    for value in values:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def filter_fingerprint(filters: Iterable[FilterPredicate]) -> str:
    """Stable, order-independent fingerprint of a filter set.

    Embedded in cursors so a cursor cannot be replayed against different
    filters.
    """
    canonical = sorted(
        json.dumps([f.field, f.operator.value, _canonical(f.operand)], default=str)
        for f in filters
    )
    digest = hashlib.sha256("|".join(canonical).encode()).hexdigest()
    return digest[:16]


def _canonical(operand: Any) -> Any:
    if isinstance(operand, tuple):
        return [_canonical(item) for item in operand]
    if operand is None or isinstance(operand, bool | int | float | str):
        return operand
    return f"{type(operand).__name__}:{operand}"


def describe_filters(filters: Iterable[FilterPredicate]) -> dict[str, dict[str, Any]]:
    """Group predicates by field for the response ``meta.filters`` block.

    Repeated operators on a field are reported as a list.
    """
    described: dict[str, dict[str, Any]] = {}
    repeated: set[tuple[str, str]] = set()
    for predicate in filters:
        operand = predicate.operand
        if isinstance(operand, tuple):
            operand = list(operand)
        ops = described.setdefault(predicate.field, {})
        key = predicate.operator.value
        if key not in ops:
            ops[key] = operand
        elif (predicate.field, key) in repeated:
            ops[key].append(operand)
        else:
            ops[key] = [ops[key], operand]
            repeated.add((predicate.field, key))
    return described


__all__ = [
    "RESERVED_PARAMS",
    "FilterParser",
    "describe_filters",
    "filter_fingerprint",
]
