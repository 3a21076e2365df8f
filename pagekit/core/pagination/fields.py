"""Collection field schema.

The schema tells the engine which fields a collection exposes, how to
coerce raw query-string values into typed values, which fields can be
sorted or filtered, and which field is the unique identifier.

Example:
    schema = CollectionSchema(
        name="articles",
        fields=[
            FieldDef("id", FieldType.UUID),
            FieldDef("title", FieldType.STRING),
            FieldDef("created_at", FieldType.DATETIME),
            FieldDef("rating", FieldType.INTEGER, nullable=True),
        ],
        id_field="id",
    )
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any, assert_never
from uuid import UUID

from pagekit.core.exceptions import ConfigError, UnknownFieldError

_TRUE_TOKENS = frozenset({"true", "1", "yes", "on"})
_FALSE_TOKENS = frozenset({"false", "0", "no", "off"})


def parse_bool(raw: str) -> bool:
    """Parse a query-string boolean token."""
    token = raw.strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    msg = f"'{raw}' is not a boolean"
    raise ValueError(msg)


def parse_datetime(raw: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    value = datetime.fromisoformat(raw.strip())
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


class FieldType(StrEnum):
    """Value type of a collection field."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    UUID = "uuid"

    def parse(self, raw: str) -> Any:
        """Coerce a raw query-string value.

        Raises:
            ValueError: If the value is not valid for this type
        """
        match self:
            case FieldType.STRING:
                return raw
            case FieldType.INTEGER:
                return int(raw)
            case FieldType.FLOAT:
                return float(raw)
            case FieldType.DECIMAL:
                try:
                    return Decimal(raw)
                except InvalidOperation as e:
                    msg = f"'{raw}' is not a decimal"
                    raise ValueError(msg) from e
            case FieldType.BOOLEAN:
                return parse_bool(raw)
            case FieldType.DATETIME:
                return parse_datetime(raw)
            case FieldType.DATE:
                return date.fromisoformat(raw.strip())
            case FieldType.UUID:
                return UUID(raw.strip())
            case _:
                assert_never(self)

    def accepts(self, value: Any) -> bool:
        """Whether an already-typed value (e.g. from a cursor) fits this type."""
        if value is None:
            return True
        match self:
            case FieldType.STRING:
                return isinstance(value, str)
            case FieldType.INTEGER:
                return isinstance(value, int) and not isinstance(value, bool)
            case FieldType.FLOAT:
                return isinstance(value, int | float) and not isinstance(value, bool)
            case FieldType.DECIMAL:
                return isinstance(value, Decimal | int) and not isinstance(value, bool)
            case FieldType.BOOLEAN:
                return isinstance(value, bool)
            case FieldType.DATETIME:
                return isinstance(value, datetime)
            case FieldType.DATE:
                return isinstance(value, date) and not isinstance(value, datetime)
            case FieldType.UUID:
                return isinstance(value, UUID)
            case _:
                assert_never(self)


@dataclass(frozen=True)
class FieldDef:
    """Definition of one exposed field.

    Attributes:
        name: Public field name used in query parameters
        type: Value type
        sortable: Whether the field may appear in ``sort``
        filterable: Whether the field may appear in filters
        nullable: Whether records may hold NULL for this field
        column: Storage attribute/column name, when it differs from ``name``
    """

    name: str
    type: FieldType = FieldType.STRING
    sortable: bool = True
    filterable: bool = True
    nullable: bool = False
    column: str | None = None

    @property
    def storage_name(self) -> str:
        return self.column or self.name


class CollectionSchema:
    """The set of fields a collection exposes to pagination requests."""

    def __init__(
        self,
        name: str,
        fields: Iterable[FieldDef],
        *,
        id_field: str = "id",
        default_sort: Iterable[str] = (),
    ) -> None:
        self.name = name
        self.fields: dict[str, FieldDef] = {}
        for field in fields:
            if field.name in self.fields:
                msg = "Duplicate field in collection schema"
                raise ConfigError(msg, {"collection": name, "field": field.name})
            self.fields[field.name] = field

        if id_field not in self.fields:
            msg = "Id field is not part of the collection schema"
            raise ConfigError(msg, {"collection": name, "id_field": id_field})
        if self.fields[id_field].nullable:
            msg = "Id field must not be nullable"
            raise ConfigError(msg, {"collection": name, "id_field": id_field})
        self.id_field = id_field
        self.default_sort = tuple(default_sort)

    @classmethod
    def permissive(
        cls,
        name: str = "collection",
        *,
        id_field: str = "id",
        id_type: FieldType = FieldType.STRING,
    ) -> CollectionSchema:
        """A schema that only knows the id field.

        Combine with non-strict parsing to pass unknown fields through as
        strings (used by tooling that has no real schema).
        """
        return cls(name, [FieldDef(id_field, id_type)], id_field=id_field)

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def get(self, name: str) -> FieldDef | None:
        return self.fields.get(name)

    def require(self, name: str, *, param: str | None = None) -> FieldDef:
        """Look up a field or raise ``UnknownFieldError``."""
        field = self.fields.get(name)
        if field is None:
            raise UnknownFieldError(f"Unknown field '{name}'", field=param or name)
        return field

    def sortable(self, name: str, *, param: str = "sort") -> FieldDef:
        field = self.require(name, param=param)
        if not field.sortable:
            raise UnknownFieldError(f"Field '{name}' is not sortable", field=param)
        return field

    def filterable(self, name: str, *, param: str | None = None) -> FieldDef:
        field = self.require(name, param=param)
        if not field.filterable:
            raise UnknownFieldError(f"Field '{name}' is not filterable", field=param or name)
        return field

    def storage_name(self, name: str) -> str:
        field = self.fields.get(name)
        return field.storage_name if field else name

    def __repr__(self) -> str:
        return f"CollectionSchema(name={self.name!r}, fields={list(self.fields)!r}, id_field={self.id_field!r})"


__all__ = [
    "CollectionSchema",
    "FieldDef",
    "FieldType",
    "parse_bool",
    "parse_datetime",
]
