"""Sort specification resolution.

Accepted forms (all may be mixed):

    sort=created_at,desc&sort=title,asc
    sort=created_at,desc,title,asc
    sort=title                          (direction defaults to asc)
    sort=rating,desc,nullsfirst         (null placement for nullable fields)

Repeated fields keep their last occurrence. The id field always ends the
specification so the resulting order is total.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pagekit.core.exceptions import InvalidSortError
from pagekit.core.pagination.fields import CollectionSchema
from pagekit.core.pagination.types import SortDirection, SortField, SortSpec

logger = logging.getLogger(__name__)

_DIRECTIONS = {"asc": SortDirection.ASC, "desc": SortDirection.DESC}
_NULLS = {"nullsfirst": True, "nullslast": False}


def _tokenize(raw_sort: Sequence[str] | str) -> list[str]:
    if isinstance(raw_sort, str):
        raw_sort = [raw_sort]
    tokens: list[str] = []
    for entry in raw_sort:
        tokens.extend(part.strip() for part in entry.split(","))
    return tokens


def parse_sort_tokens(raw_sort: Sequence[str] | str) -> list[tuple[str, SortDirection, bool | None]]:
    """Split raw sort parameters into ``(field, direction, nulls_first)`` triples.

    ``nulls_first`` is None when not given explicitly.

    Raises:
        InvalidSortError: Empty field names or misplaced direction tokens
    """
    tokens = _tokenize(raw_sort)
    if tokens == [""]:
        return []

    parsed: list[tuple[str, SortDirection, bool | None]] = []
    index = 0
    while index < len(tokens):
        name = tokens[index]
        if not name:
            raise InvalidSortError("Sort contains an empty field name", field="sort")
        if name.lower() in _DIRECTIONS or name.lower() in _NULLS:
            raise InvalidSortError(f"Sort direction '{name}' has no field", field="sort")
        index += 1

        direction = SortDirection.ASC
        if index < len(tokens) and tokens[index].lower() in _DIRECTIONS:
            direction = _DIRECTIONS[tokens[index].lower()]
            index += 1

        nulls_first: bool | None = None
        if index < len(tokens) and tokens[index].lower() in _NULLS:
            nulls_first = _NULLS[tokens[index].lower()]
            index += 1

        parsed.append((name, direction, nulls_first))
    return parsed


def _normalize(
    entries: list[SortField],
    id_field: str,
) -> SortSpec:
    # last occurrence wins, both for direction and for position
    deduped: dict[str, SortField] = {}
    for entry in entries:
        deduped.pop(entry.name, None)
        deduped[entry.name] = entry
    fields = list(deduped.values())

    names = [f.name for f in fields]
    if id_field in names:
        cut = names.index(id_field) + 1
        if cut < len(fields):
            logger.debug(
                "Dropping sort fields after the id field",
                extra={"dropped": names[cut:]},
            )
        fields = fields[:cut]
    else:
        fields.append(SortField(id_field, SortDirection.ASC))
    return SortSpec(tuple(fields))


def resolve_sort(raw_sort: Sequence[str] | str, id_field: str = "id") -> SortSpec:
    """Resolve a sort specification without schema validation.

    Every field is treated as non-nullable.

    Example:
        >>> resolve_sort(["created_at,desc"]).render()
        ['created_at,desc', 'id,asc']
    """
    entries = [
        SortField(name, direction, nulls_first=bool(nulls_first))
        for name, direction, nulls_first in parse_sort_tokens(raw_sort)
    ]
    return _normalize(entries, id_field)


class SortResolver:
    """Validate and normalize sort parameters against a collection schema.

    Args:
        schema: Collection schema (sortability and nullability per field)
        max_fields: Maximum number of explicit sort fields

    Example:
        resolver = SortResolver(schema)
        spec = resolver.resolve(["created_at,desc"])
        # SortSpec(created_at desc, id asc)
    """

    def __init__(self, schema: CollectionSchema, *, max_fields: int = 5) -> None:
        self.schema = schema
        self.max_fields = max_fields

    def resolve(self, raw_sort: Sequence[str] | str, id_field: str | None = None) -> SortSpec:
        """Resolve raw sort parameters into a ``SortSpec``.

        Falls back to the schema's default sort when no sort is given.

        Raises:
            InvalidSortError: Malformed sort or too many fields
            UnknownFieldError: Unknown or non-sortable field
        """
        id_field = id_field or self.schema.id_field
        parsed = parse_sort_tokens(raw_sort)
        if not parsed and self.schema.default_sort:
            parsed = parse_sort_tokens(list(self.schema.default_sort))

        if len(parsed) > self.max_fields:
            raise InvalidSortError(
                f"At most {self.max_fields} sort fields are allowed, got {len(parsed)}",
                field="sort",
            )

        entries: list[SortField] = []
        for name, direction, nulls_first in parsed:
            field = self.schema.sortable(name)
            if nulls_first is not None and not field.nullable:
                raise InvalidSortError(
                    f"Null placement given for non-nullable field '{name}'",
                    field="sort",
                )
            entries.append(
                SortField(
                    name,
                    direction,
                    nulls_first=bool(nulls_first),
                    nullable=field.nullable,
                )
            )
        return _normalize(entries, id_field)


__all__ = ["SortResolver", "parse_sort_tokens", "resolve_sort"]
