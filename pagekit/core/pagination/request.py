"""Pagination parameters of a collection request.

Reads ``cursor``, ``direction``, ``size``, ``page`` and ``mode`` from the
query string. A ``page`` implies offset pagination and a ``cursor``
implies cursor pagination, so the two cannot be combined.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from pagekit.core.exceptions import InvalidPaginationError
from pagekit.core.pagination.types import PageDirection, PaginationMode


def _single(params: Mapping[str, Sequence[str] | str], key: str) -> str | None:
    raw = params.get(key)
    if raw is None:
        return None
    values = [raw] if isinstance(raw, str) else list(raw)
    values = [v.strip() for v in values if v.strip()]
    if not values:
        return None
    if len(values) > 1:
        raise InvalidPaginationError(f"Parameter '{key}' must be given once", field=key)
    return values[0]


def _int(raw: str | None, key: str) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidPaginationError(f"Parameter '{key}' must be an integer", field=key) from e


@dataclass(frozen=True)
class PageRequest:
    """Validated pagination parameters.

    Attributes:
        cursor: Opaque cursor token, if any
        direction: Direction to move from the cursor (defaults to the
            cursor's own direction)
        size: Requested page size before clamping; None means default
        page: 1-based page number (offset pagination)
        mode: Requested mode; ``page`` resolves AUTO to OFFSET and
            ``cursor`` resolves it to CURSOR
    """

    cursor: str | None = None
    direction: PageDirection | None = None
    size: int | None = None
    page: int | None = None
    mode: PaginationMode = PaginationMode.AUTO

    @classmethod
    def from_params(cls, params: Mapping[str, Sequence[str] | str]) -> PageRequest:
        """Parse the pagination parameters of a query string.

        Raises:
            InvalidPaginationError: On malformed or conflicting parameters
        """
        cursor = _single(params, "cursor")

        direction: PageDirection | None = None
        raw_direction = _single(params, "direction")
        if raw_direction is not None:
            try:
                direction = PageDirection(raw_direction.lower())
            except ValueError as e:
                raise InvalidPaginationError(
                    f"Unknown direction '{raw_direction}', expected next or prev",
                    field="direction",
                ) from e

        size = _int(_single(params, "size"), "size")
        if size is not None:
            if size < 0:
                raise InvalidPaginationError("Parameter 'size' must not be negative", field="size")
            if size == 0:
                size = None

        page = _int(_single(params, "page"), "page")
        if page is not None and page < 1:
            raise InvalidPaginationError("Parameter 'page' must be at least 1", field="page")

        mode = PaginationMode.AUTO
        raw_mode = _single(params, "mode")
        if raw_mode is not None:
            try:
                mode = PaginationMode(raw_mode.lower())
            except ValueError as e:
                raise InvalidPaginationError(
                    f"Unknown mode '{raw_mode}', expected auto, offset or cursor",
                    field="mode",
                ) from e

        if cursor is not None and page is not None:
            raise InvalidPaginationError("Parameters 'cursor' and 'page' are mutually exclusive", field="page")
        if cursor is not None and mode is PaginationMode.OFFSET:
            raise InvalidPaginationError("A cursor cannot be used with mode=offset", field="cursor")
        if page is not None and mode is PaginationMode.CURSOR:
            raise InvalidPaginationError("A page number cannot be used with mode=cursor", field="page")

        if mode is PaginationMode.AUTO:
            if page is not None:
                mode = PaginationMode.OFFSET
            elif cursor is not None:
                mode = PaginationMode.CURSOR

        return cls(cursor=cursor, direction=direction, size=size, page=page, mode=mode)


__all__ = ["PageRequest"]
