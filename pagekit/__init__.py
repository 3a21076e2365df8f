"""pagekit: cursor-based pagination and filtering for collection endpoints."""

from pagekit.core.exceptions import (
    ConfigError,
    InvalidCursorError,
    InvalidCursorForSortError,
    InvalidFilterValueError,
    InvalidPaginationError,
    InvalidSortError,
    PaginationError,
    StoreError,
    UnknownFieldError,
    UnsupportedCombinationError,
    UnsupportedOperatorError,
)
from pagekit.core.pagination import (
    CollectionSchema,
    FieldDef,
    FieldType,
    PageResponse,
    PaginationEngine,
)
from pagekit.core.settings import PaginationSettings

__version__ = "0.1.0"

__all__ = [
    "CollectionSchema",
    "ConfigError",
    "FieldDef",
    "FieldType",
    "InvalidCursorError",
    "InvalidCursorForSortError",
    "InvalidFilterValueError",
    "InvalidPaginationError",
    "InvalidSortError",
    "PageResponse",
    "PaginationEngine",
    "PaginationError",
    "PaginationSettings",
    "StoreError",
    "UnknownFieldError",
    "UnsupportedCombinationError",
    "UnsupportedOperatorError",
    "__version__",
]
