"""Exception hierarchy for the pagination engine.

Client errors carry a machine-readable ``code`` and follow RFC 7807
Problem Details so they can be rendered directly as an HTTP error
envelope. Store failures are wrapped, never retried. Configuration
errors are raised at construction time, not per request.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from pagekit.core.schemas.problem_details import ProblemDetails

# Client errors echo request input; keep details well inside the envelope limits
MAX_DETAIL_LENGTH = 500


def truncate(text: str, limit: int = MAX_DETAIL_LENGTH) -> str:
    """Cut ``text`` to at most ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class AppException(Exception):
    """Base application exception.

    Follows RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        titles = {
            400: "Bad Request",
            422: "Unprocessable Entity",
            500: "Internal Server Error",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")


class BadRequestException(AppException):
    """Exception raised for malformed requests."""

    def __init__(
        self,
        detail: str,
        type: str = "bad-request",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=400,
            detail=detail,
            type=type,
            title="Bad Request",
            instance=instance,
            extra=extra,
        )


class ServiceUnavailableException(AppException):
    """Exception raised when a backing service is temporarily unavailable."""

    def __init__(
        self,
        detail: str,
        type: str = "service-unavailable",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=503,
            detail=detail,
            type=type,
            title="Service Unavailable",
            instance=instance,
            extra=extra,
        )


# ============================================================================
# Client errors
# ============================================================================


class PaginationError(BadRequestException):
    """Base class for client errors raised while building a page.

    Subclasses set ``code`` (the envelope error code) and ``problem_type``.
    The offending query parameter, when known, is kept in ``field``.

    Example:
        raise UnsupportedOperatorError("Unknown operator 'like'", field="name[like]")
    """

    code: ClassVar[str] = "INVALID_REQUEST"
    problem_type: ClassVar[str] = "invalid-request"

    def __init__(
        self,
        detail: str,
        *,
        field: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        detail = truncate(detail)
        field = truncate(field, 200) if field is not None else None
        self.field = field
        final_extra: dict[str, Any] = {"code": self.code}
        if field is not None:
            final_extra["field"] = field
        if extra:
            final_extra.update(extra)
        super().__init__(
            detail=detail,
            type=self.problem_type,
            instance=instance,
            extra=final_extra,
        )

    def to_problem(self) -> ProblemDetails:
        """Build the RFC 7807 error envelope for this error."""
        from pagekit.core.schemas.problem_details import FieldError, ProblemDetails

        return ProblemDetails(
            type=self.type,
            title=self.title,
            status=self.status_code,
            detail=self.detail,
            instance=self.instance,
            errors=[FieldError(field=self.field, code=self.code, message=self.detail)],
        )


class InvalidCursorError(PaginationError):
    """The cursor token is malformed, tampered with, expired or stale."""

    code = "INVALID_CURSOR"
    problem_type = "invalid-cursor"

    def __init__(self, detail: str = "Invalid cursor", *, reason: str = "malformed", **kwargs: Any) -> None:
        self.reason = reason
        extra = kwargs.pop("extra", None) or {}
        extra.setdefault("reason", reason)
        kwargs.setdefault("field", "cursor")
        super().__init__(detail, extra=extra, **kwargs)


class UnsupportedOperatorError(PaginationError):
    """A filter uses an unknown operator, or one the field type does not support."""

    code = "UNSUPPORTED_OPERATOR"
    problem_type = "unsupported-operator"


class InvalidFilterValueError(PaginationError):
    """A filter operand has the wrong arity or cannot be coerced to the field type."""

    code = "INVALID_FILTER_VALUE"
    problem_type = "invalid-filter-value"


class UnsupportedCombinationError(PaginationError):
    """Several filters on the same field use conflicting operators."""

    code = "UNSUPPORTED_COMBINATION"
    problem_type = "unsupported-combination"


class InvalidCursorForSortError(PaginationError):
    """The cursor was issued for a different sort order."""

    code = "INVALID_CURSOR_FOR_SORT"
    problem_type = "invalid-cursor-for-sort"

    def __init__(self, detail: str = "Cursor does not match the requested sort order", **kwargs: Any) -> None:
        kwargs.setdefault("field", "cursor")
        super().__init__(detail, **kwargs)


class UnknownFieldError(PaginationError):
    """A filter or sort refers to a field the collection does not expose."""

    code = "UNKNOWN_FIELD"
    problem_type = "unknown-field"


class InvalidSortError(PaginationError):
    """The sort parameter cannot be parsed or exceeds the allowed number of fields."""

    code = "INVALID_SORT"
    problem_type = "invalid-sort"


class InvalidPaginationError(PaginationError):
    """The page, size, direction or mode parameters are invalid or contradictory."""

    code = "INVALID_PAGINATION"
    problem_type = "invalid-pagination"


# ============================================================================
# Store and configuration errors
# ============================================================================


class StoreError(ServiceUnavailableException):
    """The record store failed while executing a query.

    The original exception is chained as ``__cause__`` and kept in
    ``original``. The engine never retries; callers may.
    """

    code: ClassVar[str] = "STORE_ERROR"
    retryable: ClassVar[bool] = True

    def __init__(
        self,
        detail: str = "Record store query failed",
        *,
        original: BaseException | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.original = original
        final_extra: dict[str, Any] = {"code": self.code}
        if original is not None:
            final_extra["store_exception"] = type(original).__name__
        if extra:
            final_extra.update(extra)
        super().__init__(detail=detail, type="store-error", extra=final_extra)

    def to_problem(self) -> ProblemDetails:
        from pagekit.core.schemas.problem_details import FieldError, ProblemDetails

        return ProblemDetails(
            type=self.type,
            title=self.title,
            status=self.status_code,
            detail=self.detail,
            instance=self.instance,
            errors=[FieldError(code=self.code, message=self.detail)],
        )


class ConfigError(Exception):
    """Invalid engine configuration, detected at construction time.

    Attributes:
        message: Error description
        details: Additional context about the error
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


__all__ = [
    "AppException",
    "BadRequestException",
    "ConfigError",
    "InvalidCursorError",
    "InvalidCursorForSortError",
    "InvalidFilterValueError",
    "InvalidPaginationError",
    "InvalidSortError",
    "MAX_DETAIL_LENGTH",
    "PaginationError",
    "ServiceUnavailableException",
    "StoreError",
    "UnknownFieldError",
    "UnsupportedCombinationError",
    "UnsupportedOperatorError",
    "truncate",
]
