"""Typed result values for callers that prefer them over exceptions.

Usage:
    result = await engine.try_paginate(params, store)
    if result.success:
        return result.data
    return problem_response(result.problem)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pagekit.core.exceptions import PaginationError, StoreError
from pagekit.core.schemas.problem_details import FieldError, ProblemDetails

T = TypeVar("T")


@dataclass(frozen=True)
class PaginationResult(Generic[T]):
    """Outcome of a pagination call.

    Attributes:
        success: Whether a page was produced
        data: The page (None on failure)
        error: Human-readable error message (None on success)
        error_code: Machine-readable code such as ``INVALID_CURSOR``
        status: HTTP status the failure maps to
        errors: Individual error entries for the problem envelope
        retryable: Whether retrying the same request may succeed
        duration_ms: Call duration in milliseconds
        timestamp: When the call completed
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    status: int = 200
    errors: tuple[FieldError, ...] = ()
    retryable: bool = False
    duration_ms: float | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def ok(cls, data: T, duration_ms: float | None = None) -> PaginationResult[T]:
        return cls(success=True, data=data, duration_ms=duration_ms)

    @classmethod
    def fail(
        cls,
        error: str,
        code: str,
        *,
        status: int = 400,
        errors: tuple[FieldError, ...] = (),
        retryable: bool = False,
        duration_ms: float | None = None,
    ) -> PaginationResult[T]:
        return cls(
            success=False,
            error=error,
            error_code=code,
            status=status,
            errors=errors,
            retryable=retryable,
            duration_ms=duration_ms,
        )

    @classmethod
    def from_exception(
        cls,
        exc: PaginationError | StoreError,
        duration_ms: float | None = None,
    ) -> PaginationResult[T]:
        """Create a failure result from an engine error."""
        problem = exc.to_problem()
        return cls.fail(
            error=exc.detail,
            code=exc.code,
            status=exc.status_code,
            errors=tuple(problem.errors),
            retryable=isinstance(exc, StoreError),
            duration_ms=duration_ms,
        )

    @property
    def problem(self) -> ProblemDetails | None:
        """The RFC 7807 envelope of a failure."""
        if self.success:
            return None
        return ProblemDetails(
            type=(self.error_code or "about:blank").lower().replace("_", "-"),
            title="Service Unavailable" if self.status == 503 else "Bad Request",
            status=self.status,
            detail=self.error,
            errors=list(self.errors),
        )

    def map(self, func: Any) -> PaginationResult[Any]:
        """Transform the data if successful."""
        if self.success and self.data is not None:
            return PaginationResult.ok(data=func(self.data), duration_ms=self.duration_ms)
        return self

    def __bool__(self) -> bool:
        return self.success


__all__ = ["PaginationResult"]
