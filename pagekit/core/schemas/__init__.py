"""Shared response schemas."""

from pagekit.core.schemas.problem_details import FieldError, ProblemDetails

__all__ = ["FieldError", "ProblemDetails"]
