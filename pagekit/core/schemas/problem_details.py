"""RFC 7807 Problem Details schema for error responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FieldError(BaseModel):
    """A single machine-readable error entry of a problem response."""

    field: str | None = Field(default=None, description="Offending query parameter")
    code: str = Field(description="Error code, e.g. INVALID_CURSOR")
    message: str = Field(description="Human-readable explanation")


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    Extended with an ``errors`` list so clients can react to the
    specific pagination error code.

    See: https://datatracker.ietf.org/doc/html/rfc7807

    Example:
        return JSONResponse(
            status_code=400,
            content=ProblemDetails(
                type="invalid-cursor",
                title="Bad Request",
                status=400,
                detail="Cursor has expired",
                errors=[FieldError(field="cursor", code="INVALID_CURSOR", message="Cursor has expired")],
            ).model_dump(exclude_none=True),
        )
    """

    type: str = Field(
        default="about:blank",
        min_length=1,
        max_length=200,
        description="URI reference identifying the problem type",
    )
    title: str = Field(
        min_length=1, max_length=200, description="Short, human-readable summary of the problem"
    )
    status: int = Field(ge=100, le=599, description="HTTP status code")
    detail: str | None = Field(
        default=None,
        max_length=2000,
        description="Human-readable explanation specific to this occurrence",
    )
    instance: str | None = Field(
        default=None,
        max_length=500,
        description="URI reference identifying the specific occurrence",
    )
    errors: list[FieldError] = Field(
        default_factory=list,
        description="Individual errors with codes",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "unsupported-operator",
                "title": "Bad Request",
                "status": 400,
                "detail": "Unknown filter operator 'like'",
                "errors": [
                    {
                        "field": "name[like]",
                        "code": "UNSUPPORTED_OPERATOR",
                        "message": "Unknown filter operator 'like'",
                    }
                ],
            }
        },
        str_strip_whitespace=True,
    )
