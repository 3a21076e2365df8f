"""Exception handlers rendering pagination errors for FastAPI applications."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pagekit.core.exceptions import PaginationError, StoreError

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


def _get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


async def pagination_exception_handler(request: Request, exc: PaginationError) -> JSONResponse:
    """Render a client error as an RFC 7807 problem with its error code.

    Args:
        request: The FastAPI request object.
        exc: The pagination error that was raised.

    Returns:
        400 JSONResponse with the problem envelope.
    """
    request_id = _get_request_id(request)
    logger.warning(
        "Pagination request rejected",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "code": exc.code,
            "field": exc.field,
            "detail": exc.detail,
        },
    )

    problem = exc.to_problem()
    if problem.instance is None:
        problem.instance = request.url.path
    content = problem.model_dump(exclude_none=True)
    if request_id:
        content["request_id"] = request_id

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        media_type=PROBLEM_MEDIA_TYPE,
    )


async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Render a store failure as a retryable 503 problem."""
    request_id = _get_request_id(request)
    logger.error(
        "Record store failure",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "store_exception": exc.extra.get("store_exception"),
        },
    )

    content = exc.to_problem().model_dump(exclude_none=True)
    if request_id:
        content["request_id"] = request_id

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        media_type=PROBLEM_MEDIA_TYPE,
        headers={"Retry-After": "1"},
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """Register the pagination exception handlers on an application.

    Example:
        app = FastAPI()
        configure_exception_handlers(app)
    """
    app.add_exception_handler(PaginationError, pagination_exception_handler)
    app.add_exception_handler(StoreError, store_exception_handler)
    logger.info("Pagination exception handlers configured")


__all__ = [
    "configure_exception_handlers",
    "pagination_exception_handler",
    "store_exception_handler",
]
