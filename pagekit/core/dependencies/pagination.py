"""Pagination dependencies for FastAPI routes.

Collection endpoints take arbitrary ``field[operator]=value`` filters, so
they read the raw multi-valued query string instead of declaring each
parameter.

Usage:
    from pagekit.core.dependencies.pagination import QueryParamsDep

    @router.get("/articles", response_model=PageResponse[ArticleOut])
    async def list_articles(params: QueryParamsDep, session: SessionDep):
        return await engine.paginate(params, SQLAlchemyStore(session, Article))
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request


def get_query_params(request: Request) -> dict[str, list[str]]:
    """Return every query parameter with all of its values, in request order."""
    params: dict[str, list[str]] = {}
    for key, value in request.query_params.multi_items():
        params.setdefault(key, []).append(value)
    return params


QueryParamsDep = Annotated[dict[str, list[str]], Depends(get_query_params)]

__all__ = ["QueryParamsDep", "get_query_params"]
