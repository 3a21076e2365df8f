"""FastAPI dependencies."""

from pagekit.core.dependencies.pagination import QueryParamsDep, get_query_params

__all__ = ["QueryParamsDep", "get_query_params"]
