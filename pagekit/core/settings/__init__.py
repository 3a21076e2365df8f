"""Pydantic Settings v2 configuration.

Import settings via cached loaders:
    from pagekit.core.settings import get_pagination_settings

Or construct them explicitly to inject overrides:
    settings = PaginationSettings(max_page_size=200)

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables (production)
    3. .env file (development only)
"""

from __future__ import annotations

from .loader import clear_all_caches, get_logging_settings, get_pagination_settings
from .logs import LoggingSettings
from .pagination import PaginationSettings

__all__ = [
    "LoggingSettings",
    "PaginationSettings",
    "clear_all_caches",
    "get_logging_settings",
    "get_pagination_settings",
]
