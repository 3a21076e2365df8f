"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from pagekit.core.settings.loader import get_pagination_settings

    settings = get_pagination_settings()  # First call: loads and validates
    settings = get_pagination_settings()  # Subsequent calls: cached instance

Testing:
    clear_all_caches()  # force reload after changing environment variables
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import ValidationError

from pagekit.core.exceptions import ConfigError

from .logs import LoggingSettings
from .pagination import PaginationSettings


@lru_cache(maxsize=1)
def get_pagination_settings() -> PaginationSettings:
    """Get cached pagination settings.

    Returns:
        Validated and frozen PaginationSettings instance.

    Raises:
        ConfigError: If the environment holds invalid or inconsistent values
    """
    try:
        return PaginationSettings()
    except ValidationError as e:
        raise ConfigError(
            "Invalid pagination settings",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear every cached settings instance."""
    get_pagination_settings.cache_clear()
    get_logging_settings.cache_clear()
