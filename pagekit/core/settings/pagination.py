"""Pagination engine settings.

This module provides the configuration injected into the pagination engine:
page size limits, the offset/cursor mode threshold, cursor signing and
expiry, snapshot pinning and the query-result cache.

Environment variables use PAGINATION_ prefix.
Example: PAGINATION_MAX_PAGE_SIZE=200, PAGINATION_OFFSET_THRESHOLD=5000
"""

from __future__ import annotations

from typing import Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaginationSettings(BaseSettings):
    """Pagination configuration settings.

    Attributes:
        default_page_size: Page size used when the request has no ``size``.
        max_page_size: Hard upper bound; larger sizes are clamped.
        offset_threshold: Result sets estimated below this size use offset
            metadata when the client did not ask for a mode.
        id_field: Unique field appended to every sort as tie-breaker.
        max_sort_fields: Maximum explicit sort fields accepted per request.
        strict_fields: Reject filters on fields missing from the schema.
        cursor_secret: Comma-separated Fernet keys. When set, cursors are
            encrypted and authenticated; the first key signs new cursors.
        cursor_ttl_seconds: Lifetime of encrypted cursors.
        bind_cursor_to_filters: Reject cursors issued for a different filter set.
        snapshot_field: Last-modified field used to pin cursor sessions to a
            snapshot time. Disabled when unset.
        result_cache_enabled: Enable the short-lived query-result cache.
        result_cache_ttl_seconds: Lifetime of cached pages.
        result_cache_max_entries: Maximum number of cached pages.

    Example:
        settings = PaginationSettings(max_page_size=200)
        paginator = Paginator(settings, codec)
    """

    default_page_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Default page size when size is not specified",
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Maximum allowed page size (hard limit)",
    )
    offset_threshold: int = Field(
        default=1000,
        ge=0,
        description="Estimated totals below this use offset pagination in auto mode",
    )
    id_field: str = Field(
        default="id",
        min_length=1,
        description="Unique tie-breaker field appended to every sort",
    )
    max_sort_fields: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum number of explicit sort fields",
    )
    strict_fields: bool = Field(
        default=True,
        description="Reject filters on unknown fields instead of passing them through",
    )
    cursor_secret: SecretStr | None = Field(
        default=None,
        description="Comma-separated Fernet keys for encrypted cursors (first key signs)",
    )
    cursor_ttl_seconds: int = Field(
        default=3600,
        ge=1,
        description="Lifetime of encrypted cursors in seconds",
    )
    bind_cursor_to_filters: bool = Field(
        default=True,
        description="Reject cursors whose filter set differs from the request",
    )
    snapshot_field: str | None = Field(
        default=None,
        description="Last-modified field used for snapshot pinning (disabled when unset)",
    )
    result_cache_enabled: bool = Field(
        default=True,
        description="Cache identical page requests for a short time",
    )
    result_cache_ttl_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Lifetime of cached pages in seconds",
    )
    result_cache_max_entries: int = Field(
        default=1024,
        ge=1,
        description="Maximum number of cached pages",
    )

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_page_sizes(self) -> Self:
        if self.default_page_size > self.max_page_size:
            msg = (
                f"default_page_size ({self.default_page_size}) must not exceed "
                f"max_page_size ({self.max_page_size})"
            )
            raise ValueError(msg)
        return self

    def cursor_keys(self) -> list[str]:
        """Return the configured Fernet keys, primary key first."""
        if self.cursor_secret is None:
            return []
        raw = self.cursor_secret.get_secret_value()
        return [key.strip() for key in raw.split(",") if key.strip()]

    def clamp_page_size(self, size: int | None) -> int:
        """Clamp a requested page size to ``[1, max_page_size]``."""
        if size is None:
            return self.default_page_size
        return max(1, min(size, self.max_page_size))
