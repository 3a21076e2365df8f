"""Unit tests for pagination and logging settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pagekit.core.exceptions import ConfigError
from pagekit.core.settings import (
    LoggingSettings,
    PaginationSettings,
    get_logging_settings,
    get_pagination_settings,
)


class TestPaginationSettings:
    def test_defaults(self):
        settings = PaginationSettings()

        assert settings.default_page_size == 50
        assert settings.max_page_size == 100
        assert settings.offset_threshold == 1000
        assert settings.id_field == "id"
        assert settings.cursor_secret is None
        assert settings.bind_cursor_to_filters is True
        assert settings.snapshot_field is None

    def test_default_size_cannot_exceed_max(self):
        with pytest.raises(ValidationError):
            PaginationSettings(default_page_size=200, max_page_size=100)

    @pytest.mark.parametrize(
        ("requested", "expected"),
        [(None, 50), (1, 1), (75, 75), (100, 100), (101, 100), (-5, 1)],
    )
    def test_clamp_page_size(self, requested, expected):
        assert PaginationSettings().clamp_page_size(requested) == expected

    def test_cursor_keys_primary_first(self):
        settings = PaginationSettings(cursor_secret=" new-key , old-key ,")

        assert settings.cursor_keys() == ["new-key", "old-key"]

    def test_cursor_secret_is_hidden(self):
        settings = PaginationSettings(cursor_secret="super-secret")

        assert "super-secret" not in repr(settings)

    def test_frozen(self):
        settings = PaginationSettings()

        with pytest.raises(ValidationError):
            settings.max_page_size = 10

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("PAGINATION_MAX_PAGE_SIZE", "250")
        monkeypatch.setenv("PAGINATION_SNAPSHOT_FIELD", "updated_at")

        settings = get_pagination_settings()

        assert settings.max_page_size == 250
        assert settings.snapshot_field == "updated_at"

    def test_loader_is_cached(self):
        assert get_pagination_settings() is get_pagination_settings()

    def test_loader_reports_inconsistent_environment(self, monkeypatch):
        monkeypatch.setenv("PAGINATION_DEFAULT_PAGE_SIZE", "200")
        monkeypatch.setenv("PAGINATION_MAX_PAGE_SIZE", "100")

        with pytest.raises(ConfigError) as exc_info:
            get_pagination_settings()
        assert isinstance(exc_info.value.__cause__, ValidationError)
        assert "max_page_size" in str(exc_info.value)


class TestLoggingSettings:
    def test_to_logging_kwargs(self):
        settings = LoggingSettings(level="DEBUG", json_logs=False, engine_level="WARNING")

        assert settings.to_logging_kwargs() == {
            "log_level": "DEBUG",
            "json_logs": False,
            "service_name": "pagekit",
            "engine_level": "WARNING",
        }

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        assert get_logging_settings().level == "ERROR"

    def test_invalid_level(self):
        with pytest.raises(ValidationError):
            LoggingSettings(level="LOUD")
