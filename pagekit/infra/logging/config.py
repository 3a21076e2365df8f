"""Logging configuration setup.

The engine only ever logs through module-level loggers
(``logging.getLogger(__name__)``) under the ``pagekit`` hierarchy; host
applications that already configure logging need nothing from here.
``setup_logging`` is for the CLI and for standalone services that want
the same JSON Lines output.
"""

from __future__ import annotations

import logging
import logging.config
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pagekit.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from pagekit.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = {**settings_obj.to_logging_kwargs(), **configure_kwargs}
    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    service_name: str = "pagekit",
    engine_level: str | None = None,
    capture_warnings: bool = True,
) -> None:
    """Configure logging with dictConfig.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Enable JSONL structured logging; plain text otherwise.
        service_name: Static ``service`` field of JSON records.
        engine_level: Level of the ``pagekit`` logger. If None, uses log_level.
        capture_warnings: Forward Python warnings to logging system.

    Example:
        configure_logging(log_level="DEBUG", json_logs=False)
    """
    if capture_warnings:
        logging.captureWarnings(True)

    formatter = "json" if json_logs else "text"
    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pagekit.infra.logging.formatters.JSONFormatter",
                "static": {"service": service_name},
            },
            "text": {
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "pagekit": {
                "level": (engine_level or log_level).upper(),
                "propagate": True,
            },
        },
        "root": {
            "level": log_level.upper(),
            "handlers": ["console"],
        },
    }
    logging.config.dictConfig(logging_config)
    logger.debug(
        "Logging configured",
        extra={"log_level": log_level, "json_logs": json_logs, "service": service_name},
    )


__all__ = ["configure_logging", "setup_logging"]
