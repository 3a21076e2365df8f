"""Structured logging setup for pagekit entrypoints."""

from pagekit.infra.logging.config import configure_logging, setup_logging
from pagekit.infra.logging.formatters import JSONFormatter

__all__ = ["JSONFormatter", "configure_logging", "setup_logging"]
