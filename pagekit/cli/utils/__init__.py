"""CLI utilities for formatting output."""

from pagekit.cli.utils.formatters import error, header, key_value, print_json

__all__ = [
    "error",
    "header",
    "key_value",
    "print_json",
]
