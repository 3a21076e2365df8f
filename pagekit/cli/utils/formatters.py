"""Output formatting utilities for CLI commands."""

import json
from typing import Any

import click


def error(message: str) -> None:
    """Print an error message in red."""
    click.secho(f"✗ {message}", fg="red", err=True)


def header(message: str) -> None:
    """Print a header message in cyan bold."""
    click.secho(f"\n{message}", fg="cyan", bold=True)


def key_value(key: str, value: Any, width: int = 14) -> None:
    """Print an aligned ``key: value`` line."""
    click.echo(f"  {key + ':':<{width}} {value}")


def print_json(data: Any) -> None:
    """Print data as indented JSON (non-JSON types rendered with str)."""
    click.echo(json.dumps(data, indent=2, default=str))
