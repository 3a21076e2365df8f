"""Main CLI entry point for pagekit tooling."""

import click

from pagekit.cli.commands import cursor, explain
from pagekit.infra.logging.config import setup_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="pagekit")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """pagekit CLI - inspect cursors and pagination query plans.

    \b
    Command Groups:
      cursor     Encode and decode cursors
      explain    Show the plan for a query string

    \b
    Quick Start:
      pagekit cursor decode eyJ2IjoxLC...
      pagekit cursor encode --sort created_at,desc --field created_at:datetime=2025-01-01T00:00:00Z --field id=a1
      pagekit explain 'status=active&sort=created_at,desc&size=20'
    """
    ctx.ensure_object(dict)


cli.add_command(cursor.cursor)
cli.add_command(explain.explain)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
