"""Cursor inspection commands."""

import sys
from typing import Any

import click

from pagekit.cli.utils import error, header, key_value, print_json
from pagekit.core.exceptions import ConfigError, InvalidCursorError
from pagekit.core.pagination.cursor import CursorCodec, CursorData, build_codec
from pagekit.core.pagination.fields import FieldType
from pagekit.core.pagination.sorting import resolve_sort
from pagekit.core.pagination.types import PageDirection
from pagekit.core.settings import get_pagination_settings


def _codec(secret: str | None) -> CursorCodec:
    try:
        settings = get_pagination_settings()
        keys = [key.strip() for key in secret.split(",") if key.strip()] if secret else settings.cursor_keys()
        return build_codec(keys, ttl_seconds=settings.cursor_ttl_seconds)
    except ConfigError as e:
        error(str(e))
        sys.exit(1)


def _parse_fields(
    ctx: click.Context, param: click.Parameter, specs: tuple[str, ...]
) -> dict[str, Any]:
    """Parse ``name[:type]=value`` options into typed cursor values."""
    values: dict[str, Any] = {}
    for spec in specs:
        name_part, sep, raw = spec.partition("=")
        name, _, type_name = name_part.partition(":")
        if not sep or not name:
            raise click.BadParameter(f"expected NAME[:TYPE]=VALUE, got '{spec}'", ctx, param)
        try:
            field_type = FieldType((type_name or FieldType.STRING.value).lower())
            values[name] = None if raw == "null" else field_type.parse(raw)
        except ValueError as e:
            raise click.BadParameter(f"'{spec}': {e}", ctx, param) from e
    return values


@click.group(name="cursor")
def cursor() -> None:
    """Encode and decode pagination cursors."""


@cursor.command()
@click.argument("token")
@click.option(
    "--secret",
    envvar="PAGINATION_CURSOR_SECRET",
    default=None,
    help="Comma-separated Fernet keys (defaults to PAGINATION_CURSOR_SECRET)",
)
@click.option("--json", "as_json", is_flag=True, help="Output the decoded payload as JSON")
def decode(token: str, secret: str | None, as_json: bool) -> None:
    """Decode a cursor and show the position it points at."""
    codec = _codec(secret)
    try:
        data = codec.decode(token)
    except InvalidCursorError as e:
        error(f"{e.detail} (reason: {e.reason})")
        sys.exit(1)

    if as_json:
        print_json(data.model_dump(mode="json"))
        return

    header("Cursor")
    key_value("Signed", "yes" if codec.signed else "no")
    key_value("Sort", ", ".join(" ".join(entry) for entry in data.sort))
    key_value("Direction", data.direction.value)
    for name, value in data.values.items():
        key_value(f"  {name}", f"{value!r}")
    if data.snapshot_time is not None:
        key_value("Snapshot", data.snapshot_time.isoformat())
    if data.filter_hash is not None:
        key_value("Filters", data.filter_hash)
    if data.expires_at is not None:
        key_value("Expires", data.expires_at.isoformat())


@cursor.command()
@click.option(
    "--sort",
    "sort",
    multiple=True,
    help="Sort parameter, e.g. 'created_at,desc' (repeatable)",
)
@click.option(
    "--field",
    "fields",
    multiple=True,
    callback=_parse_fields,
    help="Sort field value as NAME[:TYPE]=VALUE, e.g. 'id:integer=42' (repeatable)",
)
@click.option("--id-field", default=None, help="Tie-breaker field (defaults to PAGINATION_ID_FIELD)")
@click.option(
    "--direction",
    type=click.Choice([d.value for d in PageDirection]),
    default=PageDirection.NEXT.value,
    show_default=True,
    help="Default direction of the cursor",
)
@click.option("--filter-hash", default=None, help="Bind the cursor to a filter fingerprint")
@click.option("--secret", envvar="PAGINATION_CURSOR_SECRET", default=None, help="Comma-separated Fernet keys")
def encode(
    sort: tuple[str, ...],
    fields: dict[str, Any],
    id_field: str | None,
    direction: str,
    filter_hash: str | None,
    secret: str | None,
) -> None:
    """Build a cursor for the given sort and field values."""
    spec = resolve_sort(list(sort), id_field or get_pagination_settings().id_field)
    missing = [name for name in spec.names if name not in fields]
    if missing:
        error(f"Missing --field values for: {', '.join(missing)}")
        sys.exit(1)

    codec = _codec(secret)
    data = CursorData(
        values={name: fields[name] for name in spec.names},
        sort=spec.signature,
        direction=PageDirection(direction),
        filter_hash=filter_hash,
    )
    try:
        token = codec.encode(data)
    except TypeError as e:
        error(str(e))
        sys.exit(1)
    click.echo(token)
