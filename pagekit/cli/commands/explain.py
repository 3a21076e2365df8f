"""Query explanation command."""

import sys
from urllib.parse import parse_qs

import click

from pagekit.cli.utils import error, header, key_value, print_json
from pagekit.core.exceptions import PaginationError
from pagekit.core.pagination.cursor import build_codec
from pagekit.core.pagination.expressions import render
from pagekit.core.pagination.fields import CollectionSchema, FieldType
from pagekit.core.pagination.filters import FilterParser
from pagekit.core.pagination.plan import QueryPlanBuilder
from pagekit.core.pagination.request import PageRequest
from pagekit.core.pagination.sorting import resolve_sort
from pagekit.core.settings import get_pagination_settings


@click.command()
@click.argument("query")
@click.option("--collection", default="collection", show_default=True, help="Collection name")
@click.option("--id-field", default=None, help="Tie-breaker field (defaults to PAGINATION_ID_FIELD)")
@click.option(
    "--id-type",
    type=click.Choice([t.value for t in FieldType]),
    default=FieldType.STRING.value,
    show_default=True,
    help="Value type of the tie-breaker field (checked against cursors)",
)
@click.option("--json", "as_json", is_flag=True, help="Output the plan as JSON")
def explain(
    query: str,
    collection: str,
    id_field: str | None,
    id_type: str,
    as_json: bool,
) -> None:
    """Show the query plan for a collection query string.

    Fields are not checked against a schema and every filter value is
    treated as a string.

    \b
    Example:
      pagekit explain 'status=active&sort=created_at,desc&size=20'
    """
    settings = get_pagination_settings()
    id_field = id_field or settings.id_field
    params = parse_qs(query.lstrip("?"), keep_blank_values=True)
    schema = CollectionSchema.permissive(collection, id_field=id_field, id_type=FieldType(id_type))

    try:
        request = PageRequest.from_params(params)
        filters = FilterParser(schema, strict=False).parse(params)
        sort = resolve_sort(params.get("sort", []), id_field)
        codec = build_codec(settings.cursor_keys(), ttl_seconds=settings.cursor_ttl_seconds)
        cursor = codec.decode(request.cursor) if request.cursor else None
        plan = QueryPlanBuilder(schema, settings).build(
            filters,
            sort,
            cursor,
            request.direction,
            request.size,
            page=request.page,
            mode=request.mode,
            cursor_token=request.cursor,
        )
    except PaginationError as e:
        error(f"{e.code}: {e.detail}")
        sys.exit(1)

    where = render(plan.where())
    if as_json:
        print_json(
            {
                "collection": plan.collection,
                "filters": [f.render() for f in plan.filters],
                "sort": plan.sort.render(),
                "fetch_sort": plan.fetch_sort.render(),
                "mode": plan.mode.value,
                "direction": plan.direction.value,
                "limit": plan.limit,
                "page": plan.page,
                "where": where,
                "filter_hash": plan.filter_hash,
                "plan_hash": plan.plan_hash,
            }
        )
        return

    header(f"Query plan for '{plan.collection}'")
    key_value("Filters", ", ".join(f.render() for f in plan.filters) or "(none)")
    key_value("Sort", ", ".join(plan.sort.render()))
    if plan.is_backward:
        key_value("Fetch sort", ", ".join(plan.fetch_sort.render()))
    key_value("Mode", plan.mode.value)
    key_value("Direction", plan.direction.value)
    key_value("Limit", f"{plan.limit} (+1 lookahead)")
    if plan.page is not None:
        key_value("Page", plan.page)
    key_value("Where", where)
    key_value("Filter hash", plan.filter_hash)
