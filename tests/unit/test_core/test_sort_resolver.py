"""Unit tests for sort specification resolution."""

from __future__ import annotations

import pytest

from pagekit.core.exceptions import InvalidSortError, UnknownFieldError
from pagekit.core.pagination.fields import CollectionSchema, FieldDef, FieldType
from pagekit.core.pagination.sorting import SortResolver, parse_sort_tokens, resolve_sort
from pagekit.core.pagination.types import SortDirection, SortField, SortSpec


class TestParseSortTokens:
    def test_pairs_in_one_parameter(self):
        assert parse_sort_tokens("created_at,desc,title,asc") == [
            ("created_at", SortDirection.DESC, None),
            ("title", SortDirection.ASC, None),
        ]

    def test_direction_defaults_to_ascending(self):
        assert parse_sort_tokens(["title"]) == [("title", SortDirection.ASC, None)]

    def test_null_placement(self):
        assert parse_sort_tokens(["rating,desc,nullsfirst"]) == [
            ("rating", SortDirection.DESC, True),
        ]

    def test_empty_sort(self):
        assert parse_sort_tokens([]) == []
        assert parse_sort_tokens("") == []

    def test_direction_without_field(self):
        with pytest.raises(InvalidSortError):
            parse_sort_tokens(["desc"])

    def test_empty_field_name(self):
        with pytest.raises(InvalidSortError):
            parse_sort_tokens(["title,,desc"])


class TestResolveSort:
    """Schema-free resolution used by tooling."""

    def test_appends_id_tie_breaker(self):
        assert resolve_sort(["created_at,desc"]).render() == ["created_at,desc", "id,asc"]

    def test_custom_id_field(self):
        spec = resolve_sort([], "uuid")

        assert spec.render() == ["uuid,asc"]
        assert spec.tie_breaker.name == "uuid"

    def test_last_occurrence_wins(self):
        spec = resolve_sort(["title,asc", "created_at,desc", "title,desc"])

        assert spec.render() == ["created_at,desc", "title,desc", "id,asc"]

    def test_fields_after_id_are_dropped(self):
        spec = resolve_sort(["id,desc", "title"])

        assert spec.render() == ["id,desc"]


class TestSortResolver:
    """Resolution against a collection schema."""

    def test_nullable_field_carries_placement(self, article_schema):
        spec = SortResolver(article_schema).resolve(["rating,desc,nullsfirst"])

        assert spec.fields[0] == SortField(
            "rating", SortDirection.DESC, nulls_first=True, nullable=True
        )
        assert spec.render() == ["rating,desc,nullsfirst", "id,asc"]

    def test_nullable_field_defaults_to_nulls_last(self, article_schema):
        spec = SortResolver(article_schema).resolve(["rating"])

        assert spec.fields[0].nulls_first is False
        assert spec.fields[0].nullable is True

    def test_unknown_field(self, article_schema):
        with pytest.raises(UnknownFieldError) as exc_info:
            SortResolver(article_schema).resolve(["author"])

        assert exc_info.value.field == "sort"

    def test_non_sortable_field(self, article_schema):
        with pytest.raises(UnknownFieldError):
            SortResolver(article_schema).resolve(["body"])

    def test_null_placement_on_non_nullable_field(self, article_schema):
        with pytest.raises(InvalidSortError):
            SortResolver(article_schema).resolve(["title,asc,nullsfirst"])

    def test_too_many_fields(self, article_schema):
        resolver = SortResolver(article_schema, max_fields=2)

        with pytest.raises(InvalidSortError):
            resolver.resolve(["title", "status", "rating"])

    def test_default_sort_applies_without_sort(self):
        schema = CollectionSchema(
            "events",
            [FieldDef("id", FieldType.INTEGER), FieldDef("starts_at", FieldType.DATETIME)],
            default_sort=["starts_at,desc"],
        )

        assert SortResolver(schema).resolve([]).render() == ["starts_at,desc", "id,asc"]


class TestSortSpec:
    def test_reversed_flips_direction_and_nulls(self):
        spec = SortSpec(
            (
                SortField("rating", SortDirection.DESC, nulls_first=False, nullable=True),
                SortField("id"),
            )
        )

        assert spec.reversed().fields == (
            SortField("rating", SortDirection.ASC, nulls_first=True, nullable=True),
            SortField("id", SortDirection.DESC, nulls_first=True),
        )

    def test_signature(self):
        assert resolve_sort(["title,desc"]).signature == (("title", "desc"), ("id", "asc"))

    def test_signature_records_nulls_first(self, article_schema):
        first = SortResolver(article_schema).resolve(["rating,asc,nullsfirst"])
        last = SortResolver(article_schema).resolve(["rating,asc,nullslast"])

        assert first.signature == (("rating", "asc", "nullsfirst"), ("id", "asc"))
        assert last.signature == (("rating", "asc"), ("id", "asc"))

    def test_rejects_empty_and_duplicates(self):
        with pytest.raises(ValueError):
            SortSpec(())
        with pytest.raises(ValueError):
            SortSpec((SortField("id"), SortField("id")))
