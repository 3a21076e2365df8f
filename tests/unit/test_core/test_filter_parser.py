"""Unit tests for filter parameter parsing."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pagekit.core.exceptions import (
    InvalidFilterValueError,
    UnknownFieldError,
    UnsupportedOperatorError,
)
from pagekit.core.pagination.filters import (
    FilterParser,
    describe_filters,
    filter_fingerprint,
)
from pagekit.core.pagination.types import FilterPredicate, Operator


@pytest.fixture
def parser(article_schema) -> FilterParser:
    return FilterParser(article_schema)


class TestFilterParsing:
    """Query parameters become typed predicates."""

    def test_bare_field_is_equality(self, parser):
        assert parser.parse({"status": ["active"]}) == [
            FilterPredicate("status", Operator.EQ, "active")
        ]

    def test_values_are_coerced_to_field_type(self, parser):
        predicates = parser.parse(
            {"rating[gte]": ["3"], "created_at[lt]": ["2025-01-02T00:00:00"]}
        )

        assert predicates == [
            FilterPredicate("rating", Operator.GTE, 3),
            FilterPredicate("created_at", Operator.LT, datetime(2025, 1, 2, tzinfo=UTC)),
        ]

    def test_operator_token_is_case_insensitive(self, parser):
        predicates = parser.parse({"title[STARTSWITH]": ["Art"]})

        assert predicates == [FilterPredicate("title", Operator.STARTS_WITH, "Art")]

    def test_reserved_parameters_are_skipped(self, parser):
        params = {
            "sort": ["title"],
            "cursor": ["abc"],
            "size": ["10"],
            "page": ["2"],
            "mode": ["auto"],
            "direction": ["next"],
        }

        assert parser.parse(params) == []

    def test_plain_string_values_are_accepted(self, parser):
        assert parser.parse({"status": "draft"}) == [
            FilterPredicate("status", Operator.EQ, "draft")
        ]

    def test_list_operand_merges_repeated_and_comma_values(self, parser):
        predicates = parser.parse({"rating[in]": ["1,2", "3"]})

        assert predicates == [FilterPredicate("rating", Operator.IN, (1, 2, 3))]

    def test_between_takes_two_ordered_bounds(self, parser):
        predicates = parser.parse({"rating[between]": ["1,3"]})

        assert predicates == [FilterPredicate("rating", Operator.BETWEEN, (1, 3))]

    def test_repeated_scalar_filter_yields_one_predicate_each(self, parser):
        predicates = parser.parse({"title[contains]": ["art", "01"]})

        assert predicates == [
            FilterPredicate("title", Operator.CONTAINS, "art"),
            FilterPredicate("title", Operator.CONTAINS, "01"),
        ]

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("false", False), ("", True), ("0", False)],
    )
    def test_flag_operators(self, parser, raw, expected):
        predicates = parser.parse({"rating[isNull]": [raw]})

        assert predicates == [FilterPredicate("rating", Operator.IS_NULL, expected)]

    def test_null_literal_on_nullable_field(self, parser):
        assert parser.parse({"rating": ["null"]}) == [
            FilterPredicate("rating", Operator.EQ, None)
        ]
        assert parser.parse({"rating[ne]": ["NULL"]}) == [
            FilterPredicate("rating", Operator.NE, None)
        ]


class TestFilterErrors:
    """Invalid filters raise the matching client error."""

    def test_unknown_operator(self, parser):
        with pytest.raises(UnsupportedOperatorError) as exc_info:
            parser.parse({"title[like]": ["x"]})

        assert exc_info.value.field == "title[like]"
        assert exc_info.value.code == "UNSUPPORTED_OPERATOR"

    def test_text_operator_on_non_string_field(self, parser):
        with pytest.raises(UnsupportedOperatorError):
            parser.parse({"rating[contains]": ["3"]})

    def test_uncoercible_value(self, parser):
        with pytest.raises(InvalidFilterValueError) as exc_info:
            parser.parse({"rating[gt]": ["high"]})

        assert exc_info.value.field == "rating[gt]"

    @pytest.mark.parametrize(
        "params",
        [
            {"rating[gt]": ["null"]},
            {"rating[lte]": ["NULL"]},
            {"rating[between]": ["null,3"]},
            {"rating[in]": ["1,null"]},
        ],
    )
    def test_null_literal_only_for_equality(self, parser, params):
        with pytest.raises(InvalidFilterValueError) as exc_info:
            parser.parse(params)

        assert exc_info.value.field == next(iter(params))
        assert "null" in exc_info.value.detail

    def test_long_invalid_value_is_shortened(self, parser):
        with pytest.raises(InvalidFilterValueError) as exc_info:
            parser.parse({"rating[gte]": ["x" * 2500]})

        assert "x" * 61 + "..." in exc_info.value.detail
        assert len(exc_info.value.detail) < 200

    def test_bad_timestamp(self, parser):
        with pytest.raises(InvalidFilterValueError):
            parser.parse({"created_at[gte]": ["last tuesday"]})

    def test_between_needs_two_values(self, parser):
        with pytest.raises(InvalidFilterValueError):
            parser.parse({"rating[between]": ["1,2,3"]})

    def test_between_bounds_must_be_ordered(self, parser):
        with pytest.raises(InvalidFilterValueError):
            parser.parse({"rating[between]": ["3,1"]})

    def test_in_needs_a_value(self, parser):
        with pytest.raises(InvalidFilterValueError):
            parser.parse({"rating[in]": [" , "]})

    def test_invalid_regex(self, parser):
        with pytest.raises(InvalidFilterValueError):
            parser.parse({"title[regex]": ["(unclosed"]})

    def test_bad_flag_value(self, parser):
        with pytest.raises(InvalidFilterValueError):
            parser.parse({"rating[exists]": ["maybe"]})

    def test_malformed_parameter_name(self, parser):
        with pytest.raises(InvalidFilterValueError):
            parser.parse({"title[eq][x]": ["1"]})

    def test_unknown_field_in_strict_mode(self, parser):
        with pytest.raises(UnknownFieldError) as exc_info:
            parser.parse({"author": ["bob"]})

        assert exc_info.value.code == "UNKNOWN_FIELD"

    def test_unknown_field_passes_through_when_lenient(self, article_schema):
        parser = FilterParser(article_schema, strict=False)

        assert parser.parse({"author[startsWith]": ["bo"]}) == [
            FilterPredicate("author", Operator.STARTS_WITH, "bo")
        ]

    def test_non_filterable_field(self, parser):
        with pytest.raises(UnknownFieldError):
            parser.parse({"body[contains]": ["x"]})


class TestFilterFingerprint:
    def test_order_independent(self):
        a = FilterPredicate("status", Operator.EQ, "active")
        b = FilterPredicate("rating", Operator.GTE, 3)

        assert filter_fingerprint([a, b]) == filter_fingerprint([b, a])

    def test_differs_by_value(self):
        assert filter_fingerprint([FilterPredicate("status", Operator.EQ, "active")]) != (
            filter_fingerprint([FilterPredicate("status", Operator.EQ, "draft")])
        )

    def test_empty_filter_set(self):
        assert len(filter_fingerprint([])) == 16


class TestDescribeFilters:
    def test_groups_by_field_and_operator(self):
        described = describe_filters(
            [
                FilterPredicate("status", Operator.EQ, "active"),
                FilterPredicate("rating", Operator.IN, (1, 2)),
                FilterPredicate("title", Operator.CONTAINS, "a"),
                FilterPredicate("title", Operator.CONTAINS, "b"),
                FilterPredicate("title", Operator.CONTAINS, "c"),
            ]
        )

        assert described == {
            "status": {"eq": "active"},
            "rating": {"in": [1, 2]},
            "title": {"contains": ["a", "b", "c"]},
        }
