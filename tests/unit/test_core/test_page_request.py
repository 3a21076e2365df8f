"""Unit tests for pagination parameter parsing."""

from __future__ import annotations

import pytest

from pagekit.core.exceptions import InvalidPaginationError
from pagekit.core.pagination.request import PageRequest
from pagekit.core.pagination.types import PageDirection, PaginationMode


class TestPageRequest:
    def test_defaults(self):
        request = PageRequest.from_params({})

        assert request == PageRequest()
        assert request.mode is PaginationMode.AUTO
        assert request.direction is None

    def test_cursor_resolves_auto_to_cursor_mode(self):
        request = PageRequest.from_params({"cursor": ["abc"], "direction": ["PREV"], "size": ["20"]})

        assert request.cursor == "abc"
        assert request.direction is PageDirection.PREV
        assert request.size == 20
        assert request.mode is PaginationMode.CURSOR

    def test_page_resolves_auto_to_offset_mode(self):
        request = PageRequest.from_params({"page": "3"})

        assert request.page == 3
        assert request.mode is PaginationMode.OFFSET

    def test_size_zero_means_default(self):
        assert PageRequest.from_params({"size": ["0"]}).size is None

    def test_blank_values_are_ignored(self):
        assert PageRequest.from_params({"cursor": [""], "size": ["  "]}) == PageRequest()

    def test_explicit_mode(self):
        assert PageRequest.from_params({"mode": ["Cursor"]}).mode is PaginationMode.CURSOR


class TestPageRequestErrors:
    @pytest.mark.parametrize(
        ("params", "field"),
        [
            ({"size": ["ten"]}, "size"),
            ({"size": ["-1"]}, "size"),
            ({"page": ["0"]}, "page"),
            ({"page": ["1.5"]}, "page"),
            ({"direction": ["up"]}, "direction"),
            ({"mode": ["keyset"]}, "mode"),
            ({"size": ["10", "20"]}, "size"),
            ({"cursor": ["abc"], "page": ["2"]}, "page"),
            ({"cursor": ["abc"], "mode": ["offset"]}, "cursor"),
            ({"page": ["2"], "mode": ["cursor"]}, "page"),
        ],
    )
    def test_rejects(self, params, field):
        with pytest.raises(InvalidPaginationError) as exc_info:
            PageRequest.from_params(params)

        assert exc_info.value.field == field
        assert exc_info.value.code == "INVALID_PAGINATION"
