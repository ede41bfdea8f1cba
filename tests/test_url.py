"""Tests for URL building and query-parameter serialisation."""

from __future__ import annotations

import pytest

from halclient.exceptions import PreconditionError
from halclient.models import PagedGetOption, Sort, SortOrder
from halclient.url import convert_to_params, generate_resource_url, parse_options, strip_query


class TestGenerateResourceUrl:
    @pytest.mark.parametrize(
        "base,name,query,expected",
        [
            ("http://h/api", "users", "/search", "http://h/api/users/search"),
            ("http://h/api/", "users", "search", "http://h/api/users/search"),
            ("http://h/api", "/users/", "?page=1", "http://h/api/users?page=1"),
            ("http://h/api", "users", None, "http://h/api/users"),
            ("http://h/api", "users", "#frag", "http://h/api/users#frag"),
        ],
    )
    def test_join(self, base, name, query, expected) -> None:
        assert generate_resource_url(base, name, query) == expected


class TestConvertToParams:
    def test_none(self) -> None:
        assert convert_to_params(None) == {}

    def test_paging_and_sort(self) -> None:
        options = PagedGetOption(
            page=2,
            size=50,
            sort=[Sort(field="name"), Sort(field="age", order=SortOrder.DESC)],
        )
        assert convert_to_params(options) == {
            "page": 2,
            "size": 50,
            "sort": ["name,ASC", "age,DESC"],
        }

    def test_sort_mapping_any_case(self) -> None:
        assert convert_to_params({"sort": {"name": "desc"}}) == {"sort": ["name,DESC"]}

    def test_sort_strings(self) -> None:
        assert convert_to_params({"sort": ["name", "age,desc"]}) == {"sort": ["name,ASC", "age,DESC"]}

    def test_extra_params(self) -> None:
        params = convert_to_params(
            {"params": {"active": False, "q": "x", "skip": None, "ids": [1, None, 2]}}
        )
        assert params == {"active": "false", "q": "x", "ids": [1, 2]}

    def test_explicit_paging_wins(self) -> None:
        assert convert_to_params({"page": 1, "params": {"page": 9}}) == {"page": 1}

    def test_include_is_not_a_param(self) -> None:
        assert convert_to_params({"include": "NULL_VALUES"}) == {}


class TestParseOptions:
    def test_invalid_mapping(self) -> None:
        with pytest.raises(PreconditionError, match="Invalid query options"):
            parse_options({"page": -1})

    def test_passthrough(self) -> None:
        options = PagedGetOption(page=1)
        assert parse_options(options) is options


def test_strip_query() -> None:
    assert strip_query("http://h/a?b=1#c") == "http://h/a"
    assert strip_query("http://h/a#c") == "http://h/a"
    assert strip_query("/a") == "/a"
