import pytest

from doc_query.parsing.metadata import (
    match_http_request_line,
    match_metadata_comment,
    metadata_comment_pattern,
    parse_timeout,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("30s", 30000),
        ("2m", 120000),
        ("500ms", 500),
        ("250", 250),
        ("10S", 10000),
        (" 5s ", 5000),
    ],
)
def test_parse_timeout_units(value, expected):
    assert parse_timeout(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "1.5s", "10h", "-5s"])
def test_parse_timeout_rejects_non_timeouts(value):
    assert parse_timeout(value) is None


def test_metadata_comment_with_markdown_prefix():
    pattern = metadata_comment_pattern(["--"])
    assert match_metadata_comment("-- Timeout: 30s", pattern) == ("timeout", "30s")
    assert match_metadata_comment("  --description:  Top users  ", pattern) == ("description", "Top users")
    assert match_metadata_comment("# Timeout: 30s", pattern) is None


def test_metadata_comment_ignores_unknown_keys():
    pattern = metadata_comment_pattern(["--", "#"])
    assert match_metadata_comment("-- Author: me", pattern) is None
    assert match_metadata_comment("# METHOD: post", pattern) == ("method", "post")


def test_http_request_line():
    assert match_http_request_line("get /logs/_search") == ("GET", "/logs/_search")
    assert match_http_request_line("PUT /idx HTTP/1.1") == ("PUT", "/idx")
    assert match_http_request_line('{"query": {}}') is None
    assert match_http_request_line("FETCH /idx") is None
