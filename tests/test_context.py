import pytest
from pydantic import ValidationError

from doc_query.core.models import (
    AuthOverride,
    ConnectionOverrides,
    Position,
    QueryBlock,
    QueryMetadata,
    QueryType,
    Range,
)
from doc_query.execution import ExecutionContext


def api_block():
    return QueryBlock(
        type=QueryType.API,
        content="",
        range=Range(start=Position(line=0), end=Position(line=3, character=3)),
        metadata=QueryMetadata(method="GET", endpoint="/a", timeout=2000),
        connection_overrides=ConnectionOverrides(
            endpoint="http://x:9200",
            auth=AuthOverride(type="basic", username="u", password="p"),
        ),
    )


def test_from_block():
    block = api_block()
    context = ExecutionContext.from_block(block)

    assert context.query_type == QueryType.API
    assert context.timeout == 2000
    assert context.metadata == block.metadata
    assert context.metadata is not block.metadata
    assert context.connection_overrides == block.connection_overrides


def test_explicit_overrides_replace_block_overrides():
    context = ExecutionContext.from_block(api_block(), ConnectionOverrides(timeout=5000))

    assert context.connection_overrides.endpoint is None
    assert context.connection_overrides.timeout == 5000


def test_context_is_read_only():
    context = ExecutionContext.from_block(api_block())

    with pytest.raises(ValidationError):
        context.query = "changed"


def test_nested_values_are_read_only():
    context = ExecutionContext(
        query="",
        query_type=QueryType.API,
        metadata={"method": "GET", "endpoint": "/a"},
        connection_overrides={"endpoint": "http://x:9200", "auth": {"type": "apikey", "api_key": "k"}},
    )

    with pytest.raises(ValidationError):
        context.metadata.method = "DELETE"
    with pytest.raises(ValidationError):
        context.connection_overrides.endpoint = "http://other:9200"
    with pytest.raises(ValidationError):
        context.connection_overrides.auth.api_key = "stolen"

    assert context.metadata.method == "GET"
