import pytest

from doc_query.core.models import AuthOverride, ConnectionOverrides, QueryMetadata, QueryType
from doc_query.execution.context import ExecutionContext
from doc_query.validation import ValidationPipeline, validate_connection_overrides, validate_query


def api(method=None, endpoint=None):
    return QueryMetadata(method=method, endpoint=endpoint)


@pytest.mark.parametrize("query_type", [QueryType.SQL, QueryType.PPL])
def test_empty_sql_and_ppl_are_rejected(query_type):
    result = validate_query("   \n ", query_type)

    assert not result.valid
    assert result.error == "Query cannot be empty"


def test_sql_is_opaque_text():
    assert validate_query("SELEKT whatever (", QueryType.SQL).valid


def test_api_requires_method_then_endpoint():
    missing_method = validate_query("", QueryType.API, api(endpoint="/a"))
    missing_endpoint = validate_query("", QueryType.API, api(method="GET"))

    assert "requires HTTP method" in missing_method.error
    assert "-- Method: GET/POST/PUT/DELETE" in missing_method.error
    assert "requires endpoint" in missing_endpoint.error
    assert "-- Endpoint: /index/_doc" in missing_endpoint.error


def test_api_without_metadata():
    result = validate_query("{}", QueryType.API)

    assert not result.valid
    assert "requires HTTP method" in result.error


def test_invalid_method_names_value_and_valid_set():
    result = validate_query("", QueryType.API, api("FETCH", "/a"))

    assert result.error == "Invalid HTTP method: FETCH. Must be one of: GET, POST, PUT, DELETE, HEAD, PATCH"


def test_method_is_case_insensitive():
    assert validate_query("", QueryType.API, api("get", "/a")).valid


def test_invalid_json_body():
    result = validate_query("{not json", QueryType.API, api("POST", "/idx/_search"))

    assert result.error == "Invalid JSON in request body"


def test_get_body_is_not_checked():
    assert validate_query("{not json", QueryType.API, api("GET", "/idx/_search")).valid


def test_bulk_body_quotes_bad_line():
    body = '{"index": {"_index": "a"}}\n   {"field": oops}   \n{"index": {}}'
    result = validate_query(body, QueryType.API, api("POST", "/_bulk"))

    assert not result.valid
    assert result.error == 'Invalid JSON in bulk request line: {"field": oops}'


def test_valid_bulk_body():
    body = '{"index": {"_index": "a"}}\n{"field": 1}\n\n'
    assert validate_query(body, QueryType.API, api("PUT", "/a/_bulk")).valid


def test_override_endpoint_must_be_http_url():
    assert not validate_connection_overrides(ConnectionOverrides(endpoint="ftp://x")).valid
    assert not validate_connection_overrides(ConnectionOverrides(endpoint="not a url")).valid
    assert validate_connection_overrides(ConnectionOverrides(endpoint="https://x:9200")).valid


def test_override_timeout_bounds():
    assert not validate_connection_overrides(ConnectionOverrides(timeout=500)).valid
    assert not validate_connection_overrides(ConnectionOverrides(timeout=300001)).valid
    assert validate_connection_overrides(ConnectionOverrides(timeout=1000)).valid


def test_basic_auth_without_credentials_is_allowed():
    overrides = ConnectionOverrides(auth=AuthOverride(type="basic"))
    assert validate_connection_overrides(overrides).valid


def test_pipeline_prefixes_override_errors():
    context = ExecutionContext(
        query="SELECT 1",
        query_type=QueryType.SQL,
        connection_overrides=ConnectionOverrides(endpoint="nope"),
    )
    result = ValidationPipeline.for_execution().run(context)

    assert not result.success
    assert result.error == "Connection override error: Invalid endpoint URL: nope"


def test_pipeline_runs_rules_in_order():
    context = ExecutionContext(
        query="",
        query_type=QueryType.API,
        connection_overrides=ConnectionOverrides(timeout=10),
    )
    result = ValidationPipeline.for_explain().validate(context)

    assert ValidationPipeline.for_explain().rule_names == [
        "connection-overrides",
        "query-syntax",
        "explain-query-type",
    ]
    assert result.error.startswith("Connection override error: Timeout must be between")


def test_explain_rule_rejects_api_queries():
    context = ExecutionContext(query="", query_type=QueryType.API, metadata=api("GET", "/a"))

    assert ValidationPipeline.for_execution().run(context) is None
    assert (
        ValidationPipeline.for_explain().run(context).error
        == "Explain is only supported for SQL and PPL queries"
    )
