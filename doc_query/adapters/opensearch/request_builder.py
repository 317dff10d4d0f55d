"""
Request preparation for OpenSearch.

Routes each query type to its endpoint and prepares the wire body. Body
errors are raised here, before anything is sent.
"""

import json
from typing import Optional

from doc_query.core.errors import ExplainNotSupportedError, RequestBodyError
from doc_query.core.models import PreparedRequest, QueryMetadata, QueryType
from doc_query.validation.validator import (
    is_bulk_endpoint,
    validate_json_body,
    validate_ndjson_body,
)


QUERY_ENDPOINTS = {
    QueryType.SQL: "/_plugins/_sql",
    QueryType.PPL: "/_plugins/_ppl",
}
EXPLAIN_SUFFIX = "/_explain"

JSON_CONTENT_TYPE = "application/json"
NDJSON_CONTENT_TYPE = "application/x-ndjson"


def query_endpoint(query_type: QueryType, explain: bool = False) -> str:
    """Return the plugin endpoint for a SQL or PPL query."""
    if query_type not in QUERY_ENDPOINTS:
        if explain:
            raise ExplainNotSupportedError(query_type.value)
        raise ValueError(f"No query endpoint for {query_type.value} queries")

    endpoint = QUERY_ENDPOINTS[query_type]
    return endpoint + EXPLAIN_SUFFIX if explain else endpoint


def prepare_query_request(query: str, query_type: QueryType, explain: bool = False) -> PreparedRequest:
    """Wrap SQL/PPL text as {"query": ...} for the plugin endpoint."""
    return PreparedRequest(
        method="POST",
        endpoint=query_endpoint(query_type, explain),
        content_type=JSON_CONTENT_TYPE,
        body=json.dumps({"query": query}, indent=2),
    )


def prepare_bulk_body(content: str) -> str:
    """
    Prepare an NDJSON bulk body.

    The body is trimmed, every line is checked, and exactly one trailing
    newline is guaranteed. Otherwise the text is sent as written.

    Raises:
        RequestBodyError: If the body is blank or a line is not JSON
    """
    body = content.strip()
    if not body:
        raise RequestBodyError("Bulk request requires a request body")

    result = validate_ndjson_body(body)
    if not result.valid:
        raise RequestBodyError(result.error)

    return body + "\n"


def prepare_json_body(content: str) -> Optional[str]:
    """
    Prepare a single-document JSON body.

    Returns:
        Trimmed body text, or None for a blank body

    Raises:
        RequestBodyError: If the body is not valid JSON
    """
    body = content.strip()
    if not body:
        return None

    result = validate_json_body(body)
    if not result.valid:
        raise RequestBodyError(result.error)
    return body


def prepare_api_request(content: str, metadata: QueryMetadata) -> PreparedRequest:
    """
    Prepare a raw API request from block content and metadata.

    Args:
        content: Request body text (may be blank)
        metadata: Block metadata with method and endpoint

    Returns:
        PreparedRequest with the body and content type set

    Raises:
        RequestBodyError: If the body fails validation
    """
    method = (metadata.method or "GET").upper()
    endpoint = metadata.endpoint or "/"

    if is_bulk_endpoint(endpoint):
        return PreparedRequest(
            method=method,
            endpoint=endpoint,
            content_type=NDJSON_CONTENT_TYPE,
            body=prepare_bulk_body(content),
        )

    return PreparedRequest(
        method=method,
        endpoint=endpoint,
        content_type=JSON_CONTENT_TYPE,
        body=prepare_json_body(content),
    )


def prepare_request(
    query: str,
    query_type: QueryType,
    metadata: Optional[QueryMetadata] = None,
    explain: bool = False,
) -> PreparedRequest:
    """
    Prepare the request for any query type.

    Raises:
        ExplainNotSupportedError: If explain is requested for an API query
        RequestBodyError: If an API body fails validation
    """
    query_type = QueryType(query_type)

    if query_type == QueryType.API:
        if explain:
            raise ExplainNotSupportedError(query_type.value)
        return prepare_api_request(query, metadata or QueryMetadata())

    return prepare_query_request(query, query_type, explain)
