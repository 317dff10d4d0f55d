"""
Query validation.

Structural checks that run before any network call. SQL and PPL are opaque
text here: only surface shape is checked.
"""

import json
from dataclasses import dataclass
from typing import Callable, List, Optional

import httpx

from doc_query.core.models import (
    ConnectionOverrides,
    HttpMethod,
    QueryMetadata,
    QueryResult,
    QueryType,
    ValidationResult,
)


MIN_TIMEOUT = 1000
MAX_TIMEOUT = 300000

VALID_METHODS = [method.value for method in HttpMethod]
BODY_METHODS = ("POST", "PUT")

EXPLAIN_TYPES = (QueryType.SQL, QueryType.PPL)


def is_bulk_endpoint(endpoint: Optional[str]) -> bool:
    return bool(endpoint) and "/_bulk" in endpoint


def validate_json_body(content: str) -> ValidationResult:
    """Check that content is a single JSON document."""
    try:
        json.loads(content.strip())
    except ValueError:
        return ValidationResult(valid=False, error="Invalid JSON in request body")
    return ValidationResult(valid=True)


def validate_ndjson_body(content: str) -> ValidationResult:
    """
    Check every non-blank line of a bulk body.

    The first line that is not valid JSON is quoted in the error.
    """
    for line in content.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        try:
            json.loads(stripped)
        except ValueError:
            return ValidationResult(
                valid=False, error=f"Invalid JSON in bulk request line: {stripped}"
            )
    return ValidationResult(valid=True)


def validate_query(
    content: str, query_type: QueryType, metadata: Optional[QueryMetadata] = None
) -> ValidationResult:
    """
    Validate a query before execution.

    Args:
        content: Cleaned query text or API body
        query_type: Type of the query
        metadata: Block metadata, required for API queries

    Returns:
        ValidationResult with a human-readable error when invalid
    """
    query_type = QueryType(query_type)

    if query_type != QueryType.API:
        if not content or not content.strip():
            return ValidationResult(valid=False, error="Query cannot be empty")
        return ValidationResult(valid=True)

    metadata = metadata or QueryMetadata()

    if not metadata.method:
        return ValidationResult(
            valid=False,
            error=(
                'OpenSearch API operation requires HTTP method. Use either "METHOD /endpoint" '
                'format or "-- Method: GET/POST/PUT/DELETE" metadata comment.'
            ),
        )

    if not metadata.endpoint:
        return ValidationResult(
            valid=False,
            error=(
                'OpenSearch API operation requires endpoint. Use either "METHOD /endpoint" '
                'format or "-- Endpoint: /index/_doc" metadata comment.'
            ),
        )

    method = metadata.method.upper()
    if method not in VALID_METHODS:
        return ValidationResult(
            valid=False,
            error=f"Invalid HTTP method: {metadata.method}. Must be one of: {', '.join(VALID_METHODS)}",
        )

    if method in BODY_METHODS and content and content.strip():
        if is_bulk_endpoint(metadata.endpoint):
            return validate_ndjson_body(content)
        return validate_json_body(content)

    return ValidationResult(valid=True)


def validate_connection_overrides(overrides: Optional[ConnectionOverrides]) -> ValidationResult:
    """
    Sanity-check per-query connection overrides.

    Missing credentials are not an error: the request is then sent without
    an Authorization header.
    """
    if overrides is None:
        return ValidationResult(valid=True)

    if overrides.endpoint:
        try:
            url = httpx.URL(overrides.endpoint)
        except httpx.InvalidURL:
            url = None
        if url is None or url.scheme not in ("http", "https") or not url.host:
            return ValidationResult(
                valid=False, error=f"Invalid endpoint URL: {overrides.endpoint}"
            )

    if overrides.timeout is not None and not MIN_TIMEOUT <= overrides.timeout <= MAX_TIMEOUT:
        return ValidationResult(
            valid=False,
            error=f"Timeout must be between {MIN_TIMEOUT}ms and {MAX_TIMEOUT}ms (5 minutes)",
        )

    return ValidationResult(valid=True)


@dataclass(frozen=True)
class ValidationRule:
    """A named check over an execution context."""

    name: str
    check: Callable[..., ValidationResult]
    error_prefix: str = ""


def _check_overrides(context) -> ValidationResult:
    return validate_connection_overrides(context.connection_overrides)


def _check_syntax(context) -> ValidationResult:
    return validate_query(context.query, context.query_type, context.metadata)


def _check_explain_type(context) -> ValidationResult:
    if context.query_type in EXPLAIN_TYPES:
        return ValidationResult(valid=True)
    return ValidationResult(valid=False, error="Explain is only supported for SQL and PPL queries")


COMMON_RULES = [
    ValidationRule("connection-overrides", _check_overrides, "Connection override error: "),
    ValidationRule("query-syntax", _check_syntax),
]
EXPLAIN_RULES = COMMON_RULES + [ValidationRule("explain-query-type", _check_explain_type)]


class ValidationPipeline:
    """
    Ordered validation rules run before execution.

    The first failing rule stops the pipeline.
    """

    def __init__(self, rules: List[ValidationRule]):
        self.rules = list(rules)

    @classmethod
    def for_execution(cls) -> "ValidationPipeline":
        return cls(COMMON_RULES)

    @classmethod
    def for_explain(cls) -> "ValidationPipeline":
        return cls(EXPLAIN_RULES)

    @property
    def rule_names(self) -> List[str]:
        return [rule.name for rule in self.rules]

    def validate(self, context) -> ValidationResult:
        """
        Run all rules against an execution context.

        Args:
            context: ExecutionContext to check

        Returns:
            First failing result (error prefixed per rule), or a valid result
        """
        for rule in self.rules:
            result = rule.check(context)
            if not result.valid:
                return ValidationResult(valid=False, error=f"{rule.error_prefix}{result.error}")
        return ValidationResult(valid=True)

    def run(self, context) -> Optional[QueryResult]:
        """Return a failed QueryResult if any rule fails, else None."""
        result = self.validate(context)
        if result.valid:
            return None
        return QueryResult(success=False, error=result.error, execution_time=0)
