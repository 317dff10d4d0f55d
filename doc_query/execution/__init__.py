"""Query execution, error classification and result formatting."""

from doc_query.execution.context import ExecutionContext
from doc_query.execution.error_classifier import classify_error, format_error
from doc_query.execution.executor import QueryExecutor
from doc_query.execution.http_formatter import curl_command, format_raw_request, format_raw_response
from doc_query.execution.result_formatter import (
    ResponseShape,
    format_for_display,
    normalize_response,
)

__all__ = [
    "ExecutionContext",
    "QueryExecutor",
    "ResponseShape",
    "classify_error",
    "curl_command",
    "format_error",
    "format_for_display",
    "format_raw_request",
    "format_raw_response",
    "normalize_response",
]
