"""
Doc Query - run SQL, PPL and REST queries embedded in documents.

Main entry point for parsing documents and executing their query blocks
against OpenSearch.
"""

from doc_query.core.models import (
    ConnectionOverrides,
    DocumentFormat,
    OpenSearchConfig,
    Position,
    QueryBlock,
    QueryResult,
    QueryType,
    Range,
)
from doc_query.execution import ExecutionContext, QueryExecutor, format_for_display
from doc_query.orchestrator import DocumentQueryRunner
from doc_query.parsing import (
    find_block_at_position,
    parse_configuration_blocks,
    parse_document,
    resolve_overrides_for_position,
)
from doc_query.validation import validate_query

__all__ = [
    "ConnectionOverrides",
    "DocumentFormat",
    "DocumentQueryRunner",
    "ExecutionContext",
    "OpenSearchConfig",
    "Position",
    "QueryBlock",
    "QueryExecutor",
    "QueryResult",
    "QueryType",
    "Range",
    "find_block_at_position",
    "format_for_display",
    "parse_configuration_blocks",
    "parse_document",
    "resolve_overrides_for_position",
    "validate_query",
]
