"""Core interfaces, models and errors for document queries."""

from doc_query.core.errors import (
    DocQueryError,
    ExplainNotSupportedError,
    RequestBodyError,
    TransportError,
)
from doc_query.core.interfaces import IBlockExtractor, IQueryTransport
from doc_query.core.models import (
    AuthConfig,
    AuthOverride,
    ConfigurationBlock,
    ConnectionInfo,
    ConnectionOverrides,
    ConnectionTestResult,
    DocumentFormat,
    Exchange,
    HttpMethod,
    OpenSearchConfig,
    Position,
    PreparedRequest,
    QueryBlock,
    QueryMetadata,
    QueryResult,
    QueryType,
    Range,
    RequestInfo,
    ResponseInfo,
    ValidationResult,
)

__all__ = [
    "DocQueryError",
    "ExplainNotSupportedError",
    "RequestBodyError",
    "TransportError",
    "IBlockExtractor",
    "IQueryTransport",
    "AuthConfig",
    "AuthOverride",
    "ConfigurationBlock",
    "ConnectionInfo",
    "ConnectionOverrides",
    "ConnectionTestResult",
    "DocumentFormat",
    "Exchange",
    "HttpMethod",
    "OpenSearchConfig",
    "Position",
    "PreparedRequest",
    "QueryBlock",
    "QueryMetadata",
    "QueryResult",
    "QueryType",
    "Range",
    "RequestInfo",
    "ResponseInfo",
    "ValidationResult",
]
