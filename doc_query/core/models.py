"""
Shared data models for the document query system.
"""

import os
from datetime import datetime
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


AuthType = Literal["none", "basic", "apikey"]


class QueryType(str, Enum):
    """Kind of query a block holds."""

    SQL = "sql"
    PPL = "ppl"
    API = "opensearch-api"


class HttpMethod(str, Enum):
    """HTTP methods accepted for API blocks."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    HEAD = "HEAD"
    PATCH = "PATCH"


class DocumentFormat(str, Enum):
    """Markup syntax of a document, selects the extraction strategy."""

    MARKDOWN = "markdown"
    RST = "restructuredtext"

    @classmethod
    def resolve(cls, value: Union["DocumentFormat", str]) -> "DocumentFormat":
        """
        Resolve a format from an enum member, editor language id or file name.

        Args:
            value: DocumentFormat, language id ("markdown", "rst", ...) or a path

        Returns:
            Matching DocumentFormat

        Raises:
            ValueError: If the value names no known format
        """
        if isinstance(value, DocumentFormat):
            return value

        key = str(value).strip().lower()
        if key in _FORMAT_ALIASES:
            return _FORMAT_ALIASES[key]

        suffix = PurePath(key).suffix
        if suffix in _FORMAT_ALIASES:
            return _FORMAT_ALIASES[suffix]

        raise ValueError(f"Unknown document format: {value}")


_FORMAT_ALIASES = {
    "markdown": DocumentFormat.MARKDOWN,
    "md": DocumentFormat.MARKDOWN,
    ".md": DocumentFormat.MARKDOWN,
    ".markdown": DocumentFormat.MARKDOWN,
    "restructuredtext": DocumentFormat.RST,
    "rst": DocumentFormat.RST,
    ".rst": DocumentFormat.RST,
    ".rest": DocumentFormat.RST,
}


class Position(BaseModel):
    """Zero-based line/character position, ordered line first."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=0)
    character: int = Field(default=0, ge=0)

    def sort_key(self):
        return (self.line, self.character)

    def __lt__(self, other: "Position") -> bool:
        return self.sort_key() < other.sort_key()

    def __le__(self, other: "Position") -> bool:
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: "Position") -> bool:
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: "Position") -> bool:
        return self.sort_key() >= other.sort_key()


class Range(BaseModel):
    """Span between two positions, both ends inclusive."""

    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position

    def contains(self, position: Position) -> bool:
        return self.start <= position <= self.end

    def intersects(self, other: "Range") -> bool:
        return self.start <= other.end and other.start <= self.end


class QueryMetadata(BaseModel):
    """Metadata parsed from comment lines and API request lines."""

    model_config = ConfigDict(frozen=True)

    connection: Optional[str] = None
    timeout: Optional[int] = None  # milliseconds
    description: Optional[str] = None
    method: Optional[str] = None
    endpoint: Optional[str] = None


class AuthOverride(BaseModel):
    """Partial authentication settings from a configuration block."""

    model_config = ConfigDict(frozen=True)

    type: Optional[AuthType] = None
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None


class ConnectionOverrides(BaseModel):
    """Partial replacement of the base connection settings."""

    model_config = ConfigDict(frozen=True)

    endpoint: Optional[str] = None
    auth: Optional[AuthOverride] = None
    timeout: Optional[int] = None  # milliseconds

    def is_empty(self) -> bool:
        """Check whether no override value is set."""
        if self.endpoint or self.timeout:
            return False
        if self.auth is None:
            return True
        return not any(self.auth.model_dump().values())


class QueryBlock(BaseModel):
    """A query discovered in a document."""

    type: QueryType
    content: str
    range: Range
    metadata: QueryMetadata = Field(default_factory=QueryMetadata)
    connection_overrides: Optional[ConnectionOverrides] = None


class ConfigurationBlock(BaseModel):
    """A block of @key = 'value' connection overrides."""

    config: ConnectionOverrides
    range: Range
    position: int  # character offset of the block start


class AuthConfig(BaseModel):
    """Authentication settings of the base connection."""

    type: AuthType = "none"
    username: str = ""
    password: str = ""
    api_key: str = ""


class OpenSearchConfig(BaseModel):
    """
    Base connection configuration.

    Passed explicitly into every execution. Presentation settings
    (history size, code lens toggle) ride along for host convenience.
    """

    endpoint: str = "http://localhost:9200"
    auth: AuthConfig = Field(default_factory=AuthConfig)
    timeout: int = 30000  # milliseconds
    max_history_items: int = 100
    enable_code_lens: bool = True

    @classmethod
    def from_env(cls) -> "OpenSearchConfig":
        """
        Build configuration from environment variables.

        Reads OPENSEARCH_ENDPOINT, OPENSEARCH_AUTH_TYPE, OPENSEARCH_USERNAME,
        OPENSEARCH_PASSWORD, OPENSEARCH_API_KEY, OPENSEARCH_TIMEOUT and
        OPENSEARCH_MAX_HISTORY_ITEMS. Unset variables keep the defaults.

        Returns:
            OpenSearchConfig instance
        """
        defaults = cls()
        auth_type = os.getenv("OPENSEARCH_AUTH_TYPE", defaults.auth.type).lower()

        return cls(
            endpoint=os.getenv("OPENSEARCH_ENDPOINT", defaults.endpoint),
            auth=AuthConfig(
                type=auth_type,
                username=os.getenv("OPENSEARCH_USERNAME", ""),
                password=os.getenv("OPENSEARCH_PASSWORD", ""),
                api_key=os.getenv("OPENSEARCH_API_KEY", ""),
            ),
            timeout=int(os.getenv("OPENSEARCH_TIMEOUT", str(defaults.timeout))),
            max_history_items=int(
                os.getenv("OPENSEARCH_MAX_HISTORY_ITEMS", str(defaults.max_history_items))
            ),
        )


class RequestInfo(BaseModel):
    """What was sent on the wire."""

    method: Optional[str] = None
    endpoint: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None


class ResponseInfo(BaseModel):
    """Status line and headers of a received response."""

    status: Optional[int] = None
    status_text: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)


class ConnectionInfo(BaseModel):
    """Connection actually used for an execution."""

    endpoint: str
    auth_type: str


class QueryResult(BaseModel):
    """Outcome of one query execution."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    execution_time: float = 0  # milliseconds
    executed_at: datetime = Field(default_factory=datetime.now)
    row_count: Optional[int] = None
    columns: Optional[List[str]] = None
    raw_response: Any = None
    request_info: Optional[RequestInfo] = None
    response_info: Optional[ResponseInfo] = None
    connection_info: Optional[ConnectionInfo] = None

    @model_validator(mode="after")
    def _check_outcome(self) -> "QueryResult":
        if not self.success:
            if not self.error:
                raise ValueError("failed results must carry an error message")
            if self.data is not None:
                raise ValueError("failed results must not carry data")
        elif self.execution_time < 0:
            raise ValueError("execution_time must not be negative")
        return self


class ValidationResult(BaseModel):
    """Outcome of a validation rule."""

    valid: bool
    error: Optional[str] = None


class ConnectionTestResult(BaseModel):
    """Outcome of a cluster health check."""

    success: bool
    error: Optional[str] = None
    cluster_name: Optional[str] = None
    status: Optional[str] = None
    version: Optional[str] = None


class PreparedRequest(BaseModel):
    """A request ready for the wire, relative to the connection endpoint."""

    model_config = ConfigDict(frozen=True)

    method: str
    endpoint: str
    content_type: str = "application/json"
    body: Optional[str] = None


class Exchange(BaseModel):
    """A completed request/response pair as seen by the transport."""

    request_info: RequestInfo
    response_info: ResponseInfo
    data: Any = None
    connection_info: Optional[ConnectionInfo] = None
