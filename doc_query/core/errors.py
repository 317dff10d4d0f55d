"""
Exceptions raised inside the execution pipeline.

None of these cross the public execution API: the query executor converts
them into failed QueryResult objects.
"""

from typing import Any, Optional

from doc_query.core.models import ConnectionInfo, RequestInfo, ResponseInfo


class DocQueryError(Exception):
    """Base class for document query errors."""


class RequestBodyError(DocQueryError):
    """Request body is not valid JSON / NDJSON. Raised before any network call."""


class ExplainNotSupportedError(DocQueryError):
    """Explain was requested for a query type other than SQL or PPL."""

    def __init__(self, query_type: str):
        super().__init__("Explain is only supported for SQL and PPL queries")
        self.query_type = query_type


class TransportError(DocQueryError):
    """
    A request failed on the wire or came back with an error status.

    Carries whatever was captured: the outbound request always, the
    response only when one was received.
    """

    def __init__(
        self,
        message: str,
        request: Optional[RequestInfo] = None,
        response: Optional[ResponseInfo] = None,
        response_data: Any = None,
        timeout: Optional[int] = None,
        connection: Optional[ConnectionInfo] = None,
    ):
        super().__init__(message)
        self.request = request
        self.response = response
        self.response_data = response_data
        self.timeout = timeout
        self.connection = connection
