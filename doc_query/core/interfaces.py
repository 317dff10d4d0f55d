"""
Abstract interfaces for extractors and transports.

These protocols define the contract between the parsing layer, the
execution coordinator and the backend adapter.
"""

from typing import List, Optional, Protocol

from doc_query.core.models import (
    ConfigurationBlock,
    ConnectionInfo,
    ConnectionOverrides,
    ConnectionTestResult,
    Exchange,
    PreparedRequest,
    QueryBlock,
)


class IBlockExtractor(Protocol):
    """
    Extract positioned blocks from one markup format.

    Implementations must never raise for any document content; malformed
    markup simply yields fewer blocks.
    """

    def extract_query_blocks(self, text: str) -> List[QueryBlock]:
        """
        Extract query blocks.

        Args:
            text: Full document text

        Returns:
            Query blocks in document order, ranges non-overlapping
        """
        ...

    def extract_configuration_blocks(self, text: str) -> List[ConfigurationBlock]:
        """
        Extract configuration blocks.

        Args:
            text: Full document text

        Returns:
            Configuration blocks in document order
        """
        ...


class IQueryTransport(Protocol):
    """
    Send prepared requests to the backend.

    Implementations build a fresh connection per call from their base
    configuration merged with the given overrides. Failures are raised as
    TransportError carrying whatever request/response snapshot exists.
    """

    def send(
        self,
        request: PreparedRequest,
        overrides: Optional[ConnectionOverrides] = None,
        timeout: Optional[int] = None,
    ) -> Exchange:
        """
        Send a request and wait for the response.

        Args:
            request: Method, endpoint and body to send
            overrides: Per-query connection overrides
            timeout: Per-query timeout in milliseconds, takes precedence
                over the merged connection timeout

        Returns:
            Exchange with request/response introspection and decoded body
        """
        ...

    async def send_async(
        self,
        request: PreparedRequest,
        overrides: Optional[ConnectionOverrides] = None,
        timeout: Optional[int] = None,
    ) -> Exchange:
        """Async version of send()."""
        ...

    def connection_info(self, overrides: Optional[ConnectionOverrides] = None) -> ConnectionInfo:
        """Endpoint and auth type a call with these overrides would use."""
        ...

    def test_connection(
        self, overrides: Optional[ConnectionOverrides] = None
    ) -> ConnectionTestResult:
        """
        Check cluster health.

        Returns:
            ConnectionTestResult, never raises
        """
        ...
