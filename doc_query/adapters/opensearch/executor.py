"""
OpenSearch transport.

Sends prepared requests with httpx and records exactly what went over the
wire.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from doc_query.adapters.opensearch.connection import ConnectionSettings, merge_connection
from doc_query.core.errors import TransportError
from doc_query.core.models import (
    ConnectionInfo,
    ConnectionOverrides,
    ConnectionTestResult,
    Exchange,
    OpenSearchConfig,
    PreparedRequest,
    RequestInfo,
    ResponseInfo,
)
from doc_query.execution.error_classifier import decode_body, format_error, raw_headers


logger = logging.getLogger(__name__)

HEALTH_ENDPOINT = "/_cluster/health"


class OpenSearchExecutor:
    """
    Executes requests against an OpenSearch cluster.

    Implements the IQueryTransport interface. A new httpx client is built
    for every call from the base configuration merged with the call's
    overrides, so concurrent calls share nothing.
    """

    def __init__(
        self,
        config: OpenSearchConfig,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize OpenSearch executor.

        Args:
            config: Base connection configuration
            transport: httpx transport for blocking calls (tests pass a MockTransport)
            async_transport: httpx transport for async calls
        """
        self.config = config
        self.transport = transport
        self.async_transport = async_transport

    def settings(self, overrides: Optional[ConnectionOverrides] = None) -> ConnectionSettings:
        return merge_connection(self.config, overrides)

    def connection_info(self, overrides: Optional[ConnectionOverrides] = None) -> ConnectionInfo:
        return self.settings(overrides).info()

    def _client_options(self, settings: ConnectionSettings, timeout: int) -> Dict[str, Any]:
        return {
            "base_url": settings.endpoint,
            "headers": settings.auth_headers(),
            "timeout": httpx.Timeout(timeout / 1000),
        }

    @staticmethod
    def _build_request(client, request: PreparedRequest) -> httpx.Request:
        if request.body is None:
            return client.build_request(request.method, request.endpoint)
        return client.build_request(
            request.method,
            request.endpoint,
            content=request.body.encode("utf-8"),
            headers={"Content-Type": request.content_type},
        )

    @staticmethod
    def _request_info(http_request: httpx.Request, request: PreparedRequest) -> RequestInfo:
        return RequestInfo(
            method=http_request.method,
            endpoint=request.endpoint,
            headers=raw_headers(http_request.headers),
            body=request.body,
        )

    @staticmethod
    def _exchange(
        response: httpx.Response,
        request_info: RequestInfo,
        settings: ConnectionSettings,
        timeout: int,
    ) -> Exchange:
        response_info = ResponseInfo(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=raw_headers(response.headers),
        )
        data = decode_body(response)

        if response.status_code >= 400:
            raise TransportError(
                f"HTTP {response.status_code}",
                request=request_info,
                response=response_info,
                response_data=data,
                timeout=timeout,
                connection=settings.info(),
            )

        return Exchange(
            request_info=request_info,
            response_info=response_info,
            data=data,
            connection_info=settings.info(),
        )

    def send(
        self,
        request: PreparedRequest,
        overrides: Optional[ConnectionOverrides] = None,
        timeout: Optional[int] = None,
    ) -> Exchange:
        """
        Send a request and wait for the response.

        Args:
            request: Prepared request
            overrides: Per-query connection overrides
            timeout: Per-query timeout in milliseconds

        Returns:
            Exchange with request/response introspection

        Raises:
            TransportError: On network failure or HTTP status >= 400
        """
        settings = self.settings(overrides)
        effective_timeout = timeout or settings.timeout

        with httpx.Client(transport=self.transport, **self._client_options(settings, effective_timeout)) as client:
            http_request = self._build_request(client, request)
            request_info = self._request_info(http_request, request)
            logger.debug("%s %s%s", request.method, settings.endpoint, request.endpoint)

            try:
                response = client.send(http_request)
            except httpx.RequestError as e:
                raise TransportError(
                    str(e) or e.__class__.__name__,
                    request=request_info,
                    timeout=effective_timeout,
                    connection=settings.info(),
                ) from e

            return self._exchange(response, request_info, settings, effective_timeout)

    async def send_async(
        self,
        request: PreparedRequest,
        overrides: Optional[ConnectionOverrides] = None,
        timeout: Optional[int] = None,
    ) -> Exchange:
        """Async version of send()."""
        settings = self.settings(overrides)
        effective_timeout = timeout or settings.timeout

        async with httpx.AsyncClient(
            transport=self.async_transport, **self._client_options(settings, effective_timeout)
        ) as client:
            http_request = self._build_request(client, request)
            request_info = self._request_info(http_request, request)
            logger.debug("%s %s%s", request.method, settings.endpoint, request.endpoint)

            try:
                response = await client.send(http_request)
            except httpx.RequestError as e:
                raise TransportError(
                    str(e) or e.__class__.__name__,
                    request=request_info,
                    timeout=effective_timeout,
                    connection=settings.info(),
                ) from e

            return self._exchange(response, request_info, settings, effective_timeout)

    def test_connection(
        self, overrides: Optional[ConnectionOverrides] = None
    ) -> ConnectionTestResult:
        """
        Check cluster health with GET /_cluster/health.

        Args:
            overrides: Per-query connection overrides to test instead of the base

        Returns:
            ConnectionTestResult with cluster name and status
        """
        try:
            exchange = self.send(PreparedRequest(method="GET", endpoint=HEALTH_ENDPOINT), overrides)
        except (TransportError, httpx.InvalidURL) as e:
            return ConnectionTestResult(success=False, error=format_error(e))

        health = exchange.data if isinstance(exchange.data, dict) else {}
        version = health.get("version")
        return ConnectionTestResult(
            success=True,
            cluster_name=health.get("cluster_name"),
            status=health.get("status"),
            version=version.get("number") if isinstance(version, dict) else None,
        )
