"""
Query execution coordinator.

Validates a context, prepares the request, hands it to the transport and
turns whatever happens into a QueryResult. No exception crosses this
boundary.
"""

import logging
import time
from datetime import datetime
from typing import Optional

from doc_query.adapters.opensearch.request_builder import prepare_request
from doc_query.core.errors import DocQueryError, TransportError
from doc_query.core.interfaces import IQueryTransport
from doc_query.core.models import (
    ConnectionInfo,
    Exchange,
    PreparedRequest,
    QueryResult,
    QueryType,
    RequestInfo,
)
from doc_query.execution.context import ExecutionContext
from doc_query.execution.error_classifier import classify_error
from doc_query.execution.result_formatter import normalize_response, response_error
from doc_query.validation.validator import ValidationPipeline


logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


class QueryExecutor:
    """
    Coordinates query execution.

    Wraps a transport implementation and provides the common execution
    logic: validation, request preparation, error handling and response
    normalization.
    """

    def __init__(self, transport: IQueryTransport):
        """
        Initialize query executor.

        Args:
            transport: Backend transport implementation
        """
        self.transport = transport

    def _validate(self, context: ExecutionContext, explain: bool) -> Optional[QueryResult]:
        pipeline = ValidationPipeline.for_explain() if explain else ValidationPipeline.for_execution()
        failure = pipeline.run(context)
        if failure is None:
            return None
        logger.debug("Validation failed: %s", failure.error)
        return failure.model_copy(update={"connection_info": self._connection_info(context)})

    def _connection_info(self, context: ExecutionContext) -> Optional[ConnectionInfo]:
        try:
            return self.transport.connection_info(context.connection_overrides)
        except Exception:
            logger.debug("Could not resolve connection info", exc_info=True)
            return None

    def _prepare(self, context: ExecutionContext, explain: bool) -> PreparedRequest:
        return prepare_request(context.query, context.query_type, context.metadata, explain)

    def _success(
        self, exchange: Exchange, context: ExecutionContext, start: float, executed_at: datetime
    ) -> QueryResult:
        execution_time = _elapsed_ms(start)

        api_error = response_error(exchange.data)
        if api_error:
            return QueryResult(
                success=False,
                error=api_error,
                execution_time=execution_time,
                executed_at=executed_at,
                raw_response=exchange.data,
                request_info=exchange.request_info,
                response_info=exchange.response_info,
                connection_info=exchange.connection_info,
            )

        normalized = normalize_response(exchange.data, context.query_type)
        return QueryResult(
            success=True,
            data=normalized.data,
            execution_time=execution_time,
            executed_at=executed_at,
            row_count=normalized.row_count,
            columns=normalized.columns,
            raw_response=exchange.data,
            request_info=exchange.request_info,
            response_info=exchange.response_info,
            connection_info=exchange.connection_info,
        )

    def _failure(
        self,
        error: Exception,
        context: ExecutionContext,
        start: float,
        executed_at: datetime,
        request_info: Optional[RequestInfo] = None,
    ) -> QueryResult:
        info = classify_error(error, timeout=context.timeout)

        raw_response = info.raw_response
        if raw_response is None:
            raw_response = {"error": {"details": info.details}}

        connection_info = getattr(error, "connection", None) or self._connection_info(context)

        return QueryResult(
            success=False,
            error=info.message,
            execution_time=_elapsed_ms(start),
            executed_at=executed_at,
            raw_response=raw_response,
            request_info=info.request_info or request_info,
            response_info=info.response_info,
            connection_info=connection_info,
        )

    @staticmethod
    def _unsent_request(context: ExecutionContext) -> RequestInfo:
        if context.query_type == QueryType.API:
            return RequestInfo(
                method=context.metadata.method,
                endpoint=context.metadata.endpoint,
                body=context.query or None,
            )
        return RequestInfo(method="POST", body=context.query or None)

    def execute(self, context: ExecutionContext, explain: bool = False) -> QueryResult:
        """
        Execute a query.

        Args:
            context: Execution context
            explain: Request the execution plan instead of results

        Returns:
            QueryResult, failed results carry all captured introspection
        """
        failure = self._validate(context, explain)
        if failure is not None:
            return failure

        executed_at = datetime.now()
        start = time.perf_counter()

        try:
            request = self._prepare(context, explain)
            exchange = self.transport.send(request, context.connection_overrides, context.timeout)
        except TransportError as e:
            logger.debug("Transport error: %s", e)
            return self._failure(e, context, start, executed_at)
        except DocQueryError as e:
            return self._failure(e, context, start, executed_at, self._unsent_request(context))
        except Exception as e:
            logger.exception("Unexpected error executing %s query", context.query_type.value)
            return self._failure(e, context, start, executed_at, self._unsent_request(context))

        return self._success(exchange, context, start, executed_at)

    def execute_explain(self, context: ExecutionContext) -> QueryResult:
        """Execute the explain variant of a SQL or PPL query."""
        return self.execute(context, explain=True)

    async def execute_async(self, context: ExecutionContext, explain: bool = False) -> QueryResult:
        """
        Async version of execute().

        Runs as an ordinary coroutine, so callers can cancel it as a task.
        """
        failure = self._validate(context, explain)
        if failure is not None:
            return failure

        executed_at = datetime.now()
        start = time.perf_counter()

        try:
            request = self._prepare(context, explain)
            exchange = await self.transport.send_async(
                request, context.connection_overrides, context.timeout
            )
        except TransportError as e:
            logger.debug("Transport error: %s", e)
            return self._failure(e, context, start, executed_at)
        except DocQueryError as e:
            return self._failure(e, context, start, executed_at, self._unsent_request(context))
        except Exception as e:
            logger.exception("Unexpected error executing %s query", context.query_type.value)
            return self._failure(e, context, start, executed_at, self._unsent_request(context))

        return self._success(exchange, context, start, executed_at)

    async def execute_explain_async(self, context: ExecutionContext) -> QueryResult:
        """Async version of execute_explain()."""
        return await self.execute_async(context, explain=True)
