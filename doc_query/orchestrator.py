"""
Document query runner - main entry point.

Coordinates parsing, override resolution, execution, explain and history
for documents with embedded OpenSearch queries.
"""

import asyncio
import logging
from typing import List, Optional, Union

from pydantic import BaseModel

from doc_query.core.interfaces import IQueryTransport
from doc_query.core.models import (
    ConfigurationBlock,
    ConnectionOverrides,
    ConnectionTestResult,
    DocumentFormat,
    OpenSearchConfig,
    Position,
    QueryBlock,
    QueryMetadata,
    QueryResult,
    QueryType,
    ValidationResult,
)
from doc_query.execution.context import ExecutionContext
from doc_query.execution.executor import QueryExecutor
from doc_query.execution.result_formatter import format_for_display
from doc_query.history import QueryHistory
from doc_query.parsing.document import DocumentParser
from doc_query.validation.validator import EXPLAIN_TYPES, validate_query


logger = logging.getLogger(__name__)

FormatLike = Union[DocumentFormat, str]


class BlockExecution(BaseModel):
    """A query block with its result and, when requested, its explain result."""

    block: QueryBlock
    result: QueryResult
    explain_result: Optional[QueryResult] = None


class DocumentQueryRunner:
    """
    Main entry point for running queries embedded in documents.

    Holds the base connection configuration; every execution receives it
    explicitly together with the block's own overrides.
    """

    def __init__(
        self,
        config: OpenSearchConfig,
        transport: Optional[IQueryTransport] = None,
        document_format: FormatLike = DocumentFormat.MARKDOWN,
        history: Optional[QueryHistory] = None,
    ):
        """
        Initialize runner.

        Args:
            config: Base connection configuration
            transport: Backend transport (defaults to OpenSearchExecutor)
            document_format: Default format of parsed documents
            history: History to record executions in
        """
        if transport is None:
            from doc_query.adapters.opensearch import OpenSearchExecutor

            transport = OpenSearchExecutor(config)

        self.config = config
        self.transport = transport
        self.document_format = DocumentFormat.resolve(document_format)
        self.query_executor = QueryExecutor(transport)
        self.history = history if history is not None else QueryHistory(config.max_history_items)

    @classmethod
    def from_env(cls, **kwargs) -> "DocumentQueryRunner":
        """
        Create runner configured from OPENSEARCH_* environment variables.

        Args:
            **kwargs: Passed through to the constructor

        Returns:
            Configured DocumentQueryRunner
        """
        return cls(OpenSearchConfig.from_env(), **kwargs)

    @classmethod
    def from_endpoint(
        cls,
        endpoint: str,
        auth_type: str = "none",
        username: str = "",
        password: str = "",
        api_key: str = "",
        timeout: int = 30000,
        **kwargs,
    ) -> "DocumentQueryRunner":
        """
        Create runner for an OpenSearch endpoint.

        Args:
            endpoint: Cluster URL
            auth_type: none, basic or apikey
            username: Basic auth user name
            password: Basic auth password
            api_key: API key
            timeout: Request timeout in milliseconds
            **kwargs: Passed through to the constructor

        Returns:
            Configured DocumentQueryRunner
        """
        config = OpenSearchConfig(
            endpoint=endpoint,
            auth={"type": auth_type, "username": username, "password": password, "api_key": api_key},
            timeout=timeout,
        )
        return cls(config, **kwargs)

    def _parser(self, document_format: Optional[FormatLike]) -> DocumentParser:
        return DocumentParser(document_format or self.document_format)

    def parse(self, text: str, document_format: Optional[FormatLike] = None) -> List[QueryBlock]:
        """Extract query blocks with their overrides attached."""
        return self._parser(document_format).parse_with_overrides(text)

    def configuration_blocks(
        self, text: str, document_format: Optional[FormatLike] = None
    ) -> List[ConfigurationBlock]:
        return self._parser(document_format).parse_configuration(text)

    def block_at(
        self, text: str, position: Position, document_format: Optional[FormatLike] = None
    ) -> Optional[QueryBlock]:
        return self._parser(document_format).block_at(text, position)

    def validate(self, block: QueryBlock) -> ValidationResult:
        return validate_query(block.content, block.type, block.metadata)

    def _record(self, context: ExecutionContext, result: QueryResult, explain_result: Optional[QueryResult] = None):
        endpoint = result.connection_info.endpoint if result.connection_info else self.config.endpoint
        self.history.add(context.query, context.query_type, result, endpoint, explain_result)

    def execute(self, context: ExecutionContext, record: bool = True) -> QueryResult:
        """
        Execute a context and optionally record it in history.

        Args:
            context: Execution context
            record: Add the result to history

        Returns:
            QueryResult
        """
        result = self.query_executor.execute(context)
        if record:
            self._record(context, result)
        return result

    def execute_block(self, block: QueryBlock, record: bool = True) -> QueryResult:
        """Execute a parsed block with its attached overrides."""
        return self.execute(ExecutionContext.from_block(block), record)

    def execute_query(
        self,
        query: str,
        query_type: QueryType,
        metadata: Optional[QueryMetadata] = None,
        connection_overrides: Optional[ConnectionOverrides] = None,
        record: bool = True,
    ) -> QueryResult:
        """
        Execute query text directly, without a document.

        Args:
            query: Query text or API body
            query_type: Type of the query
            metadata: Method, endpoint and timeout for API queries
            connection_overrides: Overrides of the base connection
            record: Add the result to history

        Returns:
            QueryResult
        """
        metadata = metadata or QueryMetadata()
        context = ExecutionContext(
            query=query,
            query_type=query_type,
            timeout=metadata.timeout,
            metadata=metadata,
            connection_overrides=connection_overrides,
        )
        return self.execute(context, record)

    def explain_block(self, block: QueryBlock) -> QueryResult:
        """Execute the explain variant of a SQL or PPL block."""
        return self.query_executor.execute_explain(ExecutionContext.from_block(block))

    def execute_with_explain(self, block: QueryBlock, record: bool = True) -> BlockExecution:
        """
        Execute a block together with its explain query.

        API blocks have no explain variant; only the query itself runs.
        """
        context = ExecutionContext.from_block(block)
        result = self.query_executor.execute(context)

        explain_result = None
        if context.query_type in EXPLAIN_TYPES:
            explain_result = self.query_executor.execute_explain(context)

        if record:
            self._record(context, result, explain_result)
        return BlockExecution(block=block, result=result, explain_result=explain_result)

    def execute_at(
        self,
        text: str,
        position: Position,
        document_format: Optional[FormatLike] = None,
        explain: bool = False,
    ) -> Optional[BlockExecution]:
        """
        Execute the block under a position.

        Returns:
            BlockExecution, or None if no block contains the position
        """
        block = self.block_at(text, position, document_format)
        if block is None:
            return None
        if explain:
            return self.execute_with_explain(block)
        return BlockExecution(block=block, result=self.execute_block(block))

    async def execute_async(self, context: ExecutionContext, record: bool = True) -> QueryResult:
        """Async version of execute()."""
        result = await self.query_executor.execute_async(context)
        if record:
            self._record(context, result)
        return result

    async def execute_block_async(self, block: QueryBlock, record: bool = True) -> QueryResult:
        return await self.execute_async(ExecutionContext.from_block(block), record)

    async def execute_with_explain_async(self, block: QueryBlock, record: bool = True) -> BlockExecution:
        """
        Async version of execute_with_explain().

        The query and its explain run concurrently.
        """
        context = ExecutionContext.from_block(block)

        if context.query_type in EXPLAIN_TYPES:
            result, explain_result = await asyncio.gather(
                self.query_executor.execute_async(context),
                self.query_executor.execute_explain_async(context),
            )
        else:
            result, explain_result = await self.query_executor.execute_async(context), None

        if record:
            self._record(context, result, explain_result)
        return BlockExecution(block=block, result=result, explain_result=explain_result)

    def test_connection(self, overrides: Optional[ConnectionOverrides] = None) -> ConnectionTestResult:
        """Check the health of the cluster (or an override endpoint)."""
        result = self.transport.test_connection(overrides)
        if not result.success:
            logger.info("Connection test failed: %s", result.error)
        return result

    @staticmethod
    def format_result(result: QueryResult, display_format: str = "table") -> str:
        return format_for_display(result, display_format)
