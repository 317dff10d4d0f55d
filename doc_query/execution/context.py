"""
Execution context.

Everything one execution needs, fixed once built.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from doc_query.core.models import ConnectionOverrides, QueryBlock, QueryMetadata, QueryType


class ExecutionContext(BaseModel):
    """Immutable inputs of a single query execution."""

    model_config = ConfigDict(frozen=True)

    query: str
    query_type: QueryType
    timeout: Optional[int] = None  # milliseconds
    metadata: QueryMetadata = Field(default_factory=QueryMetadata)
    connection_overrides: Optional[ConnectionOverrides] = None

    @classmethod
    def from_block(
        cls,
        block: QueryBlock,
        connection_overrides: Optional[ConnectionOverrides] = None,
    ) -> "ExecutionContext":
        """
        Build a context from a parsed block.

        Args:
            block: Query block, typically with overrides attached
            connection_overrides: Overrides to use instead of the block's own

        Returns:
            ExecutionContext holding copies of the block's metadata and overrides
        """
        overrides = connection_overrides or block.connection_overrides
        return cls(
            query=block.content,
            query_type=block.type,
            timeout=block.metadata.timeout,
            metadata=block.metadata.model_copy(deep=True),
            connection_overrides=overrides.model_copy(deep=True) if overrides else None,
        )
