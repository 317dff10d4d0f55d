"""
Configuration resolution.

A query picks up the connection overrides of the nearest configuration
block that starts before it. Overrides only flow downward.
"""

from bisect import bisect_left
from typing import List, Optional, Sequence

from doc_query.core.models import ConfigurationBlock, ConnectionOverrides, Position, QueryBlock


class ConfigurationResolver:
    """
    Resolves overrides for document positions.

    Configuration blocks are indexed by start position once, so each lookup
    is a binary search.
    """

    def __init__(self, config_blocks: Sequence[ConfigurationBlock]):
        """
        Initialize resolver.

        Args:
            config_blocks: Configuration blocks of one document, any order
        """
        self._blocks = sorted(config_blocks, key=lambda block: block.range.start.sort_key())
        self._starts = [block.range.start.sort_key() for block in self._blocks]

    def __len__(self) -> int:
        return len(self._blocks)

    def block_for(self, position: Position) -> Optional[ConfigurationBlock]:
        """Return the configuration block starting closest before position."""
        index = bisect_left(self._starts, position.sort_key())
        if index == 0:
            return None
        return self._blocks[index - 1]

    def resolve(self, position: Position) -> Optional[ConnectionOverrides]:
        """
        Resolve overrides for a position.

        Args:
            position: Start position of a query block

        Returns:
            Copy of the preceding block's overrides, or None
        """
        block = self.block_for(position)
        if block is None:
            return None
        return block.config.model_copy(deep=True)

    def attach(self, query_blocks: List[QueryBlock]) -> List[QueryBlock]:
        """Set connection_overrides on every query block in place."""
        for block in query_blocks:
            block.connection_overrides = self.resolve(block.range.start)
        return query_blocks


def resolve_for_position(
    config_blocks: Sequence[ConfigurationBlock], position: Position
) -> Optional[ConnectionOverrides]:
    """Resolve overrides for one position against a list of configuration blocks."""
    return ConfigurationResolver(config_blocks).resolve(position)


def attach_overrides(
    query_blocks: List[QueryBlock], config_blocks: Sequence[ConfigurationBlock]
) -> List[QueryBlock]:
    """Attach the nearest preceding overrides to each query block."""
    return ConfigurationResolver(config_blocks).attach(query_blocks)
