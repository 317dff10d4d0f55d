"""Block extraction and position resolution for Markdown and RST documents."""

from doc_query.parsing.document import (
    DocumentParser,
    blocks_in_range,
    find_block_at_position,
    format_query,
    get_extractor,
    parse_configuration_blocks,
    parse_document,
    parse_document_with_overrides,
    query_preview,
    resolve_overrides_for_position,
)
from doc_query.parsing.markdown import MarkdownExtractor
from doc_query.parsing.metadata import parse_timeout
from doc_query.parsing.resolver import ConfigurationResolver, attach_overrides, resolve_for_position
from doc_query.parsing.rst import RstExtractor

__all__ = [
    "DocumentParser",
    "MarkdownExtractor",
    "RstExtractor",
    "ConfigurationResolver",
    "attach_overrides",
    "blocks_in_range",
    "find_block_at_position",
    "format_query",
    "get_extractor",
    "parse_configuration_blocks",
    "parse_document",
    "parse_document_with_overrides",
    "parse_timeout",
    "query_preview",
    "resolve_for_position",
    "resolve_overrides_for_position",
]
