"""
Document parsing entry points.

Selects the extractor for a document format and answers position queries
over the extracted blocks.
"""

import json
import re
from typing import List, Optional, Union

from doc_query.core.interfaces import IBlockExtractor
from doc_query.core.models import (
    ConfigurationBlock,
    ConnectionOverrides,
    DocumentFormat,
    Position,
    QueryBlock,
    QueryType,
    Range,
)
from doc_query.parsing.markdown import MarkdownExtractor
from doc_query.parsing.resolver import ConfigurationResolver
from doc_query.parsing.rst import RstExtractor


FormatLike = Union[DocumentFormat, str]

_EXTRACTORS = {
    DocumentFormat.MARKDOWN: MarkdownExtractor,
    DocumentFormat.RST: RstExtractor,
}


def get_extractor(document_format: FormatLike) -> IBlockExtractor:
    """
    Create the extractor for a document format.

    Args:
        document_format: DocumentFormat, language id or file name

    Returns:
        Extractor instance
    """
    return _EXTRACTORS[DocumentFormat.resolve(document_format)]()


class DocumentParser:
    """
    Parses one document format.

    Every call re-parses the given text; nothing is cached between calls.
    """

    def __init__(self, document_format: FormatLike = DocumentFormat.MARKDOWN):
        self.format = DocumentFormat.resolve(document_format)
        self.extractor = get_extractor(self.format)

    def parse(self, text: str) -> List[QueryBlock]:
        """Extract query blocks in document order."""
        return self.extractor.extract_query_blocks(text)

    def parse_configuration(self, text: str) -> List[ConfigurationBlock]:
        """Extract configuration blocks in document order."""
        return self.extractor.extract_configuration_blocks(text)

    def parse_with_overrides(self, text: str) -> List[QueryBlock]:
        """Extract query blocks with their connection overrides attached."""
        resolver = ConfigurationResolver(self.parse_configuration(text))
        return resolver.attach(self.parse(text))

    def resolve_overrides(self, text: str, position: Position) -> Optional[ConnectionOverrides]:
        """Resolve the overrides that apply to a query starting at position."""
        return ConfigurationResolver(self.parse_configuration(text)).resolve(position)

    def block_at(self, text: str, position: Position) -> Optional[QueryBlock]:
        """
        Find the query block whose range contains position.

        The returned block has its overrides attached.
        """
        for block in self.parse(text):
            if block.range.contains(position):
                block.connection_overrides = self.resolve_overrides(text, block.range.start)
                return block
        return None

    def blocks_in_range(self, text: str, selection: Range) -> List[QueryBlock]:
        """Return query blocks intersecting a range."""
        return [block for block in self.parse(text) if block.range.intersects(selection)]


def parse_document(text: str, document_format: FormatLike) -> List[QueryBlock]:
    """
    Extract query blocks from a document.

    Args:
        text: Full document text
        document_format: Markdown or reStructuredText

    Returns:
        Query blocks in document order, without overrides attached
    """
    return DocumentParser(document_format).parse(text)


def parse_document_with_overrides(text: str, document_format: FormatLike) -> List[QueryBlock]:
    """Extract query blocks and attach the nearest preceding overrides to each."""
    return DocumentParser(document_format).parse_with_overrides(text)


def parse_configuration_blocks(text: str, document_format: FormatLike) -> List[ConfigurationBlock]:
    """Extract configuration blocks from a document."""
    return DocumentParser(document_format).parse_configuration(text)


def resolve_overrides_for_position(
    text: str, document_format: FormatLike, position: Position
) -> Optional[ConnectionOverrides]:
    """
    Resolve connection overrides for a document position.

    Args:
        text: Full document text
        document_format: Markdown or reStructuredText
        position: Position of the query (usually its block start)

    Returns:
        Overrides of the closest configuration block starting before position,
        or None
    """
    return DocumentParser(document_format).resolve_overrides(text, position)


def find_block_at_position(
    text: str, document_format: FormatLike, position: Position
) -> Optional[QueryBlock]:
    """Find the query block under a position, overrides attached."""
    return DocumentParser(document_format).block_at(text, position)


def blocks_in_range(text: str, document_format: FormatLike, selection: Range) -> List[QueryBlock]:
    """Return query blocks intersecting a range, e.g. an editor selection."""
    return DocumentParser(document_format).blocks_in_range(text, selection)


def format_query(content: str, query_type: QueryType) -> str:
    """
    Tidy query text for display.

    SQL and PPL lose blank lines and surrounding whitespace per line. API
    bodies are pretty-printed when they hold one JSON document.
    """
    if query_type == QueryType.API:
        try:
            return json.dumps(json.loads(content), indent=2)
        except ValueError:
            return content

    lines = (line.strip() for line in content.split("\n"))
    return "\n".join(line for line in lines if line)


def query_preview(content: str, max_length: int = 50) -> str:
    """Collapse whitespace and truncate with an ellipsis."""
    preview = re.sub(r"\s+", " ", content).strip()
    if len(preview) <= max_length:
        return preview
    return preview[: max_length - 3] + "..."
