"""
Extraction logic shared by the Markdown and reStructuredText extractors.

Each concrete extractor only knows how to find candidate blocks (language,
raw content, character span) in its markup. Cleaning, metadata parsing,
configuration parsing and position mapping happen here.
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from doc_query.core.models import (
    AuthOverride,
    ConfigurationBlock,
    ConnectionOverrides,
    Position,
    QueryBlock,
    QueryMetadata,
    QueryType,
    Range,
)
from doc_query.parsing.metadata import (
    CONFIG_ASSIGNMENT,
    match_http_request_line,
    match_metadata_comment,
    metadata_comment_pattern,
    parse_timeout,
)


QUERY_LANGUAGES = {query_type.value: query_type for query_type in QueryType}
CONFIG_LANGUAGES = ("config", "opensearch-config", "connection")
AUTH_TYPES = ("none", "basic", "apikey")


@dataclass(frozen=True)
class RawBlock:
    """A fenced or directive block before cleaning."""

    language: str
    content: str
    start: int  # character offset of the block start
    end: int  # character offset just past the block end


class LineIndex:
    """Maps character offsets to line/character positions and back."""

    def __init__(self, text: str):
        self._line_starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self._line_starts.append(index + 1)
        self._length = len(text)

    def position_at(self, offset: int) -> Position:
        offset = max(0, min(offset, self._length))
        line = bisect_right(self._line_starts, offset) - 1
        return Position(line=line, character=offset - self._line_starts[line])

    def offset_at(self, position: Position) -> int:
        if position.line >= len(self._line_starts):
            return self._length
        return min(self._line_starts[position.line] + position.character, self._length)


class BaseExtractor:
    """
    Common base for block extractors.

    Subclasses set METADATA_PREFIXES and implement find_blocks().
    """

    METADATA_PREFIXES: Tuple[str, ...] = ("--",)

    def __init__(self):
        self._metadata_pattern = metadata_comment_pattern(self.METADATA_PREFIXES)

    def find_blocks(self, text: str) -> List[RawBlock]:
        """Find candidate blocks with any recognized query or config language."""
        raise NotImplementedError

    def extract_query_blocks(self, text: str) -> List[QueryBlock]:
        """
        Extract query blocks from document text.

        Args:
            text: Full document text

        Returns:
            Query blocks in document order
        """
        index = LineIndex(text)
        blocks = []

        for raw in self.find_blocks(text):
            query_type = QUERY_LANGUAGES.get(raw.language)
            if query_type is None:
                continue

            block = self.build_query_block(raw, query_type, index)
            if block is not None:
                blocks.append(block)

        return blocks

    def extract_configuration_blocks(self, text: str) -> List[ConfigurationBlock]:
        """
        Extract configuration blocks from document text.

        Blocks without any recognized setting are dropped.

        Args:
            text: Full document text

        Returns:
            Configuration blocks in document order
        """
        index = LineIndex(text)
        blocks = []

        for raw in self.find_blocks(text):
            if raw.language not in CONFIG_LANGUAGES:
                continue

            config = self.parse_connection_overrides(raw.content)
            if config.is_empty():
                continue

            blocks.append(
                ConfigurationBlock(
                    config=config,
                    range=Range(start=index.position_at(raw.start), end=index.position_at(raw.end)),
                    position=raw.start,
                )
            )

        return blocks

    def build_query_block(
        self, raw: RawBlock, query_type: QueryType, index: LineIndex
    ) -> Optional[QueryBlock]:
        """Clean a candidate block; None if it holds nothing executable."""
        content = self.clean_content(raw.content, query_type)
        metadata = self.parse_metadata(raw.content, query_type)

        is_bodiless_api = query_type == QueryType.API and bool(metadata.method or metadata.endpoint)
        if not content and not is_bodiless_api:
            return None

        return QueryBlock(
            type=query_type,
            content=content,
            range=Range(start=index.position_at(raw.start), end=index.position_at(raw.end)),
            metadata=metadata,
        )

    def is_metadata_comment(self, line: str) -> bool:
        return match_metadata_comment(line, self._metadata_pattern) is not None

    def find_request_line(self, lines: List[str]) -> Optional[int]:
        """
        Locate the HTTP request line of an API block.

        Only the first substantive line qualifies; blank lines and metadata
        comments before it are skipped.
        """
        for number, line in enumerate(lines):
            if not line.strip() or self.is_metadata_comment(line):
                continue
            if match_http_request_line(line):
                return number
            return None
        return None

    def clean_content(self, content: str, query_type: QueryType) -> str:
        """
        Strip blank lines, metadata comments and the API request line.

        Other lines are kept verbatim, ordinary comments included.
        """
        lines = content.split("\n")
        request_line = self.find_request_line(lines) if query_type == QueryType.API else None

        kept = []
        for number, line in enumerate(lines):
            if not line.strip():
                continue
            if self.is_metadata_comment(line):
                continue
            if number == request_line:
                continue
            kept.append(line.rstrip("\r"))

        return "\n".join(kept).strip()

    def parse_metadata(self, content: str, query_type: QueryType) -> QueryMetadata:
        """
        Parse metadata from a block's raw content.

        For API blocks the request line provides method and endpoint first;
        explicit metadata comments then override them.
        """
        fields: Dict[str, Any] = {}
        lines = content.split("\n")

        if query_type == QueryType.API:
            request_line = self.find_request_line(lines)
            if request_line is not None:
                fields["method"], fields["endpoint"] = match_http_request_line(lines[request_line])

        for line in lines:
            matched = match_metadata_comment(line, self._metadata_pattern)
            if matched is None:
                continue

            key, value = matched
            if key == "timeout":
                timeout = parse_timeout(value)
                if timeout:
                    fields["timeout"] = timeout
            elif key == "method":
                fields["method"] = value.upper()
            else:
                fields[key] = value

        return QueryMetadata(**fields)

    @staticmethod
    def parse_connection_overrides(content: str) -> ConnectionOverrides:
        """
        Parse `@key = 'value'` lines of a configuration block.

        Recognized keys: endpoint, auth_type/authtype, username, password,
        api_key/apikey, timeout. Unknown keys and invalid auth types are ignored.
        """
        fields: Dict[str, Any] = {}
        auth: Dict[str, str] = {}

        for line in content.split("\n"):
            match = CONFIG_ASSIGNMENT.match(line.strip())
            if not match:
                continue

            key, value = match.group(1).lower(), match.group(2)

            if key == "endpoint":
                fields["endpoint"] = value
            elif key in ("auth_type", "authtype"):
                if value.lower() in AUTH_TYPES:
                    auth["type"] = value.lower()
            elif key == "username":
                auth["username"] = value
            elif key == "password":
                auth["password"] = value
            elif key in ("api_key", "apikey"):
                auth["api_key"] = value
            elif key == "timeout":
                timeout = parse_timeout(value)
                if timeout:
                    fields["timeout"] = timeout

        if auth:
            fields["auth"] = AuthOverride(**auth)

        return ConnectionOverrides(**fields)
