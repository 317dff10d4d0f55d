"""
reStructuredText block extraction.

Implements IBlockExtractor for `.. code-block::` / `.. sourcecode::`
directives. The document is parsed with docutils; if docutils cannot parse
it, a line scan over the raw text is used instead.
"""

import logging
import re
import textwrap
from dataclasses import dataclass
from typing import List, Optional, Set

from docutils import nodes
from docutils.core import publish_doctree

from doc_query.parsing.base import BaseExtractor, CONFIG_LANGUAGES, QUERY_LANGUAGES, RawBlock


logger = logging.getLogger(__name__)

DIRECTIVE_NAMES = ("code-block", "sourcecode")

DIRECTIVE_LINE = re.compile(
    r"^(?P<indent>[ \t]*)\.\.[ \t]+(?P<name>code-block|sourcecode|code)::[ \t]*(?P<language>\S*)[ \t]*$"
)
OPTION_LINE = re.compile(r"^\s*:[\w-]+:")

RECOGNIZED_LANGUAGES = set(QUERY_LANGUAGES) | set(CONFIG_LANGUAGES)

# Error-level system messages stay in the doctree; nothing is written out.
DOCUTILS_SETTINGS = {
    "report_level": 3,
    "halt_level": 5,
    "warning_stream": False,
    "syntax_highlight": "none",
    "file_insertion_enabled": False,
    "raw_enabled": False,
    "_disable_config": True,
}


@dataclass(frozen=True)
class DirectiveSpan:
    """A code directive located in the raw text."""

    name: str
    language: str
    line: int  # zero-based line of the `..` marker
    start: int
    end: int
    content: str

    def to_raw_block(self) -> RawBlock:
        return RawBlock(
            language=self.language,
            content=self.content,
            start=self.start,
            end=self.end,
        )


@dataclass(frozen=True)
class RstParseOutcome:
    """Result of the docutils parse: a doctree or an error message."""

    tree: Optional[nodes.document] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.tree is not None


def parse_rst_tree(text: str) -> RstParseOutcome:
    """Parse text into a docutils doctree without raising."""
    try:
        tree = publish_doctree(text, settings_overrides=dict(DOCUTILS_SETTINGS))
    except Exception as exc:
        return RstParseOutcome(error=str(exc) or exc.__class__.__name__)
    return RstParseOutcome(tree=tree)


def scan_directives(text: str) -> List[DirectiveSpan]:
    """
    Locate code directives and their bodies in raw text.

    A body is every following line that is blank or indented deeper than
    the directive; it ends at the next line that is not (or at EOF). The
    span ends at the last non-blank body line.
    """
    raw_lines = text.split("\n")
    line_starts = []
    offset = 0
    for raw_line in raw_lines:
        line_starts.append(offset)
        offset += len(raw_line) + 1

    lines = [raw_line.rstrip("\r") for raw_line in raw_lines]
    spans = []
    number = 0

    while number < len(lines):
        match = DIRECTIVE_LINE.match(lines[number])
        if not match:
            number += 1
            continue

        indent = len(match.group("indent").expandtabs(8))
        start = line_starts[number] + len(match.group("indent"))
        end = line_starts[number] + len(lines[number].rstrip())

        body = []
        cursor = number + 1
        while cursor < len(lines):
            line = lines[cursor]
            if line.strip() and len(line.expandtabs(8)) - len(line.expandtabs(8).lstrip()) <= indent:
                break
            body.append(line)
            if line.strip():
                end = line_starts[cursor] + len(line.rstrip())
            cursor += 1

        spans.append(
            DirectiveSpan(
                name=match.group("name"),
                language=match.group("language").lower(),
                line=number,
                start=start,
                end=end,
                content=_directive_content(body),
            )
        )
        number = cursor

    return spans


def _directive_content(body: List[str]) -> str:
    """Drop leading option lines and dedent a directive body."""
    lines = list(body)
    while lines and lines[0].strip() and OPTION_LINE.match(lines[0]):
        lines.pop(0)
    dedented = textwrap.dedent("\n".join(line.expandtabs(8) for line in lines))
    return dedented.strip("\n")


def _literal_text(node: nodes.literal_block) -> str:
    """Text of a code block without the line numbers added by :number-lines:."""
    return "".join(
        child.astext()
        for child in node.children
        if not (isinstance(child, nodes.inline) and "ln" in child.get("classes", []))
    )


def _normalize(content: str) -> str:
    return "\n".join(line.rstrip() for line in content.strip("\n").split("\n")).strip()


class RstExtractor(BaseExtractor):
    """
    Extracts query and configuration blocks from RST code directives.

    Metadata comments use `# Timeout: 30s`; the Markdown `--` form is
    accepted too.
    """

    METADATA_PREFIXES = ("#", "--")

    def find_blocks(self, text: str) -> List[RawBlock]:
        spans = scan_directives(text)
        outcome = parse_rst_tree(text)

        if not outcome.ok:
            logger.warning("RST parse failed, falling back to directive scan: %s", outcome.error)
            return [
                span.to_raw_block()
                for span in spans
                if span.name in DIRECTIVE_NAMES and span.language in RECOGNIZED_LANGUAGES
            ]

        return self._blocks_from_tree(outcome.tree, spans)

    def _blocks_from_tree(self, tree: nodes.document, spans: List[DirectiveSpan]) -> List[RawBlock]:
        """
        Pair doctree code blocks with the directive spans they came from.

        The tree decides which blocks exist; spans give their raw text and
        exact location. Directives docutils rejected (unknown Sphinx
        options and the like) are taken from the scan.
        """
        blocks = []
        matched: Set[int] = set()
        cursor = 0

        for node in tree.findall(nodes.literal_block):
            classes = node.get("classes", [])
            if len(classes) < 2 or classes[0] != "code":
                continue

            language = classes[1].lower()
            index = self._find_span(spans, cursor, language, _literal_text(node))
            if index is None:
                logger.debug("No directive found for %s code block", language)
                continue

            matched.add(index)
            cursor = index + 1
            span = spans[index]
            if span.name in DIRECTIVE_NAMES and language in RECOGNIZED_LANGUAGES:
                blocks.append(span.to_raw_block())

        error_lines = {
            message.get("line")
            for message in tree.findall(nodes.system_message)
            if message.get("level", 0) >= 3
        }
        for index, span in enumerate(spans):
            if index in matched or span.name not in DIRECTIVE_NAMES:
                continue
            if span.language in RECOGNIZED_LANGUAGES and span.line + 1 in error_lines:
                blocks.append(span.to_raw_block())

        return sorted(blocks, key=lambda block: block.start)

    @staticmethod
    def _find_span(
        spans: List[DirectiveSpan], cursor: int, language: str, content: str
    ) -> Optional[int]:
        candidates = [
            index for index in range(cursor, len(spans)) if spans[index].language == language
        ]
        wanted = _normalize(content)
        for index in candidates:
            if _normalize(spans[index].content) == wanted:
                return index
        if candidates:
            logger.debug("No %s directive matches the code block text, using the next one in order", language)
            return candidates[0]
        return None
