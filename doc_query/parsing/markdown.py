"""
Markdown block extraction.

Implements IBlockExtractor for triple-backtick code fences.
"""

import re
from typing import List, Optional

from doc_query.parsing.base import BaseExtractor, CONFIG_LANGUAGES, QUERY_LANGUAGES, RawBlock


FENCE_OPEN = re.compile(r"^```(?P<tag>[^\s`]*)(?P<rest>.*)$")
FENCE_CLOSE = re.compile(r"^```\s*$")

RECOGNIZED_TAGS = set(QUERY_LANGUAGES) | set(CONFIG_LANGUAGES)


class MarkdownExtractor(BaseExtractor):
    """
    Extracts query and configuration blocks from Markdown fences.

    Metadata comments use the SQL comment form: `-- Timeout: 30s`.
    """

    METADATA_PREFIXES = ("--",)

    def find_blocks(self, text: str) -> List[RawBlock]:
        """
        Scan fences line by line.

        Every fence is tracked, recognized or not, so fences nested in
        other code blocks are never picked up. Unclosed fences are dropped.
        """
        blocks = []
        offset = 0
        open_tag: Optional[str] = None
        open_start = 0
        body: List[str] = []

        for raw_line in text.split("\n"):
            line = raw_line.rstrip("\r")
            line_start = offset
            offset += len(raw_line) + 1

            if open_tag is None:
                match = FENCE_OPEN.match(line)
                if match:
                    tag = match.group("tag").lower()
                    recognized = tag in RECOGNIZED_TAGS and not match.group("rest").strip()
                    open_tag = tag if recognized else ""
                    open_start = line_start
                    body = []
                continue

            if FENCE_CLOSE.match(line):
                if open_tag:
                    blocks.append(
                        RawBlock(
                            language=open_tag,
                            content="\n".join(body),
                            start=open_start,
                            end=line_start + len(line.rstrip()),
                        )
                    )
                open_tag = None
                continue

            body.append(line)

        return blocks
