"""
Timeout strings, metadata comments and HTTP request lines.
"""

import re
from typing import Iterable, Optional, Tuple


METADATA_KEYS = ("description", "timeout", "connection", "method", "endpoint")

TIMEOUT_PATTERN = re.compile(r"^(\d+)(s|ms|m)?$", re.IGNORECASE)

HTTP_REQUEST_LINE = re.compile(
    r"^(GET|POST|PUT|DELETE|HEAD|PATCH)\s+(\S+)(?:\s+HTTP/[\d.]+)?\s*$",
    re.IGNORECASE,
)

CONFIG_ASSIGNMENT = re.compile(r"""^@(\w+)\s*=\s*['"]([^'"]*)['"]\s*$""")

_UNIT_FACTORS = {"s": 1000, "m": 60 * 1000, "ms": 1}


def parse_timeout(value: str) -> Optional[int]:
    """
    Parse a human timeout string into milliseconds.

    "30s" -> 30000, "2m" -> 120000, "500ms" -> 500, "250" -> 250.

    Args:
        value: Timeout string

    Returns:
        Milliseconds, or None if the string is not a timeout
    """
    match = TIMEOUT_PATTERN.match(value.strip())
    if not match:
        return None

    number, unit = match.groups()
    return int(number) * _UNIT_FACTORS[(unit or "ms").lower()]


def metadata_comment_pattern(prefixes: Iterable[str]) -> "re.Pattern[str]":
    """Build the pattern matching `<prefix> key: value` for the given comment prefixes."""
    alternatives = "|".join(re.escape(prefix) for prefix in prefixes)
    keys = "|".join(METADATA_KEYS)
    return re.compile(rf"^(?:{alternatives})\s*({keys}):\s*(.+)$", re.IGNORECASE)


def match_metadata_comment(
    line: str, pattern: "re.Pattern[str]"
) -> Optional[Tuple[str, str]]:
    """
    Match a metadata comment line.

    Args:
        line: Raw line (surrounding whitespace is ignored)
        pattern: Pattern from metadata_comment_pattern()

    Returns:
        (lower-cased key, stripped value) or None
    """
    match = pattern.match(line.strip())
    if not match:
        return None
    key, value = match.groups()
    return key.lower(), value.strip()


def match_http_request_line(line: str) -> Optional[Tuple[str, str]]:
    """Return (upper-cased method, path) if the line is an HTTP request line."""
    match = HTTP_REQUEST_LINE.match(line.strip())
    if not match:
        return None
    method, path = match.groups()
    return method.upper(), path
