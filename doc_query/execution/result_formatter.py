"""
Result formatting utilities.

Normalizes the different OpenSearch response shapes into one result model
and renders results as Markdown text.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from doc_query.core.models import QueryResult, QueryType


MAX_TABLE_COLUMNS = 10
MAX_TABLE_ROWS = 100

HIT_COLUMNS = ["_index", "_id", "_score"]


class ResponseShape(str, Enum):
    """Which response shape a body was recognized as."""

    TABULAR = "tabular"  # SQL/PPL schema + datarows
    SEARCH_HITS = "search_hits"
    API_OBJECT = "api_object"
    RAW = "raw"


@dataclass
class NormalizedResponse:
    """Response body reduced to data, row count and columns."""

    shape: ResponseShape
    data: Any
    row_count: Optional[int] = None
    columns: Optional[List[str]] = None


def detect_shape(response: Any, query_type: Optional[QueryType] = None) -> ResponseShape:
    """Discriminate the response shape, checked in priority order."""
    if isinstance(response, dict):
        if isinstance(response.get("schema"), list) and isinstance(response.get("datarows"), list):
            return ResponseShape.TABULAR
        hits = response.get("hits")
        if isinstance(hits, dict) and isinstance(hits.get("hits"), list):
            return ResponseShape.SEARCH_HITS

    if query_type == QueryType.API:
        return ResponseShape.API_OBJECT

    return ResponseShape.RAW


def _leaf_paths(source: Dict[str, Any], prefix: str = "") -> List[str]:
    paths = []
    for key, value in source.items():
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            paths.extend(_leaf_paths(value, path))
        else:
            paths.append(path)
    return paths


def hit_columns(hits: List[Any]) -> List[str]:
    """Columns for search hits: hit metadata plus the first hit's source fields."""
    if not hits:
        return []

    columns = list(HIT_COLUMNS)
    source = hits[0].get("_source") if isinstance(hits[0], dict) else None
    if isinstance(source, dict):
        for path in _leaf_paths(source):
            if path not in columns:
                columns.append(path)
    return columns


def _hit_total(hits: Dict[str, Any]) -> int:
    total = hits.get("total")
    if isinstance(total, dict) and isinstance(total.get("value"), int):
        return total["value"]
    if isinstance(total, int) and not isinstance(total, bool):
        return total
    return len(hits["hits"])


def _api_row_count(response: Any) -> Optional[int]:
    # Heuristic: acknowledged, then _id, then array length.
    if isinstance(response, dict):
        if isinstance(response.get("acknowledged"), bool):
            return 1 if response["acknowledged"] else 0
        if response.get("_id"):
            return 1
    if isinstance(response, list):
        return len(response)
    return None


def normalize_response(response: Any, query_type: Optional[QueryType] = None) -> NormalizedResponse:
    """
    Normalize a response body.

    Never raises: unrecognized bodies come back as RAW with no derived
    row count or columns.

    Args:
        response: Decoded response body
        query_type: Type of the query that produced it

    Returns:
        NormalizedResponse
    """
    shape = detect_shape(response, query_type)

    if shape == ResponseShape.TABULAR:
        columns = [
            column.get("name") if isinstance(column, dict) else str(column)
            for column in response["schema"]
        ]
        rows = [
            dict(zip(columns, row)) if isinstance(row, list) else row
            for row in response["datarows"]
        ]
        return NormalizedResponse(shape, rows, len(response["datarows"]), columns)

    if shape == ResponseShape.SEARCH_HITS:
        hits = response["hits"]
        return NormalizedResponse(shape, hits["hits"], _hit_total(hits), hit_columns(hits["hits"]))

    if shape == ResponseShape.API_OBJECT:
        return NormalizedResponse(shape, response, _api_row_count(response))

    row_count = len(response) if isinstance(response, list) else None
    return NormalizedResponse(shape, response, row_count)


def response_error(response: Any) -> Optional[str]:
    """Return "type: reason" if a body carries an OpenSearch error object."""
    if isinstance(response, dict) and isinstance(response.get("error"), dict):
        error = response["error"]
        return f"{error.get('type')}: {error.get('reason')}"
    return None


def _nested_value(row: Any, path: str) -> Any:
    current = row
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def _cell_value(row: Any, column: str) -> Any:
    value = _nested_value(row, column)
    if value is None and isinstance(row, dict) and isinstance(row.get("_source"), dict):
        value = _nested_value(row["_source"], column)
    return value


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        text = json.dumps(value)
    elif isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    return text.replace("|", "\\|").replace("\n", " ")


def format_table(data: List[Any], columns: Optional[List[str]] = None) -> str:
    """Render rows as a Markdown table, capped in width and length."""
    if not data:
        return "**No results found**\n"

    if columns:
        display_columns = list(columns)
    elif isinstance(data[0], dict):
        display_columns = list(data[0].keys())
    else:
        display_columns = ["value"]
        data = [{"value": item} for item in data]

    display_columns = display_columns[:MAX_TABLE_COLUMNS]

    lines = [
        "| " + " | ".join(display_columns) + " |",
        "| " + " | ".join("---" for _ in display_columns) + " |",
    ]
    for row in data[:MAX_TABLE_ROWS]:
        lines.append("| " + " | ".join(_format_cell(_cell_value(row, column)) for column in display_columns) + " |")

    table = "\n".join(lines) + "\n"
    if len(data) > MAX_TABLE_ROWS:
        table += f"\n*Showing first {MAX_TABLE_ROWS} of {len(data)} rows*\n"
    return table + "\n"


def format_for_display(result: QueryResult, display_format: str = "table") -> str:
    """
    Render a result as Markdown text.

    Args:
        result: Query result
        display_format: "table" or "json"

    Returns:
        Markdown string
    """
    execution_time = round(result.execution_time)

    if not result.success:
        return f"❌ **Error**: {result.error}\n\n**Execution Time**: {execution_time}ms"

    output = "✅ **Query executed successfully**\n"
    output += f"**Execution Time**: {execution_time}ms\n"
    if result.row_count is not None:
        output += f"**Rows**: {result.row_count}\n"
    output += "\n"

    if display_format == "table" and isinstance(result.data, list):
        output += format_table(result.data, result.columns)
    elif result.data is not None:
        output += "**Results**:\n```json\n"
        output += json.dumps(result.data, indent=2, default=str)
        output += "\n```\n"

    return output
