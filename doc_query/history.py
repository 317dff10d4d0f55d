"""
In-memory query history.

Newest entries first, bounded by the configured maximum. Persistence is
left to the host.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from doc_query.core.models import QueryResult, QueryType


class QueryHistoryItem(BaseModel):
    """One executed query."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    query: str
    query_type: QueryType
    timestamp: datetime
    result: QueryResult
    endpoint: str
    explain_result: Optional[QueryResult] = None


class HistoryStatistics(BaseModel):
    """Aggregate counts over the history."""

    total_queries: int = 0
    successful_queries: int = 0
    failed_queries: int = 0
    sql_queries: int = 0
    ppl_queries: int = 0
    average_execution_time: int = 0  # milliseconds, successful queries only


class QueryHistory:
    """Bounded, newest-first list of executed queries."""

    def __init__(self, max_items: int = 100):
        self.max_items = max_items
        self._items: List[QueryHistoryItem] = []

    def __len__(self) -> int:
        return len(self._items)

    def set_max_items(self, max_items: int):
        self.max_items = max_items
        self._trim()

    def _trim(self):
        if len(self._items) > self.max_items:
            del self._items[self.max_items:]

    def add(
        self,
        query: str,
        query_type: QueryType,
        result: QueryResult,
        endpoint: str,
        explain_result: Optional[QueryResult] = None,
    ) -> QueryHistoryItem:
        """
        Record an execution.

        Args:
            query: Query text as executed
            query_type: Type of the query
            result: Result of the execution
            endpoint: Cluster endpoint the query ran against
            explain_result: Paired explain result, if any

        Returns:
            The stored history item
        """
        item = QueryHistoryItem(
            query=query,
            query_type=query_type,
            timestamp=result.executed_at,
            result=result,
            endpoint=endpoint,
            explain_result=explain_result,
        )
        self._items.insert(0, item)
        self._trim()
        return item

    def all(self) -> List[QueryHistoryItem]:
        return list(self._items)

    def get(self, item_id: str) -> Optional[QueryHistoryItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def remove(self, item_id: str) -> bool:
        """Remove an item; False if no item had that id."""
        remaining = [item for item in self._items if item.id != item_id]
        removed = len(remaining) != len(self._items)
        self._items = remaining
        return removed

    def clear(self):
        self._items = []

    def search(self, term: str) -> List[QueryHistoryItem]:
        """Case-insensitive match on query text, query type or endpoint."""
        term = term.lower()
        return [
            item
            for item in self._items
            if term in item.query.lower()
            or term in item.query_type.value
            or term in item.endpoint.lower()
        ]

    def by_type(self, query_type: QueryType) -> List[QueryHistoryItem]:
        return [item for item in self._items if item.query_type == query_type]

    def recent(self, count: int = 10) -> List[QueryHistoryItem]:
        return self._items[:count]

    def statistics(self) -> HistoryStatistics:
        """Counts per outcome and type, and the rounded average successful execution time."""
        successful = [item for item in self._items if item.result.success]
        times = [item.result.execution_time for item in successful]

        return HistoryStatistics(
            total_queries=len(self._items),
            successful_queries=len(successful),
            failed_queries=len(self._items) - len(successful),
            sql_queries=len(self.by_type(QueryType.SQL)),
            ppl_queries=len(self.by_type(QueryType.PPL)),
            average_execution_time=round(sum(times) / len(times)) if times else 0,
        )
