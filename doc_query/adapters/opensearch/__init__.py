"""OpenSearch adapter for document queries."""

from doc_query.adapters.opensearch.connection import ConnectionSettings, merge_connection
from doc_query.adapters.opensearch.executor import OpenSearchExecutor

__all__ = ["ConnectionSettings", "OpenSearchExecutor", "merge_connection"]
