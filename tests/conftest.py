import json

import httpx
import pytest

from doc_query.adapters.opensearch import OpenSearchExecutor
from doc_query.core.models import OpenSearchConfig
from doc_query.orchestrator import DocumentQueryRunner


class RecordingHandler:
    """httpx MockTransport handler that records requests and replays canned responses."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.get(request.url.path)
        if response is None:
            return httpx.Response(200, json={"acknowledged": True})
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        status, body = response
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


@pytest.fixture
def config():
    """Base configuration pointing at a local cluster."""
    return OpenSearchConfig(endpoint="http://localhost:9200", timeout=30000)


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def transport(config, handler):
    """OpenSearch executor wired to the recording handler."""
    mock = httpx.MockTransport(handler)
    return OpenSearchExecutor(config, transport=mock, async_transport=mock)


@pytest.fixture
def runner(config, transport):
    return DocumentQueryRunner(config, transport=transport)


@pytest.fixture
def sql_response():
    return {
        "schema": [{"name": "id", "type": "integer"}, {"name": "name", "type": "keyword"}],
        "datarows": [[1, "alpha"], [2, "beta"]],
        "total": 2,
        "size": 2,
        "status": 200,
    }


@pytest.fixture
def search_response():
    return {
        "took": 3,
        "hits": {
            "total": {"value": 42, "relation": "eq"},
            "hits": [
                {
                    "_index": "logs",
                    "_id": "1",
                    "_score": 1.0,
                    "_source": {"user": {"name": "ann", "roles": ["admin"]}, "status": 200},
                },
                {
                    "_index": "logs",
                    "_id": "2",
                    "_score": 0.5,
                    "_source": {"user": {"name": "bob", "roles": []}, "status": 404},
                },
            ],
        },
    }
