import pytest
from fastapi.testclient import TestClient

from api import app, get_runner


DOCUMENT = """Intro

```sql
SELECT id, name FROM t
```

```opensearch-api
-- Method: GET
-- Endpoint: /_cat/indices
```
"""


@pytest.fixture
def client(runner):
    app.dependency_overrides[get_runner] = lambda: runner
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_parse(client):
    response = client.post("/parse", json={"text": DOCUMENT})

    assert response.status_code == 200
    body = response.json()
    assert [block["type"] for block in body["query_blocks"]] == ["sql", "opensearch-api"]
    assert body["query_blocks"][0]["content"] == "SELECT id, name FROM t"
    assert body["configuration_blocks"] == []


def test_parse_rejects_unknown_format(client):
    response = client.post("/parse", json={"text": DOCUMENT, "format": "asciidoc"})

    assert response.status_code == 400
    assert "Unknown document format" in response.json()["detail"]


def test_validate(client):
    response = client.post("/validate", json={"content": "", "query_type": "sql"})

    assert response.status_code == 200
    assert response.json() == {"valid": False, "error": "Query cannot be empty"}


def test_execute_block_under_position(client, handler, sql_response):
    handler.responses["/_plugins/_sql"] = (200, sql_response)

    response = client.post("/execute", json={"text": DOCUMENT, "line": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["block"]["type"] == "sql"
    assert body["result"]["success"] is True
    assert body["result"]["row_count"] == 2
    assert body["explain_result"] is None


def test_execute_with_explain(client, handler):
    response = client.post("/execute", json={"text": DOCUMENT, "line": 2, "explain": True})

    assert response.status_code == 200
    assert response.json()["explain_result"]["success"] is True
    assert {request.url.path for request in handler.requests} == {"/_plugins/_sql", "/_plugins/_sql/_explain"}


def test_query_failure_is_not_an_http_error(client, handler):
    handler.responses["/_cat/indices"] = (503, {"error": {"type": "cluster_block_exception"}})

    response = client.post("/execute", json={"text": DOCUMENT, "line": 7})

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["success"] is False
    assert result["error"] == "503 Service Unavailable: cluster_block_exception"


def test_execute_outside_blocks(client):
    response = client.post("/execute", json={"text": DOCUMENT, "line": 0})

    assert response.status_code == 404


def test_health(client, handler):
    handler.responses["/_cluster/health"] = (200, {"cluster_name": "docs", "status": "green"})

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["cluster_name"] == "docs"
