import asyncio

from doc_query import DocumentQueryRunner
from doc_query.core.models import DocumentFormat, Position, QueryMetadata, QueryType
from doc_query.history import QueryHistory


DOCUMENT = """```sql
SELECT id, name FROM t
```

```connection
@endpoint = 'http://reports:9200'
```

```ppl
source=logs | head 2
```

```opensearch-api
-- Method: PUT
-- Endpoint: /logs
{"settings": {"number_of_shards": 1}}
```
"""


def test_parse_attaches_overrides(runner):
    blocks = runner.parse(DOCUMENT)

    assert [block.type for block in blocks] == [QueryType.SQL, QueryType.PPL, QueryType.API]
    assert blocks[0].connection_overrides is None
    assert blocks[1].connection_overrides.endpoint == "http://reports:9200"
    assert blocks[2].metadata.method == "PUT"


def test_configuration_blocks(runner):
    config_blocks = runner.configuration_blocks(DOCUMENT)

    assert len(config_blocks) == 1
    assert config_blocks[0].range.start == Position(line=4)


def test_execute_block_records_history(runner, handler, sql_response):
    handler.responses["/_plugins/_sql"] = (200, sql_response)
    block = runner.parse(DOCUMENT)[0]

    result = runner.execute_block(block)

    assert result.success
    assert len(runner.history) == 1
    item = runner.history.recent(1)[0]
    assert item.query == "SELECT id, name FROM t"
    assert item.query_type == QueryType.SQL
    assert item.endpoint == "http://localhost:9200"
    assert item.result == result


def test_override_endpoint_is_used_and_recorded(runner, handler):
    block = runner.parse(DOCUMENT)[1]

    result = runner.execute_block(block)

    assert result.success
    assert handler.last.url.host == "reports"
    assert runner.history.recent(1)[0].endpoint == "http://reports:9200"


def test_execute_without_recording(runner):
    runner.execute_query("SELECT 1", QueryType.SQL, record=False)

    assert len(runner.history) == 0


def test_failed_validation_is_recorded(runner, handler):
    result = runner.execute_query("", QueryType.SQL)

    assert not result.success
    assert handler.requests == []
    assert runner.history.statistics().failed_queries == 1


def test_execute_query_with_metadata(runner, handler):
    metadata = QueryMetadata(method="DELETE", endpoint="/old-logs", timeout=4000)
    result = runner.execute_query("", QueryType.API, metadata)

    assert result.success
    assert handler.last.method == "DELETE"
    assert handler.last.url.path == "/old-logs"
    assert handler.last.extensions["timeout"]["read"] == 4.0


def test_execute_with_explain(runner, handler, sql_response):
    handler.responses["/_plugins/_sql"] = (200, sql_response)
    handler.responses["/_plugins/_sql/_explain"] = (200, {"root": {"name": "ProjectOperator"}})
    block = runner.parse(DOCUMENT)[0]

    execution = runner.execute_with_explain(block)

    assert execution.result.success
    assert execution.explain_result.success
    assert execution.explain_result.data == {"root": {"name": "ProjectOperator"}}
    assert sorted(request.url.path for request in handler.requests) == [
        "/_plugins/_sql",
        "/_plugins/_sql/_explain",
    ]
    assert runner.history.recent(1)[0].explain_result == execution.explain_result


def test_execute_with_explain_skips_api_blocks(runner, handler):
    block = runner.parse(DOCUMENT)[2]

    execution = runner.execute_with_explain(block)

    assert execution.result.success
    assert execution.explain_result is None
    assert len(handler.requests) == 1


def test_explain_block_for_api_fails(runner):
    block = runner.parse(DOCUMENT)[2]

    assert runner.explain_block(block).error == "Explain is only supported for SQL and PPL queries"


def test_execute_at(runner, handler):
    execution = runner.execute_at(DOCUMENT, Position(line=10), explain=True)

    assert execution.block.type == QueryType.PPL
    assert execution.explain_result is not None
    assert handler.last.url.host == "reports"


def test_execute_at_outside_blocks(runner, handler):
    assert runner.execute_at(DOCUMENT, Position(line=3)) is None
    assert handler.requests == []


def test_async_execute_with_explain(runner, handler, sql_response):
    handler.responses["/_plugins/_sql"] = (200, sql_response)
    block = runner.parse(DOCUMENT)[0]

    execution = asyncio.run(runner.execute_with_explain_async(block))

    assert execution.result.row_count == 2
    assert execution.explain_result.success
    assert len(handler.requests) == 2
    assert len(runner.history) == 1


def test_async_execute_block(runner, handler):
    block = runner.parse(DOCUMENT)[2]

    result = asyncio.run(runner.execute_block_async(block))

    assert result.success
    assert handler.last.method == "PUT"
    assert handler.last_json() == {"settings": {"number_of_shards": 1}}


def test_test_connection(runner, handler):
    handler.responses["/_cluster/health"] = (200, {"cluster_name": "docs", "status": "yellow"})

    result = runner.test_connection()

    assert result.success
    assert result.status == "yellow"
    assert result.version is None


def test_from_endpoint():
    runner = DocumentQueryRunner.from_endpoint(
        "https://search:9200",
        auth_type="basic",
        username="admin",
        password="pw",
        document_format="rst",
        history=QueryHistory(max_items=5),
    )

    assert runner.config.endpoint == "https://search:9200"
    assert runner.config.auth.type == "basic"
    assert runner.document_format == DocumentFormat.RST
    assert runner.history.max_items == 5
    assert runner.transport.connection_info().auth_type == "basic"


def test_from_env(monkeypatch):
    monkeypatch.setenv("OPENSEARCH_ENDPOINT", "http://env:9200")

    runner = DocumentQueryRunner.from_env()

    assert runner.config.endpoint == "http://env:9200"


def test_format_result(runner, handler, sql_response):
    handler.responses["/_plugins/_sql"] = (200, sql_response)
    result = runner.execute_query("SELECT id, name FROM t", QueryType.SQL)

    output = DocumentQueryRunner.format_result(result)

    assert "| id | name |" in output
    assert "| 2 | beta |" in output
