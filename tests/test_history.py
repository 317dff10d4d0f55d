from doc_query.core.models import QueryResult, QueryType
from doc_query.history import QueryHistory


def ok(execution_time=10):
    return QueryResult(success=True, data=[], execution_time=execution_time)


def failed():
    return QueryResult(success=False, error="boom", execution_time=99)


def test_newest_first_and_bounded():
    history = QueryHistory(max_items=2)
    first = history.add("SELECT 1", QueryType.SQL, ok(), "http://a:9200")
    second = history.add("SELECT 2", QueryType.SQL, ok(), "http://a:9200")
    third = history.add("SELECT 3", QueryType.SQL, ok(), "http://a:9200")

    assert [item.id for item in history.all()] == [third.id, second.id]
    assert history.get(first.id) is None
    assert len(history) == 2


def test_shrinking_max_items_trims():
    history = QueryHistory()
    for i in range(5):
        history.add(f"SELECT {i}", QueryType.SQL, ok(), "http://a:9200")

    history.set_max_items(3)

    assert [item.query for item in history.all()] == ["SELECT 4", "SELECT 3", "SELECT 2"]


def test_item_fields():
    result = ok()
    explain = QueryResult(success=True, data={"plan": {}})
    history = QueryHistory()

    item = history.add("source=logs", QueryType.PPL, result, "http://a:9200", explain)

    assert item.timestamp == result.executed_at
    assert item.explain_result == explain
    assert history.get(item.id) == item
    assert len(item.id) == 32


def test_remove_and_clear():
    history = QueryHistory()
    item = history.add("SELECT 1", QueryType.SQL, ok(), "http://a:9200")
    history.add("SELECT 2", QueryType.SQL, ok(), "http://a:9200")

    assert history.remove(item.id)
    assert not history.remove(item.id)
    assert len(history) == 1

    history.clear()
    assert history.all() == []


def test_search_matches_query_type_and_endpoint():
    history = QueryHistory()
    history.add("SELECT * FROM Logs", QueryType.SQL, ok(), "http://prod:9200")
    history.add("source=metrics", QueryType.PPL, ok(), "http://staging:9200")
    history.add("", QueryType.API, ok(), "http://prod:9200")

    assert [item.query for item in history.search("logs")] == ["SELECT * FROM Logs"]
    assert [item.query for item in history.search("PPL")] == ["source=metrics"]
    assert len(history.search("PROD")) == 2


def test_recent_and_by_type():
    history = QueryHistory()
    for i in range(12):
        history.add(f"SELECT {i}", QueryType.SQL, ok(), "http://a:9200")
    history.add("source=x", QueryType.PPL, ok(), "http://a:9200")

    assert len(history.recent()) == 10
    assert history.recent(1)[0].query == "source=x"
    assert len(history.by_type(QueryType.SQL)) == 12


def test_statistics():
    history = QueryHistory()
    history.add("SELECT 1", QueryType.SQL, ok(10), "http://a:9200")
    history.add("SELECT 2", QueryType.SQL, ok(15), "http://a:9200")
    history.add("source=x", QueryType.PPL, failed(), "http://a:9200")
    history.add("", QueryType.API, ok(20), "http://a:9200")

    stats = history.statistics()

    assert stats.total_queries == 4
    assert stats.successful_queries == 3
    assert stats.failed_queries == 1
    assert stats.sql_queries == 2
    assert stats.ppl_queries == 1
    assert stats.average_execution_time == 15


def test_statistics_empty():
    stats = QueryHistory().statistics()

    assert stats.total_queries == 0
    assert stats.average_execution_time == 0
