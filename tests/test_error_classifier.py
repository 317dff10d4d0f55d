import httpx

from doc_query.core.errors import TransportError
from doc_query.core.models import RequestInfo, ResponseInfo
from doc_query.execution.error_classifier import (
    NETWORK_ERROR_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    classify_error,
    format_error,
)


REQUEST = RequestInfo(method="GET", endpoint="/missing/_search", headers={"Accept": "*/*"})


def test_http_error_prefers_reason():
    error = TransportError(
        "HTTP 404",
        request=REQUEST,
        response=ResponseInfo(status=404, status_text="Not Found"),
        response_data={"error": {"type": "x", "reason": "y"}},
    )
    info = classify_error(error)

    assert info.message == "404 Not Found: y"
    assert info.response_info.status == 404
    assert info.raw_response == {"error": {"type": "x", "reason": "y"}}
    assert info.request_info == REQUEST
    assert info.details == {}


def test_http_error_falls_back_to_type_then_status():
    with_type = TransportError(
        "HTTP 400",
        response=ResponseInfo(status=400, status_text="Bad Request"),
        response_data={"error": {"type": "parsing_exception"}},
    )
    bare = TransportError("HTTP 502", response=ResponseInfo(status=502, status_text="Bad Gateway"))

    assert format_error(with_type) == "400 Bad Request: parsing_exception"
    assert format_error(bare) == "502 Bad Gateway"


def test_network_error_keeps_request():
    error = TransportError("connection refused", request=REQUEST, timeout=5000)
    info = classify_error(error)

    assert info.message == NETWORK_ERROR_MESSAGE
    assert info.request_info == REQUEST
    assert info.response_info is None
    assert info.raw_response is None
    assert info.details["error_type"] == "Network/Connection Error"
    assert info.details["timeout"] == "5000ms"
    assert info.details["method"] == "GET"


def test_connect_error_details():
    try:
        raise TransportError("refused", request=REQUEST) from httpx.ConnectError("refused")
    except TransportError as error:
        info = classify_error(error)

    assert info.details["details"].startswith("Connection refused")


def test_plain_exception_uses_own_message():
    info = classify_error(ValueError("bad input"))

    assert info.message == "bad input"
    assert info.request_info is None
    assert info.details["error_type"] == "Request Setup Error"


def test_unknown_error_message():
    assert format_error(RuntimeError()) == UNKNOWN_ERROR_MESSAGE


def test_httpx_status_error():
    request = httpx.Request("POST", "http://localhost:9200/_plugins/_sql")
    response = httpx.Response(
        403,
        json={"error": {"type": "security_exception", "reason": "no permissions"}},
        request=request,
    )
    error = httpx.HTTPStatusError("forbidden", request=request, response=response)
    info = classify_error(error)

    assert info.message == "403 Forbidden: no permissions"
    assert info.response_info.status == 403
    assert info.request_info.method == "POST"
    assert info.request_info.endpoint == "http://localhost:9200/_plugins/_sql"


def test_httpx_request_error_without_request():
    info = classify_error(httpx.ConnectError("no route"))

    assert info.message == "no route"
    assert info.request_info is None


def test_message_survives_broken_introspection():
    class Exploding(Exception):
        @property
        def response(self):
            raise KeyError("response")

    info = classify_error(Exploding("still readable"))

    assert info.message == "still readable"
    assert info.response_info is None
