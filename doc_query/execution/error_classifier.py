"""
Error classification.

Turns any failure raised during execution into a message plus whatever
request/response introspection it carries. Works with TransportError as
well as raw httpx exceptions.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import httpx

from doc_query.core.models import RequestInfo, ResponseInfo


logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error: Unable to connect to OpenSearch cluster"
UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"


@dataclass
class ErrorInfo:
    """What could be learned from a failure."""

    message: str
    request_info: Optional[RequestInfo] = None
    response_info: Optional[ResponseInfo] = None
    raw_response: Any = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_response(self) -> bool:
        return self.response_info is not None


def _safe_attr(obj: Any, name: str) -> Any:
    # httpx raises RuntimeError for .request on exceptions built without one
    try:
        return getattr(obj, name, None)
    except RuntimeError:
        return None


def decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def raw_headers(headers: httpx.Headers) -> Dict[str, str]:
    return {key.decode("latin-1"): value.decode("latin-1") for key, value in headers.raw}


def response_snapshot(error: BaseException) -> Tuple[Optional[ResponseInfo], Any]:
    """Extract the received response and its decoded body, if any."""
    response = _safe_attr(error, "response")

    if isinstance(response, ResponseInfo):
        return response, getattr(error, "response_data", None)

    if isinstance(response, httpx.Response):
        info = ResponseInfo(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=raw_headers(response.headers),
        )
        return info, decode_body(response)

    return None, None


def request_snapshot(error: BaseException) -> Optional[RequestInfo]:
    """Extract the outbound request, if any."""
    request = _safe_attr(error, "request")

    if isinstance(request, RequestInfo):
        return request

    if isinstance(request, httpx.Request):
        body = request.content.decode("utf-8", errors="replace") if request.content else None
        return RequestInfo(
            method=request.method,
            endpoint=str(request.url),
            headers=raw_headers(request.headers),
            body=body,
        )

    return None


def _error_reason(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict):
        return error.get("reason") or error.get("type")
    if isinstance(error, str):
        return error or None
    return None


def format_error(error: BaseException) -> str:
    """
    Build a human-readable message for a failure.

    Prefers the backend's error reason, then its error type, then the HTTP
    status line. Without a response, a request means a network failure.
    """
    response_info, data = response_snapshot(error)
    if response_info is not None:
        status_line = f"{response_info.status} {response_info.status_text or ''}".rstrip()
        reason = _error_reason(data)
        return f"{status_line}: {reason}" if reason else status_line

    if request_snapshot(error) is not None:
        return NETWORK_ERROR_MESSAGE

    return str(error) or UNKNOWN_ERROR_MESSAGE


def _network_details(error: BaseException) -> str:
    cause = error if isinstance(error, httpx.RequestError) else error.__cause__
    if isinstance(cause, httpx.ConnectTimeout):
        return "Connection timeout - server took too long to respond"
    if isinstance(cause, httpx.TimeoutException):
        return "Request timeout - server took too long to respond"
    if isinstance(cause, httpx.ConnectError):
        return "Connection refused - server may be down or unreachable"
    if isinstance(cause, httpx.RemoteProtocolError):
        return "Connection reset by server"
    return "Network request failed - check connection and server availability"


def error_details(
    error: BaseException,
    request_info: Optional[RequestInfo] = None,
    response_info: Optional[ResponseInfo] = None,
    timeout: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Structured details for the debug view.

    Args:
        error: The failure
        request_info: Outbound request, if captured
        response_info: Received response, if any
        timeout: Effective timeout in milliseconds

    Returns:
        Dictionary with error_type, message, timestamp and the request
        fields that are known
    """
    details: Dict[str, Any] = {
        "error_type": "Unknown",
        "message": str(error) or UNKNOWN_ERROR_MESSAGE,
        "timestamp": datetime.now().isoformat(),
    }

    code = getattr(error, "code", None)
    if code:
        details["code"] = code

    if response_info is not None:
        details["error_type"] = "HTTP Response Error"
        details["status"] = response_info.status
        details["status_text"] = response_info.status_text
    elif request_info is not None:
        details["error_type"] = "Network/Connection Error"
        details["details"] = _network_details(error)
        timeout = timeout if timeout is not None else getattr(error, "timeout", None)
        if timeout:
            details["timeout"] = f"{timeout}ms"
    else:
        details["error_type"] = "Request Setup Error"
        details["details"] = "Error occurred while setting up the request"

    if request_info is not None:
        details["url"] = request_info.endpoint or "Unknown URL"
        details["method"] = request_info.method or "Unknown Method"

    return details


def classify_error(error: BaseException, timeout: Optional[int] = None) -> ErrorInfo:
    """
    Classify a failure.

    The message and each piece of introspection are extracted on their own;
    a failure in one extraction never prevents the others.

    Args:
        error: Any exception raised during execution
        timeout: Effective timeout in milliseconds, for the error details

    Returns:
        ErrorInfo
    """
    try:
        message = format_error(error)
    except Exception:
        logger.debug("Could not format error message", exc_info=True)
        message = str(error) or UNKNOWN_ERROR_MESSAGE

    try:
        response_info, raw_response = response_snapshot(error)
    except Exception:
        logger.debug("Could not extract response info", exc_info=True)
        response_info, raw_response = None, None

    try:
        request_info = request_snapshot(error)
    except Exception:
        logger.debug("Could not extract request info", exc_info=True)
        request_info = None

    info = ErrorInfo(
        message=message,
        request_info=request_info,
        response_info=response_info,
        raw_response=raw_response,
    )

    if raw_response is None:
        info.details = error_details(error, request_info, response_info, timeout)

    return info
