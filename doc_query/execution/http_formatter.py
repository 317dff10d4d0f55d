"""
Raw HTTP rendering for the debug view.
"""

import json
import shlex
from typing import Optional

from doc_query.core.models import QueryResult, RequestInfo


def format_raw_request(request_info: Optional[RequestInfo]) -> str:
    """Render a request as an HTTP/1.1 message."""
    if request_info is None:
        return "No request information available"

    raw = f"{request_info.method or 'POST'} {request_info.endpoint or '/'} HTTP/1.1\n"
    for key, value in request_info.headers.items():
        raw += f"{key}: {value}\n"
    raw += "\n"
    if request_info.body:
        raw += request_info.body
    return raw


def format_raw_response(result: QueryResult) -> str:
    """
    Render the received response as an HTTP/1.1 message.

    Without a status line only the body is shown.
    """
    if result.response_info is None and result.raw_response is None:
        return "No response information available"

    if result.response_info is None:
        return json.dumps(result.raw_response, indent=2, default=str)

    info = result.response_info
    raw = f"HTTP/1.1 {info.status or 200} {info.status_text or 'OK'}\n"
    for key, value in info.headers.items():
        raw += f"{key}: {value}\n"
    raw += "\n"
    if result.raw_response is not None:
        raw += json.dumps(result.raw_response, indent=2, default=str)
    return raw


def curl_command(request_info: Optional[RequestInfo], base_url: Optional[str] = None) -> str:
    """
    Build a curl command reproducing a request.

    Args:
        request_info: Recorded request
        base_url: Connection endpoint the request path is relative to

    Returns:
        Multi-line shell command
    """
    if request_info is None:
        return "curl command not available - no request information"

    command = f"curl -X {shlex.quote(request_info.method or 'POST')}"
    for key, value in request_info.headers.items():
        command += f" \\\n  -H {shlex.quote(f'{key}: {value}')}"

    if request_info.body:
        command += f" \\\n  -d {shlex.quote(request_info.body)}"

    endpoint = request_info.endpoint or ""
    if base_url and not endpoint.startswith(("http://", "https://")):
        url = base_url.rstrip("/") + "/" + endpoint.lstrip("/")
    else:
        url = endpoint or "http://localhost:9200"
    command += f" \\\n  {shlex.quote(url)}"

    return command
