"""HTTP backend characterization tests.

These use httpx.MockTransport to capture the exact requests sent to the
analytics API without making network calls.
"""

import json
from typing import Any

import httpx
import pytest

from keenview import __version__
from keenview.client.backends.http import HttpBackend
from keenview.client.models import Query
from keenview.results import ApplicationError, Success, TransportError, classify_response

BASE_URL = "https://api.keen.io:443/3.0"


def _backend(handler: Any) -> HttpBackend:
    return HttpBackend(
        BASE_URL,
        "abc123",
        write_key="wk",
        read_key="rk",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def captured() -> list[httpx.Request]:
    return []


# =============================================================================
# Queries
# =============================================================================


def test_query_request_shape(captured: list[httpx.Request]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"result": 42})

    query = Query("count", {"event_collection": "tab_views", "timeframe": "this_7_days"})
    response = _backend(handler).submit_query(query)

    request = captured[0]
    assert request.method == "POST"
    assert request.url.path == "/3.0/projects/abc123/queries/count"
    assert request.headers["Authorization"] == "rk"
    assert request.headers["Keen-Sdk"] == f"python-{__version__}"
    assert json.loads(request.content) == {
        "event_collection": "tab_views",
        "timeframe": "this_7_days",
    }
    assert response.status_code == 200
    assert classify_response(response) == Success(42, {"result": 42})


def test_api_error_status_is_not_a_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404,
            json={"error_code": "ResourceNotFoundError", "message": "Collection not found"},
        )

    response = _backend(handler).submit_query(Query("count", {"event_collection": "x"}))

    assert response.transport_error is None
    assert response.status_code == 404
    assert classify_response(response) == ApplicationError(
        "ResourceNotFoundError", "Collection not found"
    )


@pytest.mark.parametrize(
    "exc",
    [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
    ],
)
def test_transport_failures_become_transport_errors(exc: httpx.TransportError) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    response = _backend(handler).submit_query(Query("count", {"event_collection": "x"}))

    assert response.body == b""
    assert classify_response(response) == TransportError(str(exc))


def test_multi_analysis_request(captured: list[httpx.Request]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"result": {"a": 1, "b": 2}})

    queries = [
        Query("count", {"event_collection": "c", "timeframe": "this_7_days"}, name="a"),
        Query("count_unique", {"event_collection": "c", "target_property": "k"}, name="b"),
    ]
    _backend(handler).submit_multi_analysis(queries)

    request = captured[0]
    assert request.url.path == "/3.0/projects/abc123/queries/multi_analysis"
    body = json.loads(request.content)
    assert body["analyses"]["b"] == {"analysis_type": "count_unique", "target_property": "k"}
    assert body["timeframe"] == "this_7_days"


# =============================================================================
# Events
# =============================================================================


def test_send_event(captured: list[httpx.Request]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(201, json={"created": True})

    assert _backend(handler).send_event("tab_views", {"view_name": "third view"})

    request = captured[0]
    assert request.url.path == "/3.0/projects/abc123/events/tab_views"
    assert request.headers["Authorization"] == "wk"
    assert json.loads(request.content) == {"view_name": "third view"}


def test_rejected_event_returns_false() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error_code": "InvalidEventError", "message": "bad"})

    assert _backend(handler).send_event("tab_views", {"a": 1}) is False


def test_event_transport_failure_returns_false() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline")

    assert _backend(handler).send_event("tab_views", {"a": 1}) is False
