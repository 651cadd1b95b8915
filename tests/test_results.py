"""Classification of raw query responses."""

import json
import logging

import pytest

from keenview.client.models import QueryResponse
from keenview.errors import ResultShapeError
from keenview.results import (
    ApplicationError,
    DecodeError,
    Success,
    TransportError,
    classify,
    classify_response,
    summarize,
)

# =============================================================================
# classify
# =============================================================================


def test_transport_error_wins_regardless_of_body() -> None:
    for body in (b'{"result": 42}', b"not json", b"", None):
        outcome = classify(body, transport_error="The request timed out.")
        assert outcome == TransportError("The request timed out.")


def test_transport_error_uses_exception_description() -> None:
    outcome = classify(b"{}", transport_error=ConnectionError("offline"))
    assert outcome == TransportError("offline")


def test_error_code_and_message_give_application_error() -> None:
    outcome = classify(b'{"error_code": "X", "message": "Y"}')
    assert outcome == ApplicationError("X", "Y")


def test_error_fields_take_precedence_over_result() -> None:
    body = json.dumps({"error_code": "ResourceNotFoundError", "message": "gone", "result": 3})
    assert isinstance(classify(body.encode()), ApplicationError)


def test_error_code_without_message_is_not_an_error() -> None:
    outcome = classify(b'{"error_code": "X", "result": 1}')
    assert outcome == Success(1, {"error_code": "X", "result": 1})


def test_scalar_result() -> None:
    outcome = classify(b'{"result": 42}')
    assert isinstance(outcome, Success)
    assert outcome.value == 42
    assert outcome.number() == 42


def test_group_by_first_result() -> None:
    outcome = classify(b'{"result": [{"result": 7, "group": "a"}, {"result": 2, "group": "b"}]}')
    assert isinstance(outcome, Success)
    assert outcome.first_group_result() == 7
    assert [g["group"] for g in outcome.groups()] == ["a", "b"]


def test_group_accessors_reject_scalar_result() -> None:
    outcome = classify(b'{"result": 42}')
    assert isinstance(outcome, Success)
    with pytest.raises(ResultShapeError):
        outcome.first_group_result()


def test_number_rejects_group_result() -> None:
    outcome = classify(b'{"result": [{"result": 7}]}')
    assert isinstance(outcome, Success)
    with pytest.raises(ResultShapeError, match="number"):
        outcome.number()


def test_empty_group_result() -> None:
    outcome = classify(b'{"result": []}')
    assert isinstance(outcome, Success)
    with pytest.raises(IndexError):
        outcome.first_group_result()


@pytest.mark.parametrize("body", [b"<html>502</html>", b"", b"\xff\xfe", b"[1, 2]", b"42"])
def test_malformed_body_is_decode_error(body: bytes, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="keenview.results"):
        outcome = classify(body)
    assert isinstance(outcome, DecodeError)
    assert caplog.records


def test_classify_is_repeatable() -> None:
    body = b'{"result": [{"result": 7, "group": "a"}]}'
    assert classify(body) == classify(body)
    assert classify(b"nope") == classify(b"nope")


def test_classify_response_uses_body_and_transport_error() -> None:
    assert classify_response(QueryResponse(body=b'{"result": 1}', status_code=200)) == Success(
        1, {"result": 1}
    )
    assert classify_response(QueryResponse(transport_error="reset")) == TransportError("reset")


# =============================================================================
# summarize
# =============================================================================


def test_summaries() -> None:
    assert summarize(TransportError("offline")) == "Error! 😞 \n\n error: offline"
    assert summarize(ApplicationError("X", "Y")) == (
        "Failure! 😞 \n\n error code: X\n\n message: Y"
    )
    assert summarize(DecodeError("bad")).startswith("Error! 😞")

    text = summarize(Success(42, {"result": 42}))
    assert text.startswith("Success! 😄 \n\n response: ")
    assert '"result": 42' in text


def test_summarize_rejects_other_values() -> None:
    with pytest.raises(TypeError):
        summarize("not an outcome")  # type: ignore[arg-type]


def test_deeply_nested_body_is_decode_error() -> None:
    outcome = classify(b"[" * 100000)
    assert isinstance(outcome, DecodeError)
    assert "recursion" in outcome.message
