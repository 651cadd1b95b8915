"""Classification of raw query responses.

A query response is turned into exactly one of four outcomes:

- ``TransportError``: the request never produced a usable response
- ``ApplicationError``: the API answered with ``error_code`` and ``message``
- ``DecodeError``: the body was not a JSON object
- ``Success``: everything else, carrying the ``result`` value

Classification is pure.  Displaying or logging the outcome is up to the
caller, with the exception of decode failures, which are always logged.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from keenview.client.models import QueryResponse
from keenview.values import (
    JsonValue,
    expect_list,
    expect_mapping,
    expect_number,
    get_key,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportError:
    message: str


@dataclass(frozen=True)
class ApplicationError:
    code: JsonValue
    message: str


@dataclass(frozen=True)
class DecodeError:
    message: str


@dataclass(frozen=True)
class Success:
    value: JsonValue
    response: dict[str, Any] = field(default_factory=dict)

    def number(self) -> int | float:
        """The result of a simple count-style query."""
        return expect_number(self.value, where="result")

    def groups(self) -> list[dict[str, Any]]:
        """Per-group records of a group-by query."""
        records = expect_list(self.value, where="result")
        return [expect_mapping(r, where=f"result[{i}]") for i, r in enumerate(records)]

    def first_group_result(self) -> JsonValue:
        """The ``result`` field of the first group-by record."""
        groups = self.groups()
        if not groups:
            raise IndexError("group-by result is empty")
        return get_key(groups[0], "result", where="result[0]")


QueryOutcome = TransportError | ApplicationError | DecodeError | Success


def classify(raw: bytes | str | None, transport_error: Any = None) -> QueryOutcome:
    """Classify a raw response body and optional transport-level error."""
    if transport_error is not None:
        return TransportError(message=str(transport_error))

    try:
        decoded = json.loads(raw if raw is not None else b"")
    except (ValueError, TypeError, RecursionError) as e:
        log.error("Could not decode query response: %s", e)
        return DecodeError(message=str(e))

    if not isinstance(decoded, dict):
        log.error("Query response is not a JSON object: %r", decoded)
        return DecodeError(message=f"expected a JSON object, got {type(decoded).__name__}")

    if "error_code" in decoded and "message" in decoded:
        return ApplicationError(code=decoded["error_code"], message=str(decoded["message"]))

    return Success(value=decoded.get("result"), response=decoded)


def classify_response(response: QueryResponse) -> QueryOutcome:
    return classify(response.body, response.transport_error)


def summarize(outcome: QueryOutcome) -> str:
    """Format an outcome as the text shown to a user."""
    match outcome:
        case TransportError(message=message):
            return f"Error! 😞 \n\n error: {message}"
        case ApplicationError(code=code, message=message):
            return f"Failure! 😞 \n\n error code: {code}\n\n message: {message}"
        case DecodeError(message=message):
            return f"Error! 😞 \n\n could not decode response: {message}"
        case Success(response=response):
            return f"Success! 😄 \n\n response: {json.dumps(response, indent=2, sort_keys=True)}"
    raise TypeError(f"Not a query outcome: {outcome!r}")
