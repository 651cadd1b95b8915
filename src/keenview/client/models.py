"""Standalone dataclasses for the keenview client library."""

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

# Properties shared by every analysis of a multi-analysis request.
SHARED_ANALYSIS_PROPERTIES = (
    "event_collection",
    "timeframe",
    "filters",
    "group_by",
    "interval",
    "timezone",
)


@dataclass(frozen=True)
class Query:
    """A named analytical request, e.g. ``count`` over ``tab_views``."""

    query_type: str
    properties: Mapping[str, Any] = field(default_factory=dict)
    name: str | None = None

    def __post_init__(self) -> None:
        # Read-only all the way down; to_payload() hands out mutable copies.
        object.__setattr__(self, "properties", _freeze(dict(self.properties)))

    @property
    def event_collection(self) -> str | None:
        return self.properties.get("event_collection")

    def to_payload(self) -> dict[str, Any]:
        return _thaw(self.properties)

    def to_json(self) -> bytes:
        return json.dumps(self.to_payload()).encode()


@dataclass(frozen=True)
class QueryResponse:
    body: bytes = b""
    status_code: int | None = None
    transport_error: str | None = None


ResponseCallback = Callable[[QueryResponse], Any]


@dataclass
class Event:
    collection: str
    properties: dict[str, Any] = field(default_factory=dict)


def build_multi_analysis_payload(queries: list[Query]) -> dict[str, Any]:
    """Combine queries into a ``multi_analysis`` request body.

    Each query becomes an entry under ``analyses`` keyed by its name.
    Shared properties are taken from the first query.
    """
    if not queries:
        raise ValueError("multi-analysis needs at least one query")

    analyses: dict[str, Any] = {}
    for index, query in enumerate(queries):
        key = query.name or f"{query.query_type}_{index}"
        analysis: dict[str, Any] = {"analysis_type": query.query_type}
        for prop, value in query.to_payload().items():
            if prop not in SHARED_ANALYSIS_PROPERTIES:
                analysis[prop] = value
        analyses[key] = analysis

    payload: dict[str, Any] = {"analyses": analyses}
    first = queries[0].to_payload()
    for prop in SHARED_ANALYSIS_PROPERTIES:
        if prop in first:
            payload[prop] = first[prop]
    return payload


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value
