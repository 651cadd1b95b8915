"""Local backend for KeenClient — in-memory events, evaluated in process."""

import copy
import json
import logging
import re
from datetime import UTC, datetime, timedelta
from typing import Any

from keenview.client.models import Event, Query, QueryResponse, build_multi_analysis_payload
from keenview.values import get_path, is_number

log = logging.getLogger(__name__)

ANALYSIS_TYPES = (
    "count",
    "count_unique",
    "sum",
    "minimum",
    "maximum",
    "average",
    "select_unique",
    "funnel",
)

_RELATIVE_TIMEFRAME = re.compile(r"^(this|previous)_(\d+)_(minute|hour|day|week)s?$")

_UNIT_DELTAS = {
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
}


class AnalysisError(Exception):
    """An analysis could not be run; rendered as an API error body."""

    def __init__(self, error_code: str, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.status_code = status_code


class LocalBackend:
    """Backend that keeps events in memory and evaluates analyses itself.

    Responses use the same JSON shapes as the remote API, so results go
    through the same handling code as real ones.
    """

    def __init__(self, now: Any = None) -> None:
        self._now = now or (lambda: datetime.now(UTC))
        self.events: dict[str, list[Event]] = {}

    def send_event(self, collection: str, event: dict[str, Any]) -> bool:
        """Store an event, stamping ``keen.timestamp`` if it has none."""
        stored = copy.deepcopy(event)
        keen = stored.setdefault("keen", {})
        keen.setdefault("timestamp", self._now().isoformat())
        self.events.setdefault(collection, []).append(Event(collection, stored))
        return True

    def submit_query(self, query: Query) -> QueryResponse:
        """Run a single analysis against stored events."""
        try:
            result = self._analyze(query.query_type, query.to_payload())
        except AnalysisError as e:
            return _error_response(e)
        return _json_response({"result": result})

    def submit_multi_analysis(self, queries: list[Query]) -> QueryResponse:
        """Run each analysis of a multi-analysis request."""
        payload = build_multi_analysis_payload(queries)
        analyses = payload.pop("analyses")
        result: dict[str, Any] = {}
        try:
            for name, analysis in analyses.items():
                props = dict(payload)
                props.update(analysis)
                analysis_type = props.pop("analysis_type")
                if analysis_type == "funnel":
                    raise AnalysisError(
                        "InvalidAnalysisTypeError",
                        "funnel is not supported in a multi-analysis",
                    )
                result[name] = self._analyze(analysis_type, props)
        except AnalysisError as e:
            return _error_response(e)
        return _json_response({"result": result})

    # -- evaluation -------------------------------------------------------

    def _analyze(self, analysis_type: str, props: dict[str, Any]) -> Any:
        if analysis_type not in ANALYSIS_TYPES:
            raise AnalysisError(
                "ResourceNotFoundError",
                f"Analysis type '{analysis_type}' does not exist",
                status_code=404,
            )
        if analysis_type == "funnel":
            return self._funnel(props)

        events = self._select(props)
        target = _optional_name(props, "target_property")
        if analysis_type != "count" and not target:
            raise AnalysisError(
                "MissingRequiredPropertyError",
                f"{analysis_type} requires a target_property",
            )

        group_keys = _group_keys(props.get("group_by"))
        if not group_keys:
            return _aggregate(analysis_type, events, target or "")

        groups: dict[str, tuple[list[Any], list[dict[str, Any]]]] = {}
        for event in events:
            values = [get_path(event, key, None) for key in group_keys]
            ident = json.dumps(values, sort_keys=True, default=str)
            groups.setdefault(ident, (values, []))[1].append(event)

        records = []
        for values, members in groups.values():
            record: dict[str, Any] = dict(zip(group_keys, values, strict=True))
            record["result"] = _aggregate(analysis_type, members, target or "")
            records.append(record)
        return records

    def _select(self, props: dict[str, Any]) -> list[dict[str, Any]]:
        collection = _optional_name(props, "event_collection")
        if not collection:
            raise AnalysisError(
                "MissingRequiredPropertyError", "event_collection is required"
            )
        start, end = _resolve_timeframe(props.get("timeframe"), self._now())
        filters = _filter_list(props.get("filters"))

        selected = []
        for event in self.events.get(collection, []):
            props_ = event.properties
            if start is not None or end is not None:
                stamp = _parse_timestamp(get_path(props_, "keen.timestamp", None))
                if stamp is None:
                    continue
                if start is not None and stamp < start:
                    continue
                if end is not None and stamp >= end:
                    continue
            if all(_matches(props_, f) for f in filters):
                selected.append(props_)
        return selected

    def _funnel(self, props: dict[str, Any]) -> list[int]:
        steps = props.get("steps")
        if not isinstance(steps, list) or not steps:
            raise AnalysisError("MissingRequiredPropertyError", "funnel requires steps")

        counts: list[int] = []
        actors: set[str] | None = None
        for index, step in enumerate(steps):
            if not isinstance(step, dict) or not _optional_name(step, "actor_property"):
                raise AnalysisError(
                    "MissingRequiredPropertyError",
                    f"funnel step {index} requires event_collection and actor_property",
                )
            step_props = dict(step)
            step_props.setdefault("timeframe", props.get("timeframe"))
            step_actors = {
                json.dumps(value, sort_keys=True)
                for event in self._select(step_props)
                if (value := get_path(event, step["actor_property"], None)) is not None
            }
            actors = step_actors if actors is None else actors & step_actors
            counts.append(len(actors))
        return counts


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _json_response(data: dict[str, Any]) -> QueryResponse:
    return QueryResponse(body=json.dumps(data).encode(), status_code=200)


def _error_response(error: AnalysisError) -> QueryResponse:
    log.debug("Analysis failed: %s (%s)", error.message, error.error_code)
    body = {"error_code": error.error_code, "message": error.message}
    return QueryResponse(body=json.dumps(body).encode(), status_code=error.status_code)


def _invalid(name: str, expected: str, value: Any) -> AnalysisError:
    return AnalysisError(
        "InvalidPropertyValueError",
        f"{name} must be {expected}, got {type(value).__name__}",
    )


def _optional_name(props: dict[str, Any], name: str) -> str | None:
    value = props.get(name)
    if value is None or isinstance(value, str):
        return value
    raise _invalid(name, "a string", value)


def _group_keys(group_by: Any) -> list[str]:
    if not group_by:
        return []
    if isinstance(group_by, str):
        return [group_by]
    if isinstance(group_by, list) and all(isinstance(k, str) and k for k in group_by):
        return group_by
    raise _invalid("group_by", "a property name or a list of property names", group_by)


def _filter_list(filters: Any) -> list[dict[str, Any]]:
    if not filters:
        return []
    if isinstance(filters, list) and all(_is_filter(f) for f in filters):
        return filters
    raise _invalid("filters", "a list of objects with property_name and operator", filters)


def _is_filter(flt: Any) -> bool:
    return (
        isinstance(flt, dict)
        and isinstance(flt.get("property_name"), str)
        and bool(flt["property_name"])
        and isinstance(flt.get("operator"), str)
    )


def _aggregate(analysis_type: str, events: list[dict[str, Any]], target: str) -> Any:
    if analysis_type == "count":
        return len(events)

    values = [v for e in events if (v := get_path(e, target, None)) is not None]

    if analysis_type in ("count_unique", "select_unique"):
        unique: dict[str, Any] = {}
        for value in values:
            unique.setdefault(json.dumps(value, sort_keys=True), value)
        if analysis_type == "count_unique":
            return len(unique)
        return list(unique.values())

    numbers = [v for v in values if is_number(v)]
    if analysis_type == "sum":
        return sum(numbers)
    if not numbers:
        return None
    if analysis_type == "minimum":
        return min(numbers)
    if analysis_type == "maximum":
        return max(numbers)
    return sum(numbers) / len(numbers)


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        stamp = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=UTC)
    return stamp


def _truncate(moment: datetime, unit: str) -> datetime:
    if unit == "minute":
        return moment.replace(second=0, microsecond=0)
    if unit == "hour":
        return moment.replace(minute=0, second=0, microsecond=0)
    day = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if unit == "week":
        return day - timedelta(days=day.weekday())
    return day


def _resolve_timeframe(
    timeframe: Any, now: datetime
) -> tuple[datetime | None, datetime | None]:
    """Turn a timeframe into a half-open ``[start, end)`` window."""
    if timeframe is None:
        return None, None

    if isinstance(timeframe, dict):
        start = _parse_timestamp(timeframe.get("start"))
        end = _parse_timestamp(timeframe.get("end"))
        if start is None or end is None:
            raise AnalysisError(
                "TimeframeDefinitionError",
                "Absolute timeframes need ISO-8601 'start' and 'end'",
            )
        return start, end

    match = _RELATIVE_TIMEFRAME.match(str(timeframe))
    if not match:
        raise AnalysisError("TimeframeDefinitionError", f"Invalid timeframe: {timeframe}")

    kind, amount, unit = match.group(1), int(match.group(2)), match.group(3)
    delta = _UNIT_DELTAS[unit]
    current = _truncate(now, unit)
    if kind == "this":
        return current - delta * (amount - 1), current + delta
    return current - delta * amount, current


def _matches(event: dict[str, Any], flt: dict[str, Any]) -> bool:
    name = flt["property_name"]
    operator = flt["operator"]
    expected = flt.get("property_value")

    actual = get_path(event, name, None)
    try:
        match operator:
            case "eq":
                return actual == expected
            case "ne":
                return actual != expected
            case "lt":
                return actual is not None and actual < expected
            case "lte":
                return actual is not None and actual <= expected
            case "gt":
                return actual is not None and actual > expected
            case "gte":
                return actual is not None and actual >= expected
            case "exists":
                return (actual is not None) == bool(expected)
            case "in":
                return isinstance(expected, list) and actual in expected
            case "contains":
                return isinstance(actual, str) and str(expected) in actual
    except TypeError:
        return False
    raise AnalysisError("InvalidFilterError", f"Unknown filter operator: {operator}")
