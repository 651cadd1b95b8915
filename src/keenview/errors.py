"""Exception hierarchy for keenview."""


class KeenViewError(Exception):
    """Base exception for all keenview errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(KeenViewError):
    """A setting is missing or has an invalid value."""


class ValidationError(KeenViewError):
    """An event, collection name or property name was rejected."""


class ResultShapeError(KeenViewError):
    """A decoded JSON value did not have the expected shape."""

    def __init__(self, expected: str, actual: object, *, where: str = "") -> None:
        location = f" at {where}" if where else ""
        super().__init__(
            f"Expected {expected}{location}, got {_describe(actual)}",
        )
        self.expected = expected
        self.where = where


def _describe(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
