"""Typed accessors over decoded JSON values.

Responses arrive as loosely typed JSON.  Rather than casting, callers go
through these helpers, which raise ``ResultShapeError`` when the value does
not have the shape they asked for.
"""

from typing import Any, TypeAlias

from keenview.errors import ResultShapeError

JsonValue: TypeAlias = (
    None | bool | int | float | str | list["JsonValue"] | dict[str, "JsonValue"]
)

_MISSING = object()


def is_number(value: Any) -> bool:
    """True for ints and floats, but not for booleans."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def expect_mapping(value: Any, where: str = "") -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ResultShapeError("object", value, where=where)
    return value


def expect_list(value: Any, where: str = "") -> list[Any]:
    if not isinstance(value, list):
        raise ResultShapeError("array", value, where=where)
    return value


def expect_number(value: Any, where: str = "") -> int | float:
    if not is_number(value):
        raise ResultShapeError("number", value, where=where)
    return value


def expect_str(value: Any, where: str = "") -> str:
    if not isinstance(value, str):
        raise ResultShapeError("string", value, where=where)
    return value


def get_key(mapping: Any, key: str, where: str = "") -> Any:
    """Return ``mapping[key]``, raising ``ResultShapeError`` if it is absent."""
    obj = expect_mapping(mapping, where)
    if key not in obj:
        raise ResultShapeError(f"key '{key}'", None, where=where or "response")
    return obj[key]


def get_path(mapping: Any, path: str, default: Any = _MISSING) -> Any:
    """Look up a dotted property path such as ``user.id``.

    Returns *default* when any segment is missing; without a default a
    missing segment raises ``ResultShapeError``.
    """
    current = mapping
    for segment in path.split("."):
        if isinstance(current, dict) and segment in current:
            current = current[segment]
            continue
        if default is _MISSING:
            raise ResultShapeError(f"property '{path}'", current, where=segment)
        return default
    return current
