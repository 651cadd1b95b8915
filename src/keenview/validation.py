"""Naming rules for collections, properties and credentials."""

import json
from typing import Any

from keenview.errors import ValidationError

MAX_NAME_LENGTH = 256


def validate_project_id(project_id: str | None) -> bool:
    return bool(project_id) and project_id.isalnum()  # type: ignore[union-attr]


def validate_key(key: str | None) -> bool:
    return bool(key) and not key.isspace()  # type: ignore[union-attr]


def validate_collection_name(name: Any) -> None:
    """Raise ``ValidationError`` unless *name* is a usable collection name."""
    if not isinstance(name, str) or not name:
        raise ValidationError("Event collection name must be a non-empty string")
    if name.startswith("$"):
        raise ValidationError(f"Event collection name cannot start with '$': {name}")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"Event collection name cannot be longer than {MAX_NAME_LENGTH} characters"
        )


def validate_properties(properties: Any, path: str = "") -> None:
    """Check property names recursively, including inside lists."""
    if isinstance(properties, list):
        for item in properties:
            validate_properties(item, path)
        return
    if not isinstance(properties, dict):
        return

    for key, value in properties.items():
        where = f"{path}.{key}" if path else str(key)
        if not isinstance(key, str) or not key:
            raise ValidationError(f"Property names must be non-empty strings: {where}")
        if key.startswith("$"):
            raise ValidationError(f"Property name cannot start with '$': {where}")
        if "." in key:
            raise ValidationError(f"Property name cannot contain '.': {where}")
        if len(key) > MAX_NAME_LENGTH:
            raise ValidationError(
                f"Property name cannot be longer than {MAX_NAME_LENGTH} characters: {where}"
            )
        validate_properties(value, where)


def validate_event(collection: Any, event: Any) -> None:
    validate_collection_name(collection)
    if not isinstance(event, dict):
        raise ValidationError("Event must be a mapping of property names to values")
    validate_properties(event)
    try:
        json.dumps(event)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Event is not JSON serializable: {e}",
            hint="Convert dates and other objects to strings before adding the event",
        ) from e
