"""Validate decoded JSON values against a SchemaNode.

Hard problems (malformed JSON, missing required fields, type mismatches,
bounds and enum violations) are errors; fields the schema does not declare
are warnings and never affect validity.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from docstruct.schema.models import SchemaNode, SchemaType, ValidationOutcome

NESTING_TOO_DEEP_ERROR = "Value is nested too deeply to validate"


def validate(json_text: str, schema: SchemaNode | Mapping[str, Any]) -> ValidationOutcome:
    """Decode ``json_text`` and validate the result against ``schema``."""
    try:
        data = json.loads(json_text)
    except (json.JSONDecodeError, TypeError, RecursionError) as exc:
        return ValidationOutcome.from_messages([f"Invalid JSON: {exc}"], [])
    return validate_data(data, schema)


def validate_data(data: Any, schema: SchemaNode | Mapping[str, Any]) -> ValidationOutcome:
    node = schema if isinstance(schema, SchemaNode) else SchemaNode.from_dict(schema)
    errors: list[str] = []
    warnings: list[str] = []
    try:
        _validate_value(data, node, "", errors, warnings)
    except RecursionError:
        return ValidationOutcome.from_messages([NESTING_TOO_DEEP_ERROR], warnings)
    return ValidationOutcome.from_messages(errors, warnings)


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _matches_type(value: Any, expected: SchemaType) -> bool:
    actual = json_type_name(value)
    if expected is SchemaType.NUMBER:
        return actual in ("integer", "number")
    return actual == expected.value


def _enum_key(value: Any) -> tuple[str, Any]:
    kind = json_type_name(value)
    return ("number" if kind == "integer" else kind), value


def _in_enum(value: Any, options: tuple[Any, ...]) -> bool:
    """Enum membership by JSON type and value, so true never equals 1."""
    key = _enum_key(value)
    return any(_enum_key(option) == key for option in options)


def _child_path(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _format_bound(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _validate_value(
    value: Any,
    node: SchemaNode,
    path: str,
    errors: list[str],
    warnings: list[str],
) -> None:
    expected = node.effective_type
    if expected is not None and not _matches_type(value, expected):
        if path:
            errors.append(
                f"Field '{path}' expected type '{expected.value}', "
                f"got '{json_type_name(value)}'"
            )
        else:
            errors.append(
                f"Root element expected type '{expected.value}', "
                f"got '{json_type_name(value)}'"
            )
        return

    label = f"Field '{path}'" if path else "Value"

    if node.enum is not None and not _in_enum(value, node.enum):
        options = ", ".join(str(option) for option in node.enum)
        errors.append(f"{label} must be one of: {options}")

    if isinstance(value, dict):
        if expected is SchemaType.OBJECT:
            _validate_object(value, node, path, errors, warnings)
    elif isinstance(value, list):
        _validate_array(value, node, path, errors, warnings)
    elif isinstance(value, str):
        _validate_string(value, node, label, errors)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if node.minimum is not None and value < node.minimum:
            errors.append(f"{label} must be at least {_format_bound(node.minimum)}")
        if node.maximum is not None and value > node.maximum:
            errors.append(f"{label} must be no more than {_format_bound(node.maximum)}")


def _validate_string(value: str, node: SchemaNode, label: str, errors: list[str]) -> None:
    if node.min_length is not None and len(value) < node.min_length:
        errors.append(f"{label} must be at least {node.min_length} characters")
    if node.max_length is not None and len(value) > node.max_length:
        errors.append(f"{label} must be no more than {node.max_length} characters")


def _validate_object(
    value: dict[str, Any],
    node: SchemaNode,
    path: str,
    errors: list[str],
    warnings: list[str],
) -> None:
    for name in sorted(node.required):
        if name not in value:
            errors.append(f"Missing required field: {_child_path(path, name)}")
    for name, child in node.properties.items():
        if name in value:
            _validate_value(value[name], child, _child_path(path, name), errors, warnings)
    for name in value:
        if name not in node.properties and name not in node.required:
            warnings.append(f"Unexpected field: {_child_path(path, name)}")


def _validate_array(
    value: list[Any],
    node: SchemaNode,
    path: str,
    errors: list[str],
    warnings: list[str],
) -> None:
    label = f"Field '{path}'" if path else "Value"
    if node.min_length is not None and len(value) < node.min_length:
        errors.append(f"{label} must contain at least {node.min_length} items")
    if node.max_length is not None and len(value) > node.max_length:
        errors.append(f"{label} must contain no more than {node.max_length} items")
    if node.items is None:
        return
    base = path or "items"
    for index, item in enumerate(value):
        _validate_value(item, node.items, f"{base}[{index}]", errors, warnings)
