from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from docstruct.schema.exceptions import SchemaDefinitionError


class SchemaType(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NULL = "null"


_KNOWN_KEYS = frozenset(
    {
        "type",
        "required",
        "properties",
        "items",
        "enum",
        "minLength",
        "maxLength",
        "min_length",
        "max_length",
        "minimum",
        "maximum",
        "description",
        "title",
        "$schema",
        "additionalProperties",
    }
)


@dataclass(frozen=True)
class SchemaNode:
    """Recursive description of an expected JSON value."""

    type: SchemaType | None = None
    required: frozenset[str] = frozenset()
    properties: Mapping[str, SchemaNode] = field(default_factory=lambda: MappingProxyType({}))
    items: SchemaNode | None = None
    enum: tuple[Any, ...] | None = None
    min_length: int | None = None
    max_length: int | None = None
    minimum: float | None = None
    maximum: float | None = None

    @property
    def effective_type(self) -> SchemaType | None:
        if self.type is None and (self.properties or self.required):
            return SchemaType.OBJECT
        return self.type

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "$") -> SchemaNode:
        """Build a node from a JSON-schema-like mapping.

        Raises:
            SchemaDefinitionError: on unknown types or malformed keywords.
        """
        if not isinstance(data, Mapping):
            raise SchemaDefinitionError(f"Schema at '{path}' must be an object")
        unknown = set(data) - _KNOWN_KEYS
        if unknown:
            raise SchemaDefinitionError(
                f"Schema at '{path}' uses unsupported keywords: {', '.join(sorted(unknown))}"
            )

        node_type: SchemaType | None = None
        if "type" in data:
            try:
                node_type = SchemaType(data["type"])
            except ValueError as exc:
                raise SchemaDefinitionError(
                    f"Schema at '{path}' has unknown type '{data['type']}'"
                ) from exc

        required = data.get("required", [])
        if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
            raise SchemaDefinitionError(f"'required' at '{path}' must be a list of strings")

        raw_properties = data.get("properties", {})
        if not isinstance(raw_properties, Mapping):
            raise SchemaDefinitionError(f"'properties' at '{path}' must be an object")
        properties = {
            name: cls.from_dict(child, f"{path}.{name}")
            for name, child in raw_properties.items()
        }

        items = None
        if "items" in data:
            items = cls.from_dict(data["items"], f"{path}[]")

        enum = None
        if "enum" in data:
            if not isinstance(data["enum"], list) or not data["enum"]:
                raise SchemaDefinitionError(f"'enum' at '{path}' must be a non-empty list")
            enum = tuple(data["enum"])

        return cls(
            type=node_type,
            required=frozenset(required),
            properties=MappingProxyType(properties),
            items=items,
            enum=enum,
            min_length=cls._int_bound(data, ("minLength", "min_length"), path),
            max_length=cls._int_bound(data, ("maxLength", "max_length"), path),
            minimum=cls._number_bound(data, "minimum", path),
            maximum=cls._number_bound(data, "maximum", path),
        )

    @staticmethod
    def _int_bound(data: Mapping[str, Any], keys: tuple[str, ...], path: str) -> int | None:
        for key in keys:
            if key in data:
                value = data[key]
                if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                    raise SchemaDefinitionError(
                        f"'{key}' at '{path}' must be a non-negative integer"
                    )
                return value
        return None

    @staticmethod
    def _number_bound(data: Mapping[str, Any], key: str, path: str) -> float | None:
        if key not in data:
            return None
        value = data[key]
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise SchemaDefinitionError(f"'{key}' at '{path}' must be a number")
        return value


@dataclass(frozen=True)
class ValidationOutcome:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_messages(cls, errors: list[str], warnings: list[str]) -> ValidationOutcome:
        return cls(valid=not errors, errors=list(errors), warnings=list(warnings))
