import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from docstruct.logging.logger import Log
from docstruct.schema.exceptions import SchemaDefinitionError, SchemaNotFoundError
from docstruct.schema.models import SchemaNode

_DEFAULT_SCHEMA_DIR = Path(__file__).parent / "schemas"


class SchemaRegistry:
    """Schema table keyed by schema type.

    Definitions are parsed into SchemaNodes when registered, so a malformed
    definition fails at startup instead of during reconciliation.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, SchemaNode] = {}
        self._definitions: dict[str, dict[str, Any]] = {}

    @classmethod
    def load_bundled(cls, directory: Path | None = None) -> "SchemaRegistry":
        """Register every ``*.json`` file in ``directory`` under its stem.

        Raises:
            SchemaDefinitionError: if a file cannot be read or parsed.
        """
        registry = cls()
        directory = directory or _DEFAULT_SCHEMA_DIR
        for path in sorted(directory.glob("*.json")):
            try:
                definition = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                raise SchemaDefinitionError(f"Failed to load schema {path.name}: {exc}") from exc
            registry.register(path.stem, definition)
        Log.debug(f"Loaded {len(registry.schema_types)} response schemas from {directory}")
        return registry

    def register(self, schema_type: str, definition: Mapping[str, Any]) -> SchemaNode:
        node = SchemaNode.from_dict(definition)
        key = schema_type.lower()
        self._nodes[key] = node
        self._definitions[key] = dict(definition)
        return node

    def get(self, schema_type: str) -> SchemaNode:
        node = self._nodes.get(schema_type.lower())
        if node is None:
            raise SchemaNotFoundError(
                f"No schema registered for '{schema_type}'. Choose from: {self.schema_types}"
            )
        return node

    def definition(self, schema_type: str) -> dict[str, Any]:
        """Return the raw JSON definition, e.g. for a model's response format."""
        self.get(schema_type)
        return self._definitions[schema_type.lower()]

    @property
    def schema_types(self) -> list[str]:
        return sorted(self._nodes)

    def __contains__(self, schema_type: object) -> bool:
        return isinstance(schema_type, str) and schema_type.lower() in self._nodes
