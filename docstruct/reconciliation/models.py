from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AnchorOutcome:
    anchor_id: str
    is_valid: bool
    found_in_response: bool
    error: str | None = None


@dataclass(frozen=True)
class ParsedModelResponse:
    """A model response checked against its schema and the original anchors."""

    is_valid: bool
    parsed_data: Any
    anchor_outcomes: dict[str, AnchorOutcome]
    schema_type: str
    raw_response: str
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    metadata: dict[str, object] = field(default_factory=dict)
    anchor_items: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    @property
    def valid_anchor_count(self) -> int:
        return sum(1 for outcome in self.anchor_outcomes.values() if outcome.is_valid)

    @property
    def invalid_anchor_count(self) -> int:
        return len(self.anchor_outcomes) - self.valid_anchor_count

    @property
    def has_partial_results(self) -> bool:
        return self.is_valid and self.invalid_anchor_count > 0

    def missing_anchor_ids(self) -> list[str]:
        return [
            anchor_id
            for anchor_id, outcome in self.anchor_outcomes.items()
            if not outcome.is_valid
        ]

    def data_by_path(self, path: str, default: Any = None) -> Any:
        """Look up ``a.b.0.c`` style paths in the parsed data."""
        current = self.parsed_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                return default
        return current

    def content_by_anchor(self, anchor_id: str) -> str | None:
        return self.anchor_content_map().get(anchor_id)

    def anchor_content_map(self) -> dict[str, str]:
        """Map each valid anchor id to the content the model returned for it."""
        mapping: dict[str, str] = {}
        for anchor_id, items in self.anchor_items.items():
            outcome = self.anchor_outcomes.get(anchor_id)
            if outcome is None or not outcome.is_valid:
                continue
            contents = [str(item["content"]) for item in items if item.get("content")]
            if contents:
                mapping[anchor_id] = "\n\n".join(contents)
        return mapping
