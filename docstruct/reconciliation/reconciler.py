"""Reconcile anchor-tagged model responses with the anchors that were sent.

``reconcile`` never raises on model output: malformed JSON, schema problems
and missing anchors all come back as data on the ParsedModelResponse.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import replace
from typing import Any, ClassVar

from docstruct.anchors.codec import AnchorCodec
from docstruct.logging.logger import Log
from docstruct.reconciliation.models import AnchorOutcome, ParsedModelResponse
from docstruct.schema.exceptions import SchemaNotFoundError
from docstruct.schema.registry import SchemaRegistry
from docstruct.schema.validator import validate_data

REPAIRED_WARNING = "Response JSON was repaired before parsing"


class ResponseReconciler:
    """Validates model output against a schema and the original anchor set."""

    _FENCE_RE: ClassVar[re.Pattern[str]] = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?|\n?```\s*$")
    _TRAILING_COMMA_RE: ClassVar[re.Pattern[str]] = re.compile(r",\s*([}\]])")

    def __init__(self, *, registry: SchemaRegistry, codec: AnchorCodec) -> None:
        self._registry = registry
        self._codec = codec

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reconcile(
        self,
        raw_response: str,
        schema_type: str,
        original_anchor_ids: Iterable[str],
        strict: bool = True,
    ) -> ParsedModelResponse:
        originals = self._normalize_originals(original_anchor_ids)
        errors: list[str] = []
        warnings: list[str] = []
        metadata: dict[str, object] = {
            "response_length": len(raw_response or ""),
            "anchors_expected": len(originals),
            "schema_type": schema_type,
            "strict": strict,
        }

        data, repaired, parse_error = self._decode(raw_response or "")
        metadata["repaired"] = repaired
        if parse_error is not None:
            Log.warning(f"Model response for '{schema_type}' is not valid JSON: {parse_error}")
            metadata["anchors_matched"] = 0
            return ParsedModelResponse(
                is_valid=False,
                parsed_data=None,
                anchor_outcomes={
                    anchor_id: AnchorOutcome(
                        anchor_id=anchor_id,
                        is_valid=False,
                        found_in_response=False,
                        error="Response is not valid JSON",
                    )
                    for anchor_id in originals
                },
                schema_type=schema_type,
                raw_response=raw_response,
                errors=[f"Invalid JSON: {parse_error}"],
                metadata=metadata,
            )
        if repaired:
            warnings.append(REPAIRED_WARNING)

        try:
            schema = self._registry.get(schema_type)
        except SchemaNotFoundError:
            warnings.append(f"No schema registered for '{schema_type}'; schema validation skipped")
        else:
            outcome = validate_data(data, schema)
            errors.extend(outcome.errors)
            warnings.extend(outcome.warnings)

        anchor_items = self._resolve_anchor_items(data, warnings)
        anchor_outcomes: dict[str, AnchorOutcome] = {}
        for anchor_id in originals:
            found = anchor_id in anchor_items
            anchor_outcomes[anchor_id] = AnchorOutcome(
                anchor_id=anchor_id,
                is_valid=found,
                found_in_response=found,
                error=None if found else "Anchor not found in response",
            )
            if not found:
                message = f"Anchor not found in response: {anchor_id}"
                (errors if strict else warnings).append(message)
        for anchor_id in anchor_items:
            if anchor_id not in anchor_outcomes:
                warnings.append(f"Unexpected anchor in response: {anchor_id}")

        matched = sum(1 for outcome in anchor_outcomes.values() if outcome.is_valid)
        metadata["anchors_matched"] = matched
        if strict:
            is_valid = not errors
        elif originals:
            is_valid = matched > 0
            if not is_valid:
                errors.append("No original anchors found in response")
        else:
            is_valid = not errors or bool(data)

        Log.info(
            f"Reconciled '{schema_type}' response: {matched}/{len(originals)} anchors, "
            f"{len(errors)} errors, {len(warnings)} warnings, valid={is_valid}"
        )
        return ParsedModelResponse(
            is_valid=is_valid,
            parsed_data=data,
            anchor_outcomes=anchor_outcomes,
            schema_type=schema_type,
            raw_response=raw_response,
            warnings=warnings,
            errors=errors,
            metadata=metadata,
            anchor_items=anchor_items,
        )

    def reconcile_with_fallback(
        self,
        raw_response: str,
        schema_type: str,
        original_anchor_ids: Iterable[str],
    ) -> ParsedModelResponse:
        """Try strict reconciliation first, then accept a partial result."""
        originals = list(original_anchor_ids)
        result = self.reconcile(raw_response, schema_type, originals, strict=True)
        if result.is_valid:
            return replace(result, metadata={**result.metadata, "fallback_used": False})
        Log.warning(f"Strict reconciliation of '{schema_type}' failed, retrying non-strict")
        fallback = self.reconcile(raw_response, schema_type, originals, strict=False)
        return replace(fallback, metadata={**fallback.metadata, "fallback_used": True})

    # ------------------------------------------------------------------
    # JSON recovery
    # ------------------------------------------------------------------

    def _decode(self, raw_response: str) -> tuple[Any, bool, str | None]:
        """Return (data, repaired, error) for a raw model response."""
        text = self._FENCE_RE.sub("", raw_response.strip()).strip()
        ok, data, error = self._loads(text)
        if ok:
            return data, False, None

        candidate = self._outermost_json(text)
        if candidate and candidate != text:
            ok, data, _ = self._loads(candidate)
            if ok:
                return data, False, None

        repaired = self._repair_json(candidate or text)
        if repaired:
            ok, data, _ = self._loads(repaired)
            if ok:
                return data, True, None
        return None, False, error

    @staticmethod
    def _loads(text: str) -> tuple[bool, Any, str | None]:
        try:
            return True, json.loads(text), None
        except (json.JSONDecodeError, RecursionError) as exc:
            return False, None, str(exc)

    @staticmethod
    def _outermost_json(text: str) -> str:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1:
            return ""
        if end < start:
            return text[start:]
        return text[start : end + 1]

    def _repair_json(self, text: str) -> str:
        """Drop trailing commas and close unbalanced brackets outside strings."""
        if not text.lstrip().startswith(("{", "[")):
            return ""
        repaired = self._TRAILING_COMMA_RE.sub(r"\1", text.strip())
        stack: list[str] = []
        in_string = False
        escaped = False
        for char in repaired:
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char in "{[":
                stack.append("}" if char == "{" else "]")
            elif char in "}]" and stack and stack[-1] == char:
                stack.pop()
        if in_string:
            repaired += '"'
        repaired = repaired.rstrip().rstrip(",")
        return repaired + "".join(reversed(stack))

    # ------------------------------------------------------------------
    # Anchors
    # ------------------------------------------------------------------

    def _normalize_originals(self, original_anchor_ids: Iterable[str]) -> list[str]:
        originals: list[str] = []
        for value in original_anchor_ids:
            anchor_id = self._codec.normalize_reference(value) or str(value)
            if anchor_id not in originals:
                originals.append(anchor_id)
        return originals

    def _resolve_anchor_items(
        self,
        data: Any,
        warnings: list[str],
    ) -> dict[str, list[dict[str, Any]]]:
        items: dict[str, list[dict[str, Any]]] = {}
        for item in self._anchored_items(data):
            anchor_id = self._codec.normalize_reference(item.get("anchor"))
            if anchor_id is None:
                warnings.append(f"Malformed anchor in response: {item.get('anchor')!r}")
                continue
            items.setdefault(anchor_id, []).append(item)
        return items

    @classmethod
    def _anchored_items(cls, data: Any) -> list[dict[str, Any]]:
        if isinstance(data, dict) and isinstance(data.get("sections"), list):
            return [
                item for item in data["sections"] if isinstance(item, dict) and "anchor" in item
            ]
        found: list[dict[str, Any]] = []
        cls._search_anchors(data, found)
        return found

    @staticmethod
    def _search_anchors(value: Any, found: list[dict[str, Any]]) -> None:
        """Depth-first walk in document order, without recursion."""
        pending: list[Any] = [value]
        while pending:
            current = pending.pop()
            if isinstance(current, dict):
                if "anchor" in current:
                    found.append(current)
                pending.extend(reversed(list(current.values())))
            elif isinstance(current, list):
                pending.extend(reversed(current))
