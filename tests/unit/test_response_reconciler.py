"""Tests for ResponseReconciler JSON recovery and anchor checks."""

import json

import pytest

from docstruct.anchors.codec import AnchorCodec
from docstruct.reconciliation.reconciler import REPAIRED_WARNING, ResponseReconciler
from docstruct.schema.registry import SchemaRegistry


@pytest.fixture()
def reconciler(codec: AnchorCodec) -> ResponseReconciler:
    return ResponseReconciler(registry=SchemaRegistry.load_bundled(), codec=codec)


def _response(*anchors: str, content: str = "translated") -> str:
    return json.dumps(
        {"sections": [{"anchor": anchor, "content": f"{content} {anchor}"} for anchor in anchors]}
    )


class TestReconcile:
    def test_all_anchors_present(self, reconciler: ResponseReconciler) -> None:
        result = reconciler.reconcile(_response("s1", "s2"), "translation", ["s1", "s2"])

        assert result.is_valid
        assert result.errors == []
        assert result.valid_anchor_count == 2
        assert result.content_by_anchor("s1") == "translated s1"
        assert result.metadata["anchors_matched"] == 2

    def test_partial_success_in_non_strict_mode(self, reconciler: ResponseReconciler) -> None:
        result = reconciler.reconcile(
            _response("s1", "s3"), "translation", ["s1", "s2", "s3"], strict=False
        )

        assert result.is_valid
        assert result.anchor_outcomes["s2"].is_valid is False
        assert result.anchor_outcomes["s2"].found_in_response is False
        assert any("s2" in warning for warning in result.warnings)
        assert result.has_partial_results
        assert result.missing_anchor_ids() == ["s2"]

    def test_missing_anchor_is_error_in_strict_mode(self, reconciler: ResponseReconciler) -> None:
        result = reconciler.reconcile(
            _response("s1", "s3"), "translation", ["s1", "s2", "s3"], strict=True
        )

        assert not result.is_valid
        assert "Anchor not found in response: s2" in result.errors

    def test_no_matching_anchors_is_invalid_even_non_strict(
        self, reconciler: ResponseReconciler
    ) -> None:
        result = reconciler.reconcile(_response("zz"), "translation", ["s1"], strict=False)

        assert not result.is_valid
        assert "No original anchors found in response" in result.errors
        assert "Unexpected anchor in response: zz" in result.warnings

    def test_anchor_given_as_full_marker(
        self, reconciler: ResponseReconciler, codec: AnchorCodec
    ) -> None:
        marker = codec.format_marker("s1", "title", "abcdef")
        result = reconciler.reconcile(_response(marker), "translation", [marker])

        assert result.is_valid
        assert list(result.anchor_outcomes) == ["s1"]

    def test_invalid_json_is_never_valid(self, reconciler: ResponseReconciler) -> None:
        result = reconciler.reconcile("definitely not json", "translation", ["s1"], strict=False)

        assert not result.is_valid
        assert result.parsed_data is None
        assert result.errors[0].startswith("Invalid JSON:")
        assert result.anchor_outcomes["s1"].error == "Response is not valid JSON"

    def test_deeply_nested_response_is_invalid_json(self, reconciler: ResponseReconciler) -> None:
        result = reconciler.reconcile("[" * 50000, "translation", ["s1"], strict=False)

        assert not result.is_valid
        assert result.parsed_data is None
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Invalid JSON:")

    def test_strips_markdown_fences(self, reconciler: ResponseReconciler) -> None:
        raw = "```json\n" + _response("s1") + "\n```"
        assert reconciler.reconcile(raw, "translation", ["s1"]).is_valid

    def test_extracts_json_from_surrounding_prose(self, reconciler: ResponseReconciler) -> None:
        raw = "Here is the result: " + _response("s1") + " Hope it helps."
        result = reconciler.reconcile(raw, "translation", ["s1"])
        assert result.is_valid
        assert REPAIRED_WARNING not in result.warnings

    def test_repairs_truncated_json(self, reconciler: ResponseReconciler) -> None:
        raw = '{"sections": [{"anchor": "s1", "content": "text"},'
        result = reconciler.reconcile(raw, "translation", ["s1"])

        assert result.is_valid
        assert result.metadata["repaired"] is True
        assert REPAIRED_WARNING in result.warnings

    def test_schema_errors_invalidate_strict_result(self, reconciler: ResponseReconciler) -> None:
        raw = json.dumps({"sections": [{"anchor": "s1", "content": "x", "kind": "oops"}]})
        result = reconciler.reconcile(raw, "contradiction", ["s1"], strict=True)

        assert not result.is_valid
        assert "Field 'sections[0].kind' must be one of: contradiction, risk, warning" in (
            result.errors
        )

    def test_unknown_schema_degrades_to_warning(self, reconciler: ResponseReconciler) -> None:
        result = reconciler.reconcile(_response("s1"), "summary", ["s1"])

        assert result.is_valid
        assert "No schema registered for 'summary'; schema validation skipped" in (
            result.warnings
        )

    def test_malformed_anchor_reported(self, reconciler: ResponseReconciler) -> None:
        raw = json.dumps({"sections": [{"anchor": "s1", "content": "a"}, {"anchor": "bad id!"}]})
        result = reconciler.reconcile(raw, "general", ["s1"])

        assert "Malformed anchor in response: 'bad id!'" in result.warnings

    def test_finds_anchors_outside_sections_array(self, reconciler: ResponseReconciler) -> None:
        raw = json.dumps({"items": {"first": {"anchor": "s1", "content": "found"}}})
        result = reconciler.reconcile(raw, "unknown", ["s1"])

        assert result.anchor_outcomes["s1"].is_valid
        assert result.content_by_anchor("s1") == "found"

    def test_finds_anchor_in_deeply_nested_response(self, reconciler: ResponseReconciler) -> None:
        raw = json.dumps({"anchor": "s1", "content": "inner"})
        for _ in range(200):
            raw = f'{{"wrap": [{raw}]}}'
        raw = raw[:-2] + ', {"anchor": "s2", "content": "outer"}]}'

        result = reconciler.reconcile(raw, "unknown", ["s1", "s2"])

        assert result.is_valid
        assert result.content_by_anchor("s1") == "inner"
        assert result.content_by_anchor("s2") == "outer"


class TestReconcileWithFallback:
    def test_strict_success_skips_fallback(self, reconciler: ResponseReconciler) -> None:
        result = reconciler.reconcile_with_fallback(_response("s1"), "translation", ["s1"])

        assert result.is_valid
        assert result.metadata["fallback_used"] is False

    def test_falls_back_to_partial_result(self, reconciler: ResponseReconciler) -> None:
        result = reconciler.reconcile_with_fallback(
            _response("s1"), "translation", ["s1", "s2"]
        )

        assert result.is_valid
        assert result.metadata["fallback_used"] is True
        assert result.metadata["strict"] is False


class TestParsedModelResponse:
    def test_data_by_path(self, reconciler: ResponseReconciler) -> None:
        result = reconciler.reconcile(_response("s1"), "translation", ["s1"])

        assert result.data_by_path("sections.0.anchor") == "s1"
        assert result.data_by_path("sections.5.anchor", "none") == "none"

    def test_content_map_joins_multiple_items(self, reconciler: ResponseReconciler) -> None:
        raw = json.dumps(
            {
                "sections": [
                    {"anchor": "s1", "content": "first"},
                    {"anchor": "s1", "content": "second"},
                ]
            }
        )
        result = reconciler.reconcile(raw, "translation", ["s1"])

        assert result.anchor_content_map() == {"s1": "first\n\nsecond"}
