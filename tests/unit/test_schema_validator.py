"""Tests for schema validation of decoded JSON."""

import pytest

from docstruct.schema.exceptions import SchemaDefinitionError
from docstruct.schema.models import SchemaNode, SchemaType
from docstruct.schema.validator import (
    NESTING_TOO_DEEP_ERROR,
    json_type_name,
    validate,
    validate_data,
)


class TestValidate:
    def test_missing_required_field(self) -> None:
        outcome = validate('{"name":"John"}', {"required": ["name", "age"]})
        assert outcome.valid is False
        assert "Missing required field: age" in outcome.errors

    def test_type_mismatch(self) -> None:
        outcome = validate('{"age":"x"}', {"properties": {"age": {"type": "integer"}}})
        assert outcome.valid is False
        assert outcome.errors == ["Field 'age' expected type 'integer', got 'string'"]

    def test_unexpected_field_is_only_a_warning(self) -> None:
        outcome = validate('{"a":1,"b":2}', {"properties": {"a": {"type": "integer"}}})
        assert outcome.valid is True
        assert outcome.errors == []
        assert outcome.warnings == ["Unexpected field: b"]

    def test_invalid_json(self) -> None:
        outcome = validate("{not json", {"type": "object"})
        assert outcome.valid is False
        assert outcome.errors[0].startswith("Invalid JSON:")

    def test_root_type_mismatch(self) -> None:
        outcome = validate("[1, 2]", {"type": "object"})
        assert outcome.errors == ["Root element expected type 'object', got 'array'"]

    def test_deeply_nested_json_is_invalid_json(self) -> None:
        outcome = validate("[" * 50000 + "]" * 50000, {"type": "array"})
        assert outcome.valid is False
        assert len(outcome.errors) == 1
        assert outcome.errors[0].startswith("Invalid JSON:")


class TestValidateData:
    def test_string_bounds(self) -> None:
        schema = {"properties": {"code": {"type": "string", "minLength": 2, "maxLength": 3}}}
        assert validate_data({"code": "a"}, schema).errors == [
            "Field 'code' must be at least 2 characters"
        ]
        assert validate_data({"code": "abcd"}, schema).errors == [
            "Field 'code' must be no more than 3 characters"
        ]

    def test_number_bounds(self) -> None:
        schema = {"properties": {"score": {"type": "number", "minimum": 0, "maximum": 1}}}
        assert validate_data({"score": 0.5}, schema).valid
        assert validate_data({"score": 2}, schema).errors == [
            "Field 'score' must be no more than 1"
        ]
        assert validate_data({"score": -0.5}, schema).errors == [
            "Field 'score' must be at least 0"
        ]

    def test_integer_accepted_for_number(self) -> None:
        schema = {"properties": {"n": {"type": "number"}}}
        assert validate_data({"n": 3}, schema).valid

    def test_boolean_is_not_integer(self) -> None:
        schema = {"properties": {"n": {"type": "integer"}}}
        assert validate_data({"n": True}, schema).errors == [
            "Field 'n' expected type 'integer', got 'boolean'"
        ]

    def test_enum(self) -> None:
        schema = {"properties": {"kind": {"type": "string", "enum": ["risk", "warning"]}}}
        assert validate_data({"kind": "other"}, schema).errors == [
            "Field 'kind' must be one of: risk, warning"
        ]

    @pytest.mark.parametrize(
        ("value", "options", "valid"),
        [
            (True, [1], False),
            (1, [True], False),
            (0, [False], False),
            (1, [1], True),
            (1.0, [1], True),
            (False, [False], True),
        ],
    )
    def test_enum_compares_json_types(self, value: object, options: list, valid: bool) -> None:
        assert validate_data(value, {"enum": options}).valid is valid

    def test_nested_array_items(self) -> None:
        schema = {
            "type": "object",
            "properties": {
                "sections": {
                    "type": "array",
                    "items": {"required": ["anchor"], "properties": {"anchor": {"type": "string"}}},
                }
            },
        }
        outcome = validate_data({"sections": [{"anchor": "s1"}, {"content": "x"}]}, schema)
        assert "Missing required field: sections[1].anchor" in outcome.errors
        assert "Unexpected field: sections[1].content" in outcome.warnings

    def test_root_array_item_paths(self) -> None:
        schema = {"type": "array", "items": {"type": "string"}}
        outcome = validate_data(["ok", 3], schema)
        assert outcome.errors == ["Field 'items[1]' expected type 'string', got 'integer'"]

    def test_array_item_count_bounds(self) -> None:
        schema = {"properties": {"sections": {"type": "array", "minLength": 1}}}
        assert validate_data({"sections": []}, schema).errors == [
            "Field 'sections' must contain at least 1 items"
        ]

    def test_null_type(self) -> None:
        schema = {"properties": {"dob": {"type": "null"}}}
        assert validate_data({"dob": None}, schema).valid

    def test_accepts_prebuilt_node(self) -> None:
        node = SchemaNode.from_dict({"required": ["x"]})
        assert not validate_data({}, node).valid

    def test_deep_value_reports_error_instead_of_raising(self) -> None:
        node = SchemaNode(type=SchemaType.ARRAY)
        data: list = []
        for _ in range(5000):
            node = SchemaNode(type=SchemaType.ARRAY, items=node)
            data = [data]

        outcome = validate_data(data, node)

        assert outcome.valid is False
        assert outcome.errors == [NESTING_TOO_DEEP_ERROR]


class TestSchemaNode:
    def test_infers_object_type(self) -> None:
        node = SchemaNode.from_dict({"properties": {"a": {"type": "string"}}})
        assert node.effective_type is SchemaType.OBJECT

    def test_rejects_unknown_type(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="unknown type 'date'"):
            SchemaNode.from_dict({"type": "date"})

    def test_rejects_unknown_keyword(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="unsupported keywords: pattern"):
            SchemaNode.from_dict({"type": "string", "pattern": "^a$"})

    def test_rejects_negative_length(self) -> None:
        with pytest.raises(SchemaDefinitionError, match="non-negative integer"):
            SchemaNode.from_dict({"type": "string", "minLength": -1})

    def test_accepts_snake_case_bounds(self) -> None:
        node = SchemaNode.from_dict({"type": "string", "min_length": 2, "max_length": 5})
        assert (node.min_length, node.max_length) == (2, 5)


class TestJsonTypeName:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "null"),
            (True, "boolean"),
            (1, "integer"),
            (1.5, "number"),
            ("s", "string"),
            ([], "array"),
            ({}, "object"),
        ],
    )
    def test_names(self, value: object, expected: str) -> None:
        assert json_type_name(value) == expected
