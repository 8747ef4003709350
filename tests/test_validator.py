"""Tests for sdkforge.validator."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from sdkforge.exceptions import ValidationError
from sdkforge.exit_codes import EXIT_VALIDATION_ERROR
from sdkforge.models import CanonicalSchema
from sdkforge.validator import assert_valid, validate_schema


@pytest.fixture
def petstore_dict(petstore_schema: CanonicalSchema) -> dict[str, Any]:
    return copy.deepcopy(petstore_schema.to_dict())


def _codes(data: Any) -> list[str]:
    return [issue.code for issue in validate_schema(data).errors]


class TestValidSchemas:
    def test_built_schemas_are_valid(
        self, petstore_schema: CanonicalSchema, custom_schema: CanonicalSchema
    ) -> None:
        assert validate_schema(petstore_schema).valid
        assert validate_schema(custom_schema).valid

    def test_accepts_dict_and_json(self, petstore_schema: CanonicalSchema) -> None:
        assert validate_schema(petstore_schema.to_dict()).valid
        assert validate_schema(petstore_schema.to_json()).valid


class TestStructure:
    def test_missing_metadata(self) -> None:
        report = validate_schema({"types": []})
        assert not report.valid
        assert report.errors[0].path == "metadata"
        assert report.errors[0].code == "missing"

    def test_unknown_type_kind(self, petstore_dict: dict[str, Any]) -> None:
        petstore_dict["types"][0]["kind"] = "tuple"
        report = validate_schema(petstore_dict)
        assert not report.valid
        assert report.errors[0].path.startswith("types[0]")

    def test_invalid_json_text(self) -> None:
        report = validate_schema("{not json")
        assert not report.valid
        assert report.errors[0].code == "json_invalid"


class TestSemantics:
    def test_dangling_type_reference(self, petstore_dict: dict[str, Any]) -> None:
        petstore_dict["endpoints"][0]["parameters"][0]["type"]["typeId"] = "type_999"
        report = validate_schema(petstore_dict)
        assert not report.valid
        issue = report.errors[0]
        assert issue.code == "invalid_type_reference"
        assert issue.path == "endpoints[0].parameters[0].type.typeId"
        assert "type_999" in issue.message

    def test_unknown_auth_reference(self, petstore_dict: dict[str, Any]) -> None:
        petstore_dict["endpoints"][0]["authentication"] = ["nope"]
        assert _codes(petstore_dict) == ["invalid_auth_reference"]

    def test_duplicate_operation_id(self, petstore_dict: dict[str, Any]) -> None:
        petstore_dict["endpoints"][1]["operationId"] = petstore_dict["endpoints"][0]["operationId"]
        assert _codes(petstore_dict) == ["duplicate_operation_id"]

    def test_duplicate_type_name(self, petstore_dict: dict[str, Any]) -> None:
        petstore_dict["types"][1]["name"] = petstore_dict["types"][0]["name"]
        assert "duplicate_type_name" in _codes(petstore_dict)

    def test_required_property_not_declared(self, petstore_dict: dict[str, Any]) -> None:
        pet = next(t for t in petstore_dict["types"] if t["name"] == "Pet")
        pet["required"].append("ghost")
        assert _codes(petstore_dict) == ["invalid_required_property"]

    def test_empty_union(self, petstore_dict: dict[str, Any]) -> None:
        event = next(t for t in petstore_dict["types"] if t["name"] == "Event")
        event["variants"] = []
        assert _codes(petstore_dict) == ["empty_union"]

    def test_dangling_discriminator_mapping(self, petstore_dict: dict[str, Any]) -> None:
        event = next(t for t in petstore_dict["types"] if t["name"] == "Event")
        event["discriminatorMapping"] = {"pet": event["variants"][0]["typeId"], "gone": "type_999"}
        index = petstore_dict["types"].index(event)
        report = validate_schema(petstore_dict)
        assert [issue.code for issue in report.errors] == ["invalid_type_reference"]
        assert report.errors[0].path == f"types[{index}].discriminatorMapping[gone].typeId"

    def test_issue_str(self, petstore_dict: dict[str, Any]) -> None:
        petstore_dict["endpoints"][0]["authentication"] = ["nope"]
        issue = validate_schema(petstore_dict).errors[0]
        assert str(issue) == "endpoints[0].authentication[0]: Authentication scheme 'nope' not found"


class TestAssertValid:
    def test_returns_model(self, petstore_schema: CanonicalSchema) -> None:
        assert assert_valid(petstore_schema.to_json()) == petstore_schema

    def test_raises_with_issues(self, petstore_dict: dict[str, Any]) -> None:
        petstore_dict["endpoints"][0]["authentication"] = ["nope"]
        with pytest.raises(ValidationError) as exc_info:
            assert_valid(petstore_dict)
        assert exc_info.value.exit_code == EXIT_VALIDATION_ERROR
        assert [i.code for i in exc_info.value.issues] == ["invalid_auth_reference"]
        assert "Invalid canonical schema" in str(exc_info.value)
