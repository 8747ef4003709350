"""Tests for the custom flat provider schema front end."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from sdkforge.adapters.custom import CustomSchemaAdapter, parse_custom_schema
from sdkforge.diagnostics import Diagnostics
from sdkforge.exceptions import ParseError
from sdkforge.models import (
    ArrayType,
    CanonicalSchema,
    EnumType,
    ObjectType,
    PrimitiveKind,
    UnionType,
)
from sdkforge.parser.loader import parse_content


def _types_by_name(schema: CanonicalSchema) -> dict[str, Any]:
    return {t.name: t for t in schema.types}


# ---------------------------------------------------------------------------
# Required document fields
# ---------------------------------------------------------------------------


class TestRequiredFields:
    @pytest.mark.parametrize(
        ("field", "message"),
        [
            ("version", "version is required"),
            ("baseUrl", "Base URL is required"),
            ("endpoints", "At least one endpoint"),
        ],
    )
    def test_missing_field_raises(self, custom_raw: dict[str, Any], field: str, message: str) -> None:
        document = copy.deepcopy(custom_raw)
        del document[field]
        with pytest.raises(ParseError, match=message):
            CustomSchemaAdapter().parse(document, Diagnostics())

    def test_empty_endpoints_fail_the_parse(self, custom_raw: dict[str, Any]) -> None:
        document = {**custom_raw, "endpoints": []}
        result = parse_custom_schema(document)
        assert not result.success
        assert result.schema is None
        assert result.errors == ["At least one endpoint is required"]


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class TestTypes:
    def test_declared_types_present(self, custom_schema: CanonicalSchema) -> None:
        types = _types_by_name(custom_schema)
        for name in ("Role", "TextBlock", "ImageBlock", "ContentBlock", "Message", "MessageRequest"):
            assert name in types

    def test_enum_with_descriptions(self, custom_schema: CanonicalSchema) -> None:
        role = _types_by_name(custom_schema)["Role"]
        assert isinstance(role, EnumType)
        assert [(v.name, v.value, v.description) for v in role.values] == [
            ("USER", "user", "Human turn"),
            ("ASSISTANT", "assistant", "Model turn"),
        ]

    def test_union_of_named_types(self, custom_schema: CanonicalSchema) -> None:
        block = _types_by_name(custom_schema)["ContentBlock"]
        assert isinstance(block, UnionType)
        names = [custom_schema.get_type(v.type_id).name for v in block.variants]
        assert names == ["TextBlock", "ImageBlock"]

    def test_inline_array_property(self, custom_schema: CanonicalSchema) -> None:
        message = _types_by_name(custom_schema)["Message"]
        content = next(p for p in message.properties if p.name == "content")
        array = custom_schema.get_type(content.type.type_id)
        assert isinstance(array, ArrayType)
        assert custom_schema.get_type(array.items.type_id).name == "ContentBlock"

    def test_property_required_flag_and_default(self, custom_schema: CanonicalSchema) -> None:
        request = _types_by_name(custom_schema)["MessageRequest"]
        assert isinstance(request, ObjectType)
        assert request.required == ["model", "max_tokens", "messages"]
        stream = next(p for p in request.properties if p.name == "stream")
        assert stream.default is False
        temperature = next(p for p in request.properties if p.name == "temperature")
        assert temperature.description == "Sampling temperature"
        kind = custom_schema.get_type(temperature.type.type_id).primitive_kind
        assert kind is PrimitiveKind.FLOAT

    def test_unknown_kind_warns(self, custom_raw: dict[str, Any]) -> None:
        document = copy.deepcopy(custom_raw)
        document["types"].append({"name": "Mystery", "kind": "tuple"})
        result = parse_custom_schema(document)
        assert result.success
        assert any("Unknown type kind 'tuple'" in w for w in result.warnings)
        assert "Mystery" not in _types_by_name(result.schema)


# ---------------------------------------------------------------------------
# Endpoints, auth and errors
# ---------------------------------------------------------------------------


class TestEndpoints:
    def test_endpoints(self, custom_schema: CanonicalSchema) -> None:
        assert [(e.operation_id, e.method.value, e.path) for e in custom_schema.endpoints] == [
            ("createMessage", "POST", "/v1/messages"),
            ("getMessage", "GET", "/v1/messages/{message_id}"),
            ("listModels", "GET", "/v1/models"),
        ]

    def test_endpoint_id_preserved(self, custom_schema: CanonicalSchema) -> None:
        assert custom_schema.endpoints[0].id == "createMessage"

    def test_streaming_flag(self, custom_schema: CanonicalSchema) -> None:
        assert [e.streaming for e in custom_schema.endpoints] == [True, False, False]

    def test_request_body_defaults_to_required_json(self, custom_schema: CanonicalSchema) -> None:
        body = custom_schema.endpoints[0].request_body
        assert body.required is True
        assert body.content_type == "application/json"
        assert custom_schema.get_type(body.type.type_id).name == "MessageRequest"

    def test_enum_parameter_with_default(self, custom_schema: CanonicalSchema) -> None:
        order = custom_schema.endpoints[2].parameters[0]
        assert order.name == "order"
        assert order.default == "asc"
        definition = custom_schema.get_type(order.type.type_id)
        assert isinstance(definition, EnumType)
        assert [v.value for v in definition.values] == ["asc", "desc"]

    def test_api_key_auth(self, custom_schema: CanonicalSchema) -> None:
        assert len(custom_schema.authentication) == 1
        scheme = custom_schema.authentication[0]
        assert scheme.id == "apiKey"
        assert scheme.location == "header"
        assert scheme.name == "x-api-key"
        assert [e.authentication for e in custom_schema.endpoints] == [["apiKey"], ["apiKey"], []]

    def test_declared_errors(self, custom_schema: CanonicalSchema) -> None:
        assert [(e.code, e.status_code, e.name, e.retryable) for e in custom_schema.errors] == [
            ("invalid_request_error", 400, "InvalidRequestError", False),
            ("rate_limit_error", 429, "RateLimitError", True),
            ("api_error", 500, "ApiError", True),
        ]

    def test_deprecated_endpoints_skipped_by_default(self, custom_raw: dict[str, Any]) -> None:
        document = copy.deepcopy(custom_raw)
        document["endpoints"][1]["deprecated"] = True
        skipped = parse_custom_schema(document).schema
        kept = parse_custom_schema(document, include_deprecated=True).schema
        assert len(skipped.endpoints) == 2
        assert len(kept.endpoints) == 3

    def test_invalid_error_status_warns(self, custom_raw: dict[str, Any]) -> None:
        document = copy.deepcopy(custom_raw)
        document["errors"] = [{"code": "weird", "statusCode": "abc"}]
        result = parse_custom_schema(document)
        assert result.schema.errors[0].status_code == 500
        assert any("invalid statusCode" in w for w in result.warnings)


class TestMetadata:
    def test_provider_fields(self, custom_schema: CanonicalSchema) -> None:
        meta = custom_schema.metadata
        assert meta.provider_id == "acme"
        assert meta.provider_name == "Acme"
        assert meta.api_version == "2023-06-01"
        assert meta.metadata["baseUrl"] == "https://api.example.com"
        assert meta.metadata["sourceFormat"] == "custom"
        assert [m["id"] for m in meta.metadata["models"]] == ["model-large", "model-small"]

    def test_yaml_dates_survive_json_round_trip(self) -> None:
        document = parse_content(
            "version: '2024-03-07'\n"
            "baseUrl: https://api.example.com\n"
            "models:\n"
            "  - id: model-large\n"
            "    releaseDate: 2024-03-07\n"
            "endpoints:\n"
            "  - id: ping\n"
            "    path: /ping\n"
            "    responses:\n"
            "      - statusCode: 200\n"
            "        schema: string\n",
            "yaml",
        )
        result = parse_custom_schema(document)
        assert result.success, result.errors
        schema = result.schema
        assert schema.metadata.metadata["models"] == [
            {"id": "model-large", "releaseDate": "2024-03-07"}
        ]
        assert CanonicalSchema.from_json(schema.to_json()) == schema


class TestMalformedEntries:
    def test_non_object_property(self, custom_raw: dict[str, Any]) -> None:
        document = copy.deepcopy(custom_raw)
        document["types"] = [{"name": "Msg", "kind": "object", "properties": ["oops"]}]
        result = parse_custom_schema(document)
        assert not result.success
        assert result.errors == ["Property of type 'Msg' must be an object"]

    def test_non_object_parameter(self, custom_raw: dict[str, Any]) -> None:
        document = copy.deepcopy(custom_raw)
        document["endpoints"][1]["parameters"] = ["message_id"]
        with pytest.raises(ParseError, match="Parameter of endpoint 'getMessage' must be an object"):
            CustomSchemaAdapter().parse(document, Diagnostics())
