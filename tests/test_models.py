"""Tests for sdkforge.models -- canonical serialisation and model behaviour."""

from __future__ import annotations

import json

import pydantic
import pytest

from sdkforge.models import (
    ApiKeyAuthScheme,
    CanonicalSchema,
    GenerateConfig,
    ParameterDefinition,
    ParameterLocation,
    PrimitiveKind,
    PrimitiveType,
    TargetLanguage,
    TypeReference,
)


class TestRoundTrip:
    def test_json_round_trip_is_lossless(
        self, petstore_schema: CanonicalSchema, custom_schema: CanonicalSchema
    ) -> None:
        for schema in (petstore_schema, custom_schema):
            assert CanonicalSchema.from_json(schema.to_json()) == schema

    def test_dict_round_trip(self, custom_schema: CanonicalSchema) -> None:
        assert CanonicalSchema.model_validate(custom_schema.to_dict()) == custom_schema

    def test_serialises_camel_case(self, petstore_schema: CanonicalSchema) -> None:
        data = json.loads(petstore_schema.to_json())
        assert "providerId" in data["metadata"]
        assert "operationId" in data["endpoints"][0]
        assert "typeId" in data["endpoints"][0]["parameters"][0]["type"]
        assert data["endpoints"][0]["parameters"][0]["in"] == "query"

    def test_none_fields_omitted(self, petstore_schema: CanonicalSchema) -> None:
        data = petstore_schema.to_dict()
        delete = next(e for e in data["endpoints"] if e["operationId"] == "deletePet")
        assert "requestBody" not in delete


class TestModelBehaviour:
    def test_canonical_models_are_frozen(self) -> None:
        ref = TypeReference(type_id="type_1")
        with pytest.raises(pydantic.ValidationError):
            ref.nullable = True

    def test_populate_by_field_name_or_alias(self) -> None:
        by_name = ParameterDefinition(
            name="q", location=ParameterLocation.QUERY, type=TypeReference(type_id="t")
        )
        by_alias = ParameterDefinition.model_validate(
            {"name": "q", "in": "query", "type": {"typeId": "t"}}
        )
        assert by_name == by_alias

    def test_api_key_location_alias(self) -> None:
        scheme = ApiKeyAuthScheme(id="k", name="X-Key")
        assert scheme.model_dump(by_alias=True)["in"] == "header"

    def test_get_type(self, petstore_schema: CanonicalSchema) -> None:
        first = petstore_schema.types[0]
        assert petstore_schema.get_type(first.id) is first
        assert petstore_schema.get_type("type_missing") is None

    def test_discriminated_type_parsing(self) -> None:
        schema = CanonicalSchema.model_validate(
            {
                "metadata": {
                    "providerId": "p",
                    "providerName": "P",
                    "apiVersion": "1",
                    "generatedAt": "2024-01-01T00:00:00+00:00",
                },
                "types": [{"id": "type_1", "name": "S", "kind": "primitive", "primitiveKind": "string"}],
            }
        )
        assert isinstance(schema.types[0], PrimitiveType)
        assert schema.types[0].primitive_kind is PrimitiveKind.STRING


class TestGenerateConfig:
    def test_defaults(self) -> None:
        config = GenerateConfig()
        assert config.languages == list(TargetLanguage)
        assert config.parallel is True
        assert config.package_name is None

    def test_rejects_unknown_keys(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            GenerateConfig.model_validate({"langauges": ["go"]})

    def test_orchestrator_options_default_package_name(self) -> None:
        options = GenerateConfig(languages=["go"]).orchestrator_options("petstore")
        assert options.package_name == "petstore-sdk"
        assert options.languages == [TargetLanguage.GO]

    def test_orchestrator_options_explicit_package_name(self) -> None:
        options = GenerateConfig(package_name="pets").orchestrator_options("petstore")
        assert options.package_name == "pets"
