"""Tests for sdkforge.mapper -- per-language type lowering."""

from __future__ import annotations

import dataclasses

import pytest

from sdkforge.exceptions import UnresolvedReferenceError
from sdkforge.mapper import (
    LOWERING_RULES,
    MapperConfig,
    TypeMapper,
    check_totality,
    map_reference,
)
from sdkforge.models import (
    ArrayType,
    CanonicalSchema,
    EnumType,
    EnumValue,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    TargetLanguage,
    TypeReference,
    UnionType,
)

STRING = PrimitiveType(id="type_1", name="String", primitive_kind=PrimitiveKind.STRING)
TAGS = ArrayType(id="type_2", name="Tags", items=TypeReference(type_id="type_1"))
PET = ObjectType(id="type_3", name="pet")
ERROR = ObjectType(id="type_4", name="Error")
EVENT = UnionType(
    id="type_5",
    name="event",
    variants=[TypeReference(type_id="type_3"), TypeReference(type_id="type_4")],
)
EVENTS = ArrayType(id="type_6", name="Events", items=TypeReference(type_id="type_5"))
STATUS = EnumType(id="type_7", name="Status", values=[EnumValue(name="A", value="a")])
ANYTHING = PrimitiveType(id="type_8", name="Any", primitive_kind=PrimitiveKind.ANY)

TYPES = [STRING, TAGS, PET, ERROR, EVENT, EVENTS, STATUS, ANYTHING]

NULLABLE_TAGS = TypeReference(type_id="type_2", nullable=True)


def _mapper(language: TargetLanguage, **kwargs) -> TypeMapper:
    return TypeMapper(TYPES, MapperConfig(language=language, **kwargs))


# ---------------------------------------------------------------------------
# Nullable arrays across every language
# ---------------------------------------------------------------------------


class TestNullableArray:
    @pytest.mark.parametrize(
        ("language", "expected"),
        [
            (TargetLanguage.RUST, "Option<Vec<String>>"),
            (TargetLanguage.TYPESCRIPT, "string[] | undefined"),
            (TargetLanguage.PYTHON, "Optional[List[str]]"),
            (TargetLanguage.JAVASCRIPT, "string[] | undefined"),
            (TargetLanguage.CSHARP, "List<string>?"),
            (TargetLanguage.GO, "*[]string"),
            (TargetLanguage.JAVA, "Optional<List<String>>"),
        ],
    )
    def test_expression(self, language: TargetLanguage, expected: str) -> None:
        mapped = _mapper(language).map(NULLABLE_TAGS)
        assert mapped.expression == expected
        assert mapped.nullable is True

    def test_python_imports(self) -> None:
        mapped = _mapper(TargetLanguage.PYTHON).map(NULLABLE_TAGS)
        assert mapped.imports == ("from typing import List", "from typing import Optional")

    def test_nullable_wrapper_can_be_disabled(self) -> None:
        mapped = _mapper(TargetLanguage.PYTHON, use_nullable=False).map(NULLABLE_TAGS)
        assert mapped.expression == "List[str]"
        assert mapped.nullable is False

    def test_non_nullable_has_no_wrapper(self) -> None:
        mapped = _mapper(TargetLanguage.RUST).map(TypeReference(type_id="type_2"))
        assert mapped.expression == "Vec<String>"


# ---------------------------------------------------------------------------
# Named types and unions
# ---------------------------------------------------------------------------


class TestNamedTypes:
    def test_objects_and_enums_use_pascal_names(self) -> None:
        mapper = _mapper(TargetLanguage.GO)
        assert mapper.map(TypeReference(type_id="type_3")).expression == "Pet"
        assert mapper.map(TypeReference(type_id="type_7")).expression == "Status"

    def test_custom_mapping_overrides_name(self) -> None:
        mapper = _mapper(TargetLanguage.CSHARP, custom_mappings={"pet": "Animal"})
        assert mapper.map(TypeReference(type_id="type_3")).expression == "Animal"

    def test_any_carries_imports(self) -> None:
        mapped = _mapper(TargetLanguage.PYTHON).map(TypeReference(type_id="type_8"))
        assert mapped.expression == "Any"
        assert mapped.imports == ("from typing import Any",)


class TestUnions:
    @pytest.mark.parametrize(
        ("language", "expected"),
        [
            (TargetLanguage.PYTHON, "Union[Pet, Error]"),
            (TargetLanguage.TYPESCRIPT, "Pet | Error"),
            (TargetLanguage.RUST, "Event"),
            (TargetLanguage.JAVASCRIPT, "any"),
            (TargetLanguage.CSHARP, "object"),
            (TargetLanguage.GO, "interface{}"),
            (TargetLanguage.JAVA, "Object"),
        ],
    )
    def test_strategy_per_language(self, language: TargetLanguage, expected: str) -> None:
        assert _mapper(language).map(TypeReference(type_id="type_5")).expression == expected

    def test_python_union_import(self) -> None:
        mapped = _mapper(TargetLanguage.PYTHON).map(TypeReference(type_id="type_5"))
        assert "from typing import Union" in mapped.imports

    def test_typescript_array_of_union_is_parenthesised(self) -> None:
        mapped = _mapper(TargetLanguage.TYPESCRIPT).map(TypeReference(type_id="type_6"))
        assert mapped.expression == "(Pet | Error)[]"

    def test_strategy_replaceable_through_rules(self) -> None:
        inline_java = dataclasses.replace(
            LOWERING_RULES[TargetLanguage.JAVA], union_strategy="inline", union_format="OneOf<{}>"
        )
        mapper = _mapper(TargetLanguage.JAVA, rules=inline_java)
        assert mapper.map(TypeReference(type_id="type_5")).expression == "OneOf<Pet, Error>"

    def test_duplicate_variant_expressions_collapse(self) -> None:
        types = [
            STRING,
            PrimitiveType(id="type_9", name="Code", primitive_kind=PrimitiveKind.STRING),
            UnionType(
                id="type_10",
                name="Either",
                variants=[TypeReference(type_id="type_1"), TypeReference(type_id="type_9")],
            ),
        ]
        mapper = TypeMapper(types, MapperConfig(language=TargetLanguage.PYTHON))
        mapped = mapper.map(TypeReference(type_id="type_10"))
        assert mapped.expression == "str"
        assert mapped.imports == ()


class TestRecursion:
    def test_recursive_array_union_terminates(self) -> None:
        types = [
            PET,
            ArrayType(id="type_20", name="Tree", items=TypeReference(type_id="type_21")),
            UnionType(
                id="type_21",
                name="Node",
                variants=[TypeReference(type_id="type_3"), TypeReference(type_id="type_20")],
            ),
        ]
        mapper = TypeMapper(types, MapperConfig(language=TargetLanguage.TYPESCRIPT))
        assert mapper.map(TypeReference(type_id="type_20")).expression == "(Pet | Tree)[]"


# ---------------------------------------------------------------------------
# Determinism, errors and totality
# ---------------------------------------------------------------------------


class TestDeterminism:
    def test_repeated_calls_are_identical(self) -> None:
        mapper = _mapper(TargetLanguage.PYTHON)
        first = [mapper.map(TypeReference(type_id=t.id)) for t in TYPES]
        second = [mapper.map(TypeReference(type_id=t.id)) for t in TYPES]
        assert first == second

    def test_independent_mappers_agree(self, petstore_schema: CanonicalSchema) -> None:
        for language in TargetLanguage:
            results = []
            for _ in range(2):
                mapper = TypeMapper(petstore_schema.types, MapperConfig(language=language))
                results.append([mapper.map(TypeReference(type_id=t.id)) for t in petstore_schema.types])
            assert results[0] == results[1]

    def test_map_reference_helper(self) -> None:
        mapped = map_reference(NULLABLE_TAGS, TargetLanguage.PYTHON, TYPES)
        assert mapped.expression == "Optional[List[str]]"


class TestErrors:
    def test_unknown_type_id(self) -> None:
        with pytest.raises(UnresolvedReferenceError, match="type_404"):
            _mapper(TargetLanguage.GO).map(TypeReference(type_id="type_404"))


class TestTotality:
    def test_builtin_table_is_total(self) -> None:
        assert check_totality() == []

    def test_every_language_maps_every_primitive(self) -> None:
        for language in TargetLanguage:
            mapper = _mapper(language)
            for kind in PrimitiveKind:
                definition = PrimitiveType(id="p", name="P", primitive_kind=kind)
                assert mapper.map_definition(definition).expression

    def test_gaps_reported(self) -> None:
        broken = dict(LOWERING_RULES)
        del broken[TargetLanguage.GO]
        broken[TargetLanguage.JAVA] = dataclasses.replace(
            LOWERING_RULES[TargetLanguage.JAVA],
            primitives={PrimitiveKind.STRING: "String"},
            union_top_type="",
        )
        problems = check_totality(broken)
        assert "go: no lowering rules" in problems
        assert "java: primitive 'integer' is not mapped" in problems
        assert "java: union degradation has no top type" in problems
