"""Cross-language type lowering.

A :class:`TypeMapper` turns a canonical :class:`~sdkforge.models.TypeReference`
into a type expression for one target language, together with the imports
that expression needs::

    mapper = TypeMapper(schema.types, MapperConfig(TargetLanguage.PYTHON))
    mapped = mapper.map(ref)
    mapped.expression   # 'Optional[List[str]]'
    mapped.imports      # ('from typing import List', 'from typing import Optional')

Everything language-specific lives in :data:`LOWERING_RULES`, one
:class:`LoweringRules` row per :class:`~sdkforge.models.TargetLanguage`.
Adding a language means adding a row; :func:`check_totality` reports any
row that does not cover every primitive kind.

Unions are lowered with one of three strategies:

* ``inline`` -- the variants are spelled out (``A | B``, ``Union[A, B]``).
* ``named`` -- the union's PascalCase name is used and the generator emits a
  tagged type for it (Rust ``enum``).
* ``degrade`` -- the language has no sum types, so the union becomes the
  language's top type (``any``, ``object``, ``interface{}``, ``Object``).
  This loses precision on purpose; callers that need something else can
  pass their own rules through :attr:`MapperConfig.rules`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Literal, Mapping, Optional

from sdkforge.exceptions import UnresolvedReferenceError, UnsupportedLanguageError
from sdkforge.models import (
    ArrayType,
    EnumType,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    TargetLanguage,
    TypeDefinition,
    TypeReference,
    UnionType,
)
from sdkforge.naming import pascal_case

logger = logging.getLogger(__name__)

UnionStrategy = Literal["inline", "named", "degrade"]


@dataclass(frozen=True)
class MappedType:
    """A lowered type expression.

    Attributes:
        expression: Type expression in the target language.
        imports: Import statements the expression needs, without duplicates,
            innermost first.
        nullable: ``True`` when a nullability wrapper was applied.
    """

    expression: str
    imports: tuple[str, ...] = ()
    nullable: bool = False


@dataclass(frozen=True)
class LoweringRules:
    """How one language spells each canonical type construct.

    ``array_format`` and ``nullable_format`` are ``str.format`` patterns with
    a single ``{}`` slot for the inner expression.
    """

    primitives: Mapping[PrimitiveKind, str]
    array_format: str
    nullable_format: str
    union_strategy: UnionStrategy
    union_format: str = "{}"
    union_separator: str = ", "
    union_top_type: str = ""
    primitive_imports: Mapping[PrimitiveKind, tuple[str, ...]] = field(default_factory=dict)
    array_imports: tuple[str, ...] = ()
    nullable_imports: tuple[str, ...] = ()
    union_imports: tuple[str, ...] = ()
    postfix_array: bool = False


LOWERING_RULES: dict[TargetLanguage, LoweringRules] = {
    TargetLanguage.RUST: LoweringRules(
        primitives={
            PrimitiveKind.STRING: "String",
            PrimitiveKind.INTEGER: "i64",
            PrimitiveKind.FLOAT: "f64",
            PrimitiveKind.BOOLEAN: "bool",
            PrimitiveKind.NULL: "()",
            PrimitiveKind.ANY: "serde_json::Value",
        },
        array_format="Vec<{}>",
        nullable_format="Option<{}>",
        union_strategy="named",
    ),
    TargetLanguage.TYPESCRIPT: LoweringRules(
        primitives={
            PrimitiveKind.STRING: "string",
            PrimitiveKind.INTEGER: "number",
            PrimitiveKind.FLOAT: "number",
            PrimitiveKind.BOOLEAN: "boolean",
            PrimitiveKind.NULL: "null",
            PrimitiveKind.ANY: "unknown",
        },
        array_format="{}[]",
        nullable_format="{} | undefined",
        union_strategy="inline",
        union_separator=" | ",
        postfix_array=True,
    ),
    TargetLanguage.PYTHON: LoweringRules(
        primitives={
            PrimitiveKind.STRING: "str",
            PrimitiveKind.INTEGER: "int",
            PrimitiveKind.FLOAT: "float",
            PrimitiveKind.BOOLEAN: "bool",
            PrimitiveKind.NULL: "None",
            PrimitiveKind.ANY: "Any",
        },
        primitive_imports={PrimitiveKind.ANY: ("from typing import Any",)},
        array_format="List[{}]",
        array_imports=("from typing import List",),
        nullable_format="Optional[{}]",
        nullable_imports=("from typing import Optional",),
        union_strategy="inline",
        union_format="Union[{}]",
        union_imports=("from typing import Union",),
    ),
    TargetLanguage.JAVASCRIPT: LoweringRules(
        primitives={
            PrimitiveKind.STRING: "string",
            PrimitiveKind.INTEGER: "number",
            PrimitiveKind.FLOAT: "number",
            PrimitiveKind.BOOLEAN: "boolean",
            PrimitiveKind.NULL: "null",
            PrimitiveKind.ANY: "any",
        },
        array_format="{}[]",
        nullable_format="{} | undefined",
        union_strategy="degrade",
        union_top_type="any",
        postfix_array=True,
    ),
    TargetLanguage.CSHARP: LoweringRules(
        primitives={
            PrimitiveKind.STRING: "string",
            PrimitiveKind.INTEGER: "long",
            PrimitiveKind.FLOAT: "double",
            PrimitiveKind.BOOLEAN: "bool",
            PrimitiveKind.NULL: "object",
            PrimitiveKind.ANY: "object",
        },
        array_format="List<{}>",
        array_imports=("using System.Collections.Generic;",),
        nullable_format="{}?",
        union_strategy="degrade",
        union_top_type="object",
    ),
    TargetLanguage.GO: LoweringRules(
        primitives={
            PrimitiveKind.STRING: "string",
            PrimitiveKind.INTEGER: "int64",
            PrimitiveKind.FLOAT: "float64",
            PrimitiveKind.BOOLEAN: "bool",
            PrimitiveKind.NULL: "interface{}",
            PrimitiveKind.ANY: "interface{}",
        },
        array_format="[]{}",
        nullable_format="*{}",
        union_strategy="degrade",
        union_top_type="interface{}",
    ),
    TargetLanguage.JAVA: LoweringRules(
        primitives={
            PrimitiveKind.STRING: "String",
            PrimitiveKind.INTEGER: "long",
            PrimitiveKind.FLOAT: "double",
            PrimitiveKind.BOOLEAN: "boolean",
            PrimitiveKind.NULL: "Void",
            PrimitiveKind.ANY: "Object",
        },
        array_format="List<{}>",
        array_imports=("import java.util.List;",),
        nullable_format="Optional<{}>",
        nullable_imports=("import java.util.Optional;",),
        union_strategy="degrade",
        union_top_type="Object",
    ),
}
"""The lowering table. One row per supported language."""


def check_totality(
    rules: Optional[Mapping[TargetLanguage, LoweringRules]] = None,
) -> list[str]:
    """Return a description of every gap in *rules* (empty when total).

    A table is total when it has a row for every
    :class:`~sdkforge.models.TargetLanguage`, each row maps every
    :class:`~sdkforge.models.PrimitiveKind`, and degrading rows name a top
    type.
    """
    table = LOWERING_RULES if rules is None else rules
    problems: list[str] = []
    for language in TargetLanguage:
        row = table.get(language)
        if row is None:
            problems.append(f"{language.value}: no lowering rules")
            continue
        for kind in PrimitiveKind:
            if not row.primitives.get(kind):
                problems.append(f"{language.value}: primitive '{kind.value}' is not mapped")
        if row.union_strategy == "degrade" and not row.union_top_type:
            problems.append(f"{language.value}: union degradation has no top type")
        for pattern_name in ("array_format", "nullable_format", "union_format"):
            if "{}" not in getattr(row, pattern_name):
                problems.append(f"{language.value}: {pattern_name} has no '{{}}' slot")
    return problems


@dataclass(frozen=True)
class MapperConfig:
    """Configuration of one :class:`TypeMapper`.

    Attributes:
        language: Target language.
        use_nullable: Apply the nullability wrapper to nullable references.
        custom_mappings: Type name -> expression overrides for objects and
            enums (for example ``{"Timestamp": "DateTime"}``).
        rules: Replacement lowering rules for *language*.
    """

    language: TargetLanguage
    use_nullable: bool = True
    custom_mappings: Mapping[str, str] = field(default_factory=dict)
    rules: Optional[LoweringRules] = None


class TypeMapper:
    """Lowers canonical type references for one target language.

    The mapper only reads the definitions it was given; it is safe to share
    the underlying schema between mappers running on different threads, as
    long as each thread owns its mapper.

    Args:
        types: The definitions references are resolved against.
        config: Target language and options.

    Raises:
        UnsupportedLanguageError: If there are no rules for the language.
    """

    def __init__(self, types: Iterable[TypeDefinition], config: MapperConfig) -> None:
        self.config = config
        rules = config.rules or LOWERING_RULES.get(config.language)
        if rules is None:
            raise UnsupportedLanguageError(f"No lowering rules for language '{config.language}'")
        self.rules = rules
        self._types = {definition.id: definition for definition in types}
        self._cache: dict[tuple[str, bool], MappedType] = {}
        self._active: set[str] = set()

    @property
    def language(self) -> TargetLanguage:
        return self.config.language

    def resolve(self, type_id: str) -> TypeDefinition:
        try:
            return self._types[type_id]
        except KeyError:
            raise UnresolvedReferenceError(f"Type not found: {type_id}") from None

    def map(self, ref: TypeReference) -> MappedType:
        """Lower *ref*, applying the nullability wrapper when it is nullable.

        Raises:
            UnresolvedReferenceError: If ``ref.type_id`` is unknown.
        """
        # Nested results may depend on the recursion guard, so the cache is
        # only consulted and filled for top-level calls.
        top_level = not self._active
        cache_key = (ref.type_id, ref.nullable)
        if top_level and cache_key in self._cache:
            return self._cache[cache_key]

        base = self.map_definition(self.resolve(ref.type_id))
        result = base
        if ref.nullable and self.config.use_nullable:
            result = MappedType(
                expression=self.rules.nullable_format.format(base.expression),
                imports=_merge_imports(base.imports, self.rules.nullable_imports),
                nullable=True,
            )
        if top_level:
            self._cache[cache_key] = result
        return result

    def map_definition(self, definition: TypeDefinition) -> MappedType:
        """Lower a definition without any nullability wrapper."""
        if isinstance(definition, PrimitiveType):
            kind = definition.primitive_kind
            return MappedType(
                expression=self.rules.primitives[kind],
                imports=tuple(self.rules.primitive_imports.get(kind, ())),
            )

        if isinstance(definition, (ObjectType, EnumType)):
            override = self.config.custom_mappings.get(definition.name)
            return MappedType(expression=override or pascal_case(definition.name))

        if definition.id in self._active:
            logger.debug("Recursive reference to %s; using its name", definition.name)
            return MappedType(expression=pascal_case(definition.name))

        self._active.add(definition.id)
        try:
            if isinstance(definition, ArrayType):
                return self._map_array(definition)
            if isinstance(definition, UnionType):
                return self._map_union(definition)
        finally:
            self._active.discard(definition.id)

        raise UnsupportedLanguageError(
            f"Cannot lower type kind '{definition.kind}' for {self.language.value}"
        )

    def _map_array(self, definition: ArrayType) -> MappedType:
        item = self.map(definition.items)
        inner = item.expression
        if self.rules.postfix_array and " " in inner:
            inner = f"({inner})"
        return MappedType(
            expression=self.rules.array_format.format(inner),
            imports=_merge_imports(item.imports, self.rules.array_imports),
        )

    def _map_union(self, definition: UnionType) -> MappedType:
        strategy = self.rules.union_strategy
        if strategy == "named":
            return MappedType(expression=pascal_case(definition.name))
        if strategy == "degrade":
            return MappedType(expression=self.rules.union_top_type)

        variants = [self.map(variant) for variant in definition.variants]
        expressions: list[str] = []
        for variant in variants:
            if variant.expression not in expressions:
                expressions.append(variant.expression)
        imports = _merge_imports(*(v.imports for v in variants))
        if len(expressions) == 1:
            return MappedType(expression=expressions[0], imports=imports)
        return MappedType(
            expression=self.rules.union_format.format(self.rules.union_separator.join(expressions)),
            imports=_merge_imports(imports, self.rules.union_imports),
        )


def map_reference(
    ref: TypeReference,
    language: TargetLanguage,
    types: Iterable[TypeDefinition],
) -> MappedType:
    """Lower *ref* for *language* with a throwaway :class:`TypeMapper`."""
    return TypeMapper(types, MapperConfig(language=language)).map(ref)


def _merge_imports(*groups: Iterable[str]) -> tuple[str, ...]:
    merged: list[str] = []
    for group in groups:
        for statement in group:
            if statement not in merged:
                merged.append(statement)
    return tuple(merged)
