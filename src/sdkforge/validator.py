"""Post-build validation of canonical schemas.

Validation runs in two passes:

1. **Structure** -- the input is validated against the
   :class:`~sdkforge.models.CanonicalSchema` Pydantic model. This matters
   for schemas loaded from JSON, which may have been edited by hand.
2. **Semantics** -- graph-level invariants the model cannot express:

   * every ``typeId`` referenced anywhere, discriminator mappings included,
     resolves within ``types``;
   * every endpoint auth reference names a declared scheme;
   * ``operationId`` values, type ids and type names are unique;
   * every object's ``required`` entries name declared properties;
   * unions have at least one variant.

Issues are reported as :class:`ValidationIssue` objects with a dotted
``path`` (``endpoints[0].responses[1].type.typeId``), a machine-readable
``code`` and a message.
"""

from __future__ import annotations

from typing import Any, Iterator, Union

import pydantic
from pydantic import BaseModel, Field

from sdkforge.exceptions import ValidationError
from sdkforge.models import (
    ArrayType,
    CanonicalSchema,
    ObjectType,
    TypeReference,
    UnionType,
)


class ValidationIssue(BaseModel):
    path: str
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


class ValidationReport(BaseModel):
    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)


def validate_schema(schema: Union[CanonicalSchema, dict[str, Any], str]) -> ValidationReport:
    """Validate a canonical schema.

    Args:
        schema: A :class:`~sdkforge.models.CanonicalSchema`, its dict form,
            or its JSON text.

    Returns:
        A :class:`ValidationReport`; ``valid`` is ``True`` only when no
        issues were found.
    """
    if not isinstance(schema, CanonicalSchema):
        try:
            if isinstance(schema, str):
                schema = CanonicalSchema.model_validate_json(schema)
            else:
                schema = CanonicalSchema.model_validate(schema)
        except pydantic.ValidationError as exc:
            return ValidationReport(valid=False, errors=_structure_issues(exc))

    issues = list(_semantic_issues(schema))
    return ValidationReport(valid=not issues, errors=issues)


def assert_valid(schema: Union[CanonicalSchema, dict[str, Any], str]) -> CanonicalSchema:
    """Validate *schema* and return it as a model.

    Raises:
        ValidationError: If any issue was found. The exception message lists
            every issue and :attr:`ValidationError.issues` carries them.
    """
    report = validate_schema(schema)
    if not report.valid:
        lines = "\n".join(f"  {issue}" for issue in report.errors)
        raise ValidationError(f"Invalid canonical schema:\n{lines}", issues=report.errors)
    if isinstance(schema, CanonicalSchema):
        return schema
    if isinstance(schema, str):
        return CanonicalSchema.model_validate_json(schema)
    return CanonicalSchema.model_validate(schema)


def _structure_issues(exc: pydantic.ValidationError) -> list[ValidationIssue]:
    issues = []
    for error in exc.errors():
        path = ""
        for part in error["loc"]:
            path += f"[{part}]" if isinstance(part, int) else (f".{part}" if path else str(part))
        issues.append(ValidationIssue(path=path, code=error["type"], message=error["msg"]))
    return issues


def _semantic_issues(schema: CanonicalSchema) -> Iterator[ValidationIssue]:
    type_ids: set[str] = set()
    type_names: set[str] = set()
    for index, definition in enumerate(schema.types):
        if definition.id in type_ids:
            yield ValidationIssue(
                path=f"types[{index}].id",
                code="duplicate_type_id",
                message=f"Duplicate type id '{definition.id}'",
            )
        if definition.name in type_names:
            yield ValidationIssue(
                path=f"types[{index}].name",
                code="duplicate_type_name",
                message=f"Duplicate type name '{definition.name}'",
            )
        type_ids.add(definition.id)
        type_names.add(definition.name)

    for path, ref in _references(schema):
        if ref.type_id not in type_ids:
            yield ValidationIssue(
                path=f"{path}.typeId",
                code="invalid_type_reference",
                message=f"Type '{ref.type_id}' not found",
            )

    for index, definition in enumerate(schema.types):
        if isinstance(definition, ObjectType):
            declared = {prop.name for prop in definition.properties}
            for required in definition.required:
                if required not in declared:
                    yield ValidationIssue(
                        path=f"types[{index}].required",
                        code="invalid_required_property",
                        message=f"Required property '{required}' not found in properties",
                    )
        elif isinstance(definition, UnionType) and not definition.variants:
            yield ValidationIssue(
                path=f"types[{index}].variants",
                code="empty_union",
                message=f"Union '{definition.name}' has no variants",
            )

    auth_ids = {scheme.id for scheme in schema.authentication}
    operation_ids: set[str] = set()
    for index, endpoint in enumerate(schema.endpoints):
        for auth_index, auth_id in enumerate(endpoint.authentication):
            if auth_id not in auth_ids:
                yield ValidationIssue(
                    path=f"endpoints[{index}].authentication[{auth_index}]",
                    code="invalid_auth_reference",
                    message=f"Authentication scheme '{auth_id}' not found",
                )
        if endpoint.operation_id in operation_ids:
            yield ValidationIssue(
                path=f"endpoints[{index}].operationId",
                code="duplicate_operation_id",
                message=f"Duplicate operation ID: '{endpoint.operation_id}'",
            )
        operation_ids.add(endpoint.operation_id)


def _references(schema: CanonicalSchema) -> Iterator[tuple[str, TypeReference]]:
    """Yield ``(path, reference)`` for every type reference in *schema*."""
    for index, definition in enumerate(schema.types):
        base = f"types[{index}]"
        if isinstance(definition, ObjectType):
            for prop_index, prop in enumerate(definition.properties):
                yield f"{base}.properties[{prop_index}].type", prop.type
            if isinstance(definition.additional_properties, TypeReference):
                yield f"{base}.additionalProperties", definition.additional_properties
        elif isinstance(definition, ArrayType):
            yield f"{base}.items", definition.items
        elif isinstance(definition, UnionType):
            for variant_index, variant in enumerate(definition.variants):
                yield f"{base}.variants[{variant_index}]", variant
            for value, type_id in (definition.discriminator_mapping or {}).items():
                yield f"{base}.discriminatorMapping[{value}]", TypeReference(type_id=type_id)

    for index, endpoint in enumerate(schema.endpoints):
        base = f"endpoints[{index}]"
        for param_index, param in enumerate(endpoint.parameters):
            yield f"{base}.parameters[{param_index}].type", param.type
        if endpoint.request_body is not None:
            yield f"{base}.requestBody.type", endpoint.request_body.type
        for response_index, response in enumerate(endpoint.responses):
            if response.type is not None:
                yield f"{base}.responses[{response_index}].type", response.type
            for header_index, header in enumerate(response.headers):
                yield f"{base}.responses[{response_index}].headers[{header_index}].type", header.type

    for index, error in enumerate(schema.errors):
        if error.type is not None:
            yield f"errors[{index}].type", error.type
