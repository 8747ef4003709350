"""Lower an :class:`~sdkforge.adapters.base.AdapterDocument` into a canonical schema.

The :class:`SchemaBuilder` walks the adapter tree once, routes every schema
node through a fresh :class:`~sdkforge.registry.TypeRegistry` and assembles
the frozen :class:`~sdkforge.models.CanonicalSchema`. Its main policies:

* ``$ref`` nodes are dereferenced before registration. A reference back to
  a component that is still being lowered resolves to the id reserved for
  it, which is how recursive schemas terminate.
* ``allOf`` members are flattened and merged into a single object. The
  required set is the union of the members' sets and, for properties
  declared by several members, the later member wins.
* ``oneOf``/``anyOf`` become unions. A ``null`` variant is removed and makes
  the reference nullable instead.
* Recoverable problems (unknown primitive names, unsupported auth schemes,
  unknown OAuth2 flows, unknown parameter locations, missing body schemas,
  unparseable status codes) are recorded as warnings and replaced by a safe
  substitute. Structural violations raise
  :class:`~sdkforge.exceptions.StructuralError`.

The module-level :func:`build_schema` runs an adapter and the builder
together and folds the outcome into a
:class:`~sdkforge.diagnostics.ParseResult`.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Optional, Union

import pydantic

from sdkforge.adapters.base import (
    AdapterDocument,
    OperationNode,
    SchemaNode,
    SecuritySchemeNode,
    SpecAdapter,
)
from sdkforge.diagnostics import Diagnostics, ParseResult
from sdkforge.exceptions import ParseError, StructuralError
from sdkforge.models import (
    ApiKeyAuthScheme,
    ArrayType,
    AuthScheme,
    BasicAuthScheme,
    BearerAuthScheme,
    CanonicalSchema,
    EndpointDefinition,
    EnumType,
    EnumValue,
    ErrorDefinition,
    HeaderDefinition,
    HTTPMethod,
    OAuth2AuthScheme,
    OAuth2Flow,
    OAuth2FlowType,
    ObjectType,
    ParameterDefinition,
    ParameterLocation,
    PrimitiveConstraints,
    PrimitiveKind,
    PrimitiveType,
    PropertyDefinition,
    RequestBodyDefinition,
    ResponseDefinition,
    SchemaMetadata,
    TypeReference,
    UnionType,
)
from sdkforge.naming import enum_member_name, kebab_case, pascal_case, snake_case
from sdkforge.registry import TypeRegistry

logger = logging.getLogger(__name__)

_PRIMITIVE_KINDS = {
    "string": PrimitiveKind.STRING,
    "integer": PrimitiveKind.INTEGER,
    "number": PrimitiveKind.FLOAT,
    "float": PrimitiveKind.FLOAT,
    "boolean": PrimitiveKind.BOOLEAN,
    "null": PrimitiveKind.NULL,
    "any": PrimitiveKind.ANY,
}

_RETRYABLE_STATUS = frozenset({408, 429})

_EVENT_STREAM = "text/event-stream"

_STATUS_RANGE = re.compile(r"([1-5])XX", re.IGNORECASE)


def negotiate_content_type(content_types: list[str]) -> Optional[str]:
    """Pick the media type a client should use.

    ``application/json`` wins, then any JSON-family type
    (``application/problem+json``, ``application/vnd.api+json``...), then the
    first declared type.
    """
    if not content_types:
        return None
    if "application/json" in content_types:
        return "application/json"
    for content_type in content_types:
        base = content_type.split(";", 1)[0].strip().lower()
        if base.endswith("/json") or base.endswith("+json"):
            return content_type
    return content_types[0]


def is_retryable_status(status_code: int) -> bool:
    return status_code in _RETRYABLE_STATUS or status_code >= 500


class SchemaBuilder:
    """Single-use lowering of one adapter document.

    Args:
        document: The adapter tree to lower.
        diagnostics: Collector for warnings raised during lowering.
        provider_id: Provider id for the schema metadata. Defaults to the
            kebab-cased document title.
        provider_name: Provider display name. Defaults to the document title.
        generated_at: ISO-8601 timestamp for the metadata. Defaults to now.
    """

    def __init__(
        self,
        document: AdapterDocument,
        diagnostics: Diagnostics,
        *,
        provider_id: Optional[str] = None,
        provider_name: Optional[str] = None,
        generated_at: Optional[str] = None,
    ) -> None:
        self._doc = document
        self._diag = diagnostics
        self._registry = TypeRegistry()
        self._provider_name = provider_name or document.title or "API"
        self._provider_id = provider_id or kebab_case(self._provider_name)
        self._generated_at = generated_at or datetime.now(timezone.utc).isoformat()
        self._key_refs: dict[str, TypeReference] = {}
        self._in_progress: set[str] = set()

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    def build(self) -> CanonicalSchema:
        """Lower the whole document.

        Raises:
            StructuralError: If the document violates a structural invariant.
        """
        for key in self._doc.components:
            self._lower_ref(key)

        authentication = self._build_auth()
        auth_ids = {scheme.id for scheme in authentication}
        endpoints = self._build_endpoints(auth_ids)
        errors = self._build_errors(endpoints)

        metadata: dict[str, Any] = {"sourceFormat": self._doc.source_format}
        if self._doc.base_url:
            metadata["baseUrl"] = self._doc.base_url
        if self._doc.description:
            metadata["description"] = self._doc.description
        metadata.update(self._doc.metadata)

        return CanonicalSchema(
            metadata=SchemaMetadata(
                provider_id=self._provider_id,
                provider_name=self._provider_name,
                api_version=self._doc.api_version,
                generated_at=self._generated_at,
                metadata=metadata,
            ),
            types=self._registry.definitions(),
            endpoints=endpoints,
            authentication=authentication,
            errors=errors,
        )

    # -- Type lowering ----------------------------------------------------

    def _lower_ref(self, key: str) -> TypeReference:
        """Lower the component at *key*, reusing earlier results."""
        cached = self._key_refs.get(key)
        if cached is not None:
            return cached

        name = self._component_name(key)
        if key in self._in_progress:
            return self._registry.reserve(key, name)

        target = self._doc.components.get(key)
        if target is None:
            raise StructuralError(f"Unresolvable $ref '{key}'")

        self._in_progress.add(key)
        try:
            ref = self._lower(target, name, context=None, key=key)
        finally:
            self._in_progress.discard(key)

        if self._registry.is_pending(key):
            # The component collapsed into another type but something
            # inside it already points at the reserved id.
            reserved = self._registry.lookup(key)
            if reserved is not None and reserved.type_id == ref.type_id:
                raise StructuralError(f"$ref '{key}' refers only to itself")
            self._registry.register(self._registry.resolve(ref.type_id), key=key)
            ref = TypeReference(type_id=reserved.type_id, nullable=ref.nullable)

        self._key_refs[key] = ref
        return ref

    def _component_name(self, key: str) -> str:
        node = self._doc.components.get(key)
        if node is not None and node.name:
            return node.name
        return key.rsplit("/", 1)[-1]

    def _lower(
        self,
        node: SchemaNode,
        hint: str,
        context: Optional[str],
        key: Optional[str] = None,
    ) -> TypeReference:
        """Register *node* (children first) and return a reference to it.

        *hint* is the fallback name when the node has none of its own and
        *context* qualifies that name if it collides. *key* is set only for
        the top node of a component.
        """
        name = node.name or hint

        if node.kind == "ref":
            ref = self._lower_ref(node.ref or "")
            return _with_nullable(ref, node.nullable)

        if node.kind == "all_of":
            return self._lower_all_of(node, name, context, key)

        if node.kind == "union":
            return self._lower_union(node, name, context, key)

        if node.kind == "enum":
            return self._lower_enum(node, name, context, key)

        if node.kind == "array":
            if node.items is None:
                raise StructuralError(f"Array type '{name}' has no 'items' schema")
            items = self._lower(node.items, f"{name}Item", context=name)
            draft: Any = ArrayType(
                id="",
                name=name,
                description=node.description,
                deprecated=node.deprecated,
                items=items,
                min_items=node.min_items,
                max_items=node.max_items,
                unique_items=node.unique_items,
            )
            return self._register(draft, node, key, context)

        if node.kind == "object":
            return self._lower_object(node, name, context, key)

        return self._lower_primitive(node, hint, context, key)

    def _register(
        self,
        draft: Any,
        node: SchemaNode,
        key: Optional[str],
        context: Optional[str],
    ) -> TypeReference:
        ref = self._registry.register(draft, key=key, context=context)
        return _with_nullable(ref, node.nullable)

    def _lower_primitive(
        self,
        node: SchemaNode,
        hint: str,
        context: Optional[str],
        key: Optional[str],
    ) -> TypeReference:
        if node.primitive is None:
            kind = PrimitiveKind.ANY
        else:
            kind = _PRIMITIVE_KINDS.get(node.primitive.lower())
            if kind is None:
                self._diag.warn(
                    f"Unrecognised primitive type '{node.primitive}' in '{node.name or hint}'; "
                    "using any"
                )
                kind = PrimitiveKind.ANY

        constraints = PrimitiveConstraints(**node.constraints) if node.constraints else None
        if node.name or key is not None or constraints is not None:
            name = node.name or hint
        else:
            name = pascal_case(kind.value)

        draft = PrimitiveType(
            id="",
            name=name,
            description=node.description if key is not None or node.name else None,
            deprecated=node.deprecated,
            primitive_kind=kind,
            constraints=constraints,
        )
        return self._register(draft, node, key, context)

    def _lower_object(
        self,
        node: SchemaNode,
        name: str,
        context: Optional[str],
        key: Optional[str],
    ) -> TypeReference:
        properties: list[PropertyDefinition] = []
        for prop_name, child in node.properties.items():
            child_ref = self._lower(child, pascal_case(prop_name), context=name)
            properties.append(
                PropertyDefinition(
                    name=prop_name,
                    type=child_ref,
                    required=prop_name in node.required,
                    default=child.default,
                    description=child.description,
                    deprecated=child.deprecated,
                )
            )

        required = []
        for required_name in node.required:
            if required_name not in node.properties:
                self._diag.warn(
                    f"Type '{name}' requires undeclared property '{required_name}'; ignored"
                )
            elif required_name not in required:
                required.append(required_name)

        additional: Union[TypeReference, bool, None]
        if isinstance(node.additional_properties, SchemaNode):
            additional = self._lower(node.additional_properties, f"{name}Value", context=name)
        else:
            additional = node.additional_properties

        draft = ObjectType(
            id="",
            name=name,
            description=node.description,
            deprecated=node.deprecated,
            properties=properties,
            required=required,
            additional_properties=additional,
            discriminator=node.discriminator,
        )
        return self._register(draft, node, key, context)

    def _lower_all_of(
        self,
        node: SchemaNode,
        name: str,
        context: Optional[str],
        key: Optional[str],
    ) -> TypeReference:
        if len(node.members) == 1:
            ref = self._lower(node.members[0], name, context)
            return _with_nullable(ref, ref.nullable or node.nullable)

        properties: dict[str, SchemaNode] = {}
        required: list[str] = []
        discriminator = None
        for member in self._flatten_members(node, name, set()):
            properties.update(member.properties)
            for required_name in member.required:
                if required_name not in required:
                    required.append(required_name)
            discriminator = discriminator or member.discriminator

        merged = SchemaNode(
            kind="object",
            name=node.name,
            description=node.description,
            deprecated=node.deprecated,
            nullable=node.nullable,
            properties=properties,
            required=required,
            discriminator=discriminator,
        )
        return self._lower_object(merged, name, context, key)

    def _flatten_members(
        self,
        node: SchemaNode,
        name: str,
        seen: set[str],
    ) -> list[SchemaNode]:
        """Return the object members of an ``allOf``, dereferenced and flattened."""
        flat: list[SchemaNode] = []
        for member in node.members:
            resolved = member
            while resolved.kind == "ref":
                ref = resolved.ref or ""
                if ref in seen:
                    raise StructuralError(f"Circular allOf composition through '{ref}'")
                seen = seen | {ref}
                target = self._doc.components.get(ref)
                if target is None:
                    raise StructuralError(f"Unresolvable $ref '{ref}'")
                resolved = target

            if resolved.kind == "all_of":
                flat.extend(self._flatten_members(resolved, name, seen))
            elif resolved.kind == "object":
                flat.append(resolved)
            elif resolved.kind == "primitive" and resolved.primitive is None:
                continue
            else:
                self._diag.warn(
                    f"allOf member of '{name}' is a {resolved.kind}, not an object; skipped"
                )
        return flat

    def _lower_union(
        self,
        node: SchemaNode,
        name: str,
        context: Optional[str],
        key: Optional[str],
    ) -> TypeReference:
        if not node.variants:
            raise StructuralError(f"Union type '{name}' has no variants")

        nullable = node.nullable
        variants: list[TypeReference] = []
        for index, variant in enumerate(node.variants, start=1):
            if variant.kind == "primitive" and variant.primitive == "null":
                nullable = True
                continue
            ref = self._lower(variant, f"{name}Variant{index}", context=name)
            if all(existing.type_id != ref.type_id for existing in variants):
                variants.append(ref)

        if not variants:
            return self._lower_primitive(
                SchemaNode(kind="primitive", primitive="null"), name, context, key
            )
        if len(variants) == 1:
            return _with_nullable(variants[0], variants[0].nullable or nullable)

        mapping: Optional[dict[str, str]] = None
        if node.discriminator:
            if node.discriminator_mapping:
                mapping = {
                    value: self._lower_ref(target).type_id
                    for value, target in node.discriminator_mapping.items()
                }
            else:
                mapping = {
                    self._component_name(variant.ref or ""): self._lower_ref(variant.ref or "").type_id
                    for variant in node.variants
                    if variant.kind == "ref"
                } or None

        draft = UnionType(
            id="",
            name=name,
            description=node.description,
            deprecated=node.deprecated,
            variants=variants,
            discriminator=node.discriminator,
            discriminator_mapping=mapping,
        )
        ref = self._registry.register(draft, key=key, context=context)
        return _with_nullable(ref, nullable)

    def _lower_enum(
        self,
        node: SchemaNode,
        name: str,
        context: Optional[str],
        key: Optional[str],
    ) -> TypeReference:
        values = [v for v in node.enum_values if isinstance(v, (str, int, float, bool))]
        if len(values) != len(node.enum_values):
            self._diag.warn(f"Enum '{name}' has non-scalar values; they were dropped")
        if not values:
            self._diag.warn(f"Enum '{name}' has no usable values; using its base type")
            fallback = node.model_copy(update={"kind": "primitive", "enum_values": []})
            return self._lower_primitive(fallback, name, context, key)

        members: list[EnumValue] = []
        used: set[str] = set()
        for value in values:
            member_name = enum_member_name(value)
            suffix = 2
            unique = member_name
            while unique in used:
                unique = f"{member_name}_{suffix}"
                suffix += 1
            used.add(unique)
            members.append(
                EnumValue(
                    name=unique,
                    value=value,
                    description=node.enum_descriptions.get(str(value)),
                )
            )

        numeric = all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values)
        draft = EnumType(
            id="",
            name=name,
            description=node.description,
            deprecated=node.deprecated,
            values=members,
            value_type="number" if numeric else "string",
        )
        return self._register(draft, node, key, context)

    # -- Endpoints --------------------------------------------------------

    def _build_endpoints(self, auth_ids: set[str]) -> list[EndpointDefinition]:
        endpoints: list[EndpointDefinition] = []
        seen_ids: set[str] = set()
        for operation in self._doc.operations:
            endpoints.append(self._build_endpoint(operation, seen_ids, auth_ids))
        return endpoints

    def _build_endpoint(
        self,
        op: OperationNode,
        seen_ids: set[str],
        auth_ids: set[str],
    ) -> EndpointDefinition:
        try:
            method = HTTPMethod(op.method.upper())
        except ValueError as exc:
            raise StructuralError(f"Unsupported HTTP method '{op.method}' on {op.path}") from exc

        operation_id = op.operation_id or snake_case(f"{method.value}_{op.path}")
        if operation_id in seen_ids:
            suffix = 2
            while f"{operation_id}_{suffix}" in seen_ids:
                suffix += 1
            renamed = f"{operation_id}_{suffix}"
            self._diag.warn(f"Duplicate operationId '{operation_id}' renamed to '{renamed}'")
            operation_id = renamed
        seen_ids.add(operation_id)

        context = pascal_case(operation_id)

        parameters: list[ParameterDefinition] = []
        for param in op.parameters:
            try:
                location = ParameterLocation(param.location)
            except ValueError:
                self._diag.warn(
                    f"Parameter '{param.name}' of '{operation_id}' has unknown location "
                    f"'{param.location}'; skipped"
                )
                continue
            schema = param.schema_node
            if schema is None:
                self._diag.warn(
                    f"Parameter '{param.name}' of '{operation_id}' has no schema; using any"
                )
                schema = SchemaNode(kind="primitive")
            parameters.append(
                ParameterDefinition(
                    name=param.name,
                    location=location,
                    type=self._lower(schema, pascal_case(param.name), context),
                    required=param.required or location is ParameterLocation.PATH,
                    description=param.description,
                    default=schema.default,
                    deprecated=param.deprecated,
                )
            )

        request_body = None
        if op.request_body is not None:
            content_type = negotiate_content_type(list(op.request_body.content))
            schema = op.request_body.content.get(content_type) if content_type else None
            if schema is None:
                self._diag.warn(f"Request body of '{operation_id}' has no schema; omitted")
            else:
                request_body = RequestBodyDefinition(
                    type=self._lower(schema, "Request", context),
                    required=op.request_body.required,
                    content_type=content_type,
                    description=op.request_body.description,
                )

        explicit = {r.status for r in op.responses if not _STATUS_RANGE.fullmatch(r.status)}
        responses: list[ResponseDefinition] = []
        for response in op.responses:
            status_code = _parse_status(response.status)
            if status_code is None:
                self._diag.warn(
                    f"Response '{response.status}' of '{operation_id}' has an unparseable "
                    "status code; skipped"
                )
                continue
            if response.status not in explicit and str(status_code) in explicit:
                logger.debug(
                    "Range response %s of %s shadowed by explicit %s",
                    response.status,
                    operation_id,
                    status_code,
                )
                continue
            content_type = negotiate_content_type(list(response.content))
            schema = response.content.get(content_type) if content_type else None
            is_error = isinstance(status_code, int) and status_code >= 400
            response_type = None
            if schema is not None:
                hint = "ErrorResponse" if is_error else "Response"
                response_type = self._lower(schema, hint, context)
            headers = [
                HeaderDefinition(
                    name=header.name,
                    type=self._lower(
                        header.schema_node or SchemaNode(kind="primitive"),
                        pascal_case(header.name),
                        context,
                    ),
                    required=header.required,
                    description=header.description,
                )
                for header in response.headers
            ]
            responses.append(
                ResponseDefinition(
                    status_code=status_code,
                    type=response_type,
                    description=response.description,
                    headers=headers,
                    content_type=content_type,
                )
            )

        requested = op.security if op.security is not None else self._doc.global_security
        authentication: list[str] = []
        for scheme_id in requested:
            if scheme_id not in auth_ids:
                self._diag.warn(
                    f"Endpoint '{operation_id}' references unknown or unsupported auth scheme "
                    f"'{scheme_id}'; dropped"
                )
            elif scheme_id not in authentication:
                authentication.append(scheme_id)

        return EndpointDefinition(
            id=op.endpoint_id or f"{method.value}_{op.path}",
            operation_id=operation_id,
            path=op.path,
            method=method,
            summary=op.summary,
            description=op.description,
            parameters=parameters,
            request_body=request_body,
            responses=responses,
            streaming=self._is_streaming(op),
            authentication=authentication,
            tags=op.tags,
            deprecated=op.deprecated,
        )

    @staticmethod
    def _is_streaming(op: OperationNode) -> bool:
        if op.streaming is not None:
            return op.streaming
        for response in op.responses:
            if any(ct.split(";", 1)[0].strip() == _EVENT_STREAM for ct in response.content):
                return True
        text = f"{op.summary or ''} {op.description or ''}".lower()
        return "stream" in text

    # -- Authentication ---------------------------------------------------

    def _build_auth(self) -> list[AuthScheme]:
        schemes: list[AuthScheme] = []
        for node in self._doc.security_schemes:
            scheme = self._convert_scheme(node)
            if scheme is not None:
                schemes.append(scheme)
        return schemes

    def _convert_scheme(self, node: SecuritySchemeNode) -> Optional[AuthScheme]:
        if node.type == "apiKey":
            if not node.name:
                self._diag.warn(f"apiKey scheme '{node.id}' has no parameter name; omitted")
                return None
            location = node.location or "header"
            if location not in ("header", "query", "cookie"):
                self._diag.warn(
                    f"apiKey scheme '{node.id}' has unknown location '{location}'; using header"
                )
                location = "header"
            return ApiKeyAuthScheme(
                id=node.id, location=location, name=node.name, description=node.description
            )

        if node.type == "http":
            scheme = (node.scheme or "").lower()
            if scheme == "bearer":
                return BearerAuthScheme(
                    id=node.id, bearer_format=node.bearer_format, description=node.description
                )
            if scheme == "basic":
                return BasicAuthScheme(id=node.id, description=node.description)
            self._diag.warn(f"HTTP auth scheme '{node.scheme}' of '{node.id}' is unsupported; omitted")
            return None

        if node.type == "bearer":
            return BearerAuthScheme(
                id=node.id, bearer_format=node.bearer_format, description=node.description
            )

        if node.type == "oauth2":
            flows: list[OAuth2Flow] = []
            for flow_name, flow in node.flows.items():
                try:
                    flow_type = OAuth2FlowType(flow_name)
                except ValueError:
                    self._diag.warn(
                        f"Unrecognised OAuth2 flow '{flow_name}' in '{node.id}'; "
                        "treated as authorizationCode"
                    )
                    flow_type = OAuth2FlowType.AUTHORIZATION_CODE
                flows.append(
                    OAuth2Flow(
                        type=flow_type,
                        authorization_url=flow.get("authorizationUrl"),
                        token_url=flow.get("tokenUrl"),
                        refresh_url=flow.get("refreshUrl"),
                        scopes={str(k): str(v) for k, v in (flow.get("scopes") or {}).items()},
                    )
                )
            return OAuth2AuthScheme(id=node.id, flows=flows, description=node.description)

        self._diag.warn(f"Unsupported auth scheme type '{node.type}' for '{node.id}'; omitted")
        return None

    # -- Errors -----------------------------------------------------------

    def _build_errors(self, endpoints: list[EndpointDefinition]) -> list[ErrorDefinition]:
        errors: list[ErrorDefinition] = []
        for node in self._doc.errors:
            schema_ref = (
                self._lower(node.schema_node, pascal_case(node.code), context="Error")
                if node.schema_node is not None
                else None
            )
            errors.append(
                ErrorDefinition(
                    code=node.code,
                    status_code=node.status_code,
                    name=node.name or _error_class_name(node.code),
                    description=node.description,
                    type=schema_ref,
                    retryable=is_retryable_status(node.status_code),
                )
            )

        if not self._doc.derive_errors:
            return errors

        known = {error.status_code for error in errors}
        derived: dict[int, ErrorDefinition] = {}
        for endpoint in endpoints:
            for response in endpoint.responses:
                status = response.status_code
                if not isinstance(status, int) or status < 400 or status in known:
                    continue
                if status in derived:
                    if derived[status].type is None and response.type is not None:
                        derived[status] = derived[status].model_copy(update={"type": response.type})
                    continue
                try:
                    phrase = HTTPStatus(status).phrase
                    description = HTTPStatus(status).description
                except ValueError:
                    phrase = f"HTTP {status}"
                    description = None
                derived[status] = ErrorDefinition(
                    code=snake_case(phrase),
                    status_code=status,
                    name=_error_class_name(phrase),
                    description=response.description or description,
                    type=response.type,
                    retryable=is_retryable_status(status),
                )
        errors.extend(derived[status] for status in sorted(derived))
        return errors


def _with_nullable(ref: TypeReference, nullable: bool) -> TypeReference:
    if ref.nullable == nullable:
        return ref
    return ref.model_copy(update={"nullable": nullable})


def _parse_status(status: str) -> Union[int, str, None]:
    """Return the canonical status code of an OpenAPI response key.

    ``default`` stays as is. Range keys (``2XX``) stand for their whole
    class and are represented by its first code (``200``); the caller
    drops a range whose representative is also declared explicitly.
    Anything else outside 100-599 is unparseable.
    """
    if status == "default":
        return "default"
    match = _STATUS_RANGE.fullmatch(status)
    if match:
        return int(match.group(1)) * 100
    try:
        code = int(status)
    except ValueError:
        return None
    return code if 100 <= code <= 599 else None


def _error_class_name(code: str) -> str:
    name = pascal_case(code)
    return name if name.endswith("Error") else name + "Error"


def _json_compatible(document: dict[str, Any]) -> dict[str, Any]:
    """Return *document* with non-JSON scalars (YAML dates, timestamps) as strings."""
    try:
        return json.loads(json.dumps(document, default=str))
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Document is not representable as JSON: {exc}") from exc


def build_schema(
    adapter: SpecAdapter,
    document: dict[str, Any],
    *,
    provider_id: Optional[str] = None,
    provider_name: Optional[str] = None,
    strict: bool = False,
    generated_at: Optional[str] = None,
) -> ParseResult:
    """Run *adapter* and the builder over *document*.

    Fatal problems (:class:`~sdkforge.exceptions.ParseError`,
    :class:`~sdkforge.exceptions.StructuralError`) are reported through the
    result rather than raised.

    Args:
        adapter: Front end for the document's format.
        document: The loaded document.
        provider_id: Overrides the metadata provider id.
        provider_name: Overrides the metadata provider name.
        strict: Treat every warning as a failure.
        generated_at: Fixed timestamp for reproducible output.

    Returns:
        A :class:`~sdkforge.diagnostics.ParseResult`. ``schema`` is set
        whenever lowering completed, even if strict mode failed the result.
    """
    diagnostics = Diagnostics()
    try:
        adapter_document = adapter.parse(_json_compatible(document), diagnostics)
        schema = SchemaBuilder(
            adapter_document,
            diagnostics,
            provider_id=provider_id,
            provider_name=provider_name,
            generated_at=generated_at,
        ).build()
    except (ParseError, StructuralError) as exc:
        diagnostics.error(str(exc))
        return ParseResult(success=False, errors=diagnostics.errors, warnings=diagnostics.warnings)
    except pydantic.ValidationError as exc:
        diagnostics.error(f"Invalid {adapter.format_name} document: {exc}")
        return ParseResult(success=False, errors=diagnostics.errors, warnings=diagnostics.warnings)

    if strict and diagnostics.warnings:
        diagnostics.error(f"Strict mode: {len(diagnostics.warnings)} warning(s) treated as errors")

    logger.debug(
        "Built schema with %d types and %d endpoints", len(schema.types), len(schema.endpoints)
    )
    return ParseResult(
        success=not diagnostics.has_errors,
        schema=schema,
        errors=diagnostics.errors,
        warnings=diagnostics.warnings,
    )
