"""OpenAPI 3.0/3.1 front end.

Walks a loaded OpenAPI document and produces an
:class:`~sdkforge.adapters.base.AdapterDocument`:

* ``components/schemas`` become components keyed by their ``$ref`` address;
  any other ``$ref`` target that an operation points at (for example
  ``#/components/parameters/Limit/schema``) is resolved and indexed lazily.
* ``paths`` become :class:`~sdkforge.adapters.base.OperationNode` objects.
  Path-level parameters are merged with operation-level ones, the operation
  winning when ``name`` and ``in`` match.
* ``components/securitySchemes`` become
  :class:`~sdkforge.adapters.base.SecuritySchemeNode` objects.

Schema ``$ref`` pointers stay unresolved; references to parameters, request
bodies, responses and headers are followed here because they are not types.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sdkforge.adapters.base import (
    AdapterDocument,
    HeaderNode,
    OperationNode,
    ParameterNode,
    RequestBodyNode,
    ResponseNode,
    SchemaNode,
    SecuritySchemeNode,
    SpecAdapter,
)
from sdkforge.builder import build_schema
from sdkforge.diagnostics import Diagnostics, ParseResult
from sdkforge.exceptions import ParseError, StructuralError
from sdkforge.models import HTTPMethod
from sdkforge.parser.loader import validate_openapi_version
from sdkforge.parser.resolver import escape_pointer_segment, resolve_pointer

logger = logging.getLogger(__name__)

_HTTP_METHODS = tuple(m.value.lower() for m in HTTPMethod)

_SCHEMA_PREFIX = "#/components/schemas/"

# OpenAPI keyword -> SchemaNode.constraints key
_CONSTRAINT_KEYWORDS = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "pattern": "pattern",
    "format": "format",
    "minimum": "minimum",
    "maximum": "maximum",
    "multipleOf": "multiple_of",
}


class OpenAPIAdapter(SpecAdapter):
    """Parse OpenAPI 3.x documents.

    Args:
        include_deprecated: When ``False``, deprecated operations are skipped.
    """

    format_name = "openapi"

    def __init__(self, include_deprecated: bool = True) -> None:
        self.include_deprecated = include_deprecated

    def parse(self, document: dict[str, Any], diagnostics: Diagnostics) -> AdapterDocument:
        """Parse an OpenAPI document into an adapter tree.

        Raises:
            ParseError: If the document is not OpenAPI 3.x or ``paths`` is
                not a mapping.
            StructuralError: If a non-schema ``$ref`` cannot be resolved.
        """
        version = validate_openapi_version(document)
        return _OpenAPIWalker(document, diagnostics, version, self.include_deprecated).walk()


class _OpenAPIWalker:
    """Single-use traversal state for one :meth:`OpenAPIAdapter.parse` call."""

    def __init__(
        self,
        root: dict[str, Any],
        diagnostics: Diagnostics,
        version: str,
        include_deprecated: bool,
    ) -> None:
        self._root = root
        self._diag = diagnostics
        self._version = version
        self._include_deprecated = include_deprecated
        self._components: dict[str, SchemaNode] = {}
        self._pending: set[str] = set()

    def walk(self) -> AdapterDocument:
        info = self._root.get("info") or {}
        servers = self._root.get("servers") or []
        base_url = servers[0].get("url") if servers and isinstance(servers[0], dict) else None

        schemas = (self._root.get("components") or {}).get("schemas") or {}
        for name in schemas:
            self._index_ref(_SCHEMA_PREFIX + escape_pointer_segment(name))

        operations = self._walk_paths()

        return AdapterDocument(
            source_format="openapi",
            title=info.get("title"),
            api_version=str(info.get("version", "0.0.0")),
            description=info.get("description"),
            base_url=base_url,
            components=self._components,
            operations=operations,
            security_schemes=self._walk_security_schemes(),
            global_security=_flatten_security(self._root.get("security")) or [],
            derive_errors=True,
            metadata={"openapiVersion": self._version},
        )

    # -- Schemas ----------------------------------------------------------

    def _index_ref(self, ref: str) -> None:
        """Make sure the component at *ref* is present in the components map."""
        if ref in self._components or ref in self._pending:
            return
        target = resolve_pointer(ref, self._root)
        self._pending.add(ref)
        try:
            name = ref.rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~")
            node = self._schema(target)
            if node.name is None or ref.startswith(_SCHEMA_PREFIX):
                node = node.model_copy(update={"name": name})
            self._components[ref] = node
        finally:
            self._pending.discard(ref)

    def _schema(self, raw: Any) -> SchemaNode:
        """Convert one raw schema object into a :class:`SchemaNode`."""
        if raw is True or raw == {}:
            return SchemaNode(kind="primitive")
        if not isinstance(raw, dict):
            self._diag.warn(f"Schema is not an object ({type(raw).__name__}); using any")
            return SchemaNode(kind="primitive")

        if "$ref" in raw:
            ref = _normalise_ref(raw["$ref"])
            self._index_ref(ref)
            return SchemaNode(
                kind="ref",
                ref=ref,
                nullable=bool(raw.get("nullable", False)),
                description=raw.get("description"),
            )

        common: dict[str, Any] = {
            "name": raw.get("title"),
            "description": raw.get("description"),
            "deprecated": bool(raw.get("deprecated", False)),
            "nullable": bool(raw.get("nullable", False)),
            "default": raw.get("default"),
        }

        type_value = raw.get("type")
        # OpenAPI 3.1 type arrays, e.g. ["string", "null"]
        if isinstance(type_value, list):
            non_null = [t for t in type_value if t != "null"]
            if len(non_null) < len(type_value):
                common["nullable"] = True
            if len(non_null) > 1:
                variants = [self._schema({**raw, "type": t, "title": None}) for t in non_null]
                return SchemaNode(kind="union", variants=variants, **common)
            type_value = non_null[0] if non_null else "null"

        if "allOf" in raw:
            members = [self._schema(m) for m in raw["allOf"] or []]
            if "properties" in raw:
                members.append(
                    SchemaNode(
                        kind="object",
                        properties=self._properties(raw),
                        required=list(raw.get("required") or []),
                    )
                )
            return SchemaNode(kind="all_of", members=members, **common)

        for keyword in ("oneOf", "anyOf"):
            if keyword in raw:
                discriminator = raw.get("discriminator") or {}
                mapping = {
                    str(value): _normalise_ref(target)
                    for value, target in (discriminator.get("mapping") or {}).items()
                }
                for target in mapping.values():
                    self._index_ref(target)
                return SchemaNode(
                    kind="union",
                    variants=[self._schema(v) for v in raw[keyword] or []],
                    discriminator=discriminator.get("propertyName"),
                    discriminator_mapping=mapping,
                    **common,
                )

        if "enum" in raw:
            values = list(raw["enum"] or [])
            if None in values:
                common["nullable"] = True
                values = [v for v in values if v is not None]
            return SchemaNode(kind="enum", primitive=type_value, enum_values=values, **common)

        if type_value == "array" or (type_value is None and "items" in raw):
            items = self._schema(raw["items"]) if "items" in raw else None
            return SchemaNode(
                kind="array",
                items=items,
                min_items=raw.get("minItems"),
                max_items=raw.get("maxItems"),
                unique_items=raw.get("uniqueItems"),
                **common,
            )

        if type_value == "object" or (
            type_value is None and ("properties" in raw or "additionalProperties" in raw)
        ):
            additional = raw.get("additionalProperties")
            if isinstance(additional, dict):
                additional = self._schema(additional)
            elif not isinstance(additional, bool):
                additional = None
            discriminator = raw.get("discriminator") or {}
            return SchemaNode(
                kind="object",
                properties=self._properties(raw),
                required=list(raw.get("required") or []),
                additional_properties=additional,
                discriminator=discriminator.get("propertyName"),
                **common,
            )

        return SchemaNode(
            kind="primitive",
            primitive=None if type_value is None else str(type_value),
            constraints=_constraints(raw),
            **common,
        )

    def _properties(self, raw: dict[str, Any]) -> dict[str, SchemaNode]:
        return {
            str(name): self._schema(prop)
            for name, prop in (raw.get("properties") or {}).items()
        }

    def _deref(self, obj: Any) -> Any:
        """Follow ``$ref`` pointers for non-schema objects (parameters, bodies...)."""
        seen: set[str] = set()
        while isinstance(obj, dict) and "$ref" in obj:
            ref = obj["$ref"]
            if ref in seen:
                raise StructuralError(f"Circular $ref chain at '{ref}'")
            seen.add(ref)
            obj = resolve_pointer(ref, self._root)
        return obj

    # -- Operations -------------------------------------------------------

    def _walk_paths(self) -> list[OperationNode]:
        paths = self._root.get("paths")
        if paths is None:
            paths = {}
        if not isinstance(paths, dict):
            raise ParseError("'paths' must be an object")

        operations: list[OperationNode] = []
        for path, path_item in paths.items():
            path_item = self._deref(path_item)
            if not isinstance(path_item, dict):
                continue
            path_params = path_item.get("parameters") or []

            for method in _HTTP_METHODS:
                operation = path_item.get(method)
                if not isinstance(operation, dict):
                    continue
                if operation.get("deprecated") and not self._include_deprecated:
                    logger.debug("Skipping deprecated operation %s %s", method.upper(), path)
                    continue
                operations.append(self._operation(str(path), method, operation, path_params))

        return operations

    def _operation(
        self,
        path: str,
        method: str,
        operation: dict[str, Any],
        path_params: list[Any],
    ) -> OperationNode:
        params = _merge_parameters(
            [self._deref(p) for p in path_params],
            [self._deref(p) for p in operation.get("parameters") or []],
        )

        body = operation.get("requestBody")
        streaming = operation.get("x-streaming")

        return OperationNode(
            path=path,
            method=method.upper(),
            operation_id=operation.get("operationId"),
            summary=operation.get("summary"),
            description=operation.get("description"),
            parameters=[self._parameter(p) for p in params],
            request_body=self._request_body(self._deref(body)) if body is not None else None,
            responses=[
                self._response(str(status), self._deref(response))
                for status, response in (operation.get("responses") or {}).items()
            ],
            security=_flatten_security(operation.get("security")),
            streaming=None if streaming is None else bool(streaming),
            tags=[str(t) for t in operation.get("tags") or []],
            deprecated=bool(operation.get("deprecated", False)),
        )

    def _parameter(self, param: dict[str, Any]) -> ParameterNode:
        schema_raw = param.get("schema")
        if schema_raw is None and isinstance(param.get("content"), dict):
            for media in param["content"].values():
                if isinstance(media, dict) and "schema" in media:
                    schema_raw = media["schema"]
                    break
        schema = self._schema(schema_raw) if schema_raw is not None else None
        return ParameterNode(
            name=str(param.get("name", "")),
            location=str(param.get("in", "query")),
            schema_node=schema,
            required=bool(param.get("required", False)),
            description=param.get("description"),
            deprecated=bool(param.get("deprecated", False)),
        )

    def _content(self, content: Any) -> dict[str, Optional[SchemaNode]]:
        result: dict[str, Optional[SchemaNode]] = {}
        for media_type, media in (content or {}).items():
            schema_raw = media.get("schema") if isinstance(media, dict) else None
            result[str(media_type)] = self._schema(schema_raw) if schema_raw is not None else None
        return result

    def _request_body(self, body: Any) -> Optional[RequestBodyNode]:
        if not isinstance(body, dict):
            return None
        return RequestBodyNode(
            content=self._content(body.get("content")),
            required=bool(body.get("required", False)),
            description=body.get("description"),
        )

    def _response(self, status: str, response: Any) -> ResponseNode:
        if not isinstance(response, dict):
            return ResponseNode(status=status)
        headers = []
        for name, header in (response.get("headers") or {}).items():
            header = self._deref(header)
            if not isinstance(header, dict):
                continue
            schema_raw = header.get("schema")
            headers.append(
                HeaderNode(
                    name=str(name),
                    schema_node=self._schema(schema_raw) if schema_raw is not None else None,
                    required=bool(header.get("required", False)),
                    description=header.get("description"),
                )
            )
        return ResponseNode(
            status=status,
            description=response.get("description"),
            content=self._content(response.get("content")),
            headers=headers,
        )

    # -- Security ---------------------------------------------------------

    def _walk_security_schemes(self) -> list[SecuritySchemeNode]:
        raw_schemes = (self._root.get("components") or {}).get("securitySchemes") or {}
        schemes: list[SecuritySchemeNode] = []
        for scheme_id, data in raw_schemes.items():
            data = self._deref(data)
            if not isinstance(data, dict):
                continue
            schemes.append(
                SecuritySchemeNode(
                    id=str(scheme_id),
                    type=str(data.get("type", "")),
                    description=data.get("description"),
                    scheme=data.get("scheme"),
                    bearer_format=data.get("bearerFormat"),
                    location=data.get("in"),
                    name=data.get("name"),
                    flows={
                        str(k): v for k, v in (data.get("flows") or {}).items() if isinstance(v, dict)
                    },
                )
            )
        return schemes


def _normalise_ref(ref: Any) -> str:
    """Accept both ``#/components/schemas/Pet`` and bare ``Pet`` discriminator targets."""
    ref = str(ref)
    if ref.startswith("#/"):
        return ref
    return _SCHEMA_PREFIX + escape_pointer_segment(ref)


def _constraints(raw: dict[str, Any]) -> dict[str, Any]:
    result = {
        target: raw[keyword] for keyword, target in _CONSTRAINT_KEYWORDS.items() if keyword in raw
    }
    # 3.0 uses booleans beside minimum/maximum; 3.1 uses the bound itself.
    for keyword, bound in (("exclusiveMinimum", "minimum"), ("exclusiveMaximum", "maximum")):
        value = raw.get(keyword)
        if isinstance(value, bool):
            result["exclusive_" + bound] = value
        elif isinstance(value, (int, float)):
            result[bound] = value
            result["exclusive_" + bound] = True
    return result


def _merge_parameters(
    path_params: list[Any],
    op_params: list[Any],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field).
    """
    op_params = [p for p in op_params if isinstance(p, dict)]
    op_keys = {(p.get("name", ""), p.get("in", "")) for p in op_params}
    merged = [
        p
        for p in path_params
        if isinstance(p, dict) and (p.get("name", ""), p.get("in", "")) not in op_keys
    ]
    merged.extend(op_params)
    return merged


def _flatten_security(security: Any) -> Optional[list[str]]:
    """Flatten a security requirement list into scheme ids, keeping order.

    Returns ``None`` when *security* is absent, so callers can tell
    "inherit the global requirement" apart from ``[]`` (no auth).
    """
    if security is None:
        return None
    ids: list[str] = []
    for requirement in security:
        if not isinstance(requirement, dict):
            continue
        for scheme_id in requirement:
            if scheme_id not in ids:
                ids.append(str(scheme_id))
    return ids


def parse_openapi(
    document: dict[str, Any],
    *,
    provider_id: Optional[str] = None,
    provider_name: Optional[str] = None,
    include_deprecated: bool = True,
    strict: bool = False,
) -> ParseResult:
    """Parse an OpenAPI document straight into a canonical schema.

    Convenience wrapper around :func:`~sdkforge.builder.build_schema` with an
    :class:`OpenAPIAdapter`.

    Example::

        raw = load_document("petstore.yaml")
        result = parse_openapi(raw, provider_id="petstore")
        if result.success:
            print(result.schema.to_json())
    """
    return build_schema(
        OpenAPIAdapter(include_deprecated=include_deprecated),
        document,
        provider_id=provider_id,
        provider_name=provider_name,
        strict=strict,
    )
