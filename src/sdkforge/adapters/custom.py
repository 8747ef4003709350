"""Front end for the custom flat provider schema format.

The format is a single JSON/YAML object::

    {
      "version": "2023-06-01",
      "baseUrl": "https://api.example.com",
      "description": "...",
      "models": [{"id": "...", "name": "...", "maxTokens": 4096, ...}],
      "types": [{"name": "Message", "kind": "object", "properties": [...]}],
      "endpoints": [{"id": "createMessage", "method": "POST", "path": "/v1/messages", ...}],
      "errors": [{"code": "rate_limit_error", "statusCode": 429, "description": "..."}]
    }

Type positions accept either a string or an inline type object. A string
naming one of the declared ``types`` becomes a reference to it; any other
string is read as a primitive type name (``string``, ``integer``,
``number``, ``boolean``, ``null``).

Every endpoint requires the ``apiKey`` scheme (an ``x-api-key`` header)
unless it sets ``requiresAuth: false``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sdkforge.adapters.base import (
    AdapterDocument,
    ErrorNode,
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
from sdkforge.exceptions import ParseError

logger = logging.getLogger(__name__)

TYPE_PREFIX = "#/types/"

API_KEY_SCHEME_ID = "apiKey"
API_KEY_HEADER = "x-api-key"

_TYPE_KINDS = frozenset({"object", "enum", "array", "union", "primitive"})


class CustomSchemaAdapter(SpecAdapter):
    """Parse custom flat provider schemas.

    Args:
        include_deprecated: When ``False`` (the default), deprecated
            endpoints are skipped.
    """

    format_name = "custom"

    def __init__(self, include_deprecated: bool = False) -> None:
        self.include_deprecated = include_deprecated

    def parse(self, document: dict[str, Any], diagnostics: Diagnostics) -> AdapterDocument:
        """Parse a custom schema document.

        Raises:
            ParseError: If ``version`` or ``baseUrl`` is missing, or if no
                endpoints are declared.
        """
        _check_required(document)

        raw_types = [t for t in document.get("types") or [] if isinstance(t, dict)]
        self._type_names = {str(t.get("name")) for t in raw_types if t.get("name")}
        self._diag = diagnostics

        components: dict[str, SchemaNode] = {}
        for raw in raw_types:
            name = raw.get("name")
            if not name:
                diagnostics.warn("Type definition without a name; skipped")
                continue
            node = self._type(raw)
            if node is not None:
                components[TYPE_PREFIX + str(name)] = node

        operations = []
        for endpoint in document["endpoints"]:
            if not isinstance(endpoint, dict):
                raise ParseError("Every endpoint must be an object")
            if endpoint.get("deprecated") and not self.include_deprecated:
                logger.debug("Skipping deprecated endpoint %s", endpoint.get("id"))
                continue
            operations.append(self._endpoint(endpoint))

        return AdapterDocument(
            source_format="custom",
            api_version=str(document["version"]),
            description=document.get("description"),
            base_url=str(document["baseUrl"]),
            components=components,
            operations=operations,
            security_schemes=[
                SecuritySchemeNode(
                    id=API_KEY_SCHEME_ID,
                    type="apiKey",
                    location="header",
                    name=API_KEY_HEADER,
                    description="API key authentication",
                )
            ],
            errors=[self._error(e) for e in document.get("errors") or [] if isinstance(e, dict)],
            metadata={"models": list(document.get("models") or [])},
        )

    # -- Types ------------------------------------------------------------

    def _type_ref(self, value: Any) -> Optional[SchemaNode]:
        """Convert a type position (name string or inline object)."""
        if value is None:
            return None
        if isinstance(value, str):
            if value in self._type_names:
                return SchemaNode(kind="ref", ref=TYPE_PREFIX + value)
            return SchemaNode(kind="primitive", primitive=value.lower())
        if isinstance(value, dict):
            return self._type(value)
        self._diag.warn(f"Unsupported type value {value!r}; using any")
        return SchemaNode(kind="primitive")

    def _type(self, raw: dict[str, Any]) -> Optional[SchemaNode]:
        kind = raw.get("kind")
        if kind not in _TYPE_KINDS:
            self._diag.warn(f"Unknown type kind '{kind}' for type '{raw.get('name')}'; skipped")
            return None

        common: dict[str, Any] = {
            "name": raw.get("name"),
            "description": raw.get("description"),
            "deprecated": bool(raw.get("deprecated", False)),
        }

        if kind == "object":
            properties: dict[str, SchemaNode] = {}
            required = [str(r) for r in raw.get("required") or []]
            for prop in raw.get("properties") or []:
                if not isinstance(prop, dict):
                    raise ParseError(f"Property of type '{raw.get('name')}' must be an object")
                prop_name = str(prop.get("name", ""))
                child = self._type_ref(prop.get("type", "string")) or SchemaNode(kind="primitive")
                updates: dict[str, Any] = {}
                if prop.get("description") is not None:
                    updates["description"] = prop["description"]
                if "default" in prop:
                    updates["default"] = prop["default"]
                properties[prop_name] = child.model_copy(update=updates) if updates else child
                if prop.get("required") and prop_name not in required:
                    required.append(prop_name)
            return SchemaNode(kind="object", properties=properties, required=required, **common)

        if kind == "enum":
            values = [v for v in raw.get("values") or [] if isinstance(v, dict) and "value" in v]
            return SchemaNode(
                kind="enum",
                enum_values=[v["value"] for v in values],
                enum_descriptions={
                    str(v["value"]): v["description"] for v in values if v.get("description")
                },
                **common,
            )

        if kind == "array":
            return SchemaNode(kind="array", items=self._type_ref(raw.get("items")), **common)

        if kind == "union":
            return SchemaNode(
                kind="union",
                variants=[
                    node for node in (self._type_ref(v) for v in raw.get("variants") or []) if node
                ],
                **common,
            )

        return SchemaNode(
            kind="primitive",
            primitive=str(raw.get("primitiveType") or "string"),
            **common,
        )

    # -- Endpoints --------------------------------------------------------

    def _endpoint(self, endpoint: dict[str, Any]) -> OperationNode:
        endpoint_id = str(endpoint.get("id") or "")
        method = str(endpoint.get("method", "GET")).upper()
        path = str(endpoint.get("path", "/"))

        parameters = []
        for param in endpoint.get("parameters") or []:
            if not isinstance(param, dict):
                raise ParseError(f"Parameter of endpoint '{endpoint_id}' must be an object")
            if param.get("enum"):
                schema: Optional[SchemaNode] = SchemaNode(
                    kind="enum", primitive=param.get("type"), enum_values=list(param["enum"])
                )
            else:
                schema = self._type_ref(param.get("type", "string"))
            if schema is not None and "default" in param:
                schema = schema.model_copy(update={"default": param["default"]})
            parameters.append(
                ParameterNode(
                    name=str(param.get("name", "")),
                    location=str(param.get("in", "query")),
                    schema_node=schema,
                    required=bool(param.get("required", False)),
                    description=param.get("description"),
                )
            )

        body = endpoint.get("requestBody")
        request_body = None
        if isinstance(body, dict):
            request_body = RequestBodyNode(
                content={
                    str(body.get("contentType", "application/json")): self._type_ref(
                        body.get("schema")
                    )
                },
                required=bool(body.get("required", True)),
                description=body.get("description"),
            )

        responses = [
            ResponseNode(
                status=str(response.get("statusCode", "default")),
                description=response.get("description"),
                content={
                    str(response.get("contentType", "application/json")): self._type_ref(
                        response.get("schema")
                    )
                },
            )
            for response in endpoint.get("responses") or []
            if isinstance(response, dict)
        ]

        return OperationNode(
            path=path,
            method=method,
            operation_id=endpoint_id or None,
            endpoint_id=endpoint_id or None,
            summary=endpoint.get("summary"),
            description=endpoint.get("description"),
            parameters=parameters,
            request_body=request_body,
            responses=responses,
            security=[API_KEY_SCHEME_ID] if endpoint.get("requiresAuth") is not False else [],
            streaming=bool(endpoint.get("streaming", False)),
            tags=[str(t) for t in endpoint.get("tags") or []],
            deprecated=bool(endpoint.get("deprecated", False)),
        )

    def _error(self, raw: dict[str, Any]) -> ErrorNode:
        try:
            status_code = int(raw.get("statusCode", 500))
        except (TypeError, ValueError):
            self._diag.warn(f"Error '{raw.get('code')}' has an invalid statusCode; using 500")
            status_code = 500
        return ErrorNode(
            code=str(raw.get("code", "")),
            status_code=status_code,
            description=raw.get("description"),
            schema_node=self._type_ref(raw["schema"]) if "schema" in raw else None,
        )


def _check_required(document: dict[str, Any]) -> None:
    if not document.get("version"):
        raise ParseError("Schema version is required")
    if not document.get("baseUrl"):
        raise ParseError("Base URL is required")
    endpoints = document.get("endpoints")
    if not isinstance(endpoints, list) or not endpoints:
        raise ParseError("At least one endpoint is required")


def parse_custom_schema(
    document: dict[str, Any],
    *,
    provider_id: Optional[str] = None,
    provider_name: Optional[str] = None,
    include_deprecated: bool = False,
    strict: bool = False,
) -> ParseResult:
    """Parse a custom flat schema straight into a canonical schema."""
    return build_schema(
        CustomSchemaAdapter(include_deprecated=include_deprecated),
        document,
        provider_id=provider_id,
        provider_name=provider_name,
        strict=strict,
    )
