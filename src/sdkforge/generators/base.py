"""Shared machinery for per-language SDK generators.

A generator turns a :class:`~sdkforge.models.CanonicalSchema` into a list of
:class:`~sdkforge.models.GeneratedFile` objects for one
:class:`~sdkforge.models.TargetLanguage`. It never touches the disk; writing
is the orchestrator's job.

The generation process:

1. A private :class:`~sdkforge.mapper.TypeMapper` is created for the
   generator's language.
2. The schema is flattened into a template context: type, endpoint, auth
   and error views whose type expressions are already lowered and whose
   identifiers already follow the language's casing rules.
3. Subclasses render Jinja2 templates from ``generators/templates/<language>/``
   into types, a client, a manifest, a README and (optionally) an example.

Subclasses override the naming hooks (:meth:`BaseGenerator.field_name`,
:meth:`BaseGenerator.method_name`, :meth:`BaseGenerator.path_expression`)
and the four ``generate_*`` methods.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from functools import cached_property
from pathlib import Path
from typing import Any, ClassVar, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from sdkforge.exceptions import GenerationError
from sdkforge.mapper import MapperConfig, MappedType, TypeMapper
from sdkforge.models import (
    ApiKeyAuthScheme,
    BasicAuthScheme,
    BearerAuthScheme,
    CanonicalSchema,
    EndpointDefinition,
    EnumType,
    GeneratedFile,
    GenerationOptions,
    GeneratorResult,
    OAuth2AuthScheme,
    ObjectType,
    ParameterLocation,
    TargetLanguage,
    TypeDefinition,
    TypeReference,
    UnionType,
)
from sdkforge.naming import (
    camel_case,
    kebab_case,
    pascal_case,
    screaming_snake_case,
    snake_case,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``generators/templates/``)."""

_PATH_PARAM = re.compile(r"\{([^{}]+)\}")


def create_environment() -> Environment:
    """Create the Jinja2 environment shared by all generators.

    Templates produce source code, not HTML, so autoescaping is off for
    every ``.j2`` template. Block trimming and lstrip are enabled for
    cleaner template authoring.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("j2",), default=False),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters.update(
        pascal=pascal_case,
        camel=camel_case,
        snake=snake_case,
        kebab=kebab_case,
        screaming=screaming_snake_case,
        quote=quote,
        comment=comment_text,
    )
    return env


def quote(value: Any) -> str:
    """Render *value* as a double-quoted string literal."""
    return json.dumps(str(value), ensure_ascii=False)


def comment_text(value: Optional[str]) -> str:
    """Collapse *value* to one line that is safe inside any comment syntax."""
    if not value:
        return ""
    return " ".join(value.split()).replace("*/", "* /").replace('"""', "'''")


def path_segments(path: str) -> list[tuple[str, bool]]:
    """Split an URL template into ``(text, is_parameter)`` segments.

    >>> path_segments("/pets/{petId}/toys")
    [('/pets/', False), ('petId', True), ('/toys', False)]
    """
    segments: list[tuple[str, bool]] = []
    position = 0
    for match in _PATH_PARAM.finditer(path):
        if match.start() > position:
            segments.append((path[position : match.start()], False))
        segments.append((match.group(1), True))
        position = match.end()
    if position < len(path):
        segments.append((path[position:], False))
    return segments


class BaseGenerator(ABC):
    """Base class for all language generators.

    Args:
        schema: The schema to generate a client for. Only read.
        options: Package name, version and feature switches.
    """

    language: ClassVar[TargetLanguage]
    build_command: ClassVar[str] = ""
    test_command: ClassVar[str] = ""
    publish_command: ClassVar[str] = ""
    registry_url: ClassVar[str] = ""
    install_command: ClassVar[str] = ""
    void_type: ClassVar[str] = "void"

    def __init__(self, schema: CanonicalSchema, options: GenerationOptions) -> None:
        self.schema = schema
        self.options = options
        self.mapper = TypeMapper(
            schema.types,
            MapperConfig(language=self.language, custom_mappings=options.custom_mappings),
        )
        self.env = create_environment()
        self.warnings: list[str] = []

    # -- Entry point ------------------------------------------------------

    def generate(self) -> GeneratorResult:
        """Render every file for this language.

        Raises:
            GenerationError: If a template fails to render.
        """
        files: list[GeneratedFile] = []
        files.extend(self.generate_types())
        files.extend(self.generate_client())
        files.extend(self.generate_manifest())
        files.append(self.generate_readme())
        if self.options.include_examples:
            files.extend(self.generate_examples())

        return GeneratorResult(
            language=self.language,
            files=files,
            build_command=self.build_command or None,
            test_command=self.test_command or None,
            publish_command=self.publish_command.format(package=self.package_name) or None,
            registry_url=self.registry_url.format(package=self.package_name) or None,
            warnings=list(self.warnings),
        )

    @abstractmethod
    def generate_types(self) -> list[GeneratedFile]:
        """Render the model/type definitions."""

    @abstractmethod
    def generate_client(self) -> list[GeneratedFile]:
        """Render the API client."""

    @abstractmethod
    def generate_manifest(self) -> list[GeneratedFile]:
        """Render the package manifest (pyproject.toml, package.json, ...)."""

    @abstractmethod
    def generate_examples(self) -> list[GeneratedFile]:
        """Render a usage example."""

    def generate_readme(self) -> GeneratedFile:
        return self.render("common/README.md.j2", "README.md")

    # -- Naming hooks -----------------------------------------------------

    @property
    def package_name(self) -> str:
        return self.options.package_name

    @property
    def module_name(self) -> str:
        return snake_case(self.options.package_name)

    @property
    def client_name(self) -> str:
        return pascal_case(self.schema.metadata.provider_name) + "Client"

    def type_name(self, name: str) -> str:
        return pascal_case(name)

    def field_name(self, name: str) -> str:
        return camel_case(name)

    def param_name(self, name: str) -> str:
        return self.field_name(name)

    def method_name(self, operation_id: str) -> str:
        return camel_case(operation_id)

    def param_value(self, param: dict[str, Any]) -> str:
        """Return the expression that reads *param* inside a client method."""
        return param["field"]

    @abstractmethod
    def signature(self, endpoint: dict[str, Any]) -> str:
        """Return the parameter list of the client method for *endpoint*."""

    @abstractmethod
    def path_expression(self, path: str, path_params: list[dict[str, Any]]) -> str:
        """Return a language expression that builds *path* from its parameters."""

    # -- Rendering --------------------------------------------------------

    def render(self, template_name: str, output_path: str, **extra: Any) -> GeneratedFile:
        """Render *template_name* with the shared context plus *extra*.

        Raises:
            GenerationError: If the template is missing, or if it or a filter
                it calls fails while rendering.
        """
        try:
            template = self.env.get_template(template_name)
            content = template.render(**{**self.context, **extra})
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(
                f"{self.language.value}: failed to render {template_name}: {exc}"
            ) from exc
        return GeneratedFile(path=output_path, content=content)

    # -- Context ----------------------------------------------------------

    def map(self, ref: Optional[TypeReference], optional: bool = False) -> MappedType:
        """Lower *ref*; *optional* forces the nullability wrapper."""
        if ref is None:
            return MappedType(expression=self.void_type)
        if optional and not ref.nullable:
            ref = ref.model_copy(update={"nullable": True})
        return self.mapper.map(ref)

    @cached_property
    def context(self) -> dict[str, Any]:
        """The template context shared by every file of this generator."""
        metadata = self.schema.metadata
        return {
            "language": self.language.value,
            "package_name": self.package_name,
            "package_version": self.options.package_version,
            "license": self.options.license,
            "module_name": self.module_name,
            "client_name": self.client_name,
            "provider_name": metadata.provider_name,
            "provider_id": metadata.provider_id,
            "api_version": metadata.api_version,
            "base_url": metadata.metadata.get("baseUrl", "https://api.example.com"),
            "description": metadata.metadata.get("description")
            or f"Client library for the {metadata.provider_name} API",
            "types": self.type_views,
            "endpoints": self.endpoint_views,
            "auth": self.auth_views,
            "primary_auth": self.auth_views[0] if self.auth_views else None,
            "errors": self.error_views,
            "status_errors": self.status_errors,
            "example_endpoint": self.example_endpoint,
            "env_var": screaming_snake_case(metadata.provider_id) + "_API_KEY",
            "install_command": self.install_command.format(package=self.package_name),
            "build_command": self.build_command,
            "test_command": self.test_command,
            "publish_command": self.publish_command.format(package=self.package_name),
            "registry_url": self.registry_url.format(package=self.package_name),
            "include_examples": self.options.include_examples,
            **self.extra_context(),
        }

    def extra_context(self) -> dict[str, Any]:
        """Language-specific additions to :attr:`context`."""
        return {}

    @cached_property
    def type_views(self) -> list[dict[str, Any]]:
        """Views of every type that needs its own declaration.

        Objects, enums and unions are declared; primitives and arrays are
        always lowered inline.
        """
        views = []
        for definition in self.schema.types:
            view = self._type_view(definition)
            if view is not None:
                views.append(view)
        return views

    def _type_view(self, definition: TypeDefinition) -> Optional[dict[str, Any]]:
        base: dict[str, Any] = {
            "kind": definition.kind,
            "name": self.type_name(definition.name),
            "description": definition.description,
            "deprecated": definition.deprecated,
        }
        if isinstance(definition, ObjectType):
            imports: list[str] = []
            properties = []
            for prop in definition.properties:
                mapped = self.map(prop.type, optional=not prop.required)
                imports.extend(mapped.imports)
                properties.append(
                    {
                        "name": prop.name,
                        "field": self.field_name(prop.name),
                        "type": mapped.expression,
                        "required": prop.required,
                        "nullable": mapped.nullable,
                        "description": prop.description,
                        "deprecated": prop.deprecated,
                    }
                )
            base.update(properties=properties, imports=_unique(imports))
            return base
        if isinstance(definition, EnumType):
            base.update(
                value_type=definition.value_type,
                members=[
                    {
                        "name": value.name,
                        "value": value.value,
                        "literal": quote(value.value)
                        if isinstance(value.value, str)
                        else json.dumps(value.value),
                        "description": value.description,
                    }
                    for value in definition.values
                ],
                imports=[],
            )
            return base
        if isinstance(definition, UnionType):
            variants = []
            imports = []
            used: set[str] = set()
            for variant in definition.variants:
                mapped = self.map(variant)
                imports.extend(mapped.imports)
                tag = pascal_case(mapped.expression) or "Variant"
                while tag in used:
                    tag += "Alt"
                used.add(tag)
                variants.append({"tag": tag, "type": mapped.expression})
            union_ref = TypeReference(type_id=definition.id)
            expression = self.map(union_ref)
            base.update(
                variants=variants,
                expression=expression.expression,
                discriminator=definition.discriminator,
                imports=_unique(imports + list(expression.imports)),
            )
            return base
        return None

    @cached_property
    def endpoint_views(self) -> list[dict[str, Any]]:
        return [self._endpoint_view(endpoint) for endpoint in self.schema.endpoints]

    def _endpoint_view(self, endpoint: EndpointDefinition) -> dict[str, Any]:
        imports: list[str] = []
        params = []
        for param in endpoint.parameters:
            mapped = self.map(param.type, optional=not param.required)
            imports.extend(mapped.imports)
            params.append(
                {
                    "name": param.name,
                    "field": self.param_name(param.name),
                    "type": mapped.expression,
                    "required": param.required,
                    "location": param.location.value,
                    "description": param.description,
                }
            )
        # Required parameters come first.
        params.sort(key=lambda p: not p["required"])

        body = None
        if endpoint.request_body is not None:
            mapped = self.map(endpoint.request_body.type, optional=not endpoint.request_body.required)
            imports.extend(mapped.imports)
            body = {
                "type": mapped.expression,
                "required": endpoint.request_body.required,
                "content_type": endpoint.request_body.content_type,
            }

        success = next(
            (
                r
                for r in endpoint.responses
                if isinstance(r.status_code, int) and 200 <= r.status_code < 300
            ),
            None,
        )
        if success is None:
            success = next((r for r in endpoint.responses if r.status_code == "default"), None)
        response = self.map(success.type if success is not None else None)
        imports.extend(response.imports)

        path_params = [p for p in params if p["location"] == ParameterLocation.PATH.value]
        view = {
            "operation_id": endpoint.operation_id,
            "method_name": self.method_name(endpoint.operation_id),
            "http_method": endpoint.method.value,
            "path": endpoint.path,
            "path_expression": self.path_expression(endpoint.path, path_params),
            "summary": endpoint.summary or endpoint.description,
            "description": endpoint.description,
            "params": params,
            "path_params": path_params,
            "query_params": [p for p in params if p["location"] == ParameterLocation.QUERY.value],
            "header_params": [p for p in params if p["location"] == ParameterLocation.HEADER.value],
            "body": body,
            "response_type": response.expression,
            "has_response": success is not None and success.type is not None,
            "streaming": endpoint.streaming,
            "deprecated": endpoint.deprecated,
            "requires_auth": bool(endpoint.authentication),
            "imports": _unique(imports),
        }
        for param in params:
            param["value"] = self.param_value(param)
        view["signature"] = self.signature(view)
        return view

    @cached_property
    def auth_views(self) -> list[dict[str, Any]]:
        """Views of the auth schemes.

        Every view says where the credential goes: either a ``header`` (with
        a ``prefix`` such as ``"Bearer "``) or a ``query`` parameter. Basic
        credentials are expected to be passed already base64-encoded.
        """
        views = []
        for scheme in self.schema.authentication:
            view: dict[str, Any] = {
                "id": scheme.id,
                "type": scheme.type,
                "header": "Authorization",
                "prefix": "Bearer ",
                "query": None,
            }
            if isinstance(scheme, ApiKeyAuthScheme):
                view.update(location=scheme.location, name=scheme.name, prefix="")
                if scheme.location == "query":
                    view.update(header=None, query=scheme.name)
                elif scheme.location == "cookie":
                    view.update(header="Cookie", prefix=f"{scheme.name}=")
                else:
                    view.update(header=scheme.name)
            elif isinstance(scheme, BearerAuthScheme):
                view.update(prefix=f"{scheme.scheme} ")
            elif isinstance(scheme, BasicAuthScheme):
                view.update(prefix="Basic ")
            elif isinstance(scheme, OAuth2AuthScheme):
                view.update(token_urls=[f.token_url for f in scheme.flows if f.token_url])
            views.append(view)
        return views

    @cached_property
    def error_views(self) -> list[dict[str, Any]]:
        return [
            {
                "name": self.type_name(error.name),
                "code": error.code,
                "status_code": error.status_code,
                "retryable": error.retryable,
                "description": error.description,
            }
            for error in self.schema.errors
        ]

    @cached_property
    def status_errors(self) -> list[dict[str, Any]]:
        """The first error view for each distinct status code."""
        seen: set[int] = set()
        views = []
        for view in self.error_views:
            if view["status_code"] not in seen:
                seen.add(view["status_code"])
                views.append(view)
        return views

    @cached_property
    def example_endpoint(self) -> Optional[dict[str, Any]]:
        """The first endpoint that can be called without any argument."""
        for view in self.endpoint_views:
            required_body = view["body"] is not None and view["body"]["required"]
            if not required_body and not any(p["required"] for p in view["params"]):
                return view
        return None

    def collect_imports(self, views: list[dict[str, Any]]) -> list[str]:
        """Return the sorted, de-duplicated imports of *views*."""
        return sorted({statement for view in views for statement in view.get("imports", [])})


def _unique(items: list[str]) -> list[str]:
    seen: list[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen
