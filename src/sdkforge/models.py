"""Canonical Pydantic models shared across all sdkforge modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Canonical type system** -- the nodes of the closed type graph produced by
the :class:`~sdkforge.registry.TypeRegistry`:
    :class:`TypeReference`, :class:`PrimitiveType`, :class:`ObjectType`,
    :class:`ArrayType`, :class:`UnionType`, :class:`EnumType` and the
    discriminated :data:`TypeDefinition` alias.

**Canonical API surface** -- endpoints, authentication schemes, errors and
the :class:`CanonicalSchema` root that ties everything together.

**Generation models** -- :class:`TargetLanguage`, :class:`GeneratedFile`,
:class:`GeneratorResult` and the option models consumed by generators and the
orchestrator.

Canonical models are frozen: once the builder returns a schema nothing can
mutate it, which is what lets the orchestrator hand the same instance to every
worker thread. They serialise with camelCase aliases (``typeId``,
``operationId``, ...) so the JSON artifact is the stable interchange format
between the parse and generate phases.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CanonicalModel(BaseModel):
    """Base class for every frozen, camelCase-serialised canonical model."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# --- Enumerations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods an endpoint can use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"


class TypeKind(str, enum.Enum):
    """Discriminator values of :data:`TypeDefinition`."""

    PRIMITIVE = "primitive"
    OBJECT = "object"
    ARRAY = "array"
    UNION = "union"
    ENUM = "enum"


class PrimitiveKind(str, enum.Enum):
    """Scalar kinds of the canonical type system.

    ``ANY`` is the opaque substitute used for untyped schemas and for
    primitive type strings the adapters do not recognise.
    """

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    NULL = "null"
    ANY = "any"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class AuthSchemeType(str, enum.Enum):
    """Discriminator values of :data:`AuthScheme`."""

    API_KEY = "apiKey"
    BEARER = "bearer"
    BASIC = "basic"
    OAUTH2 = "oauth2"


class OAuth2FlowType(str, enum.Enum):
    """OAuth2 grant flows recognised in security schemes."""

    AUTHORIZATION_CODE = "authorizationCode"
    CLIENT_CREDENTIALS = "clientCredentials"
    IMPLICIT = "implicit"
    PASSWORD = "password"


class TargetLanguage(str, enum.Enum):
    """The fixed set of languages sdkforge can generate clients for."""

    RUST = "rust"
    TYPESCRIPT = "typescript"
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    CSHARP = "csharp"
    GO = "go"
    JAVA = "java"


# --- Type system ---


class TypeReference(CanonicalModel):
    """An edge into the type registry.

    Nullability belongs to the edge, not to the definition: the same
    ``string`` definition can be referenced as ``str`` by one property and as
    ``Optional[str]`` by another.
    """

    type_id: str
    nullable: bool = False


class PrimitiveConstraints(CanonicalModel):
    """Validation constraints carried over from the source schema."""

    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    format: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    exclusive_minimum: Optional[bool] = None
    exclusive_maximum: Optional[bool] = None
    multiple_of: Optional[float] = None


class BaseTypeDefinition(CanonicalModel):
    """Fields common to every :data:`TypeDefinition` variant."""

    id: str
    name: str
    description: Optional[str] = None
    deprecated: bool = False


class PrimitiveType(BaseTypeDefinition):
    kind: Literal["primitive"] = "primitive"
    primitive_kind: PrimitiveKind
    constraints: Optional[PrimitiveConstraints] = None


class PropertyDefinition(CanonicalModel):
    """A single named member of an :class:`ObjectType`."""

    name: str
    type: TypeReference
    required: bool = False
    default: Any = None
    description: Optional[str] = None
    deprecated: bool = False


class ObjectType(BaseTypeDefinition):
    kind: Literal["object"] = "object"
    properties: list[PropertyDefinition] = Field(default_factory=list)
    required: list[str] = Field(default_factory=list)
    additional_properties: Union[TypeReference, bool, None] = None
    discriminator: Optional[str] = None


class ArrayType(BaseTypeDefinition):
    kind: Literal["array"] = "array"
    items: TypeReference
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique_items: Optional[bool] = None


class UnionType(BaseTypeDefinition):
    kind: Literal["union"] = "union"
    variants: list[TypeReference]
    discriminator: Optional[str] = None
    discriminator_mapping: Optional[dict[str, str]] = Field(
        default=None, description="Discriminator value -> variant type id"
    )


class EnumValue(CanonicalModel):
    name: str
    value: Union[str, int, float, bool]
    description: Optional[str] = None


class EnumType(BaseTypeDefinition):
    kind: Literal["enum"] = "enum"
    values: list[EnumValue]
    value_type: Literal["string", "number"] = "string"


TypeDefinition = Annotated[
    Union[PrimitiveType, ObjectType, ArrayType, UnionType, EnumType],
    Field(discriminator="kind"),
]
"""Discriminated union of all canonical type definitions."""


def child_references(definition: TypeDefinition) -> list[TypeReference]:
    """Return every outgoing :class:`TypeReference` of *definition*.

    Used by the registry to verify that children are registered before their
    parent, and by the validator to check graph closure.
    """
    if isinstance(definition, ObjectType):
        refs = [prop.type for prop in definition.properties]
        if isinstance(definition.additional_properties, TypeReference):
            refs.append(definition.additional_properties)
        return refs
    if isinstance(definition, ArrayType):
        return [definition.items]
    if isinstance(definition, UnionType):
        return list(definition.variants)
    return []


# --- Endpoints ---


class ParameterDefinition(CanonicalModel):
    name: str
    location: ParameterLocation = Field(alias="in")
    type: TypeReference
    required: bool = False
    description: Optional[str] = None
    default: Any = None
    deprecated: bool = False


class RequestBodyDefinition(CanonicalModel):
    type: TypeReference
    required: bool = False
    content_type: str = "application/json"
    description: Optional[str] = None


class HeaderDefinition(CanonicalModel):
    name: str
    type: TypeReference
    required: bool = False
    description: Optional[str] = None


class ResponseDefinition(CanonicalModel):
    status_code: Union[int, Literal["default"]]
    type: Optional[TypeReference] = None
    description: Optional[str] = None
    headers: list[HeaderDefinition] = Field(default_factory=list)
    content_type: Optional[str] = None


class EndpointDefinition(CanonicalModel):
    """A single API operation (one path + method pair)."""

    id: str
    operation_id: str
    path: str
    method: HTTPMethod
    summary: Optional[str] = None
    description: Optional[str] = None
    parameters: list[ParameterDefinition] = Field(default_factory=list)
    request_body: Optional[RequestBodyDefinition] = None
    responses: list[ResponseDefinition] = Field(default_factory=list)
    streaming: bool = False
    authentication: list[str] = Field(
        default_factory=list, description="Ids of the required auth schemes"
    )
    tags: list[str] = Field(default_factory=list)
    deprecated: bool = False


# --- Authentication ---


class ApiKeyAuthScheme(CanonicalModel):
    id: str
    type: Literal["apiKey"] = "apiKey"
    location: Literal["header", "query", "cookie"] = Field(default="header", alias="in")
    name: str
    description: Optional[str] = None


class BearerAuthScheme(CanonicalModel):
    id: str
    type: Literal["bearer"] = "bearer"
    scheme: str = "Bearer"
    bearer_format: Optional[str] = None
    description: Optional[str] = None


class BasicAuthScheme(CanonicalModel):
    id: str
    type: Literal["basic"] = "basic"
    description: Optional[str] = None


class OAuth2Flow(CanonicalModel):
    type: OAuth2FlowType
    authorization_url: Optional[str] = None
    token_url: Optional[str] = None
    refresh_url: Optional[str] = None
    scopes: dict[str, str] = Field(default_factory=dict)


class OAuth2AuthScheme(CanonicalModel):
    id: str
    type: Literal["oauth2"] = "oauth2"
    flows: list[OAuth2Flow] = Field(default_factory=list)
    description: Optional[str] = None


AuthScheme = Annotated[
    Union[ApiKeyAuthScheme, BearerAuthScheme, BasicAuthScheme, OAuth2AuthScheme],
    Field(discriminator="type"),
]
"""Discriminated union of supported authentication schemes."""


# --- Errors and metadata ---


class ErrorDefinition(CanonicalModel):
    """A typed API error the generated clients can raise."""

    code: str
    status_code: int
    name: str
    description: Optional[str] = None
    type: Optional[TypeReference] = None
    retryable: bool = False


class SchemaMetadata(CanonicalModel):
    version: str = "1.0.0"
    provider_id: str
    provider_name: str
    api_version: str
    generated_at: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class CanonicalSchema(CanonicalModel):
    """The fully resolved, language-independent description of an API.

    Produced by :func:`~sdkforge.builder.build_schema` and consumed by the
    generators. Round-trips losslessly through :meth:`to_json` and
    :meth:`from_json`.
    """

    metadata: SchemaMetadata
    types: list[TypeDefinition] = Field(default_factory=list)
    endpoints: list[EndpointDefinition] = Field(default_factory=list)
    authentication: list[AuthScheme] = Field(default_factory=list)
    errors: list[ErrorDefinition] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-compatible interchange representation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialise to the canonical JSON interchange format."""
        return self.model_dump_json(indent=indent, by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, text: str) -> CanonicalSchema:
        """Deserialise a schema previously produced by :meth:`to_json`."""
        return cls.model_validate_json(text)

    def get_type(self, type_id: str) -> Optional[TypeDefinition]:
        """Return the definition with *type_id*, or ``None``."""
        for definition in self.types:
            if definition.id == type_id:
                return definition
        return None


# --- Generation ---


class GeneratedFile(BaseModel):
    """A single file produced by a generator, relative to its language root."""

    path: str
    content: str
    executable: bool = False


class GeneratorResult(BaseModel):
    """Outcome of one language's generation run.

    The command fields are advisory text for the user; sdkforge never
    executes them.
    """

    language: TargetLanguage
    files: list[GeneratedFile] = Field(default_factory=list)
    build_command: Optional[str] = None
    test_command: Optional[str] = None
    publish_command: Optional[str] = None
    registry_url: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class GenerationOptions(BaseModel):
    """Options handed to every per-language generator."""

    package_name: str
    package_version: str = "0.1.0"
    license: str = "Apache-2.0"
    include_examples: bool = True
    custom_mappings: dict[str, str] = Field(
        default_factory=dict, description="Type name -> target type expression overrides"
    )


class OrchestratorOptions(BaseModel):
    """Options for a multi-language generation run."""

    languages: list[TargetLanguage]
    output_dir: str = "./generated"
    package_name: str = "my-sdk"
    package_version: str = "0.1.0"
    license: str = "Apache-2.0"
    include_examples: bool = True
    parallel: bool = True
    write_files: bool = True
    custom_mappings: dict[str, str] = Field(default_factory=dict)


# --- Configuration ---


class GenerateConfig(BaseModel):
    """Effective settings for a ``sdkforge generate`` run.

    Loaded from the user config (``~/.config/sdkforge/config.json``) and the
    project config (``./sdkforge.json``), then overridden by ``SDKFORGE_*``
    environment variables and CLI flags. See
    :func:`~sdkforge.config.resolve_config` for the full precedence chain.
    Unknown keys are rejected so that typos surface as a
    :class:`~sdkforge.exceptions.ConfigError`.
    """

    model_config = ConfigDict(extra="forbid")

    languages: list[TargetLanguage] = Field(default_factory=lambda: list(TargetLanguage))
    output_dir: str = "./generated"
    package_name: Optional[str] = Field(
        default=None, description="Defaults to '<provider_id>-sdk' when unset"
    )
    package_version: str = "0.1.0"
    license: str = "Apache-2.0"
    include_examples: bool = True
    parallel: bool = True
    write_files: bool = True
    provider_id: Optional[str] = None
    provider_name: Optional[str] = None
    strict: bool = False
    custom_mappings: dict[str, str] = Field(default_factory=dict)

    def orchestrator_options(self, provider_id: str) -> OrchestratorOptions:
        """Project these settings onto :class:`OrchestratorOptions`."""
        return OrchestratorOptions(
            languages=self.languages,
            output_dir=self.output_dir,
            package_name=self.package_name or f"{provider_id}-sdk",
            package_version=self.package_version,
            license=self.license,
            include_examples=self.include_examples,
            parallel=self.parallel,
            write_files=self.write_files,
            custom_mappings=self.custom_mappings,
        )
