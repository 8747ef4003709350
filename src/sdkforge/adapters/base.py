"""Adapter-local node trees and the :class:`SpecAdapter` contract.

Every input format is first parsed into an :class:`AdapterDocument`: a
format-neutral tree in which schemas are :class:`SchemaNode` instances and
``$ref`` indirections are still unresolved (``kind == "ref"``). The
:class:`~sdkforge.builder.SchemaBuilder` is the only consumer of these trees;
it dereferences, registers and assembles them into a
:class:`~sdkforge.models.CanonicalSchema`.

Node fields keep the raw strings of the source document (parameter
locations, status codes, security scheme types, primitive type names) so
that the builder can decide which values are recoverable and record a
warning for them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from sdkforge.diagnostics import Diagnostics

NodeKind = Literal["primitive", "object", "array", "union", "enum", "ref", "all_of"]


# --- Schemas ---


class SchemaNode(BaseModel):
    """One schema in an adapter tree.

    Which fields are meaningful depends on :attr:`kind`:

    * ``primitive`` -- :attr:`primitive` holds the raw type string
      (``None`` for an untyped schema) and :attr:`constraints` the
      validation keywords in snake_case.
    * ``object`` -- :attr:`properties`, :attr:`required`,
      :attr:`additional_properties`.
    * ``array`` -- :attr:`items` (``None`` is a structural error).
    * ``union`` -- :attr:`variants` plus optional discriminator data.
    * ``enum`` -- :attr:`enum_values`.
    * ``ref`` -- :attr:`ref`, the address of a component.
    * ``all_of`` -- :attr:`members`, merged by the builder.
    """

    kind: NodeKind
    name: Optional[str] = Field(default=None, description="Explicit name (title or component name)")
    description: Optional[str] = None
    deprecated: bool = False
    nullable: bool = False
    default: Any = None

    ref: Optional[str] = None

    primitive: Optional[str] = None
    constraints: dict[str, Any] = Field(default_factory=dict)

    properties: dict[str, SchemaNode] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    additional_properties: Union[SchemaNode, bool, None] = None

    items: Optional[SchemaNode] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique_items: Optional[bool] = None

    variants: list[SchemaNode] = Field(default_factory=list)
    discriminator: Optional[str] = None
    discriminator_mapping: dict[str, str] = Field(
        default_factory=dict, description="Discriminator value -> component address"
    )

    members: list[SchemaNode] = Field(default_factory=list)

    enum_values: list[Any] = Field(default_factory=list)
    enum_descriptions: dict[str, str] = Field(default_factory=dict)


# --- Operations ---


class ParameterNode(BaseModel):
    name: str
    location: str
    schema_node: Optional[SchemaNode] = None
    required: bool = False
    description: Optional[str] = None
    deprecated: bool = False


class RequestBodyNode(BaseModel):
    content: dict[str, Optional[SchemaNode]] = Field(
        default_factory=dict, description="Media type -> schema, in declaration order"
    )
    required: bool = False
    description: Optional[str] = None


class HeaderNode(BaseModel):
    name: str
    schema_node: Optional[SchemaNode] = None
    required: bool = False
    description: Optional[str] = None


class ResponseNode(BaseModel):
    status: str
    description: Optional[str] = None
    content: dict[str, Optional[SchemaNode]] = Field(default_factory=dict)
    headers: list[HeaderNode] = Field(default_factory=list)


class OperationNode(BaseModel):
    """One path + method pair.

    :attr:`security` is ``None`` when the operation inherits the document's
    global requirement; an empty list means no authentication.
    :attr:`streaming` is ``None`` when the source says nothing explicit and
    the builder should apply its heuristics.
    """

    path: str
    method: str
    operation_id: Optional[str] = None
    endpoint_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    parameters: list[ParameterNode] = Field(default_factory=list)
    request_body: Optional[RequestBodyNode] = None
    responses: list[ResponseNode] = Field(default_factory=list)
    security: Optional[list[str]] = None
    streaming: Optional[bool] = None
    tags: list[str] = Field(default_factory=list)
    deprecated: bool = False


# --- Security and errors ---


class SecuritySchemeNode(BaseModel):
    id: str
    type: str
    description: Optional[str] = None
    scheme: Optional[str] = None
    bearer_format: Optional[str] = None
    location: Optional[str] = None
    name: Optional[str] = None
    flows: dict[str, dict[str, Any]] = Field(default_factory=dict)


class ErrorNode(BaseModel):
    code: str
    status_code: int
    name: Optional[str] = None
    description: Optional[str] = None
    schema_node: Optional[SchemaNode] = None


class AdapterDocument(BaseModel):
    """Format-neutral result of an adapter's parse step.

    Attributes:
        components: Named schemas keyed by the address a ``ref`` node uses
            to point at them (``#/components/schemas/Pet``), in declaration
            order.
        derive_errors: When ``True`` the builder derives error definitions
            from the 4xx/5xx responses of every endpoint.
    """

    source_format: str
    title: Optional[str] = None
    api_version: str = "0.0.0"
    description: Optional[str] = None
    base_url: Optional[str] = None
    components: dict[str, SchemaNode] = Field(default_factory=dict)
    operations: list[OperationNode] = Field(default_factory=list)
    security_schemes: list[SecuritySchemeNode] = Field(default_factory=list)
    global_security: list[str] = Field(default_factory=list)
    errors: list[ErrorNode] = Field(default_factory=list)
    derive_errors: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class SpecAdapter(ABC):
    """Front end for one input format.

    Implementations turn a loaded document into an :class:`AdapterDocument`.
    Unreadable documents raise :class:`~sdkforge.exceptions.ParseError`;
    recoverable oddities are recorded on the supplied diagnostics.
    """

    format_name: str = ""

    @abstractmethod
    def parse(self, document: dict[str, Any], diagnostics: Diagnostics) -> AdapterDocument:
        """Parse *document* into an adapter tree."""


SchemaNode.model_rebuild()
