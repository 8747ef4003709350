"""Deduplicating store of canonical type definitions.

The :class:`TypeRegistry` is created fresh for every build and discarded
afterwards. It hands out opaque ids (``type_1``, ``type_2``, ...) and
guarantees three things:

* **Deduplication.** Registering a node under an adapter key that was
  already seen (a ``$ref`` address) returns the existing reference. Inline
  nodes without a key are deduplicated by a structural fingerprint, so two
  ``{"type": "string"}`` schemas share one definition.
* **Closure.** Every outgoing reference of a definition must already have
  been issued by this registry when the definition is registered. Children
  are therefore always registered before their parents.
* **Stable names.** Each definition gets a name that is unique within the
  registry. Collisions are broken by prefixing the context (usually the
  operation or parent type), then by a numeric suffix.

Recursive schemas use :meth:`TypeRegistry.reserve`: the id of a keyed node is
issued before its children are lowered so a child can point back at it, and
the following :meth:`TypeRegistry.register` call with the same key finalises
the reservation.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Optional

from sdkforge.exceptions import UnresolvedReferenceError
from sdkforge.models import (
    ArrayType,
    EnumType,
    ObjectType,
    PrimitiveType,
    TypeDefinition,
    TypeReference,
    UnionType,
    child_references,
)
from sdkforge.naming import pascal_case

logger = logging.getLogger(__name__)


def structural_fingerprint(definition: TypeDefinition) -> str:
    """Return a content hash identifying *definition*'s structure.

    Ids, names and descriptions do not take part: two definitions with the
    same fingerprint are interchangeable for code generation. Property order
    is normalised by sorting on name; union variant order is kept because it
    is meaningful for untagged decoding.
    """
    payload: dict[str, Any] = {"kind": definition.kind, "deprecated": definition.deprecated}

    if isinstance(definition, PrimitiveType):
        payload["primitive"] = definition.primitive_kind.value
        if definition.constraints is not None:
            payload["constraints"] = definition.constraints.model_dump(exclude_none=True)
    elif isinstance(definition, ObjectType):
        payload["properties"] = sorted(
            (
                prop.name,
                prop.type.type_id,
                prop.type.nullable,
                prop.required,
                prop.deprecated,
                json.dumps(prop.default, sort_keys=True, default=str),
            )
            for prop in definition.properties
        )
        payload["required"] = sorted(definition.required)
        extra = definition.additional_properties
        payload["additional"] = (
            [extra.type_id, extra.nullable] if isinstance(extra, TypeReference) else extra
        )
        payload["discriminator"] = definition.discriminator
    elif isinstance(definition, ArrayType):
        payload["items"] = [definition.items.type_id, definition.items.nullable]
        payload["bounds"] = [definition.min_items, definition.max_items, definition.unique_items]
    elif isinstance(definition, UnionType):
        payload["variants"] = [[v.type_id, v.nullable] for v in definition.variants]
        payload["discriminator"] = definition.discriminator
        payload["mapping"] = sorted((definition.discriminator_mapping or {}).items())
    elif isinstance(definition, EnumType):
        payload["values"] = [[v.name, v.value] for v in definition.values]
        payload["value_type"] = definition.value_type

    encoded = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class TypeRegistry:
    """Assigns ids to type definitions and resolves them back.

    Example::

        registry = TypeRegistry()
        item = registry.register(PrimitiveType(id="", name="String", primitive_kind="string"))
        tags = registry.register(ArrayType(id="", name="Tags", items=item))
        registry.resolve(tags.type_id).items == item   # True
    """

    def __init__(self) -> None:
        self._definitions: dict[str, TypeDefinition] = {}
        self._order: list[str] = []
        self._reserved: dict[str, str] = {}
        self._by_key: dict[str, str] = {}
        self._by_fingerprint: dict[str, str] = {}
        self._names: set[str] = set()
        self._counter = 0

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._definitions

    # -- Issuing ids ------------------------------------------------------

    def reserve(self, key: str, name: str, context: Optional[str] = None) -> TypeReference:
        """Issue the id for *key* before its definition exists.

        Calling :meth:`reserve` again for the same key returns the same
        reference. The reservation stays unresolvable until
        :meth:`register` is called with *key*.
        """
        existing = self._by_key.get(key)
        if existing is not None:
            return TypeReference(type_id=existing)
        type_id = self._issue_id()
        self._by_key[key] = type_id
        self._reserved[type_id] = self._unique_name(name, context)
        logger.debug("Reserved %s for %s", type_id, key)
        return TypeReference(type_id=type_id)

    def register(
        self,
        draft: TypeDefinition,
        key: Optional[str] = None,
        context: Optional[str] = None,
    ) -> TypeReference:
        """Register *draft* and return a reference to its definition.

        The draft's ``id`` is ignored and replaced with a registry id; its
        ``name`` is used as the naming hint.

        Args:
            draft: The definition to register. All of its child references
                must already be issued by this registry.
            key: Adapter identity of the node (for example a ``$ref``
                address). Keyed nodes are deduplicated by key; nodes
                without a key are deduplicated structurally.
            context: Qualifier used to disambiguate the name on collision.

        Raises:
            UnresolvedReferenceError: If a child reference was not issued by
                this registry.
        """
        if key is not None and key in self._by_key:
            type_id = self._by_key[key]
            if type_id not in self._reserved:
                logger.debug("Registry hit for key %s -> %s", key, type_id)
                return TypeReference(type_id=type_id)
            self._check_children(draft)
            name = self._reserved.pop(type_id)
            self._definitions[type_id] = draft.model_copy(update={"id": type_id, "name": name})
            return TypeReference(type_id=type_id)

        self._check_children(draft)

        fingerprint = None
        if key is None:
            fingerprint = structural_fingerprint(draft)
            existing = self._by_fingerprint.get(fingerprint)
            if existing is not None:
                logger.debug("Registry hit for %s (%s)", draft.name, existing)
                return TypeReference(type_id=existing)

        type_id = self._issue_id()
        name = self._unique_name(draft.name, context)
        self._definitions[type_id] = draft.model_copy(update={"id": type_id, "name": name})
        if key is not None:
            self._by_key[key] = type_id
        else:
            self._by_fingerprint[fingerprint] = type_id
        return TypeReference(type_id=type_id)

    # -- Lookups ----------------------------------------------------------

    def resolve(self, type_id: str) -> TypeDefinition:
        """Return the definition for *type_id*.

        Raises:
            UnresolvedReferenceError: If the id is unknown or only reserved.
        """
        definition = self._definitions.get(type_id)
        if definition is not None:
            return definition
        if type_id in self._reserved:
            raise UnresolvedReferenceError(f"Type '{type_id}' is reserved but was never registered")
        raise UnresolvedReferenceError(f"Unknown type id '{type_id}'")

    def lookup(self, key: str) -> Optional[TypeReference]:
        """Return the reference issued for *key* (reserved or final), if any."""
        type_id = self._by_key.get(key)
        return TypeReference(type_id=type_id) if type_id is not None else None

    def is_pending(self, key: str) -> bool:
        """Return ``True`` if *key* is reserved but not yet registered."""
        type_id = self._by_key.get(key)
        return type_id is not None and type_id in self._reserved

    def definitions(self) -> list[TypeDefinition]:
        """Return every finalised definition in issue order.

        Raises:
            UnresolvedReferenceError: If a reservation was never finalised.
        """
        if self._reserved:
            pending = ", ".join(sorted(self._reserved))
            raise UnresolvedReferenceError(f"Reserved types never registered: {pending}")
        return [self._definitions[type_id] for type_id in self._order]

    # -- Internals --------------------------------------------------------

    def _issue_id(self) -> str:
        self._counter += 1
        type_id = f"type_{self._counter}"
        self._order.append(type_id)
        return type_id

    def _issued(self, type_id: str) -> bool:
        return type_id in self._definitions or type_id in self._reserved

    def _check_children(self, draft: TypeDefinition) -> None:
        for ref in child_references(draft):
            if not self._issued(ref.type_id):
                raise UnresolvedReferenceError(
                    f"Type '{draft.name}' references '{ref.type_id}', "
                    "which has not been registered"
                )

    def _unique_name(self, name: str, context: Optional[str]) -> str:
        base = pascal_case(name)
        candidates = [base]
        if context:
            qualified = pascal_case(context) + base
            if qualified != base:
                candidates.append(qualified)
        for candidate in candidates:
            if candidate not in self._names:
                self._names.add(candidate)
                return candidate
        stem = candidates[-1]
        suffix = 2
        while f"{stem}{suffix}" in self._names:
            suffix += 1
        unique = f"{stem}{suffix}"
        self._names.add(unique)
        return unique
