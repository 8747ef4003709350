"""JSON Pointer addressing for ``$ref`` strings (RFC 6901).

Adapters keep ``$ref`` indirections in their node trees and index components
by address; this module only follows one pointer to its target. Chasing
chains of references and detecting cycles belongs to the builder.

Only document-local references (``#/...``) are supported.
"""

from __future__ import annotations

from typing import Any

from sdkforge.exceptions import StructuralError


def escape_pointer_segment(segment: str) -> str:
    """Escape one JSON Pointer segment (RFC 6901)."""
    return segment.replace("~", "~0").replace("/", "~1")


def unescape_pointer_segment(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def resolve_pointer(ref: str, root: dict[str, Any]) -> Any:
    """Return the value *ref* points at inside *root*.

    Example::

        resolve_pointer("#/components/schemas/Pet", document)

    Raises:
        StructuralError: If *ref* is not document-local or a segment cannot
            be followed.
    """
    if not ref.startswith("#/"):
        raise StructuralError(f"External $ref not supported: {ref} (only '#/...' is handled)")

    target: Any = root
    for raw in ref[2:].split("/"):
        target = _step(target, unescape_pointer_segment(raw), ref)
    return target


def _step(container: Any, segment: str, ref: str) -> Any:
    if isinstance(container, dict):
        if segment in container:
            return container[segment]
        raise StructuralError(f"Cannot resolve $ref '{ref}': key '{segment}' not found")
    if isinstance(container, list):
        try:
            return container[int(segment)]
        except (ValueError, IndexError) as exc:
            raise StructuralError(
                f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
            ) from exc
    raise StructuralError(
        f"Cannot resolve $ref '{ref}': cannot descend into {type(container).__name__}"
    )
