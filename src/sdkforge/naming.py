"""Identifier case conversion shared by the builder, mapper and generators.

All helpers accept arbitrary API names (``user-id``, ``HTTPStatus``,
``list_pets``, ``/v1/messages``) and split them into words before
re-joining them in the requested case:

    >>> pascal_case("list_pets")
    'ListPets'
    >>> snake_case("HTTPStatusCode")
    'http_status_code'
"""

from __future__ import annotations

import keyword
import re

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    return _WORD_BOUNDARY.sub(r"\1_\2", s1).lower()


def split_words(name: str) -> list[str]:
    """Split *name* into lowercase words on case changes and separators."""
    return [w for w in _SEPARATORS.split(_camel_to_snake(name)) if w]


def pascal_case(name: str) -> str:
    words = split_words(name)
    result = "".join(w[:1].upper() + w[1:] for w in words)
    if not result:
        return "Unnamed"
    if result[0].isdigit():
        result = "T" + result
    return result


def camel_case(name: str) -> str:
    pascal = pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def snake_case(name: str) -> str:
    result = "_".join(split_words(name)) or "unnamed"
    if result[0].isdigit():
        result = "_" + result
    return result


def kebab_case(name: str) -> str:
    return "-".join(split_words(name)) or "unnamed"


def screaming_snake_case(name: str) -> str:
    return snake_case(name).upper()


def python_identifier(name: str) -> str:
    """Return a snake_case identifier that is not a Python keyword."""
    ident = snake_case(name)
    if keyword.iskeyword(ident):
        ident += "_"
    return ident


def enum_member_name(value: object) -> str:
    """Return a SCREAMING_SNAKE member name for an enum value.

    >>> enum_member_name("tool_use")
    'TOOL_USE'
    >>> enum_member_name(2.5)
    'VALUE_2_5'
    """
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        text = str(value).replace("-", "MINUS_").replace(".", "_")
        return f"VALUE_{text}"
    words = split_words(str(value))
    if not words:
        return "EMPTY"
    name = "_".join(words).upper()
    if name[0].isdigit():
        name = "VALUE_" + name
    return name
