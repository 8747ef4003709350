"""Read API descriptions into plain dictionaries.

A *source* is a local path, an ``http(s)`` URL or ``-`` for stdin. The
loader reads the raw text, picks a syntax hint from the file suffix or the
response ``Content-Type`` and decodes it as JSON or YAML. Two classifiers sit
on top of the decoded mapping: :func:`detect_format` tells an OpenAPI
document from a custom flat provider schema, and
:func:`validate_openapi_version` gates the OpenAPI versions the adapter
understands.

Nothing downstream of this module touches the network or the disk.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Literal

import httpx
import yaml

from sdkforge.exceptions import ParseError

logger = logging.getLogger(__name__)

DocumentFormat = Literal["openapi", "custom"]

FETCH_TIMEOUT = 30.0

_SUFFIX_HINTS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}


def load_document(source: str) -> dict[str, Any]:
    """Load and decode the document at *source*.

    Args:
        source: A file path, an ``http://``/``https://`` URL, or ``-`` for
            stdin.

    Returns:
        The decoded top-level mapping.

    Raises:
        ParseError: If the source cannot be read or does not decode to a
            mapping.
    """
    content, hint = _read_source(source)
    logger.debug("Read %d characters from %s (hint=%s)", len(content), source, hint or "none")
    return parse_content(content, hint=hint)


def _read_source(source: str) -> tuple[str, str]:
    if source == "-":
        return _read_stdin(), ""
    if source.startswith(("http://", "https://")):
        return _fetch(source)
    return _read_file(Path(source))


def _read_stdin() -> str:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise ParseError(f"Failed to read from stdin: {exc}") from exc
    if not content.strip():
        raise ParseError("No input received from stdin")
    return content


def _fetch(url: str) -> tuple[str, str]:
    try:
        response = httpx.get(url, timeout=FETCH_TIMEOUT, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ParseError(f"HTTP {exc.response.status_code} fetching {url}") from exc
    except httpx.RequestError as exc:
        raise ParseError(f"Failed to fetch {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "").lower()
    if "json" in content_type:
        return response.text, "json"
    if "yaml" in content_type or "yml" in content_type:
        return response.text, "yaml"
    return response.text, ""


def _read_file(path: Path) -> tuple[str, str]:
    if not path.is_file():
        raise ParseError(f"Document not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ParseError(f"Failed to read {path}: {exc}") from exc
    if not content.strip():
        raise ParseError(f"Document is empty: {path}")
    return content, _SUFFIX_HINTS.get(path.suffix.lower(), "")


def parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Decode *content* as JSON, falling back to YAML.

    A ``"json"`` hint disables the YAML fallback; a ``"yaml"`` hint skips the
    JSON attempt.

    Raises:
        ParseError: If neither decoder accepts the text, or the decoded value
            is not a mapping.
    """
    failures: list[str] = []

    if hint != "yaml":
        try:
            return _as_mapping(json.loads(content))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise ParseError(f"Invalid JSON: {exc}") from exc
            failures.append(f"JSON error: {exc}")

    try:
        return _as_mapping(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        failures.append(f"YAML error: {exc}")

    raise ParseError("\n  ".join(["Failed to parse document as JSON or YAML", *failures]))


def _as_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    got = "empty document" if value is None else type(value).__name__
    raise ParseError(f"Document must be a JSON/YAML object (got {got})")


def detect_format(document: dict[str, Any]) -> DocumentFormat:
    """Classify *document* as an OpenAPI or custom flat schema.

    Raises:
        ParseError: If the document matches neither format.
    """
    if "openapi" in document or "swagger" in document:
        return "openapi"
    if "baseUrl" in document and "endpoints" in document:
        return "custom"
    raise ParseError(
        "Unrecognised document format: expected an OpenAPI 3.x document "
        "or a custom schema with 'baseUrl' and 'endpoints'"
    )


def validate_openapi_version(document: dict[str, Any]) -> str:
    """Return the ``openapi`` version string of a 3.x document.

    Raises:
        ParseError: For Swagger 2.x, a missing ``openapi`` field or any
            major version other than 3.
    """
    if "swagger" in document:
        raise ParseError(
            f"Swagger {document['swagger']} is not supported; "
            "convert it to OpenAPI 3.x first (https://converter.swagger.io)"
        )
    version = document.get("openapi")
    if version is None:
        raise ParseError("Missing 'openapi' field; expected an OpenAPI 3.x document")
    version = str(version)
    if not version.startswith("3."):
        raise ParseError(f"Unsupported OpenAPI version {version}; only 3.x is accepted")
    return version
