"""Document loading and JSON Pointer resolution.

Typical usage::

    from sdkforge.parser import load_document, detect_format

    raw = load_document("https://petstore3.swagger.io/api/v3/openapi.json")
    fmt = detect_format(raw)   # "openapi" or "custom"

Sub-modules:

* :mod:`~sdkforge.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection and OpenAPI version validation.
* :mod:`~sdkforge.parser.resolver` -- RFC 6901 ``$ref`` pointer resolution.
"""

from sdkforge.parser.loader import detect_format, load_document, validate_openapi_version
from sdkforge.parser.resolver import resolve_pointer

__all__ = ["load_document", "detect_format", "validate_openapi_version", "resolve_pointer"]
