"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~sdkforge.exceptions.SdkforgeError` subclass.
CI scripts can inspect the exit code to tell a malformed input document
apart from a generator failure without parsing stderr.

Example::

    $ sdkforge parse broken.yaml
    $ echo $?
    7   # EXIT_PARSE_ERROR -- the document could not be read
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an unsupported language."""

EXIT_PARSE_ERROR = 7
"""The input document could not be read or parsed."""

EXIT_STRUCTURAL_ERROR = 8
"""The input document violates a structural invariant (e.g. an array without items)."""

EXIT_VALIDATION_ERROR = 9
"""A canonical schema failed post-build validation."""

EXIT_GENERATION_ERROR = 10
"""One or more language generators failed."""

EXIT_INTERNAL_ERROR = 70
"""An internal invariant was violated (a defect in sdkforge, not in the input)."""
