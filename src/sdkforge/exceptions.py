"""Exception hierarchy for sdkforge.

All exceptions inherit from :class:`SdkforgeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`sdkforge.exit_codes`.
The top-level error handler in :func:`sdkforge.app.main` catches
``SdkforgeError`` and exits with the appropriate code.

Recoverable input problems are never raised: they are recorded as warnings
in a :class:`~sdkforge.diagnostics.Diagnostics` collector instead.

Subclass hierarchy::

    SdkforgeError (exit 1)
    +-- ParseError                (exit 7)
    +-- StructuralError           (exit 8)
    +-- UnresolvedReferenceError  (exit 70)
    +-- ValidationError           (exit 9)
    +-- GenerationError           (exit 10)
    +-- UnsupportedLanguageError  (exit 2)
    +-- ConfigError               (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sdkforge.exit_codes import (
    EXIT_GENERATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INTERNAL_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_PARSE_ERROR,
    EXIT_STRUCTURAL_ERROR,
    EXIT_VALIDATION_ERROR,
)

if TYPE_CHECKING:
    from sdkforge.validator import ValidationIssue


class SdkforgeError(Exception):
    """Base exception for all sdkforge errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`sdkforge.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ParseError(SdkforgeError):
    """Raised when an input document is unreadable or malformed."""

    exit_code = EXIT_PARSE_ERROR


class StructuralError(SdkforgeError):
    """Raised when a schema violates a structural invariant.

    Examples are an ``array`` schema without ``items``, a union with zero
    variants, or a ``$ref`` whose target does not exist. Aborts the whole
    parse call.
    """

    exit_code = EXIT_STRUCTURAL_ERROR


class UnresolvedReferenceError(SdkforgeError):
    """Raised when a type id is not known to the registry.

    This signals a defect in the builder rather than bad input; a schema
    returned by a successful build never triggers it.
    """

    exit_code = EXIT_INTERNAL_ERROR


class ValidationError(SdkforgeError):
    """Raised by :func:`~sdkforge.validator.assert_valid` when a schema is invalid.

    Args:
        message: Summary line.
        issues: Every issue found, in discovery order.
    """

    exit_code = EXIT_VALIDATION_ERROR

    def __init__(self, message: str, issues: list[ValidationIssue] | None = None):
        super().__init__(message)
        self.issues = list(issues or [])


class GenerationError(SdkforgeError):
    """Raised when a generator cannot render its output."""

    exit_code = EXIT_GENERATION_ERROR


class UnsupportedLanguageError(SdkforgeError):
    """Raised for a target language outside the supported set."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SdkforgeError):
    """Raised for configuration problems (invalid JSON, unknown keys, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
