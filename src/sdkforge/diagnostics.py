"""Per-call warning and error collection.

A fresh :class:`Diagnostics` is created for every parse call and threaded
through the adapter and the builder. Nothing here is module-level state, so
independent parse calls can run side by side.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from sdkforge.models import CanonicalSchema

logger = logging.getLogger(__name__)


class Diagnostics:
    """Accumulates warnings and errors in the order they are recorded.

    Warnings describe degraded-but-successful outcomes (an unknown primitive
    type replaced by ``any``, an unsupported auth scheme omitted). Errors
    describe problems that make the parse call fail.
    """

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def error(self, message: str) -> None:
        logger.error(message)
        self.errors.append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


@dataclass
class ParseResult:
    """Outcome of an adapter + builder run.

    Attributes:
        success: ``True`` when a schema was produced and no errors were
            recorded (and, in strict mode, no warnings either).
        schema: The canonical schema, or ``None`` when the parse aborted.
        errors: Error messages in discovery order.
        warnings: Warning messages in discovery order.
    """

    success: bool
    schema: Optional[CanonicalSchema] = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
