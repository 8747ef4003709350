"""Per-language SDK generators.

:data:`GENERATORS` maps every :class:`~sdkforge.models.TargetLanguage` to the
generator class that handles it; :func:`get_generator` instantiates one.
"""

from __future__ import annotations

from sdkforge.exceptions import UnsupportedLanguageError
from sdkforge.generators.base import BaseGenerator
from sdkforge.generators.csharp import CSharpGenerator
from sdkforge.generators.go import GoGenerator
from sdkforge.generators.java import JavaGenerator
from sdkforge.generators.python import PythonGenerator
from sdkforge.generators.rust import RustGenerator
from sdkforge.generators.typescript import JavaScriptGenerator, TypeScriptGenerator
from sdkforge.models import CanonicalSchema, GenerationOptions, TargetLanguage

GENERATORS: dict[TargetLanguage, type[BaseGenerator]] = {
    TargetLanguage.RUST: RustGenerator,
    TargetLanguage.TYPESCRIPT: TypeScriptGenerator,
    TargetLanguage.PYTHON: PythonGenerator,
    TargetLanguage.JAVASCRIPT: JavaScriptGenerator,
    TargetLanguage.CSHARP: CSharpGenerator,
    TargetLanguage.GO: GoGenerator,
    TargetLanguage.JAVA: JavaGenerator,
}


def get_generator(
    language: TargetLanguage,
    schema: CanonicalSchema,
    options: GenerationOptions,
) -> BaseGenerator:
    """Instantiate the generator for *language*.

    Raises:
        UnsupportedLanguageError: If no generator handles *language*.
    """
    try:
        generator_class = GENERATORS[language]
    except KeyError:
        raise UnsupportedLanguageError(f"No generator for language '{language}'") from None
    return generator_class(schema, options)


__all__ = [
    "BaseGenerator",
    "CSharpGenerator",
    "GENERATORS",
    "GoGenerator",
    "JavaGenerator",
    "JavaScriptGenerator",
    "PythonGenerator",
    "RustGenerator",
    "TypeScriptGenerator",
    "get_generator",
]
