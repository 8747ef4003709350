"""Multi-language generation runs.

:class:`GeneratorOrchestrator` runs one generator per requested language over
the same frozen :class:`~sdkforge.models.CanonicalSchema`:

* Each language is an isolated failure domain. An exception escaping a
  generator, or an error it reports, ends up in that language's own
  :class:`~sdkforge.models.GeneratorResult`; the other languages complete.
* ``parallel=True`` runs the generators on a thread pool bounded by the
  number of languages. Every generator owns its
  :class:`~sdkforge.mapper.TypeMapper`, and results are assembled in request
  order, so parallel and sequential runs produce the same result.
* ``write_files=True`` writes every file atomically under
  ``<output_dir>/<language>/`` once all in-memory generation has finished.
  A failed write becomes an error of that language only.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Optional

from sdkforge.generators import GENERATORS, BaseGenerator
from sdkforge.models import (
    CanonicalSchema,
    GenerationOptions,
    GeneratorResult,
    OrchestratorOptions,
    TargetLanguage,
)

logger = logging.getLogger(__name__)

GeneratorFactory = Callable[[CanonicalSchema, GenerationOptions], BaseGenerator]


@dataclass
class OrchestrationResult:
    """Aggregated outcome of a generation run.

    Attributes:
        results: One result per requested language, in request order.
        total_files: Number of files generated across all languages.
        total_errors: Number of errors across all languages.
        total_warnings: Number of warnings across all languages.
        duration: Wall-clock duration of the run in milliseconds.
        success: ``True`` when no language reported an error.
    """

    results: dict[TargetLanguage, GeneratorResult] = field(default_factory=dict)
    total_files: int = 0
    total_errors: int = 0
    total_warnings: int = 0
    duration: float = 0.0
    success: bool = True


class GeneratorOrchestrator:
    """Runs the generators of several languages over one schema.

    Args:
        generators: Language -> generator factory table. Defaults to
            :data:`sdkforge.generators.GENERATORS`.
    """

    def __init__(self, generators: Optional[Mapping[TargetLanguage, GeneratorFactory]] = None) -> None:
        self.generators: Mapping[TargetLanguage, GeneratorFactory] = (
            generators if generators is not None else GENERATORS
        )

    def generate(self, schema: CanonicalSchema, options: OrchestratorOptions) -> OrchestrationResult:
        """Generate every requested language.

        Never raises for a per-language failure; inspect
        :attr:`OrchestrationResult.success` and the per-language errors.
        """
        start = time.perf_counter()
        languages = list(dict.fromkeys(options.languages))
        generation_options = GenerationOptions(
            package_name=options.package_name,
            package_version=options.package_version,
            license=options.license,
            include_examples=options.include_examples,
            custom_mappings=options.custom_mappings,
        )

        if options.parallel and len(languages) > 1:
            with ThreadPoolExecutor(
                max_workers=len(languages), thread_name_prefix="sdkforge-generate"
            ) as pool:
                futures = {
                    language: pool.submit(self._run_one, language, schema, generation_options)
                    for language in languages
                }
                results = {language: futures[language].result() for language in languages}
        else:
            results = {
                language: self._run_one(language, schema, generation_options)
                for language in languages
            }

        if options.write_files:
            root = Path(options.output_dir)
            for language, result in results.items():
                if not result.errors:
                    write_result(result, root / language.value)

        outcome = OrchestrationResult(
            results=results,
            total_files=sum(len(r.files) for r in results.values()),
            total_errors=sum(len(r.errors) for r in results.values()),
            total_warnings=sum(len(r.warnings) for r in results.values()),
            duration=(time.perf_counter() - start) * 1000,
        )
        outcome.success = all(not r.errors for r in results.values())
        logger.debug(
            "Generated %d file(s) for %d language(s) in %.1f ms",
            outcome.total_files,
            len(results),
            outcome.duration,
        )
        return outcome

    def _run_one(
        self,
        language: TargetLanguage,
        schema: CanonicalSchema,
        options: GenerationOptions,
    ) -> GeneratorResult:
        start = time.perf_counter()
        factory = self.generators.get(language)
        if factory is None:
            return GeneratorResult(
                language=language, errors=[f"No generator registered for '{language.value}'"]
            )
        try:
            result = factory(schema, options).generate()
        except Exception as exc:
            logger.debug("Generator for %s failed", language.value, exc_info=True)
            return GeneratorResult(language=language, errors=[f"{type(exc).__name__}: {exc}"])
        logger.debug(
            "%s: %d file(s) in %.1f ms",
            language.value,
            len(result.files),
            (time.perf_counter() - start) * 1000,
        )
        return result


def write_result(result: GeneratorResult, directory: Path) -> None:
    """Write the files of *result* under *directory*.

    Paths that would escape *directory* are refused. Failures are appended
    to ``result.errors`` instead of being raised.
    """
    root = directory.resolve()
    for generated in result.files:
        target = (root / generated.path).resolve()
        if not target.is_relative_to(root):
            result.errors.append(f"Refusing to write outside {root}: {generated.path}")
            continue
        try:
            atomic_write(target, generated.content)
            if generated.executable:
                mode = target.stat().st_mode
                target.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except OSError as exc:
            result.errors.append(f"Failed to write {generated.path}: {exc}")


def atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* using a temp file in the same directory and a rename."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
            newline="",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


# --- Advisory instructions ---


def build_instructions(outcome: OrchestrationResult) -> str:
    """Markdown describing how to build every generated SDK."""
    return _instructions("Build", outcome, "build_command")


def test_instructions(outcome: OrchestrationResult) -> str:
    """Markdown describing how to test every generated SDK."""
    return _instructions("Test", outcome, "test_command")


def publish_instructions(outcome: OrchestrationResult) -> str:
    """Markdown describing how to publish every generated SDK."""
    return _instructions("Publish", outcome, "publish_command", with_registry=True)


# Keep pytest from collecting the helper above as a test.
test_instructions.__test__ = False  # type: ignore[attr-defined]


def _instructions(
    title: str,
    outcome: OrchestrationResult,
    attribute: str,
    with_registry: bool = False,
) -> str:
    lines = [f"# {title} instructions", ""]
    for language, result in outcome.results.items():
        command = getattr(result, attribute)
        if result.errors or not command:
            continue
        lines += [f"## {language.value}", "", "```sh", f"cd {language.value}", command, "```", ""]
        if with_registry and result.registry_url:
            lines += [f"Registry: {result.registry_url}", ""]
    if len(lines) == 2:
        lines.append("Nothing to do: no language generated successfully.")
        lines.append("")
    return "\n".join(lines)
