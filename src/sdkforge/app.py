"""Typer application and CLI entry point for sdkforge.

The CLI is a thin shell over the library:

* ``parse`` -- load an API description and print (or save) its canonical
  schema JSON.
* ``validate`` -- check a canonical schema JSON file.
* ``generate`` -- compile an API description (or a canonical schema JSON)
  into SDKs for one or more languages.
* ``languages`` -- list supported languages and their toolchain commands.

Data goes to stdout and diagnostics to stderr. Every
:class:`~sdkforge.exceptions.SdkforgeError` ends the process with its
``exit_code``.
"""

from __future__ import annotations

import signal
import sys
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, List, Optional

import typer

from sdkforge import __version__
from sdkforge.diagnostics import ParseResult
from sdkforge.exceptions import ParseError, SdkforgeError
from sdkforge.exit_codes import (
    EXIT_GENERATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_PARSE_ERROR,
    EXIT_VALIDATION_ERROR,
)
from sdkforge.models import CanonicalSchema, TargetLanguage
from sdkforge.output import (
    OutputFormat,
    OutputManager,
    error,
    get_output,
    info,
    print_data,
    set_output,
    success,
    warning,
)

app = typer.Typer(
    name="sdkforge",
    help="Compile API descriptions into client SDKs for seven languages.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


class InputFormat(str, Enum):
    AUTO = "auto"
    OPENAPI = "openapi"
    CUSTOM = "custom"


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"sdkforge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output for tables."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Install the global :class:`~sdkforge.output.OutputManager` and logging."""
    output = OutputManager(
        format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    output.configure_logging()


@contextmanager
def _exit_on_error() -> Iterator[None]:
    try:
        yield
    except SdkforgeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


# ------------------------------------------------------------------ #
# Input handling
# ------------------------------------------------------------------ #


def _is_canonical(document: dict[str, Any]) -> bool:
    return "metadata" in document and "types" in document


def _compile(
    document: dict[str, Any],
    input_format: InputFormat,
    provider_id: Optional[str],
    provider_name: Optional[str],
    strict: bool,
) -> ParseResult:
    from sdkforge.adapters.custom import parse_custom_schema
    from sdkforge.adapters.openapi import parse_openapi
    from sdkforge.parser import detect_format

    fmt = detect_format(document) if input_format == InputFormat.AUTO else input_format.value
    parse = parse_openapi if fmt == "openapi" else parse_custom_schema
    return parse(document, provider_id=provider_id, provider_name=provider_name, strict=strict)


def _report_parse(result: ParseResult) -> CanonicalSchema:
    for message in result.warnings:
        warning(message)
    if not result.success or result.schema is None:
        for message in result.errors:
            error(message)
        raise typer.Exit(code=EXIT_PARSE_ERROR)
    return result.schema


def _load_schema(
    source: str,
    input_format: InputFormat,
    provider_id: Optional[str],
    provider_name: Optional[str],
    strict: bool,
) -> CanonicalSchema:
    """Load *source* as a canonical schema JSON or compile it from an API description."""
    from sdkforge.parser import load_document
    from sdkforge.validator import assert_valid

    document = load_document(source)
    if input_format == InputFormat.AUTO and _is_canonical(document):
        info(f"Using canonical schema from {source}")
        return assert_valid(document)
    return _report_parse(_compile(document, input_format, provider_id, provider_name, strict))


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("parse")
def parse_command(
    source: str = typer.Argument(..., help="File path, URL, or '-' for stdin."),
    input_format: InputFormat = typer.Option(
        InputFormat.AUTO, "--format", "-f", help="Input document format."
    ),
    output_file: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the schema JSON here instead of stdout."
    ),
    provider_id: Optional[str] = typer.Option(None, "--provider-id", help="Override the provider id."),
    provider_name: Optional[str] = typer.Option(
        None, "--provider-name", help="Override the provider display name."
    ),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors."),
) -> None:
    """Compile an API description into canonical schema JSON.

    Example::

        sdkforge parse openapi.yaml -o schema.json
    """
    from sdkforge.orchestrator import atomic_write
    from sdkforge.parser import load_document

    with _exit_on_error():
        schema = _report_parse(
            _compile(load_document(source), input_format, provider_id, provider_name, strict)
        )
        text = schema.to_json()
        if output_file is None:
            print_data(text)
            return
        try:
            atomic_write(output_file, text + "\n")
        except OSError as exc:
            error(f"Failed to write {output_file}: {exc}")
            raise typer.Exit(code=EXIT_GENERIC_FAILURE) from None
        success(
            f"Wrote {output_file} ({len(schema.types)} types, {len(schema.endpoints)} endpoints)"
        )


@app.command("validate")
def validate_command(
    schema_file: Path = typer.Argument(..., help="Canonical schema JSON file."),
) -> None:
    """Check a canonical schema JSON file for structural and graph errors.

    Example::

        sdkforge validate schema.json
    """
    from sdkforge.validator import validate_schema

    with _exit_on_error():
        try:
            text = schema_file.read_text(encoding="utf-8")
        except OSError as exc:
            raise ParseError(f"Failed to read {schema_file}: {exc}") from exc
        report = validate_schema(text)
        if not report.valid:
            for issue in report.errors:
                error(f"[{issue.code}] {issue}")
            raise typer.Exit(code=EXIT_VALIDATION_ERROR)
        success(f"{schema_file} is a valid canonical schema")


@app.command("generate")
def generate_command(
    source: str = typer.Argument(..., help="API description or canonical schema JSON."),
    languages: Optional[List[TargetLanguage]] = typer.Option(
        None, "--language", "-l", help="Target language; repeat for several. Defaults to all."
    ),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Output root directory."),
    package_name: Optional[str] = typer.Option(None, "--package-name", help="SDK package name."),
    package_version: Optional[str] = typer.Option(None, "--package-version", help="SDK version."),
    license: Optional[str] = typer.Option(None, "--license", help="SPDX license identifier."),
    input_format: InputFormat = typer.Option(
        InputFormat.AUTO, "--format", "-f", help="Input document format."
    ),
    provider_id: Optional[str] = typer.Option(None, "--provider-id", help="Override the provider id."),
    provider_name: Optional[str] = typer.Option(
        None, "--provider-name", help="Override the provider display name."
    ),
    parallel: Optional[bool] = typer.Option(
        None, "--parallel/--sequential", help="Generate languages concurrently."
    ),
    write_files: Optional[bool] = typer.Option(
        None, "--write/--dry-run", help="Write files to disk or only report them."
    ),
    include_examples: Optional[bool] = typer.Option(
        None, "--examples/--no-examples", help="Emit example programs."
    ),
    strict: Optional[bool] = typer.Option(None, "--strict/--no-strict", help="Treat warnings as errors."),
) -> None:
    """Generate client SDKs.

    Settings not given on the command line come from ``SDKFORGE_*``
    environment variables, ``./sdkforge.json`` and the user config file.

    Example::

        sdkforge generate openapi.yaml -l python -l typescript -o ./sdks
    """
    from sdkforge.config import resolve_config
    from sdkforge.orchestrator import GeneratorOrchestrator, build_instructions

    with _exit_on_error():
        config = resolve_config(
            {
                "languages": languages or None,
                "output_dir": output_dir,
                "package_name": package_name,
                "package_version": package_version,
                "license": license,
                "provider_id": provider_id,
                "provider_name": provider_name,
                "parallel": parallel,
                "write_files": write_files,
                "include_examples": include_examples,
                "strict": strict,
            }
        )
        schema = _load_schema(
            source, input_format, config.provider_id, config.provider_name, config.strict
        )
        options = config.orchestrator_options(schema.metadata.provider_id)
        outcome = GeneratorOrchestrator().generate(schema, options)

    rows = []
    for language, result in outcome.results.items():
        for message in result.warnings:
            warning(f"{language.value}: {message}")
        for message in result.errors:
            error(f"{language.value}: {message}")
        rows.append(
            [language.value, str(len(result.files)), "ok" if not result.errors else "failed"]
        )
    get_output().print_table(["Language", "Files", "Status"], rows, title="Generated SDKs")

    if not outcome.success:
        raise typer.Exit(code=EXIT_GENERATION_ERROR)
    if options.write_files:
        success(
            f"Wrote {outcome.total_files} files to {options.output_dir} "
            f"in {outcome.duration:.0f} ms"
        )
        print_data(build_instructions(outcome))


@app.command("languages")
def languages_command() -> None:
    """List supported target languages and their toolchain commands."""
    from sdkforge.generators import GENERATORS

    rows = [
        [language.value, generator.build_command, generator.test_command, generator.publish_command]
        for language, generator in GENERATORS.items()
    ]
    get_output().print_table(
        ["Language", "Build", "Test", "Publish"], rows, title="Supported languages"
    )


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``sdkforge`` console script.

    :class:`~sdkforge.exceptions.SdkforgeError` instances that escape a
    command cause a clean exit with the error's ``exit_code``; anything else
    is reported as an unexpected error.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except SdkforgeError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error: {type(exc).__name__}: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
