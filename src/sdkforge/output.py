"""Console output for the sdkforge CLI.

Two channels, never mixed:

* **stdout** carries results: schema JSON, generation tables, build
  instructions. It stays pipeable.
* **stderr** carries everything about the run: progress, warnings, errors
  and log records.

Colour follows ``--no-color``, ``NO_COLOR`` (any value) and ``TERM=dumb``.
The CLI callback builds one :class:`OutputManager` and installs it with
:func:`set_output`; commands use the module-level helpers.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table


class OutputFormat(str, Enum):
    """How tables are rendered on stdout."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# level -> (plain prefix, rich markup template)
_DIAGNOSTIC_STYLES = {
    "info": ("", "{message}"),
    "success": ("", "[green]{message}[/green]"),
    "warning": ("Warning: ", "[yellow]Warning:[/yellow] {message}"),
    "error": ("Error: ", "[bold red]Error:[/bold red] {message}"),
    "debug": ("[debug] ", "[dim]\\[debug] {message}[/dim]"),
}


class OutputManager:
    """Routes results to stdout and diagnostics to stderr.

    Args:
        format: Table format; ``AUTO`` becomes ``RICH`` on a colour-capable
            terminal and ``PLAIN`` everywhere else.
        no_color: Disable colour and markup.
        quiet: Drop ``info`` and ``success`` messages.
        verbose: Show ``debug`` messages and DEBUG log records.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._format = resolve_format(format, self._no_color)

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    def configure_logging(self) -> None:
        """Attach a :class:`RichHandler` on stderr to the ``sdkforge`` logger.

        The level is DEBUG in verbose mode and WARNING otherwise. A handler
        installed by an earlier call is replaced, not duplicated.
        """
        logger = logging.getLogger("sdkforge")
        logger.handlers = [h for h in logger.handlers if not isinstance(h, RichHandler)]
        handler = RichHandler(console=self._stderr, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if self._verbose else logging.WARNING)
        logger.propagate = False

    # --- stdout ---

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print *rows* as a Rich table, a JSON array of objects, or TSV."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # --- stderr ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._emit("info", message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._emit("success", message)

    def warning(self, message: str) -> None:
        self._emit("warning", message)

    def error(self, message: str) -> None:
        self._emit("error", message)

    def debug(self, message: str) -> None:
        if self._verbose:
            self._emit("debug", message)

    def _emit(self, level: str, message: str) -> None:
        prefix, markup = _DIAGNOSTIC_STYLES[level]
        if self._no_color:
            print(prefix + message, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup.format(message=escape(message)), highlight=False)


def resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    return OutputFormat.RICH if _is_tty() and not no_color else OutputFormat.PLAIN


def _is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _should_disable_color() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# --- process-wide instance used by the CLI ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager so the next call builds a fresh one."""
    global _output
    _output = None


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
