"""Terminal output for the mutauth CLI.

The token is the product of ``mutauth auth authorize`` and scripts capture
it with ``$(...)``, so the two streams never mix:

* **stdout** carries data only: the bare token, a JSON document with
  ``--json``, or a table for ``auth status``.
* **stderr** carries everything addressed to the person at the terminal,
  plus the ``mutauth`` log records routed by :func:`configure_logging`.

Rich styling is used when stdout is a terminal and colour is allowed
(``NO_COLOR`` / ``TERM=dumb`` / ``--no-color`` switch it off).

The active :class:`OutputManager` is created by
:func:`~mutauth.app.main_callback` and installed with :func:`set_output`;
commands use the module-level helpers.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How stdout data is rendered. ``AUTO`` picks ``RICH`` on a colour TTY."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Renders data on stdout and messages on stderr.

    Args:
        format: Requested format; ``AUTO`` is resolved at construction.
        no_color: Disable colour and markup.
        quiet: Drop informational messages. Errors are always shown.
        verbose: Lower the ``mutauth`` log level to DEBUG.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _color_disabled_by_env()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            styled = _is_tty() and not self._no_color
            format = OutputFormat.RICH if styled else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        return self._stderr

    # --- stdout ---

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def format_response(self, data: Any) -> None:
        """Write a document (usually a dict) to stdout in the active format.

        Plain mode prints one ``key<TAB>value`` line per entry.
        """
        if self._format == OutputFormat.PLAIN:
            if isinstance(data, dict):
                for key, value in data.items():
                    self.print_data(f"{key}\t{value}")
            else:
                self.print_data(str(data))
            return

        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._format == OutputFormat.JSON:
            self.print_data(text)
        else:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows as a Rich table, tab-separated lines, or a JSON array of objects."""
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps([dict(zip(headers, row)) for row in rows], indent=2))
        elif self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
        else:
            table = Table(*headers, title=title, header_style="bold cyan")
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # --- stderr ---

    def _message(self, text: str, style: str = "") -> None:
        if self._no_color:
            print(text, file=sys.stderr, flush=True)
        elif style:
            self._stderr.print(f"[{style}]{escape(text)}[/{style}]")
        else:
            self._stderr.print(escape(text))

    def info(self, message: str) -> None:
        if not self._quiet:
            self._message(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._message(message, "green")

    def suggest(self, message: str) -> None:
        """A next step for the user, e.g. ``mutauth auth status``."""
        if not self._quiet:
            self._message(f"→ {message}", "dim")

    def error(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        if self._no_color:
            print(f"Error: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[bold red]Error:[/bold red] {escape(message)}")


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _color_disabled_by_env() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def configure_logging(output: OutputManager) -> None:
    """Send ``mutauth.*`` log records to stderr through Rich.

    Warnings only by default; ``--verbose`` shows the per-tick debug
    records of the poll loop. Calling it again replaces the handler.
    """
    logger = logging.getLogger("mutauth")
    for handler in [h for h in logger.handlers if isinstance(h, RichHandler)]:
        logger.removeHandler(handler)

    logger.addHandler(
        RichHandler(console=output.stderr_console, show_path=False, markup=False)
    )
    logger.setLevel(logging.DEBUG if output.is_verbose else logging.WARNING)
    logger.propagate = False


# --- global instance ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (tests swap stdout/stderr between runs)."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def error(message: str) -> None:
    get_output().error(message)
