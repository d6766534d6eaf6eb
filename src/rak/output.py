"""Terminal output for rak: content on stdout, everything else on stderr.

rak is meant to be piped (``rak @weather Oslo | less -R``), so stdout only
ever carries one of two things:

* the fetched content, byte for byte (:meth:`OutputManager.write_content`),
* the template listing shown by ``@help`` (:meth:`OutputManager.print_table`).

Warnings, errors, the verbose ``mode=`` report and debug lines go to
stderr.  Colour follows ``--no-color``, ``NO_COLOR`` and ``TERM=dumb``
(see https://no-color.org).

The CLI builds one :class:`OutputManager` per invocation and installs it
with :func:`set_output`; library code reports through the module-level
:func:`warning`, :func:`debug` and friends.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormat(str, Enum):
    """How the template listing is rendered.

    ``AUTO`` picks ``RICH`` for a colour-capable terminal and ``PLAIN``
    (tab-separated) when stdout is piped.  Fetched content is never
    reformatted.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Per-invocation output settings and the stderr console.

    Args:
        format: Rendering of the template listing.
        no_color: Disable colour even on a terminal.
        quiet: Drop informational messages; warnings and errors stay.
        verbose: Show debug messages.
        output_file: Write fetched content to this path instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file
        self._format = _resolve_format(format, self._no_color)
        self._stderr = Console(file=sys.stderr, stderr=True, no_color=self._no_color)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # --- stdout ---

    def write_content(self, content: bytes) -> None:
        """Write fetched content unchanged: no decoding, no trailing newline."""
        if self._output_file:
            with open(self._output_file, "wb") as f:
                f.write(content)
            return

        buffer = getattr(sys.stdout, "buffer", None)
        if buffer is None:
            # Text-only stream, e.g. some embedded consoles.
            sys.stdout.write(content.decode("utf-8", errors="replace"))
            sys.stdout.flush()
            return
        buffer.write(content)
        buffer.flush()

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Render *rows* under *headers* in the resolved format.

        JSON gives a list of objects keyed by header, PLAIN one
        tab-separated line per row after a header line, RICH a
        :class:`~rich.table.Table` titled *title*.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            _println(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                _println("\t".join(line))
        else:
            table = Table(*headers, title=title, header_style="bold cyan")
            for row in rows:
                table.add_row(*row)
            Console(file=sys.stdout, no_color=self._no_color, force_terminal=True).print(table)

    # --- stderr ---

    def info(self, message: str) -> None:
        """Plain message, hidden by ``--quiet``."""
        if not self._quiet:
            self._emit(message)

    def report(self, message: str) -> None:
        """Plain message the user asked for with ``--verbose``; ``--quiet`` keeps it."""
        self._emit(message)

    def warning(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._emit(message, label="Warning", style="yellow")

    def error(self, message: str) -> None:
        self._emit(message, label="Error", style="bold red")

    def debug(self, message: str) -> None:
        """Only shown with ``--verbose``."""
        if self._verbose:
            self._emit(f"[debug] {message}", style="dim")

    def _emit(self, message: str, label: str = "", style: str = "") -> None:
        if self._no_color:
            text = f"{label}: {message}" if label else message
            print(text, file=sys.stderr, flush=True)
            return
        markup = escape(message)
        if label:
            markup = f"[{style}]{label}:[/{style}] {markup}"
        elif style:
            markup = f"[{style}]{markup}[/{style}]"
        self._stderr.print(markup, highlight=False)


def _println(text: str) -> None:
    print(text, file=sys.stdout, flush=True)


def _is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything, or ``TERM`` is ``dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    if _is_tty() and not no_color:
        return OutputFormat.RICH
    return OutputFormat.PLAIN


# --- Process-wide manager ---

_current: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _current
    if _current is None:
        _current = OutputManager()
    return _current


def set_output(output: OutputManager) -> None:
    global _current
    _current = output


def reset_output() -> None:
    """Forget the installed manager (tests swap stdout/stderr between runs)."""
    global _current
    _current = None


def write_content(content: bytes) -> None:
    get_output().write_content(content)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def report(message: str) -> None:
    get_output().report(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
