"""Terminal output for commitcam: plugin data on stdout, diagnostics on stderr.

What goes where:

* **stdout** -- the plugin table (``plugins list``), a plugin's stored
  configuration (``plugins show``), and whatever plugins print from their
  hooks via :func:`print_data`. Rendered as a Rich table on a terminal, as
  tab-separated text when piped, or as JSON with ``--json``.
* **stderr** -- status lines, warnings, errors, next-step hints and the
  per-phase summary of a capture (:func:`phase_report`).

``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` all switch Rich markup off.

:func:`~commitcam.app.main_callback` builds one :class:`OutputManager` and
installs it with :func:`set_output`. Plugins and the hook runner call the
module-level functions, which delegate to that instance.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from commitcam.plugins.hooks import PhaseReport

PLUGIN_COLUMNS = ("name", "version", "phases", "configured", "enabled")
"""Columns of the plugin table, in display order."""


class OutputFormat(str, Enum):
    """How stdout data is rendered.

    ``AUTO`` becomes ``RICH`` on a colour-capable terminal and ``PLAIN``
    everywhere else (pipes, ``post-commit`` hooks, ``NO_COLOR``).
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


def _cell(value: Any) -> str:
    """Render one plugin-table value as display text."""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) or "-"
    if value is None:
        return "-"
    return str(value)


class OutputManager:
    """Renders commitcam output according to the global CLI flags.

    Args:
        format: Desired data format. ``AUTO`` is resolved immediately.
        no_color: Disable colour and Rich markup.
        quiet: Drop status lines and hints (warnings and errors stay).
        verbose: Also print debug lines, including clean phase summaries.
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
        if format == OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
        self._format = format
        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved data format (never ``AUTO``)."""
        return self._format

    # --- stdout ---

    def print_data(self, text: str) -> None:
        """Print a line of plugin output to stdout, unformatted."""
        print(text, file=sys.stdout, flush=True)

    def print_plugins(
        self,
        plugins: Sequence[Mapping[str, Any]],
        title: Optional[str] = None,
    ) -> None:
        """Print one row per plugin with its phases and admission state.

        Args:
            plugins: Records as returned by
                :meth:`~commitcam.plugins.manager.PluginManager.list_plugins`.
            title: Table caption, shown in Rich mode only.
        """
        if self._format == OutputFormat.JSON:
            records = [{col: p.get(col) for col in PLUGIN_COLUMNS} for p in plugins]
            self._print_json(records)
            return

        rows = [[_cell(p.get(col)) for col in PLUGIN_COLUMNS] for p in plugins]
        if self._format == OutputFormat.PLAIN:
            for row in [list(PLUGIN_COLUMNS), *rows]:
                self.print_data("\t".join(row))
            return

        table = Table(title=title, header_style="bold cyan")
        for col in PLUGIN_COLUMNS:
            table.add_column(col)
        for row in rows:
            table.add_row(*(self._styled_state(cell) for cell in row))
        self._stdout.print(table)

    def print_config(self, name: str, config: Mapping[str, Any]) -> None:
        """Print the stored configuration entry of plugin *name*.

        Plain mode prints ``key<TAB>value`` lines with the values exactly as
        stored, so a quoted ``"true"`` is distinguishable from ``True``.
        """
        if self._format == OutputFormat.JSON:
            self._print_json(dict(config))
        elif self._format == OutputFormat.PLAIN:
            for key, value in config.items():
                self.print_data(f"{key}\t{value}")
        else:
            table = Table(title=name, show_header=False)
            table.add_column("option", style="bold")
            table.add_column("value")
            for key, value in config.items():
                shown = repr(value) if isinstance(value, str) else str(value)
                table.add_row(escape(str(key)), escape(shown))
            self._stdout.print(table)

    # --- stderr ---

    def phase_report(self, report: PhaseReport) -> None:
        """Summarise one capture phase.

        A phase with failed plugins is a warning; a clean one is only shown
        with ``--verbose``.
        """
        phase = report.phase.value
        if report.failed:
            self.warning(f"{phase}: {', '.join(report.failed)} failed")
        self.debug(
            f"{phase}: ran {len(report.invoked)}, skipped {len(report.skipped)}, "
            f"failed {len(report.failed)}"
        )

    def info(self, message: str) -> None:
        """Status line. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, escape(message))

    def success(self, message: str) -> None:
        """Green status line. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        """Always shown, even with ``--quiet``."""
        self._emit(f"Warning: {message}", f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Always shown."""
        self._emit(f"Error: {message}", f"[bold red]Error:[/bold red] {escape(message)}")

    def suggest(self, message: str) -> None:
        """Next-step hint, e.g. the command that configures a plugin."""
        if not self._quiet:
            self._emit(f"→ {message}", f"[dim]→ {escape(message)}[/dim]")

    def debug(self, message: str) -> None:
        """Only shown with ``--verbose``."""
        if self._verbose:
            self._emit(f"[debug] {message}", f"[dim]\\[debug] {escape(message)}[/dim]")

    # --- helpers ---

    def _emit(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)

    def _print_json(self, data: Any) -> None:
        self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    @staticmethod
    def _styled_state(cell: str) -> str:
        if cell == "yes":
            return "[green]yes[/green]"
        if cell == "no":
            return "[red]no[/red]"
        return escape(cell)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (to anything) or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager`."""
    global _output
    _output = output


def reset_output() -> None:
    """Drop the global :class:`OutputManager` (used between tests)."""
    global _output
    _output = None


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_plugins(plugins: Sequence[Mapping[str, Any]], title: Optional[str] = None) -> None:
    get_output().print_plugins(plugins, title)


def print_config(name: str, config: Mapping[str, Any]) -> None:
    get_output().print_config(name, config)


def phase_report(report: PhaseReport) -> None:
    get_output().phase_report(report)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)
