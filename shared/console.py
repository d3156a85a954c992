"""
revdeps Console Interface
==========================

Rich-powered console abstraction providing a consistent presentation
layer for status messages, section headers and tables.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

_REVDEPS_THEME = Theme(
    {
        "revdeps.section": "bold bright_magenta",
        "revdeps.success": "bold green",
        "revdeps.warning": "bold yellow",
        "revdeps.error": "bold red",
        "revdeps.info": "bold bright_blue",
        "revdeps.dim": "dim white",
    }
)


class RevdepsConsole:
    """Unified console interface for revdeps output.

    Usage::

        con = RevdepsConsole(stderr=True)
        con.section("Reverse dependencies")
        con.success("Scan complete")

    Args:
        quiet:  Suppress all output (useful in library / test mode).
        stderr: Write to stderr instead of stdout.
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        stderr: bool = False,
    ) -> None:
        self._console = Console(
            theme=_REVDEPS_THEME,
            quiet=quiet,
            stderr=stderr,
            highlight=False,
        )

    # ------------------------------------------------------------------ #
    #  Section header
    # ------------------------------------------------------------------ #

    def section(self, title: str) -> None:
        self._console.rule(
            f"  {title}  ",
            style="revdeps.section",
            characters="─",
        )
        self._console.print()

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(
            f"[revdeps.success][✔] SUCCESS:[/revdeps.success] {escape(message)}"
        )

    def warning(self, message: str) -> None:
        self._console.print(
            f"[revdeps.warning][⚠] WARNING:[/revdeps.warning] {escape(message)}"
        )

    def error(self, message: str) -> None:
        self._console.print(
            f"[revdeps.error][✘] ERROR:[/revdeps.error] {escape(message)}"
        )

    def info(self, message: str) -> None:
        self._console.print(
            f"[revdeps.info][ℹ] INFO:[/revdeps.info] {escape(message)}"
        )

    # ------------------------------------------------------------------ #
    #  Table display
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render a styled Rich table.

        Args:
            title:    Table title.
            columns:  Column header labels.
            rows:     Iterable of row tuples; each element is stringified.
            caption:  Optional footer caption.
            styles:   Optional per-column Rich style strings.
        """
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            tbl.add_column(col_name, style=style)

        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))

        self._console.print(tbl)
