"""
revdeps Console Output
=======================

Rich-powered terminal display of a reverse-dependency report: a summary
line, the library table and, when present, the skipped files.
"""

from __future__ import annotations

from rich.markup import escape

from shared.console import RevdepsConsole

from revdeps.core.errors import FailureKind
from revdeps.core.models import DependencyReport

_KIND_STYLES: dict[FailureKind, str] = {
    FailureKind.IO_FAILURE: "yellow",
    FailureKind.NOT_OBJECT_FORMAT: "dim",
    FailureKind.MALFORMED_HEADER: "bold red",
}


class RevdepsConsoleOutput:
    """Display a :class:`DependencyReport` with Rich tables."""

    def __init__(self, console: RevdepsConsole | None = None) -> None:
        self._console = console or RevdepsConsole()

    def display(self, report: DependencyReport, *, show_skipped: bool = False) -> None:
        self._console.section(f"Reverse dependencies: {report.root}")
        self._display_libraries(report)
        if show_skipped and report.diagnostics:
            self._display_diagnostics(report)
        self._console.info(
            f"{len(report.records)} objects parsed, "
            f"{len(report.diagnostics)} skipped, "
            f"{len(report.libraries)} libraries "
            f"({report.duration_seconds:.2f}s)"
        )

    def _display_libraries(self, report: DependencyReport) -> None:
        if not report.libraries:
            self._console.warning("No dynamic dependencies found.")
            return
        rows = [
            (escape(usage.library), usage.count, escape("\n".join(usage.dependents)))
            for usage in report.libraries
        ]
        self._console.table(
            "Libraries",
            ["Library", "Dependents", "Files"],
            rows,
            styles=["bold bright_white", "bright_cyan", ""],
        )

    def _display_diagnostics(self, report: DependencyReport) -> None:
        rows = []
        for diagnostic in report.diagnostics:
            style = _KIND_STYLES.get(diagnostic.kind, "")
            kind = diagnostic.kind.value
            rows.append((
                escape(diagnostic.file_name),
                f"[{style}]{kind}[/{style}]" if style else kind,
                escape(diagnostic.message),
            ))
        self._console.table("Skipped files", ["File", "Kind", "Reason"], rows)
