"""
revdeps Report Generator
=========================

Renders a :class:`DependencyReport` as the line-oriented text report or as
structured JSON.

Text format, one block per library, ascending by dependent count::

    libx.so (2 exes)
    	<= a.bin
    	<= b.bin

"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from revdeps import __version__
from revdeps.core.models import DependencyReport, LibraryUsage


def render_text(libraries: Iterable[LibraryUsage]) -> str:
    """Render usage entries as the plain-text report."""
    lines: list[str] = []
    for usage in libraries:
        lines.append(f"{usage.library} ({usage.count} exes)")
        lines.extend(f"\t<= {dependent}" for dependent in usage.dependents)
        lines.append("")
    return "".join(f"{line}\n" for line in lines)


class RevdepsReportGenerator:
    """Generate text and JSON reports from a scan.

    Usage::

        generator = RevdepsReportGenerator()
        generator.generate_text(report, "deps.txt")
        generator.generate_json(report, "deps.json")
    """

    def to_dict(self, report: DependencyReport) -> dict[str, Any]:
        """Build the JSON-serialisable report structure."""
        return {
            "report_type": "revdeps_reverse_dependencies",
            "version": __version__,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "root": report.root,
            "summary": {
                "files_scanned": report.files_scanned,
                "objects_parsed": len(report.records),
                "files_skipped": len(report.diagnostics),
                "libraries": len(report.libraries),
                "entry_warnings": report.warning_count,
                "duration_seconds": round(report.duration_seconds, 3),
            },
            "libraries": [
                {
                    "library": usage.library,
                    "count": usage.count,
                    "dependents": usage.dependents,
                }
                for usage in report.libraries
            ],
            "diagnostics": [
                diagnostic.model_dump(mode="json")
                for diagnostic in report.diagnostics
            ],
            "records": [
                record.model_dump(mode="json", exclude_none=True)
                for record in report.records
            ],
        }

    def to_json(self, report: DependencyReport) -> str:
        return json.dumps(self.to_dict(report), indent=2, ensure_ascii=False)

    def generate_text(self, report: DependencyReport, output_path: str) -> str:
        """Write the text report and return its absolute path."""
        return self._write(output_path, render_text(report.libraries))

    def generate_json(self, report: DependencyReport, output_path: str) -> str:
        """Write the JSON report and return its absolute path."""
        return self._write(output_path, self.to_json(report) + "\n")

    @staticmethod
    def _write(output_path: str, content: str) -> str:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path.resolve())
