"""
revdeps Data Models
====================

Pydantic-based data models for per-file extraction results, diagnostics
and the final reverse-dependency report.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from revdeps.core.errors import FailureKind


# ---------------------------------------------------------------------------
# Per-file results
# ---------------------------------------------------------------------------

class SoftFailure(BaseModel):
    """A recoverable problem with a single dynamic entry.

    The entry is skipped; other entries of the same file are still used.

    Attributes:
        kind: ``LOOKUP_FAILURE`` or ``OFFSET_TOO_WIDE``.
        offset: The string-table offset carried by the entry.
        message: Human-readable explanation.
    """
    kind: FailureKind
    offset: int = 0
    message: str = ""


class DependencyRecord(BaseModel):
    """The dependencies one successfully parsed object declares.

    Attributes:
        file_name: Directory entry name of the object.
        libraries: ``DT_NEEDED`` names in entry order, duplicates kept.
        soname: ``DT_SONAME`` value, if present and resolvable.
        rpath: ``DT_RPATH`` value, if present and resolvable.
        runpath: ``DT_RUNPATH`` value, if present and resolvable.
        warnings: Entry-level soft failures met while resolving names.
    """
    file_name: str
    libraries: list[str] = Field(default_factory=list)
    soname: Optional[str] = None
    rpath: Optional[str] = None
    runpath: Optional[str] = None
    warnings: list[SoftFailure] = Field(default_factory=list)


class FileDiagnostic(BaseModel):
    """A candidate file that was skipped, and why."""
    file_name: str
    kind: FailureKind
    message: str = ""


# ---------------------------------------------------------------------------
# Aggregated report
# ---------------------------------------------------------------------------

class LibraryUsage(BaseModel):
    """One library and the files depending on it, in processing order."""
    library: str
    dependents: list[str] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.dependents)


class DependencyReport(BaseModel):
    """Result of scanning one directory.

    Attributes:
        root: The scanned directory.
        libraries: Usage entries, ascending by dependent count then name.
        records: Per-file records in processing order.
        diagnostics: Files that were skipped.
        files_scanned: Number of directory entries considered.
        start_time: Scan start (UTC).
        end_time: Scan end (UTC).
    """
    root: str = ""
    libraries: list[LibraryUsage] = Field(default_factory=list)
    records: list[DependencyRecord] = Field(default_factory=list)
    diagnostics: list[FileDiagnostic] = Field(default_factory=list)
    files_scanned: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def warning_count(self) -> int:
        return sum(len(record.warnings) for record in self.records)
