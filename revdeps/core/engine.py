"""
revdeps Scan Engine
====================

Drives a directory scan end to end:

    1. List the directory (the only failure that aborts a run)
    2. For each entry, read the whole file into memory
    3. Extract its ``DT_NEEDED`` libraries
    4. Fold the resulting record into the reverse-dependency index
    5. Finalize the index into a sorted :class:`DependencyReport`

Each file is fully processed, and its buffer dropped, before the next one
is read.  A failure on one file is logged and recorded as a diagnostic;
it never stops the scan.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

from shared.config import RevdepsSettings
from shared.logger import RevdepsLogger

from revdeps.core.aggregator import DependencyIndex
from revdeps.core.errors import (
    DirectoryListingError,
    FailureKind,
    ObjectReadError,
    RevdepsError,
)
from revdeps.core.models import (
    DependencyRecord,
    DependencyReport,
    FileDiagnostic,
)
from revdeps.parsers.elf_parser import extract_dependencies


def printable_name(name: str | Path) -> str:
    """Return *name* with bytes that are not valid UTF-8 replaced by U+FFFD.

    ``os.scandir`` keeps such bytes as lone surrogates, which cannot be
    written to stdout or to a UTF-8 report.
    """
    return os.fsencode(name).decode("utf-8", errors="replace")


class RevdepsEngine:
    """Builds reverse-dependency reports for a directory of executables.

    Usage::

        engine = RevdepsEngine()
        report = engine.scan_directory("/usr/bin")
        for usage in report.libraries:
            print(usage.library, usage.count)
    """

    def __init__(
        self,
        config: RevdepsSettings | None = None,
        logger: RevdepsLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: revdeps configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: RevdepsSettings = config or RevdepsSettings()
        self._logger: RevdepsLogger = logger or RevdepsLogger("engine")

    # ------------------------------------------------------------------ #
    #  Directory scan
    # ------------------------------------------------------------------ #

    def list_candidates(self, root: str | Path) -> list[Path]:
        """Return the directly listed entries of *root*, sorted by name.

        Raises:
            DirectoryListingError: *root* cannot be listed.
        """
        try:
            with os.scandir(root) as it:
                names = [entry.name for entry in it]
        except OSError as exc:
            raise DirectoryListingError(
                f"Could not list {printable_name(root)}: {exc.strerror or exc}"
            ) from exc

        if not self._config.revdeps.include_hidden:
            names = [name for name in names if not name.startswith(".")]
        return [Path(root) / name for name in sorted(names)]

    def scan_directory(self, root: str | Path | None = None) -> DependencyReport:
        """Scan every entry of *root* and build the sorted report.

        Args:
            root: Directory to scan.  Defaults to the configured
                  ``executables_dir``.

        Raises:
            DirectoryListingError: *root* cannot be listed.
        """
        root = Path(root if root is not None else self._config.revdeps.executables_dir)
        report = DependencyReport(
            root=printable_name(root),
            start_time=datetime.now(timezone.utc),
        )
        index = DependencyIndex()

        with self._logger.operation("scan"):
            candidates = self.list_candidates(root)
            self._logger.info(f"Scanning {len(candidates)} entries in {report.root}")

            for path in candidates:
                report.files_scanned += 1
                try:
                    record = self.process_file(path)
                except RevdepsError as exc:
                    diagnostic = FileDiagnostic(
                        file_name=printable_name(path.name),
                        kind=exc.kind,
                        message=str(exc),
                    )
                    report.diagnostics.append(diagnostic)
                    self._log_diagnostic(diagnostic)
                    continue

                for warning in record.warnings:
                    self._logger.warning(
                        "Couldn't resolve entry in %s: %s",
                        record.file_name,
                        warning.message,
                        file_name=record.file_name,
                        kind=warning.kind.value,
                    )
                index.fold(record)
                report.records.append(record)

        report.libraries = index.finalize()
        report.end_time = datetime.now(timezone.utc)
        self._logger.info(
            f"Scan complete: {len(report.records)} objects, "
            f"{len(report.libraries)} libraries, "
            f"{len(report.diagnostics)} skipped"
        )
        return report

    # ------------------------------------------------------------------ #
    #  Single file
    # ------------------------------------------------------------------ #

    def read_object(self, path: Path) -> bytes:
        """Read a candidate file in full.

        Raises:
            ObjectReadError: Not a regular file, too large, or unreadable.
        """
        try:
            if not self._config.revdeps.follow_symlinks and path.is_symlink():
                raise ObjectReadError("symbolic link (not followed)")
            if not path.is_file():
                raise ObjectReadError("not a regular file")
            size = path.stat().st_size
            max_size = self._config.revdeps.max_file_size
            if size > max_size:
                raise ObjectReadError(
                    f"file too large: {size:,} bytes (max: {max_size:,} bytes)"
                )
            return path.read_bytes()
        except OSError as exc:
            raise ObjectReadError(exc.strerror or str(exc)) from exc

    def process_file(self, path: str | Path) -> DependencyRecord:
        """Read *path* and extract its dependency record.

        Raises:
            RevdepsError: Any per-file failure (see :class:`FailureKind`).
        """
        path = Path(path)
        data = self.read_object(path)
        return self.process_data(data, printable_name(path.name))

    def process_data(self, data: bytes, file_name: str) -> DependencyRecord:
        """Extract the dependency record for an in-memory object."""
        extraction = extract_dependencies(data)
        if not extraction.has_dynamic:
            self._logger.debug(f"{file_name}: no dynamic section")
        return DependencyRecord(
            file_name=file_name,
            libraries=extraction.needed,
            soname=extraction.soname,
            rpath=extraction.rpath,
            runpath=extraction.runpath,
            warnings=extraction.warnings,
        )

    # ------------------------------------------------------------------ #
    #  Helpers
    # ------------------------------------------------------------------ #

    def _log_diagnostic(self, diagnostic: FileDiagnostic) -> None:
        log = (
            self._logger.debug
            if diagnostic.kind is FailureKind.NOT_OBJECT_FORMAT
            else self._logger.warning
        )
        log(
            "Couldn't handle %s: %s (%s)",
            diagnostic.file_name,
            diagnostic.kind.value,
            diagnostic.message,
            file_name=diagnostic.file_name,
            kind=diagnostic.kind.value,
        )
