"""
Dependency Aggregator
======================

Folds per-file :class:`DependencyRecord` objects into a reverse index
(library name -> dependent files) and materialises it as a report sorted
ascending by dependent count.

Libraries with the same dependent count are ordered by name, which keeps
the report identical across runs regardless of directory listing order.
"""

from __future__ import annotations

from typing import Iterable

from revdeps.core.errors import IndexFinalizedError
from revdeps.core.models import DependencyRecord, LibraryUsage


class DependencyIndex:
    """Reverse-dependency index with a one-way accumulate -> finalized
    lifecycle.

    Usage::

        index = DependencyIndex()
        for record in records:
            index.fold(record)
        usages = index.finalize()
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[str]] = {}
        self._finalized: bool = False

    # ------------------------------------------------------------------ #
    #  Accumulating
    # ------------------------------------------------------------------ #

    def fold(self, record: DependencyRecord) -> None:
        """Append *record*'s file name to each library it needs.

        A library listed twice by the same file gets the file name twice.

        Raises:
            IndexFinalizedError: The index has already been finalized.
        """
        if self._finalized:
            raise IndexFinalizedError(
                f"cannot fold {record.file_name!r} into a finalized index"
            )
        for library in record.libraries:
            self._entries.setdefault(library, []).append(record.file_name)

    # ------------------------------------------------------------------ #
    #  Finalized
    # ------------------------------------------------------------------ #

    def finalize(self) -> list[LibraryUsage]:
        """Freeze the index and return its sorted reporting view.

        Ordered ascending by dependent count, then by library name.  Each
        dependent list keeps the order in which files were folded.
        """
        self._finalized = True
        ordered = sorted(
            self._entries.items(),
            key=lambda item: (len(item[1]), item[0]),
        )
        return [
            LibraryUsage(library=library, dependents=list(dependents))
            for library, dependents in ordered
        ]

    @property
    def finalized(self) -> bool:
        return self._finalized


def aggregate(records: Iterable[DependencyRecord]) -> DependencyIndex:
    """Fold every record of *records* into a new, still-accumulating index."""
    index = DependencyIndex()
    for record in records:
        index.fold(record)
    return index
