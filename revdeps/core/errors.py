"""
revdeps Error Taxonomy
=======================

Every per-file failure is an instance of :class:`RevdepsError` carrying a
:class:`FailureKind`, so the engine can contain it, log it and record a
diagnostic without inspecting concrete exception types.  Misuse of the
aggregator raises :class:`IndexFinalizedError`, which sits outside that
hierarchy.
"""

from __future__ import annotations

import enum


class FailureKind(str, enum.Enum):
    """Kinds of failure a single candidate file can produce."""
    IO_FAILURE = "IO_FAILURE"
    NOT_OBJECT_FORMAT = "NOT_OBJECT_FORMAT"
    MALFORMED_HEADER = "MALFORMED_HEADER"
    NO_DYNAMIC_SECTION = "NO_DYNAMIC_SECTION"
    LOOKUP_FAILURE = "LOOKUP_FAILURE"
    OFFSET_TOO_WIDE = "OFFSET_TOO_WIDE"


class RevdepsError(Exception):
    """Base class for all revdeps errors."""

    kind: FailureKind = FailureKind.MALFORMED_HEADER


class ObjectReadError(RevdepsError):
    """The candidate path could not be read as a regular file."""

    kind = FailureKind.IO_FAILURE


class NotObjectFormatError(RevdepsError):
    """The leading bytes do not carry an ELF signature."""

    kind = FailureKind.NOT_OBJECT_FORMAT


class MalformedHeaderError(RevdepsError):
    """Header fields are inconsistent or point outside the buffer."""

    kind = FailureKind.MALFORMED_HEADER


class NoDynamicSectionError(RevdepsError):
    """The object has no ``SHT_DYNAMIC`` section (statically linked)."""

    kind = FailureKind.NO_DYNAMIC_SECTION


class StringLookupError(RevdepsError):
    """A string-table offset could not be resolved to a name."""

    kind = FailureKind.LOOKUP_FAILURE


class DirectoryListingError(RevdepsError):
    """The input directory itself could not be listed.  Fatal to a run."""

    kind = FailureKind.IO_FAILURE


class IndexFinalizedError(RuntimeError):
    """A record was folded into an index that has already been finalized.

    A programming error in the caller, not a per-file failure, so it has no
    :class:`FailureKind` and is never turned into a diagnostic.
    """
