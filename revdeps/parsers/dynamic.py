"""
Dynamic Section Decoding
=========================

Decodes the ``.dynamic`` array of ``(d_tag, d_val)`` pairs and folds the
entries that matter for dependency extraction: ``DT_NEEDED`` offsets in
encounter order, the ``DT_STRTAB``/``DT_STRSZ`` bounds of the dynamic
string table, and the ``DT_SONAME``/``DT_RPATH``/``DT_RUNPATH`` offsets.

References:
    - System V Application Binary Interface, Edition 4.1.  "Dynamic Section".
    - Linux man page: elf(5).
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import Optional

from revdeps.parsers.sniffer import ByteOrder


class DynamicTag(enum.IntEnum):
    """Dynamic tags this package acts on.  All others are passed through."""
    NULL = 0
    NEEDED = 1
    STRTAB = 5
    STRSZ = 10
    SONAME = 14
    RPATH = 15
    RUNPATH = 29


_TAGS_BY_VALUE: dict[int, DynamicTag] = {tag.value: tag for tag in DynamicTag}

# Elf32_Dyn: 8 bytes, Elf64_Dyn: 16 bytes
_DYN_LAYOUT: dict[bool, str] = {False: "II", True: "QQ"}


@dataclass(frozen=True, slots=True)
class DynamicEntry:
    """One decoded ``(d_tag, d_val)`` pair, both read as unsigned."""
    tag: int
    value: int

    @property
    def kind(self) -> Optional[DynamicTag]:
        """The recognised tag, or ``None`` for anything else."""
        return _TAGS_BY_VALUE.get(self.tag)


@dataclass(slots=True)
class DynamicScan:
    """What :func:`scan_entries` gathered from a dynamic array."""
    needed_offsets: list[int] = field(default_factory=list)
    strtab: Optional[int] = None
    strsz: Optional[int] = None
    soname_offset: Optional[int] = None
    rpath_offset: Optional[int] = None
    runpath_offset: Optional[int] = None


def decode_entries(
    raw: bytes | memoryview,
    byte_order: ByteOrder,
    is_64bit: bool,
) -> list[DynamicEntry]:
    """Decode dynamic entries from the section bytes *raw*.

    Stops at ``DT_NULL`` (not included) or at the end of *raw*, whichever
    comes first.  A trailing partial entry is ignored.
    """
    fmt = byte_order.value + _DYN_LAYOUT[is_64bit]
    size = struct.calcsize(fmt)

    entries: list[DynamicEntry] = []
    offset = 0
    while offset + size <= len(raw):
        d_tag, d_val = struct.unpack_from(fmt, raw, offset)
        if d_tag == DynamicTag.NULL:
            break
        entries.append(DynamicEntry(d_tag, d_val))
        offset += size
    return entries


def scan_entries(entries: list[DynamicEntry]) -> DynamicScan:
    """Fold decoded entries into a :class:`DynamicScan`.

    Duplicate ``DT_NEEDED`` entries are kept.  For the single-valued
    tags the last occurrence wins.
    """
    scan = DynamicScan()
    for entry in entries:
        kind = entry.kind
        if kind is DynamicTag.NEEDED:
            scan.needed_offsets.append(entry.value)
        elif kind is DynamicTag.STRTAB:
            scan.strtab = entry.value
        elif kind is DynamicTag.STRSZ:
            scan.strsz = entry.value
        elif kind is DynamicTag.SONAME:
            scan.soname_offset = entry.value
        elif kind is DynamicTag.RPATH:
            scan.rpath_offset = entry.value
        elif kind is DynamicTag.RUNPATH:
            scan.runpath_offset = entry.value
    return scan
