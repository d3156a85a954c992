"""
ELF Dependency Parser
======================

Manual struct-based reader for the parts of the Executable and Linkable
Format needed to list an object's runtime dependencies:

    - ELF header (class, byte order, section and program header tables)
    - Section header table, to locate the ``SHT_DYNAMIC`` section
    - ``PT_LOAD`` program headers, to map ``DT_STRTAB`` to a file offset
    - The dynamic array and its string table

Both ELF32 and ELF64 in either byte order are supported.  Every table
extent is validated against the buffer once, in :func:`decode_header`;
later stages rely on that validation instead of repeating it.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
    - Linux man page: elf(5).
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Iterator, Optional

from revdeps.core.errors import (
    FailureKind,
    MalformedHeaderError,
    NoDynamicSectionError,
    NotObjectFormatError,
    StringLookupError,
)
from revdeps.core.models import SoftFailure
from revdeps.parsers.dynamic import decode_entries, scan_entries
from revdeps.parsers.sniffer import (
    EI_DATA,
    EI_NIDENT,
    ByteOrder,
    ObjectClass,
    classify,
)
from revdeps.parsers.strtab import StringTableView, resolve


# ---------------------------------------------------------------------------
# ELF Constants
# ---------------------------------------------------------------------------

# Section header types
SHT_DYNAMIC: int = 6

# Program header types
PT_LOAD: int = 1

# Largest string-table offset accepted for a DT_NEEDED entry
MAX_STRING_OFFSET: int = 0xFFFFFFFF

# Header layouts following e_ident (offset 16):
#   e_type, e_machine, e_version, e_entry, e_phoff, e_shoff, e_flags,
#   e_ehsize, e_phentsize, e_phnum, e_shentsize, e_shnum, e_shstrndx
_EHDR_LAYOUT: dict[bool, str] = {
    False: "HHIIIIIHHHHHH",  # ELF32 header: 52 bytes
    True: "HHIQQQIHHHHHH",   # ELF64 header: 64 bytes
}

# Elf32_Shdr: 40 bytes, Elf64_Shdr: 64 bytes
_SHDR_LAYOUT: dict[bool, str] = {False: "IIIIIIIIII", True: "IIQQQQIIQQ"}

# Elf32_Phdr: 32 bytes, Elf64_Phdr: 56 bytes
_PHDR_LAYOUT: dict[bool, str] = {False: "IIIIIIII", True: "IIQQQQQQ"}


def _layout_size(layout: str) -> int:
    return struct.calcsize("<" + layout)


# ---------------------------------------------------------------------------
# Parsed structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ELFHeader:
    """Validated ELF header fields.

    ``shnum`` is the effective section count (extended numbering already
    applied).  Both header tables are known to lie inside the buffer.
    """
    object_class: ObjectClass
    byte_order: ByteOrder
    shoff: int
    shentsize: int
    shnum: int
    phoff: int
    phentsize: int
    phnum: int

    @property
    def is_64bit(self) -> bool:
        return self.object_class is ObjectClass.ELF64

    @property
    def endian(self) -> str:
        return self.byte_order.value


@dataclass(frozen=True, slots=True)
class SectionHeader:
    """The section header fields the locator needs."""
    sh_type: int
    sh_offset: int
    sh_size: int


@dataclass(frozen=True, slots=True)
class LoadSegment:
    """A ``PT_LOAD`` segment's file-to-address mapping."""
    p_offset: int
    p_vaddr: int
    p_filesz: int


@dataclass(frozen=True, slots=True)
class DynamicSectionBytes:
    """A bounds-checked view over the ``.dynamic`` section contents."""
    offset: int
    size: int
    raw: memoryview


@dataclass(frozen=True, slots=True)
class Extraction:
    """Dependency information extracted from one object.

    Attributes:
        needed: ``DT_NEEDED`` names in entry order, duplicates kept.
        soname: ``DT_SONAME`` value, if present and resolvable.
        rpath: ``DT_RPATH`` value, if present and resolvable.
        runpath: ``DT_RUNPATH`` value, if present and resolvable.
        warnings: Entries that could not be resolved and were skipped.
        has_dynamic: ``False`` for objects without a dynamic section.
    """
    needed: list[str] = field(default_factory=list)
    soname: Optional[str] = None
    rpath: Optional[str] = None
    runpath: Optional[str] = None
    warnings: list[SoftFailure] = field(default_factory=list)
    has_dynamic: bool = True


# ---------------------------------------------------------------------------
# ELF header
# ---------------------------------------------------------------------------

def _check_table(
    data: bytes,
    name: str,
    offset: int,
    count: int,
    entsize: int,
    minimum: int,
) -> None:
    if count == 0:
        return
    if entsize < minimum:
        raise MalformedHeaderError(
            f"{name} entry size {entsize} is smaller than {minimum}"
        )
    if offset + count * entsize > len(data):
        raise MalformedHeaderError(
            f"{name} table ({count} x {entsize} bytes at {offset:#x}) "
            f"exceeds file size {len(data)}"
        )


def decode_header(data: bytes, object_class: ObjectClass) -> ELFHeader:
    """Parse and validate the ELF header of *data*.

    Args:
        data: Complete object file contents.
        object_class: Result of :func:`~revdeps.parsers.sniffer.classify`.

    Returns:
        The validated header.

    Raises:
        NotObjectFormatError: *object_class* is ``NOT_ELF``.
        MalformedHeaderError: Unknown byte order, truncated header, or a
            section/program header table that does not fit the buffer.
    """
    if object_class is ObjectClass.NOT_ELF:
        raise NotObjectFormatError("not an ELF object")

    if len(data) < EI_NIDENT:
        raise MalformedHeaderError("file too short for e_ident")

    is_64bit = object_class is ObjectClass.ELF64
    byte_order = ByteOrder.from_ei_data(data[EI_DATA])
    if byte_order is None:
        raise MalformedHeaderError(f"unknown data encoding {data[EI_DATA]}")

    fmt = byte_order.value + _EHDR_LAYOUT[is_64bit]
    if EI_NIDENT + struct.calcsize(fmt) > len(data):
        raise MalformedHeaderError("file too short for its ELF header")

    (
        _e_type, _e_machine, _e_version, _e_entry,
        e_phoff, e_shoff, _e_flags, _e_ehsize,
        e_phentsize, e_phnum, e_shentsize, e_shnum,
        _e_shstrndx,
    ) = struct.unpack_from(fmt, data, EI_NIDENT)

    shdr_size = _layout_size(_SHDR_LAYOUT[is_64bit])
    phdr_size = _layout_size(_PHDR_LAYOUT[is_64bit])

    shnum = e_shnum if e_shoff else 0
    if e_shoff and e_shnum == 0:
        # Extended numbering: the real count lives in section 0's sh_size
        _check_table(data, "section header", e_shoff, 1, e_shentsize, shdr_size)
        shnum = _read_section_header(
            data, byte_order, is_64bit, e_shoff
        ).sh_size
    _check_table(data, "section header", e_shoff, shnum, e_shentsize, shdr_size)

    phnum = e_phnum if e_phoff else 0
    _check_table(data, "program header", e_phoff, phnum, e_phentsize, phdr_size)

    return ELFHeader(
        object_class=object_class,
        byte_order=byte_order,
        shoff=e_shoff,
        shentsize=e_shentsize,
        shnum=shnum,
        phoff=e_phoff,
        phentsize=e_phentsize,
        phnum=phnum,
    )


# ---------------------------------------------------------------------------
# Section and program headers
# ---------------------------------------------------------------------------

def _read_section_header(
    data: bytes,
    byte_order: ByteOrder,
    is_64bit: bool,
    offset: int,
) -> SectionHeader:
    (
        _sh_name, sh_type, _sh_flags, _sh_addr,
        sh_offset, sh_size, _sh_link, _sh_info,
        _sh_addralign, _sh_entsize,
    ) = struct.unpack_from(byte_order.value + _SHDR_LAYOUT[is_64bit], data, offset)
    return SectionHeader(sh_type, sh_offset, sh_size)


def iter_section_headers(data: bytes, header: ELFHeader) -> Iterator[SectionHeader]:
    """Yield every section header of a validated *header*."""
    for index in range(header.shnum):
        yield _read_section_header(
            data,
            header.byte_order,
            header.is_64bit,
            header.shoff + index * header.shentsize,
        )


def iter_load_segments(data: bytes, header: ELFHeader) -> Iterator[LoadSegment]:
    """Yield the ``PT_LOAD`` program headers of a validated *header*."""
    fmt = header.endian + _PHDR_LAYOUT[header.is_64bit]
    for index in range(header.phnum):
        fields = struct.unpack_from(fmt, data, header.phoff + index * header.phentsize)
        if header.is_64bit:
            p_type, _p_flags, p_offset, p_vaddr, _p_paddr, p_filesz, _, _ = fields
        else:
            p_type, p_offset, p_vaddr, _p_paddr, p_filesz, _, _p_flags, _ = fields
        if p_type == PT_LOAD:
            yield LoadSegment(p_offset, p_vaddr, p_filesz)


def find_dynamic_section(data: bytes, header: ELFHeader) -> DynamicSectionBytes:
    """Locate the first ``SHT_DYNAMIC`` section.

    Raises:
        NoDynamicSectionError: The object has no dynamic section.
        MalformedHeaderError: The section's extent exceeds the buffer.
    """
    for sh in iter_section_headers(data, header):
        if sh.sh_type != SHT_DYNAMIC:
            continue
        end = sh.sh_offset + sh.sh_size
        if end > len(data):
            raise MalformedHeaderError(
                f"dynamic section ({sh.sh_size} bytes at {sh.sh_offset:#x}) "
                f"exceeds file size {len(data)}"
            )
        return DynamicSectionBytes(
            offset=sh.sh_offset,
            size=sh.sh_size,
            raw=memoryview(data)[sh.sh_offset:end],
        )
    raise NoDynamicSectionError("no SHT_DYNAMIC section")


def address_to_offset(data: bytes, header: ELFHeader, address: int) -> int:
    """Map a virtual *address* to a file offset through ``PT_LOAD`` segments.

    Objects without a segment covering *address* (including synthetic
    objects with no program headers) get *address* back unchanged.
    """
    for segment in iter_load_segments(data, header):
        if segment.p_vaddr <= address < segment.p_vaddr + segment.p_filesz:
            return address - segment.p_vaddr + segment.p_offset
    return address


# ---------------------------------------------------------------------------
# Dependency extraction
# ---------------------------------------------------------------------------

def _resolve_optional(
    view: StringTableView,
    offset: Optional[int],
    label: str,
    warnings: list[SoftFailure],
) -> Optional[str]:
    if offset is None:
        return None
    try:
        return resolve(view, offset)
    except StringLookupError as exc:
        warnings.append(SoftFailure(
            kind=FailureKind.LOOKUP_FAILURE,
            offset=offset,
            message=f"{label}: {exc}",
        ))
        return None


def extract_dependencies(data: bytes) -> Extraction:
    """Return the runtime dependencies declared by the object in *data*.

    Pure function of *data*.  Problems with individual ``DT_NEEDED``
    entries are reported in :attr:`Extraction.warnings`; problems with the
    object as a whole raise.

    Raises:
        NotObjectFormatError: *data* is not ELF.
        MalformedHeaderError: The header or dynamic section is corrupt.
    """
    object_class = classify(data)
    if object_class is ObjectClass.NOT_ELF:
        raise NotObjectFormatError("missing ELF signature")

    try:
        header = decode_header(data, object_class)
        try:
            section = find_dynamic_section(data, header)
        except NoDynamicSectionError:
            return Extraction(has_dynamic=False)

        entries = decode_entries(section.raw, header.byte_order, header.is_64bit)
        scan = scan_entries(entries)

        strtab_start = scan.strtab
        if strtab_start is not None:
            strtab_start = address_to_offset(data, header, strtab_start)
    except struct.error as exc:
        raise MalformedHeaderError(str(exc)) from exc

    view = StringTableView.from_bounds(data, strtab_start, scan.strsz)

    needed: list[str] = []
    warnings: list[SoftFailure] = []
    for offset in scan.needed_offsets:
        if offset > MAX_STRING_OFFSET:
            warnings.append(SoftFailure(
                kind=FailureKind.OFFSET_TOO_WIDE,
                offset=offset,
                message=f"DT_NEEDED offset {offset:#x} does not fit 32 bits",
            ))
            continue
        try:
            needed.append(resolve(view, offset))
        except StringLookupError as exc:
            warnings.append(SoftFailure(
                kind=FailureKind.LOOKUP_FAILURE,
                offset=offset,
                message=f"DT_NEEDED: {exc}",
            ))

    return Extraction(
        needed=needed,
        soname=_resolve_optional(view, scan.soname_offset, "DT_SONAME", warnings),
        rpath=_resolve_optional(view, scan.rpath_offset, "DT_RPATH", warnings),
        runpath=_resolve_optional(view, scan.runpath_offset, "DT_RUNPATH", warnings),
        warnings=warnings,
    )
