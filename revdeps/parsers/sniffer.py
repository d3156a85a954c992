"""
ELF Identification
===================

Classifies a raw buffer as ELF32, ELF64 or not ELF by looking only at the
16-byte ``e_ident`` block.  This runs before any header decode so that
fixed header offsets are never read from non-ELF or truncated data.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.  Figure 1-4.
"""

from __future__ import annotations

import enum


# ---------------------------------------------------------------------------
# e_ident constants
# ---------------------------------------------------------------------------

ELF_MAGIC: bytes = b"\x7fELF"
EI_NIDENT: int = 16
EI_CLASS: int = 4
EI_DATA: int = 5

ELFCLASS32: int = 1
ELFCLASS64: int = 2

ELFDATA2LSB: int = 1  # Little-endian
ELFDATA2MSB: int = 2  # Big-endian


class ObjectClass(enum.Enum):
    """Object class as announced by ``e_ident[EI_CLASS]``."""
    ELF32 = 32
    ELF64 = 64
    NOT_ELF = 0


class ByteOrder(str, enum.Enum):
    """Data encoding, valued as the matching :mod:`struct` prefix."""
    LITTLE = "<"
    BIG = ">"

    @classmethod
    def from_ei_data(cls, ei_data: int) -> ByteOrder | None:
        if ei_data == ELFDATA2LSB:
            return cls.LITTLE
        if ei_data == ELFDATA2MSB:
            return cls.BIG
        return None


def classify(data: bytes) -> ObjectClass:
    """Return the object class of *data*.

    Fails closed: a buffer shorter than ``EI_NIDENT``, without the ELF
    magic, or with an unknown class byte is :attr:`ObjectClass.NOT_ELF`.
    """
    if len(data) < EI_NIDENT or data[:4] != ELF_MAGIC:
        return ObjectClass.NOT_ELF
    ei_class = data[EI_CLASS]
    if ei_class == ELFCLASS64:
        return ObjectClass.ELF64
    if ei_class == ELFCLASS32:
        return ObjectClass.ELF32
    return ObjectClass.NOT_ELF
