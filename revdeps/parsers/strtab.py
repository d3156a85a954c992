"""
String Table Resolver
======================

Bounds-checked lookups of NUL-terminated names in a string table that
lives inside the object buffer.  A lookup never reads outside
``[start, end)`` of the view.
"""

from __future__ import annotations

from dataclasses import dataclass

from revdeps.core.errors import StringLookupError


@dataclass(frozen=True, slots=True)
class StringTableView:
    """A ``[start, end)`` window over *data*.

    The constructor clamps the window to the buffer so that
    ``start <= end <= len(data)`` always holds; a table declared past the
    end of the file becomes empty rather than pointing at foreign bytes.
    """
    data: bytes
    start: int
    end: int

    def __post_init__(self) -> None:
        end = max(0, min(self.end, len(self.data)))
        start = max(0, min(self.start, end))
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def from_bounds(cls, data: bytes, start: int | None, size: int | None) -> StringTableView:
        """Build a view from ``DT_STRTAB``/``DT_STRSZ`` style values.

        A missing start or size yields a zero-length table.
        """
        if start is None or size is None:
            return cls(data, 0, 0)
        return cls(data, start, start + size)

    def __len__(self) -> int:
        return self.end - self.start


def resolve(view: StringTableView, offset: int) -> str:
    """Return the string at *offset* within *view*.

    Invalid UTF-8 is replaced with U+FFFD rather than rejected.

    Raises:
        StringLookupError: *offset* falls outside the table, or the
            string has no terminator before the end of the table.
    """
    if offset < 0:
        raise StringLookupError(f"negative string offset {offset}")

    position = view.start + offset
    if position >= view.end or position >= len(view.data):
        raise StringLookupError(
            f"offset {offset} outside string table of {len(view)} bytes"
        )

    terminator = view.data.find(b"\x00", position, view.end)
    if terminator == -1:
        raise StringLookupError(
            f"unterminated string at offset {offset}"
        )
    return view.data[position:terminator].decode("utf-8", errors="replace")
