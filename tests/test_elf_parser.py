import pytest

from revdeps.core.errors import (
    FailureKind,
    MalformedHeaderError,
    NoDynamicSectionError,
    NotObjectFormatError,
)
from revdeps.parsers.elf_parser import (
    decode_header,
    extract_dependencies,
    find_dynamic_section,
)
from revdeps.parsers.sniffer import ByteOrder, ObjectClass, classify
from tests.elf_builder import (
    DT_NEEDED,
    DT_RPATH,
    DT_RUNPATH,
    DT_SONAME,
    build_elf,
    needed_elf,
    string_table,
)


# ---------------------------------------------------------------------------
# Header decoding
# ---------------------------------------------------------------------------

def test_decode_header_elf64_little():
    data = needed_elf("libc.so.6")
    header = decode_header(data, classify(data))
    assert header.is_64bit
    assert header.byte_order is ByteOrder.LITTLE
    assert header.shnum == 3
    assert header.shentsize == 64


def test_decode_header_elf32_big():
    data = needed_elf("libc.so.6", is_64bit=False, little_endian=False)
    header = decode_header(data, classify(data))
    assert header.object_class is ObjectClass.ELF32
    assert header.byte_order is ByteOrder.BIG
    assert header.shentsize == 40


def test_decode_header_rejects_not_elf():
    with pytest.raises(NotObjectFormatError):
        decode_header(b"\x00" * 64, ObjectClass.NOT_ELF)


def test_decode_header_rejects_unknown_byte_order():
    data = needed_elf("libc.so.6", ei_data=3)
    with pytest.raises(MalformedHeaderError):
        decode_header(data, classify(data))


def test_decode_header_rejects_truncated_header():
    data = needed_elf("libc.so.6")[:40]
    with pytest.raises(MalformedHeaderError):
        decode_header(data, classify(data))


def test_decode_header_rejects_section_table_past_end():
    data = needed_elf("libc.so.6")[:-1]
    with pytest.raises(MalformedHeaderError):
        decode_header(data, classify(data))


def test_decode_header_rejects_huge_section_count():
    data = needed_elf("libc.so.6", e_shnum=0xFFFF)
    with pytest.raises(MalformedHeaderError) as excinfo:
        decode_header(data, classify(data))
    assert excinfo.value.kind is FailureKind.MALFORMED_HEADER


def test_decode_header_rejects_short_section_entries():
    data = needed_elf("libc.so.6", e_shentsize=8)
    with pytest.raises(MalformedHeaderError):
        decode_header(data, classify(data))


def test_decode_header_extended_section_numbering():
    data = needed_elf("libc.so.6", extended_shnum=True)
    header = decode_header(data, classify(data))
    assert header.shnum == 3
    assert extract_dependencies(data).needed == ["libc.so.6"]


# ---------------------------------------------------------------------------
# Dynamic section location
# ---------------------------------------------------------------------------

def test_find_dynamic_section():
    data = needed_elf("libc.so.6")
    section = find_dynamic_section(data, decode_header(data, classify(data)))
    # NEEDED, STRTAB, STRSZ, NULL
    assert section.size == 4 * 16
    assert len(section.raw) == section.size


def test_no_dynamic_section():
    data = needed_elf("libc.so.6", with_dynamic=False)
    with pytest.raises(NoDynamicSectionError):
        find_dynamic_section(data, decode_header(data, classify(data)))


def test_dynamic_section_past_end_is_malformed():
    data = needed_elf("libc.so.6", dynamic_size=1 << 20)
    with pytest.raises(MalformedHeaderError):
        find_dynamic_section(data, decode_header(data, classify(data)))


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def test_extract_in_entry_order():
    data = needed_elf("libm.so.6", "libc.so.6", "libz.so.1")
    result = extract_dependencies(data)
    assert result.needed == ["libm.so.6", "libc.so.6", "libz.so.1"]
    assert result.warnings == []
    assert result.has_dynamic


def test_extract_keeps_duplicates():
    table, (libc, libm) = string_table("libc.so.6", "libm.so.6")
    data = build_elf(
        [(DT_NEEDED, libc), (DT_NEEDED, libm), (DT_NEEDED, libc)],
        table,
    )
    assert extract_dependencies(data).needed == ["libc.so.6", "libm.so.6", "libc.so.6"]


def test_extract_libfoo_libbar():
    data = build_elf(
        [(DT_NEEDED, 0), (DT_NEEDED, 10)],
        b"libfoo.so\x00libbar.so\x00",
    )
    assert extract_dependencies(data).needed == ["libfoo.so", "libbar.so"]


@pytest.mark.parametrize("is_64bit", [True, False])
@pytest.mark.parametrize("little_endian", [True, False])
def test_extract_all_classes_and_byte_orders(is_64bit, little_endian):
    data = needed_elf(
        "libfoo.so", "libbar.so",
        is_64bit=is_64bit,
        little_endian=little_endian,
    )
    assert extract_dependencies(data).needed == ["libfoo.so", "libbar.so"]


def test_offsets_at_and_past_table_end_are_skipped():
    table = b"libfoo.so\x00"
    data = build_elf(
        [(DT_NEEDED, 0), (DT_NEEDED, len(table)), (DT_NEEDED, len(table) + 1)],
        table,
    )
    result = extract_dependencies(data)
    assert result.needed == ["libfoo.so"]
    assert [w.kind for w in result.warnings] == [
        FailureKind.LOOKUP_FAILURE,
        FailureKind.LOOKUP_FAILURE,
    ]
    assert [w.offset for w in result.warnings] == [10, 11]


def test_missing_string_table_tags_fail_each_lookup():
    table, offsets = string_table("libfoo.so", "libbar.so")
    data = build_elf(
        [(DT_NEEDED, offset) for offset in offsets],
        table,
        add_strtab_tags=False,
    )
    result = extract_dependencies(data)
    assert result.needed == []
    assert len(result.warnings) == 2


def test_unterminated_string_is_skipped():
    data = build_elf([(DT_NEEDED, 0)], b"libfoo.so")
    result = extract_dependencies(data)
    assert result.needed == []
    assert result.warnings[0].kind is FailureKind.LOOKUP_FAILURE


def test_wide_offset_is_skipped_without_losing_others():
    table, (libc,) = string_table("libc.so.6")
    data = build_elf([(DT_NEEDED, 1 << 32), (DT_NEEDED, libc)], table)
    result = extract_dependencies(data)
    assert result.needed == ["libc.so.6"]
    assert result.warnings[0].kind is FailureKind.OFFSET_TOO_WIDE


def test_decoding_stops_at_section_end_without_terminator():
    data = needed_elf("libfoo.so", terminate=False)
    assert extract_dependencies(data).needed == ["libfoo.so"]


def test_strtab_address_translated_through_load_segment():
    data = needed_elf("libfoo.so", "libbar.so", load_vaddr=0x400000)
    assert extract_dependencies(data).needed == ["libfoo.so", "libbar.so"]

    data32 = needed_elf("libfoo.so", is_64bit=False, load_vaddr=0x8048000)
    assert extract_dependencies(data32).needed == ["libfoo.so"]


def test_soname_rpath_runpath():
    table, (libc, soname, rpath, runpath) = string_table(
        "libc.so.6", "libself.so.1", "/opt/lib", "$ORIGIN/../lib",
    )
    data = build_elf(
        [
            (DT_NEEDED, libc),
            (DT_SONAME, soname),
            (DT_RPATH, rpath),
            (DT_RUNPATH, runpath),
        ],
        table,
    )
    result = extract_dependencies(data)
    assert result.needed == ["libc.so.6"]
    assert result.soname == "libself.so.1"
    assert result.rpath == "/opt/lib"
    assert result.runpath == "$ORIGIN/../lib"


def test_static_object_has_no_dependencies():
    result = extract_dependencies(needed_elf("libc.so.6", with_dynamic=False))
    assert result.needed == []
    assert not result.has_dynamic


def test_not_elf_raises_before_header_decode():
    with pytest.raises(NotObjectFormatError) as excinfo:
        extract_dependencies(b"\x89PNG\r\n\x1a\n" + b"\x00" * 100)
    assert excinfo.value.kind is FailureKind.NOT_OBJECT_FORMAT


def test_buffer_is_never_read_past_end():
    data = needed_elf("libfoo.so", "libbar.so")
    for cut in range(len(data)):
        try:
            extract_dependencies(data[:cut])
        except (NotObjectFormatError, MalformedHeaderError):
            pass
