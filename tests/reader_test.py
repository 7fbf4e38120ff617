import uuid

import pytest

from payloads import TERMINATOR, u16, u32, utf16, wstring_u16, wstring_u32_bytes, wstring_u32_chars
from sysdiagram.errors import (
    IncompleteError,
    MagicMismatchError,
    StringEncodingError,
    StructuralError,
    VersionMismatchError,
)
from sysdiagram.reader import ByteReader


def test_integers_are_little_endian() -> None:
    reader = ByteReader(b"\x01\x02\x03\x04\x05\x06\x07\xff\xff\xff\xff")
    assert reader.u8() == 0x01
    assert reader.u16() == 0x0302
    assert reader.u32() == 0x07060504
    assert reader.i32() == -1
    assert reader.at_end()


def test_short_read_raises_incomplete_without_zero_fill() -> None:
    reader = ByteReader(b"\x01\x02\x03")
    with pytest.raises(IncompleteError) as excinfo:
        reader.u32("count")
    assert excinfo.value.needed == 4
    assert excinfo.value.available == 3
    assert excinfo.value.offset == 0
    # A failed read does not move the cursor.
    assert reader.position == 0


def test_offsets_include_window_base() -> None:
    parent = ByteReader(b"\xaa" * 8 + b"\x01\x00", base=0x100)
    parent.take(8)
    child = parent.window(2)
    assert child.offset == 0x108
    assert child.u16() == 1
    with pytest.raises(IncompleteError) as excinfo:
        child.u8()
    assert excinfo.value.offset == 0x10A


def test_guid_uses_mixed_endian_layout() -> None:
    value = uuid.UUID("e9b0e6d9-811c-11d0-ad51-00a0c90f5739")
    assert ByteReader(value.bytes_le).guid() == value


def test_counted_array() -> None:
    reader = ByteReader(u32(3) + u32(10) + u32(20) + u32(30))
    assert reader.counted_u32_array() == (10, 20, 30)


def test_expect_magic_reports_offset() -> None:
    reader = ByteReader(u32(0x12345679), base=0x40)
    with pytest.raises(MagicMismatchError) as excinfo:
        reader.expect_magic(0x12345678, "frame")
    assert excinfo.value.offset == 0x40
    assert excinfo.value.actual == 0x12345679


def test_expect_version_mismatch() -> None:
    reader = ByteReader(u16(7) + u16(1))
    with pytest.raises(VersionMismatchError) as excinfo:
        reader.expect_version(7, 0, "frame")
    assert excinfo.value.actual == (7, 1)


def test_wstring_nt_skips_odd_aligned_zero_pairs() -> None:
    # "ĀA" encodes as 00 01 41 00: the 00 00 at index 3 straddles two units.
    reader = ByteReader(utf16("ĀA") + TERMINATOR + b"\xff")
    assert reader.wstring_nt() == "ĀA"
    assert reader.remaining == 1


def test_wstring_nt_without_terminator_is_incomplete() -> None:
    with pytest.raises(IncompleteError):
        ByteReader(utf16("abc")).wstring_nt()


def test_sized_wstring_nt_consumes_whole_window() -> None:
    body = utf16("Orders") + TERMINATOR + b"\x00\x00\x00\x00"
    reader = ByteReader(u32(len(body)) + body + b"\x2a")
    assert reader.sized_wstring_nt() == "Orders"
    assert reader.u8() == 0x2A


def test_wstring_u32_bytes_counts_terminator() -> None:
    reader = ByteReader(wstring_u32_bytes("dbo"))
    assert reader.wstring_u32_bytes() == "dbo"
    assert reader.at_end()


def test_wstring_u32_bytes_rejects_missing_terminator() -> None:
    data = u32(8) + utf16("dbox")
    with pytest.raises(StructuralError):
        ByteReader(data).wstring_u32_bytes()


def test_wstring_u32_bytes_rejects_length_below_terminator() -> None:
    with pytest.raises(StructuralError):
        ByteReader(u32(1) + b"\x00").wstring_u32_bytes()


def test_wstring_u32_chars() -> None:
    assert ByteReader(wstring_u32_chars("Customers")).wstring_u32_chars() == "Customers"
    assert ByteReader(wstring_u32_chars("")).wstring_u32_chars() == ""
    with pytest.raises(StructuralError):
        ByteReader(u32(0)).wstring_u32_chars()


def test_wstring_u16_has_no_terminator() -> None:
    reader = ByteReader(wstring_u16("Note") + b"\x01")
    assert reader.wstring_u16() == "Note"
    assert reader.u8() == 1


def test_invalid_utf16_keeps_raw_bytes() -> None:
    raw = b"A\x00\x00\xd8"
    with pytest.raises(StringEncodingError) as excinfo:
        ByteReader(u16(2) + raw).wstring_u16()
    assert excinfo.value.raw == raw


@pytest.mark.parametrize("framing", ["wstring_u32_bytes", "wstring_u32_chars", "wstring_u16"])
def test_truncated_strings_are_incomplete(framing: str) -> None:
    encoders = {
        "wstring_u32_bytes": wstring_u32_bytes,
        "wstring_u32_chars": wstring_u32_chars,
        "wstring_u16": wstring_u16,
    }
    data = encoders[framing]("Relationship")
    for cut in range(len(data)):
        with pytest.raises(IncompleteError):
            getattr(ByteReader(data[:cut]), framing)()
