"""
Bounds-checked little-endian cursor shared by every diagram decoder.

All multi-byte values in the diagram streams are little endian.  Strings are
UTF-16LE and show up in four framings:

    wstring_nt          code units up to a 0x0000 terminator
    wstring_u32_bytes   u32 byte count (terminator included), then terminator
    wstring_u32_chars   u32 char count (terminator included), then terminator
    wstring_u16         u16 char count, no terminator

Reads never zero-fill: running off the end raises ``IncompleteError``.
"""

from __future__ import annotations

import struct
import uuid

from .errors import (
    IncompleteError,
    MagicMismatchError,
    StringEncodingError,
    StructuralError,
    VersionMismatchError,
)

TERMINATOR = b"\x00\x00"


def decode_utf16(raw: bytes, offset: int) -> str:
    try:
        return raw.decode("utf-16-le")
    except UnicodeDecodeError as exc:
        raise StringEncodingError(raw, exc.reason, offset + exc.start) from exc


class ByteReader:
    def __init__(self, data: bytes, offset: int = 0, *, base: int = 0) -> None:
        self._data = bytes(data)
        self._pos = offset
        # Absolute offset of data[0] inside the enclosing stream, for diagnostics.
        self._base = base

    def __len__(self) -> int:
        return len(self._data)

    @property
    def position(self) -> int:
        return self._pos

    @property
    def offset(self) -> int:
        return self._base + self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def _require(self, count: int, what: str) -> None:
        if count < 0 or count > self.remaining:
            raise IncompleteError(self.offset, count, self.remaining, what)

    def _unpack(self, fmt: str, size: int, what: str) -> int:
        self._require(size, what)
        (value,) = struct.unpack_from(fmt, self._data, self._pos)
        self._pos += size
        return value

    def u8(self, what: str = "u8") -> int:
        return self._unpack("<B", 1, what)

    def u16(self, what: str = "u16") -> int:
        return self._unpack("<H", 2, what)

    def u32(self, what: str = "u32") -> int:
        return self._unpack("<I", 4, what)

    def i32(self, what: str = "i32") -> int:
        return self._unpack("<i", 4, what)

    def u64(self, what: str = "u64") -> int:
        return self._unpack("<Q", 8, what)

    def take(self, count: int, what: str = "bytes") -> bytes:
        self._require(count, what)
        chunk = self._data[self._pos : self._pos + count]
        self._pos += count
        return chunk

    def rest(self) -> bytes:
        chunk = self._data[self._pos :]
        self._pos = len(self._data)
        return chunk

    def window(self, count: int, what: str = "record") -> ByteReader:
        """Child reader over the next ``count`` bytes; the parent skips past them."""

        start = self.offset
        chunk = self.take(count, what)
        return ByteReader(chunk, base=start)

    def guid(self, what: str = "GUID") -> uuid.UUID:
        return uuid.UUID(bytes_le=self.take(16, what))

    def u32_array(self, count: int, what: str = "u32 array") -> tuple[int, ...]:
        self._require(count * 4, what)
        values = struct.unpack_from(f"<{count}I", self._data, self._pos)
        self._pos += count * 4
        return tuple(values)

    def counted_u32_array(self, what: str = "u32 array") -> tuple[int, ...]:
        count = self.u32(f"{what} count")
        return self.u32_array(count, what)

    def expect_magic(self, magic: int, what: str) -> None:
        start = self.offset
        value = self.u32(f"{what} magic")
        if value != magic:
            raise MagicMismatchError(what, magic, value, start)

    def expect_version(self, minor: int, major: int, what: str) -> tuple[int, int]:
        start = self.offset
        actual = (self.u16(f"{what} minor version"), self.u16(f"{what} major version"))
        if actual != (minor, major):
            raise VersionMismatchError(what, (minor, major), actual, start)
        return actual

    # -- strings -----------------------------------------------------------

    def wstring_nt(self, what: str = "string") -> str:
        start = self._pos
        end = start
        while True:
            end = self._data.find(TERMINATOR, end)
            if end == -1:
                raise IncompleteError(self.offset, self.remaining + 2, self.remaining, f"terminated {what}")
            if (end - start) % 2 == 0:
                break
            end += 1
        raw = self._data[start:end]
        text = decode_utf16(raw, self._base + start)
        self._pos = end + 2
        return text

    def sized_wstring_nt(self, what: str = "string") -> str:
        length = self.u32(f"{what} length")
        return self.window(length, what).wstring_nt(what)

    def _terminated(self, byte_count: int, what: str) -> str:
        start = self.offset
        raw = self.take(byte_count - 2, what)
        text = decode_utf16(raw, start)
        term_offset = self.offset
        if self.take(2, f"{what} terminator") != TERMINATOR:
            raise StructuralError(f"{what} is missing its 0x0000 terminator", offset=term_offset)
        return text

    def wstring_u32_bytes(self, what: str = "string") -> str:
        start = self.offset
        byte_count = self.u32(f"{what} length")
        if byte_count < 2:
            raise StructuralError(f"{what} byte length {byte_count} cannot hold a terminator", offset=start)
        return self._terminated(byte_count, what)

    def wstring_u32_chars(self, what: str = "string") -> str:
        start = self.offset
        char_count = self.u32(f"{what} length")
        if char_count < 1:
            raise StructuralError(f"{what} char length 0 cannot hold a terminator", offset=start)
        return self._terminated(char_count * 2, what)

    def wstring_u16(self, what: str = "string") -> str:
        char_count = self.u16(f"{what} length")
        start = self.offset
        return decode_utf16(self.take(char_count * 2, what), start)
