"""
Minimal decoders for the two OLE property values embedded in control payloads.

OLE_COLOR (4 bytes)
    The high byte selects the interpretation, the low three bytes carry
    either 0x00BBGGRR or a 16-bit palette/system index.

StdFont (persisted IFont)
    u8 version (always 1), u16 charset, u8 style flags, u16 weight,
    u32 height in 1/10000 pt, u8 face length, face bytes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Tuple

from .errors import EnumerantError, FlagError, StructuralError
from .reader import ByteReader

# Windows defaults for GetSysColor(index); enough to render diagrams offline.
SYSTEM_COLORS: dict[int, Tuple[int, int, int]] = {
    0: (0xC8, 0xC8, 0xC8),   # COLOR_SCROLLBAR
    1: (0x00, 0x00, 0x00),   # COLOR_BACKGROUND
    2: (0x99, 0xB4, 0xD1),   # COLOR_ACTIVECAPTION
    3: (0xBF, 0xCD, 0xDB),   # COLOR_INACTIVECAPTION
    4: (0xF0, 0xF0, 0xF0),   # COLOR_MENU
    5: (0xFF, 0xFF, 0xFF),   # COLOR_WINDOW
    6: (0x64, 0x64, 0x64),   # COLOR_WINDOWFRAME
    7: (0x00, 0x00, 0x00),   # COLOR_MENUTEXT
    8: (0x00, 0x00, 0x00),   # COLOR_WINDOWTEXT
    9: (0x00, 0x00, 0x00),   # COLOR_CAPTIONTEXT
    10: (0xB4, 0xB4, 0xB4),  # COLOR_ACTIVEBORDER
    11: (0xF4, 0xF7, 0xFC),  # COLOR_INACTIVEBORDER
    12: (0xAB, 0xAB, 0xAB),  # COLOR_APPWORKSPACE
    13: (0x33, 0x99, 0xFF),  # COLOR_HIGHLIGHT
    14: (0xFF, 0xFF, 0xFF),  # COLOR_HIGHLIGHTTEXT
    15: (0xF0, 0xF0, 0xF0),  # COLOR_BTNFACE
    16: (0xA0, 0xA0, 0xA0),  # COLOR_BTNSHADOW
    17: (0x6D, 0x6D, 0x6D),  # COLOR_GRAYTEXT
    18: (0x00, 0x00, 0x00),  # COLOR_BTNTEXT
    19: (0x43, 0x4E, 0x54),  # COLOR_INACTIVECAPTIONTEXT
    20: (0xFF, 0xFF, 0xFF),  # COLOR_BTNHIGHLIGHT
    21: (0x69, 0x69, 0x69),  # COLOR_3DDKSHADOW
    22: (0xE3, 0xE3, 0xE3),  # COLOR_3DLIGHT
    23: (0x00, 0x00, 0x00),  # COLOR_INFOTEXT
    24: (0xFF, 0xFF, 0xE1),  # COLOR_INFOBK
    26: (0x00, 0x66, 0xCC),  # COLOR_HOTLIGHT
    27: (0xB9, 0xD1, 0xEA),  # COLOR_GRADIENTACTIVECAPTION
    28: (0xD7, 0xE4, 0xF2),  # COLOR_GRADIENTINACTIVECAPTION
    29: (0x33, 0x99, 0xFF),  # COLOR_MENUHILIGHT
    30: (0xF0, 0xF0, 0xF0),  # COLOR_MENUBAR
}


class OleColorKind(enum.IntEnum):
    DEFAULT = 0x00
    PALETTE_ENTRY = 0x01
    RGB = 0x02
    SYSTEM = 0x80


@dataclass(frozen=True)
class OleColor:
    kind: OleColorKind
    value: int

    @property
    def raw(self) -> int:
        return (int(self.kind) << 24) | self.value

    def rgb(self) -> Tuple[int, int, int] | None:
        if self.kind in (OleColorKind.DEFAULT, OleColorKind.RGB):
            return (self.value & 0xFF, (self.value >> 8) & 0xFF, (self.value >> 16) & 0xFF)
        if self.kind == OleColorKind.SYSTEM:
            return SYSTEM_COLORS.get(self.value & 0xFFFF)
        return None

    def hex(self, fallback: str = "#000000") -> str:
        rgb = self.rgb()
        if rgb is None:
            return fallback
        return "#{:02x}{:02x}{:02x}".format(*rgb)


def read_ole_color(reader: ByteReader, what: str = "color") -> OleColor:
    start = reader.offset
    raw = reader.u32(what)
    high = raw >> 24
    try:
        kind = OleColorKind(high)
    except ValueError:
        raise EnumerantError(f"{what} type", high, start) from None
    return OleColor(kind=kind, value=raw & 0x00FFFFFF)


class FontFlags(enum.IntFlag):
    BOLD = 0x01
    ITALIC = 0x02
    UNDERLINE = 0x04
    STRIKETHROUGH = 0x08


FONT_FLAG_MASK = 0x0F
STD_FONT_VERSION = 1


@dataclass(frozen=True)
class StdFont:
    charset: int
    flags: FontFlags
    weight: int
    height: int
    face: str

    @property
    def size_pt(self) -> float:
        return self.height / 10000.0


def read_std_font(reader: ByteReader) -> StdFont:
    start = reader.offset
    version = reader.u8("font version")
    if version != STD_FONT_VERSION:
        raise StructuralError(f"unsupported StdFont version {version}", offset=start)
    charset = reader.u16("font charset")
    flags_offset = reader.offset
    raw_flags = reader.u8("font flags")
    if raw_flags & ~FONT_FLAG_MASK:
        raise FlagError("font flags", raw_flags, raw_flags & ~FONT_FLAG_MASK, flags_offset)
    weight = reader.u16("font weight")
    height = reader.u32("font height")
    face_len = reader.u8("font face length")
    face = reader.take(face_len, "font face").decode("latin-1")
    return StdFont(
        charset=charset,
        flags=FontFlags(raw_flags),
        weight=weight,
        height=height,
        face=face,
    )
