import pytest

from payloads import std_font, u32
from sysdiagram.errors import EnumerantError
from sysdiagram.properties import OleColor, OleColorKind, read_ole_color, read_std_font
from sysdiagram.reader import ByteReader


def test_rgb_color_is_bgr_in_the_low_bytes() -> None:
    color = read_ole_color(ByteReader(u32(0x020000FF)))
    assert color.kind is OleColorKind.RGB
    assert color.rgb() == (0xFF, 0x00, 0x00)
    assert color.hex() == "#ff0000"
    assert color.raw == 0x020000FF


def test_system_color_uses_default_palette() -> None:
    window = OleColor(OleColorKind.SYSTEM, 5)
    assert window.rgb() == (0xFF, 0xFF, 0xFF)
    assert OleColor(OleColorKind.SYSTEM, 0x99).rgb() is None
    assert OleColor(OleColorKind.SYSTEM, 0x99).hex("#123456") == "#123456"


def test_palette_entries_have_no_rgb() -> None:
    color = read_ole_color(ByteReader(u32(0x01000003)))
    assert color.kind is OleColorKind.PALETTE_ENTRY
    assert color.value == 3
    assert color.rgb() is None


@pytest.mark.parametrize("high", [0x03, 0x40, 0x81, 0xFF])
def test_unknown_color_types(high: int) -> None:
    with pytest.raises(EnumerantError):
        read_ole_color(ByteReader(u32(high << 24)))


def test_std_font() -> None:
    font = read_std_font(ByteReader(std_font("Arial", charset=1, weight=400, height=82500)))
    assert font.face == "Arial"
    assert font.charset == 1
    assert font.size_pt == 8.25
