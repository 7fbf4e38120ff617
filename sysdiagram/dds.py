"""
Decoders for the DaVinci Design Surface (DDS) controls placed on a diagram:
the relationship polyline (``MSDTPolylineControl.2``) and the free-text label
(``MSDTDDSLabel.1``).

Polyline layout:

    u16   point count
    u16   unknown flags
    N x   point (i32 x, i32 y)
    u32   source end cap
    u32   destination end cap
    u32   OLE_COLOR
    16    opaque bytes
    u32   label reference count + (i32 id, u32 reserved, point, extent) each
    u8    unknown
    ...   trailing bytes, kept verbatim

Label layout:

    u32   unknown
    8     extent
    6     opaque bytes
    u32   back color, u32 fore color
    u16   justification
    u16   unknown
    u16   LabelFlags
    ...   StdFont
    u16   text length (chars) + UTF-16LE text
"""

from __future__ import annotations

import uuid

from .entities import (
    EndCapKind,
    Justification,
    LabelControl,
    LabelFlags,
    LabelRef,
    PolylineControl,
    read_extent,
    read_point,
)
from .errors import StructuralError
from .properties import read_ole_color, read_std_font
from .reader import ByteReader

CLSID_POLYLINE = uuid.UUID("d24d4453-1f01-11d1-8e63-006097d2df48")
CLSID_DDSLABEL = uuid.UUID("d24d4451-1f01-11d1-8e63-006097d2df48")
CLSID_MSDTDDS = uuid.UUID("b0406340-b0c5-11d0-89a9-00a0c9054129")
CLSID_MSDT_DDS_FORM_2 = uuid.UUID("105b80d2-95f1-11d0-b0a0-00aa00bdcb5c")

POLYLINE_RESERVED_LEN = 16
LABEL_RESERVED_LEN = 6


def read_label_ref(reader: ByteReader) -> LabelRef:
    label_id = reader.i32("label ref id")
    reserved = reader.u32("label ref reserved")
    position = read_point(reader, "label ref position")
    size = read_extent(reader, "label ref size")
    return LabelRef(id=label_id, reserved=reserved, position=position, size=size)


def decode_polyline(data: bytes, *, base: int = 0) -> PolylineControl:
    reader = ByteReader(data, base=base)
    count_offset = reader.offset
    point_count = reader.u16("point count")
    if point_count == 0:
        raise StructuralError("polyline has no points", offset=count_offset)
    flags = reader.u16("polyline flags")
    points = tuple(read_point(reader, f"point {idx}") for idx in range(point_count))

    cap_offset = reader.offset
    end_cap_source = EndCapKind.checked(reader.u32("source end cap"), cap_offset)
    cap_offset = reader.offset
    end_cap_dest = EndCapKind.checked(reader.u32("destination end cap"), cap_offset)

    color = read_ole_color(reader, "line color")
    reserved = reader.take(POLYLINE_RESERVED_LEN, "polyline reserved block")
    label_count = reader.u32("label ref count")
    label_refs = tuple(read_label_ref(reader) for _ in range(label_count))
    unknown_byte = reader.u8("polyline trailer byte")
    trailing_opaque = reader.rest()

    return PolylineControl(
        flags=flags,
        points=points,
        end_cap_source=end_cap_source,
        end_cap_dest=end_cap_dest,
        color=color,
        reserved=reserved,
        label_refs=label_refs,
        unknown_byte=unknown_byte,
        trailing_opaque=trailing_opaque,
    )


def decode_label(data: bytes, *, base: int = 0) -> LabelControl:
    reader = ByteReader(data, base=base)
    unknown = reader.u32("label unknown")
    size = read_extent(reader, "label size")
    reserved = reader.take(LABEL_RESERVED_LEN, "label reserved block")
    back_color = read_ole_color(reader, "back color")
    fore_color = read_ole_color(reader, "fore color")

    just_offset = reader.offset
    justification = Justification.checked(reader.u16("justification"), just_offset)
    unknown_word = reader.u16("label unknown word")
    flags_offset = reader.offset
    flags = LabelFlags.checked(reader.u16("label flags"), flags_offset)

    font = read_std_font(reader)
    text = reader.wstring_u16("label text")
    return LabelControl(
        unknown=unknown,
        size=size,
        reserved=reserved,
        back_color=back_color,
        fore_color=fore_color,
        justification=justification,
        unknown_word=unknown_word,
        flags=flags,
        font=font,
        text=text,
    )
