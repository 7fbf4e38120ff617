"""Byte builders for synthetic diagram streams and control payloads."""

from __future__ import annotations

import struct
import uuid
from typing import Dict, Iterable, Sequence, Tuple

from sysdiagram.dsref import CLSID_DSREF, DsRefType

TERMINATOR = b"\x00\x00"


def u8(value: int) -> bytes:
    return struct.pack("<B", value)


def u16(value: int) -> bytes:
    return struct.pack("<H", value)


def u32(value: int) -> bytes:
    return struct.pack("<I", value)


def i32(value: int) -> bytes:
    return struct.pack("<i", value)


def u64(value: int) -> bytes:
    return struct.pack("<Q", value)


def utf16(text: str) -> bytes:
    return text.encode("utf-16-le")


# -- strings ------------------------------------------------------------------


def wstring_nt(text: str) -> bytes:
    return utf16(text) + TERMINATOR


def sized_wstring_nt(text: str) -> bytes:
    body = wstring_nt(text)
    return u32(len(body)) + body


def wstring_u32_bytes(text: str) -> bytes:
    body = wstring_nt(text)
    return u32(len(body)) + body


def wstring_u32_chars(text: str) -> bytes:
    return u32(len(text) + 1) + wstring_nt(text)


def wstring_u16(text: str) -> bytes:
    return u16(len(text)) + utf16(text)


# -- variants / DsRef -----------------------------------------------------------


def variant_bstr(text: str) -> bytes:
    return u16(0x0008) + wstring_u32_bytes(text)


def variant_bool(value: bool) -> bytes:
    return u16(0x000B) + u16(0xFFFF if value else 0x0000)


def dsref_node(
    kind: int,
    *,
    name: str | None = None,
    owner: str | None = None,
    children: Sequence[dict] = (),
    properties: Sequence[Tuple[uuid.UUID, bytes]] | None = None,
    extended: uuid.UUID | None = None,
) -> dict:
    return {
        "kind": kind,
        "name": name,
        "owner": owner,
        "children": list(children),
        "properties": properties,
        "extended": extended,
    }


def encode_node(node: dict, *, has_next: bool = False) -> bytes:
    flags = node["kind"]
    if node["extended"] is not None:
        flags |= DsRefType.EXTENDED
    if node["name"] is not None:
        flags |= DsRefType.HASNAME
    if node["owner"] is not None:
        flags |= DsRefType.HASOWNER
    if node["children"]:
        flags |= DsRefType.HASFIRSTCHILD
    if node["properties"] is not None:
        flags |= DsRefType.HASPROP
    if has_next:
        flags |= DsRefType.HASNEXTSIBLING

    out = bytearray(u32(int(flags)))
    if node["extended"] is not None:
        out += node["extended"].bytes_le
    if node["name"] is not None:
        out += wstring_u32_bytes(node["name"])
    if node["owner"] is not None:
        out += wstring_u32_bytes(node["owner"])
    children = node["children"]
    for idx, child in enumerate(children):
        out += encode_node(child, has_next=idx < len(children) - 1)
    if node["properties"] is not None:
        out += u32(len(node["properties"]))
        for key, value in node["properties"]:
            out += key.bytes_le + value
    return bytes(out)


def dsref_stream(
    root: dict,
    *,
    clsid: uuid.UUID = CLSID_DSREF,
    version: int = 0,
    marker: int = 0,
    timestamp: int = 133_000_000_000_000_000,
    reserved: int = 0,
) -> bytes:
    return clsid.bytes_le + u16(version) + u16(marker) + u64(timestamp) + u32(reserved) + encode_node(root)


def sample_dsref(
    connection: str = "Provider=SQLOLEDB;Data Source=.;Initial Catalog=Sales",
    diagram: str = "Sales overview",
    tables: Sequence[Tuple[str, str]] = (("dbo", "Customers"), ("dbo", "Orders")),
) -> bytes:
    table_nodes = [dsref_node(DsRefType.TABLE, name=name, owner=owner) for owner, name in tables]
    root = dsref_node(
        DsRefType.DATABASE | DsRefType.DATASOURCEROOT,
        name=connection,
        children=[dsref_node(DsRefType.SCHEMADIAGRAM, name=diagram, children=table_nodes)],
    )
    return dsref_stream(root)


# -- grid ---------------------------------------------------------------------


def grid_layout(
    widths: Sequence[int] = (1500, 2500),
    *,
    hidden: int = 0,
    flag: int = 1,
    size: Tuple[int, int] = (4000, 3000),
    unknown: int = 0,
    rows: Tuple[int, int] = (5, 3),
    col_min: int = 1,
    col_count: int | None = None,
) -> bytes:
    count = len(widths) if col_count is None else col_count
    return (
        u32(hidden)
        + u32(flag)
        + u32(size[0])
        + u32(size[1])
        + u32(unknown)
        + u32(rows[0])
        + u32(rows[1])
        + u32(count)
        + u32(col_min)
        + b"".join(u32(w) for w in widths)
    )


def grid_payload(
    *,
    caption: str = "Customers (dbo)",
    schema: str = "dbo",
    table: str = "Customers",
    extent: Tuple[int, int] = (5000, 4000),
    layouts: Sequence[bytes] | None = None,
    selected: Sequence[int] = (1, 2, 3),
    data_source_unknown: Tuple[int, int] = (0, 1),
    extent_magic: int = 0x12344321,
    frame_magic: int = 0x12345678,
    source_magic: int = 0x12345678,
    extent_version: Tuple[int, int] = (8, 0),
    frame_version: Tuple[int, int] = (7, 0),
    source_version: Tuple[int, int] = (4, 0),
) -> bytes:
    if layouts is None:
        layouts = [grid_layout() for _ in range(5)]
    source = (
        u32(data_source_unknown[0])
        + u32(data_source_unknown[1])
        + u32(len(selected))
        + b"".join(u32(c) for c in selected)
        + wstring_u32_chars(schema)
        + wstring_u32_chars(table)
    )
    return (
        u32(extent_magic)
        + u16(extent_version[0])
        + u16(extent_version[1])
        + u32(extent[0])
        + u32(extent[1])
        + u32(frame_magic)
        + u16(frame_version[0])
        + u16(frame_version[1])
        + sized_wstring_nt(caption)
        + b"".join(layouts)
        + u32(source_magic)
        + u16(source_version[0])
        + u16(source_version[1])
        + u32(len(source))
        + source
    )


# -- DDS controls -------------------------------------------------------------


def label_ref(
    ref_id: int = 7,
    position: Tuple[int, int] = (1200, 800),
    size: Tuple[int, int] = (900, 300),
    reserved: int = 0,
) -> bytes:
    return i32(ref_id) + u32(reserved) + i32(position[0]) + i32(position[1]) + u32(size[0]) + u32(size[1])


def polyline_payload(
    points: Sequence[Tuple[int, int]] = ((1000, 1000), (1000, 2500), (4000, 2500)),
    *,
    flags: int = 0,
    caps: Tuple[int, int] = (2, 0),
    color: int = 0x80000008,
    reserved: bytes = bytes(range(16)),
    labels: Iterable[bytes] = (),
    unknown_byte: int = 1,
    trailing: bytes = b"",
    point_count: int | None = None,
) -> bytes:
    labels = list(labels)
    count = len(points) if point_count is None else point_count
    return (
        u16(count)
        + u16(flags)
        + b"".join(i32(x) + i32(y) for x, y in points)
        + u32(caps[0])
        + u32(caps[1])
        + u32(color)
        + reserved
        + u32(len(labels))
        + b"".join(labels)
        + u8(unknown_byte)
        + trailing
    )


def std_font(
    face: str = "Tahoma",
    *,
    version: int = 1,
    charset: int = 0,
    flags: int = 0,
    weight: int = 400,
    height: int = 82500,
) -> bytes:
    raw = face.encode("latin-1")
    return u8(version) + u16(charset) + u8(flags) + u16(weight) + u32(height) + u8(len(raw)) + raw


def label_payload(
    text: str = "Order pipeline",
    *,
    unknown: int = 0,
    size: Tuple[int, int] = (3000, 600),
    reserved: bytes = b"\x00" * 6,
    back_color: int = 0x80000018,
    fore_color: int = 0x80000017,
    justification: int = 0,
    unknown_word: int = 0,
    flags: int = 0x04,
    font: bytes | None = None,
) -> bytes:
    return (
        u32(unknown)
        + u32(size[0])
        + u32(size[1])
        + reserved
        + u32(back_color)
        + u32(fore_color)
        + u16(justification)
        + u16(unknown_word)
        + u16(flags)
        + (std_font() if font is None else font)
        + wstring_u16(text)
    )


# -- OLE compound file ----------------------------------------------------------

SECTOR = 512
MINI_SECTOR = 64
FREESECT = 0xFFFFFFFF
ENDOFCHAIN = 0xFFFFFFFE
FATSECT = 0xFFFFFFFD
NOSTREAM = 0xFFFFFFFF
CFB_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def _dir_entry(
    name: str,
    entry_type: int,
    *,
    right: int = NOSTREAM,
    child: int = NOSTREAM,
    start: int = ENDOFCHAIN,
    size: int = 0,
) -> bytes:
    raw_name = utf16(name) + TERMINATOR if name else b""
    return (
        raw_name.ljust(64, b"\x00")
        + u16(len(raw_name))
        + u8(entry_type)
        + u8(1)
        + u32(NOSTREAM)
        + u32(right)
        + u32(child)
        + b"\x00" * 16
        + u32(0)
        + u64(0)
        + u64(0)
        + u32(start)
        + u64(size)
    )


def compound_file(streams: Dict[str, bytes]) -> bytes:
    """
    Minimal version 3 compound file holding up to three small streams in the
    mini stream.  Layout: FAT, directory, mini FAT, then the mini stream.
    """

    names = sorted(streams, key=lambda n: (len(n), n.upper()))
    assert len(names) <= 3, "one directory sector holds the root and three streams"

    mini_fat: list[int] = []
    ministream = bytearray()
    starts: list[int] = []
    for name in names:
        data = streams[name]
        count = (len(data) + MINI_SECTOR - 1) // MINI_SECTOR
        if count == 0:
            starts.append(ENDOFCHAIN)
            continue
        first = len(mini_fat)
        starts.append(first)
        mini_fat.extend(first + idx + 1 for idx in range(count - 1))
        mini_fat.append(ENDOFCHAIN)
        ministream += data.ljust(count * MINI_SECTOR, b"\x00")
    assert len(mini_fat) <= SECTOR // 4, "mini FAT limited to one sector"

    container_sectors = max(1, (len(ministream) + SECTOR - 1) // SECTOR)
    fat = [FATSECT, ENDOFCHAIN, ENDOFCHAIN]
    fat.extend(3 + idx + 1 for idx in range(container_sectors - 1))
    fat.append(ENDOFCHAIN)
    fat_sector = b"".join(u32(v) for v in fat).ljust(SECTOR, b"\xff")

    entries = [
        _dir_entry(
            "Root Entry",
            5,
            child=1 if names else NOSTREAM,
            start=3,
            size=len(ministream),
        )
    ]
    for idx, name in enumerate(names):
        entries.append(
            _dir_entry(
                name,
                2,
                right=idx + 2 if idx + 1 < len(names) else NOSTREAM,
                start=starts[idx],
                size=len(streams[name]),
            )
        )
    while len(entries) < 4:
        entries.append(_dir_entry("", 0))
    dir_sector = b"".join(entries)
    mini_fat_sector = b"".join(u32(v) for v in mini_fat).ljust(SECTOR, b"\xff")
    container = bytes(ministream).ljust(container_sectors * SECTOR, b"\x00")

    header = (
        CFB_MAGIC
        + b"\x00" * 16
        + u16(0x003E)
        + u16(0x0003)
        + u16(0xFFFE)
        + u16(9)
        + u16(6)
        + b"\x00" * 6
        + u32(0)
        + u32(1)
        + u32(1)
        + u32(0)
        + u32(0x1000)
        + u32(2)
        + u32(1)
        + u32(ENDOFCHAIN)
        + u32(0)
        + u32(0)
        + b"\xff" * (109 * 4 - 4)
    )
    return header + fat_sector + dir_sector + mini_fat_sector + container


# -- whole diagrams -------------------------------------------------------------

CLSID_SCHGRID = "e9b0e6d9-811c-11d0-ad51-00a0c90f5739"
CLSID_POLYLINE = "d24d4453-1f01-11d1-8e63-006097d2df48"
CLSID_DDSLABEL = "d24d4451-1f01-11d1-8e63-006097d2df48"
CLSID_UNKNOWN = "0002e510-0000-0000-c000-000000000046"


def sample_sites() -> list[Tuple[str, bytes, dict]]:
    """Two tables joined by a relationship, an unknown control and a label."""

    return [
        (
            CLSID_SCHGRID,
            grid_payload(caption="Customers (dbo)", table="Customers"),
            {"id": 1, "left": 1000, "top": 1000, "tooltip": "Customers"},
        ),
        (
            CLSID_SCHGRID,
            grid_payload(caption="Orders (dbo)", table="Orders"),
            {"id": 2, "left": 1000, "top": 8000, "tooltip": "Orders"},
        ),
        (
            CLSID_POLYLINE,
            polyline_payload(points=((3000, 5000), (3000, 6500), (3000, 8000)), caps=(2, 0)),
            {"id": 3, "left": 3000, "top": 5000, "tooltip": "Relationship 'FK_Orders_Customers' between 'Customers' and 'Orders'"},
        ),
        (CLSID_UNKNOWN, b"\x01\x02\x03\x04", {"id": 4, "left": 0, "top": 0, "tooltip": ""}),
        (
            CLSID_DDSLABEL,
            label_payload("Sales <core> & more"),
            {"id": 5, "left": 8000, "top": 1000, "tooltip": ""},
        ),
    ]


def sample_manifest(sites: Sequence[Tuple[str, bytes, dict]] | None = None, **extra) -> Tuple[bytes, dict]:
    sites = sample_sites() if sites is None else sites
    objects = b"".join(payload for _, payload, _ in sites)
    entries = [{"clsid": clsid, "size": len(payload), "depth": 0, **meta} for clsid, payload, meta in sites]
    manifest = {"logical_size": {"width": 27940, "height": 21590}, "back_color": 0x80000005, "sites": entries}
    manifest.update(extra)
    return objects, manifest


def sample_compound_file(objects: bytes | None = None, *, dsref: bytes | None = None, form: bool = True) -> bytes:
    if objects is None:
        objects, _ = sample_manifest()
    streams = {
        "DSREF-SCHEMA-CONTENTS": sample_dsref() if dsref is None else dsref,
        "o": objects,
    }
    if form:
        streams["f"] = b"\x00\x04\x18\x00" + b"\x00" * 28
    return compound_file(streams)
