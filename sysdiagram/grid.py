"""
Decoder for the ``SchGrid`` table control (``MSDTDDGridCtrl2``, ``mdt2db.dll``).

The control persists three MFC-style records back to back, each opened by a
magic word and a (minor, major) version pair:

    0x12344321 v0.8   OLE control extent      (width, height)
    0x12345678 v0.7   frame window            caption + five layout specs
    0x12345678 v0.4   data source             u32 byte length, then
                                              2 x u32 unknown, selected
                                              columns, schema, table

The magic words are the only self-check the format offers, so any mismatch
stops the decode instead of producing shifted garbage.
"""

from __future__ import annotations

import uuid

from .entities import GRID_LAYOUT_ROLES, GridControl, GridLayoutSpec, read_extent
from .errors import EnumerantError
from .reader import ByteReader

CLSID_SCHGRID = uuid.UUID("e9b0e6d9-811c-11d0-ad51-00a0c90f5739")
TYPELIB_SCHGRID = uuid.UUID("e9b0e6da-811c-11d0-ad51-00a0c90f5739")

OLE_CONTROL_MAGIC = 0x1234_4321
FRAME_MAGIC = 0x1234_5678

CONTROL_EXTENT_VERSION = (8, 0)
FRAME_VERSION = (7, 0)
DATA_SOURCE_VERSION = (4, 0)


def read_grid_layout(reader: ByteReader, role: str = "layout") -> GridLayoutSpec:
    hidden_offset = reader.offset
    hidden = reader.u32(f"{role} hidden flag")
    if hidden not in (0, 1):
        raise EnumerantError(f"{role} hidden flag", hidden, hidden_offset)
    unknown_flag = reader.u32(f"{role} flag")
    position_size = read_extent(reader, role)
    unknown = reader.u32(f"{role} unknown")
    row_count = reader.u32(f"{role} row count")
    row_min = reader.u32(f"{role} row minimum")
    col_count = reader.u32(f"{role} column count")
    col_min = reader.u32(f"{role} column minimum")
    column_widths = reader.u32_array(col_count, f"{role} column widths")
    return GridLayoutSpec(
        hidden=bool(hidden),
        unknown_flag=unknown_flag,
        position_size=position_size,
        unknown=unknown,
        row_count=row_count,
        row_min=row_min,
        col_count=col_count,
        col_min=col_min,
        column_widths=column_widths,
    )


def decode_grid(data: bytes, *, base: int = 0) -> GridControl:
    reader = ByteReader(data, base=base)

    reader.expect_magic(OLE_CONTROL_MAGIC, "control extent")
    reader.expect_version(*CONTROL_EXTENT_VERSION, "control extent")
    extent = read_extent(reader, "control extent")

    reader.expect_magic(FRAME_MAGIC, "grid frame")
    reader.expect_version(*FRAME_VERSION, "grid frame")
    caption = reader.sized_wstring_nt("grid caption")
    layouts = tuple(read_grid_layout(reader, role) for role in GRID_LAYOUT_ROLES)

    reader.expect_magic(FRAME_MAGIC, "data source")
    reader.expect_version(*DATA_SOURCE_VERSION, "data source")
    length = reader.u32("data source length")
    record = reader.window(length, "data source")
    data_source_unknown = (record.u32("data source unknown"), record.u32("data source unknown"))
    selected_columns = record.counted_u32_array("selected columns")
    schema = record.wstring_u32_chars("schema name")
    table = record.wstring_u32_chars("table name")

    return GridControl(
        extent=extent,
        caption=caption,
        layouts=layouts,
        data_source_unknown=data_source_unknown,
        selected_columns=selected_columns,
        schema=schema,
        table=table,
    )
