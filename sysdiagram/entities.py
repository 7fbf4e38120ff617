from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Tuple, Union

from .errors import EnumerantError, FlagError
from .properties import OleColor, StdFont
from .reader import ByteReader


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Extent:
    width: int
    height: int


def read_point(reader: ByteReader, what: str = "point") -> Point:
    x = reader.i32(f"{what} x")
    y = reader.i32(f"{what} y")
    return Point(x=x, y=y)


def read_extent(reader: ByteReader, what: str = "extent") -> Extent:
    width = reader.u32(f"{what} width")
    height = reader.u32(f"{what} height")
    return Extent(width=width, height=height)


@dataclass(frozen=True)
class ControlSite:
    id: int
    depth: int
    position: Point
    tooltip: str


# -- grid (table) -----------------------------------------------------------


@dataclass(frozen=True)
class GridLayoutSpec:
    hidden: bool
    unknown_flag: int
    position_size: Extent
    unknown: int
    row_count: int
    row_min: int
    col_count: int
    col_min: int
    column_widths: Tuple[int, ...]


GRID_LAYOUT_ROLES = ("primary", "columns", "keys", "x2", "x3")


@dataclass(frozen=True)
class GridControl:
    extent: Extent
    caption: str
    layouts: Tuple[GridLayoutSpec, ...]
    data_source_unknown: Tuple[int, int]
    selected_columns: Tuple[int, ...]
    schema: str
    table: str

    @property
    def primary_layout(self) -> GridLayoutSpec:
        return self.layouts[0]

    @property
    def columns_layout(self) -> GridLayoutSpec:
        return self.layouts[1]

    @property
    def keys_layout(self) -> GridLayoutSpec:
        return self.layouts[2]

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.table}" if self.schema else self.table


# -- polyline (relationship) --------------------------------------------------


class EndCapKind(enum.IntEnum):
    MANY = 0
    LITTLE_NUB = 1
    KEY = 2
    SINGLE_ARROW_FILL = 3
    DOUBLE_ARROW = 4
    ROUND_NUB = 5
    NONE = 6
    OPEN_ARROW = 7
    SINGLE_ARROW = 8
    DIAMOND = 9
    DIAMOND_FILL = 10
    DIAMOND_ARROW = 11
    DIAMOND_FILL_ARROW = 12
    MANY_DELETE = 13
    MANY_UPDATE = 14
    MANY_UPDATE_DELETE = 15
    KEY_DELETE = 16
    KEY_UPDATE = 17
    KEY_UPDATE_DELETE = 18
    CUSTOM = 99

    @classmethod
    def checked(cls, value: int, offset: int) -> EndCapKind:
        try:
            return cls(value)
        except ValueError:
            raise EnumerantError("polyline end cap", value, offset) from None


@dataclass(frozen=True)
class LabelRef:
    id: int
    reserved: int
    position: Point
    size: Extent


@dataclass(frozen=True)
class PolylineControl:
    flags: int
    points: Tuple[Point, ...]
    end_cap_source: EndCapKind
    end_cap_dest: EndCapKind
    color: OleColor
    reserved: bytes
    label_refs: Tuple[LabelRef, ...]
    unknown_byte: int
    trailing_opaque: bytes

    @property
    def first_point(self) -> Point:
        return self.points[0]

    @property
    def last_point(self) -> Point:
        return self.points[-1]


# -- label (annotation) -------------------------------------------------------


class Justification(enum.IntEnum):
    LEFT = 0
    CENTER = 1
    RIGHT = 2

    @classmethod
    def checked(cls, value: int, offset: int) -> Justification:
        try:
            return cls(value)
        except ValueError:
            raise EnumerantError("label justification", value, offset) from None


class LabelFlags(enum.IntFlag):
    READ_ONLY = 0x01
    ALIGN_TOP = 0x02
    AUTO_SIZE = 0x04
    DELETE_EMPTY = 0x08
    WORD_WRAP = 0x10
    TRANSPARENT = 0x20

    @classmethod
    def checked(cls, value: int, offset: int) -> LabelFlags:
        known = 0
        for member in cls:
            known |= member.value
        if value & ~known:
            raise FlagError("label flags", value, value & ~known, offset)
        return cls(value)


@dataclass(frozen=True)
class LabelControl:
    unknown: int
    size: Extent
    reserved: bytes
    back_color: OleColor
    fore_color: OleColor
    justification: Justification
    unknown_word: int
    flags: LabelFlags
    font: StdFont
    text: str


@dataclass(frozen=True)
class UnknownControl:
    type_id: uuid.UUID


Control = Union[GridControl, PolylineControl, LabelControl, UnknownControl]


@dataclass(frozen=True)
class RelationshipCaption:
    name: str
    source: str
    target: str
