from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .errors import EnumerantError, UnsupportedVariantError
from .reader import ByteReader

VT_BSTR = 0x0008
VT_BOOL = 0x000B

VARIANT_TRUE = 0xFFFF
VARIANT_FALSE = 0x0000


@dataclass(frozen=True)
class BStr:
    value: str


@dataclass(frozen=True)
class Bool:
    value: bool


Variant = Union[BStr, Bool]


def read_variant(reader: ByteReader) -> Variant:
    """
    Decode a type-tagged VARIANT.  Only BSTR and BOOL have been observed;
    anything else aborts because skipping an unknown payload would
    desynchronize the rest of the stream.
    """

    tag_offset = reader.offset
    tag = reader.u16("variant type")
    if tag == VT_BSTR:
        return BStr(reader.wstring_u32_bytes("BSTR"))
    if tag == VT_BOOL:
        word_offset = reader.offset
        word = reader.u16("VARIANT_BOOL")
        if word == VARIANT_TRUE:
            return Bool(True)
        if word == VARIANT_FALSE:
            return Bool(False)
        raise EnumerantError("VARIANT_BOOL", word, word_offset)
    raise UnsupportedVariantError(tag, tag_offset)
