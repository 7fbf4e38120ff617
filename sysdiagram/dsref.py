"""
Decoder for the ``/DSREF-SCHEMA-CONTENTS`` stream.

A DSRef ("data source reference") is a tree of typed nodes.  The root is
usually a DATABASE node whose name is the connection string; its children
are SCHEMADIAGRAM / TABLE nodes.  Each node is persisted as:

    u32   DsRefType flags
    GUID  extended type               if EXTENDED
    str   name   (u32 byte length)    if HASNAME
    str   owner  (u32 byte length)    if HASOWNER
    node  first child                 if HASFIRSTCHILD
    node  next sibling ...            while the previous child has HASNEXTSIBLING
    u32   property count + (GUID, VARIANT) pairs   if HASPROP

Children form a linked list embedded in the recursive stream; there is no
child count, so the loop has to follow the HASNEXTSIBLING bit of each child.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Dict, Iterator, Tuple

from .errors import FlagError, StructuralError
from .reader import ByteReader
from .variant import Variant, read_variant

DSREF_SCHEMA_CONTENTS_STREAM = "DSREF-SCHEMA-CONTENTS"

CLSID_DSREF_R1 = uuid.UUID("ab36de40-2bf4-11ce-ab3c-00aa004404fb")
CLSID_DSREF_R2 = uuid.UUID("e9b0e6db-811c-11d0-ad51-00a0c90f5739")
CLSID_DSREF = uuid.UUID("e09ee6ac-fef0-41ae-9f77-3c394da49849")

GUID_DSREF_PROPERTY_PROVIDER = uuid.UUID("b30985d6-6bbb-45f2-9ab8-371664f03270")
GUID_DSREF_PROPERTY_PRECISE_TYPE = uuid.UUID("39a5a7e7-513f-44a4-b79d-7652cd8962d9")
GUID_DSREF_PROPERTY_QUALIFIER = uuid.UUID("4656baea-f397-11ce-bfe1-00aa0057b34e")

DATA_PROVIDER_FOR_SQL_SERVER = uuid.UUID("1634cdd7-0888-42e3-9fa2-b6d32563b91d")

WINDOWS_TICK = 10_000_000
SEC_TO_UNIX_EPOCH = 11_644_473_600
# Observed trees are three levels deep (database, table, column).
MAX_DSREF_DEPTH = 64


class DsRefType(enum.IntFlag):
    NULL = 0
    COLLECTION = 0x1
    MULTIPLE = 0x2
    MIXED = 0x4
    DATASOURCEROOT = 0x10
    FIELD = 0x100
    TABLE = 0x200
    QUERY = 0x400
    DATABASE = 0x800
    TRIGGER = 0x1000
    STOREDPROCEDURE = 0x2000
    EXTENDED = 0x4000
    SCHEMADIAGRAM = 0x8000
    HASFIRSTCHILD = 0x10000
    HASNEXTSIBLING = 0x20000
    HASNAME = 0x40000
    HASMONIKER = 0x80000
    VIEW = 0x100000
    HASOWNER = 0x200000
    HASPROP = 0x400000
    SYNONYM = 0x800000
    FUNCTION = 0x1000000
    PACKAGE = 0x2000000
    PACKAGEBODY = 0x4000000
    RELATIONSHIP = 0x8000000
    INDEX = 0x10000000
    USERDEFINEDTYPE = 0x20000000
    VIEWTRIGGER = 0x40000000
    VIEWINDEX = 0x80000000

    @classmethod
    def checked(cls, value: int, offset: int) -> DsRefType:
        known = 0
        for member in cls:
            known |= member.value
        if value & ~known:
            raise FlagError("DsRef type flags", value, value & ~known, offset)
        return cls(value)


# Bits that describe layout rather than the kind of object.
STRUCTURE_BITS = (
    DsRefType.EXTENDED
    | DsRefType.HASFIRSTCHILD
    | DsRefType.HASNEXTSIBLING
    | DsRefType.HASNAME
    | DsRefType.HASMONIKER
    | DsRefType.HASOWNER
    | DsRefType.HASPROP
)


@dataclass(frozen=True)
class DsRefNode:
    flags: DsRefType
    extended_type: uuid.UUID | None
    name: str | None
    owner: str | None
    children: Tuple[DsRefNode, ...]
    properties: Dict[uuid.UUID, Variant] | None

    @property
    def kind(self) -> DsRefType:
        return self.flags & ~STRUCTURE_BITS

    def walk(self) -> Iterator[Tuple[int, DsRefNode]]:
        """Depth-first (depth, node) pairs, root first."""

        stack: list[Tuple[int, DsRefNode]] = [(0, self)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            for child in reversed(node.children):
                stack.append((depth + 1, child))

    def find(self, kind: DsRefType) -> list[DsRefNode]:
        return [node for _, node in self.walk() if node.flags & kind]


@dataclass(frozen=True)
class DsRefSchemaContents:
    clsid: uuid.UUID
    payload_length: int
    version: int
    marker: int
    timestamp: int
    reserved: int
    root: DsRefNode

    def unix_time(self) -> int:
        return windows_ticks_to_unix_seconds(self.timestamp)


def windows_ticks_to_unix_seconds(ticks: int) -> int:
    return ticks // WINDOWS_TICK - SEC_TO_UNIX_EPOCH


def read_dsref_properties(reader: ByteReader) -> Dict[uuid.UUID, Variant]:
    count = reader.u32("property count")
    properties: Dict[uuid.UUID, Variant] = {}
    for _ in range(count):
        key = reader.guid("property id")
        properties[key] = read_variant(reader)
    return properties


def read_dsref_node(reader: ByteReader, depth: int = 0) -> DsRefNode:
    flags_offset = reader.offset
    if depth > MAX_DSREF_DEPTH:
        raise StructuralError(f"DsRef tree nests deeper than {MAX_DSREF_DEPTH} levels", offset=flags_offset)
    flags = DsRefType.checked(reader.u32("DsRef flags"), flags_offset)
    if flags & DsRefType.HASMONIKER:
        raise StructuralError("DsRef monikers are not supported", offset=flags_offset)

    extended_type = reader.guid("extended type") if flags & DsRefType.EXTENDED else None
    name = reader.wstring_u32_bytes("node name") if flags & DsRefType.HASNAME else None
    owner = reader.wstring_u32_bytes("node owner") if flags & DsRefType.HASOWNER else None

    children: list[DsRefNode] = []
    has_next = bool(flags & DsRefType.HASFIRSTCHILD)
    while has_next:
        child = read_dsref_node(reader, depth + 1)
        children.append(child)
        has_next = bool(child.flags & DsRefType.HASNEXTSIBLING)

    properties = read_dsref_properties(reader) if flags & DsRefType.HASPROP else None
    return DsRefNode(
        flags=flags,
        extended_type=extended_type,
        name=name,
        owner=owner,
        children=tuple(children),
        properties=properties,
    )


def decode_dsref(data: bytes) -> DsRefSchemaContents:
    reader = ByteReader(data)
    clsid = reader.guid("DsRef class id")
    payload_length = reader.remaining
    version_offset = reader.offset
    version = reader.u16("DsRef version")
    if version != 0:
        raise StructuralError(f"unsupported DsRef stream version {version}", offset=version_offset)
    marker = reader.u16("DsRef marker")
    timestamp = reader.u64("DsRef timestamp")
    reserved = reader.u32("DsRef reserved")
    root = read_dsref_node(reader)
    return DsRefSchemaContents(
        clsid=clsid,
        payload_length=payload_length,
        version=version,
        marker=marker,
        timestamp=timestamp,
        reserved=reserved,
        root=root,
    )
