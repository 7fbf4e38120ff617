"""
Decoders for SQL Server "Database Diagram" (sysdiagrams.definition) blobs.
"""

from .container import DiagramStreams, FormInfo, ManifestError, load_blob, load_diagram, load_manifest, read_streams
from .dds import CLSID_DDSLABEL, CLSID_POLYLINE, decode_label, decode_polyline
from .dsref import DsRefNode, DsRefSchemaContents, DsRefType, decode_dsref, windows_ticks_to_unix_seconds
from .entities import (
    ControlSite,
    EndCapKind,
    Extent,
    GridControl,
    GridLayoutSpec,
    Justification,
    LabelControl,
    LabelFlags,
    LabelRef,
    Point,
    PolylineControl,
    RelationshipCaption,
    UnknownControl,
)
from .errors import (
    CaptionParseError,
    DecodeError,
    EnumerantError,
    FlagError,
    IncompleteError,
    MagicMismatchError,
    MissingStreamError,
    StringEncodingError,
    StructuralError,
    UnsupportedVariantError,
    VersionMismatchError,
)
from .grid import CLSID_SCHGRID, decode_grid
from .logging import OpaqueFieldLogger, log_site_failures
from .properties import FontFlags, OleColor, OleColorKind, StdFont
from .reader import ByteReader
from .settings import ConnectionStringError, get_settings, parse_connection_string
from .sites import (
    SiteRecord,
    SiteResult,
    SysDiagram,
    decode_diagram,
    decode_site,
    decode_sites,
    iter_site_windows,
    parse_relationship_caption,
)
from .svg import render_svg, write_svg
from .variant import Bool, BStr, read_variant

__all__ = [
    "DiagramStreams",
    "FormInfo",
    "ManifestError",
    "load_blob",
    "load_diagram",
    "load_manifest",
    "read_streams",
    "CLSID_DDSLABEL",
    "CLSID_POLYLINE",
    "CLSID_SCHGRID",
    "decode_label",
    "decode_polyline",
    "decode_grid",
    "DsRefNode",
    "DsRefSchemaContents",
    "DsRefType",
    "decode_dsref",
    "windows_ticks_to_unix_seconds",
    "ControlSite",
    "EndCapKind",
    "Extent",
    "GridControl",
    "GridLayoutSpec",
    "Justification",
    "LabelControl",
    "LabelFlags",
    "LabelRef",
    "Point",
    "PolylineControl",
    "RelationshipCaption",
    "UnknownControl",
    "CaptionParseError",
    "DecodeError",
    "EnumerantError",
    "FlagError",
    "IncompleteError",
    "MagicMismatchError",
    "MissingStreamError",
    "StringEncodingError",
    "StructuralError",
    "UnsupportedVariantError",
    "VersionMismatchError",
    "OpaqueFieldLogger",
    "log_site_failures",
    "FontFlags",
    "OleColor",
    "OleColorKind",
    "StdFont",
    "ByteReader",
    "ConnectionStringError",
    "get_settings",
    "parse_connection_string",
    "SiteRecord",
    "SiteResult",
    "SysDiagram",
    "decode_diagram",
    "decode_site",
    "decode_sites",
    "iter_site_windows",
    "parse_relationship_caption",
    "render_svg",
    "write_svg",
    "Bool",
    "BStr",
    "read_variant",
]
