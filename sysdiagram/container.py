"""
Plumbing between a sysdiagram ``definition`` blob and the decoders.

The blob is an OLE compound file; ``olefile`` does the structured-storage
work and we only pull out the streams the decoders need:

    /DSREF-SCHEMA-CONTENTS   data source reference tree
    /o                       concatenated control payloads, one per site
    /f                       MS-OFORMS form (site list; decoded elsewhere)

The site list itself comes from an external form reader as a JSON manifest::

    {
      "logical_size": {"width": 27940, "height": 21590},
      "back_color": 2147483653,
      "sites": [
        {"clsid": "e9b0e6d9-...", "size": 612, "id": 1, "depth": 0,
         "left": 1000, "top": 2000, "tooltip": "Customers"}
      ]
    }
"""

from __future__ import annotations

import base64
import binascii
import io
import json
import struct
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Sequence, Tuple, Union

import olefile

from .entities import ControlSite, Extent, Point
from .errors import DecodeError, MissingStreamError
from .properties import OleColor, OleColorKind
from .sites import SiteRecord, SysDiagram, decode_diagram, iter_site_windows

DSREF_STREAM = "DSREF-SCHEMA-CONTENTS"
OBJECT_STREAM = "o"
FORM_STREAM = "f"

BLOB_ENCODINGS = ("raw", "base64", "hex")
# olefile surfaces corrupt headers and sector chains as any of these.
OLE_ERRORS = (OSError, ValueError, IndexError, struct.error)


class ManifestError(ValueError):
    pass


@dataclass(frozen=True)
class DiagramStreams:
    dsref: bytes
    objects: bytes
    form: bytes | None
    stream_names: Tuple[str, ...]


@dataclass(frozen=True)
class FormInfo:
    logical_size: Extent | None = None
    back_color: OleColor | None = None


def load_blob(path: Path, encoding: str = "raw") -> bytes:
    """Read a diagram blob, undoing the text encodings SSMS exports use."""

    if encoding not in BLOB_ENCODINGS:
        raise ValueError(f"unsupported blob encoding {encoding!r}")
    data = path.read_bytes()
    if encoding == "raw":
        return data
    try:
        text = data.decode("ascii").strip()
    except UnicodeDecodeError as exc:
        raise DecodeError(f"{encoding} diagram blob is not ASCII text: {exc}") from exc
    if encoding == "base64":
        try:
            return base64.b64decode("".join(text.split()), validate=True)
        except binascii.Error as exc:
            raise DecodeError(f"invalid base64 diagram blob: {exc}") from exc
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        return bytes.fromhex("".join(text.split()))
    except ValueError as exc:
        raise DecodeError(f"invalid hex diagram blob: {exc}") from exc


def read_streams(source: Union[bytes, Path]) -> DiagramStreams:
    blob = source.read_bytes() if isinstance(source, Path) else bytes(source)
    if not olefile.isOleFile(io.BytesIO(blob)):
        raise DecodeError("diagram blob is not an OLE compound file")
    try:
        ole = olefile.OleFileIO(io.BytesIO(blob))
    except OLE_ERRORS as exc:
        raise DecodeError(f"unreadable compound file: {exc}") from exc
    try:
        names = tuple("/".join(entry) for entry in ole.listdir(streams=True, storages=False))
        for required in (DSREF_STREAM, OBJECT_STREAM):
            if not ole.exists(required):
                raise MissingStreamError(required)
        dsref = ole.openstream(DSREF_STREAM).read()
        objects = ole.openstream(OBJECT_STREAM).read()
        form = ole.openstream(FORM_STREAM).read() if ole.exists(FORM_STREAM) else None
    except OLE_ERRORS as exc:
        raise DecodeError(f"unreadable compound file stream: {exc}") from exc
    finally:
        ole.close()
    return DiagramStreams(dsref=dsref, objects=objects, form=form, stream_names=names)


def _int_field(entry: dict[str, Any], key: str, index: int, default: int | None = None) -> int:
    value = entry.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ManifestError(f"site {index}: {key!r} must be an integer")
    return value


def _parse_site(entry: Any, index: int) -> Tuple[uuid.UUID, int, ControlSite]:
    if not isinstance(entry, dict):
        raise ManifestError(f"site {index}: expected an object")
    try:
        type_id = uuid.UUID(str(entry["clsid"]))
    except (KeyError, ValueError) as exc:
        raise ManifestError(f"site {index}: missing or invalid 'clsid'") from exc
    size = _int_field(entry, "size", index)
    depth = _int_field(entry, "depth", index, 0)
    if not 0 <= depth <= 0xFF:
        raise ManifestError(f"site {index}: 'depth' must fit in a byte")
    site = ControlSite(
        id=_int_field(entry, "id", index, index),
        depth=depth,
        position=Point(x=_int_field(entry, "left", index, 0), y=_int_field(entry, "top", index, 0)),
        tooltip=str(entry.get("tooltip", "")),
    )
    return type_id, size, site


def _parse_form_info(manifest: dict[str, Any]) -> FormInfo:
    logical_size = None
    raw_size = manifest.get("logical_size")
    if raw_size is not None:
        try:
            logical_size = Extent(width=int(raw_size["width"]), height=int(raw_size["height"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ManifestError("'logical_size' needs integer width and height") from exc
    back_color = None
    raw_color = manifest.get("back_color")
    if raw_color is not None:
        try:
            back_color = OleColor(kind=OleColorKind(int(raw_color) >> 24), value=int(raw_color) & 0xFFFFFF)
        except (TypeError, ValueError) as exc:
            raise ManifestError(f"invalid 'back_color' {raw_color!r}") from exc
    return FormInfo(logical_size=logical_size, back_color=back_color)


def build_site_records(object_stream: bytes, manifest: dict[str, Any]) -> Tuple[List[SiteRecord], FormInfo]:
    entries = manifest.get("sites")
    if not isinstance(entries, list):
        raise ManifestError("manifest needs a 'sites' list")
    parsed = [_parse_site(entry, index) for index, entry in enumerate(entries)]
    sizes: Sequence[int] = [size for _, size, _ in parsed]
    records = [
        SiteRecord(type_id=type_id, payload=payload, site=site, stream_offset=offset)
        for (type_id, _, site), (offset, payload) in zip(parsed, iter_site_windows(object_stream, sizes))
    ]
    return records, _parse_form_info(manifest)


def load_manifest(path: Path, object_stream: bytes) -> Tuple[List[SiteRecord], FormInfo]:
    try:
        manifest = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ManifestError(f"{path}: {exc}") from exc
    if not isinstance(manifest, dict):
        raise ManifestError(f"{path}: expected a JSON object")
    return build_site_records(object_stream, manifest)


def load_diagram(
    path: Path,
    *,
    manifest: Path | None = None,
    encoding: str = "raw",
) -> Tuple[DiagramStreams, SysDiagram, FormInfo]:
    """Blob on disk -> streams, decoded diagram and form metadata."""

    streams = read_streams(load_blob(path, encoding))
    if manifest is None:
        records: List[SiteRecord] = []
        form_info = FormInfo()
    else:
        records, form_info = load_manifest(manifest, streams.objects)
    return streams, decode_diagram(streams.dsref, records), form_info
