"""
Per-site dispatch for the controls embedded in a diagram form.

The form-layout reader hands us the sites in form order, each with the class
id from the site class table and the byte window it owns inside the ``o``
object stream.  Every window is decoded independently, so one malformed
control never hides the rest of the diagram.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Sequence, Tuple

from .dds import CLSID_DDSLABEL, CLSID_POLYLINE, decode_label, decode_polyline
from .dsref import DsRefSchemaContents, DsRefType, decode_dsref
from .entities import (
    Control,
    ControlSite,
    GridControl,
    LabelControl,
    PolylineControl,
    RelationshipCaption,
    UnknownControl,
)
from .errors import CaptionParseError, DecodeError, IncompleteError
from .grid import CLSID_SCHGRID, decode_grid

DECODERS: Dict[uuid.UUID, Callable[..., Control]] = {
    CLSID_SCHGRID: decode_grid,
    CLSID_POLYLINE: decode_polyline,
    CLSID_DDSLABEL: decode_label,
}

RELATIONSHIP_CAPTION = re.compile(
    r"^Relationship '(?P<name>[^']*)' between '(?P<source>[^']*)' and '(?P<target>[^']*)'"
)


@dataclass(frozen=True)
class SiteRecord:
    type_id: uuid.UUID
    payload: bytes
    site: ControlSite
    # Offset of the payload inside the object stream, for error messages.
    stream_offset: int = 0


@dataclass(frozen=True)
class SiteResult:
    site: ControlSite
    type_id: uuid.UUID
    control: Control | None = None
    error: DecodeError | None = None
    relationship: RelationshipCaption | None = None
    caption_error: CaptionParseError | None = None

    @property
    def ok(self) -> bool:
        return self.control is not None


def parse_relationship_caption(caption: str) -> RelationshipCaption:
    """
    Split ``Relationship 'FK_A_B' between 'A' and 'B'`` into its three names.
    Only the English caption has been observed in sample files.
    """

    if not caption.startswith("Relationship '"):
        raise CaptionParseError(caption, "missing \"Relationship '\" prefix")
    if "' between '" not in caption:
        raise CaptionParseError(caption, "missing \"' between '\" separator")
    if "' and '" not in caption:
        raise CaptionParseError(caption, "missing \"' and '\" separator")
    match = RELATIONSHIP_CAPTION.match(caption)
    if not match:
        raise CaptionParseError(caption, "unterminated quoted name")
    return RelationshipCaption(
        name=match.group("name"),
        source=match.group("source"),
        target=match.group("target"),
    )


def decode_site(record: SiteRecord) -> SiteResult:
    decoder = DECODERS.get(record.type_id)
    if decoder is None:
        return SiteResult(site=record.site, type_id=record.type_id, control=UnknownControl(record.type_id))
    try:
        control = decoder(record.payload, base=record.stream_offset)
    except DecodeError as exc:
        return SiteResult(site=record.site, type_id=record.type_id, error=exc)

    relationship = None
    caption_error = None
    if isinstance(control, PolylineControl):
        try:
            relationship = parse_relationship_caption(record.site.tooltip)
        except CaptionParseError as exc:
            caption_error = exc
    return SiteResult(
        site=record.site,
        type_id=record.type_id,
        control=control,
        relationship=relationship,
        caption_error=caption_error,
    )


def decode_sites(records: Iterable[SiteRecord]) -> List[SiteResult]:
    return [decode_site(record) for record in records]


def iter_site_windows(object_stream: bytes, sizes: Sequence[int]) -> Iterator[Tuple[int, bytes]]:
    """Yield ``(offset, payload)`` for consecutive site windows of the ``o`` stream."""

    offset = 0
    for index, size in enumerate(sizes):
        available = len(object_stream) - offset
        if size < 0 or size > available:
            raise IncompleteError(offset, size, max(available, 0), f"site {index} payload")
        yield offset, object_stream[offset : offset + size]
        offset += size


@dataclass(frozen=True)
class SysDiagram:
    dsref: DsRefSchemaContents | None
    sites: Tuple[SiteResult, ...]

    @property
    def title(self) -> str | None:
        if self.dsref is None:
            return None
        for child in self.dsref.root.children:
            if child.name:
                return child.name
        return None

    @property
    def tables(self) -> List[Tuple[ControlSite, GridControl]]:
        return [(r.site, r.control) for r in self.sites if isinstance(r.control, GridControl)]

    @property
    def relationships(self) -> List[Tuple[ControlSite, PolylineControl, RelationshipCaption | None]]:
        return [
            (r.site, r.control, r.relationship)
            for r in self.sites
            if isinstance(r.control, PolylineControl)
        ]

    @property
    def labels(self) -> List[Tuple[ControlSite, LabelControl]]:
        return [(r.site, r.control) for r in self.sites if isinstance(r.control, LabelControl)]

    @property
    def unknown(self) -> List[Tuple[ControlSite, UnknownControl]]:
        return [(r.site, r.control) for r in self.sites if isinstance(r.control, UnknownControl)]

    @property
    def failures(self) -> List[SiteResult]:
        return [r for r in self.sites if r.error is not None or r.caption_error is not None]

    def table_names(self) -> List[str]:
        """Table names as recorded in the DsRef tree (schema-qualified when known)."""

        if self.dsref is None:
            return []
        names = []
        for node in self.dsref.root.find(DsRefType.TABLE):
            if node.name is None:
                continue
            names.append(f"{node.owner}.{node.name}" if node.owner else node.name)
        return names


def decode_diagram(dsref_data: bytes | None, records: Iterable[SiteRecord]) -> SysDiagram:
    """Decode the DsRef stream (strictly) and every site (per-site isolation)."""

    dsref = decode_dsref(dsref_data) if dsref_data is not None else None
    return SysDiagram(dsref=dsref, sites=tuple(decode_sites(records)))
