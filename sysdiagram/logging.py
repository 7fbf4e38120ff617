from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .entities import ControlSite, GridControl, LabelControl, PolylineControl
from .sites import SiteResult


def log_site_failures(results: Sequence[SiteResult], destination: Path) -> None:
    """Write one block per failed site; `results` is every site in diagram order."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    lines: List[str] = []
    for idx, result in enumerate(results):
        for error in (result.error, result.caption_error):
            if error is None:
                continue
            offset = "-" if error.offset is None else f"0x{error.offset:04X}"
            lines.append(
                f"#{idx:04d} site={result.site.id} clsid={result.type_id} "
                f"error={type(error).__name__} offset={offset}"
            )
            lines.append(f"       {error}")
            if result.site.tooltip:
                lines.append(f"       tooltip={result.site.tooltip!r}")
    destination.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")


@dataclass
class OpaqueFieldLogger:
    """Collects the fields decoders carry without interpreting them."""

    destination: Path

    def __post_init__(self) -> None:
        self._lines: List[str] = []

    def _field(self, name: str, value: object) -> None:
        if isinstance(value, bytes):
            rendered = value.hex() or "(empty)"
        elif isinstance(value, int):
            rendered = f"0x{value:08X}"
        else:
            rendered = repr(value)
        self._lines.append(f"  {name:<24} {rendered}")

    def record(self, index: int, site: ControlSite, control: object) -> None:
        if isinstance(control, GridControl):
            self._lines.append(f"Site #{index} id={site.id} grid {control.qualified_name}")
            for pos, value in enumerate(control.data_source_unknown):
                self._field(f"data_source_unknown[{pos}]", value)
            for layout_idx, layout in enumerate(control.layouts):
                self._field(f"layout[{layout_idx}].flag", layout.unknown_flag)
                self._field(f"layout[{layout_idx}].unknown", layout.unknown)
        elif isinstance(control, PolylineControl):
            self._lines.append(f"Site #{index} id={site.id} polyline {len(control.points)} point(s)")
            self._field("flags", control.flags)
            self._field("reserved", control.reserved)
            for ref_idx, ref in enumerate(control.label_refs):
                self._field(f"label_ref[{ref_idx}].reserved", ref.reserved)
            self._field("unknown_byte", control.unknown_byte)
            self._field("trailing", control.trailing_opaque)
        elif isinstance(control, LabelControl):
            self._lines.append(f"Site #{index} id={site.id} label {control.text!r}")
            self._field("unknown", control.unknown)
            self._field("reserved", control.reserved)
            self._field("unknown_word", control.unknown_word)

    def flush(self) -> None:
        if not self._lines:
            return
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        text = "\n".join(self._lines) + "\n"
        self.destination.write_text(text, encoding="utf-8")
