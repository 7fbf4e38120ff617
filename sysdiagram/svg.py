from __future__ import annotations

from pathlib import Path
from typing import List, Tuple
from xml.sax.saxutils import escape, quoteattr

from .entities import EndCapKind, Extent, GridControl, LabelControl, PolylineControl
from .geometry import diagram_bounds, extent_to_mm, himetric_to_mm, point_to_mm
from .properties import OleColor
from .sites import SysDiagram

MARGIN_MM = 10.0
PT_TO_MM = 0.35
DEFAULT_FONT_PT = 8.25
TABLE_STROKE = "red"

_CAP_COLORS = {
    EndCapKind.MANY: "yellow",
    EndCapKind.KEY: "orange",
}


def end_cap_color(cap: EndCapKind) -> str:
    return _CAP_COLORS.get(cap, "black")


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return text or "0"


def _canvas(diagram: SysDiagram, logical_size: Extent | None) -> Tuple[float, float, float, float]:
    bounds = diagram_bounds(diagram)
    min_x = himetric_to_mm(bounds[0]) if bounds else 0.0
    min_y = himetric_to_mm(bounds[1]) if bounds else 0.0
    if logical_size is not None:
        width, height = extent_to_mm(logical_size)
    elif bounds is not None:
        width = himetric_to_mm(bounds[2] - bounds[0]) + 2 * MARGIN_MM
        height = himetric_to_mm(bounds[3] - bounds[1]) + 2 * MARGIN_MM
    else:
        width = height = 2 * MARGIN_MM
    return min_x - MARGIN_MM, min_y - MARGIN_MM, width, height


def _grid_svg(x: float, y: float, grid: GridControl, debug: bool) -> List[str]:
    w, h = extent_to_mm(grid.extent)
    chunks = [
        f'<rect x="{_fmt(x)}" y="{_fmt(y)}" width="{_fmt(w)}" height="{_fmt(h)}" '
        f'stroke="{TABLE_STROKE}" stroke-width="1" fill="none" />'
    ]
    caption = escape(grid.caption or grid.qualified_name)
    if debug:
        cols, keys = grid.columns_layout, grid.keys_layout
        chunks.append(f'<circle cx="{_fmt(x)}" cy="{_fmt(y)}" r="2" fill="blue" />')
        caption += f" ({cols.row_count}/{cols.row_min}; {keys.row_count}/{keys.row_min})"
    chunks.append(
        f'<text x="{_fmt(x + 2)}" y="{_fmt(y + 6)}" font-size="4" font-family="Tahoma">{caption}</text>'
    )
    return chunks


def _label_svg(site_id: int, x: float, y: float, label: LabelControl, debug: bool) -> List[str]:
    width, height = extent_to_mm(label.size)
    size_pt = label.font.size_pt or DEFAULT_FONT_PT
    chunks = []
    if debug:
        chunks.append(f'<circle cx="{_fmt(x)}" cy="{_fmt(y)}" r="2" fill="red" />')
    chunks.append(
        f'<rect x="{_fmt(x)}" y="{_fmt(y)}" width="{_fmt(width)}" height="{_fmt(height)}" '
        f'fill="{label.back_color.hex("#ffffff")}" />'
    )
    chunks.append(
        f'<text id="c{site_id}" font-family={quoteattr(label.font.face)} '
        f'fill="{label.fore_color.hex()}" font-size="{_fmt(size_pt * PT_TO_MM)}" '
        f'x="{_fmt(x)}" y="{_fmt(y + height * 0.8)}">{escape(label.text)}</text>'
    )
    return chunks


def _polyline_svg(site_id: int, x: float, y: float, line: PolylineControl, debug: bool) -> List[str]:
    chunks = []
    if debug:
        chunks.append(f'<circle cx="{_fmt(x)}" cy="{_fmt(y)}" r="2" fill="green" />')
        for ref in line.label_refs:
            lx, ly = point_to_mm(ref.position)
            chunks.append(f'<circle cx="{_fmt(lx)}" cy="{_fmt(ly)}" r="4" fill="cyan" />')
    points = " ".join(f"{_fmt(px)},{_fmt(py)}" for px, py in (point_to_mm(p) for p in line.points))
    chunks.append(
        f'<polyline id="c{site_id}" stroke-width="1" fill="none" '
        f'stroke="{line.color.hex()}" points="{points}" />'
    )
    for point, cap in ((line.first_point, line.end_cap_source), (line.last_point, line.end_cap_dest)):
        cx, cy = point_to_mm(point)
        chunks.append(f'<circle cx="{_fmt(cx)}" cy="{_fmt(cy)}" r="2" fill="{end_cap_color(cap)}" />')
    return chunks


def render_svg(
    diagram: SysDiagram,
    *,
    logical_size: Extent | None = None,
    back_color: OleColor | None = None,
    debug: bool = False,
) -> str:
    """
    Build an SVG document with one shape group per decoded site.  Units are
    millimetres (HIMETRIC / 100); sites that failed to decode are skipped.
    """

    view_x, view_y, width, height = _canvas(diagram, logical_size)
    background = back_color.hex("#ffffff") if back_color is not None else "#ffffff"

    chunks: List[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<svg xmlns="http://www.w3.org/2000/svg"',
        '    xmlns:xlink="http://www.w3.org/1999/xlink"',
        '    version="1.1" baseProfile="full"',
        f'    width="{_fmt(width)}mm" height="{_fmt(height)}mm"',
        f'    viewBox="{_fmt(view_x)} {_fmt(view_y)} {_fmt(width)} {_fmt(height)}"',
        f'    style="background-color: {background}">',
    ]
    if diagram.title:
        chunks.append(f"    <title>{escape(diagram.title)}</title>")
    if debug:
        chunks.append('<circle cx="0" cy="0" r="4" fill="red" />')

    for result in diagram.sites:
        control = result.control
        x, y = point_to_mm(result.site.position)
        if isinstance(control, GridControl):
            chunks.extend(_grid_svg(x, y, control, debug))
        elif isinstance(control, LabelControl):
            chunks.extend(_label_svg(result.site.id, x, y, control, debug))
        elif isinstance(control, PolylineControl):
            chunks.extend(_polyline_svg(result.site.id, x, y, control, debug))

    chunks.append("</svg>")
    return "\n".join(chunks) + "\n"


def write_svg(
    diagram: SysDiagram,
    destination: Path,
    *,
    logical_size: Extent | None = None,
    back_color: OleColor | None = None,
    debug: bool = False,
) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    text = render_svg(diagram, logical_size=logical_size, back_color=back_color, debug=debug)
    destination.write_text(text, encoding="utf-8")
