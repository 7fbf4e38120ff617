#!/usr/bin/env python3
"""
Render a decoded database diagram to PNG previews without SSMS.

The script reuses the sysdiagram decoders so the shapes match the SVG output,
then rasterizes tables, relationship lines and labels with Pillow.  Example:

    python render_diagram_png.py diagram.bin --manifest sites.json \
        --preview diagram_thumb.png --preview-size 256 \
        --hires diagram_full.png --hires-size 2048
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from sysdiagram.container import load_diagram
from sysdiagram.entities import GridControl, LabelControl, PolylineControl
from sysdiagram.geometry import BBox, diagram_bounds
from sysdiagram.sites import SysDiagram
from sysdiagram.svg import TABLE_STROKE, end_cap_color


def _build_transform(bounds: BBox, size_px: int, padding_ratio: float):
    min_x, min_y, max_x, max_y = bounds
    width = max(max_x - min_x, 1)
    height = max(max_y - min_y, 1)
    pad = max(width, height) * padding_ratio

    world_min_x = min_x - pad
    world_min_y = min_y - pad
    world_width = width + 2 * pad
    world_height = height + 2 * pad

    scale = min(size_px / world_width, size_px / world_height)
    offset_x = (size_px - world_width * scale) / 2.0
    offset_y = (size_px - world_height * scale) / 2.0

    # HIMETRIC y already grows downwards, like image rows.
    def transform(x: float, y: float) -> Tuple[float, float]:
        return (x - world_min_x) * scale + offset_x, (y - world_min_y) * scale + offset_y

    return transform, scale


def render_png(
    diagram: SysDiagram,
    destination: Path,
    size_px: int,
    *,
    padding_ratio: float = 0.05,
) -> None:
    bounds = diagram_bounds(diagram)
    if bounds is None:
        raise RuntimeError("No renderable controls were decoded from the diagram.")
    transform, _ = _build_transform(bounds, size_px, padding_ratio)

    image = Image.new("RGBA", (size_px, size_px), (255, 255, 255, 0))
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default()
    stroke = max(1, int(size_px / 256))
    marker = max(2, stroke * 2)

    for result in diagram.sites:
        control = result.control
        left, top = result.site.position.x, result.site.position.y
        if isinstance(control, GridControl):
            x0, y0 = transform(left, top)
            x1, y1 = transform(left + control.extent.width, top + control.extent.height)
            draw.rectangle([x0, y0, x1, y1], outline=TABLE_STROKE, width=stroke)
            draw.text((x0 + stroke * 2, y0 + stroke * 2), control.caption or control.qualified_name, fill="black", font=font)
        elif isinstance(control, LabelControl):
            x0, y0 = transform(left, top)
            x1, y1 = transform(left + control.size.width, top + control.size.height)
            draw.rectangle([x0, y0, x1, y1], fill=control.back_color.hex("#ffffff"))
            draw.text((x0, y0), control.text, fill=control.fore_color.hex(), font=font)
        elif isinstance(control, PolylineControl):
            points = [transform(p.x, p.y) for p in control.points]
            if len(points) > 1:
                draw.line(points, fill=control.color.hex(), width=stroke)
            for (px, py), cap in ((points[0], control.end_cap_source), (points[-1], control.end_cap_dest)):
                draw.ellipse([px - marker, py - marker, px + marker, py + marker], fill=end_cap_color(cap))

    destination.parent.mkdir(parents=True, exist_ok=True)
    image.save(destination)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a SQL Server database diagram to PNG.")
    parser.add_argument("input", type=Path, help="Diagram blob (raw compound file unless --base64/--hex)")
    parser.add_argument("--manifest", type=Path, required=True, help="JSON site manifest for the o stream")
    encoding = parser.add_mutually_exclusive_group()
    encoding.add_argument("--base64", action="store_true", help="Input is base64 text")
    encoding.add_argument("--hex", action="store_true", help="Input is hex text")
    parser.add_argument("--preview", type=Path, help="Path for the low-res preview PNG")
    parser.add_argument("--preview-size", type=int, default=256, help="Preview size in pixels (square)")
    parser.add_argument("--hires", type=Path, help="Path for the high-res PNG")
    parser.add_argument("--hires-size", type=int, default=2048, help="High-res size in pixels (square)")
    parser.add_argument("--padding", type=float, default=0.05, help="Padding as a fraction of the diagram size")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if not args.preview and not args.hires:
        raise SystemExit("Specify --preview and/or --hires to render a PNG.")

    encoding = "base64" if args.base64 else "hex" if args.hex else "raw"
    _, diagram, _ = load_diagram(args.input, manifest=args.manifest, encoding=encoding)
    for result in diagram.failures:
        print(f"[warn] site {result.site.id}: {result.error or result.caption_error}")
    if args.preview:
        render_png(diagram, args.preview, args.preview_size, padding_ratio=args.padding)
        print(f"[+] Preview PNG written to {args.preview}")
    if args.hires:
        render_png(diagram, args.hires, args.hires_size, padding_ratio=args.padding)
        print(f"[+] High-res PNG written to {args.hires}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
