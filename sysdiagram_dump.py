#!/usr/bin/env python3
"""
Text dump of a SQL Server database diagram (sysdiagrams.definition blob).

The blob is an OLE compound file; the DsRef tree is always decoded, the
controls on the diagram surface are decoded when a site manifest (from a
form-layout reader) is supplied.  Example:

    python sysdiagram_dump.py diagram.bin --dsref --settings
    python sysdiagram_dump.py diagram.b64 --base64 --manifest sites.json \
        --tables --relationships --svg diagram.svg --failure-log failures.txt
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Sequence

from sysdiagram.container import ManifestError, load_diagram
from sysdiagram.dsref import DsRefType
from sysdiagram.errors import DecodeError
from sysdiagram.geometry import table_at
from sysdiagram.logging import OpaqueFieldLogger, log_site_failures
from sysdiagram.settings import ConnectionStringError, get_settings
from sysdiagram.sites import SysDiagram
from sysdiagram.svg import write_svg


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decode a SQL Server database diagram blob.")
    parser.add_argument("input", type=Path, help="Raw, base64 or hex export of the definition column")
    encoding = parser.add_mutually_exclusive_group()
    encoding.add_argument("--base64", action="store_true", help="Input is base64 text")
    encoding.add_argument("--hex", action="store_true", help="Input is hex text (optional 0x prefix)")
    parser.add_argument("--streams", action="store_true", help="List the compound file streams")
    parser.add_argument("--settings", action="store_true", help="Print the connection settings")
    parser.add_argument("--dsref", action="store_true", help="Print the DsRef tree")
    parser.add_argument("--manifest", type=Path, help="JSON site manifest for the o stream")
    parser.add_argument("--tables", action="store_true", help="Print table (grid) controls")
    parser.add_argument("--relationships", action="store_true", help="Print relationship polylines")
    parser.add_argument("--labels", action="store_true", help="Print free-text labels")
    parser.add_argument("--svg", type=Path, help="Write an SVG rendering of the diagram")
    parser.add_argument("--debug", action="store_true", help="Add debug markers to the SVG")
    parser.add_argument("--failure-log", type=Path, help="Write per-site decode failures to this file")
    parser.add_argument("--opaque-log", type=Path, help="Write the uninterpreted fields of each control")
    return parser.parse_args(argv)


def _encoding(args: argparse.Namespace) -> str:
    if args.base64:
        return "base64"
    if args.hex:
        return "hex"
    return "raw"


def kind_names(kind: DsRefType) -> str:
    names = [member.name for member in DsRefType if member.value and kind & member == member]
    return "|".join(names) or "NULL"


def print_dsref(diagram: SysDiagram) -> None:
    dsref = diagram.dsref
    stamp = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=dsref.unix_time())
    print(f"clsid: {dsref.clsid}")
    print(f"time: {stamp.isoformat()} (ticks {dsref.timestamp})")
    for depth, node in dsref.root.walk():
        label = node.name if node.name is not None else "-"
        if node.owner:
            label = f"{node.owner}.{label}"
        print(f"{'  ' * depth}- {kind_names(node.kind)} {label}")
        for key, value in (node.properties or {}).items():
            print(f"{'  ' * depth}    {key}: {value.value!r}")


def print_tables(diagram: SysDiagram) -> None:
    for site, grid in diagram.tables:
        print()
        print(f"==> site {site.id} at ({site.position.x}, {site.position.y}) {grid.qualified_name}")
        print(f"extent: {grid.extent.width} x {grid.extent.height}")
        print(f"caption: {grid.caption!r}")
        for idx, layout in enumerate(grid.layouts):
            widths = ", ".join(str(w) for w in layout.column_widths)
            print(
                f"- layout[{idx}] hidden={layout.hidden} rows={layout.row_count}/{layout.row_min} "
                f"cols={layout.col_count}/{layout.col_min} widths=[{widths}]"
            )
        print(f"selected columns: {list(grid.selected_columns)}")


def print_relationships(diagram: SysDiagram) -> None:
    for site, line, caption in diagram.relationships:
        print()
        print(f"==> site {site.id} {site.tooltip!r}")
        if caption is not None:
            print(f"name: {caption.name} ({caption.source} -> {caption.target})")
        source = table_at(diagram, line.first_point)
        target = table_at(diagram, line.last_point)
        if source is not None or target is not None:
            print(
                f"attached: {source.qualified_name if source else '?'} -> "
                f"{target.qualified_name if target else '?'}"
            )
        points = " ".join(f"({p.x},{p.y})" for p in line.points)
        print(f"points: {points}")
        print(f"caps: {line.end_cap_source.name} -> {line.end_cap_dest.name} color={line.color.hex()}")


def print_labels(diagram: SysDiagram) -> None:
    for site, label in diagram.labels:
        print()
        print(f"==> site {site.id} at ({site.position.x}, {site.position.y})")
        print(f"text: {label.text!r}")
        print(
            f"font: {label.font.face} {label.font.size_pt:g}pt weight={label.font.weight} "
            f"justify={label.justification.name} flags={label.flags!r}"
        )


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    try:
        streams, diagram, form_info = load_diagram(args.input, manifest=args.manifest, encoding=_encoding(args))
    except (DecodeError, ManifestError, OSError) as exc:
        print(f"[error] {args.input}: {exc}", file=sys.stderr)
        return 1

    print(f"[+] Loaded {args.input} ({len(streams.objects)} object stream bytes, {len(diagram.sites)} sites)")
    status = 0

    if args.streams:
        for name in streams.stream_names:
            print(f"- {name}")
    if args.settings:
        try:
            for key, value in get_settings(diagram).items():
                print(f"{key:25}: {value}")
        except ConnectionStringError as exc:
            print(f"[error] failed to parse connection string: {exc}", file=sys.stderr)
            status = 1
    if args.dsref:
        print_dsref(diagram)
    if args.tables:
        print_tables(diagram)
    if args.relationships:
        print_relationships(diagram)
    if args.labels:
        print_labels(diagram)

    if diagram.unknown:
        print(f"[i] {len(diagram.unknown)} site(s) with unrecognized control classes")
    failures = diagram.failures
    for result in failures:
        error = result.error or result.caption_error
        print(f"[warn] site {result.site.id}: {error}", file=sys.stderr)
    if any(result.error is not None for result in failures):
        status = 1

    if args.failure_log:
        log_site_failures(diagram.sites, args.failure_log)
        print(f"[+] Failure log written to {args.failure_log}")
    if args.opaque_log:
        opaque = OpaqueFieldLogger(args.opaque_log)
        for idx, result in enumerate(diagram.sites):
            opaque.record(idx, result.site, result.control)
        opaque.flush()
        print(f"[+] Opaque field log written to {args.opaque_log}")
    if args.svg:
        write_svg(
            diagram,
            args.svg,
            logical_size=form_info.logical_size,
            back_color=form_info.back_color,
            debug=args.debug,
        )
        print(f"[+] SVG written to {args.svg}")
    return status


if __name__ == "__main__":
    raise SystemExit(main())
