#!/usr/bin/env python3
"""
Hex dump of the per-site payload windows inside a diagram's ``o`` stream.

Each site window is printed with its class id, the decoder verdict and a
16-byte-per-row dump, so new control layouts can be eyeballed next to the
ones the decoders already understand.  ``--out-dir`` also writes every
window to ``site_<index>_<clsid>.bin`` for compare_site_payloads.py.

Usage:
    python diagnostics/dump_site_payload.py diagram.bin --manifest sites.json
    python diagnostics/dump_site_payload.py diagram.bin --manifest sites.json \
        --site 3 --limit 256 --out-dir payloads/
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterator, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sysdiagram.container import load_blob, load_manifest, read_streams
from sysdiagram.sites import SiteRecord, decode_site


def iter_rows(payload: bytes, *, base: int = 0, limit: int | None = None) -> Iterator[str]:
    stop = len(payload) if limit is None else min(limit, len(payload))
    for offset in range(0, stop, 16):
        chunk = payload[offset : min(offset + 16, stop)]
        hexpart = " ".join(f"{b:02X}" for b in chunk)
        text = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in chunk)
        yield f"{base + offset:06X}: {hexpart:<47}  {text}"


def describe_record(index: int, record: SiteRecord) -> str:
    result = decode_site(record)
    if result.error is not None:
        verdict = f"{type(result.error).__name__}: {result.error}"
    else:
        verdict = type(result.control).__name__
    return (
        f"site[{index}] id={record.site.id} clsid={record.type_id} "
        f"off=0x{record.stream_offset:04X} size={len(record.payload)} | {verdict}"
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hex dump diagram control payloads.")
    parser.add_argument("input", type=Path, help="Diagram blob")
    parser.add_argument("--manifest", type=Path, required=True, help="JSON site manifest")
    parser.add_argument("--base64", action="store_true", help="Input is base64 text")
    parser.add_argument("--site", type=int, action="append", help="Only dump this site index (repeatable)")
    parser.add_argument("--limit", type=lambda x: int(x, 0), help="Bytes to dump per site (default: all)")
    parser.add_argument("--out-dir", type=Path, help="Also write each payload window to this directory")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    streams = read_streams(load_blob(args.input, "base64" if args.base64 else "raw"))
    records, _ = load_manifest(args.manifest, streams.objects)
    if args.out_dir:
        args.out_dir.mkdir(parents=True, exist_ok=True)

    selected = [(idx, rec) for idx, rec in enumerate(records) if not args.site or idx in args.site]
    if not selected:
        print("No sites matched the request.", file=sys.stderr)
        return 1
    for index, record in selected:
        print(describe_record(index, record))
        for row in iter_rows(record.payload, base=record.stream_offset, limit=args.limit):
            print(f"  {row}")
        if args.out_dir:
            target = args.out_dir / f"site_{index:03d}_{record.type_id}.bin"
            target.write_bytes(record.payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
