#!/usr/bin/env python3
"""
Cross-sample variability report for control payloads of one class.

Feed it payload windows written by dump_site_payload.py --out-dir (ideally
from diagrams that differ in a single property) and it reports which byte
positions change, so unknown fields can be pinned down.

Usage:
    python diagnostics/compare_site_payloads.py payloads/ --pattern "site_*_d24d4453-*.bin"
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

import numpy as np


def load_samples(folder: Path, pattern: str) -> dict[str, bytes]:
    samples = {}
    for item in sorted(folder.glob(pattern)):
        samples[item.name] = item.read_bytes()
    if not samples:
        raise SystemExit(f"No samples matching {pattern!r} were found in {folder}.")
    return samples


def byte_matrix(samples: dict[str, bytes]) -> np.ndarray:
    """Stack samples row-wise, truncated to the shortest one."""

    width = min(len(data) for data in samples.values())
    rows = [np.frombuffer(data[:width], dtype=np.uint8) for data in samples.values()]
    return np.vstack(rows) if rows else np.empty((0, 0), dtype=np.uint8)


def varying_offsets(matrix: np.ndarray) -> np.ndarray:
    if matrix.size == 0:
        return np.empty(0, dtype=np.intp)
    return np.where(matrix.max(axis=0) != matrix.min(axis=0))[0]


def group_runs(offsets: np.ndarray) -> list[tuple[int, int]]:
    """Collapse sorted offsets into inclusive (start, end) runs."""

    runs: list[tuple[int, int]] = []
    for value in offsets.tolist():
        if runs and value == runs[-1][1] + 1:
            runs[-1] = (runs[-1][0], value)
        else:
            runs.append((value, value))
    return runs


def summarize_variability(samples: dict[str, bytes]) -> None:
    lengths = sorted({len(data) for data in samples.values()})
    matrix = byte_matrix(samples)
    varying = varying_offsets(matrix)

    print(f"{matrix.shape[0]} samples, compared over {matrix.shape[1]} bytes")
    if len(lengths) > 1:
        print(f"[i] payload sizes differ: {lengths}")
    print(f"{len(varying)} byte positions differ across the set.")
    for start, end in group_runs(varying):
        column = matrix[:, start : end + 1]
        values = sorted({row.tobytes().hex() for row in column})
        preview = ", ".join(values[:6]) + (" ..." if len(values) > 6 else "")
        print(f"  0x{start:04X}-0x{end:04X} ({end - start + 1} B): {preview}")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Report which payload bytes vary across samples.")
    parser.add_argument("folder", type=Path, help="Directory with payload .bin files")
    parser.add_argument("--pattern", default="*.bin", help="Glob selecting the samples (default *.bin)")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    summarize_variability(load_samples(args.folder, args.pattern))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
