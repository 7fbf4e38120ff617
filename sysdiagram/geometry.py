from __future__ import annotations

from typing import Iterable, List, Tuple

from .entities import (
    Control,
    ControlSite,
    Extent,
    GridControl,
    LabelControl,
    Point,
    PolylineControl,
)
from .sites import SysDiagram

# Diagram coordinates are HIMETRIC (0.01 mm), y grows downwards.
HIMETRIC_PER_MM = 100.0
ENDPOINT_TOL = 50

BBox = Tuple[int, int, int, int]


def himetric_to_mm(value: int) -> float:
    return value / HIMETRIC_PER_MM


def point_to_mm(point: Point) -> Tuple[float, float]:
    return himetric_to_mm(point.x), himetric_to_mm(point.y)


def extent_to_mm(extent: Extent) -> Tuple[float, float]:
    return himetric_to_mm(extent.width), himetric_to_mm(extent.height)


def point_in_bbox(pt: Point, bbox: BBox, *, tol: int = 0) -> bool:
    min_x, min_y, max_x, max_y = bbox
    return (min_x - tol) <= pt.x <= (max_x + tol) and (min_y - tol) <= pt.y <= (max_y + tol)


def control_bbox(site: ControlSite, control: Control) -> BBox | None:
    """Area covered by a decoded control, in HIMETRIC; None for unknown controls."""

    if isinstance(control, GridControl):
        size = control.extent
    elif isinstance(control, LabelControl):
        size = control.size
    elif isinstance(control, PolylineControl):
        xs = [p.x for p in control.points]
        ys = [p.y for p in control.points]
        return min(xs), min(ys), max(xs), max(ys)
    else:
        return None
    left, top = site.position.x, site.position.y
    return left, top, left + size.width, top + size.height


def merge_bboxes(boxes: Iterable[BBox]) -> BBox | None:
    merged: BBox | None = None
    for min_x, min_y, max_x, max_y in boxes:
        if merged is None:
            merged = (min_x, min_y, max_x, max_y)
            continue
        merged = (
            min(merged[0], min_x),
            min(merged[1], min_y),
            max(merged[2], max_x),
            max(merged[3], max_y),
        )
    return merged


def diagram_bounds(diagram: SysDiagram) -> BBox | None:
    boxes: List[BBox] = []
    for result in diagram.sites:
        if result.control is None:
            continue
        box = control_bbox(result.site, result.control)
        if box is not None:
            boxes.append(box)
    return merge_bboxes(boxes)


def table_at(diagram: SysDiagram, point: Point, *, tol: int = ENDPOINT_TOL) -> GridControl | None:
    """Table whose frame contains ``point``; used to attach relationship endpoints."""

    for site, grid in diagram.tables:
        box = control_bbox(site, grid)
        if box is not None and point_in_bbox(point, box, tol=tol):
            return grid
    return None
