"""
Paths
=====

A path is an ordered list of segments: ``Vector`` vertices and
``BezierCurve`` segments. Each segment's start is connected to the previous
segment's end with a straight line and the path is closed implicitly.
"""

from typing import List, Union

from .vector import BezierCurve, Vector

Segment = Union[Vector, BezierCurve]
Path = List[Segment]


def segment_start(segment: Segment) -> Vector:
    return segment.start if isinstance(segment, BezierCurve) else segment


def segment_end(segment: Segment) -> Vector:
    return segment.end if isinstance(segment, BezierCurve) else segment


def transform_path(path: Path, delta_x: float, delta_y: float, delta_w: float, delta_h: float) -> Path:
    """Move a four-corner path by (dx, dy) and grow it by (dw, dh).

    Corner order is top-left, top-right, bottom-right, bottom-left.
    """
    offsets = (
        (delta_x, delta_y),
        (delta_x + delta_w, delta_y),
        (delta_x + delta_w, delta_y + delta_h),
        (delta_x, delta_y + delta_h),
    )
    transformed: Path = []
    for index, segment in enumerate(path):
        if index < len(offsets):
            segment = segment.add(*offsets[index])
        transformed.append(segment)
    return transformed


def translate_path(path: Path, delta_x: float, delta_y: float) -> Path:
    return [segment.add(delta_x, delta_y) for segment in path]


def equal_path(a: Path, b: Path) -> bool:
    return len(a) == len(b) and all(left == right for left, right in zip(a, b))


def rectangle_path(left: float, top: float, width: float, height: float) -> Path:
    return [
        Vector(left, top),
        Vector(left + width, top),
        Vector(left + width, top + height),
        Vector(left, top + height),
    ]


def reverse_path(path: Path) -> Path:
    """The same outline traversed in the opposite direction."""
    return [segment.reverse() if isinstance(segment, BezierCurve) else segment for segment in reversed(path)]
