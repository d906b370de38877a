"""
Border Paths
============

Closed paths for each border side, the two thirds of a double border, the
stroke centreline for dotted borders, and the dash distribution rule for
dashed and dotted strokes.

Sides are numbered clockwise from the top: 0 top, 1 right, 2 bottom, 3 left.
"""

import math
from typing import List, NamedTuple

from stackpaint.core.geometry.bound_curves import BoundCurves, Corners
from stackpaint.core.geometry.path import Path, Segment, segment_end, segment_start
from stackpaint.core.geometry.vector import BezierCurve
from stackpaint.models.schemas import BorderStyle, Color, ComputedStyle

DOUBLE_BORDER_MIN_WIDTH = 3


class BorderSide(NamedTuple):
    style: BorderStyle
    color: Color
    width: float

    def is_painted(self) -> bool:
        return (
            self.style not in (BorderStyle.NONE, BorderStyle.HIDDEN)
            and not self.color.is_transparent
            and self.width > 0
        )


class DashPattern(NamedTuple):
    """Dash and gap lengths; ``enabled`` is False when the side is painted solid."""

    dash: float
    gap: float
    enabled: bool = True


def border_sides(styles: ComputedStyle) -> List[BorderSide]:
    return [
        BorderSide(styles.border_top_style, styles.border_top_color, styles.border_top_width),
        BorderSide(styles.border_right_style, styles.border_right_color, styles.border_right_width),
        BorderSide(styles.border_bottom_style, styles.border_bottom_color, styles.border_bottom_width),
        BorderSide(styles.border_left_style, styles.border_left_color, styles.border_left_width),
    ]


def _first_half(segment: Segment) -> Segment:
    return segment.subdivide(0.5, True) if isinstance(segment, BezierCurve) else segment


def _second_half(segment: Segment) -> Segment:
    return segment.subdivide(0.5, False) if isinstance(segment, BezierCurve) else segment


def _reversed(segment: Segment) -> Segment:
    return segment.reverse() if isinstance(segment, BezierCurve) else segment


def path_from_curves(outer1: Segment, inner1: Segment, outer2: Segment, inner2: Segment) -> Path:
    """Band between two edges from the middle of one corner to the middle of the next."""
    return [
        _second_half(outer1),
        _first_half(outer2),
        _reversed(_first_half(inner2)),
        _reversed(_second_half(inner1)),
    ]


def _side_corners(outer: Corners, inner: Corners, side: int) -> Path:
    start = side % 4
    end = (side + 1) % 4
    return path_from_curves(outer[start], inner[start], outer[end], inner[end])


def border_path(curves: BoundCurves, side: int) -> Path:
    """Trapezoid between the outer border edge and the padding edge for one side."""
    return _side_corners(curves.border_box, curves.padding_box, side)


def double_border_outer_path(curves: BoundCurves, side: int) -> Path:
    return _side_corners(curves.border_box, curves.double_outer_box, side)


def double_border_inner_path(curves: BoundCurves, side: int) -> Path:
    return _side_corners(curves.double_inner_box, curves.padding_box, side)


def border_stroke_path(curves: BoundCurves, side: int) -> Path:
    """Open centreline of one side, from mid-corner to mid-corner."""
    stroke = curves.stroke_box
    return [_second_half(stroke[side % 4]), _first_half(stroke[(side + 1) % 4])]


def side_length(box_path: Path, side: int) -> float:
    """Length of a side's outer edge, measured along its main axis."""
    start = segment_start(box_path[0])
    end = segment_end(box_path[1])
    if side % 2 == 0:
        return abs(start.x - end.x)
    return abs(start.y - end.y)


def dash_pattern(length: float, width: float, style: BorderStyle) -> DashPattern:
    """Pick dash and gap lengths so whole dashes fit a side of ``length``.

    Dashed borders start from dashes of 3w (2w when w >= 3) and gaps of 2w
    (w when w >= 3); dotted borders from w and w. A side no longer than two
    dashes is painted solid and one shorter than two dashes plus a gap
    scales both down. Otherwise the gap is solved for the two nearest dash
    counts and the one closer to the nominal gap wins.
    """
    if style == BorderStyle.DOTTED:
        dash = width
        gap = width
    else:
        dash = width * 3 if width < 3 else width * 2
        gap = width * 2 if width < 3 else width

    if length <= dash * 2:
        return DashPattern(dash, gap, enabled=False)

    if length <= dash * 2 + gap:
        multiplier = length / (2 * dash + gap)
        return DashPattern(dash * multiplier, gap * multiplier)

    count = math.floor((length + gap) / (dash + gap))
    min_space = (length - count * dash) / (count - 1)
    max_space = (length - (count + 1) * dash) / count
    if max_space <= 0 or abs(gap - min_space) < abs(gap - max_space):
        return DashPattern(dash, min_space)
    return DashPattern(dash, max_space)
