"""
Bound Curves
============

The nested closed paths bounding an element's box: outer border edge,
padding edge and content edge, plus the thirds used by double borders and
the centreline used by dotted border strokes.

Rounded corners are quarter ellipses approximated by one cubic bezier each.
The control points sit at ``radius * (1 - KAPPA)`` (about 0.4477 of the
radius) from the corner vertex.
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

from stackpaint.models.schemas import Bounds, ElementNode

from .path import Path, Segment
from .vector import BezierCurve, Vector

KAPPA = 4 * ((math.sqrt(2) - 1) / 3)

Corners = Tuple[Segment, Segment, Segment, Segment]
Radii = Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float], Tuple[float, float]]


class Corner(IntEnum):
    TOP_LEFT = 0
    TOP_RIGHT = 1
    BOTTOM_RIGHT = 2
    BOTTOM_LEFT = 3


def get_curve_points(x: float, y: float, r1: float, r2: float, corner: Corner) -> BezierCurve:
    """Bezier for one corner whose r1 x r2 bounding rectangle starts at (x, y).

    Curves run clockwise: top-left goes from the left edge to the top edge,
    top-right from the top edge to the right edge, and so on.
    """
    ox = r1 * KAPPA
    oy = r2 * KAPPA
    xm = x + r1
    ym = y + r2

    if corner == Corner.TOP_LEFT:
        return BezierCurve(Vector(x, ym), Vector(x, ym - oy), Vector(xm - ox, y), Vector(xm, y))
    if corner == Corner.TOP_RIGHT:
        return BezierCurve(Vector(x, y), Vector(x + ox, y), Vector(xm, ym - oy), Vector(xm, ym))
    if corner == Corner.BOTTOM_RIGHT:
        return BezierCurve(Vector(xm, y), Vector(xm, y + oy), Vector(x + ox, ym), Vector(x, ym))
    return BezierCurve(Vector(xm, ym), Vector(xm - ox, ym), Vector(x, y + oy), Vector(x, y))


def resolve_radii(element: ElementNode) -> Radii:
    """Absolute corner radii, scaled down together when adjacent radii overlap."""
    styles = element.styles
    bounds = element.bounds

    def absolute(radius) -> Tuple[float, float]:
        horizontal, vertical = radius
        return horizontal.resolve(bounds.width), vertical.resolve(bounds.height)

    tlh, tlv = absolute(styles.border_top_left_radius)
    trh, trv = absolute(styles.border_top_right_radius)
    brh, brv = absolute(styles.border_bottom_right_radius)
    blh, blv = absolute(styles.border_bottom_left_radius)

    factors = []
    if bounds.width > 0:
        factors.append((tlh + trh) / bounds.width)
        factors.append((blh + brh) / bounds.width)
    if bounds.height > 0:
        factors.append((tlv + blv) / bounds.height)
        factors.append((trv + brv) / bounds.height)
    max_factor = max(factors, default=0)

    if max_factor > 1:
        tlh, tlv = tlh / max_factor, tlv / max_factor
        trh, trv = trh / max_factor, trv / max_factor
        brh, brv = brh / max_factor, brv / max_factor
        blh, blv = blh / max_factor, blv / max_factor

    return (tlh, tlv), (trh, trv), (brh, brv), (blh, blv)


def inset_corners(
    bounds: Bounds,
    radii: Radii,
    left: float,
    top: float,
    right: float,
    bottom: float,
) -> Corners:
    """Corner segments of ``bounds`` inset by the given edge distances.

    An inner radius shrinks by the inset of the adjacent edge and never goes
    below zero. Corners without an outer radius stay sharp.
    """
    (tlh, tlv), (trh, trv), (brh, brv), (blh, blv) = radii
    x0 = bounds.left + left
    y0 = bounds.top + top
    x1 = bounds.left + bounds.width - right
    y1 = bounds.top + bounds.height - bottom

    if tlh > 0 or tlv > 0:
        top_left: Segment = get_curve_points(
            x0, y0, max(0.0, tlh - left), max(0.0, tlv - top), Corner.TOP_LEFT
        )
    else:
        top_left = Vector(x0, y0)

    if trh > 0 or trv > 0:
        rh, rv = max(0.0, trh - right), max(0.0, trv - top)
        top_right: Segment = get_curve_points(x1 - rh, y0, rh, rv, Corner.TOP_RIGHT)
    else:
        top_right = Vector(x1, y0)

    if brh > 0 or brv > 0:
        rh, rv = max(0.0, brh - right), max(0.0, brv - bottom)
        bottom_right: Segment = get_curve_points(x1 - rh, y1 - rv, rh, rv, Corner.BOTTOM_RIGHT)
    else:
        bottom_right = Vector(x1, y1)

    if blh > 0 or blv > 0:
        rh, rv = max(0.0, blh - left), max(0.0, blv - bottom)
        bottom_left: Segment = get_curve_points(x0, y1 - rv, rh, rv, Corner.BOTTOM_LEFT)
    else:
        bottom_left = Vector(x0, y1)

    return top_left, top_right, bottom_right, bottom_left


@dataclass(frozen=True)
class BoundCurves:
    """Corner segments (top-left, top-right, bottom-right, bottom-left) of each nested box."""

    border_box: Corners
    padding_box: Corners
    content_box: Corners
    double_outer_box: Corners
    double_inner_box: Corners
    stroke_box: Corners

    @classmethod
    def from_element(cls, element: ElementNode) -> "BoundCurves":
        styles = element.styles
        bounds = element.bounds
        radii = resolve_radii(element)

        top = styles.border_top_width
        right = styles.border_right_width
        bottom = styles.border_bottom_width
        left = styles.border_left_width

        width = bounds.width
        padding_top = styles.padding_top.resolve(width)
        padding_right = styles.padding_right.resolve(width)
        padding_bottom = styles.padding_bottom.resolve(width)
        padding_left = styles.padding_left.resolve(width)

        return cls(
            border_box=inset_corners(bounds, radii, 0, 0, 0, 0),
            padding_box=inset_corners(bounds, radii, left, top, right, bottom),
            content_box=inset_corners(
                bounds,
                radii,
                left + padding_left,
                top + padding_top,
                right + padding_right,
                bottom + padding_bottom,
            ),
            double_outer_box=inset_corners(bounds, radii, left / 3, top / 3, right / 3, bottom / 3),
            double_inner_box=inset_corners(
                bounds, radii, left * 2 / 3, top * 2 / 3, right * 2 / 3, bottom * 2 / 3
            ),
            stroke_box=inset_corners(bounds, radii, left / 2, top / 2, right / 2, bottom / 2),
        )


def border_box_path(curves: BoundCurves) -> Path:
    return list(curves.border_box)


def padding_box_path(curves: BoundCurves) -> Path:
    return list(curves.padding_box)


def content_box_path(curves: BoundCurves) -> Path:
    return list(curves.content_box)
