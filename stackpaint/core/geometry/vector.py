"""
Vectors and Bezier Curves
=========================

The two segment kinds a paint path is made of: a straight vertex and a
cubic bezier segment.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Vector:
    """A point in CSS pixel space."""

    x: float
    y: float

    def add(self, delta_x: float, delta_y: float) -> "Vector":
        return Vector(self.x + delta_x, self.y + delta_y)


def lerp(a: Vector, b: Vector, t: float) -> Vector:
    return Vector(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)


@dataclass(frozen=True)
class BezierCurve:
    """A cubic bezier segment from ``start`` to ``end``."""

    start: Vector
    start_control: Vector
    end_control: Vector
    end: Vector

    def subdivide(self, t: float, first_half: bool) -> "BezierCurve":
        """Split the curve at ``t`` (de Casteljau) and keep one half."""
        ab = lerp(self.start, self.start_control, t)
        bc = lerp(self.start_control, self.end_control, t)
        cd = lerp(self.end_control, self.end, t)
        abbc = lerp(ab, bc, t)
        bccd = lerp(bc, cd, t)
        dest = lerp(abbc, bccd, t)
        if first_half:
            return BezierCurve(self.start, ab, abbc, dest)
        return BezierCurve(dest, bccd, cd, self.end)

    def add(self, delta_x: float, delta_y: float) -> "BezierCurve":
        return BezierCurve(
            self.start.add(delta_x, delta_y),
            self.start_control.add(delta_x, delta_y),
            self.end_control.add(delta_x, delta_y),
            self.end.add(delta_x, delta_y),
        )

    def reverse(self) -> "BezierCurve":
        return BezierCurve(self.end, self.end_control, self.start_control, self.start)


def is_bezier_curve(segment: object) -> bool:
    return isinstance(segment, BezierCurve)
