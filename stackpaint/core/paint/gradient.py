"""
Gradients
=========

Geometry for linear-gradient() and radial-gradient() images and the cairo
patterns that paint them.
"""

import math
from typing import List, Optional, Sequence, Tuple

import cairo

from stackpaint.models.schemas import (
    FIFTY_PERCENT,
    Color,
    ColorStop,
    GradientExtent,
    GradientShape,
    LinearGradient,
    RadialGradient,
)

GradientLine = Tuple[float, float, float, float, float]


def gradient_direction(angle: float, width: float, height: float) -> GradientLine:
    """Gradient line for a CSS angle in degrees inside a width x height box.

    Returns:
        (line_length, x0, x1, y0, y1) with the line centred in the box
    """
    radian = math.radians(angle)
    line_length = abs(width * math.sin(radian)) + abs(height * math.cos(radian))
    half_width = width / 2
    half_height = height / 2
    half_line = line_length / 2

    y_diff = math.sin(radian - math.pi / 2) * half_line
    x_diff = math.cos(radian - math.pi / 2) * half_line
    return line_length, half_width - x_diff, half_width + x_diff, half_height - y_diff, half_height + y_diff


def process_color_stops(stops: Sequence[ColorStop], line_length: float) -> List[Tuple[float, Color]]:
    """Resolve colour stops to offsets in [0, 1] along a line of ``line_length``.

    The first and last stops default to 0% and 100%. Positions never move
    backwards, and runs of unpositioned stops are spread evenly between their
    positioned neighbours.
    """
    count = len(stops)
    positions: List[Optional[float]] = []
    max_stop = 0.0
    for index, color_stop in enumerate(stops):
        stop = color_stop.stop
        if stop is None and index == 0:
            value: Optional[float] = 0.0
        elif stop is None and index == count - 1:
            value = line_length
        elif stop is None:
            value = None
        else:
            value = stop.resolve(line_length)

        if value is None:
            positions.append(None)
            continue
        value = max(value, max_stop)
        positions.append(value)
        max_stop = value

    gap_begin: Optional[int] = None
    for index, value in enumerate(positions):
        if value is None:
            if gap_begin is None:
                gap_begin = index
        elif gap_begin is not None:
            gap_length = index - gap_begin
            before_gap = positions[gap_begin - 1]
            gap_value = (value - before_gap) / (gap_length + 1)
            for g in range(1, gap_length + 1):
                positions[gap_begin + g - 1] = before_gap + gap_value * g
            gap_begin = None

    resolved = []
    for color_stop, value in zip(stops, positions):
        offset = value / line_length if line_length > 0 else 0.0
        resolved.append((max(min(1.0, offset), 0.0), color_stop.color))
    return resolved


def _distance(x: float, y: float) -> float:
    return math.sqrt(x * x + y * y)


def _find_corner(width: float, height: float, x: float, y: float, closest: bool) -> Tuple[float, float]:
    corners = [(0.0, 0.0), (0.0, height), (width, 0.0), (width, height)]
    def key(corner: Tuple[float, float]) -> float:
        return _distance(x - corner[0], y - corner[1])

    return min(corners, key=key) if closest else max(corners, key=key)


def calculate_radius(
    gradient: RadialGradient, x: float, y: float, width: float, height: float
) -> Tuple[float, float]:
    """Radii (rx, ry) of a radial gradient centred at (x, y) in a width x height box."""
    if isinstance(gradient.size, list):
        rx = gradient.size[0].resolve(width)
        ry = gradient.size[1].resolve(height) if len(gradient.size) == 2 else rx
        return rx, ry

    circle = gradient.shape == GradientShape.CIRCLE
    sides_x = (abs(x), abs(x - width))
    sides_y = (abs(y), abs(y - height))
    corner_distances = (
        _distance(x, y),
        _distance(x, y - height),
        _distance(x - width, y),
        _distance(x - width, y - height),
    )

    if gradient.size == GradientExtent.CLOSEST_SIDE:
        if circle:
            radius = min(sides_x + sides_y)
            return radius, radius
        return min(sides_x), min(sides_y)

    if gradient.size == GradientExtent.FARTHEST_SIDE:
        if circle:
            radius = max(sides_x + sides_y)
            return radius, radius
        return max(sides_x), max(sides_y)

    closest = gradient.size == GradientExtent.CLOSEST_CORNER
    if circle:
        radius = min(corner_distances) if closest else max(corner_distances)
        return radius, radius

    # Ellipse through the chosen corner keeping the side-distance aspect ratio
    pick = min if closest else max
    if pick(sides_x) == 0:
        return 0.0, 0.0
    ratio = pick(sides_y) / pick(sides_x)
    if ratio == 0:
        return 0.0, 0.0
    corner_x, corner_y = _find_corner(width, height, x, y, closest)
    rx = _distance(corner_x - x, (corner_y - y) / ratio)
    return rx, ratio * rx


def _add_stops(pattern: cairo.Gradient, stops: List[Tuple[float, Color]]) -> None:
    for offset, color in stops:
        pattern.add_color_stop_rgba(offset, *color.as_rgba())


def linear_gradient_tile(
    gradient: LinearGradient, width: float, height: float, scale: float = 1.0
) -> cairo.ImageSurface:
    """Rasterise one width x height tile of a linear gradient at device resolution."""
    tile_width = max(1, int(math.ceil(width * scale)))
    tile_height = max(1, int(math.ceil(height * scale)))
    line_length, x0, x1, y0, y1 = gradient_direction(gradient.angle, width, height)

    pattern = cairo.LinearGradient(x0, y0, x1, y1)
    _add_stops(pattern, process_color_stops(gradient.stops, line_length))

    tile = cairo.ImageSurface(cairo.FORMAT_ARGB32, tile_width, tile_height)
    ctx = cairo.Context(tile)
    ctx.scale(tile_width / width, tile_height / height)
    ctx.rectangle(0, 0, width, height)
    ctx.set_source(pattern)
    ctx.fill()
    tile.flush()
    return tile


def radial_gradient_pattern(
    gradient: RadialGradient, center_x: float, center_y: float, rx: float, ry: float
) -> cairo.RadialGradient:
    """Circular gradient of radius ``rx``, squashed vertically around its centre when ``ry != rx``."""
    pattern = cairo.RadialGradient(center_x, center_y, 0, center_x, center_y, rx)
    _add_stops(pattern, process_color_stops(gradient.stops, rx * 2))
    if rx != ry:
        factor = ry / rx
        pattern.set_matrix(cairo.Matrix(yy=1 / factor, y0=center_y - center_y / factor))
    return pattern


def radial_center(gradient: RadialGradient, width: float, height: float) -> Tuple[float, float]:
    """Gradient centre inside its tile; an empty position means the middle."""
    position = gradient.position or [FIFTY_PERCENT]
    return position[0].resolve(width), position[-1].resolve(height)
