"""
Unit Tests for Gradients
========================

Tests for gradient lines, colour stop resolution, radial extents and
gradient rasterisation.
"""

import math

import cairo
import numpy as np
import pytest

from stackpaint.core.paint.gradient import (
    calculate_radius,
    gradient_direction,
    linear_gradient_tile,
    process_color_stops,
    radial_center,
    radial_gradient_pattern,
)
from stackpaint.core.paint.surface import premultiplied_to_straight
from stackpaint.models.schemas import ColorStop, GradientExtent, GradientShape, LinearGradient, RadialGradient, percent, px

from tests.utils.builders import BLUE, GREEN, RED, WHITE


def stops(*pairs):
    return [ColorStop(color=color, stop=stop) for color, stop in pairs]


def tile_pixels(surface: cairo.ImageSurface) -> np.ndarray:
    data = np.ndarray(
        shape=(surface.get_height(), surface.get_stride() // 4, 4),
        dtype=np.uint8,
        buffer=surface.get_data(),
    )
    return premultiplied_to_straight(data[:, : surface.get_width()])


class TestGradientDirection:
    """Test the gradient line for CSS angles."""

    def test_to_bottom(self):
        length, x0, x1, y0, y1 = gradient_direction(180, 100, 50)
        assert length == pytest.approx(50)
        assert (x0, x1) == (pytest.approx(50), pytest.approx(50))
        assert (y0, y1) == (pytest.approx(0), pytest.approx(50))

    def test_to_right(self):
        length, x0, x1, y0, y1 = gradient_direction(90, 100, 50)
        assert length == pytest.approx(100)
        assert (x0, x1) == (pytest.approx(0), pytest.approx(100))
        assert y0 == pytest.approx(y1)

    def test_diagonal_line_reaches_corners(self):
        length, *_ = gradient_direction(45, 100, 100)
        assert length == pytest.approx(100 * math.sqrt(2))


class TestColorStops:
    """Test colour stop position resolution."""

    def test_unpositioned_stops_spread_evenly(self):
        resolved = process_color_stops(stops((RED, None), (GREEN, None), (BLUE, None)), 100)
        assert [offset for offset, _ in resolved] == [0, 0.5, 1]
        assert resolved[1][1] == GREEN

    def test_gap_filled_between_positioned_stops(self):
        resolved = process_color_stops(
            stops((RED, px(10)), (GREEN, None), (BLUE, None), (WHITE, px(70))), 100
        )
        assert [offset for offset, _ in resolved] == pytest.approx([0.1, 0.3, 0.5, 0.7])

    def test_stops_never_move_backwards(self):
        resolved = process_color_stops(stops((RED, percent(50)), (BLUE, percent(20))), 100)
        assert [offset for offset, _ in resolved] == [0.5, 0.5]

    def test_offsets_clamped(self):
        resolved = process_color_stops(stops((RED, px(-10)), (BLUE, px(200))), 100)
        assert [offset for offset, _ in resolved] == [0, 1]

    def test_zero_length_line(self):
        resolved = process_color_stops(stops((RED, None), (BLUE, None)), 0)
        assert [offset for offset, _ in resolved] == [0, 0]


class TestRadialGeometry:
    """Test radial gradient centre and radii."""

    def test_default_center_is_middle(self):
        gradient = RadialGradient(stops=stops((RED, None)))
        assert radial_center(gradient, 100, 40) == (50, 20)

    def test_explicit_center(self):
        gradient = RadialGradient(position=[px(10), percent(100)], stops=stops((RED, None)))
        assert radial_center(gradient, 100, 40) == (10, 40)

    def test_explicit_radii(self):
        gradient = RadialGradient(size=[px(30)], stops=stops((RED, None)))
        assert calculate_radius(gradient, 0, 0, 100, 100) == (30, 30)
        gradient = RadialGradient(size=[px(30), percent(50)], stops=stops((RED, None)))
        assert calculate_radius(gradient, 0, 0, 100, 60) == (30, 30)

    def test_circle_closest_side(self):
        gradient = RadialGradient(
            shape=GradientShape.CIRCLE, size=GradientExtent.CLOSEST_SIDE, stops=stops((RED, None))
        )
        assert calculate_radius(gradient, 25, 50, 100, 100) == (25, 25)

    def test_ellipse_farthest_side(self):
        gradient = RadialGradient(size=GradientExtent.FARTHEST_SIDE, stops=stops((RED, None)))
        assert calculate_radius(gradient, 50, 50, 200, 100) == (150, 50)

    def test_circle_farthest_corner(self):
        gradient = RadialGradient(
            shape=GradientShape.CIRCLE, size=GradientExtent.FARTHEST_CORNER, stops=stops((RED, None))
        )
        assert calculate_radius(gradient, 0, 0, 30, 40) == (50, 50)

    def test_ellipse_farthest_corner_keeps_aspect(self):
        gradient = RadialGradient(stops=stops((RED, None)))
        rx, ry = calculate_radius(gradient, 50, 25, 100, 50)
        assert ry / rx == pytest.approx(0.5)
        assert rx == pytest.approx(50 * math.sqrt(2))

    def test_ellipse_on_edge_collapses(self):
        gradient = RadialGradient(size=GradientExtent.CLOSEST_SIDE, stops=stops((RED, None)))
        assert calculate_radius(gradient, 0, 25, 100, 50)[0] == 0


class TestGradientRendering:
    """Test cairo gradient construction."""

    def test_linear_tile_size_follows_scale(self):
        gradient = LinearGradient(stops=stops((RED, None), (BLUE, None)))
        tile = linear_gradient_tile(gradient, 10, 5, scale=2)
        assert (tile.get_width(), tile.get_height()) == (20, 10)

    def test_linear_tile_runs_top_to_bottom(self):
        gradient = LinearGradient(stops=stops((RED, None), (BLUE, None)))
        pixels = tile_pixels(linear_gradient_tile(gradient, 4, 100))
        top = pixels[0, 2]
        bottom = pixels[99, 2]
        assert top[0] > 240 and top[2] < 15
        assert bottom[2] > 240 and bottom[0] < 15

    def test_radial_pattern_is_squashed_for_ellipses(self):
        gradient = RadialGradient(stops=stops((RED, None), (BLUE, None)))
        pattern = radial_gradient_pattern(gradient, 50, 25, 50, 25)
        matrix = pattern.get_matrix()
        assert matrix.yy == pytest.approx(2)
        # The centre maps onto itself
        assert matrix.transform_point(50, 25) == (pytest.approx(50), pytest.approx(25))

    def test_radial_pattern_circle_untransformed(self):
        gradient = RadialGradient(stops=stops((RED, None), (BLUE, None)))
        pattern = radial_gradient_pattern(gradient, 5, 5, 10, 10)
        assert pattern.get_matrix().yy == 1
