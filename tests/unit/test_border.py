"""
Unit Tests for Border Paths
===========================

Tests for border side paths, side lengths and dash distribution.
"""

import pytest

from stackpaint.core.geometry.bound_curves import BoundCurves
from stackpaint.core.geometry.path import segment_end, segment_start
from stackpaint.core.geometry.vector import BezierCurve, Vector
from stackpaint.core.paint.border import (
    BorderSide,
    DashPattern,
    border_path,
    border_sides,
    border_stroke_path,
    dash_pattern,
    double_border_inner_path,
    double_border_outer_path,
    side_length,
)
from stackpaint.models.schemas import BorderStyle, Color, px

from tests.utils.builders import BLUE, RED, node


@pytest.fixture
def bordered():
    return BoundCurves.from_element(
        node(
            0,
            0,
            100,
            50,
            border_top_width=6,
            border_right_width=6,
            border_bottom_width=6,
            border_left_width=6,
        )
    )


class TestBorderSide:
    """Test which sides get painted."""

    def test_painted_side(self):
        assert BorderSide(BorderStyle.SOLID, RED, 1).is_painted()

    @pytest.mark.parametrize(
        "side",
        [
            BorderSide(BorderStyle.NONE, RED, 2),
            BorderSide(BorderStyle.HIDDEN, RED, 2),
            BorderSide(BorderStyle.SOLID, Color(a=0), 2),
            BorderSide(BorderStyle.SOLID, RED, 0),
        ],
    )
    def test_unpainted_sides(self, side):
        assert not side.is_painted()

    def test_sides_are_clockwise_from_top(self):
        styles = node(border_top_color=RED, border_left_color=BLUE, border_left_width=3).styles
        sides = border_sides(styles)
        assert sides[0].color == RED
        assert sides[3].color == BLUE
        assert sides[3].width == 3


class TestBorderPaths:
    """Test side trapezoids."""

    def test_top_side_trapezoid(self, bordered):
        assert border_path(bordered, 0) == [Vector(0, 0), Vector(100, 0), Vector(94, 6), Vector(6, 6)]

    def test_left_side_wraps_to_top_left(self, bordered):
        assert border_path(bordered, 3) == [Vector(0, 50), Vector(0, 0), Vector(6, 6), Vector(6, 44)]

    def test_double_border_thirds(self, bordered):
        assert double_border_outer_path(bordered, 0)[2] == Vector(98, 2)
        assert double_border_inner_path(bordered, 0)[0] == Vector(4, 4)

    def test_stroke_path_is_centreline(self, bordered):
        assert border_stroke_path(bordered, 0) == [Vector(3, 3), Vector(97, 3)]

    def test_rounded_side_uses_curve_halves(self):
        curves = BoundCurves.from_element(
            node(0, 0, 100, 50, border_top_width=4, border_top_left_radius=(px(10), px(10)))
        )
        path = border_path(curves, 0)
        assert isinstance(path[0], BezierCurve)
        assert segment_end(path[0]) == Vector(10, 0)
        assert segment_start(path[0]) != Vector(0, 10)

    def test_side_lengths(self, bordered):
        assert side_length(border_path(bordered, 0), 0) == 100
        assert side_length(border_path(bordered, 1), 1) == 50


class TestDashPattern:
    """Test dash and gap distribution along a side."""

    def test_dashed_distribution(self):
        pattern = dash_pattern(100, 4, BorderStyle.DASHED)
        assert pattern == DashPattern(8, 3.5)
        dashes = 9
        assert dashes * pattern.dash + (dashes - 1) * pattern.gap == pytest.approx(100)

    def test_thin_dashed_nominal_lengths(self):
        pattern = dash_pattern(1000, 2, BorderStyle.DASHED)
        assert pattern.dash == 6
        assert pattern.gap == pytest.approx(4, abs=0.1)

    def test_short_side_painted_solid(self):
        assert dash_pattern(16, 4, BorderStyle.DASHED).enabled is False

    def test_side_shorter_than_two_dashes_and_gap_scales(self):
        pattern = dash_pattern(18, 4, BorderStyle.DASHED)
        assert pattern.enabled
        assert pattern.dash == pytest.approx(7.2)
        assert pattern.gap == pytest.approx(3.6)

    def test_dotted_distribution(self):
        pattern = dash_pattern(100, 2, BorderStyle.DOTTED)
        assert pattern.dash == 2
        assert pattern.gap == pytest.approx(1.92)

    def test_gap_chosen_closest_to_nominal(self):
        pattern = dash_pattern(105, 4, BorderStyle.DASHED)
        count = (105 + pattern.gap) / (pattern.dash + pattern.gap)
        assert count == pytest.approx(round(count))
        assert abs(pattern.gap - 4) <= 1.5
