"""Tests for the geometry kernel and scaling helpers."""

import math

import pytest

from landsub.core.geometry.kernel import (
    area,
    bounds,
    centroid,
    close_ring,
    convex_hull,
    edges,
    left_normal,
    orient_ccw,
    perimeter,
    point_segment_projection,
    segments_intersect_or_touch,
    signed_area,
)
from landsub.core.geometry.transform import (
    scale_factor_for_area,
    scale_polygon,
    scale_polygon_to_area,
    transform_point,
)

SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10)]


def rect(w, h, x0=0.0, y0=0.0):
    return [(x0, y0), (x0 + w, y0), (x0 + w, y0 + h), (x0, y0 + h)]


class TestArea:
    @pytest.mark.parametrize("w,h", [(1, 1), (10, 4), (3.5, 120), (0.2, 0.3)])
    def test_rectangle_area_any_start_and_winding(self, w, h):
        poly = rect(w, h, x0=7, y0=-3)
        for k in range(4):
            rotated = poly[k:] + poly[:k]
            assert area(rotated) == pytest.approx(w * h)
            assert area(list(reversed(rotated))) == pytest.approx(w * h)

    def test_signed_area_positive_for_ccw(self):
        assert signed_area(SQUARE) == pytest.approx(100)
        assert signed_area(list(reversed(SQUARE))) == pytest.approx(-100)

    def test_fewer_than_three_points_is_zero(self):
        assert area([]) == 0
        assert area([(1, 1)]) == 0
        assert area([(0, 0), (5, 5)]) == 0

    def test_perimeter(self):
        assert perimeter(SQUARE) == pytest.approx(40)
        assert perimeter(SQUARE, closed=False) == pytest.approx(30)


class TestCentroid:
    def test_square(self):
        assert centroid(SQUARE) == pytest.approx((5, 5))

    def test_triangle(self):
        cx, cy = centroid([(0, 0), (6, 0), (0, 6)])
        assert cx == pytest.approx(2)
        assert cy == pytest.approx(2)

    def test_collinear_falls_back_to_vertex_mean(self):
        assert centroid([(0, 0), (5, 0), (10, 0)]) == pytest.approx((5, 0))

    def test_two_points_and_empty(self):
        assert centroid([(0, 0), (4, 2)]) == pytest.approx((2, 1))
        assert centroid([]) == (0.0, 0.0)


class TestRings:
    def test_orient_ccw_reverses_clockwise(self):
        cw = list(reversed(SQUARE))
        assert signed_area(orient_ccw(cw)) > 0

    def test_close_ring_repeats_first(self):
        ring = close_ring(SQUARE)
        assert ring[0] == ring[-1]
        assert len(ring) == 5

    def test_close_ring_is_idempotent(self):
        assert close_ring(close_ring(SQUARE)) == close_ring(SQUARE)

    def test_edges_open_and_closed(self):
        assert len(edges(SQUARE)) == 4
        assert len(edges(SQUARE, closed=False)) == 3
        assert edges([(0, 0)]) == []
        assert len(edges([(0, 0), (1, 0)])) == 1


class TestConvexHull:
    def test_drops_interior_points(self):
        pts = SQUARE + [(5, 5), (2, 3)]
        hull = convex_hull(pts)
        assert sorted(hull) == sorted(SQUARE)
        assert signed_area(hull) > 0

    def test_strips_closing_point(self):
        hull = convex_hull(SQUARE + [SQUARE[0]])
        assert len(hull) == 4

    @pytest.mark.parametrize("pts", [[], [(1, 2)], [(0, 0), (3, 4)]])
    def test_degenerate_inputs_unchanged(self, pts):
        assert convex_hull(pts) == pts


class TestSegments:
    def test_projection_interior(self):
        info = point_segment_projection((5, 2), (0, 0), (10, 0))
        assert info.proj == pytest.approx((5, 0))
        assert info.squared_distance == pytest.approx(4)
        assert info.t == pytest.approx(0.5)

    def test_projection_clamped(self):
        info = point_segment_projection((-3, 4), (0, 0), (10, 0))
        assert info.proj == (0, 0)
        assert info.t == 0.0
        assert info.distance == pytest.approx(5)

    def test_projection_zero_length_segment(self):
        info = point_segment_projection((3, 4), (0, 0), (0, 0))
        assert info.proj == (0, 0)
        assert info.squared_distance == pytest.approx(25)

    def test_proper_crossing(self):
        assert segments_intersect_or_touch((0, 0), (10, 10), (0, 10), (10, 0))

    def test_endpoint_touch(self):
        assert segments_intersect_or_touch((0, 0), (5, 0), (5, 0), (5, 5))

    def test_collinear_overlap(self):
        assert segments_intersect_or_touch((0, 0), (5, 0), (3, 0), (8, 0))

    def test_disjoint(self):
        assert not segments_intersect_or_touch((0, 0), (5, 0), (0, 1), (5, 1))
        assert not segments_intersect_or_touch((0, 0), (5, 0), (6, 0), (8, 0))

    def test_left_normal(self):
        assert left_normal((0, 0), (10, 0)) == pytest.approx((0, 1))
        assert left_normal((0, 0), (0, 0)) is None

    def test_bounds(self):
        assert bounds(SQUARE) == (0, 0, 10, 10)
        assert bounds([]) is None


class TestScaling:
    def test_transform_point(self):
        assert transform_point((2, 2), 3, 1, 1) == pytest.approx((4, 4))

    @pytest.mark.parametrize("s", [0.1, 0.5, 2, 3.7])
    def test_area_scales_quadratically(self, s):
        poly = [(0, 0), (8, 1), (9, 7), (3, 9), (-1, 4)]
        scaled = scale_polygon(poly, s, (2.5, -1))
        assert area(scaled) == pytest.approx(s * s * area(poly))

    def test_scale_to_area(self):
        scaled = scale_polygon_to_area(SQUARE, 200)
        assert area(scaled) == pytest.approx(200, abs=1e-6)
        assert centroid(scaled) == pytest.approx((5, 5))

    def test_scale_to_area_degenerate_unchanged(self):
        line = [(0, 0), (5, 0), (10, 0)]
        assert scale_polygon_to_area(line, 100) == line
        assert scale_polygon_to_area(SQUARE, 0) == SQUARE
        assert scale_polygon_to_area(SQUARE, -5) == SQUARE

    def test_scale_factor(self):
        assert scale_factor_for_area(100, 400) == pytest.approx(2)
        assert scale_factor_for_area(0, 400) is None
        assert scale_factor_for_area(100, math.inf) is None
