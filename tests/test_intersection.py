"""Tests for the curve-curve intersection engine."""

import pytest
from math import pi, sqrt

from geokern import geom
from geokern.curve_builder import (curve_algorithm, line_from_begin_end, line3_from_begin_end,
                                   circle_from_center_radius, hyperbola_from_center_ab,
                                   parabola_from_center_focus, conic_from_coefficients,
                                   nurbs_from_controls, circle3_from_center_normal_radius)
from geokern.errors import UnsupportedCurveTypeError
from geokern.intersection import (Intersection, line_x_line, line_x_line_3d, line_x_conic,
                                  conic_x_conic,
                                  curve_x_curve, line_x_arc, arc_x_arc, line_x_nurbs,
                                  arc_x_nurbs, nurbs_x_nurbs, intersect)


def vnear(a, b, tol=1e-9):
    return all(abs(a[i] - b[i]) < tol for i in range(3))


class TestLineLine:
    """Test the analytic line solvers."""

    def test_crossing(self):
        c0 = line_from_begin_end([0, 0], [20, 20])
        c1 = line_from_begin_end([0, 20], [20, 0])
        res = line_x_line(c0, c1)
        assert len(res) == 1
        assert vnear(res[0].point, [10, 10, 0])
        assert abs(res[0].u0 - 10*sqrt(2)) < 1e-9
        assert abs(res[0].u1 - 10*sqrt(2)) < 1e-9

    def test_parallel(self):
        c0 = line_from_begin_end([0, 0], [10, 0])
        c1 = line_from_begin_end([0, 1], [10, 1])
        assert line_x_line(c0, c1) == []

    def test_beyond_segment_end(self):
        """The infinite lines are intersected, parameters are not clipped."""
        c0 = line_from_begin_end([0, 0], [1, 0])
        c1 = line_from_begin_end([5, -1], [5, 1])
        res = line_x_line(c0, c1)
        assert len(res) == 1
        assert vnear(res[0].point, [5, 0, 0])
        assert abs(res[0].u0 - 5.0) < 1e-9
        assert abs(res[0].u1 - 1.0) < 1e-9

    def test_before_segment_begin(self):
        c0 = line_from_begin_end([0, 0], [1, 0])
        c1 = line_from_begin_end([-3, 1], [-3, 2])
        res = line_x_line(c0, c1)
        assert abs(res[0].u0 + 3.0) < 1e-9
        assert abs(res[0].u1 + 1.0) < 1e-9

    def test_spatial(self):
        c0 = line3_from_begin_end([0, 0, 0], [2, 2, 2])
        c1 = line3_from_begin_end([2, 0, 0], [0, 2, 2])
        res = line_x_line_3d(c0, c1)
        assert len(res) == 1
        assert vnear(res[0].point, [1, 1, 1], 1e-9)
        assert abs(res[0].u0 - sqrt(3)) < 1e-9

    def test_spatial_beyond_segment_end(self):
        c0 = line3_from_begin_end([0, 0, 0], [1, 1, 1])
        c1 = line3_from_begin_end([2, 0, 0], [2, 0, 1])
        res = line_x_line_3d(c0, c1)
        assert res == []
        c2 = line3_from_begin_end([2, 2, 0], [2, 2, 1])
        res = line_x_line_3d(c0, c2)
        assert len(res) == 1
        assert vnear(res[0].point, [2, 2, 2], 1e-9)
        assert abs(res[0].u0 - 2*sqrt(3)) < 1e-9
        assert abs(res[0].u1 - 2.0) < 1e-9

    def test_spatial_skew(self):
        c0 = line3_from_begin_end([0, 0, 0], [1, 0, 0])
        c1 = line3_from_begin_end([0, 0, 1], [0, 1, 1])
        assert line_x_line_3d(c0, c1) == []


class TestLineConic:
    """Test the closed-form line/conic solver."""

    def test_line_circle(self):
        line = line_from_begin_end([-5, 0], [5, 0])
        circle = circle_from_center_radius([0, 0], 2.0)
        res = line_x_conic(line, circle)
        assert [round(x.u0, 9) for x in res] == [3.0, 7.0]
        assert vnear(res[0].point, [-2, 0, 0])
        assert abs(res[0].u1 - pi) < 1e-9

    def test_line_hyperbola(self):
        line = line_from_begin_end([-5, 0], [5, 0])
        hyp = hyperbola_from_center_ab([0, 0], [2, 0], [0, 1])
        res = line_x_conic(line, hyp)
        assert len(res) == 2
        assert vnear(res[0].point, [-2, 0, 0])
        assert abs(res[0].u1 - pi) < 1e-9
        assert abs(res[1].u1) < 1e-9

    def test_line_parabola(self):
        line = line_from_begin_end([-5, 1], [5, 1])
        para = parabola_from_center_focus([0, 0], [0, 1])
        res = line_x_conic(line, para)
        assert len(res) == 2
        assert vnear(res[0].point, [-2, 1, 0])
        assert vnear(res[1].point, [2, 1, 0])

    def test_tangent_line(self):
        """A tangent line gives the repeated root once."""
        line = line_from_begin_end([-5, 2], [5, 2])
        circle = circle_from_center_radius([0, 0], 2.0)
        res = line_x_conic(line, circle, tol=1e-6)
        assert len(res) == 1
        assert vnear(res[0].point, [0, 2, 0], 1e-6)

    def test_miss(self):
        line = line_from_begin_end([-5, 5], [5, 5])
        assert line_x_conic(line, conic_from_coefficients(1, 0, 1, 0, 0, -1)) == []


class TestConicConic:
    """Test the pencil solver for conic pairs."""

    def test_circle_hyperbola(self):
        circle = circle_from_center_radius([0, 0], 3.0)
        hyp = hyperbola_from_center_ab([0, 0], [1, 0], [0, 1])
        res = conic_x_conic(circle, hyp)
        assert len(res) == 4
        ca = curve_algorithm(circle)
        ha = curve_algorithm(hyp)
        for x in res:
            assert abs(x.point[0]**2 - 5.0) < 1e-8
            assert abs(x.point[1]**2 - 4.0) < 1e-8
            assert vnear(ca.p(x.u0), x.point, 1e-8)
            assert vnear(ha.p(x.u1), x.point, 1e-8)
        assert [x.u0 for x in res] == sorted(x.u0 for x in res)
        # both branches of the hyperbola
        assert vnear(res[0].point, [sqrt(5), 2, 0], 1e-8)
        assert vnear(res[1].point, [-sqrt(5), 2, 0], 1e-8)

    def test_circle_parabola(self):
        circle = circle_from_center_radius([0, 0], sqrt(5))
        para = parabola_from_center_focus([0, 0], [0, 1])
        res = conic_x_conic(circle, para)
        assert len(res) == 2
        assert vnear(res[0].point, [2, 1, 0], 1e-8)
        assert vnear(res[1].point, [-2, 1, 0], 1e-8)
        assert abs(res[0].u1 - 2.0) < 1e-8
        assert abs(res[1].u1 + 2.0) < 1e-8

    def test_opposed_parabolas(self):
        up = parabola_from_center_focus([0, 0], [0, 1])
        down = parabola_from_center_focus([0, 3], [0, 2])
        res = conic_x_conic(up, down)
        assert len(res) == 2
        assert vnear(res[0].point, [-sqrt(6), 1.5, 0], 1e-8)
        assert vnear(res[1].point, [sqrt(6), 1.5, 0], 1e-8)

    def test_general_conics(self):
        ellipse = conic_from_coefficients(1, 0, 4, 0, 0, -4)
        circle = conic_from_coefficients(1, 0, 1, 0, 0, -2)
        res = conic_x_conic(ellipse, circle)
        assert len(res) == 4
        for x in res:
            assert abs(x.point[0]**2 - 4/3) < 1e-8
            assert abs(x.point[1]**2 - 2/3) < 1e-8
            assert abs(x.u0 - x.point[0]) < 1e-12

    def test_disjoint(self):
        circle = circle_from_center_radius([0, 0], 0.5)
        hyp = hyperbola_from_center_ab([0, 0], [1, 0], [0, 1])
        assert conic_x_conic(circle, hyp) == []

    def test_concentric_circles(self):
        c0 = circle_from_center_radius([1, 1], 1.0)
        c1 = circle_from_center_radius([1, 1], 2.0)
        assert conic_x_conic(c0, c1) == []

    def test_spatial_conic(self):
        circle = circle3_from_center_normal_radius([0, 0, 0], [1, 0, 0], 1.0)
        hyp = hyperbola_from_center_ab([0, 0], [1, 0], [0, 1])
        with pytest.raises(ValueError):
            conic_x_conic(circle, hyp)


class TestCurveXCurve:
    """Test the sampling + bisection intersector."""

    def test_line_circle(self):
        circle = circle_from_center_radius([0, 0], 10.0)
        line = line_from_begin_end([0, 0], [20, 20])
        res = line_x_arc(line, circle)
        assert len(res) == 1
        assert abs(geom.mag(res[0].point) - 10.0) < 1e-8
        assert abs(res[0].u1 - pi/4) < 1e-8

    def test_two_circles(self):
        c0 = circle_from_center_radius([0, 0], 1.0)
        c1 = circle_from_center_radius([1, 0], 1.0)
        res = arc_x_arc(c0, c1)
        assert len(res) == 2
        assert res[0].u0 < res[1].u0
        assert vnear(res[0].point, [0.5, sqrt(3)/2, 0], 1e-8)
        assert vnear(res[1].point, [0.5, -sqrt(3)/2, 0], 1e-8)
        assert abs(res[0].u1 - 2*pi/3) < 1e-7

    def test_disjoint_circles(self):
        c0 = circle_from_center_radius([0, 0], 1.0)
        c1 = circle_from_center_radius([5, 0], 1.0)
        assert arc_x_arc(c0, c1) == []

    def test_explicit_domain(self):
        para = parabola_from_center_focus([0, 0], [0, 1])
        line = line_from_begin_end([-5, 1], [5, 1])
        res = curve_x_curve(para, line, 8, domain=(-4.0, 4.0))
        assert [round(x.u0, 9) for x in res] == [-2.0, 2.0]
        assert abs(res[0].u1 - 3.0) < 1e-9

    def test_unbounded_needs_domain(self):
        para = parabola_from_center_focus([0, 0], [0, 1])
        line = line_from_begin_end([-5, 1], [5, 1])
        with pytest.raises(ValueError):
            curve_x_curve(para, line, 8)

    def test_bad_segments(self):
        line = line_from_begin_end([0, 0], [1, 0])
        with pytest.raises(ValueError):
            curve_x_curve(line, line, 0)

    def test_line_above_circle_plane(self):
        """A line crossing the cylinder over a circle does not hit the circle."""
        circle = circle3_from_center_normal_radius([0, 0, 0], [0, 0, 1], 1.0)
        line = line3_from_begin_end([-2, 0, 5], [2, 0, 5])
        assert line_x_arc(line, circle) == []
        assert intersect(line, circle) == []
        assert intersect(circle, line) == []

    def test_line_in_circle_plane(self):
        circle = circle3_from_center_normal_radius([0, 0, 0], [0, 0, 1], 1.0)
        line = line3_from_begin_end([-2, 0, 0], [2, 0, 0])
        res = line_x_arc(line, circle)
        assert len(res) == 2
        assert vnear(res[0].point, [-1, 0, 0], 1e-8)
        assert vnear(res[1].point, [1, 0, 0], 1e-8)

    def test_tilted_circle(self):
        circle = circle3_from_center_normal_radius([0, 0, 0], [1, 0, 0], 1.0)
        res = line_x_arc(line3_from_begin_end([0, -2, 0], [0, 2, 0]), circle)
        assert [round(x.u0, 6) for x in res] == [1.0, 3.0]
        assert vnear(res[0].point, [0, -1, 0], 1e-8)
        assert vnear(res[1].point, [0, 1, 0], 1e-8)
        # same line shifted out of the circle plane
        assert line_x_arc(line3_from_begin_end([0.5, -2, 0], [0.5, 2, 0]), circle) == []

    def test_spatial_nurbs_has_no_sides(self):
        planar = nurbs_from_controls([(0, 0), (1, 1), (2, 0)], degree=2)
        spatial = nurbs_from_controls([(0, 0, 0), (1, 1, 1), (2, 0, 1)], degree=2)
        with pytest.raises(UnsupportedCurveTypeError):
            curve_x_curve(planar, spatial, 8)
        with pytest.raises(UnsupportedCurveTypeError):
            nurbs_x_nurbs(planar, spatial)


class TestNurbsIntersections:
    """Test the NURBS pairings."""

    def test_line_nurbs(self):
        line = line_from_begin_end([-5, 0], [5, 0])
        nurbs = nurbs_from_controls([(0, -5), (0, 5)], degree=1)
        res = line_x_nurbs(line, nurbs)
        assert len(res) == 1
        assert vnear(res[0].point, [0, 0, 0], 1e-8)
        assert abs(res[0].u0 - 5.0) < 1e-8
        assert abs(res[0].u1 - 0.5) < 1e-8

    def test_arc_nurbs(self):
        circle = circle_from_center_radius([0, 0], 1.0)
        nurbs = nurbs_from_controls([(-2, 0.5), (2, 0.5)], degree=1)
        res = arc_x_nurbs(circle, nurbs)
        assert len(res) == 2
        for x in res:
            assert abs(geom.mag(x.point) - 1.0) < 1e-8
            assert abs(x.point[1] - 0.5) < 1e-8
        # ordered by the NURBS parameter
        assert res[0].u1 < res[1].u1

    def test_nurbs_nurbs(self):
        c0 = nurbs_from_controls([(0, 0), (1, 1), (2, 1), (4, 4)], degree=3)
        c1 = nurbs_from_controls([(0, 4), (4, 0)], degree=1)
        res = nurbs_x_nurbs(c0, c1)
        assert len(res) == 1
        p = res[0].point
        assert abs(p[0] + p[1] - 4.0) < 1e-6
        assert vnear(curve_algorithm(c0).p(res[0].u0), p, 1e-6)
        assert vnear(curve_algorithm(c1).p(res[0].u1), p, 1e-6)


class TestDispatch:
    """Test intersect()."""

    def test_caller_order(self):
        circle = circle_from_center_radius([0, 0], 10.0)
        line = line_from_begin_end([0, 0], [20, 20])
        res = intersect(circle, line)
        assert len(res) == 1
        assert abs(res[0].u0 - pi/4) < 1e-8
        assert abs(res[0].u1 - 10.0) < 1e-6

    def test_line_pairs(self):
        c0 = line_from_begin_end([0, 0], [20, 20])
        c1 = line_from_begin_end([0, 20], [20, 0])
        assert vnear(intersect(c0, c1)[0].point, [10, 10, 0])
        s0 = line3_from_begin_end([0, 0, 0], [2, 2, 2])
        s1 = line3_from_begin_end([2, 0, 0], [0, 2, 2])
        assert vnear(intersect(s0, s1)[0].point, [1, 1, 1], 1e-9)

    def test_unknown_pair(self):
        hyp = hyperbola_from_center_ab([0, 0], [2, 0], [0, 1])
        nurbs = nurbs_from_controls([(0, 0), (1, 1), (2, 0)], degree=2)
        with pytest.raises(UnsupportedCurveTypeError):
            intersect(nurbs, hyp)
        with pytest.raises(UnsupportedCurveTypeError):
            intersect(hyp, nurbs)

    def test_conic_pairs(self):
        circle = circle_from_center_radius([0, 0], 3.0)
        hyp = hyperbola_from_center_ab([0, 0], [1, 0], [0, 1])
        assert len(intersect(circle, hyp)) == 4
        res = intersect(hyp, circle)
        assert len(res) == 4
        ha = curve_algorithm(hyp)
        ca = curve_algorithm(circle)
        for x in res:
            assert vnear(ha.p(x.u0), x.point, 1e-8)
            assert vnear(ca.p(x.u1), x.point, 1e-8)

    def test_swapped(self):
        x = Intersection([1, 2, 0, 1], 0.25, 0.75)
        assert x.swapped() == Intersection([1, 2, 0, 1], 0.75, 0.25)
