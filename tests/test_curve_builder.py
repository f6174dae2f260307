"""Tests for the curve builders and the curve algorithm dispatcher."""

import pytest
from dataclasses import dataclass
from math import pi, sqrt
from typing import ClassVar

from geokern import geom
from geokern.curve_algo import LineAlgo, ArcAlgo, NurbsAlgo
from geokern.curve_builder import (curve_algorithm, register_curve, line_from_begin_end,
                                   line_from_point_and_vector, line3_from_begin_end,
                                   circle_from_center_radius, circle_from_center_begin,
                                   circle_from_three_points, ellipse_from_center_begin_end,
                                   circle3_from_three_points, hyperbola_from_center_ab,
                                   parabola_from_center_focus, conic_from_coefficients,
                                   clamped_uniform_knots, nurbs_from_controls,
                                   nurbs_from_fitting_points)
from geokern.curve_data import CurveData, LineData, ArcData, NurbsData, CURVE_KINDS
from geokern.errors import DegenerateGeometryError, UnsupportedCurveTypeError


def vnear(a, b, tol=1e-9):
    return all(abs(a[i] - b[i]) < tol for i in range(3))


@dataclass(frozen=True)
class SpiralData(CurveData):
    kind: ClassVar[str] = 'spiral'


class TestDispatch:
    """Test curve_algorithm."""

    def test_every_kind_registered(self):
        assert set(CURVE_KINDS) == {'line', 'arc', 'hyperbola', 'parabola', 'nurbs', 'conic'}

    def test_algorithm_classes(self):
        assert isinstance(curve_algorithm(LineData()), LineAlgo)
        assert isinstance(curve_algorithm(ArcData()), ArcAlgo)

    def test_cached(self):
        data = circle_from_center_radius([1, 2], 3.0)
        assert curve_algorithm(data) is curve_algorithm(data)

    def test_unknown_kind(self):
        with pytest.raises(UnsupportedCurveTypeError) as err:
            curve_algorithm(SpiralData())
        assert err.value.details['kind'] == 'spiral'

    def test_register_rejects_non_algorithm(self):
        with pytest.raises(ValueError):
            register_curve('spiral', object)


class TestLines:
    """Test the line builders."""

    def test_begin_end(self):
        data = line_from_begin_end([1, 1], [4, 5])
        assert data.length == pytest.approx(5.0)
        algo = curve_algorithm(data)
        assert vnear(algo.p(0.0), [1, 1, 0])
        assert vnear(algo.p(5.0), [4, 5, 0])

    def test_z_ignored(self):
        data = line_from_begin_end([0, 0, 3], [1, 0, 3])
        assert data.transform.is_planar

    def test_point_and_vector(self):
        data = line_from_point_and_vector([1, 0], [0, 2])
        assert data.length == pytest.approx(2.0)
        assert vnear(curve_algorithm(data).p(2.0), [1, 2, 0])
        assert line_from_point_and_vector([0, 0], [1, 0], 10.0).length == 10.0

    def test_degenerate(self):
        with pytest.raises(DegenerateGeometryError):
            line_from_begin_end([1, 1], [1, 1])
        with pytest.raises(DegenerateGeometryError):
            line_from_point_and_vector([0, 0], [0, 0])
        with pytest.raises(DegenerateGeometryError):
            line3_from_begin_end([1, 1, 1], [1, 1, 1])


class TestCircles:
    """Test the circle and ellipse builders."""

    def test_center_radius(self):
        data = circle_from_center_radius([1, 2], 3.0)
        assert data.is_circle
        assert data.radius_x == 3.0
        with pytest.raises(DegenerateGeometryError):
            circle_from_center_radius([0, 0], 0.0)

    def test_center_begin(self):
        """u = 0 sits on the begin point."""
        data = circle_from_center_begin([1, 1], [1, 3])
        assert data.radius_x == pytest.approx(2.0)
        assert vnear(curve_algorithm(data).p(0.0), [1, 3, 0])

    def test_three_points(self):
        data = circle_from_three_points([0, 0], [1, 0], [0, 1])
        assert abs(data.radius_x - sqrt(2)/2) < 1e-12
        center = data.transform.to_world([0, 0])
        assert vnear(center, [0.5, 0.5, 0])

    def test_three_points_lie_on_circle(self):
        pts = [[3, 1], [-2, 4], [0, -5]]
        algo = curve_algorithm(circle_from_three_points(*pts))
        for p in pts:
            assert abs(algo.g(p)) < 1e-12

    def test_collinear(self):
        with pytest.raises(DegenerateGeometryError) as err:
            circle_from_three_points([0, 0], [1, 1], [2, 2])
        assert 'determinant' in err.value.details

    def test_ellipse(self):
        data = ellipse_from_center_begin_end([1, 1], [5, 1], [1, 3])
        assert data.radius_x == pytest.approx(4.0)
        assert data.radius_y == pytest.approx(2.0)
        assert not data.is_circle
        algo = curve_algorithm(data)
        assert vnear(algo.p(0.0), [5, 1, 0])
        assert vnear(algo.p(pi/2), [1, 3, 0])

    def test_flat_ellipse(self):
        with pytest.raises(DegenerateGeometryError):
            ellipse_from_center_begin_end([0, 0], [2, 0], [1, 0])

    def test_spatial_three_points(self):
        pts = [[1, 0, 0], [0, 1, 0], [0, 0, 1]]
        data = circle3_from_three_points(*pts)
        algo = curve_algorithm(data)
        center = data.transform.to_world([0, 0, 0])
        assert vnear(center, [1/3, 1/3, 1/3])
        for u in (0.0, 2.0, 4.0):
            assert abs(geom.dist(algo.p(u), center) - data.radius_x) < 1e-12
        with pytest.raises(DegenerateGeometryError):
            circle3_from_three_points([0, 0, 0], [1, 1, 1], [2, 2, 2])


class TestConics:
    """Test the hyperbola, parabola and conic builders."""

    def test_hyperbola(self):
        data = hyperbola_from_center_ab([0, 0], [2, 0], [0, 1])
        assert (data.radius_x, data.radius_y) == (2.0, 1.0)
        assert vnear(curve_algorithm(data).p(0.0), [2, 0, 0])
        with pytest.raises(DegenerateGeometryError):
            hyperbola_from_center_ab([0, 0], [2, 0], [3, 0])

    def test_parabola(self):
        data = parabola_from_center_focus([1, 1], [1, 3])
        assert data.focus == pytest.approx(2.0)
        with pytest.raises(DegenerateGeometryError):
            parabola_from_center_focus([1, 1], [1, 1])

    def test_conic(self):
        data = conic_from_coefficients(1, 0, 4, 0, 0, -4)
        assert data.coefficients == (1, 0, 4, 0, 0, -4)
        with pytest.raises(DegenerateGeometryError):
            conic_from_coefficients(0, 0, 0, 1, 1, 0)


class TestNurbs:
    """Test the NURBS builders."""

    def test_clamped_knots(self):
        assert clamped_uniform_knots(4, 3) == (0, 0, 0, 0, 1, 1, 1, 1)
        assert clamped_uniform_knots(5, 2) == (0, 0, 0, 1/3, 2/3, 1, 1, 1)

    def test_from_controls(self):
        data = nurbs_from_controls([[0, 0, 0, 1], [1, 1, 0, 1], [2, 0, 0, 1]], degree=2)
        assert isinstance(data, NurbsData)
        assert data.controls == ((0.0, 0.0), (1.0, 1.0), (2.0, 0.0))
        algo = curve_algorithm(data)
        assert isinstance(algo, NurbsAlgo)
        assert vnear(algo.p(1.0), [2, 0, 0])

    def test_spatial_controls(self):
        data = nurbs_from_controls([(0, 0, 0), (1, 1, 1), (2, 0, 2)], degree=2)
        assert len(data.controls[0]) == 3
        assert vnear(curve_algorithm(data).p(1.0), [2, 0, 2])

    def test_bad_controls(self):
        with pytest.raises(DegenerateGeometryError):
            nurbs_from_controls([(0, 0)])
        with pytest.raises(DegenerateGeometryError):
            nurbs_from_controls([(0, 0), (1, 1)], degree=3)

    def test_fitting(self):
        pts = [(0, 0), (1, 1), (2, 0), (3, 1), (4, 0)]
        algo = curve_algorithm(nurbs_from_fitting_points(pts))
        assert vnear(algo.p(0.0), [0, 0, 0], 1e-9)
        assert vnear(algo.p(1.0), [4, 0, 0], 1e-9)
        for p in pts:
            assert abs(algo.g(p)) < 1e-6
