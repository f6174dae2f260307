"""Parametric curve algorithms.

An algorithm is bound to one immutable curve data record (see
:mod:`geokern.curve_data`) and evaluates it:

- ``p(u)``: position, always identical to ``d(u, 0)``
- ``d(u, r)``: r-th derivative, or :class:`UnsupportedDerivativeOrderError`
- ``u(point)``: parameter of a point that lies on the curve
- ``g(point)``: value of the implicit ("general") equation, zero on the curve
- ``tg``, ``n``, ``k``, ``r``: unit tangent, second derivative, curvature and
  radius of curvature
- ``tn`` / ``tbn``: orthonormal 2D / 3D frames from Gram-Schmidt on the first
  two derivatives

Evaluation happens in the curve's local frame.  Positions are mapped to world
space with the full transform, derivative vectors with its rotation part
only.  The same classes serve planar and spatial curves; a planar transform
keeps everything in the ``z = 0`` plane.

``u(point)`` does **not** check that ``point`` lies on the curve.  For an
off-curve point the result is some parameter, not an error.  Callers that
need the guarantee must test ``g(point)`` (or the distance to ``p(u)``)
themselves.

Copyright (c) 2025 geokern contributors
MIT License
"""

from __future__ import annotations

from math import acos, asin, copysign, cos, hypot, sin, sqrt, inf, pi
from typing import Optional, Tuple

import numpy as np

from geokern import geom
from geokern.curve_data import (CurveData, LineData, ArcData, HyperbolaData,
                                ParabolaData, NurbsData, ConicData)
from geokern.errors import (DegenerateGeometryError, UnsupportedDerivativeOrderError,
                            UnsupportedCurveTypeError)
from geokern.nurbs import NurbsCurveEvaluator
from geokern.precision import highprec, to_float, mpf, sec, tan, atan, pi as mp_pi
from geokern.tolerances import Tolerances

__all__ = ['CurveAlgo', 'LineAlgo', 'ArcAlgo', 'HyperbolaAlgo', 'ParabolaAlgo',
           'ConicAlgo', 'NurbsAlgo', 'conic_coefficients']

Domain = Optional[Tuple[float, float]]

# below this |d1| counts as zero
_TINY = 1e-300

# below this the normal component of d2 counts as zero
_FLAT = 1e-20


def _clamp1(x):
    return max(-1.0, min(1.0, x))


class CurveAlgo:
    """Base class of all curve algorithms."""

    def __init__(self, data: CurveData):
        self.data = data
        world = data.transform.world()
        self._world = world
        self._linear = world.linear()
        self._inverse = world.rigid_inverse()

    @property
    def kind(self) -> str:
        return self.data.kind

    @property
    def domain(self) -> Domain:
        """Natural parameter interval, or ``None`` for unbounded curves."""
        return None

    def _local(self, u: float, r: int):
        raise NotImplementedError

    def _to_local(self, p) -> list:
        return self._inverse.mul(geom.point(p))

    def d(self, u: float, r: int = 0) -> list:
        """The r-th derivative at ``u``; ``r = 0`` gives the position."""
        if r < 0:
            raise UnsupportedDerivativeOrderError(self.kind, r)
        x, y, z = self._local(u, r)
        if r == 0:
            return self._world.mul([x, y, z, 1.0])
        return self._linear.mul([x, y, z, 1.0])

    def p(self, u: float) -> list:
        return self.d(u, 0)

    def u(self, point) -> float:
        raise NotImplementedError

    def g(self, point) -> float:
        """Implicit equation value; zero exactly on the curve.

        Planar equations only constrain local x and y, so the local z offset
        is folded in with :meth:`_lift`.
        """
        raise NotImplementedError

    @property
    def signed_g(self) -> bool:
        """True when ``g`` changes sign across the curve."""
        return True

    def plane_offset(self, point) -> float:
        """Local z of *point*, its distance from the curve plane."""
        return self._to_local(point)[2]

    @staticmethod
    def _lift(value, lp):
        z = lp[2]
        if z == 0.0:
            return value
        return copysign(hypot(value, z), value)

    def tg(self, u: float) -> list:
        return geom.normalize(self.d(u, 1))

    def n(self, u: float) -> list:
        return self.d(u, 2)

    def k(self, u: float) -> float:
        """Curvature ``|d1 x d2| / |d1|^3``."""
        d1 = self.d(u, 1)
        d2 = self.d(u, 2)
        m = geom.mag(d1)
        if m < _TINY:
            raise DegenerateGeometryError('curvature undefined where the first derivative vanishes',
                                          {'kind': self.kind, 'u': u})
        return geom.mag(geom.cross(d1, d2))/(m*m*m)

    def r(self, u: float) -> float:
        k = self.k(u)
        if k == 0.0:
            return inf
        return 1.0/k

    def _frame(self, u):
        t = self.tg(u)
        d2 = self.d(u, 2)
        nv = geom.sub(d2, geom.scale3(t, geom.dot(d2, t)))
        if geom.mag(nv) > _FLAT:
            return t, geom.normalize(nv), True
        return t, None, False

    def tn(self, u: float):
        """Planar frame ``(tangent, normal)``.

        Where the curve does not bend the normal is the tangent turned by
        +90 degrees in the XY plane.
        """
        t, nv, ok = self._frame(u)
        if not ok:
            nv = geom.orthoXY(t)
        return t, nv

    def tbn(self, u: float):
        """Spatial frame ``(tangent, normal, binormal)`` with ``b = t x n``."""
        t, nv, ok = self._frame(u)
        if not ok:
            helper = [0.0, 0.0, 1.0, 1.0]
            if abs(geom.dot(t, helper)) > 0.9:
                helper = [1.0, 0.0, 0.0, 1.0]
            nv = geom.normalize(geom.cross(helper, t))
        return t, nv, geom.cross(t, nv)


class LineAlgo(CurveAlgo):
    """Line along the local x axis, ``u`` is arc length from the origin."""

    data: LineData

    @property
    def domain(self) -> Domain:
        if self.data.length == inf:
            return None
        return (0.0, self.data.length)

    def _local(self, u, r):
        if r == 0:
            return (u, 0.0, 0.0)
        if r == 1:
            return (1.0, 0.0, 0.0)
        return (0.0, 0.0, 0.0)

    def u(self, point) -> float:
        # signed distance from the origin along the direction
        return self._to_local(point)[0]

    def g(self, point) -> float:
        lp = self._to_local(point)
        return self._lift(lp[1], lp)


class ArcAlgo(CurveAlgo):
    """Circle or ellipse ``(radius_x cos u, radius_y sin u)``, ``u`` in ``[0, 2pi)``."""

    data: ArcData

    @property
    def domain(self) -> Domain:
        return (0.0, geom.pi2)

    def _local(self, u, r):
        a = self.data.radius_x
        b = self.data.radius_y
        c = cos(u)
        s = sin(u)
        q = r % 4
        if q == 0:
            return (a*c, b*s, 0.0)
        if q == 1:
            return (-a*s, b*c, 0.0)
        if q == 2:
            return (-a*c, -b*s, 0.0)
        return (a*s, -b*c, 0.0)

    def u(self, point) -> float:
        lp = self._to_local(point)
        a = acos(_clamp1(lp[0]/self.data.radius_x))
        b = asin(_clamp1(lp[1]/self.data.radius_y))
        if b >= 0.0:
            return a
        return geom.pi2 - a

    def g(self, point) -> float:
        lp = self._to_local(point)
        x = lp[0]/self.data.radius_x
        y = lp[1]/self.data.radius_y
        return self._lift(x*x + y*y - 1.0, lp)


class HyperbolaAlgo(CurveAlgo):
    """Hyperbola ``(radius_x sec u, radius_y tan u)``.

    ``u`` in ``(-pi/2, pi/2)`` traces the right branch and ``u + pi`` the
    left one.  ``sec`` and ``tan`` amplify rounding error near the
    asymptotes, so all evaluation runs in arbitrary precision and only the
    final local coordinates are cast back to float.
    """

    data: HyperbolaData

    @property
    def domain(self) -> Domain:
        guard = Tolerances.HYPERBOLA_ASYMPTOTE_GUARD
        return (-pi/2 + guard, pi/2 - guard)

    def _local(self, u, r):
        if r > 3:
            raise UnsupportedDerivativeOrderError(self.kind, r)
        with highprec():
            s = sec(mpf(u))
            t = tan(mpf(u))
            a = mpf(self.data.radius_x)
            b = mpf(self.data.radius_y)
            if r == 0:
                x, y = a*s, b*t
            elif r == 1:
                x, y = a*s*t, b*s*s
            elif r == 2:
                x, y = a*(s*t*t + s**3), 2*b*s*s*t
            else:
                x, y = a*(s*t**3 + 5*s**3*t), 2*b*(2*s*s*t*t + s**4)
            return (to_float(x), to_float(y), 0.0)

    def u(self, point) -> float:
        lp = self._to_local(point)
        with highprec():
            phi = atan(mpf(lp[1])/mpf(self.data.radius_y))
            if lp[0] < 0.0:
                phi += mp_pi
            return to_float(phi)

    def g(self, point) -> float:
        lp = self._to_local(point)
        x = lp[0]/self.data.radius_x
        y = lp[1]/self.data.radius_y
        return self._lift(x*x - y*y - 1.0, lp)


class ParabolaAlgo(CurveAlgo):
    """Parabola ``4 f y = x^2`` with its vertex at the origin, ``u`` = local x."""

    data: ParabolaData

    def _local(self, u, r):
        f = self.data.focus
        if r == 0:
            return (u, u*u/(4.0*f), 0.0)
        if r == 1:
            return (1.0, u/(2.0*f), 0.0)
        if r == 2:
            return (0.0, 1.0/(2.0*f), 0.0)
        return (0.0, 0.0, 0.0)

    def u(self, point) -> float:
        return self._to_local(point)[0]

    def g(self, point) -> float:
        lp = self._to_local(point)
        return self._lift(lp[0]*lp[0] - 4.0*self.data.focus*lp[1], lp)


class ConicAlgo(CurveAlgo):
    """General conic parameterized by ``u = x``.

    For each ``x`` the equation is a quadratic in ``y``; the curve follows
    the larger of its two roots.  Derivatives up to order 2 are closed form.
    """

    data: ConicData

    def __init__(self, data: ConicData):
        super().__init__(data)
        A, B, C, D, E, F = data.coefficients
        if C == 0.0:
            raise DegenerateGeometryError('conic with C == 0 cannot be solved for y',
                                          {'coefficients': data.coefficients})
        # discriminant in y as a polynomial in x
        self._alpha = 4.0*B*B - 4.0*A*C
        self._beta = 4.0*B*E - 4.0*C*D
        self._gamma = E*E - 4.0*C*F
        self._sign = 1.0 if C > 0.0 else -1.0

    def _local(self, u, r):
        if r > 2:
            raise UnsupportedDerivativeOrderError(self.kind, r)
        A, B, C, D, E, F = self.data.coefficients
        disc = (self._alpha*u + self._beta)*u + self._gamma
        if disc < 0.0:
            raise DegenerateGeometryError('conic has no real point at x = {}'.format(u),
                                          {'u': u, 'discriminant': disc})
        s = sqrt(disc)
        if r == 0:
            return (u, (-(2.0*B*u + E) + self._sign*s)/(2.0*C), 0.0)
        if s == 0.0:
            raise DegenerateGeometryError('conic tangent is vertical at x = {}'.format(u), {'u': u})
        s1 = (2.0*self._alpha*u + self._beta)/(2.0*s)
        if r == 1:
            return (1.0, (-2.0*B + self._sign*s1)/(2.0*C), 0.0)
        s2 = (self._alpha - s1*s1)/s
        return (0.0, self._sign*s2/(2.0*C), 0.0)

    def u(self, point) -> float:
        return self._to_local(point)[0]

    def g(self, point) -> float:
        A, B, C, D, E, F = self.data.coefficients
        lp = self._to_local(point)
        x, y = lp[0], lp[1]
        return self._lift(A*x*x + 2.0*B*x*y + C*y*y + D*x + E*y + F, lp)


class NurbsAlgo(CurveAlgo):
    """NURBS curve evaluated by :class:`geokern.nurbs.NurbsCurveEvaluator`.

    The evaluator is built once from the immutable data record.  ``u`` is
    the closest parameter; ``g`` is the distance to the curve, signed by the
    side of the tangent for planar curves.
    """

    data: NurbsData

    def __init__(self, data: NurbsData):
        super().__init__(data)
        self.evaluator = NurbsCurveEvaluator(data.degree, data.knots, data.controls, data.weights)

    @property
    def domain(self) -> Domain:
        return self.evaluator.domain

    @property
    def signed_g(self) -> bool:
        # a spatial curve has no sides, its distance never changes sign
        return self.evaluator.dim == 2

    def _local(self, u, r):
        v = self.evaluator.derivatives(u, r)[r]
        return (float(v[0]), float(v[1]), float(v[2]) if len(v) > 2 else 0.0)

    def u(self, point) -> float:
        lp = self._to_local(point)
        return self.evaluator.closest_parameter(lp[:self.evaluator.dim])

    def g(self, point) -> float:
        lp = self._to_local(point)
        uc = self.evaluator.closest_parameter(lp[:self.evaluator.dim])
        c, t = self.evaluator.derivatives(uc, 1)
        delta = np.asarray(lp[:self.evaluator.dim]) - c
        distance = float(np.linalg.norm(delta))
        if self.evaluator.dim == 2:
            side = t[0]*delta[1] - t[1]*delta[0]
            return self._lift(-distance if side < 0.0 else distance, lp)
        return distance

    def length(self, u0: float, u1: float) -> float:
        return self.evaluator.arc_length(max(u0, u1), min(u0, u1))


## implicit conic coefficients
## ---------------------------

def _local_conic(data):
    if isinstance(data, LineData):
        return (0.0, 0.0, 0.0, 0.0, 1.0, 0.0)
    if isinstance(data, ArcData):
        return (1.0/data.radius_x**2, 0.0, 1.0/data.radius_y**2, 0.0, 0.0, -1.0)
    if isinstance(data, HyperbolaData):
        return (1.0/data.radius_x**2, 0.0, -1.0/data.radius_y**2, 0.0, 0.0, -1.0)
    if isinstance(data, ParabolaData):
        return (1.0, 0.0, 0.0, 0.0, -4.0*data.focus, 0.0)
    if isinstance(data, ConicData):
        return data.coefficients
    raise UnsupportedCurveTypeError('no implicit conic form for {} curves'.format(data.kind),
                                    {'kind': data.kind})


def conic_coefficients(data: CurveData):
    """World-space coefficients ``(A, B, C, D, E, F)`` of a planar curve's
    general equation ``A x^2 + 2B xy + C y^2 + D x + E y + F = 0``.

    Lines come out as the degenerate conic ``D x + E y + F = 0``.

    Raises
    ------
    ValueError
        If the curve's transform does not keep it in the XY plane.
    UnsupportedCurveTypeError
        For curve kinds with no conic form (NURBS).
    """
    if not data.transform.is_planar:
        raise ValueError('conic coefficients need a planar transform: {}'.format(data.transform))
    A, B, C, D, E, F = _local_conic(data)
    Q = np.array([[A, B, D/2.0],
                  [B, C, E/2.0],
                  [D/2.0, E/2.0, F]])
    inv = data.transform.world().rigid_inverse()
    M = np.array([[inv.get(0, 0), inv.get(0, 1), inv.get(0, 3)],
                  [inv.get(1, 0), inv.get(1, 1), inv.get(1, 3)],
                  [0.0, 0.0, 1.0]])
    W = M.T @ Q @ M
    return (float(W[0, 0]), float(W[0, 1]), float(W[1, 1]),
            float(2.0*W[0, 2]), float(2.0*W[1, 2]), float(W[2, 2]))
