"""Parametric surface algorithms.

A surface algorithm is bound to one immutable surface data record and
provides:

- ``p(u, v)`` and ``d(u, v, ru, rv)``: position and mixed partial derivatives
- ``g(point)``: implicit equation value (analytic kinds) or distance to the
  surface (freeform kinds)
- ``uv(point)``: parameters of a point on the surface
- ``n(u, v)``: unit normal ``du x dv``
- ``k1``, ``k2``, ``k``, ``h``: principal, Gaussian and mean curvature from
  the first and second fundamental forms
- ``tbn(u, v)``: frame of unit u-tangent, binormal ``n x t`` and normal

As with curves, ``uv(point)`` does not check that the point lies on the
surface.

Copyright (c) 2025 geokern contributors
MIT License
"""

from __future__ import annotations

from math import atan2, cos, sin, sqrt, tan, pi, hypot, floor

import numpy as np
from scipy.optimize import minimize

from geokern import geom
from geokern.curve_builder import curve_algorithm
from geokern.errors import DegenerateGeometryError
from geokern.nurbs import NurbsSurfaceEvaluator
from geokern.surface_data import SurfaceData, LoftingData, SweepData, NurbsSurfaceData
from geokern.tolerances import Tolerances

__all__ = ['SurfaceAlgo', 'PlaneAlgo', 'CylinderAlgo', 'ConeAlgo', 'SphereAlgo',
           'EllipsoidAlgo', 'LoftingAlgo', 'SweepAlgo', 'NurbsSurfaceAlgo']


def _dcos(t, n):
    """n-th derivative of cos at t"""
    return cos(t + n*pi/2) if n else cos(t)


def _dsin(t, n):
    """n-th derivative of sin at t"""
    return sin(t + n*pi/2) if n else sin(t)


def _angle(y, x):
    a = atan2(y, x)
    return a + geom.pi2 if a < 0.0 else a


class SurfaceAlgo:
    """Base class of all surface algorithms."""

    def __init__(self, data: SurfaceData):
        self.data = data
        world = data.transform.world()
        self._world = world
        self._linear = world.linear()
        self._inverse = world.rigid_inverse()

    @property
    def kind(self):
        return self.data.kind

    @property
    def domain(self):
        """``((u0, u1), (v0, v1))``; an entry is ``None`` when unbounded."""
        return (None, None)

    def _local(self, u, v, ru, rv):
        raise NotImplementedError

    def _to_local(self, p):
        return self._inverse.mul(geom.point(p))

    def d(self, u, v, ru=0, rv=0):
        x, y, z = self._local(u, v, ru, rv)
        if ru == 0 and rv == 0:
            return self._world.mul([x, y, z, 1.0])
        return self._linear.mul([x, y, z, 1.0])

    def p(self, u, v):
        return self.d(u, v, 0, 0)

    def uv(self, point):
        """Closest parameters by bounded minimisation from the best grid sample."""
        (u0, u1), (v0, v1) = self._bounded_domain()
        target = np.asarray(self._to_local(point)[:3], dtype=float)

        def dist2(x):
            return float(np.sum((np.asarray(self._local(x[0], x[1], 0, 0)) - target)**2))

        n = Tolerances.NURBS_UV_GRID
        seeds = [(u0 + (u1 - u0)*i/n, v0 + (v1 - v0)*j/n) for i in range(n + 1) for j in range(n + 1)]
        best = min(seeds, key=dist2)
        res = minimize(dist2, np.array(best), method='L-BFGS-B', bounds=[(u0, u1), (v0, v1)])
        return (float(res.x[0]), float(res.x[1]))

    def _bounded_domain(self):
        du, dv = self.domain
        if du is None or dv is None:
            raise ValueError('{} surface is unbounded, no numeric inverse'.format(self.kind))
        return du, dv

    def g(self, point):
        """Distance from *point* to the surface."""
        u, v = self.uv(point)
        return geom.dist(self.p(u, v), point)

    def n(self, u, v):
        return geom.normalize(geom.cross(self.d(u, v, 1, 0), self.d(u, v, 0, 1)))

    def _forms(self, u, v):
        du = self.d(u, v, 1, 0)
        dv = self.d(u, v, 0, 1)
        E = geom.dot(du, du)
        F = geom.dot(du, dv)
        G = geom.dot(dv, dv)
        cross = geom.cross(du, dv)
        # |du x dv| vanishing against the partials: pole or collapsed edge
        if geom.mag(cross) <= Tolerances.KERNEL_DETERMINANT*max(E, G):
            raise DegenerateGeometryError('surface parameterization is singular at ({}, {})'.format(u, v),
                                          {'kind': self.kind, 'u': u, 'v': v})
        nv = geom.normalize(cross)
        L = geom.dot(self.d(u, v, 2, 0), nv)
        M = geom.dot(self.d(u, v, 1, 1), nv)
        N = geom.dot(self.d(u, v, 0, 2), nv)
        return E, F, G, L, M, N, E*G - F*F

    def k(self, u, v):
        """Gaussian curvature."""
        E, F, G, L, M, N, det = self._forms(u, v)
        return (L*N - M*M)/det

    def h(self, u, v):
        """Mean curvature, signed with respect to ``n(u, v)``."""
        E, F, G, L, M, N, det = self._forms(u, v)
        return (E*N - 2.0*F*M + G*L)/(2.0*det)

    def _principal(self, u, v):
        E, F, G, L, M, N, det = self._forms(u, v)
        k = (L*N - M*M)/det
        h = (E*N - 2.0*F*M + G*L)/(2.0*det)
        s = sqrt(max(h*h - k, 0.0))
        return h + s, h - s

    def k1(self, u, v):
        return self._principal(u, v)[0]

    def k2(self, u, v):
        return self._principal(u, v)[1]

    def tbn(self, u, v):
        t = geom.normalize(self.d(u, v, 1, 0))
        nv = self.n(u, v)
        return t, geom.cross(nv, t), nv


class PlaneAlgo(SurfaceAlgo):

    def _local(self, u, v, ru, rv):
        if ru == 0 and rv == 0:
            return (u, v, 0.0)
        if ru == 1 and rv == 0:
            return (1.0, 0.0, 0.0)
        if ru == 0 and rv == 1:
            return (0.0, 1.0, 0.0)
        return (0.0, 0.0, 0.0)

    def uv(self, point):
        lp = self._to_local(point)
        return (lp[0], lp[1])

    def g(self, point):
        return self._to_local(point)[2]


class CylinderAlgo(SurfaceAlgo):

    @property
    def domain(self):
        return ((0.0, geom.pi2), None)

    def _local(self, u, v, ru, rv):
        r = self.data.radius
        if rv == 0:
            return (r*_dcos(u, ru), r*_dsin(u, ru), v if ru == 0 else 0.0)
        if rv == 1 and ru == 0:
            return (0.0, 0.0, 1.0)
        return (0.0, 0.0, 0.0)

    def uv(self, point):
        lp = self._to_local(point)
        return (_angle(lp[1], lp[0]), lp[2])

    def g(self, point):
        lp = self._to_local(point)
        return lp[0]*lp[0] + lp[1]*lp[1] - self.data.radius**2


class ConeAlgo(SurfaceAlgo):
    """Cone ``((r + v tan a) cos u, (r + v tan a) sin u, v)``."""

    @property
    def domain(self):
        return ((0.0, geom.pi2), None)

    def _local(self, u, v, ru, rv):
        slope = tan(self.data.semi_angle)
        if rv == 0:
            rho = self.data.radius + v*slope
        elif rv == 1:
            rho = slope
        else:
            return (0.0, 0.0, 0.0)
        if ru == 0:
            z = v if rv == 0 else 1.0
        else:
            z = 0.0
        return (rho*_dcos(u, ru), rho*_dsin(u, ru), z)

    def uv(self, point):
        lp = self._to_local(point)
        return (_angle(lp[1], lp[0]), lp[2])

    def g(self, point):
        lp = self._to_local(point)
        rho = self.data.radius + lp[2]*tan(self.data.semi_angle)
        return lp[0]*lp[0] + lp[1]*lp[1] - rho*rho


class EllipsoidAlgo(SurfaceAlgo):
    """Ellipsoid ``(a cos v cos u, b cos v sin u, c sin v)``, ``v`` is latitude."""

    def _axes(self):
        return self.data.size

    @property
    def domain(self):
        return ((0.0, geom.pi2), (-pi/2, pi/2))

    def _local(self, u, v, ru, rv):
        a, b, c = self._axes()
        cv = _dcos(v, rv)
        z = c*_dsin(v, rv) if ru == 0 else 0.0
        return (a*cv*_dcos(u, ru), b*cv*_dsin(u, ru), z)

    def uv(self, point):
        a, b, c = self._axes()
        lp = self._to_local(point)
        x, y, z = lp[0]/a, lp[1]/b, lp[2]/c
        return (_angle(y, x), atan2(z, hypot(x, y)))

    def g(self, point):
        a, b, c = self._axes()
        lp = self._to_local(point)
        return (lp[0]/a)**2 + (lp[1]/b)**2 + (lp[2]/c)**2 - 1.0


class SphereAlgo(EllipsoidAlgo):

    def _axes(self):
        r = self.data.radius
        return (r, r, r)


class LoftingAlgo(SurfaceAlgo):
    """Ruled surface between consecutive sections.

    ``u`` in ``[0, 1]`` is mapped onto each section's own domain, ``v`` in
    ``[0, n - 1]`` walks from section to section.  Section curves are placed
    by their own transforms, and the lofting transform is applied on top.
    """

    def __init__(self, data: LoftingData):
        super().__init__(data)
        if len(data.sections) < 2:
            raise DegenerateGeometryError('lofting needs at least two sections',
                                          {'count': len(data.sections)})
        self._sections = []
        for s in data.sections:
            algo = curve_algorithm(s)
            if algo.domain is None:
                raise ValueError('lofting section {} is unbounded'.format(s.kind))
            self._sections.append(algo)

    @property
    def domain(self):
        return ((0.0, 1.0), (0.0, float(len(self._sections) - 1)))

    def _section(self, i, u, ru):
        algo = self._sections[i]
        lo, hi = algo.domain
        return np.asarray(algo.d(lo + u*(hi - lo), ru)[:3])*(hi - lo)**ru

    def _local(self, u, v, ru, rv):
        if rv > 1:
            return (0.0, 0.0, 0.0)
        i = min(max(int(floor(v)), 0), len(self._sections) - 2)
        c0 = self._section(i, u, ru)
        c1 = self._section(i + 1, u, ru)
        if rv == 1:
            out = c1 - c0
        else:
            t = v - i
            out = (1.0 - t)*c0 + t*c1
        return (float(out[0]), float(out[1]), float(out[2]))


class SweepAlgo(SurfaceAlgo):
    """Translational sweep ``section(u) + path(v) - path(v0)``."""

    def __init__(self, data: SweepData):
        super().__init__(data)
        self._section = curve_algorithm(data.section)
        self._path = curve_algorithm(data.path)
        if self._section.domain is None or self._path.domain is None:
            raise ValueError('sweep section and path must be bounded curves')
        self._origin = self._path.p(self._path.domain[0])

    @property
    def domain(self):
        return (self._section.domain, self._path.domain)

    def _local(self, u, v, ru, rv):
        if ru and rv:
            return (0.0, 0.0, 0.0)
        if rv == 0 and ru > 0:
            out = self._section.d(u, ru)
        elif ru == 0 and rv > 0:
            out = self._path.d(v, rv)
        else:
            out = geom.add(self._section.p(u), geom.sub(self._path.p(v), self._origin))
        return (out[0], out[1], out[2])


class NurbsSurfaceAlgo(SurfaceAlgo):

    def __init__(self, data: NurbsSurfaceData):
        super().__init__(data)
        self.evaluator = NurbsSurfaceEvaluator(data.p, data.q, data.uknots, data.vknots,
                                               data.controls, data.weights)

    @property
    def domain(self):
        return self.evaluator.domain

    def _local(self, u, v, ru, rv):
        out = self.evaluator.derivative(u, v, ru, rv)
        return (float(out[0]), float(out[1]), float(out[2]) if len(out) > 2 else 0.0)
