"""NURBS evaluation backed by scipy.

The kernel treats NURBS evaluation as an opaque collaborator: curve and
surface algorithms only map their data records onto the evaluators defined
here.  Rational curves and surfaces are evaluated as non-rational B-splines
on homogeneous control points ``(w x, w y, [w z,] w)`` and projected back;
derivatives of the projection follow the quotient rule (Piegl & Tiller,
*The NURBS Book*, A4.2 and A4.4).

Copyright (c) 2025 geokern contributors
MIT License
"""

from __future__ import annotations

from math import comb
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger
from scipy.integrate import quad
from scipy.interpolate import BSpline, NdBSpline, make_interp_spline
from scipy.optimize import minimize_scalar

from geokern.errors import DegenerateGeometryError
from geokern.tolerances import Tolerances

__all__ = ['NurbsCurveEvaluator', 'NurbsSurfaceEvaluator', 'fit']


def _homogeneous(controls, weights) -> Tuple[np.ndarray, int]:
    ctrl = np.asarray(controls, dtype=float)
    if ctrl.ndim < 2 or ctrl.shape[-1] not in (2, 3):
        raise ValueError('NURBS control points must be 2D or 3D: {}'.format(ctrl.shape))
    if weights is None:
        w = np.ones(ctrl.shape[:-1])
    else:
        w = np.asarray(weights, dtype=float)
        if w.shape != ctrl.shape[:-1]:
            raise ValueError('expected one weight per control point, got {}'.format(w.shape))
        if np.any(w <= 0.0):
            raise ValueError('NURBS weights must be positive')
    return np.concatenate([ctrl*w[..., None], w[..., None]], axis=-1), ctrl.shape[-1]


class NurbsCurveEvaluator:
    """Point, derivative, closest-point and arc-length queries on a NURBS curve."""

    def __init__(self, degree: int, knots: Sequence[float], controls, weights=None):
        hom, self.dim = _homogeneous(controls, weights)
        n = hom.shape[0]
        if degree < 1 or n <= degree:
            raise ValueError('bad NURBS degree {} for {} control points'.format(degree, n))
        if len(knots) != n + degree + 1:
            raise ValueError('NURBS knot vector needs {} entries, got {}'.format(n + degree + 1, len(knots)))
        self.degree = degree
        self.knots = np.asarray(knots, dtype=float)
        self.count = n
        self._spline = BSpline(self.knots, hom, degree)
        self.domain = (float(self.knots[degree]), float(self.knots[-degree - 1]))

    def _clamp(self, u: float) -> float:
        return min(max(u, self.domain[0]), self.domain[1])

    def _hom_derivs(self, u, order):
        return [self._spline(u, nu=k) if k <= self.degree else np.zeros(self.dim + 1)
                for k in range(order + 1)]

    def derivatives(self, u: float, order: int) -> List[np.ndarray]:
        """Return ``[C(u), C'(u), ..., C^(order)(u)]``."""
        hom = self._hom_derivs(self._clamp(u), order)
        A = [h[:self.dim] for h in hom]
        w = [h[self.dim] for h in hom]
        ck: List[np.ndarray] = []
        for k in range(order + 1):
            v = A[k].copy()
            for i in range(1, k + 1):
                v -= comb(k, i)*w[i]*ck[k - i]
            ck.append(v/w[0])
        return ck

    def point(self, u: float) -> np.ndarray:
        return self.derivatives(u, 0)[0]

    def _points(self, us: np.ndarray) -> np.ndarray:
        hom = self._spline(us)
        return hom[:, :self.dim]/hom[:, self.dim:]

    def closest_parameter(self, point) -> float:
        """Parameter of the curve point closest to *point*.

        A uniform sampling picks the starting bracket, then a bounded
        scalar minimisation polishes the result.
        """
        target = np.asarray(point, dtype=float)[:self.dim]
        samples = max(self.count*Tolerances.NURBS_CLOSEST_SAMPLES_PER_CONTROL, 16)
        us = np.linspace(self.domain[0], self.domain[1], samples + 1)
        d2 = np.sum((self._points(us) - target)**2, axis=1)
        i = int(np.argmin(d2))
        lo = us[max(i - 1, 0)]
        hi = us[min(i + 1, samples)]
        res = minimize_scalar(lambda u: float(np.sum((self.point(u) - target)**2)),
                              bounds=(lo, hi), method='bounded',
                              options={'xatol': Tolerances.NURBS_CLOSEST_XTOL})
        if res.fun <= d2[i]:
            return float(res.x)
        return float(us[i])

    def arc_length(self, u_max: Optional[float] = None, u_min: Optional[float] = None) -> float:
        """Arc length between *u_min* and *u_max* (defaults: the whole domain)."""
        lo = self.domain[0] if u_min is None else self._clamp(u_min)
        hi = self.domain[1] if u_max is None else self._clamp(u_max)
        if hi < lo:
            lo, hi = hi, lo
        if hi == lo:
            return 0.0
        breaks = [k for k in np.unique(self.knots) if lo < k < hi]
        val, err = quad(lambda u: float(np.linalg.norm(self.derivatives(u, 1)[1])),
                        lo, hi, points=breaks or None, limit=200)
        logger.debug(f"NURBS arc length {val} on [{lo}, {hi}] (error estimate {err})")
        return float(val)


class NurbsSurfaceEvaluator:
    """Tensor-product NURBS surface evaluation.

    ``controls`` is a grid of shape ``(nu, nv, 3)``.
    """

    def __init__(self, p: int, q: int, uknots, vknots, controls, weights=None):
        hom, self.dim = _homogeneous(controls, weights)
        if hom.ndim != 3:
            raise ValueError('NURBS surface controls must form a grid: {}'.format(hom.shape))
        nu, nv = hom.shape[:2]
        if len(uknots) != nu + p + 1 or len(vknots) != nv + q + 1:
            raise ValueError('NURBS surface knot vectors do not match the {}x{} control grid'.format(nu, nv))
        self.p = p
        self.q = q
        tu = np.asarray(uknots, dtype=float)
        tv = np.asarray(vknots, dtype=float)
        self._spline = NdBSpline((tu, tv), hom, (p, q))
        self.domain = ((float(tu[p]), float(tu[-p - 1])), (float(tv[q]), float(tv[-q - 1])))

    def _hom(self, u, v, k, l):
        if k > self.p or l > self.q:
            return np.zeros(self.dim + 1)
        return self._spline(np.array([[u, v]]), nu=(k, l))[0]

    def derivative(self, u: float, v: float, ru: int = 0, rv: int = 0) -> np.ndarray:
        """Mixed partial derivative ``d^(ru+rv) S / du^ru dv^rv``."""
        (u0, u1), (v0, v1) = self.domain
        u = min(max(u, u0), u1)
        v = min(max(v, v0), v1)
        hom = {(k, l): self._hom(u, v, k, l) for k in range(ru + 1) for l in range(rv + 1)}
        w = {key: h[self.dim] for key, h in hom.items()}
        skl = {}
        for k in range(ru + 1):
            for l in range(rv + 1):
                val = hom[(k, l)][:self.dim].copy()
                for j in range(1, l + 1):
                    val -= comb(l, j)*w[(0, j)]*skl[(k, l - j)]
                for i in range(1, k + 1):
                    val -= comb(k, i)*w[(i, 0)]*skl[(k - i, l)]
                    for j in range(1, l + 1):
                        val -= comb(k, i)*comb(l, j)*w[(i, j)]*skl[(k - i, l - j)]
                skl[(k, l)] = val/w[(0, 0)]
        return skl[(ru, rv)]

    def point(self, u: float, v: float) -> np.ndarray:
        return self.derivative(u, v)


def fit(points, degree: int = 3) -> Tuple[Tuple[float, ...], List[Tuple[float, ...]]]:
    """Interpolate *points* with a degree-*degree* B-spline.

    Parameters are chord-length spaced and normalised to ``[0, 1]``.

    Returns
    -------
    tuple
        ``(knots, controls)``.

    Raises
    ------
    DegenerateGeometryError
        If two consecutive points coincide or there are too few points.
    """
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or len(pts) <= degree:
        raise DegenerateGeometryError('need more than {} points to fit a degree {} curve'.format(degree, degree),
                                      {'points': len(pts), 'degree': degree})
    chords = np.linalg.norm(np.diff(pts, axis=0), axis=1)
    if np.any(chords == 0.0):
        raise DegenerateGeometryError('coincident consecutive fitting points',
                                      {'index': int(np.argmin(chords))})
    params = np.concatenate([[0.0], np.cumsum(chords)])
    params /= params[-1]
    spl = make_interp_spline(params, pts, k=degree)
    return tuple(float(k) for k in spl.t), [tuple(float(c) for c in row) for row in spl.c]
