"""Curve-curve intersection.

Two strategies are provided:

- analytic solvers: line/line (Cramer's rule on the implicit line
  equations), line/conic (quadratic in the line parameter), conic/conic
  (degenerate member of the conic pencil) and spatial line/line (closest
  points of two lines)
- :func:`curve_x_curve`, a general sampler + bisector that walks one curve
  and watches the sign of the other curve's implicit equation

:func:`curve_x_curve` has two known limitations.  Tangential intersections
where the implicit equation touches zero without changing sign are not
found, and roots that are found from adjacent sample brackets are not merged.

Copyright (c) 2025 geokern contributors
MIT License
"""

from __future__ import annotations

from dataclasses import dataclass
from math import atan2, cos, inf, sin
from typing import List, Optional, Tuple

import numpy as np
from loguru import logger

from geokern import geom
from geokern.curve_algo import conic_coefficients
from geokern.curve_builder import curve_algorithm, line_from_point_and_vector
from geokern.curve_data import CurveData, LineData, ArcData, NurbsData
from geokern.errors import UnsupportedCurveTypeError
from geokern.solve import solve_quadratic, solve_cubic, real_roots
from geokern.tolerances import Tolerances

__all__ = ['Intersection', 'line_x_line', 'curve_x_curve', 'line_x_arc', 'arc_x_arc',
           'line_x_nurbs', 'arc_x_nurbs', 'nurbs_x_nurbs', 'line_x_conic',
           'line_x_line_3d', 'conic_x_conic', 'intersect']

# largest adjugate entry of a normalized conic matrix that counts as zero
_RANK_ONE = 1e-9


@dataclass(frozen=True)
class Intersection:
    """One intersection: world point and the parameter on each curve."""

    point: list
    u0: float
    u1: float

    def swapped(self) -> 'Intersection':
        return Intersection(self.point, self.u1, self.u0)


def _in_domain(algo, u, tol):
    dom = algo.domain
    if dom is None:
        return True
    lo, hi = min(dom), max(dom)
    return lo - tol <= u <= hi + tol


# -----------------------------------------------------------------------------
# Analytic solvers
# -----------------------------------------------------------------------------

def _line_implicit(algo):
    origin = algo.p(0.0)
    direction = algo.d(0.0, 1)
    rot = atan2(direction[1], direction[0])
    A = -sin(rot)
    B = cos(rot)
    C = -A*origin[0] - B*origin[1]
    return A, B, C, origin, direction


def line_x_line(c0: LineData, c1: LineData, tol: float = Tolerances.INTERSECTION) -> List[Intersection]:
    """Intersection of two planar lines.

    Each line is turned into ``A x + B y + C = 0`` with ``A = -sin(rot)``,
    ``B = cos(rot)``, ``C = -A x0 - B y0`` and the 2x2 system is solved
    with Cramer's rule.  Parallel lines give an empty list.  The recovered
    parameters are signed distances from each line's origin.  The result
    is not clipped to either line's length, so a hit beyond a segment end
    comes back with a parameter outside ``[0, length]``.
    """
    a0 = curve_algorithm(c0)
    a1 = curve_algorithm(c1)
    A0, B0, C0, o0, d0 = _line_implicit(a0)
    A1, B1, C1, o1, d1 = _line_implicit(a1)
    det = A0*B1 - A1*B0
    if abs(det) <= Tolerances.KERNEL_DETERMINANT:
        return []
    x = (-C0*B1 + B0*C1)/det
    y = (-A0*C1 + A1*C0)/det
    p = [x, y, 0.0, 1.0]
    u0 = geom.dot(geom.sub(p, o0), d0)
    u1 = geom.dot(geom.sub(p, o1), d1)
    return [Intersection(p, u0, u1)]


def line_x_line_3d(c0: LineData, c1: LineData, tol: float = Tolerances.KERNEL_EPSILON) -> List[Intersection]:
    """Intersection of two spatial lines.

    The closest points of the two lines are computed; the lines intersect
    when those points are within *tol* of each other.  The reported point is
    their midpoint; as in :func:`line_x_line` the parameters are not
    clipped to the segments.
    """
    a0 = curve_algorithm(c0)
    a1 = curve_algorithm(c1)
    p0, d0 = a0.p(0.0), a0.d(0.0, 1)
    p1, d1 = a1.p(0.0), a1.d(0.0, 1)
    w = geom.sub(p0, p1)
    b = geom.dot(d0, d1)
    d = geom.dot(d0, w)
    e = geom.dot(d1, w)
    denom = 1.0 - b*b
    if abs(denom) <= Tolerances.KERNEL_DETERMINANT:
        return []
    s = (b*e - d)/denom
    t = (e - b*d)/denom
    q0 = geom.add(p0, geom.scale3(d0, s))
    q1 = geom.add(p1, geom.scale3(d1, t))
    if geom.dist(q0, q1) > tol:
        return []
    return [Intersection(geom.scale3(geom.add(q0, q1), 0.5), s, t)]


def line_x_conic(line: LineData, curve: CurveData, tol: float = Tolerances.INTERSECTION) -> List[Intersection]:
    """Closed-form intersection of a planar line with an arc, hyperbola,
    parabola or general conic.

    The line ``X(t) = X0 + t D`` is substituted into the conic's world-space
    general equation, giving ``(D'QD) t^2 + 2 (D'QX0) t + X0'QX0 = 0``,
    which is solved in arbitrary precision.  Results are ascending in the
    line parameter.

    Raises
    ------
    ValueError
        If the line or the conic leaves the XY plane.
    """
    if not line.transform.is_planar:
        raise ValueError('line_x_conic needs a planar line: {}'.format(line.transform))
    la = curve_algorithm(line)
    ca = curve_algorithm(curve)
    Q = _conic_matrix(curve)
    o = la.p(0.0)
    d = la.d(0.0, 1)
    X0 = np.array([o[0], o[1], 1.0])
    Dv = np.array([d[0], d[1], 0.0])
    qa = float(Dv @ Q @ Dv)
    qb = float(2.0*(Dv @ Q @ X0))
    qc = float(X0 @ Q @ X0)
    if abs(qa) <= Tolerances.KERNEL_DETERMINANT:
        if abs(qb) <= Tolerances.KERNEL_DETERMINANT:
            return []
        ts = [-qc/qb]
    else:
        ts = real_roots(solve_quadratic(qa, qb, qc), tol)
    out = []
    for t in ts:
        if not _in_domain(la, t, tol):
            continue
        p = la.p(t)
        out.append(Intersection(p, t, ca.u(p)))
    return out


def _conic_matrix(data):
    A, B, C, D, E, F = conic_coefficients(data)
    return np.array([[A, B, D/2.0],
                     [B, C, E/2.0],
                     [D/2.0, E/2.0, F]])


def _adjugate(m):
    # rows of the adjugate are cross products of the columns
    return np.array([np.cross(m[:, 1], m[:, 2]),
                     np.cross(m[:, 2], m[:, 0]),
                     np.cross(m[:, 0], m[:, 1])])


def _split_degenerate(m):
    """Real lines ``(a, b, c)`` of a degenerate conic matrix, or ``None``.

    A line pair ``l m' + m l'`` has adjugate ``-p p'`` with ``p = l x m``;
    adding the cross-product matrix of ``p`` leaves the rank one matrix
    ``2 l m'`` whose row and column are the two lines.
    """
    m = m/np.linalg.norm(m)
    adj = _adjugate(m)
    if np.max(np.abs(adj)) <= _RANK_ONE:
        # double line
        i = int(np.argmax(np.abs(np.diag(m))))
        return [m[i, :]]
    i = int(np.argmax(np.abs(np.diag(adj))))
    if adj[i, i] >= 0.0:
        # complex conjugate lines, only their crossing point is real
        return None
    p = adj[:, i]/np.sqrt(-adj[i, i])
    cross = np.array([[0.0, p[2], -p[1]],
                      [-p[2], 0.0, p[0]],
                      [p[1], -p[0], 0.0]])
    r = m + cross
    i, j = np.unravel_index(int(np.argmax(np.abs(r))), r.shape)
    return [r[i, :], r[:, j]]


def _line_data(h):
    a, b, c = (float(x) for x in h)
    n2 = a*a + b*b
    if n2 <= Tolerances.KERNEL_DETERMINANT:
        # line at infinity
        return None
    return line_from_point_and_vector((-a*c/n2, -b*c/n2), (-b, a), inf)


def conic_x_conic(c0: CurveData, c1: CurveData, tol: float = Tolerances.INTERSECTION) -> List[Intersection]:
    """Closed-form intersection of two planar conics (arc, hyperbola,
    parabola or general conic).

    The pencil ``Q0 + t Q1`` of the two conic matrices holds degenerate
    members at the roots of the cubic ``det(Q0 + t Q1) = 0``.  A degenerate
    member is a pair of lines through all common points, so the first real
    line pair found is intersected with ``c0`` by :func:`line_x_conic`.
    Both branches of a hyperbola are reported.  Results are ascending in
    ``u0``.
    """
    a0 = curve_algorithm(c0)
    a1 = curve_algorithm(c1)
    Q0 = _conic_matrix(c0)
    Q1 = _conic_matrix(c1)
    Q0 = Q0/np.linalg.norm(Q0)
    Q1 = Q1/np.linalg.norm(Q1)
    d0 = np.linalg.det(Q0)
    d1 = np.linalg.det(Q1)
    if abs(d1) <= Tolerances.KERNEL_DETERMINANT:
        members = [(Q1, c0)]
    elif abs(d0) <= Tolerances.KERNEL_DETERMINANT:
        members = [(Q0, c1)]
    else:
        roots = solve_cubic(d1, np.trace(_adjugate(Q1) @ Q0), np.trace(_adjugate(Q0) @ Q1), d0)
        members = [(Q0 + t*Q1, c0) for t in real_roots(roots)]

    points = []
    for m, other in members:
        lines = _split_degenerate(m)
        if lines is None:
            continue
        for h in lines:
            line = _line_data(h)
            if line is None:
                continue
            for x in line_x_conic(line, other, tol):
                if all(geom.dist(x.point, q) > Tolerances.KERNEL_EPSILON for q in points):
                    points.append(x.point)
        logger.debug(f"{a0.kind} x {a1.kind}: {len(points)} points from {len(lines)} pencil lines")
        break

    out = [Intersection(p, a0.u(p), a1.u(p)) for p in points]
    out.sort(key=lambda x: x.u0)
    return out


# -----------------------------------------------------------------------------
# General sampler + bisector
# -----------------------------------------------------------------------------

def _bisect(a0, a1, ua, ub, ga, tol):
    """Narrow ``[ua, ub]`` (sign change of ``g1``) down to one root."""
    steps = 0
    while True:
        um = 0.5*(ua + ub)
        if not (ua < um < ub) or geom.dist(a0.p(ua), a0.p(ub)) <= tol:
            logger.debug(f"bisection collapsed after {steps} steps at u={um}")
            return um
        gm = a1.g(a0.p(um))
        steps += 1
        if gm == 0.0:
            return um
        if (gm < 0.0) == (ga < 0.0):
            ua, ga = um, gm
        else:
            ub = um


def curve_x_curve(c0: CurveData, c1: CurveData, segments: int,
                  tol: float = Tolerances.INTERSECTION,
                  domain: Optional[Tuple[float, float]] = None) -> List[Intersection]:
    """General curve/curve intersection.

    ``c0`` is sampled at ``segments`` uniform steps over *domain* (default:
    its natural domain) and the implicit equation ``g`` of ``c1`` is
    evaluated at every sample.  An exact zero is recorded directly.  A sign
    change between consecutive samples is bisected until ``g`` is exactly
    zero or the bracket collapses (the midpoint is no longer strictly
    inside, or the chord across it is at most *tol*); the midpoint is then
    recorded.  ``u1`` is recovered with ``c1``'s inverse map.

    Results are ordered by ascending ``u0``.

    Raises
    ------
    ValueError
        If ``segments < 1`` or ``c0`` is unbounded and no *domain* is given.
    UnsupportedCurveTypeError
        If ``c1`` is a spatial NURBS curve, whose ``g`` is unsigned.
    """
    if segments < 1:
        raise ValueError('bad segment count: {}'.format(segments))
    a0 = curve_algorithm(c0)
    a1 = curve_algorithm(c1)
    if not a1.signed_g:
        raise UnsupportedCurveTypeError('{} curve has no signed implicit equation'.format(a1.kind),
                                        {'kind': a1.kind})
    dom = domain or a0.domain
    if dom is None:
        raise ValueError('{} curve is unbounded, pass a sampling domain'.format(a0.kind))
    lo, hi = min(dom), max(dom)
    closed = geom.dist(a0.p(lo), a0.p(hi)) <= tol
    us = [lo + (hi - lo)*i/segments for i in range(segments + 1)]
    gs = [a1.g(a0.p(u)) for u in us]
    off_plane = max(tol, Tolerances.KERNEL_EPSILON)

    roots = []
    for i, u in enumerate(us):
        if gs[i] == 0.0 and not (closed and i == segments):
            roots.append(u)
        if i < segments and gs[i]*gs[i + 1] < 0.0:
            roots.append(_bisect(a0, a1, u, us[i + 1], gs[i], tol))
    logger.debug(f"{a0.kind} x {a1.kind}: {len(roots)} roots from {segments} segments")

    out = []
    for u in sorted(roots):
        p = a0.p(u)
        if abs(a1.plane_offset(p)) > off_plane:
            # sign flip of the planar equation away from the curve plane
            continue
        out.append(Intersection(p, u, a1.u(p)))
    return out


def _nurbs_segments(data: NurbsData) -> int:
    return max(Tolerances.NURBS_SEGMENTS_PER_CONTROL*len(data.controls), 1)


def line_x_arc(line: LineData, arc: ArcData, tol: float = Tolerances.INTERSECTION,
               segments: Optional[int] = None) -> List[Intersection]:
    """Line sampled against the arc's implicit equation."""
    return curve_x_curve(line, arc, segments or Tolerances.INTERSECTION_LINE_SEGMENTS, tol)


def arc_x_arc(c0: ArcData, c1: ArcData, tol: float = Tolerances.INTERSECTION,
              segments: Optional[int] = None) -> List[Intersection]:
    """First arc sampled against the second arc's implicit equation."""
    return curve_x_curve(c0, c1, segments or Tolerances.INTERSECTION_ARC_SEGMENTS, tol)


def line_x_nurbs(line: LineData, nurbs: NurbsData, tol: float = Tolerances.INTERSECTION) -> List[Intersection]:
    """NURBS curve sampled against the line's implicit equation.

    ``u0`` is the line parameter and ``u1`` the NURBS parameter; results
    are ascending in the NURBS parameter.
    """
    return [x.swapped() for x in curve_x_curve(nurbs, line, _nurbs_segments(nurbs), tol)]


def arc_x_nurbs(arc: ArcData, nurbs: NurbsData, tol: float = Tolerances.INTERSECTION) -> List[Intersection]:
    """NURBS curve sampled against the arc's implicit equation."""
    return [x.swapped() for x in curve_x_curve(nurbs, arc, _nurbs_segments(nurbs), tol)]


def nurbs_x_nurbs(c0: NurbsData, c1: NurbsData, tol: float = Tolerances.INTERSECTION) -> List[Intersection]:
    """The NURBS curve with fewer control points is sampled against the
    signed distance to the other one."""
    if len(c1.controls) < len(c0.controls):
        return [x.swapped() for x in curve_x_curve(c1, c0, _nurbs_segments(c1), tol)]
    return curve_x_curve(c0, c1, _nurbs_segments(c0), tol)


# -----------------------------------------------------------------------------
# Dispatch
# -----------------------------------------------------------------------------

def _line_line(c0, c1, tol):
    if c0.transform.is_planar and c1.transform.is_planar:
        return line_x_line(c0, c1, tol)
    return line_x_line_3d(c0, c1, max(tol, Tolerances.KERNEL_EPSILON))


def _reversed(fn):
    def run(c0, c1, tol):
        return [x.swapped() for x in fn(c1, c0, tol)]
    return run


_INTERSECTORS = {
    ('line', 'line'): _line_line,
    ('line', 'arc'): line_x_arc,
    ('arc', 'arc'): arc_x_arc,
    ('line', 'nurbs'): line_x_nurbs,
    ('arc', 'nurbs'): arc_x_nurbs,
    ('nurbs', 'nurbs'): nurbs_x_nurbs,
    ('line', 'hyperbola'): line_x_conic,
    ('line', 'parabola'): line_x_conic,
    ('line', 'conic'): line_x_conic,
    ('arc', 'hyperbola'): conic_x_conic,
    ('arc', 'parabola'): conic_x_conic,
    ('arc', 'conic'): conic_x_conic,
    ('hyperbola', 'hyperbola'): conic_x_conic,
    ('hyperbola', 'parabola'): conic_x_conic,
    ('hyperbola', 'conic'): conic_x_conic,
    ('parabola', 'parabola'): conic_x_conic,
    ('parabola', 'conic'): conic_x_conic,
    ('conic', 'conic'): conic_x_conic,
}
for (_k0, _k1), _fn in list(_INTERSECTORS.items()):
    _INTERSECTORS.setdefault((_k1, _k0), _reversed(_fn))


def intersect(c0: CurveData, c1: CurveData, tol: float = Tolerances.INTERSECTION) -> List[Intersection]:
    """Intersect two curve records, choosing the solver by their kinds.

    ``u0`` always refers to *c0* and ``u1`` to *c1*.

    Raises
    ------
    UnsupportedCurveTypeError
        If no solver is registered for the pair of kinds.
    """
    key = (getattr(c0, 'kind', None), getattr(c1, 'kind', None))
    try:
        fn = _INTERSECTORS[key]
    except KeyError:
        raise UnsupportedCurveTypeError('no intersection solver for {} x {}'.format(*key),
                                        {'kinds': key}) from None
    return fn(c0, c1, tol)
