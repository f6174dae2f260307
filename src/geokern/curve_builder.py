"""Curve builders.

Factories that turn geometric constraints (two points, three points,
center + begin + end, ...) into immutable curve data records, and the
dispatcher that binds a data record to its algorithm.

Planar builders accept 2D or 3D points and ignore ``z``; the ``*3``
builders place the curve in space.  Construction failures raise
:class:`~geokern.errors.DegenerateGeometryError` before any record is
created.

Copyright (c) 2025 geokern contributors
MIT License
"""

from functools import lru_cache
from math import atan2, hypot, pi

from geokern import geom
from geokern.curve_algo import (CurveAlgo, LineAlgo, ArcAlgo, HyperbolaAlgo,
                                ParabolaAlgo, ConicAlgo, NurbsAlgo)
from geokern.curve_data import (CURVE_KINDS, LineData, ArcData, HyperbolaData,
                                ParabolaData, NurbsData, ConicData)
from geokern.errors import DegenerateGeometryError, UnsupportedCurveTypeError
from geokern.nurbs import fit
from geokern.tolerances import Tolerances
from geokern.xform import Transform, rotation_to_axis, transform2, transform3


# -----------------------------------------------------------------------------
# Dispatch
# -----------------------------------------------------------------------------

_CURVE_ALGORITHMS = {}


def register_curve(kind, algo_cls):
    """Register *algo_cls* as the algorithm for curve records of *kind*."""
    if not issubclass(algo_cls, CurveAlgo):
        raise ValueError('not a curve algorithm: {}'.format(algo_cls))
    _CURVE_ALGORITHMS[kind] = algo_cls
    curve_algorithm.cache_clear()


@lru_cache(maxsize=1024)
def curve_algorithm(data):
    """Return the algorithm bound to curve record *data*.

    Records are immutable, so an algorithm (including any NURBS evaluator
    it builds) is computed once per distinct record and reused.

    Raises
    ------
    UnsupportedCurveTypeError
        If no algorithm is registered for the record's kind.
    """
    kind = getattr(data, 'kind', None)
    try:
        algo_cls = _CURVE_ALGORITHMS[kind]
    except KeyError:
        raise UnsupportedCurveTypeError('no algorithm registered for curve kind {!r}'.format(kind),
                                        {'kind': kind}) from None
    return algo_cls(data)


register_curve(LineData.kind, LineAlgo)
register_curve(ArcData.kind, ArcAlgo)
register_curve(HyperbolaData.kind, HyperbolaAlgo)
register_curve(ParabolaData.kind, ParabolaAlgo)
register_curve(ConicData.kind, ConicAlgo)
register_curve(NurbsData.kind, NurbsAlgo)

_missing = [k for k in CURVE_KINDS if k not in _CURVE_ALGORITHMS]
if _missing:
    raise UnsupportedCurveTypeError('curve kinds without an algorithm: {}'.format(_missing),
                                    {'kinds': _missing})


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _xy(p):
    p = geom.point(p)
    return [p[0], p[1], 0.0, 1.0]


def _axis_projection(c, a, b):
    """Length and angle of the axis ``a - c`` and the distance of ``b`` from it."""
    axis = geom.sub(a, c)
    length = geom.mag(axis)
    if length < geom.epsilon:
        raise DegenerateGeometryError('axis point coincides with center', {'center': c, 'axis': a})
    unit = geom.scale3(axis, 1.0/length)
    rel = geom.sub(b, c)
    foot = geom.scale3(unit, geom.dot(rel, unit))
    return length, geom.angle2(axis), geom.dist(rel, foot)


# -----------------------------------------------------------------------------
# Lines
# -----------------------------------------------------------------------------

def line_from_begin_end(b, e):
    """Planar line from *b* to *e*; ``u`` runs from 0 at *b* to ``|e - b|`` at *e*."""
    b = _xy(b)
    e = _xy(e)
    delta = geom.sub(e, b)
    length = geom.mag(delta)
    if length < geom.epsilon:
        raise DegenerateGeometryError('line begin and end coincide', {'begin': b, 'end': e})
    return LineData(transform2(b, geom.angle2(delta)), length)


def line_from_point_and_vector(p, v, length=None):
    """Planar line through *p* in direction *v*, *length* defaults to ``|v|``."""
    p = _xy(p)
    m = hypot(v[0], v[1])
    if m < geom.epsilon:
        raise DegenerateGeometryError('zero-length line direction', {'vector': list(v)})
    return LineData(transform2(p, atan2(v[1], v[0])), m if length is None else length)


def line3_from_begin_end(b, e):
    """Spatial line from *b* to *e*; the local x axis follows ``e - b``."""
    b = geom.point(b)
    e = geom.point(e)
    d = geom.sub(e, b)
    length = geom.mag(d)
    if length < geom.epsilon:
        raise DegenerateGeometryError('line begin and end coincide', {'begin': b, 'end': e})
    rotation = (0.0, atan2(-d[2], hypot(d[0], d[1])), atan2(d[1], d[0]))
    return LineData(transform3(b, rotation), length)


# -----------------------------------------------------------------------------
# Circles and ellipses
# -----------------------------------------------------------------------------

def circle_from_center_radius(c, r):
    if r <= 0.0:
        raise DegenerateGeometryError('circle radius must be positive: {}'.format(r), {'radius': r})
    return ArcData(transform2(_xy(c)), r, r)


def circle_from_center_begin(c, b):
    """Circle around *c* through *b*, rotated so that ``u = 0`` lies at *b*."""
    c = _xy(c)
    b = _xy(b)
    r = geom.dist(c, b)
    if r < geom.epsilon:
        raise DegenerateGeometryError('circle begin point coincides with center', {'center': c})
    return ArcData(transform2(c, geom.angle2(geom.sub(b, c))), r, r)


def circle_from_three_points(b, m, e):
    """Circumcircle of *b*, *m* and *e*.

    Raises
    ------
    DegenerateGeometryError
        If the points are collinear (zero determinant).
    """
    x1, y1 = b[0], b[1]
    x2, y2 = m[0], m[1]
    x3, y3 = e[0], e[1]
    D = 2.0*(x1*(y2 - y3) + x2*(y3 - y1) + x3*(y1 - y2))
    if abs(D) <= Tolerances.KERNEL_DETERMINANT:
        raise DegenerateGeometryError('circle through collinear points',
                                      {'points': [list(b), list(m), list(e)], 'determinant': D})
    s1 = x1*x1 + y1*y1
    s2 = x2*x2 + y2*y2
    s3 = x3*x3 + y3*y3
    ux = (s1*(y2 - y3) + s2*(y3 - y1) + s3*(y1 - y2))/D
    uy = (s1*(x3 - x2) + s2*(x1 - x3) + s3*(x2 - x1))/D
    center = [ux, uy, 0.0, 1.0]
    r = geom.dist(center, _xy(b))
    return ArcData(transform2(center), r, r)


def ellipse_from_center_begin_end(c, b, e):
    """Ellipse centered at *c*.

    ``b - c`` is the major axis (radius_x and rotation); the minor radius
    is the distance from *e* to its projection onto the major axis.
    """
    c = _xy(c)
    rx, angle, ry = _axis_projection(c, _xy(b), _xy(e))
    if ry < geom.epsilon:
        raise DegenerateGeometryError('ellipse minor point lies on the major axis', {'end': list(e)})
    return ArcData(transform2(c, angle), rx, ry)


def circle3_from_center_normal_radius(c, normal, r):
    """Spatial circle around *c* in the plane perpendicular to *normal*."""
    if r <= 0.0:
        raise DegenerateGeometryError('circle radius must be positive: {}'.format(r), {'radius': r})
    return ArcData(transform3(geom.point(c), rotation_to_axis(normal)), r, r)


def circle3_from_three_points(a, b, c):
    """Spatial circumcircle of three points."""
    a = geom.point(a)
    u = geom.sub(geom.point(b), a)
    v = geom.sub(geom.point(c), a)
    w = geom.cross(u, v)
    ww = geom.dot(w, w)
    if ww <= Tolerances.KERNEL_DETERMINANT:
        raise DegenerateGeometryError('circle through collinear points',
                                      {'points': [list(a), list(b), list(c)]})
    num = geom.cross(geom.sub(geom.scale3(v, geom.dot(u, u)), geom.scale3(u, geom.dot(v, v))), w)
    center = geom.add(a, geom.scale3(num, 0.5/ww))
    return circle3_from_center_normal_radius(center, w, geom.dist(center, a))


# -----------------------------------------------------------------------------
# Hyperbolas, parabolas and general conics
# -----------------------------------------------------------------------------

def hyperbola_from_center_ab(c, a, b):
    """Hyperbola centered at *c* with its right vertex at *a*.

    The imaginary semi-axis is the distance from *b* to the real axis.
    """
    c = _xy(c)
    rx, angle, ry = _axis_projection(c, _xy(a), _xy(b))
    if ry < geom.epsilon:
        raise DegenerateGeometryError('hyperbola b point lies on the real axis', {'b': list(b)})
    return HyperbolaData(transform2(c, angle), rx, ry)


def parabola_from_center_focus(c, a):
    """Parabola with vertex *c* and focus *a*; it opens towards the focus."""
    c = _xy(c)
    axis = geom.sub(_xy(a), c)
    f = geom.mag(axis)
    if f < geom.epsilon:
        raise DegenerateGeometryError('parabola focus coincides with vertex', {'vertex': c})
    return ParabolaData(transform2(c, geom.angle2(axis) - pi/2), f)


def conic_from_coefficients(a, b, c, d, e, f, transform=None):
    """General conic ``a x^2 + 2b xy + c y^2 + d x + e y + f = 0``."""
    if a == 0.0 and b == 0.0 and c == 0.0:
        raise DegenerateGeometryError('conic has no quadratic terms', {'coefficients': (a, b, c, d, e, f)})
    return ConicData(transform or Transform(), a, b, c, d, e, f)


# -----------------------------------------------------------------------------
# NURBS
# -----------------------------------------------------------------------------

def _controls(points):
    """Control or fitting points as 2D tuples when they all lie in ``z = 0``, else 3D."""
    pts = [tuple(float(c) for c in (p[:3] if len(p) == 4 else p)) for p in points]
    if all(len(p) == 3 and p[2] == 0.0 for p in pts):
        pts = [p[:2] for p in pts]
    return tuple(pts)


def clamped_uniform_knots(n, degree):
    """Clamped uniform knot vector on ``[0, 1]`` for *n* control points."""
    m = n + degree + 1
    knots = []
    for i in range(m):
        if i <= degree:
            knots.append(0.0)
        elif i >= m - degree - 1:
            knots.append(1.0)
        else:
            knots.append((i - degree)/(n - degree))
    return tuple(knots)


def nurbs_from_controls(controls, knots=None, degree=3, weights=None, transform=None):
    """NURBS curve from control points; knots default to clamped uniform."""
    n = len(controls)
    if n < 2:
        raise DegenerateGeometryError('a NURBS curve needs at least two control points', {'count': n})
    if degree >= n:
        raise DegenerateGeometryError('NURBS degree {} too high for {} control points'.format(degree, n),
                                      {'degree': degree, 'count': n})
    if knots is None:
        knots = clamped_uniform_knots(n, degree)
    return NurbsData(transform or Transform(), _controls(controls),
                     tuple(knots), degree, None if weights is None else tuple(weights))


def nurbs_from_fitting_points(points, degree=3, transform=None):
    """NURBS curve interpolating *points* (chord-length parameters on ``[0, 1]``)."""
    knots, controls = fit(_controls(points), degree)
    return NurbsData(transform or Transform(), tuple(controls), knots, degree)
