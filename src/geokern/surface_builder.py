"""Surface builders and the surface algorithm dispatcher.

Copyright (c) 2025 geokern contributors
MIT License
"""

from functools import lru_cache

from geokern import geom
from geokern.curve_builder import clamped_uniform_knots
from geokern.errors import DegenerateGeometryError, UnsupportedCurveTypeError
from geokern.surface_algo import (SurfaceAlgo, PlaneAlgo, CylinderAlgo, ConeAlgo, SphereAlgo,
                                  EllipsoidAlgo, LoftingAlgo, SweepAlgo, NurbsSurfaceAlgo)
from geokern.surface_data import (SURFACE_KINDS, PlaneData, CylinderData, ConeData, SphereData,
                                  EllipsoidData, LoftingData, SweepData, NurbsSurfaceData)
from geokern.xform import Transform, rotation_to_axis, transform3

_SURFACE_ALGORITHMS = {}


def register_surface(kind, algo_cls):
    if not issubclass(algo_cls, SurfaceAlgo):
        raise ValueError('not a surface algorithm: {}'.format(algo_cls))
    _SURFACE_ALGORITHMS[kind] = algo_cls
    surface_algorithm.cache_clear()


@lru_cache(maxsize=256)
def surface_algorithm(data):
    """Return the algorithm bound to surface record *data*.

    Raises
    ------
    UnsupportedCurveTypeError
        If no algorithm is registered for the record's kind.
    """
    kind = getattr(data, 'kind', None)
    try:
        algo_cls = _SURFACE_ALGORITHMS[kind]
    except KeyError:
        raise UnsupportedCurveTypeError('no algorithm registered for surface kind {!r}'.format(kind),
                                        {'kind': kind}) from None
    return algo_cls(data)


register_surface(PlaneData.kind, PlaneAlgo)
register_surface(CylinderData.kind, CylinderAlgo)
register_surface(ConeData.kind, ConeAlgo)
register_surface(SphereData.kind, SphereAlgo)
register_surface(EllipsoidData.kind, EllipsoidAlgo)
register_surface(LoftingData.kind, LoftingAlgo)
register_surface(SweepData.kind, SweepAlgo)
register_surface(NurbsSurfaceData.kind, NurbsSurfaceAlgo)

_missing = [k for k in SURFACE_KINDS if k not in _SURFACE_ALGORITHMS]
if _missing:
    raise UnsupportedCurveTypeError('surface kinds without an algorithm: {}'.format(_missing),
                                    {'kinds': _missing})


def _placement(origin, axis):
    return transform3(geom.point(origin), rotation_to_axis(axis))


def _positive(name, value):
    if value <= 0.0:
        raise DegenerateGeometryError('{} must be positive: {}'.format(name, value), {name: value})


def plane_from_origin_normal(origin, normal=(0.0, 0.0, 1.0)):
    """Plane through *origin*; its local z axis is *normal*."""
    return PlaneData(_placement(origin, normal))


def cylinder_from_axis(origin, axis, radius):
    _positive('radius', radius)
    return CylinderData(_placement(origin, axis), radius)


def cone_from_axis(origin, axis, radius, semi_angle):
    """Cone with *radius* at *origin*, widening along *axis* by ``tan(semi_angle)``."""
    _positive('semi_angle', semi_angle)
    if radius < 0.0:
        raise DegenerateGeometryError('cone radius must not be negative: {}'.format(radius),
                                      {'radius': radius})
    return ConeData(_placement(origin, axis), radius, semi_angle)


def sphere_from_center_radius(center, radius):
    _positive('radius', radius)
    return SphereData(transform3(geom.point(center)), radius)


def ellipsoid_from_center_size(center, size, rotation=(0.0, 0.0, 0.0)):
    size = tuple(float(s) for s in size)
    if len(size) != 3 or min(size) <= 0.0:
        raise DegenerateGeometryError('ellipsoid semi-axes must be three positive values',
                                      {'size': size})
    return EllipsoidData(transform3(geom.point(center), rotation), size)


def lofting_from_sections(sections, transform=None):
    sections = tuple(sections)
    if len(sections) < 2:
        raise DegenerateGeometryError('lofting needs at least two sections', {'count': len(sections)})
    return LoftingData(transform or Transform(), sections)


def sweep_from_section_path(section, path, transform=None):
    return SweepData(transform or Transform(), section, path)


def nurbs_surface_from_controls(controls, uknots=None, vknots=None, p=3, q=3,
                                weights=None, transform=None):
    """Tensor-product NURBS surface from a grid of 3D control points.

    Knot vectors default to clamped uniform on ``[0, 1]``.
    """
    grid = tuple(tuple(tuple(float(c) for c in pt[:3]) for pt in row) for row in controls)
    rows = len(grid)
    cols = len(grid[0]) if rows else 0
    if rows <= p or cols <= q or any(len(row) != cols for row in grid):
        raise DegenerateGeometryError('control grid too small or ragged for degrees ({}, {})'.format(p, q),
                                      {'rows': rows, 'cols': cols})
    if uknots is None:
        uknots = clamped_uniform_knots(rows, p)
    if vknots is None:
        vknots = clamped_uniform_knots(cols, q)
    if weights is not None:
        weights = tuple(tuple(float(w) for w in row) for row in weights)
    return NurbsSurfaceData(transform or Transform(), grid, tuple(uknots), tuple(vknots),
                            weights, p, q)
