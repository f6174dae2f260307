"""Immutable surface data records.

Surface kinds, each in its own local frame:
- PlaneData: the local XY plane, ``(u, v, 0)``
- CylinderData: radius about the local z axis, ``v`` is height
- ConeData: radius at ``z = 0`` growing by ``tan(semi_angle)`` per unit height
- SphereData: radius about the origin, ``u`` longitude, ``v`` latitude
- EllipsoidData: semi-axes ``size = (a, b, c)``
- LoftingData: ruled surface through two or more section curves
- SweepData: section curve translated along a path curve
- NurbsSurfaceData: tensor-product NURBS surface

Copyright (c) 2025 geokern contributors
MIT License
"""

from __future__ import annotations

from dataclasses import dataclass, field
from math import pi
from typing import ClassVar, Optional, Tuple

from geokern.curve_data import CurveData, LineData
from geokern.xform import Transform

__all__ = ['SurfaceData', 'PlaneData', 'CylinderData', 'ConeData', 'SphereData',
           'EllipsoidData', 'LoftingData', 'SweepData', 'NurbsSurfaceData', 'SURFACE_KINDS']


@dataclass(frozen=True)
class SurfaceData:
    kind: ClassVar[str] = 'surface'
    transform: Transform = field(default_factory=Transform)


@dataclass(frozen=True)
class PlaneData(SurfaceData):
    kind: ClassVar[str] = 'plane'


@dataclass(frozen=True)
class CylinderData(SurfaceData):
    kind: ClassVar[str] = 'cylinder'
    radius: float = 1.0


@dataclass(frozen=True)
class ConeData(SurfaceData):
    kind: ClassVar[str] = 'cone'
    radius: float = 1.0
    semi_angle: float = pi/4


@dataclass(frozen=True)
class SphereData(SurfaceData):
    kind: ClassVar[str] = 'sphere'
    radius: float = 1.0


@dataclass(frozen=True)
class EllipsoidData(SurfaceData):
    kind: ClassVar[str] = 'ellipsoid'
    size: Tuple[float, float, float] = (1.0, 1.0, 1.0)


@dataclass(frozen=True)
class LoftingData(SurfaceData):
    """Ruled surface through ``sections``; ``v = i`` lies on section ``i``."""

    kind: ClassVar[str] = 'lofting'
    sections: Tuple[CurveData, ...] = ()


@dataclass(frozen=True)
class SweepData(SurfaceData):
    """``section(u)`` translated by ``path(v) - path(v0)``."""

    kind: ClassVar[str] = 'sweep'
    section: CurveData = field(default_factory=LineData)
    path: CurveData = field(default_factory=LineData)


@dataclass(frozen=True)
class NurbsSurfaceData(SurfaceData):
    """Tensor-product NURBS surface.

    ``controls[i][j]`` is a 3D point, ``uknots``/``vknots`` have
    ``rows + p + 1`` and ``cols + q + 1`` entries.
    """

    kind: ClassVar[str] = 'nurbs_surface'
    controls: Tuple[Tuple[Tuple[float, ...], ...], ...] = ()
    uknots: Tuple[float, ...] = ()
    vknots: Tuple[float, ...] = ()
    weights: Optional[Tuple[Tuple[float, ...], ...]] = None
    p: int = 3
    q: int = 3


SURFACE_KINDS = tuple(cls.kind for cls in (PlaneData, CylinderData, ConeData, SphereData,
                                           EllipsoidData, LoftingData, SweepData,
                                           NurbsSurfaceData))
