"""Immutable curve data records.

Each record is a frozen dataclass carrying a :class:`~geokern.xform.Transform`
plus the parameters of one curve kind, tagged by its ``kind`` class
attribute.  Records are produced by :mod:`geokern.curve_builder`, never
mutated afterwards, and may be shared by any number of edges.

Curve kinds:
- LineData: ``(u, 0)`` in local space, ``u`` in ``[0, length]``
- ArcData: ``(radius_x cos u, radius_y sin u)``; circle when the radii match
- HyperbolaData: ``(radius_x sec u, radius_y tan u)``
- ParabolaData: ``4 f y = x^2``
- NurbsData: control points, knot vector, degree and optional weights
- ConicData: general conic ``A x^2 + 2B xy + C y^2 + D x + E y + F = 0``

Copyright (c) 2025 geokern contributors
MIT License
"""

from __future__ import annotations

from dataclasses import dataclass, field
from math import inf
from typing import ClassVar, Optional, Tuple

from geokern.xform import Transform

__all__ = ['CurveData', 'LineData', 'ArcData', 'HyperbolaData', 'ParabolaData',
           'NurbsData', 'ConicData', 'CURVE_KINDS']


@dataclass(frozen=True)
class CurveData:
    """Common base of all curve records."""

    kind: ClassVar[str] = 'curve'
    transform: Transform = field(default_factory=Transform)


@dataclass(frozen=True)
class LineData(CurveData):
    kind: ClassVar[str] = 'line'
    length: float = inf


@dataclass(frozen=True)
class ArcData(CurveData):
    kind: ClassVar[str] = 'arc'
    radius_x: float = 1.0
    radius_y: float = 1.0

    @property
    def is_circle(self) -> bool:
        return self.radius_x == self.radius_y


@dataclass(frozen=True)
class HyperbolaData(CurveData):
    kind: ClassVar[str] = 'hyperbola'
    radius_x: float = 1.0
    radius_y: float = 1.0


@dataclass(frozen=True)
class ParabolaData(CurveData):
    kind: ClassVar[str] = 'parabola'
    focus: float = 1.0


@dataclass(frozen=True)
class NurbsData(CurveData):
    """NURBS curve parameters.

    ``controls`` is a tuple of 2D or 3D points, ``knots`` has
    ``len(controls) + degree + 1`` entries and ``weights`` is either
    ``None`` (non-rational) or one weight per control point.
    """

    kind: ClassVar[str] = 'nurbs'
    controls: Tuple[Tuple[float, ...], ...] = ()
    knots: Tuple[float, ...] = ()
    degree: int = 3
    weights: Optional[Tuple[float, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, 'controls', tuple(tuple(float(c) for c in p) for p in self.controls))
        object.__setattr__(self, 'knots', tuple(float(k) for k in self.knots))
        if self.weights is not None:
            object.__setattr__(self, 'weights', tuple(float(w) for w in self.weights))


@dataclass(frozen=True)
class ConicData(CurveData):
    """General conic ``A x^2 + 2B xy + C y^2 + D x + E y + F = 0`` in local space."""

    kind: ClassVar[str] = 'conic'
    a: float = 1.0
    b: float = 0.0
    c: float = 1.0
    d: float = 0.0
    e: float = 0.0
    f: float = -1.0

    @property
    def coefficients(self) -> Tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)


CURVE_KINDS = tuple(cls.kind for cls in (LineData, ArcData, HyperbolaData,
                                         ParabolaData, NurbsData, ConicData))
