"""Exception types raised by the geokern kernel.

All kernel failures are deterministic consequences of the input: they are
raised at the call site that detected them and are never retried.

Copyright (c) 2025 geokern contributors
MIT License
"""


class GeometryError(ValueError):
    """Base class for kernel errors."""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = details or {}


class DegenerateGeometryError(GeometryError):
    """A construction has no unique or finite solution.

    Raised, for example, when three collinear points are passed to the
    circumcircle construction or a radius collapses to zero.
    """


class UnsupportedDerivativeOrderError(GeometryError):
    """A derivative order was requested that the curve kind has no closed form for."""

    def __init__(self, kind, order):
        super().__init__(
            '{} curve has no closed-form derivative of order {}'.format(kind, order),
            {'kind': kind, 'order': order})


class UnsupportedCurveTypeError(GeometryError):
    """Dispatch on a curve or surface kind with no registered algorithm."""


class LoopClosureError(GeometryError):
    """A loop whose coedges do not chain end-to-begin."""
