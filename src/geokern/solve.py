"""Closed-form polynomial root solvers.

Roots are computed in arbitrary precision (see :mod:`geokern.precision`)
and returned as native ``float`` for real roots and ``complex`` otherwise.

Copyright (c) 2025 geokern contributors
MIT License
"""

from __future__ import annotations

from typing import List, Sequence, Union

import numpy as np

from geokern.errors import DegenerateGeometryError
from geokern.precision import highprec, to_number, mpf, mpc, sqrt, cbrt, acos, cos, pi

Root = Union[float, complex]

__all__ = ['solve_quadratic', 'solve_cubic', 'real_roots']


def _real_cbrt(x):
    # mpmath returns the principal (complex) root for negative input
    return -cbrt(-x) if x < 0 else cbrt(x)


def _order(roots: Sequence[Root]) -> List[Root]:
    real = sorted(r for r in roots if isinstance(r, float))
    other = [r for r in roots if not isinstance(r, float)]
    return real + other


def solve_quadratic(a, b, c) -> List[Root]:
    """Solve ``a x^2 + b x + c = 0``.

    Always returns two roots: two distinct reals in ascending order, a
    repeated real root twice, or a complex conjugate pair.

    Raises
    ------
    DegenerateGeometryError
        If ``a == 0``.
    """
    with highprec():
        a, b, c = mpf(a), mpf(b), mpf(c)
        if a == 0:
            raise DegenerateGeometryError('not a quadratic equation: a == 0',
                                          {'a': 0.0, 'b': float(b), 'c': float(c)})
        disc = b*b - 4*a*c
        if disc > 0:
            s = sqrt(disc)
            # avoids cancellation between -b and s
            q = -(b + s)/2 if b >= 0 else -(b - s)/2
            roots = [q/a, c/q]
        elif disc == 0:
            r = -b/(2*a)
            roots = [r, r]
        else:
            re = -b/(2*a)
            im = sqrt(-disc)/(2*a)
            roots = [mpc(re, im), mpc(re, -im)]
        return _order([to_number(r) for r in roots])


def _cardano(a, b, c, d):
    p = b/a
    q = c/a
    r = d/a
    p3 = p/3

    # depressed cubic t^3 + dp t + dq = 0 with x = t - p/3
    dp = q - p*p/3
    dq = 2*p*p*p/27 - p*q/3 + r
    disc = (dq/2)**2 + (dp/3)**3

    if disc > 0:
        s = sqrt(disc)
        u = _real_cbrt(-dq/2 + s)
        v = _real_cbrt(-dq/2 - s)
        re = -(u + v)/2 - p3
        im = (u - v)*sqrt(3)/2
        return [u + v - p3, mpc(re, im), mpc(re, -im)]
    if disc == 0:
        u = _real_cbrt(-dq/2)
        return [2*u - p3, -u - p3, -u - p3]

    rr = sqrt((-dp/3)**3)
    ang = max(mpf(-1), min(mpf(1), -dq/(2*rr)))
    theta = acos(ang)
    m = 2*cbrt(rr)
    return [m*cos(theta/3) - p3,
            m*cos((theta + 2*pi)/3) - p3,
            m*cos((theta + 4*pi)/3) - p3]


def _residual(coeffs, roots):
    a, b, c, d = coeffs
    return sum(abs(((a*x + b)*x + c)*x + d) for x in roots)/len(roots)


def solve_cubic(a, b, c, d) -> List[Root]:
    """Solve ``a x^3 + b x^2 + c x + d = 0``.

    The closed form (Cardano, or the trigonometric form for three real
    roots) is compared with the companion-matrix eigenvalues from
    :func:`numpy.roots`; whichever set has the smaller mean residual is
    returned, real roots first in ascending order.

    Raises
    ------
    DegenerateGeometryError
        If ``a == 0``.
    """
    with highprec():
        coeffs = [mpf(a), mpf(b), mpf(c), mpf(d)]
        if coeffs[0] == 0:
            raise DegenerateGeometryError('not a cubic equation: a == 0',
                                          {'a': 0.0, 'b': float(b), 'c': float(c), 'd': float(d)})
        closed = _cardano(*coeffs)
        eig = [mpc(complex(r)) for r in np.roots([float(x) for x in coeffs])]
        best = closed
        if len(eig) == 3 and _residual(coeffs, eig) < _residual(coeffs, closed):
            best = eig
        scale = max(abs(x) for x in best) or 1
        return _order([to_number(x, tol=1e-12*max(1, scale)) for x in best])


def real_roots(roots: Sequence[Root], tol: float = 0.0) -> List[float]:
    """Real roots of *roots* in ascending order, repeated roots within *tol* merged."""
    out: List[float] = []
    for r in sorted(x for x in roots if isinstance(x, float)):
        if out and abs(r - out[-1]) <= tol:
            continue
        out.append(r)
    return out
