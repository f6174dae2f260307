"""Arbitrary precision arithmetic for geokern.

Most of the kernel runs on native floats.  The two places where floating
point cancellation is provably harmful (the hyperbola evaluator, whose
``sec``/``tan`` terms blow up near the asymptotes, and the closed-form
polynomial solvers) do their arithmetic inside :func:`highprec` and cast
only the final result back with :func:`to_float`.

The precision budget is ``Tolerances.PRECISION_DPS`` decimal digits.

Copyright (c) 2025 geokern contributors
MIT License
"""

import mpmath as mpm
from mpmath import mpf, mpc, sqrt, cbrt, sec, tan, atan, acos, cos, pi

from geokern.tolerances import Tolerances

PRECISION_DPS = Tolerances.PRECISION_DPS

__all__ = ['PRECISION_DPS', 'highprec', 'to_float', 'to_number',
           'mpf', 'mpc', 'sqrt', 'cbrt', 'sec', 'tan', 'atan', 'acos', 'cos', 'pi']


def highprec(dps=None):
    """Context manager that raises the working precision to *dps* digits.

    ::

        with highprec():
            s = sec(mpf(u))
    """
    return mpm.workdps(dps or PRECISION_DPS)


def to_float(x):
    """Cast an mpmath real (or anything float() accepts) to a native float."""
    return float(x)


def to_number(x, tol=0.0):
    """Cast an mpmath number to ``float`` when it is real, else ``complex``.

    An imaginary part whose magnitude is at most *tol* counts as real.
    """
    if isinstance(x, mpc):
        if abs(x.imag) <= tol:
            return float(x.real)
        return complex(float(x.real), float(x.imag))
    return float(x)
