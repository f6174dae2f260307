"""
geokern - central tolerance configuration
=========================================

All numeric tolerances and sampling budgets in one place.

Usage::

    from geokern.tolerances import Tolerances

    tol = Tolerances.INTERSECTION

    # or through the convenience functions
    from geokern.tolerances import length_tolerance
    tol = length_tolerance()

Copyright (c) 2025 geokern contributors
MIT License
"""


class Tolerances:
    """
    Central tolerance constants for geokern.

    Categories:
    - KERNEL_*: coincidence and determinant tests
    - INTERSECTION_*: curve-curve intersection sampling
    - LENGTH_*: edge length estimation
    - NURBS_*: NURBS collaborator sampling
    - PRECISION_*: arbitrary precision arithmetic
    """

    # =========================================================================
    # Kernel
    # =========================================================================

    # Point coincidence, same value as geokern.geom.epsilon
    KERNEL_EPSILON = 5e-6

    # Below this a 2x2 / 3x3 determinant counts as zero
    KERNEL_DETERMINANT = 1e-12

    # =========================================================================
    # Intersection
    # =========================================================================

    # Default distance tolerance for intersection results
    INTERSECTION = 1e-9

    # Default sample counts for CurveXCurve when the sampled curve is analytic
    INTERSECTION_LINE_SEGMENTS = 32
    INTERSECTION_ARC_SEGMENTS = 64

    # Parameter interval kept away from the hyperbola asymptotes (radians)
    HYPERBOLA_ASYMPTOTE_GUARD = 1e-3

    # =========================================================================
    # Edge length
    # =========================================================================

    LENGTH = 1e-4
    LENGTH_INITIAL_SEGMENTS = 8

    # Each refinement doubles the segment count, 8 * 2**12 segments at most
    LENGTH_MAX_REFINEMENTS = 12

    # =========================================================================
    # NURBS collaborator
    # =========================================================================

    NURBS_SEGMENTS_PER_CONTROL = 2
    NURBS_CLOSEST_SAMPLES_PER_CONTROL = 16
    NURBS_CLOSEST_XTOL = 1e-12
    NURBS_UV_GRID = 12

    # =========================================================================
    # Arbitrary precision
    # =========================================================================

    # Decimal digits used by geokern.precision.highprec()
    PRECISION_DPS = 50


def kernel_tolerance():
    """Coincidence tolerance for points."""
    return Tolerances.KERNEL_EPSILON


def intersection_tolerance():
    """Distance tolerance for intersection results."""
    return Tolerances.INTERSECTION


def length_tolerance():
    """Convergence tolerance for the edge length estimator."""
    return Tolerances.LENGTH
