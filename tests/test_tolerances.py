from geokern import geom
from geokern.tolerances import (Tolerances, kernel_tolerance, intersection_tolerance,
                                length_tolerance)


class TestTolerances:
    """Test the tolerance accessors."""

    def test_accessors(self):
        assert kernel_tolerance() == Tolerances.KERNEL_EPSILON
        assert intersection_tolerance() == Tolerances.INTERSECTION
        assert length_tolerance() == 1e-4

    def test_epsilon_matches_geom(self):
        assert kernel_tolerance() == geom.epsilon

    def test_intersection_segments(self):
        assert Tolerances.INTERSECTION_LINE_SEGMENTS == 32
        assert Tolerances.INTERSECTION_ARC_SEGMENTS == 64
        # conic pairs are solved in closed form, no sampling density for them
        assert not hasattr(Tolerances, 'INTERSECTION_HYPERBOLA_SEGMENTS')
