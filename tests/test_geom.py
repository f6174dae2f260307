import pytest
from math import sqrt, pi
from geokern.geom import *
from geokern.errors import DegenerateGeometryError
## unit tests for geokern geom.py

class TestPoint:
    """unit tests for geokern point functions"""

    def test_create(self):
        a = point(5,0)
        b = point(0,5,-2)
        c = point(-2.3,4.6,-9.2,0.5)
        bb = point(b)
        assert a == [5,0,0,1]
        assert b == [0,5,-2,1]
        assert c == [-2.3,4.6,-9.2,0.5]
        assert bb == b and bb is not b

    def test_from_sequence(self):
        assert point((1.0,2.0)) == [1.0,2.0,0,1]
        assert point([1,2,3]) == [1,2,3,1]

    def test_bad_w(self):
        with pytest.raises(ValueError):
            point(1,2,3,0)

    def test_discriminate(self):
        assert ispoint(point(5,0))
        assert not ispoint(vect(1,2,3,-1))
        assert ispoint([0,2,2,1])
        assert not ispoint([1,2])
        assert not isgoodnum(True)


class TestOperations:
    def test_vect(self):
        a = point(5,0)
        b = point(0,5)
        c = point(-3,-3)
        d = point(1,1)
        assert close(mag(a),5.0)
        assert vclose(add(a,b),point(5,5))
        assert vclose(sub(a,b),point(5,-5))
        assert close(dot(a,b),0)
        assert close(dot(d,c),-6)
        assert vclose(cross(a,b),point(0,0,25))
        assert vclose(cross(b,a),point(0,0,-25))
        assert close(dist(a,b),sqrt(50))

    def test_normalize(self):
        n = normalize(point(3,4))
        assert close(mag(n),1.0)
        assert close(n[0],0.6)
        with pytest.raises(DegenerateGeometryError):
            normalize(point(0,0,0))

    def test_ortho(self):
        a = point(1,0)
        assert vclose(orthoXY(a),point(0,1))
        assert close(dot(orthoXY(point(2,3)),point(2,3)),0.0)

    def test_angle(self):
        assert close(angle2(point(0,1)),pi/2)
        assert close(angle2(point(-1,0)),pi)

    def test_homo(self):
        assert homo([2,4,6,2]) == [1,2,3,1]

    def test_four_vectors(self):
        a = [1,2,3,1]
        b = [4,5,6,0]
        assert add4(a,b) == [5,7,9,1]
        assert sub4(b,a) == [3,3,3,-1]
        assert scale4(a,2) == [2,4,6,2]
        assert dot4(a,b) == 32
