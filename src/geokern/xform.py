## matrix transformation operations and placement transforms for
## 3D homogeneous coordinates in geokern

## Copyright (c) 2020 Richard W. DeVaul
## Copyright (c) 2020 yapCAD contributors
## Copyright (c) 2025 geokern contributors
## All rights reserved

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

from dataclasses import dataclass
from math import acos, atan2, cos, sin
from typing import Optional, Tuple

import geokern.geom as geom

## a matrix is represented as a list of four four vectors. In a
## matrix, vectors represent rows unless the transpose property is
## true.  Because vectors are represented as lists (not as instances
## of a class with meta-info) we assume that operations like Mx imply
## a column vector and that xM imply a row vector.

## All angles in this module are in radians.


class Matrix:
    """4x4 transformation matrix class for transforming homogeneous 3D coordinates"""

    def __init__(self,a=False,trans=False):
        self.m = [[1,0,0,0],
                  [0,1,0,0],
                  [0,0,1,0],
                  [0,0,0,1]]
        self.trans=False

        if isinstance(a,Matrix):
            for i in range(4):
                self.setrow(i,list(a.getrow(i)))

        elif isinstance(a,(tuple,list)):
            if len(a) == 4 and all(isinstance(r,(tuple,list)) and len(r) == 4 for r in a):
                for i in range(4):
                    for j in range(4):
                        x =a[i][j]
                        if geom.isgoodnum(x):
                            self.m[i][j]=x
                        else:
                            raise ValueError('bad element in matrix initialization: {}'.format(x))
            elif len(a)==16:
                for i in range(4):
                    for j in range(4):
                        x = a[i*4+j]
                        if geom.isgoodnum(x):
                            self.m[i][j]=x
                        else:
                            raise ValueError('bad element in matrix initialization: {}'.format(x))
            else:
                raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))
        elif a is not False:
            raise ValueError('bad thing used in attempt to initialize matrix: {}'.format(a))
        self.trans=trans

    def __repr__(self):
        return "Matrix({},{},{},{},{})".format(self.m[0],self.m[1],
                                               self.m[2],self.m[3],self.trans)

    #return value indexed by i,j
    def get(self,i,j):
        if i < 0 or i > 3 or j < 0 or j > 3:
            raise ValueError('bad index passed to get: {},{}'.format(i,j))
        if self.trans:
            return self.m[j][i]
        else:
            return self.m[i][j]

    #set value indexed by i,j
    def set(self,i,j,x):
        if i < 0 or i > 3 or j < 0 or j > 3:
            raise ValueError('bad index passed to set: {},{}'.format(i,j))
        if geom.isgoodnum(x):
            if self.trans:
                self.m[j][i]=x
            else:
                self.m[i][j]=x
        else:
            raise ValueError('bad value passed to set: {}'.format(x))

    def getrow(self,i):
        if i < 0 or i > 3:
            raise ValueError('bad row passed to getrow: {}'.format(i))
        if self.trans:
            return [self.m[0][i],
                    self.m[1][i],
                    self.m[2][i],
                    self.m[3][i]]
        else:
            return self.m[i]

    def getcol(self,j):
        if j < 0 or j > 3:
            raise ValueError('bad column passed to getcol: {}'.format(j))
        if not self.trans:
            return [self.m[0][j],
                    self.m[1][j],
                    self.m[2][j],
                    self.m[3][j]]
        else:
            return self.m[j]

    def setrow(self,i,x):
        if not geom.isvect(x):
            raise ValueError('bad non-vector passed to setrow: {}'.format(x))
        if i < 0 or i > 3:
            raise ValueError('bad row index passed to setrow: {}'.format(i))
        if self.trans:
            for k in range(4):
                self.m[k][i] = x[k]
        else:
            self.m[i] = x

    # matrix multiply.  If x is a matrix, compute MX.  If X is a
    # vector, compute Mx. If x is a scalar, compute xM.  Respects
    # transpose flag.

    def mul(self,x):
        if isinstance(x,Matrix):
            result = Matrix()
            for i in range(4):
                for j in range(4):
                    result.set(i,j,
                               geom.dot4(self.getrow(i),x.getcol(j)))
            return result
        elif geom.isvect(x):
            result = geom.vect()
            for i in range(4):
                result[i]=geom.dot4(self.getrow(i),x)
            return result
        elif geom.isgoodnum(x):
            result = Matrix()
            for i in range(4):
                result.setrow(i,geom.scale4(self.getrow(i),x))
            return result

        raise ValueError('bad thing passed to mul(): {}'.format(x))

    def linear(self):
        """copy of this matrix with the translation column cleared, for
        transforming direction and derivative vectors"""
        result = Matrix(self)
        for i in range(3):
            result.set(i,3,0.0)
        return result

    def rigid_inverse(self):
        """inverse of a rotation + translation matrix, computed as
        ``[R^T | -R^T t]``.  Scale and shear are not supported."""
        result = Matrix()
        for i in range(3):
            for j in range(3):
                result.set(i,j,self.get(j,i))
        for i in range(3):
            result.set(i,3,-sum(self.get(j,i)*self.get(j,3) for j in range(3)))
        return result


# return the generalized 4x4 arbitrary axis rotation matrix, angle in
# radians
def Rotation(axis,angle,inverse=False):
    m = geom.mag(axis)
    u = axis
    if m < geom.epsilon:
        raise ValueError('zero-length rotation axis not allowed')
    if not geom.close(m,1.0):
        u = geom.scale3(axis,1.0/m)

    if inverse:
        angle *= -1.0

    ux = u[0]
    uy = u[1]
    uz = u[2]

    cang = cos(angle)
    cmin = 1.0-cang
    sang = sin(angle)

    # see http://www.opengl-tutorial.org/assets/faq_quaternions/index.html#Q38
    R = [[cang + ux*ux*cmin, ux*uy*cmin-uz*sang, ux*uz*cmin+uy*sang,0],
         [uy*ux*cmin+uz*sang, cang + uy*uy*cmin, uy*uz*cmin - ux*sang,0],
         [uz*ux*cmin-uy*sang, uz*uy*cmin+ux*sang, cang+uz*uz*cmin,0],
         [0,0,0,1]]

    return Matrix(R)

## Euler rotation, applied about x, then y, then z: R = Rz Ry Rx
def EulerRotation(rx,ry,rz):
    cx, sx = cos(rx), sin(rx)
    cy, sy = cos(ry), sin(ry)
    cz, sz = cos(rz), sin(rz)
    R = [[cz*cy, cz*sy*sx - sz*cx, cz*sy*cx + sz*sx, 0],
         [sz*cy, sz*sy*sx + cz*cx, sz*sy*cx - cz*sx, 0],
         [-sy, cy*sx, cy*cx, 0],
         [0,0,0,1]]
    return Matrix(R)

def Translation(delta,inverse=False):
    if inverse:
        delta = geom.scale3(delta,-1.0)
    dx = delta[0]
    dy = delta[1]
    dz = delta[2]
    T = [[1,0,0,dx],
         [0,1,0,dy],
         [0,0,1,dz],
         [0,0,0,1]]
    return Matrix(T)


Vec3 = Tuple[float, float, float]


def _triple(x) -> Vec3:
    x = tuple(float(c) for c in x)
    if len(x) == 2:
        return (x[0], x[1], 0.0)
    if len(x) < 2:
        raise ValueError('bad position or rotation: {}'.format(x))
    return x[:3]


@dataclass(frozen=True)
class Transform:
    """Placement of a curve, surface or face: position plus Euler rotation.

    ``rotation`` is ``(rx, ry, rz)`` in radians, applied about x, then y,
    then z.  A planar (2D) transform only uses ``rz``.  When ``parent`` is
    given, the world matrix is ``parent.world() * local()``, recursively
    up the whole chain.  Transforms are immutable and a parent has to exist
    before its child is created, so a chain can never contain a cycle.
    """

    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    parent: Optional['Transform'] = None

    def __post_init__(self):
        object.__setattr__(self, 'position', _triple(self.position))
        object.__setattr__(self, 'rotation', _triple(self.rotation))
        if self.parent is not None and not isinstance(self.parent, Transform):
            raise ValueError('bad parent transform: {}'.format(self.parent))

    @property
    def angle(self) -> float:
        """In-plane rotation of a 2D transform."""
        return self.rotation[2]

    @property
    def is_planar(self) -> bool:
        """True when this transform chain keeps the XY plane in place."""
        t = self
        while t is not None:
            if t.rotation[0] != 0.0 or t.rotation[1] != 0.0 or t.position[2] != 0.0:
                return False
            t = t.parent
        return True

    def local(self) -> Matrix:
        return Translation(self.position).mul(EulerRotation(*self.rotation))

    def world(self) -> Matrix:
        if self.parent is None:
            return self.local()
        return self.parent.world().mul(self.local())

    def to_world(self, p) -> list:
        return geom.homo(self.world().mul(geom.point(p)))

    def to_local(self, p) -> list:
        return geom.homo(self.world().rigid_inverse().mul(geom.point(p)))

    def vector_to_world(self, v) -> list:
        return self.world().linear().mul(geom.vect(v[0], v[1], v[2], 1.0))

    def vector_to_local(self, v) -> list:
        return self.world().rigid_inverse().linear().mul(geom.vect(v[0], v[1], v[2], 1.0))


def transform2(position=(0.0, 0.0), angle=0.0, parent=None):
    """Planar transform: *position* in the XY plane rotated by *angle*."""
    return Transform(position, (0.0, 0.0, angle), parent)


def transform3(position=(0.0, 0.0, 0.0), rotation=(0.0, 0.0, 0.0), parent=None):
    """Spatial transform with Euler *rotation* ``(rx, ry, rz)``."""
    return Transform(position, rotation, parent)


def rotation_to_axis(axis):
    """Euler rotation ``(0, ry, rz)`` that turns the local z axis onto *axis*."""
    n = geom.normalize(axis)
    return (0.0, acos(max(-1.0, min(1.0, n[2]))), atan2(n[1], n[0]))
