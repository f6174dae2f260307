## foundational vector helpers for geokern
## Copyright (c) 2020 Richard W. DeVaul
## Copyright (c) 2025 geokern contributors

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

"""foundational vector helpers for **geokern**

====================
OVERVIEW
====================

Every curve and surface evaluator in geokern produces and consumes
points and vectors in the representation defined here.

constants
=========

``epsilon`` is the coincidence tolerance and ``pi2`` is 2*pi.  Both
mirror :class:`geokern.tolerances.Tolerances`.

vectors
=======

vectors are defined as a list of four numbers, i.e. ``[x,y,z,w]``.
The ``w`` coordinate is a homogeneous normalization factor so that
the 4x4 matrices of :mod:`geokern.xform` can apply affine transforms.
Unspecified ``w`` values are set to 1, and unspecified ``z`` values
are set to 0.  Two-dimensional geometry lives in the ``z = 0`` plane.

points
======

points are vectors with ``w > 0``.  The R^3 operations below ignore
``w`` and always return ``w = 1``.

"""

from math import sqrt, atan2, pi
from copy import deepcopy

from geokern.errors import DegenerateGeometryError

## constants
epsilon = 0.000005
pi2 = 2.0*pi

## operations on scalars
## -----------------------

## booleans are ints in python, but they are not numbers for our purposes

def isgoodnum(n):
    """ determine if an argument is actually a scalar number, and not boolean
    """
    return (not isinstance(n,bool)) and isinstance(n,(int,float))

def close(a,b):
    """ are two scalars the same within epsilon
    """
    return abs(a-b) < epsilon


## operations on vectors
## ------------------------

def vect(a=False,b=False,c=False,d=False):
    """Convenience function for making a homogeneous coordinates 4 vector
from practically anything
    """
    r = [0,0,0,1]
    if isgoodnum(a):
        r[0]=a
        if isgoodnum(b):
            r[1]=b
            if isgoodnum(c):
                r[2]=c
                if isgoodnum(d):
                    r[3]=d
    elif isinstance(a,(tuple,list)):
        for i in range(min(4,len(a))):
            x=a[i]
            if isgoodnum(x):
                r[i]=x
    return r

def isvect(x):
    """
    check to see if argument is a proper vector for our purposes
    """
    return isinstance(x,list) and len(x) == 4 and isgoodnum(x[0]) and isgoodnum(x[1]) and isgoodnum(x[2]) and isgoodnum(x[3])

## determine if two vectors are the same, to within epsilon
def vclose(a,b):
    return close(mag(sub(a,b)),0)

## R^3 -> R^3 functions: ignore w component
## ------------------------------------------------
def add(a,b):
    """ 3 vector, `a + b`"""
    return [a[0]+b[0],a[1]+b[1],a[2]+b[2],1.0]

def sub(a,b):
    """ 3 vector, `a - b`"""
    return [a[0]-b[0],a[1]-b[1],a[2]-b[2],1.0]

def scale3(a,c):
    """ 3 vector, vector ''a'' times scalar ``c``, `a * c`"""
    return [a[0]*c,a[1]*c,a[2]*c,1.0]

def cross(a,b):
    """Compute the cross product of a x b, assuming that both fall into
    the w=1 hyperplane
    """
    return [ a[1]*b[2] - a[2]*b[1],
             a[2]*b[0] - a[0]*b[2],
             a[0]*b[1] - a[1]*b[0],
             1.0 ]

## left-hand perpendicular of a vector lying in the XY plane
def orthoXY(a):
    """rotate the XY part of ``a`` by +90 degrees"""
    return [ -a[1], a[0], 0, 1.0 ]

def normalize(a):
    """ unit 3 vector in the direction of ``a``"""
    m = mag(a)
    if m < 1e-300:
        raise DegenerateGeometryError('cannot normalize zero-length vector: {}'.format(a))
    return [a[0]/m,a[1]/m,a[2]/m,1.0]

## R^4 -> R^4 functions: operate on w component
def add4(a,b):
    """ 4 vector `a + b`"""
    return [a[0]+b[0],a[1]+b[1],a[2]+b[2],a[3]+b[3]]

def sub4(a,b):
    """ 4 vector `a - b`"""
    return [a[0]-b[0],a[1]-b[1],a[2]-b[2],a[3]-b[3]]

def scale4(a,c):
    """ 4 vector ``a`` times scalar ``c``"""
    return [a[0]*c,a[1]*c,a[2]*c,a[3]*c]

## Homogenize, or project back to the w=1 plane by scaling all values
## by w
def homo(a):
    """Homogenize, or project back to the w=1 plane by scaling all values by w"""
    return [ a[0]/a[3],
             a[1]/a[3],
             a[2]/a[3],
             1 ]

## R^3 -> R functions -- ignore w component
## ----------------------------------------
def dot(a,b):
    """ 3 vector ``a`` dot ``b`` """
    return a[0]*b[0]+a[1]*b[1]+a[2]*b[2]

def mag(a):
    """ compute the magnitude of 3 vector ``a``"""
    return sqrt(a[0]*a[0]+a[1]*a[1]+a[2]*a[2])

def dist(a,b):
    """ compute the euclidean distance between two 3 vector points ``a`` and ``b``"""
    return mag(sub(a,b))

def angle2(a):
    """ polar angle of the XY part of ``a``, in radians"""
    return atan2(a[1],a[0])

## R^4 -> R functions
def dot4(a,b):
    """ 4 vector ``a`` dot ``b`` """
    return a[0]*b[0]+a[1]*b[1]+a[2]*b[2]+a[3]*b[3]


## points
## ------

def point(x=False,y=False,z=False,w=False):
    """Point creation from point, sequence or scalars"""
    if ispoint(x):
        return deepcopy(x)
    if isinstance(x,(tuple,list)):
        r = vect(x)
    else:
        r = [0,0,0,1]
        if isgoodnum(x):
            r[0]=x
            if isgoodnum(y):
                r[1]=y
                if isgoodnum(z):
                    r[2]=z
                    if isgoodnum(w):
                        r[3]=w
    if r[3] > 0:
        return r
    else:
        raise ValueError('bad w argument to point()')


def ispoint(x):
    """ is it a point?"""
    if isvect(x) and x[3] > 0.0:
        return True
    return False
