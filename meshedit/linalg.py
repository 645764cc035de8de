# Copyright 2024, m3shware
#
# Permission is hereby granted, free of charge, to any person obtaining a
# copy of this software and associated documentation files (the "Software"),
# to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense,
# and/or sell copies of the Software, and to permit persons to whom the
# Software is furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING
# FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS
# IN THE SOFTWARE.

""" Basic vector math.

Small helpers for single 3-vectors. They avoid the overhead of NumPy's
vectorized routines when called once per mesh item.
"""

import math
import numpy as np


def clamp(x, lo, hi):
    """ Clamp value to range.

    Parameters
    ----------
    x : float
        Value to clamp.
    lo : float
        Lower bound.
    hi : float
        Upper bound.

    Returns
    -------
    float
        `x` restricted to the closed interval [`lo`, `hi`].
    """
    assert lo <= hi
    return max(min(x, hi), lo)


def cross(u, v):
    r""" Cross product.

    Parameters
    ----------
    u, v : array_like, shape (3, )
        Vector in :math:`\mathbb{R}^3`.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        The vector :math:`\mathbf{u} \times \mathbf{v}`.
    """
    return np.array([u[1]*v[2] - u[2]*v[1],
                     u[2]*v[0] - u[0]*v[2],
                     u[0]*v[1] - u[1]*v[0]])


def dot(u, v):
    """ Inner product of 3-vectors.
    """
    return u[0]*v[0] + u[1]*v[1] + u[2]*v[2]


def norm(u):
    r""" Length of vector.

    Parameters
    ----------
    u : ~numpy.ndarray, shape (n, )
        Vector in :math:`\mathbb{R}^n`.

    Returns
    -------
    float
        Euclidean length of the vector :math:`\mathbf{u}`.
    """
    return math.sqrt(u.dot(u))


def unit_inplace(u):
    """ In-place vector normalization.

    Modifies the input argument. The zero vector is returned unchanged.

    Parameters
    ----------
    u : ~numpy.ndarray, shape (3, )
        Vector of floating point type.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        The normalized input vector (not a normalized copy).
    """
    length = norm(u)

    if length > 0.0:
        u /= length

    return u


def tangential(u, n):
    r""" Tangential component.

    Project `u` onto the plane through the origin with unit normal `n`,
    i.e., compute :math:`\mathbf{u} - (\mathbf{n} \cdot \mathbf{u})
    \mathbf{n}`.

    Parameters
    ----------
    u : ~numpy.ndarray, shape (3, )
        Vector to project.
    n : ~numpy.ndarray, shape (3, )
        Unit normal vector.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Projected vector.
    """
    return u - dot(n, u) * n


def polygon_normal(points):
    """ Polygon normal.

    Newell's method: sum of the cross products of consecutive corner
    positions. Well defined for non-planar and non-convex polygons.

    Parameters
    ----------
    points : array_like, shape (n, 3)
        Polygon corners in loop order.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Unit normal vector, the zero vector for degenerate polygons.
    """
    points = np.asarray(points, dtype=float)
    normal = np.cross(points, np.roll(points, -1, axis=0)).sum(axis=0)
    return unit_inplace(normal)
