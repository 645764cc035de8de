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

""" Geometric mesh traits.

Convenience functions to compute geometric quantities used by the
remeshing operators, like vertex normals, face planes, and edge length
statistics.
"""

import numpy as np

import meshedit.linalg as linalg


def vertex_normal(vertex):
    """ Vertex normal.

    Area weighted average of the normals of the corners at `vertex`. A
    corner normal is the cross product of the two sides of a face that
    meet at the vertex.

    Parameters
    ----------
    vertex : Vertex
        Vertex of a mesh.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Unit normal vector.

    Note
    ----
    Vertex normals are not well defined for isolated vertices, the
    result is the zero vector in this case.
    """
    normal = np.zeros(3)

    for h in vertex._hiter():
        # Sides of the face of h that meet at the vertex.
        normal += linalg.cross(h.vector, -h.prev.vector)

    return linalg.unit_inplace(normal)


def face_plane(face):
    r""" Supporting plane of a face.

    Parameters
    ----------
    face : Face
        Face of a mesh.

    Returns
    -------
    ~numpy.ndarray, shape (4, )
        Coefficients :math:`(a, b, c, d)` of the plane
        :math:`ax + by + cz + d = 0` with unit normal :math:`(a, b, c)`
        through the face centroid.
    """
    normal = face.normal
    return np.append(normal, -normal.dot(face.centroid))


def one_ring_centroid(vertex):
    """ Centroid of the adjacent vertices.

    Parameters
    ----------
    vertex : Vertex
        A non-isolated vertex.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
    """
    return np.mean([w.point for w in vertex._viter()], axis=0)


def edge_length(item):
    """ Edge length statistics.

    Shortest, longest, and mean length over the edges of a mesh or
    around a single face.

    Parameters
    ----------
    item : Face or Mesh
        Item providing an edge iterator.

    Returns
    -------
    min : float
        Shortest edge.
    max : float
        Longest edge.
    avg : float
        Mean edge length.
    """
    lengths = [e.length for e in item._eiter()]
    return min(lengths), max(lengths), sum(lengths) / len(lengths)
