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

""" Combinatorial mesh item neighborhood iterators.

Adjacent/incident mesh items are visited in counter-clockwise order as
determined by the mesh orientation (whenever it makes sense to consider
oriented item traversal).

Note
----
When applied to a :class:`~meshedit.hds.Mesh` instance, the iterators
**skip** deleted mesh items. None of the iterators may be used while the
mesh is modified, use :func:`frozen` in this case.
"""


def verts(obj):
    """ Vertex iterator.

    The returned iterator traverses adjacent/incident vertices
    of `obj` depending on its type:

    .. table::
       :width: 100%
       :widths: 20, 80

       =============== ================================================
       :class:`Vertex` ↺ traversal of adjacent vertices
       --------------- ------------------------------------------------
       :class:`Edge`   origin and target of its halfedge
       --------------- ------------------------------------------------
       :class:`Face`   ↺ traversal of its corners
       --------------- ------------------------------------------------
       :class:`Mesh`   in-order traversal of live vertices
       =============== ================================================

    Parameters
    ----------
    obj : Vertex or Edge or Face or Mesh
        The base object.

    Yields
    ------
    Vertex
    """
    return obj._viter()


def halfs(obj):
    """ Halfedge iterator.

    Outgoing halfedges of a :class:`Vertex`, the two halfedges of an
    :class:`Edge`, the loop of a :class:`Face`, or all live halfedges
    of a :class:`Mesh`.

    Yields
    ------
    Halfedge
    """
    return obj._hiter()


def edges(obj):
    """ Edge iterator.

    Incident edges of a :class:`Vertex`, sides of a :class:`Face`, or all
    live edges of a :class:`Mesh`.

    Yields
    ------
    Edge
    """
    return obj._eiter()


def faces(obj):
    """ Face iterator.

    Incident faces of a :class:`Vertex` or :class:`Edge`, faces sharing a
    side with a :class:`Face`, or all live faces of a :class:`Mesh`.

    Yields
    ------
    Face
    """
    return obj._fiter()


def frozen(iterator):
    """ Snapshot of an iterator.

    Use when the loop body modifies the mesh, e.g.,
    ``for e in frozen(edges(mesh))``. Items deleted by the loop body
    remain in the snapshot, check :attr:`deleted` before use.

    Parameters
    ----------
    iterator : iterator
        One of the iterators of this module.

    Returns
    -------
    iterator
        Iterator over a list copy.
    """
    return iter(list(iterator))
