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

""" Halfedge data structure.

A closed orientable 2-manifold polygon mesh is described by four arenas,
one per item kind:

    - a list of :class:`Vertex` objects,
    - a list of :class:`Edge` objects,
    - a list of :class:`Halfedge` objects,
    - and a list of :class:`Face` objects.

These containers, the relations between their items and all topological
editing operators are managed by the :class:`Mesh` class. Deleted items
stay in their slot, marked as deleted, until a later allocation recycles
the slot. Items are addressed from the outside by a :class:`Handle` that
detects such recycling.

Note
----
To ease debugging, this module relies on assertions which can slow down
script execution. You can disable assertions by running in optimized mode
via the "-O" command line argument.
"""

from collections import Counter
from collections import namedtuple
from itertools import count

import numpy as np

import meshedit.flags as flags
import meshedit.linalg as linalg


BEVEL_LIMIT = 0.95
""" Largest admissible bevel inset.

New bevel vertices never travel more than this fraction of the way toward
their target vertex, so they cannot coincide with it.
"""

_ARENAS = {'vertex': '_verts',
           'edge': '_edges',
           'halfedge': '_halfs',
           'face': '_faces'}


Handle = namedtuple('Handle', ['kind', 'index', 'generation'])
Handle.__doc__ = """ Opaque mesh item address.

Hashable and immutable, usable as dictionary key. A handle stays valid
for the lifetime of the item it was taken from, see :meth:`Mesh.lookup`.

Parameters
----------
kind : str
    One of ``'vertex'``, ``'edge'``, ``'halfedge'``, ``'face'``.
index : int
    Arena slot of the item.
generation : int
    Allocation stamp of the item, unique within a mesh.
"""


def _array_append(array, size, item):
    """ Append row to a growable array.

    Parameters
    ----------
    array : ~numpy.ndarray
        Row buffer, possibly with unused rows at the end.
    size : int
        Number of rows in use.
    item : array_like
        Row to store at position `size`.

    Returns
    -------
    ~numpy.ndarray
        The buffer holding the new row, a new array if `array` was full.
        Views of the old buffer stay valid but are no longer updated.
    """
    if size == len(array):
        grown = np.empty((max(2*size, 8), *array.shape[1:]))
        grown[:size] = array[:size]
        array = grown

    array[size] = item
    return array


def _as_point(point):
    point = np.asarray(point, dtype=float)

    if point.shape != (3,):
        raise ValueError(f'cannot use point with shape {point.shape}')

    return point


class Mesh:
    """ Mesh kernel.

    The combinatorics of a mesh is built by converting a sequence of vertex
    coordinates and a sequence of face definitions (a polygon soup) to its
    halfedge representation.

    Parameters
    ----------
    points : array_like, shape (n, 3), optional
        Vertex coordinates. Always copied.
    faces : sequence of sequence of int, optional
        Face definitions, 0-based vertex indexing, counter-clockwise
        when seen from the outside.
    name : str, optional
        Name tag.

    Raises
    ------
    NonManifoldEdgeError
        If an oriented vertex pair occurs in more than one face.
    UnmatchedEdgeError
        If a face side has no oppositely oriented partner (open boundary).
    NonManifoldVertexError
        If the faces around a vertex do not form a single fan.
    ValueError
        For malformed face definitions.

    Note
    ----
    Iteration over a mesh visits its faces. Vertices, edges, halfedges
    and faces are visited in arena order, which is build order for a
    freshly built mesh.
    """

    def __init__(self, points=None, faces=None, *, name=None):
        """ Initialize from vertex and face lists.
        """
        # Generation stamps are never reused, not even when the mesh is
        # rebuilt from scratch. A handle from before a rebuild is stale.
        self._stamp = count(1)
        self._rebuild(points, faces)

        self.name = name

    @classmethod
    def build(cls, polygons, positions, *, name=None):
        """ Build mesh from polygon soup.

        Same as ``Mesh(positions, polygons, name=name)``.

        Parameters
        ----------
        polygons : sequence of sequence of int
            Face definitions.
        positions : array_like, shape (n, 3)
            Vertex coordinates.
        name : str, optional
            Name tag.

        Returns
        -------
        Mesh
            The new mesh.
        """
        return cls(positions, polygons, name=name)

    def __iter__(self):
        """ Face iterator.

        Visits all faces that are **not** marked as deleted in arena
        order.

        Yields
        ------
        Face
        """
        return self._fiter()

    def __bool__(self):
        return True

    def __contains__(self, item):
        """ Check if `item` is a live item of this mesh.
        """
        return getattr(item, '_mesh', None) is self and not item._deleted

    def __copy__(self):
        return self.copy()

    @property
    def points(self):
        """ Vertex coordinates.

        One row per vertex slot. Rows of deleted vertices hold stale
        coordinates.

        :type: ~numpy.ndarray
        """
        return self._points[:len(self._verts)]

    @property
    def vertices(self):
        """ Live vertices in arena order.

        :type: list of Vertex
        """
        return list(self._viter())

    @property
    def edges(self):
        """ Live edges in arena order.

        :type: list of Edge
        """
        return list(self._eiter())

    @property
    def halfedges(self):
        """ Live halfedges in arena order.

        :type: list of Halfedge
        """
        return list(self._hiter())

    @property
    def faces(self):
        """ Live faces in arena order.

        :type: list of Face
        """
        return list(self._fiter())

    @property
    def size(self):
        """ Number of vertices, edges, and faces.

        :type: tuple of int
        """
        return (sum(1 for _ in self._viter()),
                sum(1 for _ in self._eiter()),
                sum(1 for _ in self._fiter()))

    @property
    def euler(self):
        """ Euler characteristic.

        Equals 2 for a mesh of genus zero.

        :type: int
        """
        nv, ne, nf = self.size
        return nv - ne + nf

    @property
    def triangular(self):
        """ Pure triangle mesh check.

        :type: bool
        """
        return all(f.degree == 3 for f in self._fiter())

    def lookup(self, handle):
        """ Resolve a handle.

        Parameters
        ----------
        handle : Handle
            Item address obtained from :attr:`Vertex.handle` and friends.

        Raises
        ------
        StaleHandleError
            If the addressed item was deleted or its slot recycled.
        ValueError
            For an unknown item kind.

        Returns
        -------
        Vertex or Edge or Halfedge or Face
            The live item.
        """
        kind, index, generation = handle

        if kind not in _ARENAS:
            raise ValueError(f'unknown item kind {kind!r}')

        arena = getattr(self, _ARENAS[kind])

        if not 0 <= index < len(arena):
            raise StaleHandleError(f'no {kind} in slot {index}')

        item = arena[index]

        if item._deleted or item._gen != generation:
            raise StaleHandleError(f'{kind} #{index} of generation ' +
                                   f'{generation} no longer exists')

        return item

    def copy(self):
        """ Mesh copy.

        Duplicate the mesh combinatorics and vertex coordinates. The copy
        is compacted: deleted items are dropped and slots renumbered.

        Returns
        -------
        Mesh
            Copy of the mesh.
        """
        points, polygons = self.soup()
        mesh = Mesh(points, polygons, name=self.name)

        for v, w in zip(self._viter(), mesh._viter()):
            w._flags = v._flags

        return mesh

    def soup(self):
        """ Polygon soup of the live mesh.

        Returns
        -------
        points : ~numpy.ndarray, shape (n, 3)
            Coordinates of the live vertices in arena order.
        polygons : list of list of int
            Face definitions indexing into `points`, one per live face,
            each starting at the origin of :attr:`Face.halfedge`.
        """
        verts = self.vertices
        vmap = {v: i for i, v in enumerate(verts)}

        points = np.array([v.point for v in verts]).reshape(-1, 3)
        polygons = [[vmap[v] for v in f._viter()] for f in self._fiter()]

        return points, polygons

    def _rebuild(self, points, faces):
        """ Replace the mesh contents by a polygon soup.
        """
        CWHITERED = '\33[41m'               # white on red background
        CEND = '\33[0m'

        if points is None and faces is not None:
            msg = "face definitions require 'points' argument != None"
            raise ValueError(msg)

        self._verts = []
        self._edges = []
        self._halfs = []
        self._faces = []
        self._free = {kind: [] for kind in _ARENAS}

        if points is None:
            self._points = np.empty((0, 3))
            return

        points = np.array(points, dtype=float)

        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f'points of shape {points.shape} given, ' +
                             'expected (n, 3)')

        self._points = points
        self._verts = [Vertex(i, next(self._stamp), self)
                       for i in range(len(points))]

        # Maps oriented vertex index pairs to halfedges. Consulted to find
        # twins once all faces are in place.
        pairs = dict()

        for face in faces if faces is not None else []:
            face = [int(i) for i in face]

            if len(face) < 3:
                raise ValueError(f'face {face} has less than 3 corners')

            if len(set(face)) != len(face):
                raise ValueError(f'face {face} has repeated corners')

            if not all(0 <= i < len(points) for i in face):
                raise ValueError(f'face {face} references missing vertex')

            f = self._alloc(Face)
            loop = []

            for a, b in zip(face, face[1:] + face[:1]):
                if (a, b) in pairs:
                    raise NonManifoldEdgeError(f'oriented edge ({a}, {b}) ' +
                                               'is used by two faces')

                h = self._alloc(Halfedge)
                h._origin = self._verts[a]
                h._face = f
                pairs[a, b] = h
                loop.append(h)

                if h._origin._halfedge is None:
                    h._origin._halfedge = h

            for h, g in zip(loop, loop[1:] + loop[:1]):
                h._next = g

            f._halfedge = loop[0]

        # Pair halfedges in insertion order, this way edges are numbered
        # in the order they are first mentioned by a face.
        for (a, b), h in pairs.items():
            if h._twin is not None:
                continue

            t = pairs.get((b, a))

            if t is None:
                raise UnmatchedEdgeError(f'edge ({a}, {b}) has no partner ' +
                                         f'({b}, {a}), mesh is not closed')

            e = self._alloc(Edge)
            e._halfedge = h

            h._twin, t._twin = t, h
            h._edge, t._edge = e, e

        # A vertex fan visits all outgoing halfedges only if the faces
        # around the vertex are connected through shared edges.
        outgoing = Counter(a for a, _ in pairs)

        for v in self._verts:
            if v._halfedge is None:
                continue

            if sum(1 for _ in v._hiter()) != outgoing[v._idx]:
                raise NonManifoldVertexError(f'vertex #{v._idx} is ' +
                                             'non-manifold')

        # Typically one does not expect isolated vertices in a mesh.
        if any(v._halfedge is None for v in self._verts):
            print(f'{CWHITERED}there are isolated vertices{CEND}')

    def flip_edge(self, edge):
        """ Perform edge flip.

        Replace `edge` by the other diagonal of the quadrilateral formed
        by its two adjacent triangles. The edge object and its halfedges
        are reused, no items are created or deleted.

        Parameters
        ----------
        edge : Edge or Handle
            Edge to flip.

        Raises
        ------
        InvalidTargetError
            If `edge` is not a live edge of this mesh.
        InvalidOperatorError
            If an adjacent face is not a triangle or the vertices opposite
            the edge are already adjacent.

        Returns
        -------
        Edge
            The flipped edge.
        """
        edge = self._target(edge, Edge)

        h = edge._halfedge
        t = h._twin

        if h._face.degree != 3 or t._face.degree != 3:
            raise InvalidOperatorError('only edges between two triangles ' +
                                       'can be flipped')

        a, b = h._next, h._next._next
        c, d = t._next, t._next._next

        v, w = h._origin, t._origin
        p, q = b._origin, d._origin
        f, g = h._face, t._face

        if p is q or q in set(p._viter()):
            raise InvalidOperatorError(f'vertices {p._idx} and {q._idx} ' +
                                       'are already adjacent')

        h._origin, t._origin = q, p

        h._next, b._next, c._next = b, c, h
        t._next, d._next, a._next = d, a, t

        c._face, a._face = f, g
        f._halfedge, g._halfedge = h, t

        # The flipped halfedges no longer start at v and w.
        v._halfedge, w._halfedge = c, a

        return edge

    def split_edge(self, edge, point=None):
        """ Perform edge split.

        Insert a new vertex on `edge`. Adjacent triangles are split in two
        by an edge from the new vertex to the opposite corner. Adjacent
        faces of higher degree just gain the new vertex as a corner.

        Parameters
        ----------
        edge : Edge or Handle
            Edge to split.
        point : array_like, optional
            Coordinates of the new vertex, the edge midpoint by default.

        Raises
        ------
        InvalidTargetError
            If `edge` is not a live edge of this mesh.
        ValueError
            If `point` is not a 3-vector.

        Returns
        -------
        Vertex
            The new vertex.

        Note
        ----
        The `edge` object survives as the part between the new vertex and
        the origin of :attr:`Edge.halfedge`.
        """
        edge = self._target(edge, Edge)
        point = edge.midpoint if point is None else _as_point(point)

        h = edge._halfedge
        t = h._twin
        f, g = h._face, t._face

        split_f = f.degree == 3
        split_g = g.degree == 3

        m = self._new_vertex(point)
        e = self._alloc(Edge)

        h2 = self._alloc(Halfedge)
        t2 = self._alloc(Halfedge)

        h2._origin, t2._origin = m, m
        h2._face, t2._face = f, g

        h2._next, h._next = h._next, h2
        t2._next, t._next = t._next, t2

        # The old edge keeps h and gets t2 as new twin, the new edge
        # joins h2 and t.
        h._twin, t2._twin = t2, h
        h2._twin, t._twin = t, h2
        t2._edge = edge
        h2._edge, t._edge = e, e

        edge._halfedge = h
        e._halfedge = h2
        m._halfedge = h2

        if split_f:
            self._connect(h2, h2._next._next)

        if split_g:
            self._connect(t2, t2._next._next)

        return m

    def collapse_edge(self, edge, point=None):
        """ Perform edge collapse.

        Merge the endpoints of `edge` into a single vertex. Adjacent
        triangles degenerate and are deleted together with one of their
        remaining edges, adjacent faces of higher degree lose a corner.

        Parameters
        ----------
        edge : Edge or Handle
            Edge to contract.
        point : array_like, optional
            Coordinates of the merged vertex, the edge midpoint by default.

        Raises
        ------
        InvalidTargetError
            If `edge` is not a live edge of this mesh.
        NonManifoldError
            If the contraction would result in non-manifold combinatorics,
            see :attr:`Edge.collapsible`.

        Returns
        -------
        Vertex
            The surviving vertex.
        """
        edge = self._target(edge, Edge)
        point = edge.midpoint if point is None else _as_point(point)

        if not edge.collapsible:
            raise NonManifoldError(f'collapsing edge #{edge._idx} would ' +
                                   'result in a non-manifold mesh')

        return self._collapse(edge, point)

    def collapse_face(self, face):
        """ Perform face collapse.

        Merge all corners of `face` into a single vertex placed at the face
        centroid. Neighboring triangles degenerate and are deleted.

        Parameters
        ----------
        face : Face or Handle
            Face to contract.

        Raises
        ------
        InvalidTargetError
            If `face` is not a live face of this mesh.
        NonManifoldError
            If the contraction would result in non-manifold combinatorics,
            see :attr:`Face.collapsible`.

        Returns
        -------
        Vertex
            The surviving vertex.
        """
        face = self._target(face, Face)

        if not face.collapsible:
            raise NonManifoldError(f'collapsing face #{face._idx} would ' +
                                   'result in a non-manifold mesh')

        point = face.centroid

        # Contract one side at a time. Once the face is a triangle its
        # contraction deletes it and leaves a single edge to contract.
        while face.degree > 3:
            self._collapse(face._halfedge._edge, point)

        h = face._halfedge
        last = h.prev._edge

        self._collapse(h._edge, point)
        return self._collapse(last, point)

    def erase_vertex(self, vertex):
        """ Delete vertex and merge its faces.

        All edges incident to `vertex` are deleted. The faces around the
        vertex become a single face bounded by the remaining halfedges of
        the old faces.

        Parameters
        ----------
        vertex : Vertex or Handle
            Vertex to delete.

        Raises
        ------
        InvalidTargetError
            If `vertex` is not a live vertex of this mesh.
        InvalidOperatorError
            For an isolated vertex.
        NonManifoldError
            If the merged face would not be a simple polygon or a neighbor
            would be left with a single edge.

        Returns
        -------
        Face
            The merged face.
        """
        vertex = self._target(vertex, Vertex)
        fan = list(vertex._hiter())

        if not fan:
            raise InvalidOperatorError('cannot erase isolated vertex')

        faces = [h._face for h in fan]

        if len(set(faces)) != len(faces):
            raise NonManifoldError(f'vertex #{vertex._idx} is incident to ' +
                                   'a face more than once')

        if any(h.target.degree < 3 for h in fan):
            raise NonManifoldError(f'erasing vertex #{vertex._idx} would ' +
                                   'leave a dangling edge')

        # Outer halfedges of each face: all but the two at the vertex.
        boundary = []

        for h in fan:
            end = h.prev
            g = h._next

            while g is not end:
                boundary.append(g)
                g = g._next

        corners = [g._origin for g in boundary]

        if len(set(corners)) != len(corners):
            raise NonManifoldError(f'erasing vertex #{vertex._idx} would ' +
                                   'create a face that touches itself')

        links = [(h._twin.prev, h._next) for h in fan]

        for g, h in links:
            g._next = h

        face = faces[0]
        face._halfedge = boundary[0]

        for g in boundary:
            g._face = face

        for h in fan:
            w = h.target

            if w._halfedge is h._twin:
                w._halfedge = h._next

        self._release(vertex, *faces[1:], *fan,
                      *(h._twin for h in fan), *(h._edge for h in fan))

        return face

    def erase_edge(self, edge):
        """ Delete edge and merge its faces.

        Parameters
        ----------
        edge : Edge or Handle
            Edge to delete.

        Raises
        ------
        InvalidTargetError
            If `edge` is not a live edge of this mesh.
        NonManifoldError
            If the faces of `edge` share any other vertex or an endpoint
            would be left with a single edge.

        Returns
        -------
        Face
            The merged face.
        """
        edge = self._target(edge, Edge)

        h = edge._halfedge
        t = h._twin
        v, w = h._origin, t._origin
        f, g = h._face, t._face

        if v.degree < 3 or w.degree < 3:
            raise NonManifoldError(f'erasing edge #{edge._idx} would ' +
                                   'leave a dangling edge')

        if set(f._viter()) & set(g._viter()) != {v, w}:
            raise NonManifoldError(f'erasing edge #{edge._idx} would ' +
                                   'create a face that touches itself')

        moved = [s for s in g._hiter() if s is not t]
        h.prev._next, t.prev._next = t._next, h._next

        for s in moved:
            s._face = f

        if f._halfedge is h:
            f._halfedge = moved[0]

        if v._halfedge is h:
            v._halfedge = t._next

        if w._halfedge is t:
            w._halfedge = h._next

        self._release(g, h, t, edge)

        return f

    def bevel_vertex(self, vertex):
        """ Perform vertex bevel.

        Replace `vertex` by a new face with one corner per incident edge.
        The new corners start out at the position of `vertex`, see
        :meth:`bevel_vertex_reposition` to move them apart.

        Parameters
        ----------
        vertex : Vertex or Handle
            Vertex to bevel.

        Raises
        ------
        InvalidTargetError
            If `vertex` is not a live vertex of this mesh.
        InvalidOperatorError
            If the vertex degree is less than 3.

        Returns
        -------
        Face
            The new face.
        """
        vertex = self._target(vertex, Vertex)
        fan = list(vertex._hiter())

        if len(fan) < 3:
            raise InvalidOperatorError(f'vertex #{vertex._idx} of degree ' +
                                       f'{len(fan)} cannot be beveled')

        face = self._bevel(fan, {})
        self._release(vertex)

        return face

    def bevel_edge(self, edge):
        """ Perform edge bevel.

        Replace `edge` by a new face. Each endpoint contributes one new
        corner per incident edge other than `edge`. The new corners start
        out at the position of the endpoint they replace.

        Parameters
        ----------
        edge : Edge or Handle
            Edge to bevel.

        Raises
        ------
        InvalidTargetError
            If `edge` is not a live edge of this mesh.
        InvalidOperatorError
            If an endpoint has degree less than 3.

        Returns
        -------
        Face
            The new face.
        """
        edge = self._target(edge, Edge)

        h = edge._halfedge
        t = h._twin
        v, w = h._origin, t._origin

        if v.degree < 3 or w.degree < 3:
            raise InvalidOperatorError(f'edge #{edge._idx} has an endpoint ' +
                                       'of degree less than 3')

        # Outgoing halfedges around the edge, first those of v (starting
        # in the face of t), then those of w (starting in the face of h).
        nv = v.degree - 1
        fan = []

        for start, stop in ((t._next, h), (h._next, t)):
            g = start

            while g is not stop:
                fan.append(g)
                g = g._twin._next

        # h and t stay in their faces as the sides connecting corners of
        # v to corners of w. They get separate edges and new twins.
        e = self._alloc(Edge)
        e._halfedge = t
        t._edge = e

        face = self._bevel(fan, {nv-1: h, len(fan)-1: t})
        self._release(v, w)

        return face

    def bevel_face(self, face):
        """ Perform face bevel.

        Shrink `face` into an inset copy of itself connected to its old
        boundary by a ring of quads. The face object is kept as the inset
        face, its new corners start out at the positions of the old ones.

        Parameters
        ----------
        face : Face or Handle
            Face to bevel.

        Raises
        ------
        InvalidTargetError
            If `face` is not a live face of this mesh.

        Returns
        -------
        Face
            The inset face, i.e., `face` itself.
        """
        face = self._target(face, Face)
        sides = list(face._hiter())
        k = len(sides)

        corners = [self._new_vertex(s._origin.point) for s in sides]
        ups, downs, ins, outs = [], [], [], []

        for s, n in zip(sides, corners):
            # Spoke between old corner and new corner.
            up, down = self._new_edge(n, s._origin)
            ups.append(up)
            downs.append(down)

        for i, n in enumerate(corners):
            # Side of the inset face and its twin in the ring.
            inner, outer = self._new_edge(n, corners[(i+1) % k])
            ins.append(inner)
            outs.append(outer)

        for i, s in enumerate(sides):
            quad = self._alloc(Face)
            loop = [s, downs[(i+1) % k], outs[i], ups[i]]

            for a, b in zip(loop, loop[1:] + loop[:1]):
                a._next = b
                a._face = quad

            quad._halfedge = s

        for i, (inner, n) in enumerate(zip(ins, corners)):
            inner._next = ins[(i+1) % k]
            inner._face = face
            n._halfedge = inner

        face._halfedge = ins[0]

        return face

    def bevel_halfedges(self, face):
        """ Halfedges moved by a bevel reposition.

        For each side of a face created by a bevel operation, the halfedge
        that leads from a new corner away from the beveled element.

        Parameters
        ----------
        face : Face or Handle
            Face returned by :meth:`bevel_vertex`, :meth:`bevel_edge`, or
            :meth:`bevel_face`.

        Returns
        -------
        list of Halfedge
            One halfedge per new corner, in face order.
        """
        face = self._target(face, Face)
        return [h._twin._next for h in face._hiter()]

    def bevel_vertex_reposition(self, original, halfedges, inset):
        """ Position the corners created by a vertex bevel.

        Each corner moves from `original` toward the far end of its
        halfedge by the fraction `inset`, clamped to [0, BEVEL_LIMIT].
        The result only depends on the arguments, calling this twice with
        the same arguments has the same effect as calling it once.

        Parameters
        ----------
        original : array_like, shape (3, )
            Position of the beveled vertex.
        halfedges : sequence of Halfedge
            Result of :meth:`bevel_halfedges`.
        inset : float
            Relative distance.
        """
        original = _as_point(original)
        halfedges = self._targets(halfedges, Halfedge)
        inset = linalg.clamp(inset, 0.0, BEVEL_LIMIT)

        for h in halfedges:
            h._origin.point = original + inset * (h.target.point - original)

    def bevel_edge_reposition(self, originals, halfedges, inset):
        """ Position the corners created by an edge bevel.

        Same as :meth:`bevel_vertex_reposition` but with one original
        position per halfedge, namely the position of the endpoint the
        corner replaces.

        Parameters
        ----------
        originals : array_like, shape (n, 3)
            Original corner positions.
        halfedges : sequence of Halfedge
            Result of :meth:`bevel_halfedges`.
        inset : float
            Relative distance.
        """
        originals = np.asarray(originals, dtype=float)
        halfedges = self._targets(halfedges, Halfedge)
        inset = linalg.clamp(inset, 0.0, BEVEL_LIMIT)

        if originals.shape != (len(halfedges), 3):
            raise ValueError('need one original position per halfedge')

        for p, h in zip(originals, halfedges):
            h._origin.point = p + inset * (h.target.point - p)

    def bevel_face_reposition(self, originals, halfedges, shift, inset):
        """ Position the corners created by a face bevel.

        Corner i moves from ``originals[i]`` toward the centroid of the
        original polygon by the fraction `inset`, clamped to
        [0, BEVEL_LIMIT], and by `shift` along the polygon's unit normal.

        Parameters
        ----------
        originals : array_like, shape (n, 3)
            Corner positions of the face before it was beveled.
        halfedges : sequence of Halfedge
            Result of :meth:`bevel_halfedges`.
        shift : float
            Offset along the normal, positive values extrude.
        inset : float
            Relative distance.
        """
        originals = np.asarray(originals, dtype=float)
        halfedges = self._targets(halfedges, Halfedge)
        inset = linalg.clamp(inset, 0.0, BEVEL_LIMIT)

        if originals.shape != (len(halfedges), 3):
            raise ValueError('need one original position per halfedge')

        center = originals.mean(axis=0)
        normal = linalg.polygon_normal(originals)

        for p, h in zip(originals, halfedges):
            h._origin.point = p + inset * (center - p) + shift * normal

    def triangulate(self):
        """ Fan triangulation.

        Every face of degree n > 3 is split into n-2 triangles by
        diagonals from the origin of its :attr:`Face.halfedge`. Triangles
        are left untouched.
        """
        for f in list(self._fiter()):
            h = f._halfedge

            for _ in range(f.degree - 3):
                h = self._connect(h, h._next._next)._halfedge

    def _alloc(self, cls):
        """ Create item in a free or a new arena slot.
        """
        arena = getattr(self, _ARENAS[cls._kind])
        free = self._free[cls._kind]

        if free:
            item = cls(free.pop(), next(self._stamp), self)
            arena[item._idx] = item
        else:
            item = cls(len(arena), next(self._stamp), self)
            arena.append(item)

        return item

    def _release(self, *items):
        """ Delete items and recycle their slots.
        """
        for item in items:
            assert not item._deleted

            self._free[item._kind].append(item._idx)
            item._deleted = True
            item._invalidate()

    def _new_vertex(self, point):
        v = self._alloc(Vertex)

        if v._idx < len(self._points):
            self._points[v._idx] = point
        else:
            # New slot at the end of the arena, beyond the buffer.
            self._points = _array_append(self._points, v._idx, point)

        return v

    def _new_edge(self, v, w):
        """ New edge from `v` to `w` with two unlinked halfedges.

        Returns
        -------
        tuple of Halfedge
            The halfedges from `v` to `w` and from `w` to `v`.
        """
        e = self._alloc(Edge)
        h = self._alloc(Halfedge)
        t = self._alloc(Halfedge)

        h._origin, t._origin = v, w
        h._twin, t._twin = t, h
        h._edge, t._edge = e, e
        e._halfedge = h

        return h, t

    def _connect(self, a, b):
        """ Insert face diagonal.

        Split the face of `a` by a new edge between the origins of the
        non-consecutive halfedges `a` and `b` of the same face.

        Returns
        -------
        Face
            The new face. It contains `b`, its halfedge is the new one
            starting at the origin of `a`.
        """
        assert a._face is b._face
        assert a is not b and a._next is not b and b._next is not a

        f = a._face
        pa, pb = a.prev, b.prev

        back, over = self._new_edge(b._origin, a._origin)

        pb._next, back._next = back, a
        pa._next, over._next = over, b

        back._face = f
        f._halfedge = a

        g = self._alloc(Face)
        g._halfedge = over

        for h in over._floop():
            h._face = g

        return g

    def _bevel(self, fan, keep):
        """ Give each halfedge of a fan a new origin.

        The halfedges in `fan` are in counter-clockwise order, i.e.,
        ``fan[i+1]`` follows the twin of ``fan[i]`` in a face loop. Each
        halfedge is moved to a new corner placed at its current origin.
        Consecutive corners are joined by a new edge or, if given, by the
        halfedge ``keep[i]`` that already sits between ``fan[i]`` and
        ``fan[i+1]``. The twins of the joining halfedges form a new face.

        Returns
        -------
        Face
            The new face.
        """
        n = len(fan)
        corners = [self._new_vertex(g._origin.point) for g in fan]

        face = self._alloc(Face)
        inner = []

        for i in range(n):
            j = (i + 1) % n

            if i in keep:
                s = keep[i]
                r = self._alloc(Halfedge)

                s._twin, r._twin = r, s
                s._origin, r._origin = corners[i], corners[j]
                r._edge = s._edge
                s._edge._halfedge = s
            else:
                s, r = self._new_edge(corners[i], corners[j])

            fan[i]._twin._next = s
            s._next = fan[j]
            s._face = fan[j]._face

            r._face = face
            inner.append(r)

        for i, (g, c) in enumerate(zip(fan, corners)):
            g._origin = c
            c._halfedge = g

            # Loop of the new face runs against the fan order.
            inner[i]._next = inner[i-1]

        face._halfedge = inner[0]

        return face

    def _collapse(self, edge, point):
        """ Unchecked edge collapse.

        The origin of :attr:`Edge.halfedge` survives and moves to
        `point`. See :meth:`collapse_edge`.
        """
        h = edge._halfedge
        t = h._twin
        v, w = h._origin, t._origin

        moved = list(w._hiter())
        candidates = list(v._hiter()) + moved
        dead = [w, edge, h, t]

        for s in (h, t):
            f = s._face
            p = s.prev

            if f.degree == 3:
                # The triangle degenerates. Glue the twins of its two
                # remaining sides and keep the edge of the side p.
                a = s._next
                ta, tp = a._twin, p._twin
                x = p._origin

                ta._twin, tp._twin = tp, ta
                ta._edge = p._edge
                p._edge._halfedge = tp

                if x._halfedge is p:
                    x._halfedge = ta

                dead.extend((f, a, p, a._edge))
            else:
                p._next = s._next

                if f._halfedge is s:
                    f._halfedge = s._next

        dead_set = set(dead)

        for g in moved:
            if g not in dead_set:
                g._origin = v

        v._halfedge = next(g for g in candidates if g not in dead_set)
        v.point = point

        self._release(*dead)

        return v

    def _target(self, item, cls):
        """ Validate operator argument.

        Resolves handles. Raises :class:`InvalidTargetError` unless `item`
        is a live item of type `cls` that belongs to this mesh.
        """
        if isinstance(item, Handle):
            item = self.lookup(item)

        if not isinstance(item, cls) or item not in self:
            raise InvalidTargetError(f'expected {cls.__name__.lower()} of ' +
                                     f'this mesh, got {item!r}')

        return item

    def _targets(self, items, cls):
        return [self._target(item, cls) for item in items]

    def _check(self):
        """ Perform sanity checks.
        """
        for kind, name in _ARENAS.items():
            arena = getattr(self, name)

            for i, item in enumerate(arena):
                assert item._kind == kind

                if item._deleted:
                    assert i in self._free[kind]
                else:
                    assert item._idx == i
                    assert item._mesh is self
                    item._check()

        outgoing = {v: set() for v in self._viter()}

        for h in self._hiter():
            outgoing[h._origin].add(h)

        for v, halfs in outgoing.items():
            assert set(v._hiter()) == halfs

    def _viter(self):
        """ Generator expression skipping deleted vertices.
        """
        return (v for v in self._verts if not v._deleted)

    def _eiter(self):
        """ Generator expression skipping deleted edges.
        """
        return (e for e in self._edges if not e._deleted)

    def _hiter(self):
        """ Generator expression skipping deleted halfedges.
        """
        return (h for h in self._halfs if not h._deleted)

    def _fiter(self):
        """ Generator expression skipping deleted faces.
        """
        return (f for f in self._faces if not f._deleted)


class _Item:
    """ Mesh item base class.

    Parameters
    ----------
    index : int
        Arena slot.
    generation : int
        Allocation stamp.
    parent : Mesh
        The owning mesh.

    Note
    ----
    Implementations of :meth:`~object.__int__` and :meth:`~object.__index__`
    are provided, so items can be used as list and array indices.
    """

    _kind = None

    def __init__(self, index, generation, parent):
        self._idx = index
        self._gen = generation
        self._mesh = parent
        self._deleted = False

    def __repr__(self):
        return f'{type(self).__name__}({self._idx})'

    def __index__(self):
        return self._idx

    def __int__(self):
        return self._idx

    def __bool__(self):
        return True

    @property
    def index(self):
        """ Arena slot of the item.

        :type: int
        """
        return self._idx

    @property
    def handle(self):
        """ Opaque item address.

        :type: Handle
        """
        assert not self._deleted
        return Handle(self._kind, self._idx, self._gen)

    @property
    def deleted(self):
        """ Internal state.

        Topological operators mark items as deleted when they no longer
        contribute to the mesh combinatorics. A deleted item has no links
        and no parent mesh.

        :type: bool
        """
        return self._deleted

    def _invalidate(self):
        """ Reset all combinatorial attributes.
        """
        assert self._deleted
        self._mesh = None


class Vertex(_Item):
    """ Mesh vertex.

    Coordinates are stored in the parent mesh's coordinate array and are
    accessed via the :attr:`point` property.
    """

    _kind = 'vertex'

    def __init__(self, index, generation, parent):
        super().__init__(index, generation, parent)

        self._halfedge = None
        self._flags = flags.VertexFlag(0)

    def __str__(self):
        if self._flags:
            return f'v {self._idx} {self.point} {self._flags}'

        return f'v {self._idx} {self.point}'

    @property
    def point(self):
        """ Vertex coordinates.

        Read and write access to vertex coordinates. View of a row of the
        parent mesh's coordinate array.

        :type: ~numpy.ndarray
        """
        return self._mesh._points[self._idx]

    @point.setter
    def point(self, value):
        self._mesh._points[self._idx] = value

    @property
    def flags(self):
        """ Vertex flags.

        :type: VertexFlag
        """
        return self._flags

    @flags.setter
    def flags(self, value):
        self._flags = value

    @property
    def halfedge(self):
        """ Outgoing halfedge.

        A halfedge that starts at the vertex or :obj:`None` for isolated
        vertices.

        :type: Halfedge
        """
        assert not self._deleted
        return self._halfedge

    @property
    def degree(self):
        """ Vertex degree.

        The number of incident edges.

        :type: int
        """
        assert not self._deleted
        return sum(1 for _ in self._hiter())

    @property
    def isolated(self):
        """ Topological state.

        :type: bool
        """
        return self._halfedge is None

    def _invalidate(self):
        super()._invalidate()
        self._halfedge = None

    def _check(self):
        h = self._halfedge

        if h is not None:
            assert not h._deleted
            assert h._origin is self

    def _hiter(self):
        """ Outgoing halfedge iterator.

        Counter-clockwise traversal via ``twin.next``.
        """
        h = self._halfedge

        if h is None:
            return

        while True:
            yield h
            h = h._twin._next

            if h is self._halfedge:
                return

    def _viter(self):
        """ Adjacent vertex iterator.
        """
        return (h._twin._origin for h in self._hiter())

    def _eiter(self):
        """ Incident edge iterator.
        """
        return (h._edge for h in self._hiter())

    def _fiter(self):
        """ Incident face iterator.
        """
        return (h._face for h in self._hiter())


class Edge(_Item):
    """ Undirected mesh edge.

    Refers to one of its two halfedges. Iterating an edge yields its two
    endpoints.
    """

    _kind = 'edge'

    def __init__(self, index, generation, parent):
        super().__init__(index, generation, parent)

        self._halfedge = None
        self._flags = flags.EdgeFlag(0)

    def __str__(self):
        v, w = self.vertices
        return f'e {self._idx} ({v._idx}, {w._idx})'

    def __iter__(self):
        return iter(self.vertices)

    def __contains__(self, vertex):
        return vertex in self.vertices

    @property
    def flags(self):
        """ Edge flags.

        :type: EdgeFlag
        """
        return self._flags

    @flags.setter
    def flags(self, value):
        self._flags = value

    @property
    def halfedge(self):
        """ One of the two halfedges of the edge.

        :type: Halfedge
        """
        assert not self._deleted
        return self._halfedge

    @property
    def vertices(self):
        """ Origin and target of :attr:`halfedge`.

        :type: tuple of Vertex
        """
        h = self._halfedge
        return h._origin, h._twin._origin

    @property
    def midpoint(self):
        """ Midpoint of the edge.

        :type: ~numpy.ndarray
        """
        v, w = self.vertices
        return 0.5 * (v.point + w.point)

    @property
    def length(self):
        """ Length of the edge.

        :type: float
        """
        return linalg.norm(self._halfedge.vector)

    @property
    def flippable(self):
        """ Topological state.

        An edge can be flipped if both adjacent faces are triangles and
        the vertices opposite the edge are not adjacent.

        :type: bool
        """
        if self._deleted:
            return False

        h = self._halfedge
        t = h._twin

        if h._face.degree != 3 or t._face.degree != 3:
            return False

        p = h._next._next._origin
        q = t._next._next._origin

        return p is not q and q not in set(p._viter())

    @property
    def collapsible(self):
        """ Topological state.

        An edge can be collapsed if the result is a manifold mesh. This
        is the case if

            - the one-rings of the endpoints intersect exactly in the
              corners opposite the edge in adjacent triangles,
            - the endpoints share no face other than the two adjacent
              faces,
            - the corner opposite the edge in an adjacent triangle has
              degree greater than 3,
            - the merged vertex has degree at least 3.

        :type: bool
        """
        if self._deleted:
            return False

        h = self._halfedge
        t = h._twin
        v, w = h._origin, t._origin
        f, g = h._face, t._face

        if f is g:
            return False

        apexes = set()

        for s in (h, t):
            if s._face.degree == 3:
                x = s._next._next._origin

                if x.degree <= 3:
                    return False

                apexes.add(x)

        # Both adjacent triangles share their third corner.
        if f.degree == 3 and g.degree == 3 and len(apexes) < 2:
            return False

        if (set(v._fiter()) & set(w._fiter())) - {f, g}:
            return False

        v_neigh = set(v._viter()) - {w}
        w_neigh = set(w._viter()) - {v}

        if len(v_neigh | w_neigh) < 3:
            return False

        return v_neigh & w_neigh == apexes

    def _invalidate(self):
        super()._invalidate()
        self._halfedge = None

    def _check(self):
        h = self._halfedge

        assert not h._deleted
        assert h._edge is self
        assert h._twin._edge is self

    def _viter(self):
        return iter(self.vertices)

    def _hiter(self):
        h = self._halfedge
        return iter((h, h._twin))

    def _fiter(self):
        h = self._halfedge
        return iter((h._face, h._twin._face))


class Halfedge(_Item):
    """ Directed mesh edge.

    Halfedges store references to their origin vertex, the successor in
    the loop of the face to their left, the oppositely directed twin, the
    edge they belong to and the face to their left.

    Note
    ----
    :attr:`vertex` refers to the vertex the halfedge points to, the same
    as :attr:`target`.
    """

    _kind = 'halfedge'

    def __init__(self, index, generation, parent):
        super().__init__(index, generation, parent)

        self._origin = None
        self._next = None
        self._twin = None
        self._edge = None
        self._face = None

    def __str__(self):
        return f'h {self._idx} ({self._origin._idx}, {self.target._idx})'

    @property
    def origin(self):
        """ Vertex the halfedge starts at.

        :type: Vertex
        """
        return self._origin

    @property
    def target(self):
        """ Vertex the halfedge points to.

        :type: Vertex
        """
        return self._twin._origin

    @property
    def vertex(self):
        """ Tip of the halfedge, same as :attr:`target`.

        :type: Vertex
        """
        return self._twin._origin

    @property
    def next(self):
        """ Successor in the face loop.

        :type: Halfedge
        """
        return self._next

    @property
    def prev(self):
        """ Predecessor in the face loop.

        Found by walking the loop, linear in the face degree.

        :type: Halfedge
        """
        h = self._next

        while h._next is not self:
            h = h._next

        return h

    @property
    def twin(self):
        """ Oppositely directed halfedge of the same edge.

        :type: Halfedge
        """
        return self._twin

    @property
    def edge(self):
        """ :type: Edge """
        return self._edge

    @property
    def face(self):
        """ Face to the left.

        :type: Face
        """
        return self._face

    @property
    def vector(self):
        """ Vector from origin to target.

        :type: ~numpy.ndarray
        """
        return self.target.point - self._origin.point

    def _invalidate(self):
        super()._invalidate()

        self._origin = None
        self._next = None
        self._twin = None
        self._edge = None
        self._face = None

    def _check(self):
        for item in (self._origin, self._next, self._twin, self._edge,
                     self._face):
            assert item is not None and not item._deleted

        assert self._twin is not self
        assert self._twin._twin is self
        assert self._edge._halfedge in (self, self._twin)
        assert self._next._face is self._face
        assert self._next._origin is self.target
        assert self._origin is not self.target

        loop = list(self._face._hiter())

        assert self in loop
        assert len(loop) == sum(1 for _ in self._floop())

    def _floop(self):
        """ Face loop iterator starting at this halfedge.
        """
        h = self

        while True:
            yield h
            h = h._next

            if h is self:
                return


class Face(_Item):
    """ Polygonal mesh face.

    Iterating a face yields its corners in counter-clockwise order,
    starting at the origin of :attr:`halfedge`.

    .. code-block:: python
       :linenos:

       for f in mesh:
           for v in f:
               print(v)
    """

    _kind = 'face'

    def __init__(self, index, generation, parent):
        super().__init__(index, generation, parent)
        self._halfedge = None

    def __str__(self):
        return f'f {self._idx} {[v._idx for v in self._viter()]}'

    def __len__(self):
        """ Face degree.

        Returns
        -------
        int
            Number of corners, same as :attr:`degree`.
        """
        return self.degree

    def __iter__(self):
        return self._viter()

    def __contains__(self, vertex):
        return any(v is vertex for v in self._viter())

    @property
    def halfedge(self):
        """ One of the halfedges of the face loop.

        :type: Halfedge
        """
        assert not self._deleted
        return self._halfedge

    @property
    def degree(self):
        """ Number of corners.

        :type: int
        """
        assert not self._deleted
        return sum(1 for _ in self._hiter())

    @property
    def centroid(self):
        """ Average of the corner coordinates.

        :type: ~numpy.ndarray
        """
        return np.mean([v.point for v in self._viter()], axis=0)

    @property
    def normal(self):
        """ Unit normal vector.

        :type: ~numpy.ndarray
        """
        return linalg.polygon_normal([v.point for v in self._viter()])

    @property
    def collapsible(self):
        """ Topological state.

        A face can be contracted to a single vertex if the result is a
        manifold mesh. This is the case if

            - no other face touches two corners, unless it shares a side
              with the face and touches no further corner,
            - no outside vertex is adjacent to two corners, unless it is
              the third corner of a triangle across a side and has degree
              greater than 3,
            - the merged vertex has degree at least 3.

        :type: bool
        """
        if self._deleted:
            return False

        sides = list(self._hiter())
        corners = set(h._origin for h in sides)
        across = [h._twin._face for h in sides]

        if len(set(across)) != len(across):
            return False

        apexes = set()

        for h in sides:
            if h._twin._face.degree == 3:
                x = h._twin._next._next._origin

                if x in apexes or x in corners or x.degree <= 3:
                    return False

                apexes.add(x)

        for g in across:
            if sum(1 for v in g._viter() if v in corners) != 2:
                return False

        for v in corners:
            for g in v._fiter():
                if g is self or g in across:
                    continue

                if sum(1 for w in g._viter() if w in corners) > 1:
                    return False

        outside = Counter(w for v in corners for w in v._viter()
                          if w not in corners)

        for w, k in outside.items():
            if k > 2 or (k == 2 and w not in apexes):
                return False

        return len(outside) >= 3

    def _invalidate(self):
        super()._invalidate()
        self._halfedge = None

    def _check(self):
        h = self._halfedge

        assert not h._deleted
        assert self.degree >= 3
        assert all(g._face is self for g in self._hiter())

    def _hiter(self):
        """ Halfedge loop iterator.
        """
        return self._halfedge._floop()

    def _viter(self):
        """ Corner iterator.
        """
        return (h._origin for h in self._hiter())

    def _eiter(self):
        """ Side iterator.
        """
        return (h._edge for h in self._hiter())

    def _fiter(self):
        """ Adjacent face iterator.
        """
        return (h._twin._face for h in self._hiter())


class MeshError(Exception):
    """ Mesh exception base class.
    """

    pass


class TopologyError(MeshError):
    """ Malformed polygon soup.

    Raised while building a mesh, the build is aborted.
    """

    pass


class NonManifoldEdgeError(TopologyError):
    """ Edge shared by more than two oriented halfedges.
    """

    pass


class UnmatchedEdgeError(TopologyError):
    """ Face side without partner, i.e., the mesh is not closed.
    """

    pass


class NonManifoldVertexError(TopologyError):
    """ Faces around a vertex do not form a single fan.
    """

    pass


class OperatorError(MeshError):
    """ Operator base exception.

    Operators check their preconditions before touching the mesh, hence
    the mesh is unchanged when one of these is raised.
    """

    pass


class InvalidTargetError(OperatorError):
    """ Operator applied to a deleted or foreign item or one of the wrong
    kind.
    """

    pass


class InvalidOperatorError(OperatorError):
    """ Operator not applicable to the given item, e.g., flipping an edge
    of a quad.
    """

    pass


class NonManifoldError(OperatorError):
    """ Manifold exception.

    Raised if an operation would result in a topological configuration
    that violates the manifold condition.
    """

    pass


class PrecisionError(MeshError):
    """ Global operator preconditions not met.
    """

    pass


class NonTriangularError(PrecisionError):
    """ Triangle mesh required.
    """

    pass


class StaleHandleError(LookupError):
    """ Handle of a deleted item.
    """

    pass
