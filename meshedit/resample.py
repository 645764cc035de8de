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

""" Global remeshing operators.

Subdivision, simplification, and isotropic remeshing built from the local
operators of :class:`~meshedit.hds.Mesh`. All functions check their
preconditions before they touch the mesh and then modify it in place.
Raised exceptions leave the mesh unchanged.
"""

from itertools import chain
from time import time

import numpy as np

import meshedit.flags as flags
import meshedit.linalg as linalg
import meshedit.traits as traits

from meshedit.hds import InvalidOperatorError
from meshedit.hds import NonTriangularError
from meshedit.heap import MinHeap
from meshedit.iterators import edges, frozen, halfs, verts


SPLIT_RATIO = 4.0 / 3.0
""" Edges longer than this multiple of the target length are split. """

COLLAPSE_RATIO = 4.0 / 5.0
""" Edges shorter than this multiple of the target length are collapsed. """


CBOLD = '\33[1m'                    # bold text, white on black
CEND = '\33[0m'


def _summary(mesh, start, **options):
    nv, ne, nf = mesh.size
    opts = ', '.join(f'{key}={value}' for key, value in options.items())

    print(f' done ({time()-start:.3f} sec{", " if opts else ""}{opts})')
    print(f'\t├─ {nv} vertices')
    print(f'\t├─ {ne} edges')
    print(f'\t└─ {nf} faces')


def _require_triangles(mesh, what):
    if not mesh.triangular:
        raise NonTriangularError(f'refusing to {what} a mesh with ' +
                                 'non-triangular faces, try triangulating ' +
                                 'first')


def upsample(mesh, *, loop=True, quiet=True):
    r""" Loop subdivision.

    Split every triangle into four. With `loop` set, the result is one
    level of Loop subdivision: a vertex of degree :math:`n` moves to

    .. math::

       (1 - n\beta) \mathbf{v} + \beta \sum_i \mathbf{v}_i, \qquad
       \beta = \begin{cases} 3/16 & n = 3 \\ 3/(8n) & n > 3 \end{cases}

    and the new vertex on an edge is placed at
    :math:`\frac38 (\mathbf{a} + \mathbf{b}) + \frac18 (\mathbf{c} +
    \mathbf{d})`, where :math:`\mathbf{c}, \mathbf{d}` are the corners
    opposite the edge. Otherwise vertices keep their position and new
    vertices are placed at edge midpoints.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh, modified in place.
    loop : bool, optional
        Apply Loop's smoothing weights.
    quiet : bool, optional
        Suppress console output.

    Raises
    ------
    NonTriangularError
        If the mesh has non-triangular faces.

    Note
    ----
    All positions are computed from the coarse mesh before any edge is
    split. The topology is refined by splitting every edge of the coarse
    mesh and flipping each new edge that joins a coarse vertex to a new
    one.
    """
    _require_triangles(mesh, 'upsample')

    if not quiet:
        start = time()
        print(f'upsampling {CBOLD}{mesh.name}{CEND}', end=' ...')

    points = dict()

    for v in verts(mesh):
        n = v.degree

        if loop and n > 0:
            beta = 3.0 / 16.0 if n == 3 else 3.0 / (8.0 * n)
            ring = sum(w.point for w in verts(v))
            points[v] = (1.0 - n * beta) * v.point + beta * ring
        else:
            points[v] = v.point.copy()

        v.flags &= ~flags.VertexFlag.NEW

    splits = dict()

    for e in edges(mesh):
        if loop:
            h = e.halfedge
            a, b = e.vertices
            c = h.next.next.origin
            d = h.twin.next.next.origin
            splits[e] = (3.0 * (a.point + b.point) +
                         (c.point + d.point)) / 8.0
        else:
            splits[e] = e.midpoint

        e.flags &= ~flags.EdgeFlag.NEW

    for e, point in splits.items():
        v, w = e.vertices
        m = mesh.split_edge(e, point)
        m.flags |= flags.VertexFlag.NEW

        # The two halves of e lead to v and w, all other edges at m cut
        # through the adjacent triangles.
        for h in halfs(m):
            if h.target is not v and h.target is not w:
                h.edge.flags |= flags.EdgeFlag.NEW

    for e in frozen(edges(mesh)):
        if flags.EdgeFlag.NEW not in e.flags:
            continue

        a, b = e.vertices

        if (flags.VertexFlag.NEW in a.flags) != \
           (flags.VertexFlag.NEW in b.flags) and e.flippable:
            mesh.flip_edge(e)

    for v, point in points.items():
        v.point = point

    for v in verts(mesh):
        v.flags &= ~flags.VertexFlag.NEW

    for e in edges(mesh):
        e.flags &= ~flags.EdgeFlag.NEW

    if not quiet:
        _summary(mesh, start, loop=loop)


def _quadric(plane):
    """ Fundamental error quadric of a plane.
    """
    return np.outer(plane, plane)


def _optimal_point(edge, quadric):
    """ Collapse location and cost.

    Minimizes the quadric error, falls back to the edge midpoint if the
    quadric is singular.

    Returns
    -------
    point : ~numpy.ndarray, shape (3, )
        Optimal collapse location.
    cost : float
        Quadric error at `point`.
    """
    a = quadric.copy()
    a[3] = (0.0, 0.0, 0.0, 1.0)

    if abs(np.linalg.det(a)) > 1e-12:
        x = np.linalg.solve(a, (0.0, 0.0, 0.0, 1.0))
    else:
        x = np.append(edge.midpoint, 1.0)

    return x[:3], float(x @ quadric @ x)


def downsample(mesh, *, ratio=0.25, quiet=True):
    """ Quadric error mesh simplification.

    Collapse edges in order of increasing quadric error (Garland and
    Heckbert) until the number of faces drops to `ratio` times its
    initial value or no edge can be collapsed anymore. Each vertex
    carries the sum of the plane quadrics of its faces. Edges that fail
    the collapse precondition are skipped.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh, modified in place.
    ratio : float, optional
        Target face count relative to the initial face count, between 0
        and 1.
    quiet : bool, optional
        Suppress console output.

    Raises
    ------
    NonTriangularError
        If the mesh has non-triangular faces.
    InvalidOperatorError
        If no edge can be collapsed.
    ValueError
        If `ratio` is not between 0 and 1.
    """
    if not 0.0 < ratio < 1.0:
        raise ValueError(f'ratio {ratio} not between 0 and 1')

    _require_triangles(mesh, 'downsample')

    if not any(e.collapsible for e in edges(mesh)):
        raise InvalidOperatorError('mesh cannot be simplified any further')

    if not quiet:
        start = time()
        print(f'downsampling {CBOLD}{mesh.name}{CEND}', end=' ...')

    planes = {f: _quadric(traits.face_plane(f)) for f in mesh}
    quadrics = {v: sum((planes[f] for f in v._fiter()), np.zeros((4, 4)))
                for v in verts(mesh)}

    queue = MinHeap()
    points = dict()

    def enqueue(e):
        v, w = e.vertices
        points[e], cost = _optimal_point(e, quadrics[v] + quadrics[w])
        queue.push(e, cost)

    for e in edges(mesh):
        enqueue(e)

    nf = sum(1 for _ in mesh)
    target = int(ratio * nf)

    while nf > target and queue:
        e, _ = queue.pop()

        if not e.collapsible:
            continue

        v, w = e.vertices

        for g in chain(v._eiter(), w._eiter()):
            queue.discard(g)

        quadric = quadrics.pop(v) + quadrics.pop(w)
        u = mesh.collapse_edge(e, points.pop(e))
        quadrics[u] = quadric

        for g in u._eiter():
            enqueue(g)

        # Both faces adjacent to a collapsed edge are triangles.
        nf -= 2

    if not quiet:
        _summary(mesh, start, ratio=ratio)


def resample(mesh, *, iterations=10, smoothing=1, weight=0.2, quiet=True):
    """ Isotropic remeshing.

    Each iteration

        1. splits edges longer than ``SPLIT_RATIO`` times the target
           length,
        2. collapses edges shorter than ``COLLAPSE_RATIO`` times the
           target length unless this creates long edges,
        3. flips edges that bring the degrees of the four vertices
           involved closer to 6,
        4. moves vertices toward the centroid of their neighbors within
           their tangent plane, `smoothing` times.

    The target length is the average edge length of the input mesh.
    Vertices flagged :attr:`~meshedit.flags.VertexFlag.FIXED` are never
    moved or removed.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh, modified in place.
    iterations : int, optional
        Number of passes.
    smoothing : int, optional
        Number of tangential relaxation steps per pass.
    weight : float, optional
        Relaxation step size.
    quiet : bool, optional
        Suppress console output.

    Raises
    ------
    NonTriangularError
        If the mesh has non-triangular faces.
    """
    _require_triangles(mesh, 'resample')

    if not quiet:
        start = time()
        print(f'resampling {CBOLD}{mesh.name}{CEND}', end=' ...')

    _, _, length = traits.edge_length(mesh)

    hi = SPLIT_RATIO * length
    lo = COLLAPSE_RATIO * length

    fixed = flags.VertexFlag.FIXED

    for _ in range(iterations):
        for e in frozen(edges(mesh)):
            if not e.deleted and e.length > hi:
                mesh.split_edge(e)

        for e in frozen(edges(mesh)):
            if e.deleted or e.length >= lo or not e.collapsible:
                continue

            v, w = e.vertices

            if fixed in v.flags or fixed in w.flags:
                continue

            point = e.midpoint
            ring = set(chain(verts(v), verts(w))) - {v, w}

            if any(linalg.norm(x.point - point) > hi for x in ring):
                continue

            mesh.collapse_edge(e, point)

        for e in frozen(edges(mesh)):
            if e.deleted or not e.flippable:
                continue

            h = e.halfedge
            a, b = e.vertices
            c = h.next.next.origin
            d = h.twin.next.next.origin

            degs = [a.degree, b.degree, c.degree, d.degree]
            before = sum(abs(n - 6) for n in degs)
            after = sum(abs(n - 6) for n in np.add(degs, (-1, -1, 1, 1)))

            if after < before:
                mesh.flip_edge(e)

        for _ in range(smoothing):
            # Compute all updates before moving any vertex.
            moves = {}

            for v in verts(mesh):
                if v.isolated or fixed in v.flags:
                    continue

                offset = traits.one_ring_centroid(v) - v.point
                normal = traits.vertex_normal(v)
                moves[v] = weight * linalg.tangential(offset, normal)

            for v, offset in moves.items():
                v.point = v.point + offset

    if not quiet:
        _summary(mesh, start, iterations=iterations)


def subdivide_quad(mesh, *, catmull_clark=True, quiet=True):
    """ Quad subdivision.

    Replace each face of degree n by n quads that connect its corners,
    its edge points and its face point. With `catmull_clark` set, points
    are placed according to the Catmull-Clark rules, otherwise face
    points are centroids, edge points are midpoints, and old vertices
    keep their position. Works on arbitrary polygon meshes.

    Parameters
    ----------
    mesh : Mesh
        Polygon mesh, rebuilt in place.
    catmull_clark : bool, optional
        Apply Catmull-Clark smoothing.
    quiet : bool, optional
        Suppress console output.

    Note
    ----
    The mesh is rebuilt from scratch. All previously issued handles
    become stale and flags are cleared. New vertices are numbered old
    vertices first, then edge points, then face points.
    """
    if not quiet:
        start = time()
        print(f'subdividing {CBOLD}{mesh.name}{CEND}', end=' ...')

    vlist = mesh.vertices
    elist = mesh.edges
    flist = mesh.faces

    vidx = {v: i for i, v in enumerate(vlist)}
    eidx = {e: len(vlist) + i for i, e in enumerate(elist)}
    fidx = {f: len(vlist) + len(elist) + i for i, f in enumerate(flist)}

    centroids = {f: f.centroid for f in flist}

    if catmull_clark:
        epoints = [(2.0 * e.midpoint + sum(centroids[f] for f in e._fiter()))
                   / 4.0 for e in elist]
    else:
        epoints = [e.midpoint for e in elist]

    vpoints = []

    for v in vlist:
        n = v.degree

        if catmull_clark and n > 0:
            # Q average of face points, R average of edge midpoints.
            q = np.mean([centroids[f] for f in v._fiter()], axis=0)
            r = np.mean([e.midpoint for e in v._eiter()], axis=0)
            vpoints.append((q + 2.0 * r + (n - 3.0) * v.point) / n)
        else:
            vpoints.append(v.point.copy())

    polygons = []

    for f in flist:
        for h in halfs(f):
            polygons.append([vidx[h.origin], eidx[h.edge], fidx[f],
                             eidx[h.prev.edge]])

    fpoints = [centroids[f] for f in flist]
    points = np.array(vpoints + epoints + fpoints).reshape(-1, 3)
    mesh._rebuild(points, polygons)

    if not quiet:
        _summary(mesh, start, catmull_clark=catmull_clark)
