"""Tests for the global remeshing operators."""

import numpy as np
import pytest

from numpy.testing import assert_allclose

from meshedit.flags import EdgeFlag, VertexFlag
from meshedit.hds import (InvalidOperatorError, NonTriangularError,
                          StaleHandleError)
from meshedit.resample import downsample, resample, subdivide_quad, upsample


def rounded(points):
    return sorted(tuple(p) for p in np.round(points, 6))


class TestUpsample:

    def test_cube(self, tri_cube):
        upsample(tri_cube)

        assert tri_cube.size == (26, 72, 48)
        assert tri_cube.euler == 2
        assert tri_cube.triangular
        tri_cube._check()

    def test_quads(self, cube):
        snapshot = cube.soup()

        with pytest.raises(NonTriangularError, match='triangulating'):
            upsample(cube)

        points, faces = cube.soup()
        assert_allclose(points, snapshot[0])
        assert faces == snapshot[1]

    def test_linear(self, tri_cube):
        before = tri_cube.points.copy()
        midpoints = [e.midpoint for e in tri_cube.edges]

        upsample(tri_cube, loop=False)

        assert_allclose(tri_cube.points[:8], before)
        assert rounded(tri_cube.points[8:]) == rounded(midpoints)

    def test_loop_weights(self, icosahedron):
        beta = 3.0 / 40.0
        v = icosahedron.vertices[0]
        expected = (1.0 - 5 * beta) * v.point + \
            beta * sum(w.point for w in v._viter())

        upsample(icosahedron)

        assert icosahedron.size == (42, 120, 80)
        assert_allclose(icosahedron.vertices[0].point, expected)

        # Symmetry: old and new vertices end up on two spheres.
        norms = np.linalg.norm(icosahedron.points, axis=1)
        assert np.ptp(norms[:12]) < 1e-9
        assert np.ptp(norms[12:]) < 1e-9

    def test_flags_cleared(self, tri_cube):
        upsample(tri_cube)

        assert all(not v.flags for v in tri_cube.vertices)
        assert all(EdgeFlag.NEW not in e.flags for e in tri_cube.edges)

    def test_degrees(self, icosahedron):
        upsample(icosahedron)

        degrees = sorted(v.degree for v in icosahedron.vertices)
        assert degrees == [5] * 12 + [6] * 30

    def test_report(self, tri_cube, capsys):
        upsample(tri_cube, quiet=False)
        out = capsys.readouterr().out

        assert 'upsampling' in out
        assert 'done' in out
        assert '26 vertices' in out


class TestDownsample:

    def test_sphere(self, icosahedron):
        upsample(icosahedron)
        upsample(icosahedron)
        assert icosahedron.size == (162, 480, 320)

        downsample(icosahedron)

        assert icosahedron.size[0] < 162
        assert icosahedron.size[2] == 80
        assert icosahedron.euler == 2
        assert icosahedron.triangular
        icosahedron._check()

    def test_octahedron(self, octahedron):
        downsample(octahedron)

        assert octahedron.size == (4, 6, 4)
        octahedron._check()

    def test_tetrahedron(self, tetrahedron):
        with pytest.raises(InvalidOperatorError):
            downsample(tetrahedron)

        assert tetrahedron.size == (4, 6, 4)

    def test_quads(self, cube):
        with pytest.raises(NonTriangularError):
            downsample(cube)

    @pytest.mark.parametrize('ratio', [0.0, 1.0, -0.5])
    def test_ratio(self, icosahedron, ratio):
        with pytest.raises(ValueError):
            downsample(icosahedron, ratio=ratio)


class TestResample:

    def test_invariants(self, icosahedron):
        upsample(icosahedron)
        radius = np.linalg.norm(icosahedron.points, axis=1)

        resample(icosahedron, iterations=3)

        assert icosahedron.euler == 2
        assert icosahedron.triangular
        icosahedron._check()

        norms = np.linalg.norm(icosahedron.points[[v.index for v in
                                                   icosahedron.vertices]],
                               axis=1)
        assert norms.min() > 0.5 * radius.min()
        assert norms.max() < 1.05 * radius.max()

    def test_fixed(self, icosahedron):
        upsample(icosahedron)

        v = icosahedron.vertices[20]
        v.flags |= VertexFlag.FIXED
        handle, point = v.handle, v.point.copy()

        resample(icosahedron, iterations=2)

        assert_allclose(icosahedron.lookup(handle).point, point)

    def test_quads(self, cube):
        with pytest.raises(NonTriangularError):
            resample(cube)


class TestSubdivideQuad:

    def test_cube(self, cube):
        subdivide_quad(cube)

        assert cube.size == (26, 48, 24)
        assert all(f.degree == 4 for f in cube)
        assert cube.euler == 2
        cube._check()

    def test_catmull_clark(self, cube):
        subdivide_quad(cube)

        assert_allclose(cube.vertices[0].point, [2.0 / 9.0] * 3)

    def test_linear(self, cube):
        before = cube.points.copy()
        centroids = [f.centroid for f in cube]

        subdivide_quad(cube, catmull_clark=False)

        assert_allclose(cube.points[:8], before)
        assert rounded(cube.points[20:]) == rounded(centroids)

    def test_triangles(self, tetrahedron):
        subdivide_quad(tetrahedron)

        assert tetrahedron.size == (14, 24, 12)
        tetrahedron._check()

    def test_stale_handles(self, cube):
        handle = cube.vertices[0].handle
        subdivide_quad(cube)

        with pytest.raises(StaleHandleError):
            cube.lookup(handle)

    def test_report(self, cube, capsys):
        subdivide_quad(cube, quiet=False)
        assert 'subdividing' in capsys.readouterr().out
