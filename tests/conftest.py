"""Shared meshes for the meshedit tests."""

import numpy as np
import pytest

from meshedit.hds import Mesh


TETRAHEDRON = (
    [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
    [[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]],
)

CUBE = (
    [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0],
     [0.0, 0.0, 1.0], [1.0, 0.0, 1.0], [1.0, 1.0, 1.0], [0.0, 1.0, 1.0]],
    [[0, 3, 2, 1],      # bottom
     [4, 5, 6, 7],      # top
     [0, 1, 5, 4],      # front
     [2, 3, 7, 6],      # back
     [0, 4, 7, 3],      # left
     [1, 2, 6, 5]],     # right
)

OCTAHEDRON = (
    [[1.0, 0.0, 0.0], [-1.0, 0.0, 0.0], [0.0, 1.0, 0.0],
     [0.0, -1.0, 0.0], [0.0, 0.0, 1.0], [0.0, 0.0, -1.0]],
    [[0, 2, 4], [2, 1, 4], [1, 3, 4], [3, 0, 4],
     [2, 0, 5], [1, 2, 5], [3, 1, 5], [0, 3, 5]],
)

_T = (1.0 + np.sqrt(5.0)) / 2.0

ICOSAHEDRON = (
    [[-1.0, _T, 0.0], [1.0, _T, 0.0], [-1.0, -_T, 0.0], [1.0, -_T, 0.0],
     [0.0, -1.0, _T], [0.0, 1.0, _T], [0.0, -1.0, -_T], [0.0, 1.0, -_T],
     [_T, 0.0, -1.0], [_T, 0.0, 1.0], [-_T, 0.0, -1.0], [-_T, 0.0, 1.0]],
    [[0, 11, 5], [0, 5, 1], [0, 1, 7], [0, 7, 10], [0, 10, 11],
     [1, 5, 9], [5, 11, 4], [11, 10, 2], [10, 7, 6], [7, 1, 8],
     [3, 9, 4], [3, 4, 2], [3, 2, 6], [3, 6, 8], [3, 8, 9],
     [4, 9, 5], [2, 4, 11], [6, 2, 10], [8, 6, 7], [9, 8, 1]],
)


@pytest.fixture
def cube_soup():
    """Vertex coordinates and quad faces of the unit cube."""
    return CUBE


@pytest.fixture
def tetrahedron():
    return Mesh(*TETRAHEDRON, name='tetrahedron')


@pytest.fixture
def cube():
    return Mesh(*CUBE, name='cube')


@pytest.fixture
def tri_cube():
    """Unit cube with each quad split into two triangles."""
    mesh = Mesh(*CUBE, name='cube')
    mesh.triangulate()
    return mesh


@pytest.fixture
def octahedron():
    return Mesh(*OCTAHEDRON, name='octahedron')


@pytest.fixture
def icosahedron():
    return Mesh(*ICOSAHEDRON, name='icosahedron')


@pytest.fixture
def rng():
    return np.random.default_rng(2024)
