"""Tests for the editor session commands."""

import numpy as np
import pytest

from numpy.testing import assert_allclose

from meshedit.hds import Edge, Face, Mesh, Vertex
from meshedit.scene import KEYMAP, MeshObject, Scene, Sphere

from conftest import CUBE, ICOSAHEDRON


def find_edge(mesh, i, j):
    for e in mesh.edges:
        if {v.index for v in e.vertices} == {i, j}:
            return e

    raise KeyError((i, j))


@pytest.fixture
def scene(tri_cube):
    return Scene([MeshObject(tri_cube)])


@pytest.fixture
def quad_scene(cube):
    return Scene([MeshObject(cube)])


def select(scene, item):
    obj = scene.objects[0]
    scene.selected.select(obj, item)
    return obj.mesh


class TestPicking:

    def test_hover_and_select(self, scene):
        n = scene.draw_pick()
        assert n == 4 * 36

        hovered = scene.get_hovered_object(1)
        assert hovered.resolve() is scene.objects[0].mesh.faces[0]

        scene.select_hovered()
        assert scene.has_selection()
        assert scene.selected == scene.hovered
        assert scene.selected is not scene.hovered

    def test_unknown_pick(self, scene):
        scene.draw_pick()
        scene.get_hovered_object(1)
        scene.get_hovered_object(-1)

        assert not scene.has_hover()

    def test_sphere(self, scene):
        sphere = Sphere(name='ball')
        scene.objects.insert(0, sphere)

        assert scene.draw_pick() == 1 + 4 * 36

        scene.get_hovered_object(0)
        assert scene.hovered.object is sphere
        assert scene.hovered.element is None

        scene.get_hovered_object(2)
        assert scene.hovered.object is scene.objects[1]


class TestInfo:

    def test_nothing(self, scene):
        assert scene.selection_info() == ['(nothing selected)']

    def test_mesh(self, scene):
        scene.selected.select(scene.objects[0])
        assert scene.selection_info()[0] == 'MESH'

    def test_element(self, scene):
        mesh = select(scene, None)
        select(scene, mesh.faces[0])

        assert scene.selection_info()[0] == 'FACE #0'

    def test_sphere(self, scene):
        sphere = Sphere()
        scene.add_object(sphere)
        scene.selected.select(sphere)

        assert scene.selection_info() == ['SPHERE']


class TestLocalCommands:

    def test_flip(self, scene):
        mesh = select(scene, None)
        e = find_edge(mesh, 0, 2)
        select(scene, e)
        scene.hovered.select(scene.objects[0], mesh.faces[0])

        scene.flip_selected_edge()

        assert scene.selected.resolve() is e
        assert {v.index for v in e.vertices} == {1, 3}
        assert not scene.hovered

    def test_flip_refused(self, quad_scene, capsys):
        mesh = select(quad_scene, None)
        e = mesh.edges[0]
        select(quad_scene, e)
        snapshot = mesh.soup()

        quad_scene.flip_selected_edge()

        assert quad_scene.selected.resolve() is e
        assert mesh.soup()[1] == snapshot[1]
        assert capsys.readouterr().out == ''

    def test_refusal_reported(self, cube, capsys):
        scene = Scene([MeshObject(cube)], quiet=False)
        select(scene, cube.edges[0])

        scene.flip_selected_edge()

        assert 'flipped' in capsys.readouterr().out

    def test_flip_needs_edge(self, scene):
        mesh = select(scene, None)
        select(scene, mesh.vertices[0])
        snapshot = mesh.soup()

        scene.flip_selected_edge()

        assert mesh.soup()[1] == snapshot[1]

    def test_split(self, scene):
        mesh = select(scene, None)
        select(scene, find_edge(mesh, 0, 2))

        scene.split_selected_edge()

        v = scene.selected.resolve()
        assert isinstance(v, Vertex)
        assert v.degree == 4
        assert mesh.size == (9, 21, 14)

    def test_collapse_edge(self, scene):
        mesh = select(scene, None)
        select(scene, find_edge(mesh, 0, 5))

        scene.collapse_selected_element()

        assert isinstance(scene.selected.resolve(), Vertex)
        assert mesh.size == (7, 15, 10)

    def test_collapse_face(self, icosahedron):
        scene = Scene([MeshObject(icosahedron)])
        select(scene, icosahedron.faces[0])

        scene.collapse_selected_element()

        assert isinstance(scene.selected.resolve(), Vertex)
        assert icosahedron.size == (10, 24, 16)

    def test_erase(self, quad_scene):
        mesh = select(quad_scene, None)
        select(quad_scene, mesh.vertices[6])

        quad_scene.erase_selected_element()

        f = quad_scene.selected.resolve()
        assert isinstance(f, Face)
        assert f.degree == 6

        # Faces cannot be erased.
        quad_scene.erase_selected_element()
        assert quad_scene.selected.resolve() is f


class TestBevel:

    def test_face(self, quad_scene):
        mesh = select(quad_scene, None)
        top = mesh.faces[1]
        select(quad_scene, top)

        quad_scene.bevel_selected_element()

        assert quad_scene.selected.resolve() is top
        assert quad_scene.edited == quad_scene.selected
        assert mesh.size == (12, 20, 10)

        # The element being edited is not beveled again.
        quad_scene.bevel_selected_element()
        assert mesh.size == (12, 20, 10)

    def test_face_amount(self, quad_scene):
        mesh = select(quad_scene, None)
        select(quad_scene, mesh.faces[1])

        quad_scene.bevel_selected_element()
        quad_scene.update_bevel_amount(50.0, 25.0)

        top = quad_scene.selected.resolve()
        expected = [[0.25, 0.25, 1.25], [0.75, 0.25, 1.25],
                    [0.75, 0.75, 1.25], [0.25, 0.75, 1.25]]

        assert_allclose([v.point for v in top], expected)

    def test_drag_accumulates(self, quad_scene):
        mesh = select(quad_scene, None)
        select(quad_scene, mesh.faces[1])

        quad_scene.bevel_selected_element()

        for _ in range(3):
            quad_scene.update_bevel_amount(10.0, 0.0)

        top = quad_scene.selected.resolve()
        expected = [[0.15, 0.15, 1.0], [0.85, 0.15, 1.0],
                    [0.85, 0.85, 1.0], [0.15, 0.85, 1.0]]

        assert quad_scene.objects[0].inset == pytest.approx(0.3)
        assert_allclose([v.point for v in top], expected)

    def test_drag_back_from_limit(self, quad_scene):
        mesh = select(quad_scene, None)
        select(quad_scene, mesh.faces[1])

        quad_scene.bevel_selected_element()
        quad_scene.update_bevel_amount(200.0, 0.0)
        quad_scene.update_bevel_amount(-10.0, 0.0)

        top = quad_scene.selected.resolve()
        expected = [[0.425, 0.425, 1.0], [0.575, 0.425, 1.0],
                    [0.575, 0.575, 1.0], [0.425, 0.575, 1.0]]

        assert_allclose([v.point for v in top], expected)

    def test_new_bevel_resets_amount(self, quad_scene):
        mesh = select(quad_scene, None)
        obj = quad_scene.objects[0]
        select(quad_scene, mesh.faces[1])

        quad_scene.bevel_selected_element()
        quad_scene.update_bevel_amount(40.0, 30.0)

        select(quad_scene, mesh.faces[0])
        quad_scene.bevel_selected_element()

        assert (obj.inset, obj.shift) == (0.0, 0.0)

    def test_idempotent(self, quad_scene):
        mesh = select(quad_scene, None)
        obj = quad_scene.objects[0]
        select(quad_scene, mesh.faces[1])

        quad_scene.bevel_selected_element()
        obj.reposition(0.3, 0.2)
        once = mesh.points.copy()

        obj.reposition(0.3, 0.2)
        assert_allclose(mesh.points, once)

    def test_vertex(self, quad_scene):
        mesh = select(quad_scene, None)
        select(quad_scene, mesh.vertices[6])

        quad_scene.bevel_selected_element()
        v = quad_scene.selected.resolve()

        assert isinstance(v, Vertex)
        assert mesh.size == (10, 15, 7)

        quad_scene.update_bevel_amount(50.0, 0.0)

        corners = sorted(tuple(np.round(w.point, 6)) for w in mesh.faces[-1])
        assert corners == [(0.5, 1.0, 1.0), (1.0, 0.5, 1.0), (1.0, 1.0, 0.5)]

    def test_edge(self, quad_scene):
        mesh = select(quad_scene, None)
        select(quad_scene, find_edge(mesh, 0, 1))

        quad_scene.bevel_selected_element()

        assert isinstance(quad_scene.selected.resolve(), Edge)
        assert mesh.size == (10, 15, 7)

    def test_amount_without_bevel(self, quad_scene):
        mesh = select(quad_scene, None)
        snapshot = mesh.points.copy()

        quad_scene.update_bevel_amount(50.0, 50.0)
        assert_allclose(mesh.points, snapshot)


class TestGlobalCommands:

    def test_upsample(self, scene):
        mesh = select(scene, None)
        select(scene, mesh.vertices[0])

        scene.upsample_selected_mesh()

        assert mesh.size == (26, 72, 48)
        assert not scene.selected

    def test_upsample_needs_element(self, scene):
        mesh = select(scene, None)

        scene.upsample_selected_mesh()

        assert mesh.size == (8, 18, 12)
        assert scene.selected

    def test_upsample_quads(self, quad_scene):
        mesh = select(quad_scene, None)
        select(quad_scene, mesh.vertices[0])

        quad_scene.upsample_selected_mesh()

        assert mesh.size == (8, 12, 6)
        assert not quad_scene.selected

    def test_downsample(self):
        mesh = Mesh(*ICOSAHEDRON)
        scene = Scene([MeshObject(mesh)])
        select(scene, mesh.vertices[0])

        scene.upsample_selected_mesh()
        select(scene, mesh.vertices[0])
        scene.downsample_selected_mesh()

        assert mesh.size[0] < 42
        assert not scene.selected

    def test_resample(self):
        mesh = Mesh(*ICOSAHEDRON)
        scene = Scene([MeshObject(mesh)])
        select(scene, mesh.vertices[0])

        scene.resample_selected_mesh()

        assert mesh.triangular
        assert not scene.selected
        mesh._check()

    def test_triangulate(self, quad_scene):
        mesh = select(quad_scene, None)

        quad_scene.triangulate_selection()

        assert mesh.size == (8, 18, 12)
        assert not quad_scene.selected

    def test_subdivide(self, quad_scene):
        mesh = select(quad_scene, None)

        quad_scene.subdivide_selection()
        assert mesh.size == (26, 48, 24)
        assert isinstance(quad_scene.selected.resolve(), Vertex)

        quad_scene.subdivide_selection(False)
        assert mesh.size == (98, 192, 96)


class TestKeys:

    def test_keymap(self):
        for name, *_ in KEYMAP.values():
            assert callable(getattr(Scene, name))

    def test_key_press(self, scene):
        mesh = select(scene, None)
        e = find_edge(mesh, 0, 2)
        select(scene, e)

        assert scene.key_press('f')
        assert {v.index for v in e.vertices} == {1, 3}

        assert not scene.key_press('?')

    def test_subdivide_keys(self):
        mesh = Mesh(*CUBE)
        scene = Scene([MeshObject(mesh)])
        select(scene, None)

        scene.key_press('s')
        scene.key_press('S')

        assert mesh.size == (98, 192, 96)

    def test_halfedge_keys(self, scene):
        mesh = select(scene, None)
        f = mesh.faces[0]
        select(scene, f)

        scene.key_press('h')
        scene.key_press('n')
        scene.key_press('t')

        assert scene.selected.resolve() is f.halfedge.next.twin

    def test_sphere_ignores_commands(self, scene):
        sphere = Sphere()
        scene.add_object(sphere)
        scene.selected.select(sphere)

        for key in KEYMAP:
            scene.key_press(key)

        assert scene.selected.object is sphere
        assert scene.objects[0].mesh.size == (8, 18, 12)


def test_remove_object(scene):
    obj = scene.objects[0]
    scene.selected.select(obj)
    scene.remove_object(obj)

    assert not scene.selected
    assert scene.objects == []
