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

""" Editor session.

A :class:`Scene` holds scene objects together with the selections of an
interactive editor session: the selected element, the element under the
cursor, the element being beveled, and the target of the transformation
widget. Commands act on the current selection and update it afterwards.
Commands that do not apply to the current selection do nothing. Commands
that fail on the mesh leave it unchanged and report the reason unless the
scene is quiet.
"""

import numpy as np

import meshedit.linalg as linalg
import meshedit.resample as resample
import meshedit.selection as selection

from meshedit.hds import BEVEL_LIMIT, Edge, Face, Vertex
from meshedit.hds import OperatorError, PrecisionError, StaleHandleError
from meshedit.selection import PickIndex, Selection


BEVEL_SCALE = 100.0
""" Drag distance in pixels per unit of bevel inset and shift. """

KEYMAP = {
    'u': ('upsample_selected_mesh', ),
    'd': ('downsample_selected_mesh', ),
    'i': ('resample_selected_mesh', ),
    'f': ('flip_selected_edge', ),
    'p': ('split_selected_edge', ),
    'c': ('collapse_selected_element', ),
    'n': ('select_next_halfedge', ),
    't': ('select_twin_halfedge', ),
    'T': ('triangulate_selection', ),
    's': ('subdivide_selection', True),
    'S': ('subdivide_selection', False),
    'h': ('select_halfedge', ),
    'b': ('bevel_selected_element', ),
    'backspace': ('erase_selected_element', ),
    'delete': ('erase_selected_element', ),
}
""" Key bindings, command name followed by its arguments. """


CWHITERED = '\33[41m'               # white on red background
CEND = '\33[0m'


class SceneObject:
    """ Scene object base class.

    Subclasses set :attr:`kind`. Scene commands dispatch on this tag.

    Parameters
    ----------
    name : str, optional
        Name tag.
    """

    kind = None

    def __init__(self, name=None):
        self.name = name

    def __repr__(self):
        return f'{type(self).__name__}({self.name!r})'

    def draw_pick(self, pick_id):
        """ Assign pick IDs starting at `pick_id`, return the next free ID.
        """
        raise NotImplementedError

    def set_selection(self, pick_id, selection):
        """ Select the element with the given pick ID, if any.
        """
        raise NotImplementedError

    def info(self, element=None):
        return [self.kind.upper()]


class MeshObject(SceneObject):
    """ Editable mesh.

    Parameters
    ----------
    mesh : Mesh
        The mesh, edited in place.
    name : str, optional
        Name tag, defaults to the mesh's name.
    """

    kind = 'mesh'

    def __init__(self, mesh, name=None):
        super().__init__(mesh.name if name is None else name)

        self.mesh = mesh
        self.picks = PickIndex(self)

        # Kind of the last bevel, original corner positions, halfedges
        # whose origins are repositioned.
        self._bevel = None

        # Accumulated drag amounts of the last bevel.
        self.inset = 0.0
        self.shift = 0.0

    def draw_pick(self, pick_id):
        return self.picks.draw_pick(pick_id)

    def set_selection(self, pick_id, selection):
        return self.picks.set_selection(pick_id, selection)

    def info(self, element=None):
        return selection.info(self.mesh, element)

    def bevel(self, item):
        """ Bevel an element and remember it for repositioning.

        Parameters
        ----------
        item : Vertex or Edge or Face
            Element to bevel.

        Returns
        -------
        Face
            The new face.
        """
        mesh = self.mesh

        if isinstance(item, Vertex):
            original = item.point.copy()
            face = mesh.bevel_vertex(item)
        elif isinstance(item, Edge):
            face = mesh.bevel_edge(item)
        else:
            face = mesh.bevel_face(item)

        halfedges = mesh.bevel_halfedges(face)

        if not isinstance(item, Vertex):
            # Zero size bevel, new corners sit at the original positions.
            original = np.array([h.origin.point for h in halfedges])

        self._bevel = (item._kind, original, [h.handle for h in halfedges])
        self.inset = 0.0
        self.shift = 0.0

        return face

    def reposition(self, inset, shift):
        """ Move the corners created by the last bevel.

        Parameters
        ----------
        inset : float
            Relative inset.
        shift : float
            Offset along the face normal, face bevel only.
        """
        if self._bevel is None:
            return

        kind, original, halfedges = self._bevel

        if kind == 'vertex':
            self.mesh.bevel_vertex_reposition(original, halfedges, inset)
        elif kind == 'edge':
            self.mesh.bevel_edge_reposition(original, halfedges, inset)
        else:
            self.mesh.bevel_face_reposition(original, halfedges, shift, inset)


class Sphere(SceneObject):
    """ Sphere primitive.

    Pickable as a whole, ignores all mesh commands.

    Parameters
    ----------
    center : array_like, shape (3, ), optional
        Sphere center.
    radius : float, optional
        Sphere radius.
    name : str, optional
        Name tag.
    """

    kind = 'sphere'

    def __init__(self, center=(0.0, 0.0, 0.0), radius=1.0, name=None):
        super().__init__(name)

        self.center = np.array(center, dtype=float)
        self.radius = float(radius)
        self._pick_id = None

    def draw_pick(self, pick_id):
        self._pick_id = pick_id
        return pick_id + 1

    def set_selection(self, pick_id, selection):
        if pick_id != self._pick_id:
            return False

        selection.clear()
        selection.select(self)

        return True


class Scene:
    """ Scene objects and editor selections.

    Parameters
    ----------
    objects : iterable of SceneObject, optional
        Initial scene contents.
    quiet : bool, optional
        Suppress console output of commands.

    Attributes
    ----------
    selected : Selection
        The current selection.
    hovered : Selection
        Element under the cursor.
    edited : Selection
        Element being beveled.
    target : Selection
        Target of the transformation widget.
    """

    def __init__(self, objects=(), *, quiet=True):
        self.objects = list(objects)
        self.quiet = quiet

        self.selected = Selection()
        self.hovered = Selection()
        self.edited = Selection()
        self.target = Selection()

    def add_object(self, obj):
        self.objects.append(obj)

    def remove_object(self, obj):
        self.objects.remove(obj)

        for s in (self.selected, self.hovered, self.edited, self.target):
            if s.object is obj:
                s.clear()

    def draw_pick(self):
        """ Assign pick IDs to all objects.

        Returns
        -------
        int
            Number of pick IDs in use.
        """
        pick_id = 0

        for obj in self.objects:
            pick_id = obj.draw_pick(pick_id)

        return pick_id

    def get_hovered_object(self, pick_id):
        """ Update the hover selection from a pick ID.

        Returns
        -------
        Selection
            The hover selection, empty for unknown IDs.
        """
        self.hovered.clear()

        for obj in self.objects:
            obj.set_selection(pick_id, self.hovered)

        return self.hovered

    def select_hovered(self):
        """ Make the hovered element the selected one.
        """
        self.selected = self.hovered.copy()

    def has_selection(self):
        return bool(self.selected)

    def has_hover(self):
        return bool(self.hovered)

    def clear_selections(self):
        self.hovered.clear()
        self.selected.clear()
        self.edited.clear()
        self.target.clear()

    def selection_info(self):
        """ Description of the current selection.

        Returns
        -------
        list of str
            Lines of text.
        """
        if not self.selected:
            return ['(nothing selected)']

        return self.selected.object.info(self.selected.resolve())

    def key_press(self, key):
        """ Run the command bound to `key`.

        Returns
        -------
        bool
            Whether `key` is bound.
        """
        if key not in KEYMAP:
            return False

        name, *args = KEYMAP[key]
        getattr(self, name)(*args)

        return True

    def _run(self, command, *args, **kwargs):
        """ Run a mesh command.

        Returns the result of `command`, :obj:`None` if it was refused.
        """
        try:
            return command(*args, **kwargs)
        except (OperatorError, PrecisionError, StaleHandleError) as error:
            if not self.quiet:
                print(f'{CWHITERED}{error}{CEND}')

            return None

    def _selected_item(self, *types):
        """ Selected mesh element of one of the given types or None.
        """
        item = self.selected.resolve()
        return item if isinstance(item, types) else None

    def _reselect(self, item):
        self.selected.element = item.handle
        self.hovered.clear()
        self.target.clear()

    def collapse_selected_element(self):
        item = self._selected_item(Edge, Face)

        if item is None:
            return

        mesh = self.selected.mesh

        if isinstance(item, Edge):
            v = self._run(mesh.collapse_edge, item)
        else:
            v = self._run(mesh.collapse_face, item)

        if v is not None:
            self._reselect(v)

    def flip_selected_edge(self):
        item = self._selected_item(Edge)

        if item is None:
            return

        e = self._run(self.selected.mesh.flip_edge, item)

        if e is not None:
            self._reselect(e)

    def split_selected_edge(self):
        item = self._selected_item(Edge)

        if item is None:
            return

        v = self._run(self.selected.mesh.split_edge, item)

        if v is not None:
            self._reselect(v)

    def erase_selected_element(self):
        item = self._selected_item(Vertex, Edge)

        if item is None:
            return

        obj = self.selected.object

        if isinstance(item, Edge):
            f = self._run(obj.mesh.erase_edge, item)
        else:
            f = self._run(obj.mesh.erase_vertex, item)

        if f is not None:
            self.selected.clear()
            self.selected.select(obj, f)
            self.hovered.clear()
            self.target.clear()

    def bevel_selected_element(self):
        """ Bevel the selected element.

        Selects the new face for a face bevel, an edge of the new face for
        an edge bevel, and a corner of the new face for a vertex bevel.
        The element being beveled is never beveled again.
        """
        if self.edited == self.selected:
            return

        item = self._selected_item(Vertex, Edge, Face)

        if item is None:
            return

        obj = self.selected.object
        f = self._run(obj.bevel, item)

        if f is None:
            return

        if isinstance(item, Face):
            self._reselect(f)
        elif isinstance(item, Edge):
            self._reselect(f.halfedge.edge)
        else:
            self._reselect(f.halfedge.vertex)

        self.edited = self.selected.copy()

    def update_bevel_amount(self, dx, dy):
        """ Adjust the element being beveled.

        Called once per drag event. The deltas accumulate into the inset
        and shift of the current bevel, which start at zero when the
        element is beveled.

        Parameters
        ----------
        dx : float
            Horizontal drag distance since the last call, changes the
            inset.
        dy : float
            Vertical drag distance since the last call, changes the shift
            of a face bevel.
        """
        if self.edited.mesh is None:
            return

        obj = self.edited.object

        # Inset stays within [0, BEVEL_LIMIT].
        inset = obj.inset + dx / BEVEL_SCALE
        obj.inset = linalg.clamp(inset, 0.0, BEVEL_LIMIT)
        obj.shift += dy / BEVEL_SCALE

        self._run(obj.reposition, obj.inset, obj.shift)

        self.hovered.clear()
        self.target.clear()

    def _selected_mesh(self):
        if self.selected.element is None:
            return None

        return self.selected.mesh

    def upsample_selected_mesh(self):
        mesh = self._selected_mesh()

        if mesh is not None:
            self._run(resample.upsample, mesh, quiet=self.quiet)
            self.clear_selections()

    def downsample_selected_mesh(self):
        mesh = self._selected_mesh()

        if mesh is not None:
            self._run(resample.downsample, mesh, quiet=self.quiet)
            self.clear_selections()

    def resample_selected_mesh(self):
        mesh = self._selected_mesh()

        if mesh is not None:
            self._run(resample.resample, mesh, quiet=self.quiet)
            self.clear_selections()

    def triangulate_selection(self):
        mesh = self.selected.mesh

        if mesh is not None:
            mesh.triangulate()
            self.clear_selections()

    def subdivide_selection(self, catmull_clark=True):
        """ Quad subdivision of the selected mesh.

        Selects a vertex of the result, so repeated subdivision works
        without picking an element in between.
        """
        obj = self.selected.object
        mesh = self.selected.mesh

        if mesh is None:
            return

        resample.subdivide_quad(mesh, catmull_clark=catmull_clark,
                                quiet=self.quiet)

        self.clear_selections()
        self.selected.select(obj, next(iter(mesh.vertices), None))

    def select_next_halfedge(self):
        selection.select_next_halfedge(self.selected)

    def select_twin_halfedge(self):
        selection.select_twin_halfedge(self.selected)

    def select_halfedge(self):
        selection.select_halfedge(self.selected)
