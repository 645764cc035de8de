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

""" Element selection and picking.

A :class:`Selection` refers to an element of a mesh through a
:class:`~meshedit.hds.Handle`. It never keeps a mesh item alive, an element
deleted by an operator simply makes the selection resolve to :obj:`None`.
"""

from meshedit.hds import Edge, Face, Halfedge, Handle, Vertex
from meshedit.hds import StaleHandleError


class Selection:
    """ Scene object and element.

    Parameters
    ----------
    object : SceneObject, optional
        The selected scene object. Objects that hold a mesh expose it as
        their ``mesh`` attribute.
    element : Handle, optional
        The selected mesh element, :obj:`None` if the object as a whole is
        selected.
    """

    def __init__(self, object=None, element=None):
        self.object = object
        self.element = element

    def __repr__(self):
        return f'Selection({self.object!r}, {self.element!r})'

    def __bool__(self):
        return self.object is not None

    def __eq__(self, other):
        if not isinstance(other, Selection):
            return NotImplemented

        return self.object is other.object and self.element == other.element

    @property
    def mesh(self):
        """ Mesh of the selected object.

        :obj:`None` if nothing is selected or the object is no mesh.

        :type: Mesh
        """
        return getattr(self.object, 'mesh', None)

    def clear(self):
        """ Select nothing.
        """
        self.object = None
        self.element = None

    def select(self, object, item=None):
        """ Select an object and one of its elements.

        Parameters
        ----------
        object : SceneObject
            The object.
        item : Vertex or Edge or Halfedge or Face or Handle, optional
            Element of the object's mesh.
        """
        self.object = object

        if item is None or isinstance(item, Handle):
            self.element = item
        else:
            self.element = item.handle

    def copy(self):
        return Selection(self.object, self.element)

    def resolve(self):
        """ Selected mesh item.

        Returns
        -------
        Vertex or Edge or Halfedge or Face
            The live item, :obj:`None` if no element is selected or the
            selected element no longer exists.
        """
        mesh = self.mesh

        if mesh is None or self.element is None:
            return None

        try:
            return mesh.lookup(self.element)
        except StaleHandleError:
            return None


def select_next_halfedge(selection):
    """ Move a halfedge selection to its successor.

    Does nothing unless a live halfedge is selected.
    """
    item = selection.resolve()

    if isinstance(item, Halfedge):
        selection.element = item.next.handle


def select_twin_halfedge(selection):
    """ Move a halfedge selection to its twin.

    Does nothing unless a live halfedge is selected.
    """
    item = selection.resolve()

    if isinstance(item, Halfedge):
        selection.element = item.twin.handle


def select_halfedge(selection):
    """ Select the halfedge of a vertex, edge, or face.

    Does nothing for halfedges, isolated vertices, and unset or stale
    selections.
    """
    item = selection.resolve()

    if isinstance(item, (Vertex, Edge, Face)) and item.halfedge is not None:
        selection.element = item.halfedge.handle


class PickIndex:
    """ Pick ID to element map.

    Pick IDs are consecutive integers. A renderer draws each element in a
    color that encodes its ID and reads back the ID under the cursor,
    :meth:`set_selection` translates it to an element.

    Parameters
    ----------
    object : SceneObject
        Scene object holding a mesh.
    """

    def __init__(self, object):
        self.object = object
        self._elements = dict()

    def __len__(self):
        return len(self._elements)

    def __contains__(self, pick_id):
        return pick_id in self._elements

    def __getitem__(self, pick_id):
        return self._elements[pick_id]

    def new_pick_element(self, pick_id, item):
        """ Register an element.

        Parameters
        ----------
        pick_id : int
            Next free pick ID.
        item : Vertex or Edge or Halfedge or Face
            Element to register.

        Returns
        -------
        int
            The next free pick ID.
        """
        self._elements[pick_id] = item.handle
        return pick_id + 1

    def draw_pick(self, pick_id=0):
        """ Assign pick IDs to all elements.

        For every side of every face, the tip of the following halfedge,
        the face, the edge of the following halfedge, and the halfedge
        itself get consecutive IDs, in this order. Previously assigned
        IDs are discarded.

        Parameters
        ----------
        pick_id : int, optional
            First ID to assign.

        Returns
        -------
        int
            The next free pick ID.
        """
        self._elements.clear()

        for f in self.object.mesh:
            for h in f._hiter():
                h2 = h.next

                pick_id = self.new_pick_element(pick_id, h2.vertex)
                pick_id = self.new_pick_element(pick_id, f)
                pick_id = self.new_pick_element(pick_id, h2.edge)
                pick_id = self.new_pick_element(pick_id, h2)

        return pick_id

    def set_selection(self, pick_id, selection):
        """ Select the element with the given pick ID.

        Unknown IDs leave `selection` unchanged.

        Returns
        -------
        bool
            Whether `pick_id` belongs to this index.
        """
        if pick_id not in self._elements:
            return False

        selection.clear()
        selection.select(self.object, self._elements[pick_id])

        return True


def _fmt(point):
    return '({:.3f}, {:.3f}, {:.3f})'.format(*point)


def info(mesh, element=None):
    """ Element description.

    Parameters
    ----------
    mesh : Mesh
        The mesh.
    element : Vertex or Edge or Halfedge or Face or Handle, optional
        Element to describe, the mesh itself if not given.

    Raises
    ------
    StaleHandleError
        If `element` is a handle of a deleted element.

    Returns
    -------
    list of str
        Lines of text.
    """
    if isinstance(element, Handle):
        element = mesh.lookup(element)

    if element is None:
        nv, ne, nf = mesh.size
        return ['MESH', f'{nv} vertices', f'{ne} edges', f'{nf} faces']

    if isinstance(element, Vertex):
        return [f'VERTEX #{element.index}',
                f'degree: {element.degree}',
                f'position: {_fmt(element.point)}']

    if isinstance(element, Edge):
        v, w = element.vertices
        return [f'EDGE #{element.index}',
                f'vertices: {v.index} {w.index}',
                f'length: {element.length:.3f}']

    if isinstance(element, Halfedge):
        return [f'HALFEDGE #{element.index}',
                f'origin: {element.origin.index}',
                f'target: {element.target.index}',
                f'face: {element.face.index}']

    return [f'FACE #{element.index}',
            f'degree: {element.degree}',
            f'centroid: {_fmt(element.centroid)}']
