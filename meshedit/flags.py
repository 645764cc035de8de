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

""" Mesh item flags.

Flags mark mesh items for the global remeshing operators. Local operators
never set or clear them; items created by an operator start out without
any flag set.
"""

from enum import Flag
from enum import auto


class VertexFlag(Flag):
    """ Vertex flags enumeration.
    """

    NEW = auto()
    """ New flag.

    Set on vertices inserted during a subdivision pass to tell them apart
    from the vertices of the coarse mesh."""

    FIXED = auto()
    """ Fixed flag.

    Indicates that algorithms should not change vertex coordinates
    when this flag is set."""


class EdgeFlag(Flag):
    """ Edge flags enumeration.
    """

    NEW = auto()
    """ New flag.

    Set on edges that connect a vertex inserted by an edge split to the
    apex of one of the adjacent triangles."""
