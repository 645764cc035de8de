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

""" Heap based priority queue.

The edge collapse queue of :func:`~meshedit.resample.downsample`. See
**Algorithms in C**, *Parts 1--4* by Robert Sedgewick for the array based
indexed heap used here. Unlike :py:mod:`heapq` it supports removal and
re-prioritization of queued items in logarithmic time.
"""

from itertools import count


class MinHeap:
    """ Indexed priority queue.

    Smaller priority values signify higher priority. Items of equal
    priority leave the queue in the order they were pushed, which keeps
    mesh simplification deterministic.

    Note
    ----
    Only hashable objects can be queued. Mesh items hash by identity.
    """

    def __init__(self):
        # Binary tree stored in a list, slot 0 is unused so that the
        # children of slot k are found at 2k and 2k+1.
        self._heap = [None]
        self._hpos = dict()
        self._tick = count()

    def __bool__(self):
        return len(self._heap) > 1

    def __len__(self):
        return len(self._heap) - 1

    def __contains__(self, item):
        return item in self._hpos

    def push(self, item, priority):
        """ Add item or change its priority.

        Parameters
        ----------
        item : object
            Hashable object.
        priority : float
            Priority of the object.
        """
        key = (priority, next(self._tick))

        if item in self._hpos:
            k = self._hpos[item]
            self._heap[k] = (item, key)
            self._fixup(k)
            self._fixdown(self._hpos[item])
        else:
            self._heap.append((item, key))
            self._hpos[item] = len(self._heap) - 1
            self._fixup(len(self._heap) - 1)

    def pop(self):
        """ Remove item of highest priority.

        Returns
        -------
        item : object
            Object of highest priority.
        priority : float
            Its priority.

        Raises
        ------
        IndexError
            When trying to remove items from an empty queue.
        """
        if len(self._heap) == 1:
            raise IndexError('pop from empty heap')

        self._swap(1, len(self._heap) - 1)
        item, (priority, _) = self._heap.pop()
        del self._hpos[item]

        if len(self._heap) > 1:
            self._fixdown(1)

        return item, priority

    def remove(self, item):
        """ Remove a queued item.

        Parameters
        ----------
        item : object
            The queued object.

        Raises
        ------
        KeyError
            If `item` is not queued.

        Returns
        -------
        float
            Priority of the removed object.
        """
        k = self._hpos[item]

        self._swap(k, len(self._heap) - 1)
        _, (priority, _) = self._heap.pop()
        del self._hpos[item]

        if k < len(self._heap):
            self._fixup(k)
            self._fixdown(k)

        return priority

    def discard(self, item):
        """ Remove `item` if it is queued.
        """
        if item in self._hpos:
            self.remove(item)

    def _swap(self, i, j):
        self._hpos[self._heap[i][0]] = j
        self._hpos[self._heap[j][0]] = i
        self._heap[i], self._heap[j] = self._heap[j], self._heap[i]

    def _fixup(self, k):
        # Move item k up while its parent has a larger key.
        while k > 1 and self._heap[k//2][1] > self._heap[k][1]:
            self._swap(k, k//2)
            k = k//2

    def _fixdown(self, k):
        n = len(self._heap) - 1

        while 2*k <= n:
            j = 2*k

            # Pick the child with the smaller key.
            if j < n and self._heap[j+1][1] < self._heap[j][1]:
                j += 1

            if self._heap[k][1] <= self._heap[j][1]:
                break

            self._swap(j, k)
            k = j
