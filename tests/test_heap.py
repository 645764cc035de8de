"""Tests for the indexed priority queue."""

import pytest

from meshedit.heap import MinHeap


def filled(pairs):
    heap = MinHeap()

    for item, priority in pairs:
        heap.push(item, priority)

    return heap


def drain(heap):
    out = []

    while heap:
        out.append(heap.pop())

    return out


def test_order(rng):
    values = rng.permutation(50).tolist()
    heap = filled((f'item{v}', v) for v in values)

    assert len(heap) == 50
    assert [p for _, p in drain(heap)] == list(range(50))


def test_ties_keep_push_order():
    heap = filled([('a', 1.0), ('b', 0.5), ('c', 1.0), ('d', 1.0)])
    assert [item for item, _ in drain(heap)] == ['b', 'a', 'c', 'd']


def test_update_priority():
    heap = filled([('a', 1.0), ('b', 2.0), ('c', 3.0)])

    heap.push('c', 0.0)
    heap.push('a', 5.0)

    assert len(heap) == 3
    assert drain(heap) == [('c', 0.0), ('b', 2.0), ('a', 5.0)]


def test_remove():
    heap = filled([('a', 1.0), ('b', 2.0), ('c', 3.0), ('d', 4.0)])

    assert heap.remove('b') == 2.0
    assert 'b' not in heap

    heap.discard('b')
    heap.discard('d')

    assert [item for item, _ in drain(heap)] == ['a', 'c']

    with pytest.raises(KeyError):
        heap.remove('a')


def test_empty():
    heap = MinHeap()

    assert not heap

    with pytest.raises(IndexError):
        heap.pop()


def test_mesh_items(cube):
    heap = filled((e, e.length) for e in cube.edges)

    assert cube.edges[0] in heap
    assert len(drain(heap)) == 12
