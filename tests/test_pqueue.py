import pytest

from pqueue import PriorityQueue


def test_dequeue_empty_returns_none():
    pq = PriorityQueue()
    assert pq.dequeue() is None
    assert pq.size() == 0
    assert pq.peek_priority() is None


def test_lowest_priority_first():
    pq = PriorityQueue()
    for item, prio in [("c", 12), ("a", 5), ("b", 9)]:
        pq.enqueue(item, prio)
    assert pq.peek_priority() == 5
    assert [pq.dequeue() for _ in range(3)] == ["a", "b", "c"]
    assert pq.dequeue() is None


def test_equal_priorities_are_fifo():
    pq = PriorityQueue()
    pq.enqueue("x1", 2)
    pq.enqueue("low", 1)
    pq.enqueue("x2", 2)
    pq.enqueue("high", 3)
    pq.enqueue("x3", 2)
    assert list(pq) == [
        ("low", 1), ("x1", 2), ("x2", 2), ("x3", 2), ("high", 3)
    ]


def test_insert_before_first_strictly_greater():
    pq = PriorityQueue()
    pq.enqueue("a", 1)
    pq.enqueue("b", 5)
    pq.enqueue("c", 3)
    pq.enqueue("d", 3)
    assert [item for item, _ in pq] == ["a", "c", "d", "b"]


def test_size_tracks_enqueue_and_dequeue():
    pq = PriorityQueue()
    for i in range(10):
        pq.enqueue(i, i % 3)
    assert pq.size() == len(pq) == 10
    pq.dequeue()
    pq.dequeue()
    assert pq.size() == 8


def test_reuse_after_draining():
    pq = PriorityQueue()
    pq.enqueue("a", 1)
    assert pq.dequeue() == "a"
    pq.enqueue("b", 4)
    pq.enqueue("c", 2)
    assert [pq.dequeue(), pq.dequeue()] == ["c", "b"]


def test_negative_priority_rejected():
    pq = PriorityQueue()
    with pytest.raises(ValueError):
        pq.enqueue("bad", -1)
    assert pq.size() == 0
