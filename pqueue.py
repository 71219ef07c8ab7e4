from typing import Any, Optional


class _Entry:
    """Singly linked queue cell."""

    __slots__ = ("item", "priority", "next")

    def __init__(self, item: Any, priority: int):
        self.item = item
        self.priority = priority
        self.next: Optional["_Entry"] = None


class PriorityQueue:
    """Minimum-first priority queue backed by a sorted linked list.

    Entries are kept in non-decreasing priority order. Among equal
    priorities the earliest inserted entry is dequeued first, which is
    what makes Huffman tree construction reproducible.

    :ivar head: First (lowest priority) entry, or ``None``.
    :type head: _Entry | None
    :ivar tail: Last (highest priority) entry, or ``None``.
    :type tail: _Entry | None
    """

    def __init__(self):
        """Create an empty queue.

        :returns: None
        :rtype: None
        """
        self.head: Optional[_Entry] = None
        self.tail: Optional[_Entry] = None
        self._size = 0

    def enqueue(self, item: Any, priority: int):
        """Insert ``item`` after every entry with priority <= ``priority``.

        :param item: Object to store.
        :type item: Any
        :param priority: Sort key, lower is dequeued first.
        :type priority: int
        :returns: None
        :rtype: None
        :raises ValueError: If ``priority`` is negative.
        """
        if priority < 0:
            raise ValueError(f"Negative priority: {priority}")

        entry = _Entry(item, priority)
        self._size += 1

        if self.head is None:
            self.head = self.tail = entry
            return

        if priority < self.head.priority:
            entry.next = self.head
            self.head = entry
            return

        if priority >= self.tail.priority:
            self.tail.next = entry
            self.tail = entry
            return

        cur = self.head
        while cur.next is not None and cur.next.priority <= priority:
            cur = cur.next
        entry.next = cur.next
        cur.next = entry

    def dequeue(self) -> Optional[Any]:
        """Remove and return the head item, or ``None`` if the queue is empty.

        :returns: The lowest priority item (earliest among ties).
        :rtype: Any | None
        """
        if self.head is None:
            return None
        entry = self.head
        self.head = entry.next
        if self.head is None:
            self.tail = None
        self._size -= 1
        return entry.item

    def peek_priority(self) -> Optional[int]:
        """Return the priority of the head entry without removing it.

        :returns: Lowest queued priority, or ``None`` if the queue is empty.
        :rtype: int | None
        """
        return None if self.head is None else self.head.priority

    def size(self) -> int:
        """Return the number of queued entries.

        :returns: Entry count.
        :rtype: int
        """
        return self._size

    def __len__(self) -> int:
        """Return the number of queued entries, same as :meth:`size`.

        :returns: Entry count.
        :rtype: int
        """
        return self._size

    def __iter__(self):
        """Iterate over queued entries in dequeue order without removing them.

        :returns: Iterator of ``(item, priority)`` pairs.
        :rtype: Iterator[Tuple[Any, int]]
        """
        cur = self.head
        while cur is not None:
            yield cur.item, cur.priority
            cur = cur.next
