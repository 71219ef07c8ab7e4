from collections import Counter
from typing import Callable, Dict, Iterable, NamedTuple, Optional, Tuple, Union

from pqueue import PriorityQueue

FrequencyTable = Tuple[int, ...]  #: 256 byte counts, indexed by byte value


class DegenerateInputError(ValueError):
    """Raised when a tree is requested for a table with no non-zero counts."""


class Leaf(NamedTuple):
    """Huffman tree leaf.

    :ivar symbol: Byte value (0-255).
    :type symbol: int
    :ivar freq: Occurrence count of ``symbol``.
    :type freq: int
    """

    symbol: int
    freq: int


class Internal(NamedTuple):
    """Huffman merge node owning exactly two children.

    :ivar left: Child reached with a ``0`` bit.
    :type left: Leaf | Internal
    :ivar right: Child reached with a ``1`` bit.
    :type right: Leaf | Internal
    :ivar freq: Sum of the children's frequencies.
    :type freq: int
    """

    left: "Node"
    right: "Node"
    freq: int


Node = Union[Leaf, Internal]


def count_frequencies(
    chunks: Iterable[bytes],
    total: int = 0,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> FrequencyTable:
    """Build the byte histogram of a chunked byte stream.

    :param chunks: Byte chunks in stream order.
    :type chunks: Iterable[bytes]
    :param total: Expected stream length, only passed to ``on_progress``.
    :type total: int
    :param on_progress: Optional callback ``on_progress(done, total)``
                        invoked after each chunk.
    :type on_progress: Optional[Callable[[int, int], None]]
    :returns: Immutable table of 256 counts.
    :rtype: FrequencyTable
    """
    counts: Counter = Counter()
    done = 0
    for chunk in chunks:
        counts.update(chunk)
        done += len(chunk)
        if on_progress is not None:
            on_progress(done, total)
    return tuple(counts.get(b, 0) for b in range(256))


def build_tree(frequencies: FrequencyTable) -> Node:
    """Build the Huffman tree for a frequency table.

    Leaves are queued in ascending byte order and the two lowest entries
    are merged (first dequeued on the left) until a single root remains.
    Combined with the queue's FIFO ordering of equal priorities this fixes
    the tree shape for a given table.

    :param frequencies: Byte histogram.
    :type frequencies: FrequencyTable
    :returns: Root node. A table with one non-zero count yields a ``Leaf``.
    :rtype: Node
    :raises DegenerateInputError: If every count is zero.
    """
    pq = PriorityQueue()
    for symbol, freq in enumerate(frequencies):
        if freq > 0:
            pq.enqueue(Leaf(symbol, freq), freq)

    while pq.size() > 1:
        left = pq.dequeue()
        right = pq.dequeue()
        merged = Internal(left, right, left.freq + right.freq)
        pq.enqueue(merged, merged.freq)

    root = pq.dequeue()
    if root is None:
        raise DegenerateInputError("Cannot build a Huffman tree from empty input")
    return root


def generate_codes(root: Node) -> Dict[int, str]:
    """Map every leaf symbol to its bit-string (``0`` left, ``1`` right).

    A root that is itself a leaf receives the empty code.

    :param root: Tree root.
    :type root: Node
    :returns: Mapping from byte value to code.
    :rtype: Dict[int, str]
    """
    codes: Dict[int, str] = {}
    _assign_codes(root, "", codes)
    return codes


def _assign_codes(node: Node, prefix: str, codes: Dict[int, str]):
    if isinstance(node, Leaf):
        codes[node.symbol] = prefix
        return
    _assign_codes(node.left, prefix + "0", codes)
    _assign_codes(node.right, prefix + "1", codes)


def payload_bits(frequencies: FrequencyTable, codes: Dict[int, str]) -> int:
    """Number of payload bits before padding."""
    return sum(freq * len(codes[b]) for b, freq in enumerate(frequencies) if freq)


def padding_for(nbits: int) -> int:
    """Zero bits appended after ``nbits`` payload bits.

    Always in ``1..8``: an already byte-aligned payload gets a full zero
    byte.

    :param nbits: Payload length in bits.
    :type nbits: int
    :returns: Padding bit count.
    :rtype: int
    """
    return 8 - (nbits % 8)


def render_tree(node: Node) -> str:
    """Render a tree as ``(left right)`` groups of decimal byte values.

    :param node: Tree root.
    :type node: Node
    :returns: Parenthesized rendering, e.g. ``(67 (65 66))``.
    :rtype: str
    """
    if isinstance(node, Leaf):
        return str(node.symbol)
    return f"({render_tree(node.left)} {render_tree(node.right)})"


def parse_tree(text: str) -> Node:
    """Rebuild a tree from :func:`render_tree` output.

    Frequencies are not part of the rendering, so every node of the
    returned tree has ``freq == 0``.

    :param text: Rendered tree.
    :type text: str
    :returns: Tree root.
    :rtype: Node
    :raises ValueError: If ``text`` is not a valid rendering or repeats a
        byte value.
    """
    seen = set()
    node, pos = _parse_node(text, 0, seen)
    if pos != len(text):
        raise ValueError(f"Trailing data in tree at offset {pos}")
    return node


def _parse_node(text: str, pos: int, seen: set) -> Tuple[Node, int]:
    if pos >= len(text):
        raise ValueError("Unexpected end of tree")

    if text[pos] == "(":
        left, pos = _parse_node(text, pos + 1, seen)
        if pos >= len(text) or text[pos] != " ":
            raise ValueError(f"Expected ' ' at offset {pos}")
        right, pos = _parse_node(text, pos + 1, seen)
        if pos >= len(text) or text[pos] != ")":
            raise ValueError(f"Expected ')' at offset {pos}")
        return Internal(left, right, 0), pos + 1

    end = pos
    while end < len(text) and text[end] in "0123456789":
        end += 1
    if end == pos:
        raise ValueError(f"Unexpected {text[pos]!r} at offset {pos}")
    symbol = int(text[pos:end])
    if symbol > 255:
        raise ValueError(f"Byte value out of range: {symbol}")
    if symbol in seen:
        raise ValueError(f"Duplicate byte value in tree: {symbol}")
    seen.add(symbol)
    return Leaf(symbol, 0), end
