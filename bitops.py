class BitWriter:
    """MSB-first bit packer for Huffman codewords.

    Completed bytes accumulate in ``buffer`` and can be drained with
    :meth:`take` so that long streams never sit in memory as a whole.

    :ivar buffer: Completed bytes not yet taken.
    :type buffer: bytearray
    :ivar bit_buffer: Pending bits that do not yet fill a byte.
    :type bit_buffer: int
    :ivar bit_count: Number of valid bits in ``bit_buffer`` (0-7).
    :type bit_count: int
    :ivar total_bits: Bits written since construction, padding included.
    :type total_bits: int
    """

    def __init__(self):
        """Initialize an empty bit writer.

        :returns: None
        :rtype: None
        """
        self.buffer = bytearray()
        self.bit_buffer = 0
        self.bit_count = 0
        self.total_bits = 0

    def write_bits(self, value: int, nbits: int):
        """Write the lowest ``nbits`` of ``value``, MSB first.

        :param value: Integer whose bits will be written.
        :type value: int
        :param nbits: Number of bits from ``value`` to write; 0 is a no-op.
        :type nbits: int
        :returns: None
        :rtype: None
        """
        if nbits <= 0:
            return
        self.bit_buffer = (self.bit_buffer << nbits) | (value & ((1 << nbits) - 1))
        self.bit_count += nbits
        self.total_bits += nbits
        while self.bit_count >= 8:
            self.bit_count -= 8
            self.buffer.append((self.bit_buffer >> self.bit_count) & 0xFF)
        self.bit_buffer &= (1 << self.bit_count) - 1

    def pad(self) -> int:
        """Append MZIP padding and return how many zero bits were added.

        The count is ``8 - (total_bits % 8)``, so it is never zero: an
        already aligned stream receives a whole zero byte.

        :returns: Padding bit count in ``1..8``.
        :rtype: int
        """
        padding = 8 - self.bit_count
        self.write_bits(0, padding)
        return padding

    def take(self) -> bytes:
        """Return completed bytes and clear them from the buffer.

        :returns: Bytes completed since the previous call.
        :rtype: bytes
        """
        data = bytes(self.buffer)
        self.buffer.clear()
        return data


class BitReader:
    """Bit reader over a bytes-like object with an optional bit limit.

    :ivar data: Input data to read bits from.
    :type data: bytes
    :ivar limit: Number of readable bits; trailing bits are ignored.
    :type limit: int
    :ivar pos: Index of the next bit to read.
    :type pos: int
    """

    def __init__(self, data: bytes, limit: int = -1):
        """Create a bit reader for ``data``.

        :param data: Source data to read from.
        :type data: bytes
        :param limit: Readable bit count, ``-1`` for all of ``data``.
        :type limit: int
        :returns: None
        :rtype: None
        :raises ValueError: If ``limit`` exceeds the available bits.
        """
        available = len(data) * 8
        if limit < 0:
            limit = available
        if limit > available:
            raise ValueError(f"Bit limit {limit} exceeds {available} bits of data")
        self.data = data
        self.limit = limit
        self.pos = 0

    @property
    def remaining(self) -> int:
        """Number of bits left before the bit limit.

        :returns: Unread bit count.
        :rtype: int
        """
        return self.limit - self.pos

    def read_bit(self) -> int:
        """Read a single bit.

        :returns: 0 or 1.
        :rtype: int
        :raises EOFError: If the bit limit has been reached.
        """
        if self.pos >= self.limit:
            raise EOFError("Unexpected end of data")
        byte = self.data[self.pos >> 3]
        bit = (byte >> (7 - (self.pos & 7))) & 1
        self.pos += 1
        return bit
