# filename: bit_vector.py

import logging
import struct

from huffman_errors import BitIndexError, BitVectorUnderflowError

logger = logging.getLogger(__name__)

# Serialized header: number of valid bits, u32 little-endian
COUNT_FMT = "<I"
COUNT_SIZE = struct.calcsize(COUNT_FMT)

BYTE_BITS = 8
HIGH_BIT = 0x80


def byte_len(nbits):
    return (nbits + BYTE_BITS - 1) // BYTE_BITS


class BitVector:
    """Growable sequence of bits packed MSB-first into a byte buffer.

    Bit ``i`` lives in byte ``i // 8`` at mask ``0x80 >> (i % 8)``, so the
    packed bytes read left-to-right in append order. Only the first
    ``len(self)`` bits are meaningful; padding bits in the last byte are
    never read.
    """

    __slots__ = ("_bytes", "_size")

    def __init__(self, bits=()):
        self._bytes = bytearray()
        self._size = 0
        for bit in bits:
            self.append(bool(bit))

    @classmethod
    def from_string(cls, text):
        """Parse ``"0110 1"`` style text; whitespace is ignored."""
        bits = cls()
        for ch in text:
            if ch == "0":
                bits.append(False)
            elif ch == "1":
                bits.append(True)
            elif not ch.isspace():
                raise ValueError(f"invalid bit character {ch!r}")
        return bits

    @classmethod
    def from_bytes(cls, data, nbits):
        """Wrap already-packed bytes holding ``nbits`` valid bits."""
        if nbits < 0 or byte_len(nbits) != len(data):
            raise ValueError(f"{len(data)} bytes cannot hold exactly {nbits} bits")
        bits = cls()
        bits._bytes = bytearray(data)
        bits._size = nbits
        return bits

    def __len__(self):
        return self._size

    def __iter__(self):
        remaining = self._size
        for byte in self._bytes:
            for shift in range(BYTE_BITS - 1, -1, -1):
                if remaining == 0:
                    return
                remaining -= 1
                yield bool((byte >> shift) & 1)

    def __eq__(self, other):
        if not isinstance(other, BitVector):
            return NotImplemented
        if self._size != other._size:
            return False
        full, rest = divmod(self._size, BYTE_BITS)
        if self._bytes[:full] != other._bytes[:full]:
            return False
        if rest:
            mask = (0xFF << (BYTE_BITS - rest)) & 0xFF
            return (self._bytes[full] & mask) == (other._bytes[full] & mask)
        return True

    __hash__ = None

    def __str__(self):
        out = []
        for i, bit in enumerate(self):
            out.append("1" if bit else "0")
            if i % 4 == 3:
                out.append(" ")
        return "".join(out)

    def __repr__(self):
        return f"BitVector('{str(self).rstrip()}')"

    def _check_index(self, index):
        if not 0 <= index < self._size:
            raise BitIndexError(index, self._size)

    def get(self, index):
        self._check_index(index)
        return bool(self._bytes[index // BYTE_BITS] & (HIGH_BIT >> (index % BYTE_BITS)))

    def set(self, index, value):
        """Store ``value`` at an existing position and return it."""
        self._check_index(index)
        mask = HIGH_BIT >> (index % BYTE_BITS)
        if value:
            self._bytes[index // BYTE_BITS] |= mask
        else:
            self._bytes[index // BYTE_BITS] &= ~mask & 0xFF
        return bool(value)

    def append(self, value):
        if isinstance(value, BitVector):
            self.extend(value)
            return
        if self._size % BYTE_BITS == 0:
            self._bytes.append(0)
        self._size += 1
        self.set(self._size - 1, value)

    def extend(self, other):
        """Concatenate the bits of ``other`` onto the end."""
        # Snapshot first: other may be self
        for bit in list(other):
            self.append(bit)

    def pop_back(self):
        if self._size == 0:
            raise BitVectorUnderflowError()
        bit = self.get(self._size - 1)
        self._size -= 1
        if self._size % BYTE_BITS == 0:
            del self._bytes[-1]
        return bit

    def clear(self):
        self._bytes = bytearray()
        self._size = 0

    def copy(self):
        dup = BitVector()
        dup._bytes = bytearray(self._bytes)
        dup._size = self._size
        return dup

    def as_int(self):
        """The bits read as one unsigned integer, first bit most significant."""
        value = 0
        for bit in self:
            value = (value << 1) | bit
        return value

    def to_bytes(self):
        """The packed backing bytes, without the count header."""
        return bytes(self._bytes)

    def serialize(self):
        return struct.pack(COUNT_FMT, self._size) + bytes(self._bytes)

    def deserialize(self, data):
        """Load the layout written by ``serialize``.

        The vector is cleared first and stays empty when ``data`` is too
        short for the header or for the bit count it declares. Bytes after
        the declared payload are ignored.
        """
        self.clear()
        if len(data) < COUNT_SIZE:
            logger.debug("bit vector header truncated: %d bytes", len(data))
            return False
        (size,) = struct.unpack_from(COUNT_FMT, data, 0)
        nbytes = byte_len(size)
        if len(data) - COUNT_SIZE < nbytes:
            logger.debug("bit vector payload truncated: need %d bytes, got %d",
                         nbytes, len(data) - COUNT_SIZE)
            return False
        self._bytes = bytearray(data[COUNT_SIZE:COUNT_SIZE + nbytes])
        self._size = size
        return True

    def serialized_size(self):
        return COUNT_SIZE + len(self._bytes)
