# filename: huffman_service.py

import logging
import struct

from archive_format import header_size, read_histogram, serialize_histogram
from bit_vector import BitVector, COUNT_FMT, COUNT_SIZE, byte_len
from huffman_core import HuffmanLogic
from huffman_errors import MisalignedBitstreamError, TruncatedBufferError

logger = logging.getLogger(__name__)


def split_archive(archive):
    """Return ``(histogram_bytes, bitstream_bytes)`` of an archive buffer."""
    boundary = header_size(archive)
    if len(archive) < boundary:
        raise TruncatedBufferError("histogram", boundary, len(archive))
    return bytes(archive[:boundary]), bytes(archive[boundary:])


def read_bits(stream):
    """Deserialize a bitstream segment, raising instead of returning False."""
    bits = BitVector()
    if bits.deserialize(stream):
        return bits
    if len(stream) < COUNT_SIZE:
        raise TruncatedBufferError("bit count", COUNT_SIZE, len(stream))
    (nbits,) = struct.unpack_from(COUNT_FMT, stream, 0)
    raise TruncatedBufferError("bitstream", COUNT_SIZE + byte_len(nbits), len(stream))


class HuffmanService:
    """Builds and reads whole archives held in memory.

    An archive is the serialized histogram followed by the serialized
    payload bits. Empty input maps to an empty archive and back.
    """

    def __init__(self):
        self.logic = HuffmanLogic()

    def compress(self, data):
        if not data:
            return b""
        self.logic.build_tree(data)
        self.logic.build_code_table()
        bits = self.logic.encode(data)

        archive = serialize_histogram(self.logic.histogram) + bits.serialize()
        logger.debug("compressed %d bytes: %d payload bits, %d archive bytes",
                     len(data), len(bits), len(archive))
        return archive

    def decompress(self, archive):
        if not archive:
            return b""
        histogram_bytes, stream = split_archive(archive)
        histogram = read_histogram(histogram_bytes)
        bits = read_bits(stream)

        # self.logic is only replaced once the whole archive decodes
        logic = HuffmanLogic()
        logic.build_tree_from_histogram(histogram)
        data, ok = logic.decode(bits)
        if not ok:
            raise MisalignedBitstreamError(data)
        self.logic = logic
        logger.debug("decompressed %d archive bytes into %d bytes", len(archive), len(data))
        return data
