# filename: archive_format.py
#
# Archive layout (all integers little-endian):
#
#   tag(u8) histogram(...) bit_count(u32) packed_bits(...)
#
# tag == 0      dense histogram: 256 x count(u32)
# tag == n > 0  sparse histogram: n x (symbol(u8) count(u32)), n <= 204
#
# Sparse is used only while it is smaller: 205 * 5 > 256 * 4.

import logging
import struct

from huffman_core import ALPHABET_SIZE, validate_frequency_table
from huffman_errors import InvalidHistogramError, TruncatedBufferError

logger = logging.getLogger(__name__)

DENSE_TAG = 0
BREAK_EVEN_ENTRIES = 204

TAG_SIZE = 1
COUNT_FMT = "<I"
DENSE_FMT = f"<{ALPHABET_SIZE}I"
DENSE_SIZE = struct.calcsize(DENSE_FMT)
ENTRY_FMT = "<BI"
ENTRY_SIZE = struct.calcsize(ENTRY_FMT)


def header_size(buffer):
    """Total size of the histogram segment that starts ``buffer``."""
    if len(buffer) < TAG_SIZE:
        raise TruncatedBufferError("histogram tag", TAG_SIZE, len(buffer))
    tag = buffer[0]
    if tag == DENSE_TAG:
        return TAG_SIZE + DENSE_SIZE
    return TAG_SIZE + ENTRY_SIZE * tag


def get_data_segment(buffer):
    """The bytes following the histogram segment (the serialized bitstream)."""
    return bytes(buffer[header_size(buffer):])


def serialize_histogram(histogram):
    histogram = validate_frequency_table(histogram)
    used = [(symbol, count) for symbol, count in enumerate(histogram) if count > 0]

    # An empty histogram would need tag 0, which already means dense
    if 0 < len(used) <= BREAK_EVEN_ENTRIES:
        out = bytearray([len(used)])
        for symbol, count in used:
            out += struct.pack(ENTRY_FMT, symbol, count)
        return bytes(out)

    return bytes([DENSE_TAG]) + struct.pack(DENSE_FMT, *histogram)


def read_histogram(buffer):
    """Parse a histogram segment, raising on any malformed input.

    Only canonical segments are accepted: a sparse tag of at most
    ``BREAK_EVEN_ENTRIES``, each symbol listed once with a nonzero count.
    Bytes past the segment are ignored.
    """
    size = header_size(buffer)
    if len(buffer) < size:
        raise TruncatedBufferError("histogram", size, len(buffer))

    tag = buffer[0]
    if tag == DENSE_TAG:
        return list(struct.unpack_from(DENSE_FMT, buffer, TAG_SIZE))
    if tag > BREAK_EVEN_ENTRIES:
        raise InvalidHistogramError(f"sparse histogram tag {tag} exceeds {BREAK_EVEN_ENTRIES}")

    histogram = [0] * ALPHABET_SIZE
    seen = set()
    for offset in range(TAG_SIZE, size, ENTRY_SIZE):
        symbol, count = struct.unpack_from(ENTRY_FMT, buffer, offset)
        if symbol in seen:
            raise InvalidHistogramError(f"histogram lists byte {symbol} twice")
        if count == 0:
            raise InvalidHistogramError(f"sparse histogram lists byte {symbol} with count 0")
        seen.add(symbol)
        histogram[symbol] = count
    return histogram


def deserialize_histogram(buffer):
    """Flag form of ``read_histogram``: ``(histogram, True)`` or ``(None, False)``."""
    try:
        return read_histogram(buffer), True
    except (TruncatedBufferError, InvalidHistogramError) as exc:
        logger.warning("cannot parse histogram: %s", exc)
        return None, False
