# filename: huffman_core.py

import heapq
import logging
from collections import Counter

from bit_vector import BitVector, BYTE_BITS
from huffman_errors import (
    InvalidHistogramError,
    TreeNotBuiltError,
    UnknownSymbolError,
)

logger = logging.getLogger(__name__)

ALPHABET_SIZE = 256
MAX_COUNT = 0xFFFFFFFF  # counts are stored as u32

# Heap ordering among equal frequencies: leaves (by symbol) before branches (FIFO)
_LEAF_RANK = 0
_BRANCH_RANK = 1


def build_frequency_table(data):
    """Count occurrences of every byte value in ``data``.

    Returns a list of ``ALPHABET_SIZE`` ints indexed by byte value.
    """
    histogram = [0] * ALPHABET_SIZE
    for byte, count in Counter(data).items():
        histogram[byte] = count
    return histogram


def validate_frequency_table(histogram):
    histogram = list(histogram)
    if len(histogram) != ALPHABET_SIZE:
        raise InvalidHistogramError(
            f"histogram must have {ALPHABET_SIZE} entries, got {len(histogram)}")
    for symbol, count in enumerate(histogram):
        if not isinstance(count, int) or isinstance(count, bool):
            raise InvalidHistogramError(f"count for byte {symbol} is not an int: {count!r}")
        if count < 0 or count > MAX_COUNT:
            raise InvalidHistogramError(f"count for byte {symbol} out of range: {count}")
    return histogram


class HuffmanNode:
    """One slot of the tree arena.

    Leaves have a ``symbol`` and no children; branches have ``symbol`` None
    and ``left``/``right`` holding arena indices.
    """

    __slots__ = ("symbol", "freq", "left", "right")

    def __init__(self, symbol, freq, left=None, right=None):
        self.symbol = symbol
        self.freq = freq
        self.left = left
        self.right = right

    @property
    def is_leaf(self):
        return self.left is None

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode(symbol={self.symbol}, freq={self.freq})"
        return f"HuffmanNode(freq={self.freq}, left={self.left}, right={self.right})"


class CodeTree:
    """Huffman tree stored as a flat arena of nodes.

    The first ``ALPHABET_SIZE`` slots are the leaves in symbol order, every
    later slot is a branch, and ``root`` is the index of the last merge.
    """

    def __init__(self, nodes, root):
        self.nodes = nodes
        self.root = root

    def __len__(self):
        return len(self.nodes)

    def histogram(self):
        return [node.freq for node in self.nodes[:ALPHABET_SIZE]]

    def walk(self):
        """Yield ``(index, depth)`` in depth-first, left-to-right order."""
        stack = [(self.root, 0)]
        while stack:
            index, depth = stack.pop()
            yield index, depth
            node = self.nodes[index]
            if not node.is_leaf:
                stack.append((node.right, depth + 1))
                stack.append((node.left, depth + 1))

    def depth(self):
        return max(depth for _, depth in self.walk())

    def describe(self):
        """``(symbol, frequency, depth)`` for each used leaf, left to right."""
        parts = []
        for index, depth in self.walk():
            node = self.nodes[index]
            if node.is_leaf and node.freq > 0:
                parts.append(f"({node.symbol}, {node.freq}, {depth})")
        return " ".join(parts)

    __str__ = describe


def build_tree(histogram):
    """Reduce one leaf per byte value to a single tree by min-pair merging.

    Ties are broken deterministically: leaves before branches, leaves by
    ascending symbol, branches in creation order. The first node taken
    from the heap becomes the left child.
    """
    histogram = validate_frequency_table(histogram)
    nodes = [HuffmanNode(symbol, freq) for symbol, freq in enumerate(histogram)]
    heap = [(freq, _LEAF_RANK, symbol, symbol) for symbol, freq in enumerate(histogram)]
    heapq.heapify(heap)

    created = 0
    while len(heap) > 1:
        left_freq, _, _, left = heapq.heappop(heap)
        right_freq, _, _, right = heapq.heappop(heap)
        merged = HuffmanNode(None, left_freq + right_freq, left, right)
        nodes.append(merged)
        heapq.heappush(heap, (merged.freq, _BRANCH_RANK, created, len(nodes) - 1))
        created += 1

    tree = CodeTree(nodes, heap[0][3])
    logger.debug("built tree: %d nodes, total frequency %d", len(nodes), nodes[tree.root].freq)
    return tree


def build_code_table(tree):
    """Map each symbol with nonzero frequency to its root-to-leaf path.

    0 is a step to the left child, 1 a step to the right. A single path
    vector is grown on descent and popped on backtrack.
    """
    if tree is None or tree.root is None:
        raise TreeNotBuiltError("build_code_table")

    codes = {}
    path = BitVector()
    stack = [(tree.root, 0, None)]
    while stack:
        index, depth, bit = stack.pop()
        if bit is not None:
            while len(path) >= depth:
                path.pop_back()
            path.append(bit)
        node = tree.nodes[index]
        if node.is_leaf:
            if node.freq > 0:
                codes[node.symbol] = path.copy()
        else:
            stack.append((node.right, depth + 1, True))
            stack.append((node.left, depth + 1, False))

    logger.debug("built code table for %d symbols", len(codes))
    return codes


def encode(data, codes):
    """Concatenate the codeword of every byte of ``data``."""
    packed = {symbol: (code.as_int(), len(code)) for symbol, code in codes.items()}
    out = bytearray()
    acc = 0
    pending = 0
    for position, byte in enumerate(data):
        try:
            code, length = packed[byte]
        except KeyError:
            raise UnknownSymbolError(byte, position) from None
        acc = (acc << length) | code
        pending += length
        while pending >= BYTE_BITS:
            pending -= BYTE_BITS
            out.append((acc >> pending) & 0xFF)
        acc &= (1 << pending) - 1

    nbits = len(out) * BYTE_BITS + pending
    if pending:
        out.append((acc << (BYTE_BITS - pending)) & 0xFF)
    logger.debug("encoded %d bytes into %d bits", len(data), nbits)
    return BitVector.from_bytes(out, nbits)


def decode(bits, tree):
    """Walk the tree bit by bit, emitting a symbol at every leaf.

    Returns ``(data, ok)``; ``ok`` is False when the last bits stop short
    of a leaf. Whatever decoded before that point is still returned.
    """
    if tree is None or tree.root is None:
        raise TreeNotBuiltError("decode")

    nodes = tree.nodes
    root = tree.root
    out = bytearray()
    current = root
    for bit in bits:
        node = nodes[current]
        current = node.right if bit else node.left
        child = nodes[current]
        if child.is_leaf:
            out.append(child.symbol)
            current = root

    ok = current == root
    if not ok:
        logger.warning("bitstream ends mid-codeword after %d decoded bytes", len(out))
    return bytes(out), ok


class HuffmanLogic:
    """Holds one histogram, its tree and code table across calls.

    Either ``build_tree`` (from raw data) or ``build_tree_from_histogram``
    must run before encoding or decoding.
    """

    def __init__(self):
        self.histogram = None
        self.tree = None
        self.codes = None

    def build_tree(self, data):
        return self.build_tree_from_histogram(build_frequency_table(data))

    def build_tree_from_histogram(self, histogram):
        self.histogram = validate_frequency_table(histogram)
        self.tree = build_tree(self.histogram)
        self.codes = None
        return self.tree

    def build_code_table(self):
        if self.tree is None:
            raise TreeNotBuiltError("build_code_table")
        self.codes = build_code_table(self.tree)
        return self.codes

    def encode(self, data):
        if self.tree is None:
            raise TreeNotBuiltError("encode")
        if self.codes is None:
            self.build_code_table()
        return encode(data, self.codes)

    def decode(self, bits):
        if self.tree is None:
            raise TreeNotBuiltError("decode")
        return decode(bits, self.tree)
