# filename: huffman_errors.py


class HuffmanError(Exception):
    """Base class for every failure raised by the Huffman codec."""


class BitIndexError(HuffmanError, IndexError):
    def __init__(self, index, size):
        super().__init__(f"bit index {index} out of range for length {size}")
        self.index = index
        self.size = size


class BitVectorUnderflowError(HuffmanError, IndexError):
    def __init__(self):
        super().__init__("pop_back from empty BitVector")


class UnknownSymbolError(HuffmanError, LookupError):
    """A byte of the input has no codeword in the code table."""

    def __init__(self, symbol, position):
        super().__init__(f"byte 0x{symbol:02x} at offset {position} has no codeword")
        self.symbol = symbol
        self.position = position


class TruncatedBufferError(HuffmanError, ValueError):
    def __init__(self, what, expected, actual):
        super().__init__(f"{what} truncated: need {expected} bytes, got {actual}")
        self.expected = expected
        self.actual = actual


class MisalignedBitstreamError(HuffmanError, ValueError):
    """The bitstream ended in the middle of a codeword.

    ``partial`` holds the bytes decoded before the dangling bits.
    """

    def __init__(self, partial):
        super().__init__(f"bitstream ends mid-codeword after {len(partial)} decoded bytes")
        self.partial = partial


class TreeNotBuiltError(HuffmanError, RuntimeError):
    def __init__(self, operation):
        super().__init__(f"{operation} requires a built tree")


class InvalidHistogramError(HuffmanError, ValueError):
    pass
