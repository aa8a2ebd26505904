import heapq
import logging
from collections import Counter
from itertools import count

logger = logging.getLogger(__name__)

ALPHABET_SIZE = 256
SYMBOL_BITS = 8
# A tree over 256 symbols can never be deeper than this
MAX_TREE_DEPTH = ALPHABET_SIZE


### ERRORS ###
class HuffmanError(Exception):
    """Base class for everything the codec raises on its own."""


class EmptyInputError(HuffmanError):
    """No symbols were observed, so there is nothing to build a tree from."""


class FormatError(HuffmanError):
    """The compressed input is not a file this codec produced."""


class TruncatedStreamError(FormatError):
    """The encoded data ended before every expected symbol was decoded."""


class InputTooLargeError(HuffmanError):
    """The input has more symbols than the header can count."""


### HUFFMAN NODE CLASS ###
class HuffmanNode:
    """
    A node in the Huffman tree.

    Leaves carry a byte value (0-255); internal nodes have byte=None and
    exactly two children. freq is the byte's count for a leaf and the sum of
    both children's freq for an internal node. A placeholder leaf pads out
    the tree of a single-symbol input and stands for no real byte.
    """

    def __init__(self, byte=None, freq=0, left=None, right=None, placeholder=False):
        self.byte = byte
        self.freq = freq
        self.left = left
        self.right = right
        self.placeholder = placeholder

    @classmethod
    def join(cls, left, right):
        return cls(freq=left.freq + right.freq, left=left, right=right)

    def is_leaf(self):
        return self.left is None and self.right is None

    def bit_size(self):
        """Number of bits write_tree() emits for this subtree."""
        if self.is_leaf():
            return 1 + SYMBOL_BITS
        return 1 + self.left.bit_size() + self.right.bit_size()

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode(byte={self.byte}, freq={self.freq})"
        return f"HuffmanNode(freq={self.freq})"


### FREQUENCY COUNTING ###
def count_frequencies(reader):
    """
    Consume a ByteReader once and count every byte value.

    Returns a 256-entry tuple of counts and the input length in bits. The
    reader is left at end of file; rewind it before reading again.
    """
    counter = Counter()
    for chunk in reader.chunks():
        counter.update(chunk)
    frequencies = tuple(counter[byte] for byte in range(ALPHABET_SIZE))
    input_bits = sum(frequencies) * 8
    logger.debug(f"Counted {input_bits // 8} bytes, {len(counter)} distinct values")
    return frequencies, input_bits


### TREE BUILDING ###
def build_tree(frequencies):
    """
    Build a Huffman tree from a 256-entry frequency table.

    The two lightest trees are merged with a priority queue until two remain,
    and those two become the children of the root. Ties are broken by
    insertion order (byte value for leaves, creation order for merged
    nodes); other tie-breaks give different shapes with the same weighted
    code length. A single present byte is paired with an empty placeholder
    leaf (byte 0, freq 0) so that it still gets a one-bit code.
    """
    order = count()
    priority_queue = [
        (freq, next(order), HuffmanNode(byte=byte, freq=freq))
        for byte, freq in enumerate(frequencies)
        if freq > 0
    ]
    heapq.heapify(priority_queue)

    if not priority_queue:
        raise EmptyInputError("Empty input: no symbols to encode")

    while len(priority_queue) > 2:
        _, _, smallest = heapq.heappop(priority_queue)
        _, _, next_smallest = heapq.heappop(priority_queue)
        merged = HuffmanNode.join(smallest, next_smallest)
        heapq.heappush(priority_queue, (merged.freq, next(order), merged))

    if len(priority_queue) == 2:
        _, _, left = heapq.heappop(priority_queue)
        _, _, right = heapq.heappop(priority_queue)
        return HuffmanNode.join(left, right)

    _, _, only = priority_queue[0]
    return HuffmanNode.join(only, HuffmanNode(byte=0, freq=0, placeholder=True))


### CODE GENERATION ###
def generate_codes(root):
    """
    Map every leaf byte to its '0'/'1' path string. When a byte appears on
    more than one leaf, the leftmost path wins.
    """
    codes = {}

    def generate_codes_recursive(node, current_code):
        if node.is_leaf():
            if not node.placeholder:
                codes.setdefault(node.byte, current_code)
            return
        generate_codes_recursive(node.left, current_code + "0")
        generate_codes_recursive(node.right, current_code + "1")

    generate_codes_recursive(root, "")
    return codes


def encoded_bit_length(codes, frequencies):
    return sum(len(code) * frequencies[byte] for byte, code in codes.items())


### TREE SERIALIZATION ###
def write_tree(writer, node):
    """Pre-order: 1 then left, right for internal nodes; 0 and 8 bits for leaves."""
    if node.is_leaf():
        writer.write_bit(False)
        writer.write_byte(node.byte)
    else:
        writer.write_bit(True)
        write_tree(writer, node.left)
        write_tree(writer, node.right)


def read_tree(reader):
    """
    Rebuild a tree written by write_tree(). Weights are not stored and come
    back as 0.
    """
    if not reader.read_bit():
        raise FormatError("Huffman tree root must not be a leaf")
    return HuffmanNode(left=_read_subtree(reader, 1), right=_read_subtree(reader, 1))


def _read_subtree(reader, depth):
    if depth > MAX_TREE_DEPTH:
        raise FormatError(f"Huffman tree deeper than {MAX_TREE_DEPTH} levels")
    if reader.read_bit():
        left = _read_subtree(reader, depth + 1)
        right = _read_subtree(reader, depth + 1)
        return HuffmanNode(left=left, right=right)
    return HuffmanNode(byte=reader.read_byte())


def format_tree(node, offset=0):
    """Indented rendering, one line per node: 'Node' or the leaf's byte value."""
    lines = [" " * offset + (str(node.byte) if node.is_leaf() else "Node")]
    if not node.is_leaf():
        lines.extend(format_tree(node.left, offset + 1))
        lines.extend(format_tree(node.right, offset + 1))
    return lines


### STREAM ENCODING / DECODING ###
def encode_stream(reader, codes, writer):
    """Write the code of every byte the reader yields, in input order."""
    # Pre-pack each '0'/'1' string into (value, length) once
    packed = {byte: (int(code, 2), len(code)) for byte, code in codes.items()}
    symbols = 0
    for byte in reader:
        value, length = packed[byte]
        writer.write_bits(value, length)
        symbols += 1
    return symbols


def decode_stream(reader, root, writer, symbol_count=None):
    """
    Walk the tree from the root for each symbol: 0 goes left, 1 goes right,
    a leaf emits its byte.

    With symbol_count, exactly that many bytes are decoded and running out of
    bits raises TruncatedStreamError. Without it, decoding runs until the
    reader reports end of data; a walk cut short by the end is dropped, and
    padding bits that happen to complete a code come out as extra bytes.
    """
    decoded = 0
    while symbol_count is None or decoded < symbol_count:
        if reader.at_end():
            if symbol_count is not None:
                raise TruncatedStreamError(
                    f"Encoded data ended after {decoded} of {symbol_count} symbols"
                )
            break

        node = root
        while not node.is_leaf():
            if symbol_count is None and reader.at_end():
                logger.warning(f"Discarding incomplete code at end of data after {decoded} symbols")
                return decoded
            try:
                bit = reader.read_bit()
            except EOFError:
                raise TruncatedStreamError(
                    f"Encoded data ended inside symbol {decoded + 1} of {symbol_count}"
                ) from None
            node = node.right if bit else node.left

        writer.write_byte(node.byte)
        decoded += 1

    return decoded
