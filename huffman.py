import heapq
import json
import logging

logger = logging.getLogger(__name__)


### ERRORS ###
class HuffmanError(ValueError):
    """Base class for every validation failure raised by the codec."""


class MalformedPayload(HuffmanError):
    """Padding count and data bytes of a packed payload do not agree."""


class MalformedTree(HuffmanError):
    """The serialized tree is not a valid Huffman tree."""


class TruncatedContainer(HuffmanError):
    """The container is shorter than its own length prefix says."""


class DecodeUnderflow(HuffmanError):
    """The bit stream ended before the last symbol was complete."""


### HUFFMAN NODE CLASS ###
class HuffmanNode:
    """Represents a node in the Huffman tree.

    A leaf carries a byte value (0-255) and its count. An internal node
    carries no byte, the sum of its children's counts, and exactly two children.
    """
    __slots__ = ("byte", "freq", "left", "right")

    def __init__(self, byte=None, freq=0, left=None, right=None):
        self.byte = byte
        self.freq = freq
        self.left = left
        self.right = right

    @property
    def is_leaf(self):
        return self.byte is not None

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode(byte={self.byte}, freq={self.freq})"
        return f"HuffmanNode(freq={self.freq}, left={self.left!r}, right={self.right!r})"


### FREQUENCY COUNTING ###
def calculate_frequency(data):
    """Counts how often each byte value occurs in data.

    Keys keep the order in which each byte first appears; the tree builder
    relies on that order to break ties.
    """
    frequency = {}
    for byte_int in data:
        frequency[byte_int] = frequency.get(byte_int, 0) + 1
    return frequency


### TREE AND CODE GENERATION ###
def build_huffman_tree(frequency):
    """
    Builds the Huffman tree for a non-empty frequency mapping and returns its root.

    Heap entries are (freq, order, node). Leaves take their first-appearance
    index as order, merged nodes take the next value of a running counter, so
    equal weights always pop in the same sequence. The first node popped goes
    left, the second goes right.
    """
    if not frequency:
        raise ValueError("cannot build a Huffman tree from an empty frequency table")

    priority_queue = []
    for order, (byte, freq) in enumerate(frequency.items()):
        priority_queue.append((freq, order, HuffmanNode(byte=byte, freq=freq)))
    heapq.heapify(priority_queue)

    # A single distinct byte stays a lone leaf; generate_codes gives it "0"
    if len(priority_queue) == 1:
        return priority_queue[0][2]

    order = len(priority_queue)
    while len(priority_queue) > 1:
        left_freq, _, left = heapq.heappop(priority_queue)
        right_freq, _, right = heapq.heappop(priority_queue)

        merged_freq = left_freq + right_freq
        parent = HuffmanNode(freq=merged_freq, left=left, right=right)
        heapq.heappush(priority_queue, (merged_freq, order, parent))
        order += 1

    root = priority_queue[0][2]
    logger.debug("built Huffman tree over %d symbols, weight %d", len(frequency), root.freq)
    return root


def generate_codes(root):
    """Maps every byte in the tree to its path from the root ('0' left, '1' right)."""
    if root.is_leaf:
        return {root.byte: "0"}

    huffman_codes = {}
    stack = [(root, "")]
    while stack:
        node, path = stack.pop()
        if node.is_leaf:
            huffman_codes[node.byte] = path
            continue
        # Right is pushed first so the left subtree is visited first
        stack.append((node.right, path + "1"))
        stack.append((node.left, path + "0"))
    return huffman_codes


def tree_leaves(root):
    """Returns the number of leaves below root (0 for an empty tree)."""
    if root is None:
        return 0
    count = 0
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            count += 1
        else:
            stack.extend((node.left, node.right))
    return count


### DECODING ###
def decode_bits(bits, root):
    """
    Walks the tree once per symbol and returns the decoded bytes.

    The root weight is the number of symbols that were encoded, so a stream
    that stops early raises DecodeUnderflow and one that carries extra symbols
    raises MalformedPayload.
    """
    expected = root.freq
    out = bytearray()

    if root.is_leaf:
        # Every occurrence of the only symbol was written as a single "0"
        if bits.count("0") != len(bits):
            raise MalformedPayload("single-symbol stream contains a '1' bit")
        out.extend(bytes([root.byte]) * len(bits))
    else:
        current_node = root
        for bit in bits:
            current_node = current_node.left if bit == "0" else current_node.right
            if current_node.is_leaf:
                out.append(current_node.byte)
                current_node = root
        if current_node is not root:
            raise DecodeUnderflow("bit stream ends in the middle of a code")

    if len(out) < expected:
        raise DecodeUnderflow(f"decoded {len(out)} of {expected} symbols")
    if len(out) > expected:
        raise MalformedPayload(f"decoded {len(out)} symbols but the tree accounts for {expected}")
    return bytes(out)


### TREE SERIALIZATION ###
def _node_to_record(node):
    if node is None:
        return None
    return {
        "symbol": node.byte,
        "freq": node.freq,
        "left": _node_to_record(node.left),
        "right": _node_to_record(node.right),
    }


def serialize_tree(root):
    """Serializes the tree as compact JSON records; an empty tree becomes b''."""
    if root is None:
        return b""
    return json.dumps(_node_to_record(root), separators=(",", ":")).encode("utf-8")


def _is_count(value):
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _record_to_node(record, seen):
    if not isinstance(record, dict):
        raise MalformedTree(f"tree record must be an object, got {type(record).__name__}")

    symbol = record.get("symbol")
    freq = record.get("freq")
    left = record.get("left")
    right = record.get("right")

    if not _is_count(freq):
        raise MalformedTree(f"frequency must be a positive integer, got {freq!r}")

    if symbol is not None:
        if left is not None or right is not None:
            raise MalformedTree(f"leaf {symbol!r} has children")
        if isinstance(symbol, bool) or not isinstance(symbol, int) or not 0 <= symbol <= 255:
            raise MalformedTree(f"leaf symbol must be a byte value, got {symbol!r}")
        if symbol in seen:
            raise MalformedTree(f"symbol {symbol} appears on more than one leaf")
        seen.add(symbol)
        return HuffmanNode(byte=symbol, freq=freq)

    if left is None or right is None:
        raise MalformedTree("internal node must have exactly two children")

    node = HuffmanNode(
        freq=freq,
        left=_record_to_node(left, seen),
        right=_record_to_node(right, seen),
    )
    if node.left.freq + node.right.freq != freq:
        raise MalformedTree(
            f"internal frequency {freq} is not the sum of its children "
            f"({node.left.freq} + {node.right.freq})"
        )
    return node


def deserialize_tree(raw):
    """Rebuilds a tree written by serialize_tree; b'' gives None."""
    if not raw:
        return None
    try:
        record = json.loads(raw.decode("utf-8"))
        return _record_to_node(record, set())
    except UnicodeDecodeError as e:
        raise MalformedTree(f"tree region is not UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise MalformedTree(f"tree region is not valid JSON: {e}") from e
    except RecursionError as e:
        raise MalformedTree("tree is nested too deeply") from e
