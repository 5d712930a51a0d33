import logging
import struct

from bitpack import pack_bits, unpack_bits
from huffman import (
    DecodeUnderflow,
    MalformedPayload,
    TruncatedContainer,
    build_huffman_tree,
    calculate_frequency,
    decode_bits,
    deserialize_tree,
    generate_codes,
    serialize_tree,
    tree_leaves,
)

logger = logging.getLogger(__name__)

# [tree length (4 bytes, big-endian)][tree JSON][padding byte][packed bits]
TREE_LENGTH = struct.Struct(">I")


### CONTAINER ###
def build_container(tree_bytes, payload):
    return TREE_LENGTH.pack(len(tree_bytes)) + tree_bytes + payload


def parse_container(data):
    """Splits a container into (tree bytes, packed payload)."""
    if len(data) < TREE_LENGTH.size:
        raise TruncatedContainer(
            f"container is {len(data)} bytes, the length prefix alone needs {TREE_LENGTH.size}"
        )

    (tree_length,) = TREE_LENGTH.unpack_from(data)
    start = TREE_LENGTH.size
    if tree_length > len(data) - start:
        raise TruncatedContainer(
            f"tree region declares {tree_length} bytes but only {len(data) - start} follow"
        )

    tree_bytes = bytes(data[start:start + tree_length])
    payload = bytes(data[start + tree_length:])
    return tree_bytes, payload


### ENCODE / DECODE ###
def encode(data):
    """Compresses bytes into a self-describing Huffman container."""
    if isinstance(data, str):
        raise TypeError("encode expects bytes; encode text before compressing it")
    data = bytes(data)

    frequency = calculate_frequency(data)
    if not frequency:
        # Empty tree region and the zero-bit payload
        return build_container(b"", pack_bits(""))

    root = build_huffman_tree(frequency)
    huffman_codes = generate_codes(root)
    encoded = "".join(huffman_codes[byte_int] for byte_int in data)

    tree_bytes = serialize_tree(root)
    payload = pack_bits(encoded)
    logger.debug(
        "encoded %d bytes: %d symbols, %d bits, tree %d bytes",
        len(data), len(frequency), len(encoded), len(tree_bytes),
    )
    return build_container(tree_bytes, payload)


def decode(data):
    """Restores the original bytes from a container produced by encode."""
    tree_bytes, payload = parse_container(data)
    root = deserialize_tree(tree_bytes)

    if root is None:
        if not payload:
            raise DecodeUnderflow("payload ends before its padding byte")
        bits = unpack_bits(payload)
        if bits:
            raise MalformedPayload(f"empty tree region but {len(bits)} payload bits")
        return b""

    # A non-empty tree always encodes at least one bit
    if len(payload) < 2:
        raise DecodeUnderflow("payload ends before the first symbol")

    bits = unpack_bits(payload)
    decoded = decode_bits(bits, root)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("decoded %d bytes from %d bits over %d symbols", len(decoded), len(bits), tree_leaves(root))
    return decoded


### FILE HELPERS ###
def compress_file(input_path, output_path):
    with open(input_path, "rb") as f:
        data = f.read()

    compressed = encode(data)

    with open(output_path, "wb") as f:
        f.write(compressed)

    original_size = len(data)
    compressed_size = len(compressed)
    saved = original_size - compressed_size
    saved_percent = round(saved / original_size * 100, 2) if original_size else 0

    return {
        "original_size": original_size,
        "compressed_size": compressed_size,
        "saved": saved,
        "saved_percent": saved_percent,
    }


def decompress_file(input_path, output_path):
    with open(input_path, "rb") as f:
        data = f.read()

    decoded = decode(data)

    with open(output_path, "wb") as f:
        f.write(decoded)

    return output_path
