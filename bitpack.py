from huffman import MalformedPayload

MAX_PADDING = 7


def pack_bits(bits):
    """
    Packs a string of '0'/'1' characters into bytes.

    The first byte is the number of zero bits appended to fill the last data
    byte (0-7); the data bytes follow, most significant bit first. An empty
    bit string packs to b'\\x00'.
    """
    if bits.strip("01"):
        raise ValueError("bit string may only contain '0' and '1'")

    padding_bits = (8 - len(bits) % 8) % 8

    b = bytearray([padding_bits])
    for i in range(0, len(bits), 8):
        byte = bits[i:i + 8].ljust(8, "0")
        b.append(int(byte, 2))
    return bytes(b)


def unpack_bits(payload):
    """Reverses pack_bits, dropping the padding bits from the end."""
    if not payload:
        raise MalformedPayload("payload is empty, padding byte missing")

    padding_bits = payload[0]
    data = payload[1:]

    if padding_bits > MAX_PADDING:
        raise MalformedPayload(f"padding count {padding_bits} is larger than {MAX_PADDING}")
    if padding_bits and not data:
        raise MalformedPayload(f"padding count {padding_bits} with no data bytes")

    bits = "".join(format(byte, "08b") for byte in data)
    return bits[:len(bits) - padding_bits]
