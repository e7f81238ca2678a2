from __future__ import annotations


def checksum(data: bytes) -> int:
    """
    RFC 1071 internet checksum.

    Bytes are summed as big-endian 16-bit words. A trailing odd byte is added
    as its own term. Carry above bit 15 is folded back once, then the low 16
    bits are complemented.
    """
    total = 0
    length = len(data)
    index = 0
    while length > 1:
        total += (data[index] << 8) + data[index + 1]
        index += 2
        length -= 2
    if length > 0:
        total += data[index]
    total += total >> 16
    return ~total & 0xFFFF
