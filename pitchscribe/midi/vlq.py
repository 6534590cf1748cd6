from __future__ import annotations
from typing import Tuple


def encode_vlq(value: int) -> bytes:
    """
    MIDI variable-length quantity: 7-bit groups, most significant first,
    continuation bit set on every byte except the last.
    """
    value = int(value)
    if value < 0:
        raise ValueError(f"VLQ cannot encode negative value {value}")

    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(groups))


def decode_vlq(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Returns (value, offset just past the quantity)."""
    value = 0
    while True:
        if offset >= len(data):
            raise ValueError("Truncated variable-length quantity")
        b = data[offset]
        offset += 1
        value = (value << 7) | (b & 0x7F)
        if not b & 0x80:
            return value, offset
