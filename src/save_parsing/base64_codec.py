"""Base64 codec operating on byte buffers rather than text."""

from typing import List

from .errors import Base64DecodeError

ALPHABET = b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
PAD = ord("=")

# Inverse lookup, -1 marks bytes outside the alphabet
_INVERSE: List[int] = [-1] * 256
for _index, _symbol in enumerate(ALPHABET):
    _INVERSE[_symbol] = _index


def encoded_length(size: int) -> int:
    """Return the Base64 output length for ``size`` raw bytes."""
    return (size + 2) // 3 * 4


def encode(data: bytes) -> bytes:
    """Encode raw bytes into Base64 symbols, padding the final group."""
    out = bytearray()
    full = len(data) - len(data) % 3

    for i in range(0, full, 3):
        group = (data[i] << 16) | (data[i + 1] << 8) | data[i + 2]
        out.append(ALPHABET[(group >> 18) & 0x3F])
        out.append(ALPHABET[(group >> 12) & 0x3F])
        out.append(ALPHABET[(group >> 6) & 0x3F])
        out.append(ALPHABET[group & 0x3F])

    leftover = len(data) - full
    if leftover == 1:
        group = data[full] << 16
        out.append(ALPHABET[(group >> 18) & 0x3F])
        out.append(ALPHABET[(group >> 12) & 0x3F])
        out.extend((PAD, PAD))
    elif leftover == 2:
        group = (data[full] << 16) | (data[full + 1] << 8)
        out.append(ALPHABET[(group >> 18) & 0x3F])
        out.append(ALPHABET[(group >> 12) & 0x3F])
        out.append(ALPHABET[(group >> 6) & 0x3F])
        out.append(PAD)

    return bytes(out)


def decode(data: bytes) -> bytes:
    """Decode Base64 symbols back into raw bytes.

    Everything from the first pad symbol onwards is ignored.

    Raises:
        Base64DecodeError: If a byte is not part of the alphabet or the
            final group is a single symbol.
    """
    pad_at = data.find(PAD)
    if pad_at != -1:
        data = data[:pad_at]

    values = []
    for position, symbol in enumerate(data):
        value = _INVERSE[symbol]
        if value < 0:
            raise Base64DecodeError(
                f"Invalid Base64 byte 0x{symbol:02x} at offset {position}"
            )
        values.append(value)

    out = bytearray()
    full = len(values) - len(values) % 4

    for i in range(0, full, 4):
        group = (values[i] << 18) | (values[i + 1] << 12) | (values[i + 2] << 6) | values[i + 3]
        out.append((group >> 16) & 0xFF)
        out.append((group >> 8) & 0xFF)
        out.append(group & 0xFF)

    leftover = len(values) - full
    if leftover == 1:
        raise Base64DecodeError("Truncated Base64 group: a single trailing symbol")
    if leftover == 2:
        group = (values[full] << 18) | (values[full + 1] << 12)
        out.append((group >> 16) & 0xFF)
    elif leftover == 3:
        group = (values[full] << 18) | (values[full + 1] << 12) | (values[full + 2] << 6)
        out.append((group >> 16) & 0xFF)
        out.append((group >> 8) & 0xFF)

    return bytes(out)
