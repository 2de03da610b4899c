"""Binary envelope around the save payload.

Hollow Knight writes its save through .NET's BinaryFormatter as a single
serialized string, so the Base64 payload is wrapped like this::

    [22-byte stream header][7-bit length prefix][payload][0x0B end marker]
"""

import logging
from typing import Tuple

from .errors import EnvelopeError

log = logging.getLogger(__name__)

# BinaryFormatter stream header followed by the string record opcode
CSHARP_HEADER = bytes([0, 1, 0, 0, 0, 255, 255, 255, 255, 1, 0, 0, 0, 0, 0, 0, 0, 6, 1, 0, 0, 0])
END_MARKER = 0x0B

MAX_PREFIX_BYTES = 5
MAX_LENGTH = 0x7FFFFFFF


def encode_length_prefix(length: int) -> bytes:
    """Encode ``length`` as a 7-bit continuation integer (1 to 5 bytes)."""
    value = min(MAX_LENGTH, length)
    out = bytearray()
    for _ in range(MAX_PREFIX_BYTES - 1):
        if value >> 7:
            out.append((value & 0x7F) | 0x80)
            value >>= 7
        else:
            out.append(value & 0x7F)
            value = 0
            break
    if value:
        out.append(value)
    return bytes(out)


def decode_length_prefix(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Read a 7-bit continuation integer.

    Returns:
        Tuple of (decoded length, number of prefix bytes consumed)

    Raises:
        EnvelopeError: If the prefix runs past the buffer or exceeds 5 bytes
    """
    value = 0
    for i in range(MAX_PREFIX_BYTES):
        if offset + i >= len(data):
            raise EnvelopeError("Length prefix runs past the end of the file")
        byte = data[offset + i]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value, i + 1
    raise EnvelopeError(f"Length prefix is longer than {MAX_PREFIX_BYTES} bytes")


def add_header(payload: bytes) -> bytes:
    """Wrap ``payload`` in the BinaryFormatter envelope."""
    return b"".join((
        CSHARP_HEADER,
        encode_length_prefix(len(payload)),
        bytes(payload),
        bytes([END_MARKER]),
    ))


def remove_header(data: bytes, strict: bool = True) -> bytes:
    """Strip the envelope and return the payload.

    Args:
        data: Complete save file bytes
        strict: Also check the header, end marker and that the length prefix
            matches the payload. With ``strict=False`` the bytes are sliced
            without those checks.

    Raises:
        EnvelopeError: If the envelope is malformed
    """
    data = bytes(data)
    if len(data) < len(CSHARP_HEADER) + 2:
        raise EnvelopeError(f"File is too short to be a save file ({len(data)} bytes)")

    if strict:
        if data[:len(CSHARP_HEADER)] != CSHARP_HEADER:
            raise EnvelopeError("Save file header does not match")
        if data[-1] != END_MARKER:
            raise EnvelopeError(f"Unexpected end marker 0x{data[-1]:02x}")

    body = data[len(CSHARP_HEADER):-1]
    length, consumed = decode_length_prefix(body)
    payload = body[consumed:]

    if length != len(payload):
        if strict:
            raise EnvelopeError(
                f"Length prefix says {length} bytes but {len(payload)} remain"
            )
        log.debug(f"Ignoring length prefix mismatch: {length} != {len(payload)}")

    return payload
