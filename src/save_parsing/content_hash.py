"""Cheap, non-cryptographic string fingerprint used to deduplicate history."""

import struct


def hash_string(text: str) -> int:
    """Return a signed 32-bit hash of ``text``.

    Folds ``acc * 31 + unit`` over the UTF-16 code units, the same value
    JavaScript's classic string hash produces.
    """
    acc = 0
    units = text.encode('utf-16-le', 'surrogatepass')
    for (unit,) in struct.iter_unpack('<H', units):
        acc = (acc * 31 + unit) & 0xFFFFFFFF
    if acc & 0x80000000:
        acc -= 0x100000000
    return acc
