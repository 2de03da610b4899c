"""AES-ECB wrapper with PKCS#7 padding used by Hollow Knight save files."""

from typing import Protocol

from Crypto.Cipher import AES
from Crypto.Util import Padding

from .errors import PaddingError

BLOCK_SIZE = 16

# AES key baked into the game
SAVE_KEY = 'UKu52ePUBwetZ9wNX88o54dnfKRu0T1l'.encode('utf-8')


class BlockCipher(Protocol):
    """A block cipher primitive working on single 16-byte blocks."""

    def encrypt_block(self, block: bytes) -> bytes:
        ...

    def decrypt_block(self, block: bytes) -> bytes:
        ...


class AesBlockCipher:
    """AES primitive under a fixed key."""

    def __init__(self, key: bytes = SAVE_KEY):
        self._aes = AES.new(key, AES.MODE_ECB)

    def encrypt_block(self, block: bytes) -> bytes:
        return self._aes.encrypt(block)

    def decrypt_block(self, block: bytes) -> bytes:
        return self._aes.decrypt(block)


class IdentityCipher:
    """Pass-through primitive, handy for exercising padding on its own."""

    def encrypt_block(self, block: bytes) -> bytes:
        return bytes(block)

    def decrypt_block(self, block: bytes) -> bytes:
        return bytes(block)


def pad(data: bytes) -> bytes:
    """Append PKCS#7 padding; a full block is added for aligned input."""
    return Padding.pad(bytes(data), BLOCK_SIZE, style='pkcs7')


def unpad(data: bytes) -> bytes:
    """Strip PKCS#7 padding.

    Raises:
        PaddingError: If the length is not block aligned or the pad bytes
            are inconsistent.
    """
    try:
        return Padding.unpad(bytes(data), BLOCK_SIZE, style='pkcs7')
    except ValueError as e:
        raise PaddingError(f"Invalid PKCS#7 padding: {e}") from e


def _map_blocks(data: bytes, transform) -> bytes:
    out = bytearray()
    for i in range(0, len(data), BLOCK_SIZE):
        out += transform(bytes(data[i:i + BLOCK_SIZE]))
    return bytes(out)


def encrypt_padded(plain: bytes, cipher: BlockCipher) -> bytes:
    """Pad ``plain`` and encrypt each block independently (ECB)."""
    return _map_blocks(pad(plain), cipher.encrypt_block)


def decrypt_unpadded(data: bytes, cipher: BlockCipher) -> bytes:
    """Decrypt each block independently (ECB) and strip the padding."""
    if len(data) == 0 or len(data) % BLOCK_SIZE != 0:
        raise PaddingError(
            f"Ciphertext length {len(data)} is not a positive multiple of {BLOCK_SIZE}"
        )
    return unpad(_map_blocks(data, cipher.decrypt_block))
