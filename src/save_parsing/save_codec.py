"""Hollow Knight save file encoding and decoding based on bloodorca/hollow."""

import enum
from typing import Optional

from . import base64_codec
from .cipher import AesBlockCipher, BlockCipher, decrypt_unpadded, encrypt_padded
from .envelope import add_header, remove_header
from .errors import SaveTextError


class SaveFormat(str, enum.Enum):
    """Save file flavours: encrypted on PC, plain JSON on Nintendo Switch."""

    PC = "pc"
    SWITCH = "switch"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SaveFormat":
        if not value:
            return cls.PC
        return cls(value.strip().lower())


class HollowKnightCodec:
    """Encodes and decodes Hollow Knight save files."""

    def __init__(self, cipher: Optional[BlockCipher] = None, strict: bool = True):
        self.cipher = cipher or AesBlockCipher()
        self.strict = strict

    def string_to_bytes(self, string: str) -> bytes:
        """Convert string to bytes."""
        return string.encode('utf-8')

    def bytes_to_string(self, bytes_data: bytes) -> str:
        """Convert bytes to string."""
        try:
            return bytes_data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise SaveTextError(f"Decrypted save is not valid UTF-8: {e}") from e

    def decode(self, file_bytes: bytes) -> str:
        """Decode a save file into its JSON string."""
        data = remove_header(file_bytes, strict=self.strict)
        data = base64_codec.decode(data)
        data = decrypt_unpadded(data, self.cipher)
        return self.bytes_to_string(data)

    def encode(self, text: str) -> bytes:
        """Encode a JSON string into save file bytes."""
        data = self.string_to_bytes(text)
        data = encrypt_padded(data, self.cipher)
        data = base64_codec.encode(data)
        return add_header(data)

    def decode_as(self, file_bytes: bytes, save_format: SaveFormat) -> str:
        if save_format is SaveFormat.SWITCH:
            return decode_plain(file_bytes)
        return self.decode(file_bytes)

    def encode_as(self, text: str, save_format: SaveFormat) -> bytes:
        if save_format is SaveFormat.SWITCH:
            return encode_plain(text)
        return self.encode(text)


def decode_plain(file_bytes: bytes) -> str:
    """Read an unencrypted (Switch) save."""
    try:
        return bytes(file_bytes).decode('utf-8')
    except UnicodeDecodeError as e:
        raise SaveTextError(f"Save is not valid UTF-8: {e}") from e


def encode_plain(text: str) -> bytes:
    """Write an unencrypted (Switch) save."""
    return text.encode('utf-8')


def decrypt_hollow_knight_save(file_content: bytes) -> str:
    """Decrypt a Hollow Knight save file and return the JSON string."""
    return HollowKnightCodec().decode(file_content)


def encrypt_hollow_knight_save(json_string: str) -> bytes:
    """Encrypt a JSON string into Hollow Knight save file bytes."""
    return HollowKnightCodec().encode(json_string)
