"""Hollow Knight save file codec."""

from .errors import (
    SaveDataError,
    EnvelopeError,
    Base64DecodeError,
    PaddingError,
    SaveTextError,
    SaveReadError,
)
from .content_hash import hash_string
from .save_codec import (
    HollowKnightCodec,
    SaveFormat,
    decrypt_hollow_knight_save,
    encrypt_hollow_knight_save,
    decode_plain,
    encode_plain,
)

__all__ = [
    "SaveDataError",
    "EnvelopeError",
    "Base64DecodeError",
    "PaddingError",
    "SaveTextError",
    "SaveReadError",
    "hash_string",
    "HollowKnightCodec",
    "SaveFormat",
    "decrypt_hollow_knight_save",
    "encrypt_hollow_knight_save",
    "decode_plain",
    "encode_plain",
]
