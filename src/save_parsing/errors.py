"""Exceptions raised by the save file codec."""


class SaveDataError(Exception):
    """Base exception for save data encoding and decoding errors."""
    pass


class EnvelopeError(SaveDataError):
    """The binary envelope around the payload is malformed."""
    pass


class Base64DecodeError(SaveDataError):
    """The payload contains bytes outside the Base64 alphabet."""
    pass


class PaddingError(SaveDataError):
    """Ciphertext length or PKCS#7 padding is invalid."""
    pass


class SaveTextError(SaveDataError):
    """Decrypted bytes are not valid UTF-8 text."""
    pass


class SaveReadError(SaveDataError):
    """The save file could not be read from disk."""
    pass
