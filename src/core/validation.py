"""Input validation and sanitization for the save editor front end."""

import re
from typing import Optional

from save_parsing.flea_fields import FLEA_VALUES, TARGET_FLEA_FIELDS
from save_parsing.save_codec import SaveFormat

from .logger import log


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


def validate_file_name(file_name: Optional[str]) -> str:
    """Validate and sanitize an uploaded file name."""
    if not file_name or not isinstance(file_name, str):
        raise ValidationError("File name cannot be empty")

    # Drop any directory part sent by the client
    file_name = re.split(r'[\\/]', file_name.strip())[-1]

    if not file_name:
        raise ValidationError("File name cannot be empty after trimming")

    if len(file_name) > 255:
        raise ValidationError("File name is too long (max 255 characters)")

    # Strip characters that would break a Content-Disposition header
    file_name = re.sub(r'["\r\n]', '_', file_name)

    log.debug(f"Validated file name: {file_name}")

    return file_name


def validate_save_format(value: Optional[str]) -> SaveFormat:
    """Validate the requested save format (pc or switch)."""
    if value is not None and not isinstance(value, str):
        raise ValidationError("Format must be sent as a plain form value")

    try:
        return SaveFormat.parse(value)
    except ValueError:
        raise ValidationError("Format must be 'pc' or 'switch'")


def validate_hash(value: str) -> int:
    """Validate a history hash taken from a URL."""
    if not value or not isinstance(value, str):
        raise ValidationError("Hash cannot be empty")

    if not re.match(r'^-?\d{1,10}$', value.strip()):
        raise ValidationError("Hash must be a 32-bit integer")

    number = int(value)
    if not -2**31 <= number < 2**31:
        raise ValidationError("Hash must be a 32-bit integer")

    return number


def validate_flea_field(key: str, value: str) -> str:
    """Validate a flea table edit and return the normalized value."""
    if key not in TARGET_FLEA_FIELDS:
        raise ValidationError(f"Unknown flea field: {key}")

    if not isinstance(value, str) or value.strip().lower() not in FLEA_VALUES:
        raise ValidationError(f"Flea value must be one of {list(FLEA_VALUES)}")

    return value.strip().lower()


def validate_json_text(text: str, max_bytes: int) -> str:
    """Validate editor text size (JSON validity is checked on export)."""
    if not isinstance(text, str):
        raise ValidationError("jsonString must be a string")

    if len(text.encode("utf-8", "surrogatepass")) > max_bytes:
        raise ValidationError(f"jsonString is too long (max {max_bytes} bytes)")

    return text
