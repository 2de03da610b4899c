"""Editing session: open a save, edit it, export it again."""

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from save_parsing.content_hash import hash_string
from save_parsing.errors import SaveDataError
from save_parsing.file_reader import read_save_file
from save_parsing.flea_fields import FleaField, extract_flea_fields, update_flea_fields
from save_parsing.save_codec import HollowKnightCodec, SaveFormat

from .history import HistoryStore

log = logging.getLogger(__name__)


class SaveDecodeError(Exception):
    """The uploaded file could not be turned into a JSON save."""

    def __init__(self, message: str = "The file could not be decrypted."):
        super().__init__(message)


class InvalidJsonError(Exception):
    """The edited text is not valid JSON and cannot be exported."""

    def __init__(self, message: str = "Could not parse valid JSON, reset or fix."):
        super().__init__(message)


class NoSaveLoadedError(Exception):
    """An edit or export was requested before any save was opened."""
    pass


def pretty_json(text: str) -> str:
    """Reformat a JSON document with 2-space indentation."""
    return json.dumps(json.loads(text), indent=2, ensure_ascii=False)


def compact_json(text: str) -> str:
    """Reformat a JSON document without whitespace, as the game writes it."""
    return json.dumps(json.loads(text), separators=(",", ":"), ensure_ascii=False)


class SaveEditor:
    """One editing session backed by a shared history store."""

    def __init__(self, history: HistoryStore, codec: Optional[HollowKnightCodec] = None):
        self.history = history
        self.codec = codec or HollowKnightCodec()
        self.file_name: Optional[str] = None
        self.game_file = ""
        self.game_file_original = ""
        self.flea_fields: List[FleaField] = []

    @property
    def editing(self) -> bool:
        return self.file_name is not None

    def open_file(self, file_bytes: bytes, file_name: str, save_format: SaveFormat = SaveFormat.PC) -> str:
        """Decode an uploaded save and make it the current document.

        Raises:
            SaveDecodeError: If any decoding stage fails or the result is not JSON
        """
        try:
            decrypted = self.codec.decode_as(file_bytes, save_format)
            json_string = pretty_json(decrypted)
        except (SaveDataError, ValueError, RecursionError) as e:
            log.warning(f"Could not decrypt {file_name}: {e}")
            raise SaveDecodeError() from e

        self.set_game_file(json_string, file_name)
        return json_string

    async def open_path(self, path: Union[str, Path], save_format: SaveFormat = SaveFormat.PC) -> str:
        """Read a save from disk and open it."""
        try:
            file_bytes = await read_save_file(path)
        except SaveDataError as e:
            log.warning(f"Could not read {path}: {e}")
            raise SaveDecodeError() from e
        return self.open_file(file_bytes, Path(path).name, save_format)

    def set_game_file(self, json_string: str, file_name: str) -> None:
        """Load ``json_string`` into the editor and record it in the history."""
        self.file_name = file_name
        self.game_file = json_string
        self.game_file_original = json_string
        self.flea_fields = extract_flea_fields(json_string)

        self.history.add(json_string, file_name, hash_string(json_string))
        self.history.sync_to_storage()
        log.info(f"Opened {file_name} ({len(json_string)} characters)")

    def select_history(self, hash_value: int) -> bool:
        """Reopen a history entry; returns False if it is gone."""
        entry = self.history.get(hash_value)
        if entry is None:
            return False
        self.set_game_file(entry.json_string, entry.file_name)
        return True

    def _require_loaded(self) -> None:
        if not self.editing:
            raise NoSaveLoadedError("No save file is open")

    def update_text(self, text: str) -> None:
        """Replace the current document with hand-edited text."""
        self._require_loaded()
        self.game_file = text
        self.flea_fields = extract_flea_fields(text)

    def set_flea_field(self, key: str, value: str) -> None:
        """Change one flea flag and rewrite the current document."""
        self._require_loaded()
        self.flea_fields = [
            FleaField(field.key, value) if field.key == key else field
            for field in self.flea_fields
        ]
        self.game_file = update_flea_fields(self.flea_fields, self.game_file)

    def reset(self) -> None:
        """Discard edits and go back to the text as it was opened."""
        self._require_loaded()
        self.game_file = self.game_file_original
        self.flea_fields = extract_flea_fields(self.game_file_original)

    def export(self, save_format: SaveFormat = SaveFormat.PC) -> bytes:
        """Serialize the current document into save file bytes.

        Raises:
            InvalidJsonError: If the current text is not valid JSON
        """
        self._require_loaded()
        try:
            json_string = compact_json(self.game_file)
        except (ValueError, RecursionError) as e:
            log.warning(f"Export of {self.file_name} rejected: {e}")
            raise InvalidJsonError() from e
        return self.codec.encode_as(json_string, save_format)
