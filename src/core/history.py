"""Recently edited saves, most recent first, persisted as one blob."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .storage import KeyValueStorage, StorageError, StorageFullError

log = logging.getLogger(__name__)

Listener = Callable[[List["HistoryEntry"]], None]


@dataclass(frozen=True)
class HistoryEntry:
    """A save that was opened in the editor."""

    date: datetime
    file_name: str
    json_string: str
    hash: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "fileName": self.file_name,
            "jsonString": self.json_string,
            "hash": self.hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        date = data["date"]
        # Browser records end in "Z", which older fromisoformat rejects
        if isinstance(date, str) and date.endswith("Z"):
            date = date[:-1] + "+00:00"
        return cls(
            date=datetime.fromisoformat(date),
            file_name=str(data["fileName"]),
            json_string=str(data["jsonString"]),
            hash=int(data["hash"]),
        )


class HistoryStore:
    """Ordered, capacity-bounded cache of edited saves.

    Every mutation notifies the subscribed listeners with the new entry list.
    Persisting is explicit through ``sync_to_storage``.
    """

    def __init__(self, storage: KeyValueStorage, key: str = "history"):
        self._storage = storage
        self._key = key
        self._entries: List[HistoryEntry] = []
        self._listeners: List[Listener] = []

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, hash_value: int) -> Optional[HistoryEntry]:
        for entry in self._entries:
            if entry.hash == hash_value:
                return entry
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        entries = self.entries
        for listener in list(self._listeners):
            listener(entries)

    def sync_from_storage(self) -> None:
        """Replace the in-memory list with the persisted one."""
        try:
            raw = self._storage.get(self._key)
            if raw:
                records = json.loads(raw)["history"]
                self._entries = [HistoryEntry.from_dict(record) for record in records]
            else:
                self._entries = []
        except (StorageError, ValueError, KeyError, TypeError) as e:
            log.warning(f"Could not load history, starting empty: {e}")
            self._entries = []
        self._notify()

    def sync_to_storage(self) -> bool:
        """Persist the whole list, evicting the oldest entries until it fits.

        Returns:
            True if the write succeeded
        """
        while True:
            payload = json.dumps({"history": [entry.to_dict() for entry in self._entries]})
            try:
                self._storage.set(self._key, payload)
                return True
            except StorageFullError as e:
                if not self._entries:
                    log.error(f"History does not fit in storage even when empty: {e}")
                    return False
                evicted = self._entries[-1]
                log.info(f"Storage full, evicting history entry {evicted.file_name} ({evicted.hash})")
                self.remove_oldest()
            except StorageError as e:
                log.error(f"Failed to persist history: {e}")
                return False

    def add(self, json_string: str, file_name: str, hash_value: int) -> HistoryEntry:
        """Insert an entry at the head, replacing any entry with the same hash."""
        self._entries = [entry for entry in self._entries if entry.hash != hash_value]
        entry = HistoryEntry(
            date=datetime.now(timezone.utc),
            file_name=file_name,
            json_string=json_string,
            hash=hash_value,
        )
        self._entries.insert(0, entry)
        self._notify()
        return entry

    def remove(self, hash_value: int) -> None:
        self._entries = [entry for entry in self._entries if entry.hash != hash_value]
        self._notify()

    def remove_oldest(self) -> None:
        if self._entries:
            self._entries.pop()
        self._notify()
