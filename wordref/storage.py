"""
Key-value persistence for the entry library and the cited order.

Two backends share the same get/set/remove surface:

- `MemoryStore` keeps values in a dict (tests, throwaway sessions).
- `JsonFileStore` keeps every key in one JSON file on disk, rewritten on
  each change.

`LibraryStore` and `OrderStore` sit on top and own the JSON shape of their
key.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from wordref.models.entry import Entry

logger = logging.getLogger("wordref.storage")

LIBRARY_KEY = "wordref.library"
ORDER_KEY = "wordref.citedOrder"


class KeyValueStore(ABC):
    @abstractmethod
    def get_item(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}

    def get_item(self, key: str) -> Optional[Any]:
        return json.loads(json.dumps(self._data[key])) if key in self._data else None

    def set_item(self, key: str, value: Any) -> None:
        # round-trip through JSON so callers never share mutable state
        self._data[key] = json.loads(json.dumps(value))

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """
    All keys live in a single JSON object at `path`.

    A missing file is an empty store; a file that fails to parse is logged
    and treated as empty rather than aborting the caller.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError:
            logger.exception("Store file %s is not valid JSON; starting empty", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.path)

    def get_item(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set_item(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------

class LibraryStore:
    """
    id -> Entry mapping.
    """

    def __init__(self, store: KeyValueStore, key: str = LIBRARY_KEY) -> None:
        self.store = store
        self.key = key

    def get(self) -> Dict[str, Entry]:
        raw = self.store.get_item(self.key) or {}
        library: Dict[str, Entry] = {}
        for entry_id, data in raw.items():
            try:
                library[entry_id] = Entry.model_validate(data)
            except ValueError:
                logger.warning("Skipping unreadable library entry %r", entry_id)
        return library

    def put(self, library: Dict[str, Entry]) -> None:
        self.store.set_item(
            self.key,
            {entry_id: entry.model_dump() for entry_id, entry in library.items()},
        )

    def upsert(self, entry: Entry) -> None:
        """
        Insert `entry`, or merge it over the stored entry with the same id
        (fields from `entry` win, fields it lacks are kept).
        """
        self.upsert_many([entry])

    def upsert_many(self, entries: Iterable[Entry]) -> None:
        library = self.get()
        for entry in entries:
            existing = library.get(entry.id)
            if existing is not None:
                merged = existing.model_dump()
                incoming = entry.model_dump(exclude_unset=True)
                merged.update({k: v for k, v in incoming.items() if k != "fields"})
                merged["fields"] = {**existing.fields, **entry.fields}
                entry = Entry.model_validate(merged)
            library[entry.id] = entry
        self.put(library)

    def remove(self, entry_id: str) -> bool:
        library = self.get()
        if entry_id not in library:
            return False
        del library[entry_id]
        self.put(library)
        return True

    def clear(self) -> None:
        self.store.remove_item(self.key)


# ---------------------------------------------------------------------------
# Cited order
# ---------------------------------------------------------------------------

class OrderStore:
    """
    First-appearance order of cited ids, each id at most once.
    """

    def __init__(self, store: KeyValueStore, key: str = ORDER_KEY) -> None:
        self.store = store
        self.key = key

    def get(self) -> List[str]:
        return list(self.store.get_item(self.key) or [])

    def put(self, ids: Iterable[str]) -> None:
        seen = set()
        unique = [i for i in ids if not (i in seen or seen.add(i))]
        self.store.set_item(self.key, unique)

    def mark_cited(self, entry_id: str) -> None:
        order = self.get()
        if entry_id not in order:
            order.append(entry_id)
            self.store.set_item(self.key, order)

    def clear(self) -> None:
        self.store.remove_item(self.key)
