"""Key-value persistence for the connected identity and the account cache.

Signing logic only sees the minimal get/set/remove capability, so the backing
store can be swapped (memory, file, keychain) without touching wallets.
Entries never expire; they are written and cleared explicitly.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract string key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""
        pass


class MemoryStore(KeyValueStore):
    """In-process store (lost on exit)."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data.keys())


class FileStore(KeyValueStore):
    """Store backed by a single JSON document on disk.

    The whole document is rewritten on every change. Keys are arbitrary
    strings (derivation paths contain '/' and "'"), so they are kept as
    JSON object keys rather than file names.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            self._quarantine(f"invalid JSON: {e}")
            return {}
        if not isinstance(data, dict):
            self._quarantine("top-level value is not an object")
            return {}
        return data

    def _quarantine(self, reason: str) -> None:
        """Move an unreadable store to ``<path>.corrupt``."""
        backup = self.path.with_suffix(self.path.suffix + ".corrupt")
        self.path.replace(backup)
        logger.warning(f"Moved unreadable store {self.path} to {backup}: {reason}")

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


def create_store(storage_path: Optional[str] = None) -> KeyValueStore:
    """Create the configured store: a FileStore if a path is given, else memory."""
    if storage_path:
        logger.debug(f"Using file store at {storage_path}")
        return FileStore(storage_path)
    return MemoryStore()
