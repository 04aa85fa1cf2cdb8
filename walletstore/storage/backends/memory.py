"""In-memory storage backend."""

import threading
from collections.abc import Mapping

from walletstore.storage.exceptions import RecordNotFoundError

from .base import BaseBackend


class MemoryBackend(BaseBackend):
    """Storage backed by a dict, lost when the process exits."""

    STORAGE_ID = "Memory"

    def __init__(self):
        self._data: dict[str, str] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> str:
        """Read data by key."""
        with self._lock:
            try:
                return self._data[key]
            except KeyError:
                raise RecordNotFoundError(key) from None

    def set(self, key: str, value: str) -> None:
        """Write data with key."""
        self._check_records({key: value})
        with self._lock:
            self._data[key] = value

    def batch_set(self, records: Mapping[str, str]) -> None:
        """Write all records under a single lock acquisition."""
        staged = self._check_records(records)
        with self._lock:
            self._data.update(staged)

    def remove(self, key: str) -> None:
        """Delete data by key."""
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        """Get all keys."""
        with self._lock:
            return list(self._data.keys())

    def close(self) -> None:
        """Close backend (no-op for memory)."""
        pass

    def get_size(self) -> int:
        """Get the number of stored records."""
        with self._lock:
            return len(self._data)
