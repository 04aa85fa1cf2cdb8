"""File system storage backend."""

import fcntl
import os
import tempfile
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path

import msgspec

from walletstore.storage.exceptions import RecordNotFoundError, StorageError

from .base import BaseBackend

_records_decoder = msgspec.json.Decoder(dict[str, str])


class FileSystemBackend(BaseBackend):
    """Records kept in one JSON document that is replaced atomically.

    Every commit takes an exclusive lock on a sibling lock file, re-reads the
    document from disk, applies its changes and renames a freshly written
    temporary file over the old one. Several instances, in this process or
    others, may share a directory: each commit merges into the latest
    document, and a reader never sees a half written store.
    """

    STORAGE_ID = "FileSystem"

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.store_file = self.data_dir / "store.json"
        self.lock_file = self.data_dir / "store.lock"
        self._records: dict[str, str] = {}
        self._lock = threading.RLock()
        self.initialize()

    def initialize(self) -> None:
        """Create the directory and load the current document."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            self._load()
        except OSError as e:
            raise StorageError(str(e)) from e

    def _load(self) -> None:
        with open(self.lock_file, "a") as lock:
            fcntl.flock(lock.fileno(), fcntl.LOCK_SH)
            try:
                self._records = self._read_document()
            finally:
                fcntl.flock(lock.fileno(), fcntl.LOCK_UN)

    def _read_document(self) -> dict[str, str]:
        try:
            data = self.store_file.read_bytes()
        except FileNotFoundError:
            return {}

        try:
            return _records_decoder.decode(data)
        except msgspec.DecodeError as e:
            raise StorageError(f"Corrupt store file {self.store_file}: {e}") from e

    def _write_document(self, records: dict[str, str]) -> None:
        temp_fd, temp_path = tempfile.mkstemp(dir=self.data_dir, suffix=".tmp")
        try:
            with open(temp_fd, "wb") as f:
                f.write(msgspec.json.encode(records))
                f.flush()
                os.fsync(f.fileno())

            Path(temp_path).replace(self.store_file)
        except BaseException:
            Path(temp_path).unlink(missing_ok=True)
            raise

    def _commit(self, puts: Mapping[str, str], deletes: Iterable[str] = ()) -> None:
        """Apply puts and deletes to the on-disk document as one replacement.

        Nothing is written when the changes leave the document as it is. The
        in-memory view is refreshed from the merged document either way.
        """
        try:
            with open(self.lock_file, "a") as lock:
                fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
                try:
                    current = self._read_document()
                    records = {**current, **puts}
                    for key in deletes:
                        records.pop(key, None)
                    if records != current:
                        self._write_document(records)
                finally:
                    fcntl.flock(lock.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            raise StorageError(str(e)) from e

        self._records = records

    def get(self, key: str) -> str:
        """Read data by key."""
        with self._lock:
            try:
                return self._records[key]
            except KeyError:
                raise RecordNotFoundError(key) from None

    def set(self, key: str, value: str) -> None:
        """Write data with key."""
        self.batch_set({key: value})

    def batch_set(self, records: Mapping[str, str]) -> None:
        """Write all records in one document replacement."""
        staged = self._check_records(records)
        with self._lock:
            self._commit(staged)

    def remove(self, key: str) -> None:
        """Delete data by key."""
        with self._lock:
            self._commit({}, [key])

    def keys(self) -> list[str]:
        """Get all keys."""
        with self._lock:
            return list(self._records.keys())

    def reload(self) -> None:
        """Re-read the document from disk."""
        with self._lock:
            try:
                self._load()
            except OSError as e:
                raise StorageError(str(e)) from e

    def close(self) -> None:
        """No resources to close for filesystem backend."""
        pass

    def __repr__(self) -> str:
        return f"FileSystemBackend({str(self.data_dir)!r})"
