"""Log-structured storage backend.

Every commit is appended to a log file as one JSON line holding the puts and
deletes of that commit, then fsynced. A commit that fails is cut back out
of the log before the error reaches the caller. Opening the store replays
the log into an in-memory index. A trailing line without its newline is a
torn write from an interrupted commit and is discarded. Once the log grows
past the compaction threshold it is rewritten with only the live records.
"""

import fcntl
import logging
import os
import tempfile
import threading
from collections.abc import Mapping
from pathlib import Path

import msgspec

from walletstore.storage.exceptions import RecordNotFoundError, StorageError

from .base import BaseBackend

logger = logging.getLogger(__name__)


class LogCommit(msgspec.Struct, omit_defaults=True):
    """One atomic unit in the log."""

    puts: dict[str, str] = {}
    deletes: list[str] = []


class LogStructuredBackend(BaseBackend):
    """Append-only log with an in-memory index and compaction."""

    STORAGE_ID = "LogStructured"

    def __init__(self, log_path: Path, compaction_threshold: int = 1024 * 1024):
        self.log_path = Path(log_path)
        self.lock_path = self.log_path.with_name(f"{self.log_path.name}.lock")
        self.compaction_threshold = compaction_threshold
        self._index: dict[str, str] = {}
        self._lock = threading.RLock()
        self._encoder = msgspec.json.Encoder()
        self._decoder = msgspec.json.Decoder(LogCommit)
        self._lock_file = None
        self._log = None
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._acquire_process_lock()
            self._replay()
            self._log = self._open_log()
        except StorageError:
            self._release_process_lock()
            raise
        except OSError as e:
            self._release_process_lock()
            raise StorageError(str(e)) from e

    def _acquire_process_lock(self) -> None:
        """Hold an exclusive lock file for as long as the store is open."""
        self._lock_file = open(self.lock_path, "a")
        try:
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            self._lock_file.close()
            self._lock_file = None
            raise StorageError(f"Log store is locked by another process: {self.log_path}")

    def _release_process_lock(self) -> None:
        if self._lock_file is not None:
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
            self._lock_file.close()
            self._lock_file = None

    def _replay(self) -> None:
        """Rebuild the index from the log file."""
        if not self.log_path.exists():
            return

        data = self.log_path.read_bytes()
        offset = 0
        line_no = 0
        while offset < len(data):
            end = data.find(b"\n", offset)
            if end == -1:
                logger.warning(
                    f"Discarding torn commit at end of {self.log_path} "
                    f"({len(data) - offset} bytes)"
                )
                break

            line_no += 1
            line = data[offset:end]
            offset = end + 1
            if not line.strip():
                continue
            try:
                commit = self._decoder.decode(line)
            except msgspec.DecodeError as e:
                raise StorageError(
                    f"Corrupt commit on line {line_no} of {self.log_path}: {e}"
                ) from e
            self._apply(commit)

        valid_length = offset
        if valid_length < len(data):
            with open(self.log_path, "r+b") as f:
                f.truncate(valid_length)

    def _apply(self, commit: LogCommit) -> None:
        self._index.update(commit.puts)
        for key in commit.deletes:
            self._index.pop(key, None)

    def _open_log(self):
        # Unbuffered, so a failed commit leaves no bytes behind in a buffer
        return open(self.log_path, "ab", buffering=0)

    def _log_size(self) -> int:
        return os.fstat(self._log.fileno()).st_size

    def _append(self, commit: LogCommit) -> None:
        """Write one commit durably, then make it visible.

        A commit that fails to reach the disk is cut from the log again, so
        it cannot reappear on the next replay.
        """
        with self._lock:
            if self._log is None:
                raise StorageError("Log store is closed")

            data = self._encoder.encode(commit) + b"\n"
            try:
                start = self._log_size()
            except OSError as e:
                raise StorageError(str(e)) from e

            try:
                line = memoryview(data)
                while line:
                    line = line[self._log.write(line):]
                os.fsync(self._log.fileno())
            except OSError as e:
                self._truncate(start, e)
                raise StorageError(str(e)) from e

            self._apply(commit)

            if start + len(data) > self.compaction_threshold:
                try:
                    self.compact()
                except StorageError as e:
                    # The commit itself is durable; compaction retries on the next one.
                    logger.warning(f"Deferred compaction of {self.log_path}: {e}")

    def _truncate(self, offset: int, cause: OSError) -> None:
        """Cut the log back to offset after a failed append.

        The next successful commit's fsync also makes the shorter length
        durable. If the cut itself fails the log can no longer be trusted and
        the store is closed for writing.
        """
        try:
            os.ftruncate(self._log.fileno(), offset)
        except OSError as e:
            logger.error(f"Could not roll back failed commit in {self.log_path}: {e}")
            self._log.close()
            self._log = None
            raise StorageError(
                f"Commit failed and could not be rolled back: {cause}"
            ) from e

    def get(self, key: str) -> str:
        """Read a record from the index."""
        with self._lock:
            try:
                return self._index[key]
            except KeyError:
                raise RecordNotFoundError(key) from None

    def set(self, key: str, value: str) -> None:
        """Append a single put."""
        self._append(LogCommit(puts=self._check_records({key: value})))

    def batch_set(self, records: Mapping[str, str]) -> None:
        """Append all records as one commit line."""
        staged = self._check_records(records)
        if staged:
            self._append(LogCommit(puts=staged))

    def remove(self, key: str) -> None:
        """Append a delete if the key is live."""
        with self._lock:
            if key in self._index:
                self._append(LogCommit(deletes=[key]))

    def keys(self) -> list[str]:
        """Get all live keys."""
        with self._lock:
            return list(self._index.keys())

    def compact(self) -> None:
        """Rewrite the log so it holds only live records."""
        with self._lock:
            if self._log is None:
                raise StorageError("Log store is closed")

            before = self._log_size()
            temp_path = None
            try:
                temp_fd, temp_path = tempfile.mkstemp(
                    dir=self.log_path.parent, suffix=".tmp"
                )
                with open(temp_fd, "wb") as f:
                    if self._index:
                        f.write(self._encoder.encode(LogCommit(puts=self._index)) + b"\n")
                    f.flush()
                    os.fsync(f.fileno())

                self._log.close()
                Path(temp_path).replace(self.log_path)
            except OSError as e:
                if temp_path is not None:
                    Path(temp_path).unlink(missing_ok=True)
                raise StorageError(f"Compaction failed: {e}") from e
            finally:
                if self._log.closed:
                    self._log = self._open_log()

            logger.info(
                f"Compacted {self.log_path}: {before} -> {self._log_size()} bytes"
            )

    def close(self) -> None:
        """Close the log and release the process lock."""
        with self._lock:
            if self._log is not None:
                self._log.close()
                self._log = None
            self._release_process_lock()

    def __repr__(self) -> str:
        return f"LogStructuredBackend({str(self.log_path)!r})"
