"""Pluggable storage backends.

Provides one interface for every storage engine:

- **SQLiteBackend**: embedded paged B-tree database
- **LogStructuredBackend**: append-only commit log with compaction
- **MemoryBackend**: in-memory map for tests and throwaway wallets
- **FileSystemBackend**: single JSON document with atomic replacement

All backends raise ``RecordNotFoundError`` from ``get`` on a missing key and
commit ``batch_set`` atomically.
"""

from pathlib import Path

from walletstore.core.models import BackendKind

from .base import BaseBackend
from .filesystem import FileSystemBackend
from .log import LogStructuredBackend
from .memory import MemoryBackend
from .sqlite import SQLiteBackend


def create_backend(kind: BackendKind | str, path: Path | str | None = None) -> BaseBackend:
    """Instantiate the backend for kind.

    Args:
        kind: Backend variant, as enum member or its value
        path: Database file, log file or data directory; unused for memory

    Returns:
        An open backend
    """
    kind = BackendKind(kind)

    if kind is BackendKind.MEMORY:
        return MemoryBackend()

    if path is None:
        raise ValueError(f"Backend {kind.value!r} requires a path")
    path = Path(path).expanduser()

    match kind:
        case BackendKind.SQLITE:
            return SQLiteBackend(path)
        case BackendKind.LOG:
            return LogStructuredBackend(path)
        case BackendKind.FILESYSTEM:
            return FileSystemBackend(path)


__all__ = [
    "BackendKind",
    "BaseBackend",
    "FileSystemBackend",
    "LogStructuredBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "create_backend",
]
