"""Wallet persistence layer.

Provides encrypted key-value storage for wallet records:

- **Backends**: SQLite, log-structured, memory and filesystem engines behind
  one contract
- **Encryption**: optional ChaCha20-Poly1305 sealing of every stored value
- **Schema gate**: stores written by another schema version refuse to open
- **Account registry**: ordered index of stored accounts
- **Secret managers**: snapshot persistence governed by a policy table

Access is serialized through a shared ``StorageManagerHandle``.
"""

# Backend implementations
from walletstore.storage.backends import (
    BackendKind,
    BaseBackend,
    FileSystemBackend,
    LogStructuredBackend,
    MemoryBackend,
    SQLiteBackend,
    create_backend,
)

# Reserved keys
from walletstore.storage.constants import (
    ACCOUNT_INDEXATION_KEY,
    ACCOUNT_MANAGER_INDEXATION_KEY,
    ACCOUNTS_INDEXATION_KEY,
    DATABASE_SCHEMA_VERSION,
    DATABASE_SCHEMA_VERSION_KEY,
    MAX_SCHEMA_VERSION,
    SECRET_MANAGER_KEY,
    account_key,
)

# Errors
from walletstore.storage.exceptions import (
    DecryptionError,
    InconsistentRegistryError,
    RecordNotFoundError,
    SerializationError,
    StorageError,
    UnsupportedSchemaVersionError,
    WalletStoreError,
)

# Manager
from walletstore.storage.manager import (
    StorageManager,
    StorageManagerHandle,
    open_storage_manager,
)

# Encrypting storage
from walletstore.storage.storage import Storage

__all__ = [
    # Backends
    "BackendKind",
    "BaseBackend",
    "FileSystemBackend",
    "LogStructuredBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "create_backend",
    # Keys
    "ACCOUNT_INDEXATION_KEY",
    "ACCOUNT_MANAGER_INDEXATION_KEY",
    "ACCOUNTS_INDEXATION_KEY",
    "DATABASE_SCHEMA_VERSION",
    "DATABASE_SCHEMA_VERSION_KEY",
    "MAX_SCHEMA_VERSION",
    "SECRET_MANAGER_KEY",
    "account_key",
    # Errors
    "WalletStoreError",
    "RecordNotFoundError",
    "StorageError",
    "DecryptionError",
    "UnsupportedSchemaVersionError",
    "SerializationError",
    "InconsistentRegistryError",
    # Storage
    "Storage",
    "StorageManager",
    "StorageManagerHandle",
    "open_storage_manager",
]
