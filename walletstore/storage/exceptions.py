"""Exception classes for the storage layer."""


class WalletStoreError(Exception):
    """Base exception for wallet storage errors."""

    pass


class RecordNotFoundError(WalletStoreError, KeyError):
    """Raised when a key has no stored record."""

    def __init__(self, key: str):
        """Initialize with the missing key."""
        self.key = key
        super().__init__(f"Record not found: {key}")

    def __str__(self) -> str:
        return self.args[0]


class StorageError(WalletStoreError):
    """Raised when a backend reports a failure."""

    def __init__(self, detail: str):
        """Initialize with the backend's error detail."""
        self.detail = detail
        super().__init__(f"Storage error: {detail}")


class DecryptionError(WalletStoreError):
    """Raised when an encrypted record fails authentication."""

    def __init__(self, key: str):
        """Initialize with the key of the unreadable record."""
        self.key = key
        super().__init__(f"Failed to decrypt record: {key}")


class UnsupportedSchemaVersionError(WalletStoreError):
    """Raised when the persisted schema version does not match."""

    def __init__(self, found: object, expected: int):
        """Initialize with the persisted and expected versions."""
        self.found = found
        self.expected = expected
        super().__init__(
            f"Unsupported database schema version {found!r} (expected {expected})"
        )


class SerializationError(WalletStoreError):
    """Raised when a stored value cannot be decoded into the requested type."""

    def __init__(self, key: str, detail: str):
        """Initialize with key and decoder message."""
        self.key = key
        self.detail = detail
        super().__init__(f"Invalid record for {key}: {detail}")


class InconsistentRegistryError(WalletStoreError):
    """Raised when a registered account index has no stored record."""

    def __init__(self, index: int):
        """Initialize with the dangling account index."""
        self.index = index
        super().__init__(f"Account index {index} is registered but has no record")
