"""Storage manager: schema gate, account registry and secret manager policy.

The manager is the only component that touches the reserved keys. It is
opened once per wallet session through ``open_storage_manager`` and shared as
a ``StorageManagerHandle``, whose lock lets one manager operation run at a
time.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from walletstore.core.models import Account, AccountIndex, AccountManagerBuilder
from walletstore.secret import SecretManagerDto, from_dto, should_persist, to_dto

from .backends.base import BaseBackend
from .constants import (
    ACCOUNT_MANAGER_INDEXATION_KEY,
    ACCOUNTS_INDEXATION_KEY,
    DATABASE_SCHEMA_VERSION,
    DATABASE_SCHEMA_VERSION_KEY,
    MAX_SCHEMA_VERSION,
    SECRET_MANAGER_KEY,
    account_key,
)
from .exceptions import (
    InconsistentRegistryError,
    RecordNotFoundError,
    SerializationError,
    UnsupportedSchemaVersionError,
)
from .storage import Storage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageManager:
    """Orchestrates wallet records on top of an encrypting storage."""

    def __init__(self, storage: Storage):
        self.storage = storage
        # None until first loaded; a loaded registry may be empty.
        self._account_indexes: list[int] | None = None

    @classmethod
    async def open(
        cls, storage: Storage, schema_version: int = DATABASE_SCHEMA_VERSION
    ) -> StorageManager:
        """Check the persisted schema version and return a manager.

        A store without a version record is initialized with schema_version.

        Raises:
            ValueError: If schema_version is outside 0..255
            UnsupportedSchemaVersionError: If the stored version differs
        """
        if not 0 <= schema_version <= MAX_SCHEMA_VERSION:
            raise ValueError(
                f"Schema version must be in 0..{MAX_SCHEMA_VERSION}, got {schema_version}"
            )

        try:
            found = await storage.get(DATABASE_SCHEMA_VERSION_KEY)
        except RecordNotFoundError:
            logger.info(
                f"Initializing {storage.id()} store with schema version {schema_version}"
            )
            await storage.set(DATABASE_SCHEMA_VERSION_KEY, schema_version)
        except SerializationError as e:
            raise UnsupportedSchemaVersionError(e.detail, schema_version) from e
        else:
            if type(found) is not int or found != schema_version:
                logger.error(
                    f"Refusing to open {storage.id()} store: schema version "
                    f"{found!r}, expected {schema_version}"
                )
                raise UnsupportedSchemaVersionError(found, schema_version)

        return cls(storage)

    def id(self) -> str:
        return self.storage.id()

    @property
    def is_encrypted(self) -> bool:
        return self.storage.is_encrypted

    async def get(self, key: str, record_type: type[T] = Any) -> T:
        """Read any record through the encrypting storage."""
        return await self.storage.get(key, record_type)

    async def close(self) -> None:
        """Release the backend."""
        await self.storage.close()

    # Account manager data

    async def save_account_manager_data(self, builder: AccountManagerBuilder) -> None:
        """Store wallet configuration and, if allowed, the secret manager snapshot.

        Mnemonic-derived managers are never stored; the seed cannot be rebuilt
        from a snapshot. Attaching one drops the snapshot of the manager it
        replaces. A builder without a secret manager leaves any stored
        snapshot untouched.
        """
        logger.debug("save_account_manager_data")

        record = builder.without_secret_manager()
        if builder.secret_manager is None:
            await self.storage.set(ACCOUNT_MANAGER_INDEXATION_KEY, record)
            return

        dto = to_dto(builder.secret_manager)
        if should_persist(dto):
            await self.storage.batch_set(
                {ACCOUNT_MANAGER_INDEXATION_KEY: record, SECRET_MANAGER_KEY: dto}
            )
        else:
            await self.storage.set(ACCOUNT_MANAGER_INDEXATION_KEY, record)
            await self.storage.remove(SECRET_MANAGER_KEY)

    async def get_account_manager_data(self) -> AccountManagerBuilder | None:
        """Load wallet configuration with its secret manager, if restorable."""
        logger.debug("get_account_manager_data")
        try:
            builder = await self.storage.get(
                ACCOUNT_MANAGER_INDEXATION_KEY, AccountManagerBuilder
            )
        except RecordNotFoundError:
            return None

        logger.debug(f"get_account_manager_data {builder!r}")

        try:
            dto = await self.storage.get(SECRET_MANAGER_KEY, SecretManagerDto)
        except RecordNotFoundError:
            return builder

        logger.debug(f"get_secret_manager {type(dto).__name__}")
        if should_persist(dto):
            builder = builder.with_secret_manager(from_dto(dto))
        return builder

    # Accounts

    async def _load_account_indexes(self) -> list[int]:
        if self._account_indexes is None:
            try:
                self._account_indexes = await self.storage.get(
                    ACCOUNTS_INDEXATION_KEY, list[AccountIndex]
                )
            except RecordNotFoundError:
                self._account_indexes = []
        return self._account_indexes

    async def get_account_indexes(self) -> list[int]:
        """Registered account indexes, in registration order."""
        return list(await self._load_account_indexes())

    async def get_account(self, index: int) -> Account:
        """Load one account record.

        Raises:
            RecordNotFoundError: If no record exists for index
        """
        return await self.storage.get(account_key(index), Account)

    async def get_accounts(self) -> list[Account]:
        """Load every registered account.

        Raises:
            InconsistentRegistryError: If a registered index has no record
        """
        accounts = []
        for index in await self._load_account_indexes():
            try:
                accounts.append(await self.get_account(index))
            except RecordNotFoundError:
                raise InconsistentRegistryError(index) from None
        return accounts

    async def save_account(self, account: Account) -> None:
        """Insert or replace an account and register its index.

        Registry and record are committed in one batch.
        """
        logger.debug(f"save_account {account.index}")
        indexes = await self._load_account_indexes()
        if account.index not in indexes:
            indexes = [*indexes, account.index]

        await self.storage.batch_set(
            {
                ACCOUNTS_INDEXATION_KEY: indexes,
                account_key(account.index): account,
            }
        )
        self._account_indexes = indexes

    async def remove_account(self, index: int) -> None:
        """Delete an account record, then unregister its index.

        The two writes are not atomic: if persisting the registry fails, the
        registry still names the deleted record.
        """
        logger.debug(f"remove_account {index}")
        indexes = await self._load_account_indexes()
        await self.storage.remove(account_key(index))
        self._account_indexes = [i for i in indexes if i != index]
        await self.storage.set(ACCOUNTS_INDEXATION_KEY, self._account_indexes)

    def __repr__(self) -> str:
        return f"StorageManager(storage={self.storage!r})"


class StorageManagerHandle:
    """Shared handle that serializes access to a storage manager."""

    def __init__(self, manager: StorageManager):
        self._manager = manager
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[StorageManager]:
        """Hold the manager for the duration of the block.

        Example:
            async with handle.acquire() as manager:
                await manager.save_account(account)
        """
        async with self._lock:
            yield self._manager

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    async def close(self) -> None:
        async with self.acquire() as manager:
            await manager.close()


async def open_storage_manager(
    backend: BaseBackend,
    encryption_key: bytes | None = None,
    schema_version: int = DATABASE_SCHEMA_VERSION,
) -> StorageManagerHandle:
    """Wrap backend, run the schema gate and return the shared handle.

    Raises:
        UnsupportedSchemaVersionError: If the store was written by an
            incompatible version
        DecryptionError: If encryption_key does not open the store
    """
    storage = Storage(backend, encryption_key)
    manager = await StorageManager.open(storage, schema_version)
    return StorageManagerHandle(manager)
