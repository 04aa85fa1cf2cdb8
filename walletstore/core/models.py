"""Wallet records persisted by the storage manager.

Uses msgspec.Struct for fast JSON encoding and decoding with validation.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

import msgspec

AccountIndex = Annotated[int, msgspec.Meta(ge=0, le=2**32 - 1)]

DEFAULT_COIN_TYPE = 4218  # SLIP-44


class BackendKind(str, Enum):
    """Storage engines a wallet can be opened on."""

    SQLITE = "sqlite"
    LOG = "log"
    MEMORY = "memory"
    FILESYSTEM = "filesystem"


class Address(msgspec.Struct, frozen=True, kw_only=True):
    """A derived address of an account."""

    address: str
    key_index: int
    internal: bool = False
    used: bool = False


class Account(msgspec.Struct, kw_only=True):
    """An account record.

    The storage layer only relies on ``index``; the remaining fields are the
    account's own state and are stored as-is.
    """

    index: AccountIndex
    coin_type: int = DEFAULT_COIN_TYPE
    alias: str = ""
    public_addresses: list[Address] = msgspec.field(default_factory=list)
    internal_addresses: list[Address] = msgspec.field(default_factory=list)
    pending_transactions: list[str] = msgspec.field(default_factory=list)
    incoming_transactions: dict[str, Any] = msgspec.field(default_factory=dict)


class StorageOptions(msgspec.Struct, kw_only=True):
    """Where and how the wallet is stored."""

    backend: BackendKind = BackendKind.SQLITE
    path: str | None = "walletdb"
    key_file: str | None = None


class AccountManagerBuilder(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Wallet-level configuration.

    ``secret_manager`` holds a live secret manager. It is never encoded with
    the builder; its snapshot is stored on its own, subject to the snapshot
    policy.
    """

    storage_options: StorageOptions | None = None
    client_options: dict[str, Any] | None = None
    coin_type: int | None = None
    secret_manager: Any = None

    def with_storage_options(self, options: StorageOptions) -> AccountManagerBuilder:
        return msgspec.structs.replace(self, storage_options=options)

    def with_client_options(self, options: dict[str, Any]) -> AccountManagerBuilder:
        return msgspec.structs.replace(self, client_options=options)

    def with_coin_type(self, coin_type: int) -> AccountManagerBuilder:
        return msgspec.structs.replace(self, coin_type=coin_type)

    def with_secret_manager(self, secret_manager: Any) -> AccountManagerBuilder:
        return msgspec.structs.replace(self, secret_manager=secret_manager)

    def without_secret_manager(self) -> AccountManagerBuilder:
        """Copy of the builder that is safe to encode."""
        return msgspec.structs.replace(self, secret_manager=None)
