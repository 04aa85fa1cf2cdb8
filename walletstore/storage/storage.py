"""Encrypting storage over a backend adapter.

Values are JSON encoded with msgspec. With an encryption key every value is
sealed before it reaches the backend and opened after it leaves it; without
one values pass through unchanged.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, TypeVar

import msgspec

from .backends.base import BaseBackend
from .encryption import check_key, decrypt_record, encrypt_record
from .exceptions import SerializationError

T = TypeVar("T")


class Storage:
    """Backend adapter plus an optional record encryption key."""

    def __init__(self, inner: BaseBackend, encryption_key: bytes | None = None):
        self.inner = inner
        self._encryption_key = (
            check_key(encryption_key) if encryption_key is not None else None
        )

    def id(self) -> str:
        """Identifier of the wrapped backend."""
        return self.inner.id()

    @property
    def is_encrypted(self) -> bool:
        return self._encryption_key is not None

    def _seal(self, key: str, value: str) -> str:
        if self._encryption_key is None:
            return value
        return encrypt_record(self._encryption_key, key, value)

    def _open(self, key: str, value: str) -> str:
        if self._encryption_key is None:
            return value
        return decrypt_record(self._encryption_key, key, value)

    async def get_raw(self, key: str) -> str:
        """Read the plaintext text stored under key."""
        value = await asyncio.to_thread(self.inner.get, key)
        return self._open(key, value)

    async def set_raw(self, key: str, value: str) -> None:
        """Store plaintext text under key."""
        await asyncio.to_thread(self.inner.set, key, self._seal(key, value))

    async def get(self, key: str, record_type: type[T] = Any) -> T:
        """Read and decode the record under key.

        Raises:
            RecordNotFoundError: If the key is absent
            DecryptionError: If the record fails authentication
            SerializationError: If the record does not decode into record_type
        """
        text = await self.get_raw(key)
        try:
            return msgspec.json.decode(text, type=record_type)
        except msgspec.DecodeError as e:
            raise SerializationError(key, str(e)) from e

    async def set(self, key: str, record: Any) -> None:
        """Encode record and store it under key."""
        await self.set_raw(key, self._encode(key, record))

    async def batch_set(self, records: Mapping[str, Any]) -> None:
        """Encode and store several records in one atomic commit."""
        sealed = {
            key: self._seal(key, self._encode(key, record))
            for key, record in records.items()
        }
        await asyncio.to_thread(self.inner.batch_set, sealed)

    async def remove(self, key: str) -> None:
        """Delete the record under key."""
        await asyncio.to_thread(self.inner.remove, key)

    async def close(self) -> None:
        """Close the wrapped backend."""
        await asyncio.to_thread(self.inner.close)

    @staticmethod
    def _encode(key: str, record: Any) -> str:
        try:
            return msgspec.json.encode(record).decode("utf-8")
        except (TypeError, msgspec.EncodeError) as e:
            raise SerializationError(key, str(e)) from e

    def __repr__(self) -> str:
        return f"Storage(inner={self.inner!r}, encrypted={self.is_encrypted})"
