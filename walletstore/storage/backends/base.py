"""Base storage backend interface."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Self


class BaseBackend(ABC):
    """Abstract base class for storage backends.

    Keys and values are text. ``get`` raises ``RecordNotFoundError`` for a
    missing key; ``remove`` of a missing key is a no-op. ``batch_set`` commits
    all of its entries or none of them.
    """

    STORAGE_ID: str = ""

    def id(self) -> str:
        """Get the static backend identifier."""
        return self.STORAGE_ID

    @abstractmethod
    def get(self, key: str) -> str:
        """Read the value stored under key."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Insert or replace the value under key."""
        pass

    @abstractmethod
    def batch_set(self, records: Mapping[str, str]) -> None:
        """Write several records in one atomic commit."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete the record under key."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """Get all keys."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close backend resources."""
        pass

    @staticmethod
    def _check_records(records: Mapping[str, str]) -> dict[str, str]:
        """Copy a batch, rejecting anything that is not text."""
        staged = dict(records)
        for key, value in staged.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise TypeError(f"Records must map str to str, got {key!r}: {value!r}")
        return staged

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
