"""Live secret managers and conversion to and from their snapshots."""

from __future__ import annotations

import unicodedata
from abc import ABC, abstractmethod
from pathlib import Path

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .dto import LedgerNanoDto, MnemonicDto, PlaceholderDto, SecretManagerDto, StrongholdDto

SEED_LENGTH = 64
SEED_ITERATIONS = 2048


def mnemonic_to_seed(mnemonic: str, passphrase: str = "") -> bytes:
    """Derive a BIP-39 seed from a mnemonic phrase."""
    words = " ".join(unicodedata.normalize("NFKD", mnemonic).split())
    if not words:
        raise ValueError("Mnemonic must not be empty")

    salt = unicodedata.normalize("NFKD", "mnemonic" + passphrase)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=SEED_LENGTH,
        salt=salt.encode("utf-8"),
        iterations=SEED_ITERATIONS,
    )
    return kdf.derive(words.encode("utf-8"))


class SecretManager(ABC):
    """Base class for secret managers."""

    @abstractmethod
    def to_dto(self) -> SecretManagerDto:
        """Snapshot describing how to rebuild this manager."""
        pass


class MnemonicSecretManager(SecretManager):
    """Holds a seed derived from a mnemonic in memory only."""

    def __init__(self, mnemonic: str, passphrase: str = ""):
        self._seed = mnemonic_to_seed(mnemonic, passphrase)

    @property
    def seed(self) -> bytes:
        return self._seed

    def to_dto(self) -> MnemonicDto:
        return MnemonicDto()

    def __repr__(self) -> str:
        return "MnemonicSecretManager(<seed hidden>)"


class StrongholdSecretManager(SecretManager):
    """Secrets kept in an encrypted stronghold snapshot file."""

    def __init__(self, snapshot_path: Path | str, timeout: int | None = None):
        self.snapshot_path = Path(snapshot_path)
        self.timeout = timeout

    def to_dto(self) -> StrongholdDto:
        return StrongholdDto(snapshot_path=str(self.snapshot_path), timeout=self.timeout)

    def __repr__(self) -> str:
        return f"StrongholdSecretManager({str(self.snapshot_path)!r})"


class LedgerNanoSecretManager(SecretManager):
    """Secrets kept on a Ledger Nano device."""

    def __init__(self, is_simulator: bool = False):
        self.is_simulator = is_simulator

    def to_dto(self) -> LedgerNanoDto:
        return LedgerNanoDto(is_simulator=self.is_simulator)

    def __repr__(self) -> str:
        return f"LedgerNanoSecretManager(is_simulator={self.is_simulator})"


class PlaceholderSecretManager(SecretManager):
    """Stands in for a manager in watch-only wallets."""

    def to_dto(self) -> PlaceholderDto:
        return PlaceholderDto()

    def __repr__(self) -> str:
        return "PlaceholderSecretManager()"


def to_dto(manager: SecretManager) -> SecretManagerDto:
    """Take the snapshot of a live manager."""
    return manager.to_dto()


def from_dto(dto: SecretManagerDto) -> SecretManager:
    """Rebuild a live manager from its snapshot.

    Raises:
        ValueError: For mnemonic snapshots, which carry no seed
    """
    match dto:
        case StrongholdDto(snapshot_path=path, timeout=timeout):
            return StrongholdSecretManager(path, timeout)
        case LedgerNanoDto(is_simulator=is_simulator):
            return LedgerNanoSecretManager(is_simulator)
        case PlaceholderDto():
            return PlaceholderSecretManager()
        case MnemonicDto():
            raise ValueError("A mnemonic secret manager cannot be restored from a snapshot")
        case _:
            raise TypeError(f"Unknown secret manager snapshot: {dto!r}")
