"""Secret manager variants and their snapshot persistence policy."""

from .dto import LedgerNanoDto, MnemonicDto, PlaceholderDto, SecretManagerDto, StrongholdDto
from .managers import (
    LedgerNanoSecretManager,
    MnemonicSecretManager,
    PlaceholderSecretManager,
    SecretManager,
    StrongholdSecretManager,
    from_dto,
    mnemonic_to_seed,
    to_dto,
)
from .policy import SNAPSHOT_POLICIES, SnapshotPolicy, policy_for, should_persist

__all__ = [
    # Snapshots
    "SecretManagerDto",
    "MnemonicDto",
    "StrongholdDto",
    "LedgerNanoDto",
    "PlaceholderDto",
    # Managers
    "SecretManager",
    "MnemonicSecretManager",
    "StrongholdSecretManager",
    "LedgerNanoSecretManager",
    "PlaceholderSecretManager",
    "mnemonic_to_seed",
    "to_dto",
    "from_dto",
    # Policy
    "SnapshotPolicy",
    "SNAPSHOT_POLICIES",
    "policy_for",
    "should_persist",
]
