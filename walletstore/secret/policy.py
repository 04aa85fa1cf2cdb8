"""Which secret manager snapshots may be written to storage."""

from enum import Enum

from .dto import LedgerNanoDto, MnemonicDto, PlaceholderDto, SecretManagerDto, StrongholdDto


class SnapshotPolicy(Enum):
    """Persistence decision for a snapshot variant."""

    PERSIST = "persist"
    NEVER_PERSIST = "never_persist"


# A seed derived from a mnemonic cannot be rebuilt from its snapshot.
SNAPSHOT_POLICIES: dict[type, SnapshotPolicy] = {
    MnemonicDto: SnapshotPolicy.NEVER_PERSIST,
    StrongholdDto: SnapshotPolicy.PERSIST,
    LedgerNanoDto: SnapshotPolicy.PERSIST,
    PlaceholderDto: SnapshotPolicy.PERSIST,
}


def policy_for(dto: SecretManagerDto) -> SnapshotPolicy:
    """Look up the policy for a snapshot.

    Raises:
        KeyError: If the variant has no registered policy
    """
    try:
        return SNAPSHOT_POLICIES[type(dto)]
    except KeyError:
        raise KeyError(
            f"No snapshot policy registered for {type(dto).__name__}"
        ) from None


def should_persist(dto: SecretManagerDto) -> bool:
    """Check whether a snapshot may be stored."""
    return policy_for(dto) is SnapshotPolicy.PERSIST
