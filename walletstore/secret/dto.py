"""Serializable snapshots of secret manager configurations.

Each variant is a tagged msgspec struct, so a stored snapshot decodes back
into the right variant through ``SecretManagerDto``.
"""

from __future__ import annotations

import msgspec


class MnemonicDto(msgspec.Struct, frozen=True, tag="mnemonic"):
    """Mnemonic-derived manager. Carries no seed and cannot be rehydrated."""


class StrongholdDto(msgspec.Struct, frozen=True, tag="stronghold"):
    """Encrypted snapshot file managed by a stronghold vault."""

    snapshot_path: str
    timeout: int | None = None


class LedgerNanoDto(msgspec.Struct, frozen=True, tag="ledger_nano"):
    """Hardware wallet, optionally the Speculos simulator."""

    is_simulator: bool = False


class PlaceholderDto(msgspec.Struct, frozen=True, tag="placeholder"):
    """Watch-only wallet without signing capability."""


SecretManagerDto = MnemonicDto | StrongholdDto | LedgerNanoDto | PlaceholderDto
