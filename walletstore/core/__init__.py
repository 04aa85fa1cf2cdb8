"""Wallet data models."""

from .models import (
    Account,
    AccountIndex,
    AccountManagerBuilder,
    Address,
    BackendKind,
    StorageOptions,
)

__all__ = [
    "Account",
    "AccountIndex",
    "AccountManagerBuilder",
    "Address",
    "BackendKind",
    "StorageOptions",
]
