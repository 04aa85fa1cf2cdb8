"""Shared fixtures for storage tests."""

import tempfile
from pathlib import Path

import pytest

from walletstore.core.models import Account, Address
from walletstore.storage.backends import MemoryBackend
from walletstore.storage.encryption import generate_key


@pytest.fixture
def temp_dir():
    """Temporary directory for test data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_backend():
    """Fresh in-memory backend."""
    return MemoryBackend()


@pytest.fixture
def encryption_key():
    """Random 32-byte record key."""
    return generate_key()


@pytest.fixture
def sample_account():
    """An account with a couple of addresses."""
    return Account(
        index=3,
        alias="savings",
        public_addresses=[
            Address(address="rms1qpllaj0pyveqfkwxmnngz2c488hfdtmfrj3wfkgxtk4gtyrax0jaxzt70zy", key_index=0),
        ],
        internal_addresses=[
            Address(
                address="rms1qzg4dv2xm5yagnpwhlmlzkaazkr0dbrnq6yglqzrdxtsu08yfhq6q0w2dtd",
                key_index=0,
                internal=True,
            ),
        ],
    )


@pytest.fixture
def sample_accounts():
    """Accounts with distinct indexes, in creation order."""
    return [
        Account(index=0, alias="main"),
        Account(index=1, alias="trading"),
        Account(index=7, alias="cold"),
    ]
