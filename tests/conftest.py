"""Pytest configuration and fixtures."""

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Isolate environment variables for each test.

    Storage options can be overridden from the environment, so one test's
    variables must not leak into another.
    """
    original_env = os.environ.copy()
    for name in ("WALLETSTORE_BACKEND", "WALLETSTORE_PATH", "WALLETSTORE_KEY_FILE"):
        monkeypatch.delenv(name, raising=False)

    yield

    os.environ.clear()
    os.environ.update(original_env)
