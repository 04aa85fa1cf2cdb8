"""Configuration management for wallet storage."""

import logging
import os
from pathlib import Path
from typing import Any

import msgspec
import yaml

from walletstore.core.models import StorageOptions
from walletstore.storage.backends import create_backend
from walletstore.storage.encryption import KEY_LENGTH, check_key
from walletstore.storage.manager import StorageManagerHandle, open_storage_manager

logger = logging.getLogger(__name__)


class Config:
    """Configuration loading for wallet storage."""

    @staticmethod
    def from_file(path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")
        except OSError as e:
            raise ValueError(f"Error reading config file: {e}")

    @staticmethod
    def get_config_paths() -> list[Path]:
        """Get the default configuration file paths to check."""
        paths = []

        # User config
        xdg_config_home = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        )
        paths.append(xdg_config_home / "walletstore" / "config.yaml")

        # Project config
        paths.append(Path(".walletstore.yaml"))
        paths.append(Path("walletstore.yaml"))

        return paths

    @staticmethod
    def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
        """Merge multiple configuration dictionaries."""
        result = {}
        for config in configs:
            result = _deep_merge(result, config)
        return result


def get_config_paths() -> list[Path]:
    """Get configuration paths in precedence order."""
    return Config.get_config_paths()


def load_config(paths: list[Path] | None = None) -> dict[str, Any]:
    """Load configuration from files and environment variables."""
    config = {}

    # Later paths win for conflicting keys
    for path in paths if paths is not None else get_config_paths():
        if path.exists():
            try:
                file_config = Config.from_file(path)
                config = Config.merge_configs(config, file_config)
            except ValueError as e:
                logger.warning(f"Skipping config file {path}: {e}")

    env_overrides: dict[str, Any] = {}
    if backend := os.environ.get("WALLETSTORE_BACKEND"):
        env_overrides["backend"] = backend
    if store_path := os.environ.get("WALLETSTORE_PATH"):
        env_overrides["path"] = store_path
    if key_file := os.environ.get("WALLETSTORE_KEY_FILE"):
        env_overrides["key_file"] = key_file

    return Config.merge_configs(config, {"storage": env_overrides})


def load_storage_options(paths: list[Path] | None = None) -> StorageOptions:
    """Build StorageOptions from the ``storage`` section of the configuration."""
    section = load_config(paths).get("storage") or {}
    try:
        return msgspec.convert(section, StorageOptions)
    except msgspec.ValidationError as e:
        raise ValueError(f"Invalid storage configuration: {e}") from e


def read_key_file(path: Path | str) -> bytes:
    """Read a raw 32-byte encryption key, or its 64-character hex form."""
    raw = Path(path).expanduser().read_bytes()
    text = raw.strip()
    if len(raw) != KEY_LENGTH and len(text) == 2 * KEY_LENGTH:
        try:
            raw = bytes.fromhex(text.decode("ascii"))
        except (UnicodeDecodeError, ValueError) as e:
            raise ValueError(f"Invalid hex encryption key in {path}") from e
    return check_key(raw)


async def open_from_config(options: StorageOptions | None = None) -> StorageManagerHandle:
    """Open the storage manager described by options.

    Args:
        options: Storage options; loaded from configuration when omitted

    Returns:
        Shared handle to the opened manager
    """
    if options is None:
        options = load_storage_options()

    encryption_key = read_key_file(options.key_file) if options.key_file else None
    backend = create_backend(options.backend, options.path)
    logger.debug(
        f"Opening {backend!r} (encrypted={encryption_key is not None})"
    )
    try:
        return await open_storage_manager(backend, encryption_key)
    except BaseException:
        backend.close()
        raise


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
