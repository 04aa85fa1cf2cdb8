"""Tests for storage configuration loading."""

import pytest

from walletstore.config import (
    Config,
    load_config,
    load_storage_options,
    open_from_config,
    read_key_file,
)
from walletstore.core.models import BackendKind, StorageOptions
from walletstore.storage.backends import SQLiteBackend
from walletstore.storage.encryption import generate_key
from walletstore.storage.exceptions import UnsupportedSchemaVersionError


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "walletstore.yaml"
    path.write_text(
        "storage:\n"
        "  backend: log\n"
        "  path: /var/lib/wallet/wallet.log\n"
    )
    return path


class TestLoadConfig:
    """Test YAML loading and environment overrides."""

    def test_reads_yaml_file(self, config_file):
        options = load_storage_options([config_file])

        assert options.backend is BackendKind.LOG
        assert options.path == "/var/lib/wallet/wallet.log"
        assert options.key_file is None

    def test_defaults_without_files(self, tmp_path):
        options = load_storage_options([tmp_path / "missing.yaml"])

        assert options == StorageOptions()
        assert options.backend is BackendKind.SQLITE

    def test_later_files_win(self, tmp_path, config_file):
        override = tmp_path / "override.yaml"
        override.write_text("storage:\n  backend: filesystem\n")

        options = load_storage_options([config_file, override])

        assert options.backend is BackendKind.FILESYSTEM
        assert options.path == "/var/lib/wallet/wallet.log"

    def test_environment_overrides_files(self, config_file, monkeypatch):
        monkeypatch.setenv("WALLETSTORE_BACKEND", "memory")
        monkeypatch.setenv("WALLETSTORE_KEY_FILE", "/keys/wallet.key")

        options = load_storage_options([config_file])

        assert options.backend is BackendKind.MEMORY
        assert options.key_file == "/keys/wallet.key"

    def test_invalid_yaml_is_skipped(self, tmp_path):
        broken = tmp_path / "broken.yaml"
        broken.write_text("storage: [unclosed\n")

        assert load_config([broken]) == {"storage": {}}

    def test_from_file_reports_invalid_yaml(self, tmp_path):
        broken = tmp_path / "broken.yaml"
        broken.write_text("storage: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            Config.from_file(broken)

    def test_invalid_backend_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("storage:\n  backend: rocksdb\n")

        with pytest.raises(ValueError, match="Invalid storage configuration"):
            load_storage_options([path])

    def test_merge_is_deep(self):
        merged = Config.merge_configs(
            {"storage": {"backend": "log", "path": "a"}},
            {"storage": {"path": "b"}},
        )

        assert merged == {"storage": {"backend": "log", "path": "b"}}

    def test_xdg_config_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert Config.get_config_paths()[0] == tmp_path / "walletstore" / "config.yaml"


class TestKeyFile:
    """Test reading encryption keys from disk."""

    def test_raw_key(self, tmp_path):
        key = generate_key()
        path = tmp_path / "raw.key"
        path.write_bytes(key)

        assert read_key_file(path) == key

    def test_hex_key(self, tmp_path):
        key = generate_key()
        path = tmp_path / "hex.key"
        path.write_text(key.hex() + "\n")

        assert read_key_file(path) == key

    def test_wrong_length(self, tmp_path):
        path = tmp_path / "short.key"
        path.write_bytes(b"short")

        with pytest.raises(ValueError):
            read_key_file(path)


class TestOpenFromConfig:
    """Test opening a manager from storage options."""

    @pytest.mark.asyncio
    async def test_opens_memory_store(self):
        handle = await open_from_config(StorageOptions(backend=BackendKind.MEMORY))

        async with handle.acquire() as manager:
            assert manager.id() == "Memory"
            assert not manager.is_encrypted

    @pytest.mark.asyncio
    async def test_opens_encrypted_sqlite_store(self, tmp_path):
        key_path = tmp_path / "wallet.key"
        key_path.write_bytes(generate_key())
        options = StorageOptions(
            backend=BackendKind.SQLITE,
            path=str(tmp_path / "wallet.db"),
            key_file=str(key_path),
        )

        handle = await open_from_config(options)

        async with handle.acquire() as manager:
            assert manager.id() == "SQLite"
            assert manager.is_encrypted
        await handle.close()

    @pytest.mark.asyncio
    async def test_failed_open_closes_backend(self, tmp_path):
        db_path = tmp_path / "wallet.db"
        with SQLiteBackend(db_path) as backend:
            backend.set("database-schema-version", "99")

        with pytest.raises(UnsupportedSchemaVersionError):
            await open_from_config(
                StorageOptions(backend=BackendKind.SQLITE, path=str(db_path))
            )

    @pytest.mark.asyncio
    async def test_loads_options_when_omitted(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("WALLETSTORE_BACKEND", "memory")

        handle = await open_from_config()

        async with handle.acquire() as manager:
            assert manager.id() == "Memory"
