"""Tests for configuration and component wiring."""

import pytest
from pydantic import ValidationError

from myexpenses.config import (
    DEFAULT_STORAGE_KEY,
    StorageSettings,
    SyncSettings,
    get_settings,
    validate_all_settings,
)
from myexpenses.orchestrator import create_expense_manager, create_remote, create_storage
from myexpenses.services.storage import InMemoryStorage, JsonFileStorage
from myexpenses.services.sync import InMemorySyncAdapter


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate each test from the developer's environment and .env file."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "MYEXPENSES_STORAGE_BACKEND",
        "MYEXPENSES_STORAGE_DATA_DIR",
        "MYEXPENSES_STORAGE_STORAGE_KEY",
        "MYEXPENSES_SYNC_BACKEND",
        "MYEXPENSES_SYNC_MAX_QUEUED_SYNCS",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for the settings classes."""

    def test_defaults(self):
        """Test the local-only defaults."""
        storage = StorageSettings()
        assert storage.backend == "file"
        assert storage.storage_key == DEFAULT_STORAGE_KEY
        assert SyncSettings().backend == "none"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Test that prefixed environment variables are read."""
        monkeypatch.setenv("MYEXPENSES_STORAGE_DATA_DIR", str(tmp_path / "data"))
        monkeypatch.setenv("MYEXPENSES_SYNC_MAX_QUEUED_SYNCS", "5")
        assert StorageSettings().data_dir == tmp_path / "data"
        assert SyncSettings().max_queued_syncs == 5

    def test_invalid_queue_size(self, monkeypatch):
        """Test that a zero-sized sync queue is rejected."""
        monkeypatch.setenv("MYEXPENSES_SYNC_MAX_QUEUED_SYNCS", "0")
        with pytest.raises(ValidationError):
            SyncSettings()

    def test_validate_all_settings_local_only(self):
        """Test that Google Sheets settings are not required when unused."""
        results = validate_all_settings()
        assert results["storage"] and results["sync"] and results["app"]
        assert "google_sheets" not in results

    def test_validate_all_settings_reports_missing_sheets_config(self, monkeypatch):
        """Test that selecting Google Sheets without its settings is reported."""
        monkeypatch.setenv("MYEXPENSES_SYNC_BACKEND", "google_sheets")
        results = validate_all_settings()
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results


class TestOrchestrator:
    """Tests for building components from settings."""

    def test_file_storage_by_default(self, monkeypatch, tmp_path):
        """Test that the file backend uses the configured directory."""
        monkeypatch.setenv("MYEXPENSES_STORAGE_DATA_DIR", str(tmp_path))
        storage = create_storage(get_settings())
        assert isinstance(storage, JsonFileStorage)
        assert storage.data_dir == tmp_path

    def test_memory_backends(self, monkeypatch):
        """Test selecting the in-memory storage and remote."""
        monkeypatch.setenv("MYEXPENSES_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("MYEXPENSES_SYNC_BACKEND", "memory")
        settings = get_settings()
        assert isinstance(create_storage(settings), InMemoryStorage)
        assert isinstance(create_remote(settings), InMemorySyncAdapter)

    def test_misconfigured_sheets_disables_sync(self, monkeypatch):
        """Test that a broken Google Sheets setup falls back to local-only."""
        monkeypatch.setenv("MYEXPENSES_SYNC_BACKEND", "google_sheets")
        assert create_remote(get_settings()) is None

    @pytest.mark.asyncio
    async def test_create_expense_manager(self, monkeypatch):
        """Test building and using a manager from settings."""
        monkeypatch.setenv("MYEXPENSES_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("MYEXPENSES_STORAGE_STORAGE_KEY", "custom_key")
        manager = create_expense_manager()
        await manager.initialize()

        assert manager.storage_key == "custom_key"
        assert manager.sync_enabled is False
        await manager.add_expense({"amount": "1.00", "category": "Other"})
        assert len(manager) == 1
