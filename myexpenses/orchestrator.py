"""
Component Factory for MyExpenses

Ties settings to concrete components:
- Local storage backend (file or memory)
- Remote store (none, in-memory, or Google Sheets)
- Audit logger
- The ExpenseManager that owns them

DESIGN DECISION: A misconfigured remote store must not stop the app from
starting. Local-first means the engine is fully usable without a remote;
if the remote cannot be built we log it and continue with sync disabled.
"""

from typing import Optional

import structlog

from myexpenses.audit import AuditLogger
from myexpenses.config import Settings, get_settings
from myexpenses.manager import ExpenseManager
from myexpenses.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    LocalStorageInterface,
)
from myexpenses.services.sync import (
    GoogleSheetsClient,
    GoogleSheetsSyncAdapter,
    InMemorySyncAdapter,
    RemoteSyncInterface,
)


logger = structlog.get_logger(__name__)


def create_storage(settings: Settings) -> LocalStorageInterface:
    """Build the local storage backend named in settings."""
    storage_settings = settings.storage
    if storage_settings.backend == "memory":
        return InMemoryStorage()
    return JsonFileStorage(storage_settings.data_dir)


def create_remote(settings: Settings) -> Optional[RemoteSyncInterface]:
    """
    Build the remote store named in settings.

    Returns None when sync is disabled or the remote cannot be configured.
    """
    backend = settings.sync.backend
    if backend == "none":
        return None
    if backend == "memory":
        return InMemorySyncAdapter()

    try:
        client = GoogleSheetsClient(settings.google_sheets)
        return GoogleSheetsSyncAdapter(client)
    except Exception as e:
        # Remote not configured - continue local-only
        logger.warning("remote_sync_not_configured", backend=backend, error=str(e))
        return None


def create_expense_manager(
    settings: Optional[Settings] = None,
    storage: Optional[LocalStorageInterface] = None,
    remote: Optional[RemoteSyncInterface] = None,
) -> ExpenseManager:
    """
    Factory function to create a ready-to-initialize ExpenseManager.

    Args:
        settings: Settings to build from (defaults to get_settings()).
        storage: Override the configured local storage.
        remote: Override the configured remote store.

    Returns:
        An ExpenseManager. Call `await manager.initialize()` before use.
    """
    settings = settings or get_settings()
    sync_settings = settings.sync

    return ExpenseManager(
        storage=storage or create_storage(settings),
        remote=remote or create_remote(settings),
        audit_logger=AuditLogger(history_size=settings.app.audit_history_size),
        storage_key=settings.storage.storage_key,
        max_queued_syncs=sync_settings.max_queued_syncs,
        sync_workers=sync_settings.sync_workers,
    )
