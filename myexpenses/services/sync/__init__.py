"""
Remote Sync Services Package

Provides the abstract remote store interface and its implementations.
"""

from myexpenses.services.sync.interface import (
    RemoteSyncInterface,
    TransientSyncError,
)
from myexpenses.services.sync.memory import InMemorySyncAdapter
from myexpenses.services.sync.google_sheets import (
    EXPENSE_COLUMNS,
    GoogleSheetsClient,
    GoogleSheetsSyncAdapter,
)

__all__ = [
    # Interface
    "RemoteSyncInterface",
    # Exceptions
    "TransientSyncError",
    # Implementations
    "EXPENSE_COLUMNS",
    "GoogleSheetsClient",
    "GoogleSheetsSyncAdapter",
    "InMemorySyncAdapter",
]
