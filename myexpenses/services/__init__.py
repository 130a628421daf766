"""Services package."""

from myexpenses.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    LocalStorageInterface,
    StorageError,
)
from myexpenses.services.sync import (
    GoogleSheetsClient,
    GoogleSheetsSyncAdapter,
    InMemorySyncAdapter,
    RemoteSyncInterface,
    TransientSyncError,
)

__all__ = [
    # Local storage
    "InMemoryStorage",
    "JsonFileStorage",
    "LocalStorageInterface",
    "StorageError",
    # Remote sync
    "GoogleSheetsClient",
    "GoogleSheetsSyncAdapter",
    "InMemorySyncAdapter",
    "RemoteSyncInterface",
    "TransientSyncError",
]
