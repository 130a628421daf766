"""Background sync, retry queue and merge package."""

from myexpenses.sync.coordinator import SyncCoordinator, SyncTask
from myexpenses.sync.merge import merge_expenses
from myexpenses.sync.pending import PendingSyncQueue

__all__ = [
    "PendingSyncQueue",
    "SyncCoordinator",
    "SyncTask",
    "merge_expenses",
]
