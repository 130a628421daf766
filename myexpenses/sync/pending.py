"""
Pending Sync Queue

Remote operations that failed in the background wait here until someone
asks for a retry. There is no timer and no backoff: replay only happens
on an explicit call.

Replay is FIFO. Each entry succeeds or fails on its own; failures go back
to the front of the queue in their original order, ahead of anything that
was enqueued while the replay was running. Entries for the same expense
are not coalesced, so a record that failed twice is pushed twice.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from myexpenses.models.expense import (
    Expense,
    PendingSyncEntry,
    RetryResult,
    SyncOperation,
)


ReplayHandler = Callable[[PendingSyncEntry], Awaitable[Any]]


class PendingSyncQueue:
    """In-memory FIFO of failed remote operations."""

    def __init__(self):
        self._entries: list[PendingSyncEntry] = []
        self._replay_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def enqueue(
        self,
        operation: SyncOperation,
        expense_id: str,
        expense: Optional[Expense] = None,
    ) -> PendingSyncEntry:
        entry = PendingSyncEntry(
            operation=operation,
            expense_id=expense_id,
            expense=expense,
        )
        self._entries.append(entry)
        return entry

    def entries(self) -> list[PendingSyncEntry]:
        """Snapshot of the queue, oldest first."""
        return list(self._entries)

    async def replay(self, handler: ReplayHandler) -> RetryResult:
        """
        Hand every queued entry to `handler`, oldest first.

        An entry is removed when its handler call returns and kept when
        it raises. Concurrent replays are serialized.
        """
        async with self._replay_lock:
            batch, self._entries = self._entries, []
            still_failing: list[PendingSyncEntry] = []
            success = 0

            for entry in batch:
                attempted = entry.model_copy(update={"attempts": entry.attempts + 1})
                try:
                    await handler(attempted)
                    success += 1
                except Exception:
                    still_failing.append(attempted)

            self._entries = still_failing + self._entries
            return RetryResult(
                success=success,
                failed=len(still_failing),
                remaining=len(self._entries),
            )
